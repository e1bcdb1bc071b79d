"""
Cross-check of hand-written backpropagation against PyTorch autograd.

One training step of the Network must move every parameter exactly as
gradient descent on the equivalent torch graph does:
    - Regression outputs: loss 0.5 * sum((y - t)^2)
    - SOFTMAX outputs: cross-entropy, -sum(t * log_softmax(z))
"""

import os
import sys

import numpy as np
import pytest

torch = pytest.importorskip("torch")

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from tinydqn.ai.network import Network


TORCH_ACTIVATIONS = {
    'relu': torch.relu,
    'tanh': torch.tanh,
    'sigmoid': torch.sigmoid,
    'leaky_relu': lambda z: torch.nn.functional.leaky_relu(z, 0.01),
    'linear': lambda z: z,
}


def torch_step(network: Network, x, t):
    """Return (loss, updated weights, updated biases) computed with autograd."""
    state = network.get_state()
    params = []
    for spec in state['layers']:
        w = torch.tensor(spec['weights'], dtype=torch.float64, requires_grad=True)
        b = torch.tensor(spec['biases'], dtype=torch.float64, requires_grad=True)
        params.append((w, b, spec['activation']))

    a = torch.tensor(x, dtype=torch.float64)
    target = torch.tensor(t, dtype=torch.float64)
    for w, b, activation in params[:-1]:
        a = TORCH_ACTIVATIONS[activation](w @ a + b)

    w, b, activation = params[-1]
    z = w @ a + b
    if activation == 'softmax':
        loss = -(target * torch.log_softmax(z, dim=0)).sum()
        reported = loss
    else:
        y = TORCH_ACTIVATIONS[activation](z)
        loss = 0.5 * ((y - target) ** 2).sum()
        reported = ((y - target) ** 2).mean()
    loss.backward()

    lr = network.learning_rate
    weights = [(w - lr * w.grad).detach().numpy() for w, _, _ in params]
    biases = [(b - lr * b.grad).detach().numpy() for _, b, _ in params]
    return float(reported), weights, biases


@pytest.mark.parametrize("layers, target", [
    ([(5, 'tanh'), (4, 'sigmoid'), (2, 'linear')], [0.3, -0.7]),
    ([(6, 'leaky_relu'), (3, 'sigmoid')], [0.3, 0.1, 0.9]),
    ([(4, 'relu'), (3, 'softmax')], [0.0, 1.0, 0.0]),
])
def test_single_step_matches_autograd(layers, target):
    network = Network(
        3,
        layers,
        learning_rate=0.1,
        gradient_clip=1e6,
        rng=np.random.default_rng(2024)
    )
    x = [0.5, -1.2, 0.8]

    expected_loss, expected_weights, expected_biases = torch_step(network, x, target)
    loss = network.train(x, target)

    assert loss == pytest.approx(expected_loss, rel=1e-9, abs=1e-12)
    for layer, w, b in zip(network.layers, expected_weights, expected_biases):
        assert np.allclose(layer.get_weights(), w, atol=1e-10)
        assert np.allclose(layer.get_biases(), b, atol=1e-10)


def test_clipping_bounds_every_step():
    network = Network(
        3,
        [(4, 'relu'), (2, 'linear')],
        learning_rate=0.1,
        gradient_clip=1e-3,
        rng=np.random.default_rng(1)
    )
    before = network.flat_parameters()
    network.train([5.0, -4.0, 3.0], [100.0, -100.0])
    step = np.abs(network.flat_parameters() - before)
    assert np.all(step <= 0.1 * 1e-3 + 1e-12)
    assert step.max() > 0
