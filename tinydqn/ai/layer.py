"""
Layer
=====

An ordered collection of Neurons sharing one activation kind and one input
width. SOFTMAX layers normalize across all neuron outputs (max-subtracted
for numerical stability).
"""

import math
from typing import List, Optional, Union

import numpy as np

from .activations import Activation, get_activation_fn
from .neuron import Neuron
from ..exceptions import ConfigurationError, DimensionError


class Layer:
    """
    Fully connected layer of Neurons.

    Attributes:
        neurons (List[Neuron]): Units in output order
        activation (Activation): Shared activation kind
        input_size (int): Width of the input vector
        last_inputs (np.ndarray): Input of the most recent forward call
        last_outputs (np.ndarray): Output of the most recent forward call
    """

    def __init__(
        self,
        input_size: int,
        neuron_count: int,
        activation: Union[Activation, str] = Activation.SIGMOID,
        rng: Optional[np.random.Generator] = None
    ):
        if input_size <= 0:
            raise ConfigurationError(f"Layer input size must be positive, got {input_size}")
        if neuron_count <= 0:
            raise ConfigurationError(f"Layer needs at least one neuron, got {neuron_count}")

        self.input_size = input_size
        self.activation = Activation.parse(activation)

        # Resolved once; forward/backward never branch on the kind
        self._activation_fn = get_activation_fn(self.activation)

        self.neurons: List[Neuron] = [
            Neuron(input_size, self.activation, rng) for _ in range(neuron_count)
        ]

        self.last_inputs = np.zeros(input_size, dtype=np.float64)
        self.last_outputs = np.zeros(neuron_count, dtype=np.float64)

    @property
    def neuron_count(self) -> int:
        return len(self.neurons)

    @property
    def is_softmax(self) -> bool:
        return self.activation is Activation.SOFTMAX

    @property
    def last_preactivations(self) -> np.ndarray:
        return np.array([n.last_preactivation for n in self.neurons], dtype=np.float64)

    def forward(self, inputs) -> np.ndarray:
        """
        Compute the layer output for one input vector.

        Args:
            inputs: Vector of length input_size

        Returns:
            Output vector of length neuron_count
        """
        x = np.asarray(inputs, dtype=np.float64)
        if x.ndim != 1 or x.shape[0] != self.input_size:
            raise DimensionError(
                f"Input size mismatch: expected {self.input_size}, got {x.size}"
            )

        outputs = np.array(
            [n.compute_output(x, self._activation_fn) for n in self.neurons],
            dtype=np.float64
        )

        if self.is_softmax:
            outputs = _stable_softmax(outputs)
            for neuron, value in zip(self.neurons, outputs):
                neuron.last_output = float(value)

        self.last_inputs = x.copy()
        self.last_outputs = outputs
        return outputs.copy()

    def activation_derivatives(self) -> np.ndarray:
        """Activation derivative at each neuron's cached pre-activation."""
        derivative = self._activation_fn.derivative
        return np.array(
            [derivative(n.last_preactivation) for n in self.neurons],
            dtype=np.float64
        )

    def backpropagate(self, deltas: np.ndarray) -> np.ndarray:
        """
        Error signal for the previous layer, before its activation derivative.

            error[j] = sum_k deltas[k] * neurons[k].weights[j]
        """
        error = np.zeros(self.input_size, dtype=np.float64)
        for delta, neuron in zip(deltas, self.neurons):
            error += delta * neuron.weights
        return error

    def update(self, deltas: np.ndarray, learning_rate: float, clip: float) -> None:
        """Apply one gradient descent step using the cached layer input."""
        for delta, neuron in zip(deltas, self.neurons):
            neuron.apply_update(delta * self.last_inputs, delta, learning_rate, clip)

    def copy_weights_from(self, other: 'Layer') -> None:
        self._check_compatible(other)
        for mine, theirs in zip(self.neurons, other.neurons):
            mine.copy_weights_from(theirs)

    def soft_update(self, other: 'Layer', tau: float) -> None:
        self._check_compatible(other)
        for mine, theirs in zip(self.neurons, other.neurons):
            mine.soft_update(theirs, tau)

    def get_weights(self) -> np.ndarray:
        """Weight matrix of shape (neuron_count, input_size)."""
        return np.array([n.weights for n in self.neurons], dtype=np.float64)

    def get_biases(self) -> np.ndarray:
        return np.array([n.bias for n in self.neurons], dtype=np.float64)

    def set_parameters(self, weights, biases) -> None:
        """Overwrite all weights and biases (used when restoring a saved network)."""
        w = np.asarray(weights, dtype=np.float64)
        b = np.asarray(biases, dtype=np.float64)
        if w.shape != (self.neuron_count, self.input_size) or b.shape != (self.neuron_count,):
            raise DimensionError(
                f"Parameter shape mismatch: expected ({self.neuron_count}, {self.input_size}), "
                f"got weights {w.shape} and biases {b.shape}"
            )
        for neuron, row, bias in zip(self.neurons, w, b):
            neuron.weights = row.copy()
            neuron.bias = float(bias)

    def _check_compatible(self, other: 'Layer') -> None:
        if self.neuron_count != other.neuron_count or self.input_size != other.input_size:
            raise DimensionError(
                f"Layer sizes don't match: ({self.input_size}->{self.neuron_count}) vs "
                f"({other.input_size}->{other.neuron_count})"
            )

    def __repr__(self) -> str:
        return (f"Layer(input_size={self.input_size}, neuron_count={self.neuron_count}, "
                f"activation={self.activation.value})")


def _stable_softmax(raw: np.ndarray) -> np.ndarray:
    shift = float(np.max(raw))
    exps = np.array([math.exp(v - shift) for v in raw], dtype=np.float64)
    return exps / exps.sum()
