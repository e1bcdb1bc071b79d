"""
Tests for the Layer.

These tests verify:
    - Forward pass shape and caching
    - Softmax normalization and stability
    - Error propagation to the previous layer
    - Parameter access and compatibility checks
"""

import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from tinydqn.ai.activations import Activation
from tinydqn.ai.layer import Layer
from tinydqn.exceptions import ConfigurationError, DimensionError


@pytest.fixture
def rng():
    return np.random.default_rng(7)


class TestForward:
    """Test forward computation."""

    def test_output_length(self, rng):
        layer = Layer(3, 4, Activation.RELU, rng)
        assert layer.forward([0.1, 0.2, 0.3]).shape == (4,)

    def test_caches_inputs_and_outputs(self, rng):
        layer = Layer(2, 3, 'tanh', rng)
        out = layer.forward([0.5, -0.5])
        assert np.array_equal(layer.last_inputs, [0.5, -0.5])
        assert np.array_equal(layer.last_outputs, out)

    def test_returned_output_is_a_copy(self, rng):
        layer = Layer(2, 2, 'linear', rng)
        out = layer.forward([1.0, 1.0])
        out[0] = 1234.0
        assert layer.last_outputs[0] != 1234.0

    def test_wrong_input_size(self, rng):
        layer = Layer(3, 2, Activation.SIGMOID, rng)
        with pytest.raises(DimensionError):
            layer.forward([1.0, 2.0])

    def test_rejects_empty_layer(self, rng):
        with pytest.raises(ConfigurationError):
            Layer(3, 0, Activation.SIGMOID, rng)


class TestSoftmax:
    """Test the softmax layer."""

    def test_outputs_sum_to_one(self, rng):
        layer = Layer(4, 5, Activation.SOFTMAX, rng)
        out = layer.forward(rng.normal(size=4))
        assert out.sum() == pytest.approx(1.0)
        assert np.all(out > 0)

    def test_large_preactivations_stay_finite(self, rng):
        layer = Layer(2, 3, Activation.SOFTMAX, rng)
        layer.set_parameters(np.zeros((3, 2)), [1000.0, 1000.0, 0.0])
        out = layer.forward([1.0, 1.0])
        assert np.all(np.isfinite(out))
        assert np.allclose(out, [0.5, 0.5, 0.0])

    def test_neuron_outputs_hold_normalized_values(self, rng):
        layer = Layer(2, 3, Activation.SOFTMAX, rng)
        out = layer.forward([0.3, 0.9])
        assert np.allclose([n.last_output for n in layer.neurons], out)


class TestBackward:
    """Test error propagation and updates."""

    def test_backpropagate_sums_weighted_deltas(self, rng):
        layer = Layer(2, 2, Activation.LINEAR, rng)
        layer.set_parameters([[1.0, 2.0], [3.0, 4.0]], [0.0, 0.0])
        error = layer.backpropagate(np.array([1.0, 1.0]))
        assert np.allclose(error, [4.0, 6.0])

    def test_update_uses_cached_inputs(self, rng):
        layer = Layer(2, 1, Activation.LINEAR, rng)
        layer.set_parameters([[0.0, 0.0]], [0.0])
        layer.forward([1.0, -2.0])
        layer.update(np.array([0.5]), learning_rate=1.0, clip=10.0)
        assert np.allclose(layer.get_weights(), [[-0.5, 1.0]])
        assert np.allclose(layer.get_biases(), [-0.5])


class TestParameters:
    """Test parameter access."""

    def test_weight_matrix_shape(self, rng):
        layer = Layer(3, 4, Activation.RELU, rng)
        assert layer.get_weights().shape == (4, 3)
        assert layer.get_biases().shape == (4,)

    def test_set_parameters_checks_shape(self, rng):
        layer = Layer(3, 2, Activation.RELU, rng)
        with pytest.raises(DimensionError):
            layer.set_parameters(np.zeros((3, 2)), np.zeros(2))

    def test_copy_requires_same_size(self, rng):
        layer = Layer(3, 2, Activation.RELU, rng)
        with pytest.raises(DimensionError):
            layer.copy_weights_from(Layer(3, 3, Activation.RELU, rng))
