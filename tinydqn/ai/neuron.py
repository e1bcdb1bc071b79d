"""
Neuron
======

A single unit: weight vector, bias, and the values cached by the last
forward call (pre-activation z and output).

    z      = dot(inputs, weights) + bias
    output = activation(z)

Weight initialization:
    He     (ReLU family):          uniform in ±sqrt(2 / input_size)
    Xavier (sigmoid/tanh/softmax): uniform in ±sqrt(1 / input_size)
"""

import math
from typing import Optional, Sequence, Union

import numpy as np

from .activations import Activation, ActivationFunction, get_activation_fn
from ..exceptions import ConfigurationError, DimensionError


class Neuron:
    """
    One unit of a Layer.

    Attributes:
        weights (np.ndarray): One weight per input, length fixed at construction
        bias (float): Bias term
        last_preactivation (float): z from the most recent compute_output call
        last_output (float): Activated value from the most recent call
    """

    def __init__(
        self,
        input_size: int,
        activation: Union[Activation, str] = Activation.SIGMOID,
        rng: Optional[np.random.Generator] = None
    ):
        if input_size <= 0:
            raise ConfigurationError(f"Neuron input size must be positive, got {input_size}")

        self.input_size = input_size
        self.weights = np.zeros(input_size, dtype=np.float64)
        self.bias = 0.0
        self.last_preactivation = 0.0
        self.last_output = 0.0

        self.initialize(activation, rng)

    def initialize(
        self,
        activation: Union[Activation, str],
        rng: Optional[np.random.Generator] = None
    ) -> None:
        """Draw fresh weights and bias using the scale suited to the activation."""
        kind = Activation.parse(activation)
        rng = rng if rng is not None else np.random.default_rng()

        if kind.uses_he_init:
            scale = math.sqrt(2.0 / self.input_size)
        else:
            scale = math.sqrt(1.0 / self.input_size)

        self.bias = float(rng.uniform(-scale, scale))
        self.weights = rng.uniform(-scale, scale, size=self.input_size)

    def compute_output(
        self,
        inputs: np.ndarray,
        activation: Union[Activation, ActivationFunction, str]
    ) -> float:
        """
        Weighted sum plus activation. Caches z and the output.

        For SOFTMAX the raw z is returned; the owning layer normalizes.
        """
        fn = activation if isinstance(activation, ActivationFunction) else get_activation_fn(activation)
        if len(inputs) != self.input_size:
            raise DimensionError(
                f"Input size mismatch: expected {self.input_size}, got {len(inputs)}"
            )

        self.last_preactivation = float(np.dot(inputs, self.weights)) + self.bias
        self.last_output = fn.forward(self.last_preactivation)
        return self.last_output

    def apply_update(
        self,
        weight_gradients: Sequence[float],
        bias_gradient: float,
        learning_rate: float,
        clip: float
    ) -> None:
        """
        Gradient descent step with per-component clipping.

            bias    -= lr * clip(bias_gradient)
            weights -= lr * clip(weight_gradients)
        """
        grads = np.asarray(weight_gradients, dtype=np.float64)
        if grads.shape != (self.input_size,):
            raise DimensionError(
                f"Gradient size mismatch: expected {self.input_size}, got {grads.size}"
            )

        self.bias -= learning_rate * max(-clip, min(clip, float(bias_gradient)))
        self.weights -= learning_rate * np.clip(grads, -clip, clip)

    def copy_weights_from(self, other: 'Neuron') -> None:
        """Exact copy of another neuron's weights and bias."""
        if self.input_size != other.input_size:
            raise DimensionError(
                f"Neuron sizes don't match: {self.input_size} vs {other.input_size}"
            )
        self.bias = other.bias
        np.copyto(self.weights, other.weights)

    def soft_update(self, other: 'Neuron', tau: float) -> None:
        """Polyak averaging: this = tau * other + (1 - tau) * this."""
        if self.input_size != other.input_size:
            raise DimensionError(
                f"Neuron sizes don't match: {self.input_size} vs {other.input_size}"
            )
        self.bias = tau * other.bias + (1.0 - tau) * self.bias
        self.weights = tau * other.weights + (1.0 - tau) * self.weights

    def __repr__(self) -> str:
        return f"Neuron(input_size={self.input_size}, bias={self.bias:.4f})"
