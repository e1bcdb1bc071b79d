"""
Activation Functions
====================

Each activation kind maps to a (forward, derivative) pair of scalar
functions. Layers resolve the pair once at construction so the forward and
backward passes never branch on the kind.

Derivatives are evaluated at the cached pre-activation z, not at the output.

    kind         forward                      derivative
    SIGMOID      1 / (1 + e^-clamp(z))        s * (1 - s)
    RELU         max(0, z)                    1 if z > 0 else 0
    LEAKY_RELU   z if z > 0 else 0.01 z       1 if z > 0 else 0.01
    TANH         tanh(z)                      1 - tanh(z)^2
    LINEAR       z                            1
    SOFTMAX      z (normalized by the layer)  1 (cross-entropy shortcut)
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Union

from ..exceptions import ConfigurationError


SIGMOID_CLAMP = 88.0
LEAKY_SLOPE = 0.01


class Activation(Enum):
    """Activation kinds supported by a Layer."""
    SIGMOID = 'sigmoid'
    RELU = 'relu'
    LEAKY_RELU = 'leaky_relu'
    TANH = 'tanh'
    LINEAR = 'linear'
    SOFTMAX = 'softmax'

    @classmethod
    def parse(cls, value: Union['Activation', str]) -> 'Activation':
        """Accept an Activation or its (case-insensitive) name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.lower())
            except ValueError:
                pass
        raise ConfigurationError(f"Unknown activation: {value!r}")

    @property
    def uses_he_init(self) -> bool:
        """ReLU-family activations get He-scaled initial weights."""
        return self in (Activation.RELU, Activation.LEAKY_RELU)


@dataclass(frozen=True)
class ActivationFunction:
    """Forward function and its derivative for one activation kind."""
    kind: Activation
    forward: Callable[[float], float]
    derivative: Callable[[float], float]


def sigmoid(z: float) -> float:
    z = max(-SIGMOID_CLAMP, min(SIGMOID_CLAMP, z))
    return 1.0 / (1.0 + math.exp(-z))


def sigmoid_derivative(z: float) -> float:
    s = sigmoid(z)
    return s * (1.0 - s)


def relu(z: float) -> float:
    return z if z > 0 else 0.0


def relu_derivative(z: float) -> float:
    return 1.0 if z > 0 else 0.0


def leaky_relu(z: float) -> float:
    return z if z > 0 else LEAKY_SLOPE * z


def leaky_relu_derivative(z: float) -> float:
    return 1.0 if z > 0 else LEAKY_SLOPE


def tanh(z: float) -> float:
    return math.tanh(z)


def tanh_derivative(z: float) -> float:
    t = math.tanh(z)
    return 1.0 - t * t


def identity(z: float) -> float:
    return z


def unit_derivative(z: float) -> float:
    return 1.0


ACTIVATION_FUNCTIONS: Dict[Activation, ActivationFunction] = {
    Activation.SIGMOID: ActivationFunction(Activation.SIGMOID, sigmoid, sigmoid_derivative),
    Activation.RELU: ActivationFunction(Activation.RELU, relu, relu_derivative),
    Activation.LEAKY_RELU: ActivationFunction(Activation.LEAKY_RELU, leaky_relu, leaky_relu_derivative),
    Activation.TANH: ActivationFunction(Activation.TANH, tanh, tanh_derivative),
    Activation.LINEAR: ActivationFunction(Activation.LINEAR, identity, unit_derivative),
    # Neurons emit raw z; the layer normalizes across all of its neurons
    Activation.SOFTMAX: ActivationFunction(Activation.SOFTMAX, identity, unit_derivative),
}


def get_activation_fn(kind: Union[Activation, str]) -> ActivationFunction:
    """Resolve an activation kind (or name) to its function pair."""
    return ACTIVATION_FUNCTIONS[Activation.parse(kind)]
