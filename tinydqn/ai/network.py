"""
Feed-Forward Network
====================

An ordered chain of Layers trained with hand-written backpropagation.

Theory:
    Forward:   a[0] = x,  a[l+1] = f_l(W_l a[l] + b_l)
    Loss:      MSE for regression outputs, cross-entropy for SOFTMAX outputs

Backpropagation:
    Output delta:
        SOFTMAX + cross-entropy:  delta[k] = y[k] - t[k]
        otherwise (MSE):          delta[k] = (y[k] - t[k]) * f'(z[k])
    Hidden delta (output towards input):
        delta_prev[j] = (sum_k delta[k] * W[k][j]) * f'(z_prev[j])
    Update (gradient descent, every component clipped):
        b[i]    -= lr * clip(delta[i])
        W[i][j] -= lr * clip(delta[i] * input[j])

All deltas are computed before any weight changes.

Key Features:
    - Arbitrary depth, any (size, activation) per layer
    - Hard weight copy and Polyak soft updates between equal topologies
    - JSON-compatible state export/import
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from .activations import Activation
from .layer import Layer
from ..config import Config
from ..exceptions import ConfigurationError, DimensionError


LayerSpec = Tuple[int, Union[Activation, str]]

# Keeps log() finite when a softmax output underflows to zero
_LOG_FLOOR = 1e-12


class Network:
    """
    Fully connected feed-forward neural network.

    Architecture:
        Input → Hidden Layers → Output Layer

    Attributes:
        layers (List[Layer]): Hidden layers followed by the output layer
        learning_rate (float): Gradient descent step size
        gradient_clip (float): Bound applied to every gradient component
        soft_update_tau (float): Default mixing factor for soft_update

    Example:
        >>> net = Network(2, [(4, 'sigmoid'), (1, 'sigmoid')], learning_rate=0.5)
        >>> loss = net.train([0, 1], [1])
        >>> net.predict([0, 1])  # array of length 1
    """

    def __init__(
        self,
        input_size: int,
        layers: Sequence[LayerSpec],
        learning_rate: float = 0.1,
        gradient_clip: float = 1.0,
        soft_update_tau: float = 0.01,
        rng: Optional[np.random.Generator] = None
    ):
        """
        Initialize the network.

        Args:
            input_size: Width of the input vector
            layers: Ordered (neuron_count, activation) pairs; the last pair is
                    the output layer, at least one hidden layer precedes it
            learning_rate: Gradient descent step size
            gradient_clip: Every gradient component is clipped to ±gradient_clip
            soft_update_tau: Default tau for soft_update
            rng: Random generator for weight initialization and shuffling
        """
        if input_size <= 0:
            raise ConfigurationError(f"Input size must be positive, got {input_size}")
        if len(layers) < 2:
            raise ConfigurationError(
                "A network needs at least one hidden layer and one output layer"
            )
        _validate_hyperparameters(learning_rate, gradient_clip, soft_update_tau)

        self.input_size = input_size
        self.learning_rate = learning_rate
        self.gradient_clip = gradient_clip
        self.soft_update_tau = soft_update_tau
        self._rng = rng if rng is not None else np.random.default_rng()

        self.layers: List[Layer] = []
        width = input_size
        for size, activation in layers:
            self.layers.append(Layer(width, size, activation, self._rng))
            width = size

    @classmethod
    def from_config(
        cls,
        config: Config,
        input_size: int,
        output_size: int,
        rng: Optional[np.random.Generator] = None
    ) -> 'Network':
        """Build the hidden/output shape described by a Config."""
        specs: List[LayerSpec] = [(size, config.HIDDEN_ACTIVATION) for size in config.HIDDEN_LAYERS]
        specs.append((output_size, config.OUTPUT_ACTIVATION))
        return cls(
            input_size,
            specs,
            learning_rate=config.LEARNING_RATE,
            gradient_clip=config.GRADIENT_CLIP,
            soft_update_tau=config.NETWORK_TAU,
            rng=rng
        )

    # -------------------------------------------------------------------------
    # Shape
    # -------------------------------------------------------------------------

    @property
    def output_size(self) -> int:
        return self.layers[-1].neuron_count

    @property
    def layer_count(self) -> int:
        return len(self.layers)

    def get_layer(self, index: int) -> Layer:
        return self.layers[index]

    def topology(self) -> List[Tuple[int, int, str]]:
        """Ordered (input_size, neuron_count, activation) per layer."""
        return [(layer.input_size, layer.neuron_count, layer.activation.value) for layer in self.layers]

    def layer_specs(self) -> List[LayerSpec]:
        return [(layer.neuron_count, layer.activation) for layer in self.layers]

    # -------------------------------------------------------------------------
    # Forward / backward
    # -------------------------------------------------------------------------

    def predict(self, inputs) -> np.ndarray:
        """
        Forward pass.

        Only the per-layer caches used by a following backward pass change.

        Args:
            inputs: Vector of length input_size

        Returns:
            Output vector of length output_size
        """
        x = self._as_input(inputs)
        for layer in self.layers:
            x = layer.forward(x)
        return x

    def train(self, inputs, target) -> float:
        """
        One gradient descent step on a single example.

        Args:
            inputs: Vector of length input_size
            target: Vector of length output_size (one-hot for classification,
                    arbitrary values for regression / Q-values)

        Returns:
            Loss before the update (cross-entropy for SOFTMAX outputs, MSE otherwise)
        """
        x = self._as_input(inputs)
        t = self._as_target(target)

        outputs = self.predict(x)
        loss = self._loss(outputs, t)
        self._backpropagate(t)
        return loss

    def fit(
        self,
        inputs: Sequence,
        targets: Sequence,
        epochs: int = 1,
        shuffle: bool = False,
        rng: Optional[np.random.Generator] = None
    ) -> List[float]:
        """
        Train on a whole dataset for a number of full passes.

        Returns:
            Mean loss of each epoch
        """
        if len(inputs) != len(targets):
            raise DimensionError(
                f"Dataset size mismatch: {len(inputs)} inputs vs {len(targets)} targets"
            )
        if epochs < 0:
            raise ConfigurationError(f"Epochs must be non-negative, got {epochs}")

        xs = [self._as_input(x) for x in inputs]
        ts = [self._as_target(t) for t in targets]
        rng = rng if rng is not None else self._rng
        order = np.arange(len(xs))

        history: List[float] = []
        for _ in range(epochs):
            if shuffle:
                rng.shuffle(order)
            total = 0.0
            for i in order:
                total += self.train(xs[i], ts[i])
            history.append(total / len(xs) if len(xs) else 0.0)
        return history

    def _backpropagate(self, target: np.ndarray) -> None:
        output_layer = self.layers[-1]
        outputs = output_layer.last_outputs

        if output_layer.is_softmax:
            delta = outputs - target
        else:
            delta = (outputs - target) * output_layer.activation_derivatives()

        deltas: List[np.ndarray] = [delta]
        for i in range(len(self.layers) - 1, 0, -1):
            error = self.layers[i].backpropagate(deltas[-1])
            deltas.append(error * self.layers[i - 1].activation_derivatives())
        deltas.reverse()

        for layer, layer_delta in zip(self.layers, deltas):
            layer.update(layer_delta, self.learning_rate, self.gradient_clip)

    def _loss(self, outputs: np.ndarray, target: np.ndarray) -> float:
        if self.layers[-1].is_softmax:
            return float(-np.sum(target * np.log(np.maximum(outputs, _LOG_FLOOR))))
        return float(np.mean((outputs - target) ** 2))

    def _as_input(self, inputs) -> np.ndarray:
        x = np.asarray(inputs, dtype=np.float64)
        if x.ndim != 1 or x.shape[0] != self.input_size:
            raise DimensionError(
                f"Input size mismatch: expected {self.input_size}, got {x.size}"
            )
        return x

    def _as_target(self, target) -> np.ndarray:
        t = np.asarray(target, dtype=np.float64)
        if t.ndim != 1 or t.shape[0] != self.output_size:
            raise DimensionError(
                f"Target size mismatch: expected {self.output_size}, got {t.size}"
            )
        return t

    # -------------------------------------------------------------------------
    # Synchronisation
    # -------------------------------------------------------------------------

    def copy(self) -> 'Network':
        """Deep clone with identical topology, weights and hyperparameters."""
        # Fixed seed: the clone's initial weights are overwritten immediately,
        # and the shared generator must not advance
        clone = Network(
            self.input_size,
            self.layer_specs(),
            learning_rate=self.learning_rate,
            gradient_clip=self.gradient_clip,
            soft_update_tau=self.soft_update_tau,
            rng=np.random.default_rng(0)
        )
        clone._rng = self._rng
        clone.copy_weights_from(self)
        return clone

    def copy_weights_from(self, other: 'Network') -> None:
        """Copy all weights, biases and hyperparameters from an equal topology."""
        self.check_same_topology(other)
        for mine, theirs in zip(self.layers, other.layers):
            mine.copy_weights_from(theirs)
        self.learning_rate = other.learning_rate
        self.gradient_clip = other.gradient_clip
        self.soft_update_tau = other.soft_update_tau

    def soft_update(self, other: 'Network', tau: Optional[float] = None) -> None:
        """
        Polyak averaging towards another network.

            this = tau * other + (1 - tau) * this

        tau=1 is a hard copy of the weights, tau=0 leaves them unchanged.
        """
        tau = self.soft_update_tau if tau is None else tau
        if not 0 <= tau <= 1:
            raise ConfigurationError(f"tau must be in [0, 1], got {tau}")
        self.check_same_topology(other)
        for mine, theirs in zip(self.layers, other.layers):
            mine.soft_update(theirs, tau)

    def check_same_topology(self, other: 'Network') -> None:
        """Raise DimensionError unless other has this exact layer layout."""
        if self.input_size != other.input_size or self.topology() != other.topology():
            raise DimensionError(
                f"Network topologies don't match: {self.topology()} vs {other.topology()}"
            )

    # -------------------------------------------------------------------------
    # Export / import
    # -------------------------------------------------------------------------

    def get_state(self) -> Dict[str, Any]:
        """
        JSON-compatible snapshot of topology, parameters and hyperparameters.

        Layers appear input to output; within a layer, neurons in order with
        their weights in input order.
        """
        return {
            'input_size': self.input_size,
            'learning_rate': self.learning_rate,
            'gradient_clip': self.gradient_clip,
            'soft_update_tau': self.soft_update_tau,
            'layers': [
                {
                    'input_size': layer.input_size,
                    'neuron_count': layer.neuron_count,
                    'activation': layer.activation.value,
                    'weights': layer.get_weights().tolist(),
                    'biases': layer.get_biases().tolist(),
                }
                for layer in self.layers
            ],
        }

    @classmethod
    def from_state(
        cls,
        state: Dict[str, Any],
        rng: Optional[np.random.Generator] = None
    ) -> 'Network':
        """Rebuild a network from get_state() output."""
        network = cls(
            int(state['input_size']),
            [(int(spec['neuron_count']), spec['activation']) for spec in state['layers']],
            learning_rate=float(state['learning_rate']),
            gradient_clip=float(state['gradient_clip']),
            soft_update_tau=float(state['soft_update_tau']),
            rng=rng
        )
        network.load_state(state)
        return network

    def load_state(self, state: Dict[str, Any]) -> None:
        """Restore parameters and hyperparameters in place; topology must match."""
        saved = [
            (int(spec['input_size']), int(spec['neuron_count']), Activation.parse(spec['activation']).value)
            for spec in state['layers']
        ]
        if int(state['input_size']) != self.input_size or saved != self.topology():
            raise DimensionError(
                f"Saved topology {saved} does not match network topology {self.topology()}"
            )
        _validate_hyperparameters(
            float(state['learning_rate']),
            float(state['gradient_clip']),
            float(state['soft_update_tau'])
        )

        # Validate every layer before touching any of them
        params = [
            (np.asarray(spec['weights'], dtype=np.float64), np.asarray(spec['biases'], dtype=np.float64))
            for spec in state['layers']
        ]
        for layer, (weights, biases) in zip(self.layers, params):
            if weights.shape != (layer.neuron_count, layer.input_size) or biases.shape != (layer.neuron_count,):
                raise DimensionError(
                    f"Saved parameters {weights.shape}/{biases.shape} do not fit {layer!r}"
                )
        for layer, (weights, biases) in zip(self.layers, params):
            layer.set_parameters(weights, biases)

        self.learning_rate = float(state['learning_rate'])
        self.gradient_clip = float(state['gradient_clip'])
        self.soft_update_tau = float(state['soft_update_tau'])

    def flat_parameters(self) -> np.ndarray:
        """All parameters as one vector: per neuron, its weights then its bias."""
        values: List[float] = []
        for layer in self.layers:
            for neuron in layer.neurons:
                values.extend(neuron.weights.tolist())
                values.append(neuron.bias)
        return np.array(values, dtype=np.float64)

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------

    def get_layer_info(self) -> List[Dict]:
        """
        Get information about each layer.

        Returns:
            List of dicts with layer metadata
        """
        info: List[Dict] = [{
            'name': 'Input',
            'neurons': self.input_size,
            'type': 'input',
        }]

        for i, layer in enumerate(self.layers[:-1]):
            info.append({
                'name': f'Hidden {i + 1}',
                'neurons': layer.neuron_count,
                'type': 'hidden',
                'activation': layer.activation.value,
            })

        info.append({
            'name': 'Output',
            'neurons': self.output_size,
            'type': 'output',
            'activation': self.layers[-1].activation.value,
        })
        return info

    def get_weights(self) -> List[np.ndarray]:
        """Weight matrices, shape (neuron_count, input_size) per layer."""
        return [layer.get_weights() for layer in self.layers]

    def count_parameters(self) -> int:
        """Total number of trainable parameters."""
        return sum(layer.neuron_count * (layer.input_size + 1) for layer in self.layers)

    def __repr__(self) -> str:
        shape = ' -> '.join([str(self.input_size)] + [str(layer.neuron_count) for layer in self.layers])
        return f"Network({shape}, lr={self.learning_rate}, clip={self.gradient_clip})"


def _validate_hyperparameters(learning_rate: float, gradient_clip: float, tau: float) -> None:
    if learning_rate <= 0:
        raise ConfigurationError(f"Learning rate must be positive, got {learning_rate}")
    if gradient_clip <= 0:
        raise ConfigurationError(f"Gradient clip must be positive, got {gradient_clip}")
    if not 0 <= tau <= 1:
        raise ConfigurationError(f"soft_update_tau must be in [0, 1], got {tau}")
