"""
Configuration for tinydqn
=========================

All hyperparameters for the network and the DQN agent are centralized here.
The config is immutable: build a modified copy with ``replace``.

Usage:
    from tinydqn.config import Config
    cfg = Config(HIDDEN_LAYERS=(64, 32), BATCH_SIZE=32)
    print(cfg.LEARNING_RATE)
"""

from dataclasses import dataclass, replace
from typing import Optional, Tuple

from .exceptions import ConfigurationError


ACTIVATION_NAMES = ('sigmoid', 'relu', 'leaky_relu', 'tanh', 'linear', 'softmax')
TARGET_SYNC_MODES = ('hard', 'soft')
LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR')


@dataclass(frozen=True)
class Config:
    """
    Central configuration for networks, agents and training loops.

    Sections:
    1. Neural Network - Architecture and optimizer settings
    2. DQN - Replay, discounting and target network settings
    3. Exploration - Epsilon-greedy settings
    4. Training Control - Episode loop settings
    5. System - Logging and seeding
    """

    # =========================================================================
    # NEURAL NETWORK ARCHITECTURE
    # =========================================================================

    # Hidden layer sizes, input to output
    HIDDEN_LAYERS: Tuple[int, ...] = (128, 128)

    # Activation for hidden layers: 'relu', 'leaky_relu', 'tanh', 'sigmoid', 'linear'
    HIDDEN_ACTIVATION: str = 'relu'

    # Output activation. Q-values are unbounded, so 'linear' for DQN.
    OUTPUT_ACTIVATION: str = 'linear'

    # Gradient descent step size
    # Too high: unstable training, loss explodes
    # Too low: very slow learning
    LEARNING_RATE: float = 0.001

    # Every gradient component is clipped to [-GRADIENT_CLIP, GRADIENT_CLIP]
    GRADIENT_CLIP: float = 1.0

    # Default mixing factor for Network.soft_update when no tau is given
    NETWORK_TAU: float = 0.01

    # =========================================================================
    # DQN HYPERPARAMETERS
    # =========================================================================

    # Discount factor (gamma) - How much to value future rewards
    # 0.99 = far-sighted, considers distant future
    # 0.90 = more short-sighted, prefers immediate rewards
    GAMMA: float = 0.99

    # Number of experiences sampled per training step
    BATCH_SIZE: int = 64

    # Replay buffer capacity (oldest experiences are evicted first)
    MEMORY_SIZE: int = 10_000

    # Target network synchronisation: 'hard' copies every TARGET_UPDATE
    # training steps, 'soft' blends with TARGET_TAU after every step
    TARGET_SYNC: str = 'hard'

    # Training steps between hard target updates
    TARGET_UPDATE: int = 100

    # Soft target update coefficient
    # target = TAU * q + (1 - TAU) * target
    TARGET_TAU: float = 0.001

    # =========================================================================
    # EXPLORATION SETTINGS (Epsilon-Greedy)
    # =========================================================================

    # Starting exploration rate (1.0 = 100% random)
    EPSILON_START: float = 1.0

    # Minimum exploration rate
    EPSILON_END: float = 0.01

    # Decay rate per training step (epsilon *= EPSILON_DECAY)
    EPSILON_DECAY: float = 0.995

    # =========================================================================
    # TRAINING CONTROL
    # =========================================================================

    # Episodes run by Trainer.train when no count is given
    MAX_EPISODES: int = 100

    # Maximum steps per episode (prevents infinite episodes)
    MAX_STEPS_PER_EPISODE: int = 500

    # Log stats every N episodes
    LOG_EVERY: int = 10

    # Number of recent losses kept for averaging
    LOSS_HISTORY: int = 10_000

    # =========================================================================
    # SYSTEM SETTINGS
    # =========================================================================

    # Directory for log files (None = console only)
    LOG_DIR: Optional[str] = None

    # 'DEBUG', 'INFO', 'WARNING', 'ERROR'
    LOG_LEVEL: str = 'INFO'

    # Random seed for reproducibility (None for random)
    SEED: Optional[int] = None

    def __post_init__(self):
        """Validate every field; invalid values raise ConfigurationError."""
        if not self.HIDDEN_LAYERS:
            raise ConfigurationError("HIDDEN_LAYERS needs at least one hidden layer")
        for size in self.HIDDEN_LAYERS:
            if int(size) <= 0:
                raise ConfigurationError(f"Hidden layer sizes must be positive, got {size}")
        _check_choice('HIDDEN_ACTIVATION', self.HIDDEN_ACTIVATION, ACTIVATION_NAMES)
        _check_choice('OUTPUT_ACTIVATION', self.OUTPUT_ACTIVATION, ACTIVATION_NAMES)
        if self.HIDDEN_ACTIVATION.lower() == 'softmax':
            raise ConfigurationError("softmax is only supported on the output layer")

        if self.LEARNING_RATE <= 0:
            raise ConfigurationError("Learning rate must be positive")
        if self.GRADIENT_CLIP <= 0:
            raise ConfigurationError("Gradient clip must be positive")
        _check_unit_interval('NETWORK_TAU', self.NETWORK_TAU)

        if not 0 < self.GAMMA <= 1:
            raise ConfigurationError("Gamma must be in (0, 1]")
        if self.BATCH_SIZE <= 0:
            raise ConfigurationError("Batch size must be positive")
        if self.MEMORY_SIZE <= 0:
            raise ConfigurationError("Memory size must be positive")
        if self.BATCH_SIZE > self.MEMORY_SIZE:
            raise ConfigurationError("Batch size cannot exceed memory size")
        _check_choice('TARGET_SYNC', self.TARGET_SYNC, TARGET_SYNC_MODES)
        if self.TARGET_UPDATE <= 0:
            raise ConfigurationError("Target update frequency must be positive")
        _check_unit_interval('TARGET_TAU', self.TARGET_TAU)

        if not 0 <= self.EPSILON_END <= self.EPSILON_START <= 1:
            raise ConfigurationError("Epsilon must satisfy 0 <= end <= start <= 1")
        if not 0 < self.EPSILON_DECAY <= 1:
            raise ConfigurationError("Epsilon decay must be in (0, 1]")

        if self.MAX_EPISODES < 0 or self.MAX_STEPS_PER_EPISODE <= 0:
            raise ConfigurationError("Episode limits must be positive")
        if self.LOG_EVERY <= 0 or self.LOSS_HISTORY <= 0:
            raise ConfigurationError("LOG_EVERY and LOSS_HISTORY must be positive")
        _check_choice('LOG_LEVEL', self.LOG_LEVEL, LOG_LEVELS)

    @property
    def use_soft_update(self) -> bool:
        return self.TARGET_SYNC.lower() == 'soft'

    def replace(self, **changes) -> 'Config':
        """Return a validated copy with the given fields changed."""
        return replace(self, **changes)


def _check_choice(name: str, value: str, choices: Tuple[str, ...]) -> None:
    if not isinstance(value, str) or value.lower() not in [c.lower() for c in choices]:
        raise ConfigurationError(f"{name} must be one of {choices}, got {value!r}")


def _check_unit_interval(name: str, value: float) -> None:
    if not 0 <= value <= 1:
        raise ConfigurationError(f"{name} must be in [0, 1], got {value}")
