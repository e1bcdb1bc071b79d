"""
tinydqn
=======

A from-scratch feed-forward neural network and a Deep Q-Network agent
built on it.

Modules:
    ai/     - Neurons, layers, networks, replay memory, agent and trainer
    utils/  - Logging setup
    config  - Hyperparameters
"""

from .config import Config
from .exceptions import CheckpointError, ConfigurationError, DimensionError, TinyDQNError

__version__ = "0.1.0"

__all__ = [
    'Config',
    'TinyDQNError',
    'DimensionError',
    'ConfigurationError',
    'CheckpointError',
]
