"""
AI Module
=========

Neural network and reinforcement learning components.

Classes:
    Neuron           - Single unit with weights, bias and cached activations
    Layer            - Fully connected group of neurons
    Network          - Feed-forward network trained with backpropagation
    ExperienceReplay - Fixed-capacity FIFO experience memory
    DQNAgent         - DQN agent with epsilon-greedy exploration
    Trainer          - Training loop orchestration
"""

from .activations import Activation
from .neuron import Neuron
from .layer import Layer
from .network import Network
from .replay_buffer import Experience, ExperienceReplay
from .agent import DQNAgent
from .trainer import EpisodeStats, Trainer, TrainingMetrics
from .checkpoint import ModelMetadata, copy_checkpoint, get_metadata, load_network, save_network

__all__ = [
    'Activation',
    'Neuron',
    'Layer',
    'Network',
    'Experience',
    'ExperienceReplay',
    'DQNAgent',
    'EpisodeStats',
    'Trainer',
    'TrainingMetrics',
    'ModelMetadata',
    'copy_checkpoint',
    'get_metadata',
    'load_network',
    'save_network',
]
