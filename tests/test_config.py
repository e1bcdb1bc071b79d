"""
Tests for the configuration.

These tests verify:
    - Default values
    - Validation of every section
    - Immutable updates through replace()
"""

import dataclasses
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from tinydqn.config import Config
from tinydqn.exceptions import ConfigurationError


class TestDefaults:
    """Test default values."""

    def test_network_defaults(self):
        config = Config()
        assert config.HIDDEN_LAYERS == (128, 128)
        assert config.LEARNING_RATE == 0.001

    def test_dqn_defaults(self):
        config = Config()
        assert config.GAMMA == 0.99
        assert config.BATCH_SIZE == 64
        assert config.MEMORY_SIZE == 10_000
        assert config.TARGET_UPDATE == 100
        assert config.TARGET_TAU == 0.001
        assert not config.use_soft_update

    def test_exploration_defaults(self):
        config = Config()
        assert (config.EPSILON_START, config.EPSILON_END, config.EPSILON_DECAY) == (1.0, 0.01, 0.995)


class TestValidation:
    """Test that invalid values are rejected."""

    @pytest.mark.parametrize("changes", [
        {'HIDDEN_LAYERS': ()},
        {'HIDDEN_LAYERS': (16, 0)},
        {'HIDDEN_ACTIVATION': 'swish'},
        {'HIDDEN_ACTIVATION': 'softmax'},
        {'LEARNING_RATE': 0.0},
        {'GRADIENT_CLIP': -1.0},
        {'NETWORK_TAU': 1.1},
        {'GAMMA': 0.0},
        {'GAMMA': 1.5},
        {'BATCH_SIZE': 0},
        {'BATCH_SIZE': 200, 'MEMORY_SIZE': 100},
        {'TARGET_SYNC': 'sometimes'},
        {'TARGET_UPDATE': 0},
        {'TARGET_TAU': -0.1},
        {'EPSILON_END': 0.5, 'EPSILON_START': 0.2},
        {'EPSILON_DECAY': 0.0},
        {'MAX_STEPS_PER_EPISODE': 0},
        {'LOG_LEVEL': 'LOUD'},
    ])
    def test_rejects_invalid_values(self, changes):
        with pytest.raises(ConfigurationError):
            Config(**changes)

    def test_configuration_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            Config(GAMMA=2.0)

    def test_names_are_case_insensitive(self):
        config = Config(TARGET_SYNC='SOFT', LOG_LEVEL='debug', OUTPUT_ACTIVATION='Softmax')
        assert config.use_soft_update


class TestReplace:
    """Test immutable updates."""

    def test_fields_are_frozen(self):
        config = Config()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.BATCH_SIZE = 8

    def test_replace_returns_new_config(self):
        config = Config()
        updated = config.replace(BATCH_SIZE=8, SEED=3)
        assert updated.BATCH_SIZE == 8
        assert updated.SEED == 3
        assert config.BATCH_SIZE == 64

    def test_replace_validates(self):
        with pytest.raises(ConfigurationError):
            Config().replace(GAMMA=-1.0)
