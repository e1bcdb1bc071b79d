"""
Integration tests for tinydqn.

These tests verify end-to-end functionality:
    - Agent learns from environment interactions
    - A trained policy survives a save/load cycle
"""

import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from tinydqn.ai.agent import DQNAgent
from tinydqn.ai.checkpoint import load_network, save_network
from tinydqn.ai.trainer import Trainer
from tinydqn.config import Config


@pytest.fixture
def config():
    """Configuration small enough to train in seconds."""
    return Config(
        HIDDEN_LAYERS=(16,),
        LEARNING_RATE=0.01,
        GAMMA=0.9,
        BATCH_SIZE=8,
        MEMORY_SIZE=1000,
        TARGET_UPDATE=25,
        MAX_STEPS_PER_EPISODE=30,
        LOG_EVERY=50,
        SEED=0
    )


@pytest.mark.slow
def test_agent_learns_line_world(line_world, config):
    agent = DQNAgent(line_world.state_size, line_world.action_size, config)
    trainer = Trainer(line_world, agent, config)

    trainer.train(num_episodes=300)
    results = trainer.evaluate(num_episodes=3)

    assert results['mean_reward'] > 0


def test_policy_survives_save_load(line_world, config, tmp_path):
    agent = DQNAgent(line_world.state_size, line_world.action_size, config)
    trainer = Trainer(line_world, agent, config)
    trainer.train(num_episodes=5)

    path = save_network(agent.get_policy(), tmp_path / 'policy.npz')
    fresh = DQNAgent(line_world.state_size, line_world.action_size, config.replace(SEED=1))
    fresh.load_policy(load_network(path))

    state = line_world.reset()
    assert np.array_equal(fresh.get_q_values(state), agent.get_q_values(state))
    assert fresh.get_best_action(state) == agent.get_best_action(state)
