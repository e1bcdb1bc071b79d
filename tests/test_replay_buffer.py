"""
Tests for the Experience Replay buffer.

These tests verify:
    - Buffer initialization
    - FIFO eviction at capacity
    - Sampling without replacement
    - Stored experiences are immutable snapshots
"""

import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from tinydqn.ai.replay_buffer import Experience, ExperienceReplay
from tinydqn.exceptions import ConfigurationError


def make_experience(reward: float, done: bool = False) -> Experience:
    return Experience.create([reward, 0.0], 0, reward, [0.0, reward], done)


@pytest.fixture
def buffer():
    """Create a replay buffer instance."""
    return ExperienceReplay(capacity=100, rng=np.random.default_rng(0))


class TestReplayBufferInitialization:
    """Test buffer initialization."""

    def test_buffer_starts_empty(self, buffer):
        assert len(buffer) == 0
        assert buffer.size() == 0
        assert buffer.last() is None

    def test_capacity_set_correctly(self, buffer):
        assert buffer.capacity == 100

    @pytest.mark.parametrize("capacity", [0, -5])
    def test_rejects_non_positive_capacity(self, capacity):
        with pytest.raises(ConfigurationError):
            ExperienceReplay(capacity)


class TestReplayBufferStorage:
    """Test adding experiences."""

    def test_push_increases_size(self, buffer):
        buffer.push([1.0, 2.0], 1, 0.5, [2.0, 3.0], False)
        assert len(buffer) == 1
        assert buffer.last().action == 1

    def test_fifo_eviction(self):
        """Capacity 3, four adds: the first one is gone."""
        buffer = ExperienceReplay(capacity=3)
        for reward in (1.0, 2.0, 3.0, 4.0):
            buffer.add(make_experience(reward))
        assert len(buffer) == 3
        assert [e.reward for e in buffer.items()] == [2.0, 3.0, 4.0]
        assert buffer.last().reward == 4.0

    def test_clear(self, buffer):
        for reward in range(5):
            buffer.add(make_experience(float(reward)))
        buffer.clear()
        assert len(buffer) == 0
        assert buffer.sample(3) == []

    def test_iteration_is_oldest_first(self, buffer):
        for reward in (5.0, 6.0, 7.0):
            buffer.add(make_experience(reward))
        assert [e.reward for e in buffer] == [5.0, 6.0, 7.0]


class TestReplayBufferSampling:
    """Test sampling behavior."""

    def test_sample_size(self, buffer):
        for reward in range(20):
            buffer.add(make_experience(float(reward)))
        assert len(buffer.sample(8)) == 8

    def test_sample_has_no_duplicates(self, buffer):
        for reward in range(10):
            buffer.add(make_experience(float(reward)))
        batch = buffer.sample(10)
        assert len({id(e) for e in batch}) == 10

    def test_oversized_request_returns_everything(self, buffer):
        for reward in range(4):
            buffer.add(make_experience(float(reward)))
        batch = buffer.sample(10)
        assert sorted(e.reward for e in batch) == [0.0, 1.0, 2.0, 3.0]

    def test_sample_from_empty_buffer(self, buffer):
        assert buffer.sample(5) == []

    def test_can_sample(self, buffer):
        for reward in range(3):
            buffer.add(make_experience(float(reward)))
        assert buffer.can_sample(3)
        assert not buffer.can_sample(4)

    def test_seeded_sampling_is_reproducible(self):
        a = ExperienceReplay(50, rng=np.random.default_rng(9))
        b = ExperienceReplay(50, rng=np.random.default_rng(9))
        for reward in range(30):
            a.add(make_experience(float(reward)))
            b.add(make_experience(float(reward)))
        assert [e.reward for e in a.sample(10)] == [e.reward for e in b.sample(10)]


class TestExperience:
    """Test the Experience record."""

    def test_states_are_copied(self):
        state = np.array([1.0, 2.0])
        experience = Experience.create(state, 0, 1.0, state, True)
        state[0] = 50.0
        assert experience.state[0] == 1.0

    def test_states_are_read_only(self):
        experience = make_experience(1.0)
        with pytest.raises(ValueError):
            experience.state[0] = 3.0

    def test_fields_are_normalized(self):
        experience = Experience.create([1, 2], np.int64(1), 2, [3, 4], 0)
        assert isinstance(experience.action, int)
        assert isinstance(experience.reward, float)
        assert experience.done is False
        assert experience.state.dtype == np.float64
