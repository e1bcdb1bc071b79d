"""
Pytest configuration for the test suite.

This file is automatically loaded by pytest and applies configuration
to all tests in the tests/ directory.
"""

import numpy as np
import pytest


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


class LineWorld:
    """
    Tiny corridor environment used by agent and trainer tests.

    Positions 0..size-1, start in the middle. Action 0 moves left, 1 moves
    right. Reaching the right end pays +1, the left end -1, every other
    step -0.01.
    """

    state_size = 5
    action_size = 2

    def __init__(self, size: int = 5):
        self.size = size
        self.state_size = size
        self.position = size // 2

    def _state(self) -> np.ndarray:
        state = np.zeros(self.size)
        state[self.position] = 1.0
        return state

    def reset(self) -> np.ndarray:
        self.position = self.size // 2
        return self._state()

    def step(self, action: int):
        self.position += 1 if action == 1 else -1
        if self.position >= self.size - 1:
            return self._state(), 1.0, True, {'result': 'goal'}
        if self.position <= 0:
            return self._state(), -1.0, True, {'result': 'pit'}
        return self._state(), -0.01, False, {}


@pytest.fixture
def line_world():
    """Fresh LineWorld environment."""
    return LineWorld()
