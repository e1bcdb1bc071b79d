"""
Experience Replay Buffer
========================

A memory buffer that stores experiences for training the DQN.

Why Experience Replay?
    1. Breaks correlation between consecutive experiences
       (Neural networks learn poorly from correlated data)

    2. Improves sample efficiency
       (Each experience can be used for multiple training steps)

How it works:
    1. Agent stores (state, action, reward, next_state, done) records
    2. During training, a batch of distinct records is drawn uniformly
    3. Oldest experiences are discarded when the buffer is full (FIFO)

References:
    Mnih et al., 2015 - "Human-level control through deep reinforcement learning"
"""

from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional

import numpy as np

from ..exceptions import ConfigurationError


@dataclass(frozen=True, eq=False)
class Experience:
    """One transition. States are stored as read-only float arrays."""
    state: np.ndarray
    action: int
    reward: float
    next_state: np.ndarray
    done: bool

    @classmethod
    def create(cls, state, action: int, reward: float, next_state, done: bool) -> 'Experience':
        """Build an Experience, copying the state vectors."""
        return cls(
            state=_frozen_vector(state),
            action=int(action),
            reward=float(reward),
            next_state=_frozen_vector(next_state),
            done=bool(done),
        )


class ExperienceReplay:
    """
    Fixed-capacity FIFO store of Experiences with uniform sampling.

    Example:
        >>> buffer = ExperienceReplay(capacity=10000, rng=np.random.default_rng(0))
        >>> buffer.push(state, action, reward, next_state, done)
        >>> batch = buffer.sample(64)
    """

    def __init__(self, capacity: int, rng: Optional[np.random.Generator] = None):
        """
        Initialize the replay buffer.

        Args:
            capacity: Maximum number of experiences to store
            rng: Random generator used for sampling
        """
        if capacity <= 0:
            raise ConfigurationError(f"Replay capacity must be positive, got {capacity}")

        self.capacity = capacity
        self._rng = rng if rng is not None else np.random.default_rng()
        self._items: Deque[Experience] = deque(maxlen=capacity)

    def add(self, experience: Experience) -> None:
        """
        Append an experience. When full, the oldest one is evicted first.
        """
        # deque(maxlen) drops from the left on overflow
        self._items.append(experience)

    def push(self, state, action: int, reward: float, next_state, done: bool) -> None:
        """Build an Experience from its fields and add it."""
        self.add(Experience.create(state, action, reward, next_state, done))

    def sample(self, batch_size: int) -> List[Experience]:
        """
        Draw distinct experiences uniformly at random.

        Asking for more than the buffer holds returns everything it holds,
        in random order. Never raises for an under-filled buffer.

        Args:
            batch_size: Number of experiences wanted

        Returns:
            List of at most batch_size experiences
        """
        n = max(0, min(batch_size, len(self._items)))
        if n == 0:
            return []
        indices = self._rng.choice(len(self._items), size=n, replace=False)
        return [self._items[i] for i in indices]

    def can_sample(self, batch_size: int) -> bool:
        """Check if buffer has enough experiences for a full batch."""
        return len(self._items) >= batch_size

    def clear(self) -> None:
        """Clear all experiences from the buffer."""
        self._items.clear()

    def size(self) -> int:
        return len(self._items)

    def last(self) -> Optional[Experience]:
        """Most recently added experience, or None when empty."""
        return self._items[-1] if self._items else None

    def items(self) -> List[Experience]:
        """Snapshot of stored experiences, oldest first."""
        return list(self._items)

    def __len__(self) -> int:
        """Return current buffer size."""
        return len(self._items)

    def __iter__(self):
        return iter(list(self._items))


def _frozen_vector(values) -> np.ndarray:
    array = np.array(values, dtype=np.float64).reshape(-1)
    array.setflags(write=False)
    return array
