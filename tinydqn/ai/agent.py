"""
DQN Agent
=========

An agent that learns action values with Deep Q-Learning on top of the
hand-written Network.

Key Components:
    1. Q Network       - Used for action selection, trained every step
    2. Target Network  - Used for stable TD targets
    3. Replay Buffer   - Stores experiences for training
    4. Epsilon-Greedy  - Balances exploration vs exploitation

Training Algorithm (DQN):
    1. Observe state s
    2. Choose action a (epsilon-greedy)
    3. Execute action, observe reward r and next state s'
    4. Store (s, a, r, s', done) in replay buffer
    5. Sample mini-batch from replay buffer
    6. Calculate target: y = r                              if done
                         y = r + γ * max_a' Q_target(s', a')  otherwise
    7. Train Q(s, ·) towards its own prediction with entry a replaced by y
    8. Sync target network (hard every N steps, or soft every step)
    9. Decay epsilon towards its floor

References:
    Mnih et al., 2015 - "Human-level control through deep reinforcement learning"
"""

from collections import deque
from typing import Any, Deque, Dict, Optional

import numpy as np

from .checkpoint import load_agent, save_agent
from .network import Network
from .replay_buffer import Experience, ExperienceReplay
from ..config import Config
from ..exceptions import ConfigurationError, DimensionError


class DQNAgent:
    """
    DQN Agent for reinforcement learning with discrete actions.

    The agent maintains two networks with identical topology:
        - q_network: Updated every training step
        - target_network: Follows q_network through hard or soft syncs

    Action Selection:
        - With probability epsilon: random action (exploration)
        - With probability (1-epsilon): best Q-value action (exploitation)

    Attributes:
        q_network: Network used for action selection
        target_network: Network used for computing TD targets
        replay: Experience replay buffer
        epsilon: Current exploration rate
        step_count: Number of completed training steps

    Example:
        >>> agent = DQNAgent(state_size=4, action_size=2, config=Config(BATCH_SIZE=32))
        >>> action = agent.select_action(state)
        >>> agent.remember(state, action, reward, next_state, done)
        >>> loss = agent.train()
    """

    def __init__(
        self,
        state_size: int,
        action_size: int,
        config: Optional[Config] = None,
        rng: Optional[np.random.Generator] = None
    ):
        """
        Initialize the DQN agent.

        Args:
            state_size: Dimension of state vector
            action_size: Number of possible actions
            config: Configuration object
            rng: Random generator shared by weight init, exploration and
                 replay sampling (default: seeded from config.SEED)
        """
        if state_size <= 0:
            raise ConfigurationError(f"State size must be positive, got {state_size}")
        if action_size <= 0:
            raise ConfigurationError(f"Action size must be positive, got {action_size}")

        self.config = config or Config()
        self.state_size = state_size
        self.action_size = action_size
        self.rng = rng if rng is not None else np.random.default_rng(self.config.SEED)

        # Networks - the target starts as an exact copy
        self.q_network = Network.from_config(self.config, state_size, action_size, self.rng)
        self.target_network = self.q_network.copy()

        self.replay = ExperienceReplay(self.config.MEMORY_SIZE, self.rng)

        # Exploration
        self.epsilon = self.config.EPSILON_START
        self.epsilon_min = self.config.EPSILON_END
        self.epsilon_decay = self.config.EPSILON_DECAY

        self.gamma = self.config.GAMMA
        self.batch_size = self.config.BATCH_SIZE
        self.use_soft_update = self.config.use_soft_update
        self.target_update_frequency = self.config.TARGET_UPDATE
        self.tau = self.config.TARGET_TAU

        # Training step counter (counts completed batches)
        self.step_count = 0

        # Training metrics (bounded to prevent memory growth during long training)
        self.losses: Deque[float] = deque(maxlen=self.config.LOSS_HISTORY)

        # Whether the last select_action call explored
        self.last_action_explored = False

    # -------------------------------------------------------------------------
    # Acting
    # -------------------------------------------------------------------------

    def select_action(self, state, training: bool = True) -> int:
        """
        Select an action using the epsilon-greedy policy.

        Args:
            state: Current state
            training: If True, explore with probability epsilon; if False, greedy

        Returns:
            Selected action index
        """
        if np.asarray(state).shape != (self.state_size,):
            raise DimensionError(
                f"State size mismatch: expected {self.state_size}, got {np.asarray(state).size}"
            )

        if training and self.epsilon > 0 and self.rng.random() < self.epsilon:
            self.last_action_explored = True
            return int(self.rng.integers(self.action_size))

        self.last_action_explored = False
        return self.get_best_action(state)

    def get_best_action(self, state) -> int:
        """Greedy action; ties go to the lowest index."""
        return int(np.argmax(self.q_network.predict(state)))

    def get_q_values(self, state) -> np.ndarray:
        """
        Get Q-values for all actions.

        Args:
            state: Current state

        Returns:
            Array of Q-values for each action
        """
        return self.q_network.predict(state)

    # -------------------------------------------------------------------------
    # Learning
    # -------------------------------------------------------------------------

    def remember(self, state, action: int, reward: float, next_state, done: bool) -> None:
        """
        Store experience in replay buffer.

        Args:
            state: Current state
            action: Action taken
            reward: Reward received
            next_state: Next state
            done: Whether episode ended
        """
        experience = Experience.create(state, action, reward, next_state, done)
        if experience.state.size != self.state_size or experience.next_state.size != self.state_size:
            raise DimensionError(
                f"State size mismatch: expected {self.state_size}, got "
                f"{experience.state.size} and {experience.next_state.size}"
            )
        if not 0 <= experience.action < self.action_size:
            raise ValueError(f"Action {experience.action} outside [0, {self.action_size})")
        self.replay.add(experience)

    def compute_td_target(self, experience: Experience) -> float:
        """
        Temporal-difference target for one transition.

            done:      y = r
            otherwise: y = r + gamma * max_a' Q_target(s', a')
        """
        if experience.done:
            return float(experience.reward)
        next_q = self.target_network.predict(experience.next_state)
        return float(experience.reward + self.gamma * float(np.max(next_q)))

    def train(self) -> float:
        """
        Perform one DQN training step on a sampled batch.

        Returns:
            Average loss over the batch, or 0.0 if the buffer cannot yet
            supply a full batch (nothing is changed in that case)
        """
        if not self.replay.can_sample(self.batch_size):
            return 0.0

        batch = self.replay.sample(self.batch_size)
        total_loss = 0.0

        for experience in batch:
            # Only the taken action's output gets a training signal
            targets = self.q_network.predict(experience.state)
            targets[experience.action] = self.compute_td_target(experience)
            total_loss += self.q_network.train(experience.state, targets)

        self.step_count += 1
        self._sync_target_network()
        self.decay_epsilon()

        loss = total_loss / len(batch)
        self.losses.append(loss)
        return loss

    def train_steps(self, steps: int) -> float:
        """
        Run up to `steps` training steps.

        Steps where the buffer cannot supply a batch are skipped and not
        counted.

        Returns:
            Mean loss over the steps that trained (0.0 if none did)
        """
        total_loss = 0.0
        trained = 0

        for _ in range(steps):
            if self.replay.can_sample(self.batch_size):
                total_loss += self.train()
                trained += 1

        return total_loss / trained if trained > 0 else 0.0

    def _sync_target_network(self) -> None:
        if self.use_soft_update:
            self.target_network.soft_update(self.q_network, self.tau)
        elif self.step_count % self.target_update_frequency == 0:
            self.update_target_network()

    def update_target_network(self) -> None:
        """Hard update: copy Q network weights to the target network."""
        self.target_network.copy_weights_from(self.q_network)

    def decay_epsilon(self) -> None:
        """Multiplicative decay, never below epsilon_min."""
        self.epsilon = max(self.epsilon_min, self.epsilon * self.epsilon_decay)

    def set_epsilon(self, epsilon: float) -> None:
        """Set the exploration rate, clamped to [epsilon_min, EPSILON_START]."""
        self.epsilon = min(self.config.EPSILON_START, max(self.epsilon_min, epsilon))

    # -------------------------------------------------------------------------
    # Policies and persistence
    # -------------------------------------------------------------------------

    def get_policy(self) -> Network:
        """Independent copy of the Q network, usable for inference."""
        return self.q_network.copy()

    def load_policy(self, policy: Network) -> None:
        """Overwrite both the Q and target networks with a policy's weights."""
        self.q_network.copy_weights_from(policy)
        self.target_network.copy_weights_from(policy)

    def get_state(self) -> Dict[str, Any]:
        """JSON-compatible snapshot of both networks and the exploration state."""
        return {
            'state_size': self.state_size,
            'action_size': self.action_size,
            'epsilon': self.epsilon,
            'step_count': self.step_count,
            'q_network': self.q_network.get_state(),
            'target_network': self.target_network.get_state(),
        }

    def load_state(self, state: Dict[str, Any]) -> None:
        """Restore a get_state() snapshot; sizes must match this agent."""
        if int(state['state_size']) != self.state_size or int(state['action_size']) != self.action_size:
            raise DimensionError(
                f"Saved agent is {state['state_size']}->{state['action_size']}, "
                f"this agent is {self.state_size}->{self.action_size}"
            )
        q_network = Network.from_state(state['q_network'])
        target_network = Network.from_state(state['target_network'])
        epsilon = float(state['epsilon'])
        step_count = int(state['step_count'])

        # Everything is read and checked before the agent changes
        self.q_network.check_same_topology(q_network)
        self.target_network.check_same_topology(target_network)

        self.q_network.copy_weights_from(q_network)
        self.target_network.copy_weights_from(target_network)
        self.set_epsilon(epsilon)
        self.step_count = step_count

    def save(self, filepath: str) -> None:
        """Save networks, epsilon and step count to a JSON file."""
        save_agent(self, filepath)

    def load(self, filepath: str) -> None:
        """Load a file written by save()."""
        load_agent(self, filepath)

    # -------------------------------------------------------------------------
    # Metrics
    # -------------------------------------------------------------------------

    @property
    def buffer_size(self) -> int:
        return len(self.replay)

    def get_average_loss(self, n: int = 100) -> float:
        """Get average of last n losses."""
        if not self.losses or n <= 0:
            return 0.0
        recent = list(self.losses)[-n:]
        return sum(recent) / len(recent)
