"""
Training Loop
=============

Orchestrates the training process:
    1. Run episodes of an environment
    2. Collect experiences
    3. Train the agent
    4. Track metrics
    5. Save checkpoints

Any environment works as long as it exposes:
    reset() -> state
    step(action) -> (next_state, reward, done, info)
"""

import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, Optional

import numpy as np

from .agent import DQNAgent
from ..config import Config
from ..utils.logger import LogLevel, ensure_logging, get_logger, log_training_metrics


_logger = get_logger(__name__)


@dataclass
class EpisodeStats:
    """Statistics for a single episode."""
    episode: int
    steps: int
    total_reward: float
    epsilon: float
    avg_loss: float
    duration: float


class TrainingMetrics:
    """
    Tracks training metrics over time.

    Metrics tracked:
        - Total rewards
        - Steps per episode
        - Loss values
        - Epsilon values
        - Episode durations
    """

    METRICS = ('rewards', 'steps', 'losses', 'epsilons', 'durations')

    def __init__(self, history_length: int = 1000):
        """
        Initialize metrics tracker.

        Args:
            history_length: Maximum history to store
        """
        self.history_length = history_length

        self.rewards: Deque[float] = deque(maxlen=history_length)
        self.steps: Deque[int] = deque(maxlen=history_length)
        self.losses: Deque[float] = deque(maxlen=history_length)
        self.epsilons: Deque[float] = deque(maxlen=history_length)
        self.durations: Deque[float] = deque(maxlen=history_length)

        # Best reward survives history trimming
        self.best_reward: Optional[float] = None
        self.episodes_recorded = 0

    def add(self, stats: EpisodeStats) -> None:
        """Add episode statistics."""
        self.rewards.append(stats.total_reward)
        self.steps.append(stats.steps)
        self.losses.append(stats.avg_loss)
        self.epsilons.append(stats.epsilon)
        self.durations.append(stats.duration)

        if self.best_reward is None or stats.total_reward > self.best_reward:
            self.best_reward = stats.total_reward
        self.episodes_recorded += 1

    def get_recent_average(self, metric: str, n: int = 100) -> float:
        """Get average of last n values for a metric."""
        if metric not in self.METRICS:
            raise ValueError(f"Unknown metric: {metric!r}")
        values = list(getattr(self, metric))[-n:]
        if not values:
            return 0.0
        return float(np.mean(values))

    def get_best_reward(self) -> float:
        """Get the highest episode reward seen."""
        return self.best_reward if self.best_reward is not None else 0.0


class Trainer:
    """
    Manages the training loop for the DQN agent.

    Example:
        >>> env = LineWorld()
        >>> agent = DQNAgent(env.state_size, env.action_size, config)
        >>> trainer = Trainer(env, agent, config)
        >>> metrics = trainer.train(num_episodes=200)
    """

    def __init__(self, env, agent: DQNAgent, config: Optional[Config] = None):
        """
        Initialize the trainer.

        Args:
            env: Environment with reset() and step(action)
            agent: DQN agent instance
            config: Configuration object (default: the agent's)
        """
        self.env = env
        self.agent = agent
        self.config = config or agent.config

        ensure_logging(self.config.LOG_DIR, LogLevel[self.config.LOG_LEVEL.upper()])

        self.metrics = TrainingMetrics(self.config.LOSS_HISTORY)
        self.current_episode = 0
        self.total_steps = 0

    def run_episode(self) -> EpisodeStats:
        """
        Run a single training episode.

        The agent trains after every environment step; epsilon decays with
        each completed training batch.

        Returns:
            Episode statistics
        """
        start_time = time.time()

        state = self.env.reset()
        total_reward = 0.0
        steps = 0

        while steps < self.config.MAX_STEPS_PER_EPISODE:
            action = self.agent.select_action(state, training=True)
            next_state, reward, done, _ = self.env.step(action)

            self.agent.remember(state, action, reward, next_state, done)
            self.agent.train()

            state = next_state
            total_reward += reward
            steps += 1
            self.total_steps += 1

            if done:
                break

        return EpisodeStats(
            episode=self.current_episode,
            steps=steps,
            total_reward=total_reward,
            epsilon=self.agent.epsilon,
            avg_loss=self.agent.get_average_loss(100),
            duration=time.time() - start_time
        )

    def train(
        self,
        num_episodes: Optional[int] = None,
        progress_callback: Optional[Callable[[int, int, EpisodeStats], None]] = None,
        save_path: Optional[str] = None
    ) -> TrainingMetrics:
        """
        Run the training loop.

        Args:
            num_episodes: Number of episodes (default from config)
            progress_callback: Called as (episode, num_episodes, stats)
            save_path: If given, the agent is saved here whenever an episode
                       beats the best reward so far

        Returns:
            Training metrics
        """
        num_episodes = self.config.MAX_EPISODES if num_episodes is None else num_episodes

        _logger.info(
            f"Starting training: {num_episodes} episodes, "
            f"state_size={self.agent.state_size}, action_size={self.agent.action_size}"
        )

        for episode in range(num_episodes):
            self.current_episode = episode
            previous_best = self.metrics.best_reward

            stats = self.run_episode()
            self.metrics.add(stats)

            if episode % self.config.LOG_EVERY == 0:
                log_training_metrics(
                    episode,
                    stats.total_reward,
                    stats.epsilon,
                    loss=stats.avg_loss,
                    steps=stats.steps,
                    buffer_size=self.agent.buffer_size
                )

            if save_path and (previous_best is None or stats.total_reward > previous_best):
                self.agent.save(save_path)

            if progress_callback:
                progress_callback(episode, num_episodes, stats)

        _logger.info(
            f"Training complete: best reward {self.metrics.get_best_reward():.2f}, "
            f"final epsilon {self.agent.epsilon:.4f}, total steps {self.total_steps}"
        )
        return self.metrics

    def evaluate(self, num_episodes: int = 10) -> Dict[str, float]:
        """
        Evaluate the agent greedily, without exploration or training.

        Args:
            num_episodes: Number of evaluation episodes

        Returns:
            Evaluation statistics
        """
        if num_episodes <= 0:
            raise ValueError(f"num_episodes must be positive, got {num_episodes}")

        rewards = []
        original_epsilon = self.agent.epsilon
        self.agent.epsilon = 0.0

        try:
            for _ in range(num_episodes):
                state = self.env.reset()
                total_reward = 0.0

                for _ in range(self.config.MAX_STEPS_PER_EPISODE):
                    action = self.agent.select_action(state, training=False)
                    state, reward, done, _ = self.env.step(action)
                    total_reward += reward
                    if done:
                        break

                rewards.append(total_reward)
        finally:
            self.agent.epsilon = original_epsilon

        return {
            'mean_reward': float(np.mean(rewards)),
            'max_reward': float(max(rewards)),
            'min_reward': float(min(rewards)),
        }
