"""Learning engine: drives single steps and manages episode boundaries."""

from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..domain.environment import GridEnvironment, Layout
from ..domain.path_tracker import PathTracker
from ..domain.qlearning import EpsilonGreedyPolicy, QLearner, QTable
from ..domain.types import (
    Action, EngineSnapshot, EpisodePhase, EpisodeResult, PathStep, Position,
    RLConfig, SavedPath, Statistics, TrainingResult, START_POSITION
)
from ..utils.rng import SeededRNG, default_rng
from .fsm import EpisodeStateMachine


class LearningEngine:
    """
    Single-agent Q-Learning engine on the fixed grid.

    The engine owns no timers. A driver (the Qt controller, the headless
    trainer or a test) calls ``step()`` and, once an episode has ended,
    ``advance_time()`` or ``finish_settling()`` to bring the agent back to
    the start. ``step()`` is refused while an episode is settling.

    Every command returns an ``EngineSnapshot``.
    """

    def __init__(self, config: Optional[RLConfig] = None, rng: Optional[SeededRNG] = None,
                 auto_initialize: bool = True):
        self.config = config or RLConfig()
        self.rng = rng or default_rng()

        self._state_machine = EpisodeStateMachine()
        self._state_machine.on_state_enter(EpisodePhase.SETTLING, self._on_settling_entered)
        self._state_machine.on_state_enter(EpisodePhase.ACTIVE, self._on_active_entered)

        self._environment: Optional[GridEnvironment] = None
        self._policy: Optional[EpsilonGreedyPolicy] = None
        self._learner: Optional[QLearner] = None
        self._path_tracker: Optional[PathTracker] = None
        self._saved_paths: Tuple[SavedPath, ...] = ()

        self._running = False
        self._show_optimal_path = False
        self._clear_episode_state()

        if auto_initialize:
            self.initialize()

    def _clear_episode_state(self):
        self._agent_pos: Position = START_POSITION
        self._epsilon = self.config.epsilon
        self._step_count = 0
        self._episode_count = 0
        self._cumulative_reward = 0.0
        self._best_episode_reward = float("-inf")
        self._optimal_path: Tuple[Position, ...] = ()
        self._episode_history: List[EpisodeResult] = []
        self._settle_remaining_ms = 0
        self._state_machine.force_active()

    # Lifecycle

    def initialize(self) -> EngineSnapshot:
        """Build the grid and fresh learning components."""
        if self._path_tracker is not None:
            self._saved_paths = self._path_tracker.history

        self._environment = GridEnvironment(self.config)
        self._policy = EpsilonGreedyPolicy(self._environment)
        self._learner = QLearner(self._environment, self.config)
        self._path_tracker = PathTracker(self._environment, self.config)
        self._path_tracker.import_history(self._saved_paths)

        self._clear_episode_state()
        self._agent_pos = self._environment.start
        return self.snapshot()

    def reset(self) -> EngineSnapshot:
        """
        Return to the initial state.

        Discards the Q-table, counters, epsilon, trajectory and optimal path,
        stops running and rebuilds the grid. Saved paths are kept.
        """
        self._running = False
        self._show_optimal_path = False
        return self.initialize()

    # Commands

    def step(self) -> EngineSnapshot:
        """Advance the simulation by one move."""
        if self._environment is None or self._state_machine.is_settling():
            return self.snapshot()

        env = self._environment
        position = self._agent_pos
        action = self._policy.choose_action(position, self._learner.q_table, self._epsilon, self.rng)
        next_position = env.transition(position, action)
        reward = env.reward(next_position)

        self._path_tracker.record_step(PathStep(position=position, action=action, reward=reward))
        self._learner.update(position, action, reward, next_position)

        self._agent_pos = next_position
        self._step_count += 1
        self._cumulative_reward += reward

        if env.is_terminal(next_position):
            self._finish_episode(next_position)

        return self.snapshot()

    def _finish_episode(self, final_position: Position):
        """Close the episode that just reached a terminal cell."""
        episode_reward = self._path_tracker.trajectory_reward()
        if episode_reward > self._best_episode_reward:
            self._best_episode_reward = episode_reward

        self._episode_count += 1
        epsilon_used = self._epsilon
        self._epsilon = self._learner.decay_epsilon(self._epsilon)

        self._episode_history.append(EpisodeResult(
            number=self._episode_count,
            steps=len(self._path_tracker.trajectory),
            total_reward=episode_reward,
            reached_gem=(final_position == self._environment.gem),
            epsilon_used=epsilon_used
        ))

        self._optimal_path = self._path_tracker.extract_optimal_path(self._learner.q_table)
        self._state_machine.begin_settling()

    def advance_time(self, elapsed_ms: int) -> EngineSnapshot:
        """Let time pass; completes a pending return to start when the delay is over."""
        if self._state_machine.is_settling():
            self._settle_remaining_ms -= elapsed_ms
            if self._settle_remaining_ms <= 0:
                self._state_machine.begin_episode()
        return self.snapshot()

    def finish_settling(self) -> EngineSnapshot:
        """Complete a pending return to start immediately."""
        if self._state_machine.is_settling():
            self._state_machine.begin_episode()
        return self.snapshot()

    def toggle_run(self) -> EngineSnapshot:
        """Flip the running flag. The driver decides how often to step."""
        self._running = not self._running
        return self.snapshot()

    def show_optimal_path(self) -> EngineSnapshot:
        """Recompute and display the greedy path; no-op with an empty Q-table."""
        if self._learner is None or self._learner.q_table.is_empty():
            return self.snapshot()
        self._optimal_path = self._path_tracker.extract_optimal_path(self._learner.q_table)
        self._show_optimal_path = True
        return self.snapshot()

    def hide_optimal_path(self) -> EngineSnapshot:
        self._show_optimal_path = False
        return self.snapshot()

    def save_current_path(self) -> EngineSnapshot:
        """Snapshot the in-progress trajectory into the saved-path history."""
        if self._path_tracker is not None:
            self._path_tracker.save_current_path()
        return self.snapshot()

    # State callbacks

    def _on_settling_entered(self, context):
        self._settle_remaining_ms = self.config.settle_delay_ms

    def _on_active_entered(self, context):
        self._settle_remaining_ms = 0
        self._agent_pos = self._environment.start
        self._path_tracker.clear_trajectory()

    # Headless training

    def run_episodes(self, count: int, max_steps_per_episode: int = 1000,
                     episode_callback: Optional[Callable[[EpisodeResult], None]] = None) -> TrainingResult:
        """
        Run ``count`` episodes back to back without any settling delay.

        An episode that has not ended after ``max_steps_per_episode`` steps
        is abandoned: the agent goes back to the start, and neither the
        episode count nor epsilon change.
        """
        if self._environment is None:
            self.initialize()

        episodes: List[EpisodeResult] = []
        for _ in range(count):
            self.finish_settling()
            result = None
            for _ in range(max_steps_per_episode):
                self.step()
                if self._state_machine.is_settling():
                    result = self._episode_history[-1]
                    break
            if result is None:
                result = self._abandon_episode()
            episodes.append(result)

            if episode_callback:
                episode_callback(result)

        self.finish_settling()

        successful_episodes = sum(1 for ep in episodes if ep.reached_gem)
        total_reward = sum(ep.total_reward for ep in episodes)
        return TrainingResult(
            episodes=episodes,
            total_episodes=len(episodes),
            successful_episodes=successful_episodes,
            average_reward=total_reward / len(episodes) if episodes else 0.0,
            final_epsilon=self._epsilon,
            optimal_path=self._path_tracker.extract_optimal_path(self._learner.q_table)
        )

    def _abandon_episode(self) -> EpisodeResult:
        result = EpisodeResult(
            number=self._episode_count + 1,
            steps=len(self._path_tracker.trajectory),
            total_reward=self._path_tracker.trajectory_reward(),
            reached_gem=False,
            epsilon_used=self._epsilon,
            terminated=False
        )
        self._agent_pos = self._environment.start
        self._path_tracker.clear_trajectory()
        return result

    # Checkpoint support

    def restore_state(self, q_values: Dict[int, Dict[Action, float]], epsilon: float,
                      step_count: int, episode_count: int, cumulative_reward: float,
                      best_episode_reward: float, saved_paths: Sequence[SavedPath] = ()) -> EngineSnapshot:
        """
        Load learned values and counters onto a freshly reset engine.

        The saved-path history is replaced by ``saved_paths``.
        """
        self.reset()
        self._learner.load_values(q_values)
        self._epsilon = min(max(epsilon, self.config.epsilon_min), self.config.epsilon)
        self._step_count = step_count
        self._episode_count = episode_count
        self._cumulative_reward = cumulative_reward
        self._best_episode_reward = best_episode_reward
        self._path_tracker.replace_history(saved_paths)
        if not self._learner.q_table.is_empty():
            self._optimal_path = self._path_tracker.extract_optimal_path(self._learner.q_table)
        return self.snapshot()

    # Queries

    @property
    def is_initialized(self) -> bool:
        return self._environment is not None

    @property
    def environment(self) -> Optional[GridEnvironment]:
        return self._environment

    @property
    def agent_position(self) -> Position:
        return self._agent_pos

    @property
    def epsilon(self) -> float:
        return self._epsilon

    @property
    def phase(self) -> EpisodePhase:
        return self._state_machine.current_state

    @property
    def phase_description(self) -> str:
        return self._state_machine.get_state_description()

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_showing_optimal_path(self) -> bool:
        return self._show_optimal_path

    @property
    def optimal_path(self) -> Tuple[Position, ...]:
        return self._optimal_path

    @property
    def saved_paths(self) -> Tuple[SavedPath, ...]:
        if self._path_tracker is None:
            return self._saved_paths
        return self._path_tracker.history

    @property
    def episode_history(self) -> Tuple[EpisodeResult, ...]:
        return tuple(self._episode_history)

    @property
    def last_episode(self) -> Optional[EpisodeResult]:
        return self._episode_history[-1] if self._episode_history else None

    def grid_layout(self) -> Layout:
        """Cell kinds row by row; empty before the grid is built."""
        if self._environment is None:
            return ()
        return self._environment.layout()

    def trajectory(self, limit: Optional[int] = None) -> Tuple[PathStep, ...]:
        """Current episode steps, optionally only the most recent ``limit``."""
        if self._path_tracker is None:
            return ()
        return self._path_tracker.recent_steps(limit)

    def statistics(self) -> Statistics:
        return Statistics(
            step_count=self._step_count,
            episode_count=self._episode_count,
            cumulative_reward=self._cumulative_reward,
            best_episode_reward=self._best_episode_reward,
            epsilon=self._epsilon
        )

    def has_q_values(self) -> bool:
        return self._learner is not None and not self._learner.q_table.is_empty()

    def q_table_snapshot(self) -> Optional[QTable]:
        """Independent copy of the Q-table, or None before the grid is built."""
        if self._learner is None:
            return None
        return self._learner.snapshot()

    def snapshot(self) -> EngineSnapshot:
        return EngineSnapshot(
            agent_position=self._agent_pos,
            statistics=self.statistics(),
            phase=self.phase,
            running=self._running,
            has_q_values=self.has_q_values(),
            trajectory=self.trajectory(),
            optimal_path=self._optimal_path,
            show_optimal_path=self._show_optimal_path,
            saved_paths=self.saved_paths
        )
