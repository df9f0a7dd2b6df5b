"""Trajectory recording, greedy path extraction and the saved-path history."""

from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from .environment import GridEnvironment
from .qlearning import QTable
from .types import PathStep, Position, RLConfig, SavedPath


class PathTracker:
    """Tracks the in-progress episode and the history of saved paths."""

    def __init__(self, environment: GridEnvironment, config: RLConfig):
        self.environment = environment
        self.config = config
        self._trajectory: List[PathStep] = []
        self._history: List[SavedPath] = []
        self._trajectory_saved = False

    @property
    def trajectory(self) -> Tuple[PathStep, ...]:
        return tuple(self._trajectory)

    @property
    def history(self) -> Tuple[SavedPath, ...]:
        return tuple(self._history)

    def recent_steps(self, limit: Optional[int] = None) -> Tuple[PathStep, ...]:
        """The last ``limit`` steps of the trajectory (all of them if None)."""
        if limit is None:
            return self.trajectory
        if limit <= 0:
            return ()
        return tuple(self._trajectory[-limit:])

    def trajectory_reward(self) -> float:
        return sum(step.reward for step in self._trajectory)

    def record_step(self, step: PathStep):
        self._trajectory.append(step)
        self._trajectory_saved = False

    def clear_trajectory(self):
        self._trajectory.clear()
        self._trajectory_saved = False

    def extract_optimal_path(self, q_table: QTable) -> Tuple[Position, ...]:
        """
        Follow the greedy policy (epsilon = 0) from the start cell.

        Stops on a terminal cell (which is included), on a state the table
        has never seen, or after ``max_path_steps`` moves. A path cut short
        by the step cap ends without a terminal cell, so callers must not
        assume the last position is the gem or a skull. The table is only
        read, never materialised.
        """
        env = self.environment
        path = []
        position = env.start
        steps = 0

        while not env.is_terminal(position) and steps < self.config.max_path_steps:
            path.append(position)
            state_id = env.state_id(position)
            if not q_table.has_state(state_id):
                break
            position = env.transition(position, q_table.best_action(state_id))
            steps += 1

        if env.is_terminal(position):
            path.append(position)

        return tuple(path)

    def save_snapshot(self, trajectory: Sequence[PathStep],
                      existing_count: int) -> Optional[SavedPath]:
        """
        Append an immutable copy of ``trajectory`` to the history.

        Does nothing for an empty trajectory.
        """
        if not trajectory:
            return None

        timestamp = datetime.now()
        saved = SavedPath(
            id=f"path_{existing_count + 1}_{timestamp.strftime('%Y%m%d_%H%M%S_%f')}",
            name=f"Path {existing_count + 1}",
            steps=tuple(trajectory),
            total_reward=sum(step.reward for step in trajectory),
            timestamp=timestamp
        )
        self._history.append(saved)
        return saved

    def save_current_path(self) -> Optional[SavedPath]:
        """Save the live trajectory unless it was already saved unchanged."""
        if self._trajectory_saved:
            return None
        saved = self.save_snapshot(self._trajectory, len(self._history))
        if saved is not None:
            self._trajectory_saved = True
        return saved

    def import_history(self, paths: Sequence[SavedPath]):
        """Append previously saved paths, e.g. from a checkpoint."""
        self._history.extend(paths)

    def replace_history(self, paths: Sequence[SavedPath]):
        """Swap the whole history for ``paths``."""
        self._history = list(paths)
