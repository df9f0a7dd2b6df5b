"""Main application controller connecting UI and the learning engine."""

from typing import Optional

from PySide6.QtCore import QObject, QTimer, Signal

from ..domain.types import EngineSnapshot, EpisodePhase, RLConfig
from ..utils.rng import SeededRNG
from .engine import LearningEngine


class PlaygroundController(QObject):
    """
    Controller that drives the learning engine on Qt timers.

    A repeating timer calls ``step()`` every ``step_interval_ms`` while the
    simulation runs. When an episode ends, a one-shot timer waits
    ``settle_delay_ms`` before the agent returns to the start; ticks that
    arrive in the meantime are skipped.

    Signals:
        state_changed: Emitted with the new EngineSnapshot after any command
        episode_completed: Emitted with the EpisodeResult of a finished episode
        grid_updated: Emitted when the grid needs to be redrawn
        paths_updated: Emitted when the optimal path or saved paths change
        error_occurred: Emitted when an error occurs
    """

    # Qt Signals
    state_changed = Signal(object)  # EngineSnapshot
    episode_completed = Signal(object)  # EpisodeResult
    grid_updated = Signal()
    paths_updated = Signal()
    error_occurred = Signal(str)  # Error message

    def __init__(self, config: Optional[RLConfig] = None, seed: Optional[int] = None,
                 rng: Optional[SeededRNG] = None):
        super().__init__()

        self._config = config or RLConfig()
        self._engine = LearningEngine(self._config, rng or SeededRNG(seed))

        # Timer for running mode
        self._timer = QTimer()
        self._timer.setInterval(self._config.step_interval_ms)
        self._timer.timeout.connect(self._on_timer_tick)

        # One-shot timer for the return to start after an episode
        self._settle_timer = QTimer()
        self._settle_timer.setSingleShot(True)
        self._settle_timer.setInterval(self._config.settle_delay_ms)
        self._settle_timer.timeout.connect(self._on_settle_elapsed)

    # Properties

    @property
    def engine(self) -> LearningEngine:
        """Get the learning engine."""
        return self._engine

    @property
    def config(self) -> RLConfig:
        """Get the configuration."""
        return self._config

    @property
    def is_running(self) -> bool:
        return self._engine.is_running

    # Commands

    def step(self) -> bool:
        """Execute one engine step. Returns False if the step was refused."""
        try:
            if self._engine.phase == EpisodePhase.SETTLING:
                return False

            snapshot = self._engine.step()

            if snapshot.phase == EpisodePhase.SETTLING:
                self._settle_timer.start()
                self.episode_completed.emit(self._engine.last_episode)
                self.paths_updated.emit()

            self._publish(snapshot)
            return True
        except Exception as e:
            self.error_occurred.emit(f"Step error: {str(e)}")
            self._timer.stop()
            return False

    def toggle_run(self) -> bool:
        """Start or pause the simulation. Returns the new running flag."""
        try:
            snapshot = self._engine.toggle_run()
            if snapshot.running:
                self._timer.start()
            else:
                self._timer.stop()
            self.state_changed.emit(snapshot)
            return snapshot.running
        except Exception as e:
            self.error_occurred.emit(f"Failed to toggle simulation: {str(e)}")
            return False

    def reset(self) -> bool:
        """Stop everything and return the engine to its initial state."""
        try:
            self._timer.stop()
            self._settle_timer.stop()
            snapshot = self._engine.reset()
            self.paths_updated.emit()
            self._publish(snapshot)
            return True
        except Exception as e:
            self.error_occurred.emit(f"Failed to reset: {str(e)}")
            return False

    def show_optimal_path(self) -> bool:
        """Show the greedy path. Returns False when nothing has been learned yet."""
        try:
            snapshot = self._engine.show_optimal_path()
            if not snapshot.show_optimal_path:
                return False
            self.paths_updated.emit()
            self._publish(snapshot)
            return True
        except Exception as e:
            self.error_occurred.emit(f"Failed to show optimal path: {str(e)}")
            return False

    def hide_optimal_path(self):
        self._publish(self._engine.hide_optimal_path())

    def save_current_path(self) -> bool:
        """Save the in-progress trajectory. Returns True if an entry was added."""
        try:
            before = len(self._engine.saved_paths)
            snapshot = self._engine.save_current_path()
            if len(snapshot.saved_paths) == before:
                return False
            self.paths_updated.emit()
            self.state_changed.emit(snapshot)
            return True
        except Exception as e:
            self.error_occurred.emit(f"Failed to save path: {str(e)}")
            return False

    # Timer callbacks

    def _on_timer_tick(self):
        """Called on each timer tick while running."""
        if not self._engine.is_running:
            self._timer.stop()
            return
        if self._engine.phase == EpisodePhase.SETTLING:
            return
        self.step()

    def _on_settle_elapsed(self):
        """Called once the settle delay after an episode has passed."""
        try:
            snapshot = self._engine.advance_time(self._config.settle_delay_ms)
            self._publish(snapshot)
        except Exception as e:
            self.error_occurred.emit(f"Timer tick error: {str(e)}")
            self._timer.stop()

    def _publish(self, snapshot: EngineSnapshot):
        self.state_changed.emit(snapshot)
        self.grid_updated.emit()

    # Cleanup

    def cleanup(self):
        """Stop timers before shutdown."""
        try:
            self._timer.stop()
            self._settle_timer.stop()
        except RuntimeError as e:
            # Timers may already be deleted by Qt during interpreter shutdown
            print(f"Cleanup warning: {e}")

    # Utility methods

    def get_statistics(self) -> dict:
        """Get current statistics."""
        stats = self._engine.statistics()
        return {
            "step_count": stats.step_count,
            "episode_count": stats.episode_count,
            "cumulative_reward": stats.cumulative_reward,
            "best_episode_reward": stats.best_episode_reward if stats.has_best_episode else None,
            "current_epsilon": stats.epsilon,
            "running": self._engine.is_running,
            "current_state": self._engine.phase.value,
            "state_description": self._engine.phase_description,
        }
