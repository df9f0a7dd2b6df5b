"""Main window for the RL playground."""

from PySide6.QtGui import QCloseEvent, QKeySequence, QShortcut
from PySide6.QtWidgets import (
    QGroupBox, QHBoxLayout, QLabel, QMainWindow, QMessageBox, QPushButton,
    QStatusBar, QTextEdit, QVBoxLayout, QWidget
)

from ..app.controller import PlaygroundController
from ..domain.types import EngineSnapshot, EpisodePhase
from .grid_view import GridView


class MainWindow(QMainWindow):
    """Main application window."""

    def __init__(self, controller: PlaygroundController):
        super().__init__()
        self.controller = controller

        self.setWindowTitle("RL Playground - Q-Learning Path Finder")
        self.setMinimumSize(1000, 650)

        self._create_ui()
        self._setup_connections()
        self._setup_shortcuts()

        self._on_state_changed(self.controller.engine.snapshot())

    def _create_ui(self):
        """Create the user interface."""
        central_widget = QWidget()
        self.setCentralWidget(central_widget)

        main_layout = QHBoxLayout(central_widget)

        # Grid + controls
        left_layout = QVBoxLayout()
        self.grid_view = GridView(self.controller)
        left_layout.addWidget(self.grid_view, 1)
        left_layout.addLayout(self._create_controls())
        main_layout.addLayout(left_layout, 2)

        main_layout.addWidget(self._create_side_panel(), 1)

        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)

    def _create_controls(self) -> QHBoxLayout:
        """Create the control buttons."""
        layout = QHBoxLayout()

        self.run_btn = QPushButton("▶️ Start Learning")
        self.step_btn = QPushButton("⏯️ Single Step")
        self.show_path_btn = QPushButton("🗺️ Show Optimal Path")
        self.hide_path_btn = QPushButton("🚫 Hide Path")
        self.reset_btn = QPushButton("🔄 Reset")

        for btn in [self.run_btn, self.step_btn, self.show_path_btn, self.hide_path_btn, self.reset_btn]:
            layout.addWidget(btn)

        return layout

    def _create_side_panel(self) -> QWidget:
        """Create statistics, path and saved-path panels."""
        panel = QWidget()
        layout = QVBoxLayout(panel)

        stats_group = QGroupBox("Statistics")
        stats_layout = QVBoxLayout(stats_group)
        self.steps_label = QLabel("Steps: 0")
        self.episodes_label = QLabel("Episodes: 0")
        self.reward_label = QLabel("Total Reward: 0.0")
        self.best_label = QLabel("Best Episode: N/A")
        self.epsilon_label = QLabel("Exploration: 20.0%")
        for label in [self.steps_label, self.episodes_label, self.reward_label,
                      self.best_label, self.epsilon_label]:
            stats_layout.addWidget(label)
        layout.addWidget(stats_group)

        path_group = QGroupBox("Current Path")
        path_layout = QVBoxLayout(path_group)
        self.save_btn = QPushButton("💾 Save")
        path_layout.addWidget(self.save_btn)
        self.current_path_display = QTextEdit()
        self.current_path_display.setReadOnly(True)
        self.current_path_display.setMaximumHeight(130)
        path_layout.addWidget(self.current_path_display)
        layout.addWidget(path_group)

        optimal_group = QGroupBox("Optimal Path")
        optimal_layout = QVBoxLayout(optimal_group)
        self.optimal_path_display = QTextEdit()
        self.optimal_path_display.setReadOnly(True)
        self.optimal_path_display.setMaximumHeight(90)
        optimal_layout.addWidget(self.optimal_path_display)
        layout.addWidget(optimal_group)

        saved_group = QGroupBox("Saved Paths")
        saved_layout = QVBoxLayout(saved_group)
        self.saved_paths_display = QTextEdit()
        self.saved_paths_display.setReadOnly(True)
        self.saved_paths_display.setMaximumHeight(110)
        saved_layout.addWidget(self.saved_paths_display)
        layout.addWidget(saved_group)

        layout.addStretch()
        return panel

    def _setup_connections(self):
        """Connect buttons and controller signals."""
        self.run_btn.clicked.connect(self.controller.toggle_run)
        self.step_btn.clicked.connect(self.controller.step)
        self.show_path_btn.clicked.connect(self.controller.show_optimal_path)
        self.hide_path_btn.clicked.connect(self.controller.hide_optimal_path)
        self.reset_btn.clicked.connect(self.controller.reset)
        self.save_btn.clicked.connect(self.controller.save_current_path)

        self.controller.state_changed.connect(self._on_state_changed)
        self.controller.episode_completed.connect(self._on_episode_completed)
        self.controller.error_occurred.connect(self._on_error)

    def _setup_shortcuts(self):
        """Keyboard shortcuts."""
        QShortcut(QKeySequence("Space"), self, self.controller.toggle_run)
        QShortcut(QKeySequence("S"), self, self.controller.step)
        QShortcut(QKeySequence("R"), self, self.controller.reset)

    def _on_state_changed(self, snapshot: EngineSnapshot):
        """Refresh every panel from a snapshot."""
        stats = snapshot.statistics
        self.steps_label.setText(f"Steps: {stats.step_count}")
        self.episodes_label.setText(f"Episodes: {stats.episode_count}")
        self.reward_label.setText(f"Total Reward: {stats.cumulative_reward:.1f}")
        best = f"{stats.best_episode_reward:.1f}" if stats.has_best_episode else "N/A"
        self.best_label.setText(f"Best Episode: {best}")
        self.epsilon_label.setText(f"Exploration: {stats.epsilon * 100:.1f}%")

        self.run_btn.setText("⏸️ Pause" if snapshot.running else "▶️ Start Learning")
        self.save_btn.setEnabled(len(snapshot.trajectory) > 0)
        self.step_btn.setEnabled(snapshot.phase == EpisodePhase.ACTIVE)

        self._update_current_path(snapshot)
        self._update_optimal_path(snapshot)
        self._update_saved_paths(snapshot)
        self.status_bar.showMessage(self.controller.engine.phase_description)

    def _update_current_path(self, snapshot: EngineSnapshot):
        limit = self.controller.config.trajectory_display_limit
        steps = snapshot.trajectory
        if not steps:
            self.current_path_display.setPlainText("No steps yet")
            return
        lines = [
            f"[{step.position[0]},{step.position[1]}] → {step.action} "
            f"{'+' if step.reward > 0 else ''}{step.reward}"
            for step in steps[-limit:]
        ]
        if len(steps) > limit:
            lines.append(f"... and {len(steps) - limit} more steps")
        self.current_path_display.setPlainText("\n".join(lines))

    def _update_optimal_path(self, snapshot: EngineSnapshot):
        path = snapshot.optimal_path
        if not path:
            self.optimal_path_display.setPlainText("")
            return
        route = " → ".join(f"[{row},{col}]" for row, col in path)
        self.optimal_path_display.setPlainText(f"Steps: {len(path) - 1}\n{route}")

    def _update_saved_paths(self, snapshot: EngineSnapshot):
        limit = self.controller.config.saved_paths_display_limit
        lines = [
            f"{saved.name}: {saved.total_reward:.1f} ({saved.length} steps)"
            for saved in snapshot.saved_paths[-limit:]
        ]
        self.saved_paths_display.setPlainText("\n".join(lines))

    def _on_episode_completed(self, episode):
        outcome = "💎 Gem found" if episode.reached_gem else "☠️ Hit a skull"
        self.status_bar.showMessage(
            f"Episode {episode.number}: {outcome} in {episode.steps} steps "
            f"(reward {episode.total_reward:.1f})", 2000
        )

    def _on_error(self, message: str):
        QMessageBox.warning(self, "Error", message)

    def closeEvent(self, event: QCloseEvent):
        """Stop timers before the window goes away."""
        self.controller.cleanup()
        super().closeEvent(event)
