"""Grid view for the RL playground."""

from typing import Dict

from PySide6.QtCore import Qt
from PySide6.QtGui import QPainter
from PySide6.QtWidgets import QGraphicsScene, QGraphicsView

from ..app.controller import PlaygroundController
from ..domain.types import Position
from .tiles import GridTile


class GridView(QGraphicsView):
    """Graphics view showing the grid, the agent and the optimal path."""

    def __init__(self, controller: PlaygroundController):
        super().__init__()

        self.controller = controller
        self.scene = QGraphicsScene()
        self.setScene(self.scene)

        self.tiles: Dict[Position, GridTile] = {}
        self.tile_size = 80.0

        self.setRenderHint(QPainter.Antialiasing)

        self.controller.grid_updated.connect(self.update_grid)

        self._build_tiles()
        self.update_grid()

    def _build_tiles(self):
        """Create one tile per cell of the current layout."""
        self.scene.clear()
        self.tiles.clear()

        layout = self.controller.engine.grid_layout()
        size = len(layout)
        self.scene.setSceneRect(0, 0, size * self.tile_size, size * self.tile_size)

        for row, cells in enumerate(layout):
            for col, kind in enumerate(cells):
                tile = GridTile(row, col, self.tile_size, kind)
                self.scene.addItem(tile)
                self.tiles[(row, col)] = tile

    def update_grid(self):
        """Refresh tiles from the engine state."""
        engine = self.controller.engine
        if not engine.is_initialized:
            return
        if not self.tiles:
            self._build_tiles()

        q_table = engine.q_table_snapshot()
        env = engine.environment
        highlighted = set(engine.optimal_path) if engine.is_showing_optimal_path else set()
        agent = engine.agent_position

        for position, tile in self.tiles.items():
            state_id = env.state_id(position)
            max_q = q_table.max_value(state_id) if q_table.has_state(state_id) else 0.0
            tile.set_state(
                has_agent=(position == agent),
                on_optimal_path=(position in highlighted),
                max_q=max_q
            )

    def resizeEvent(self, event):
        """Keep the whole grid visible."""
        super().resizeEvent(event)
        if self.scene.items():
            self.fitInView(self.scene.sceneRect(), Qt.KeepAspectRatio)
