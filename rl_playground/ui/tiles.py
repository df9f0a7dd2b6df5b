"""Grid tiles for the RL playground."""

from PySide6.QtCore import QRectF, Qt
from PySide6.QtGui import QBrush, QColor, QFont, QPainter, QPen
from PySide6.QtWidgets import QGraphicsRectItem, QGraphicsTextItem

from ..domain.types import CellKind

CELL_GLYPHS = {
    CellKind.START: "🏁",
    CellKind.GEM: "💎",
    CellKind.SKULL: "☠️",
    CellKind.EMPTY: "",
}
AGENT_GLYPH = "🤖"


class GridTile(QGraphicsRectItem):
    """Graphics item representing a single grid cell."""

    def __init__(self, row: int, col: int, size: float, kind: CellKind):
        super().__init__(0, 0, size, size)
        self.row = row
        self.col = col
        self.size = size
        self.kind = kind
        self.has_agent = False
        self.on_optimal_path = False
        self.max_q = 0.0

        # Position the tile
        self.setPos(col * size, row * size)

        self._glyph_text = QGraphicsTextItem(parent=self)
        self._glyph_text.setFont(QFont("Arial", int(size * 0.35)))
        self._q_text = QGraphicsTextItem(parent=self)
        self._q_text.setFont(QFont("Arial", int(size * 0.12)))
        self._q_text.setPos(size * 0.05, size * 0.75)

        self.update_appearance()

    def set_state(self, has_agent: bool, on_optimal_path: bool, max_q: float):
        self.has_agent = has_agent
        self.on_optimal_path = on_optimal_path
        self.max_q = max_q
        self.update_appearance()

    def update_appearance(self):
        """Update tile appearance from its cell kind and display flags."""
        brush_color, pen_color = self._get_state_colors()
        self.setBrush(QBrush(brush_color))
        self.setPen(QPen(pen_color, 2 if self.on_optimal_path else 1))

        glyph = AGENT_GLYPH if self.has_agent else CELL_GLYPHS[self.kind]
        self._glyph_text.setPlainText(glyph)
        rect = self._glyph_text.boundingRect()
        self._glyph_text.setPos(
            (self.size - rect.width()) / 2,
            (self.size - rect.height()) / 2
        )

        if self.kind == CellKind.EMPTY and abs(self.max_q) > 0.01:
            self._q_text.setPlainText(f"{self.max_q:.1f}")
            self._q_text.setDefaultTextColor(QColor(0, 150, 0) if self.max_q > 0 else QColor(150, 0, 0))
            self._q_text.setVisible(True)
        else:
            self._q_text.setVisible(False)

    def _get_state_colors(self) -> tuple[QColor, QColor]:
        """Get colors for the current cell."""
        if self.has_agent:
            return QColor(255, 160, 60), QColor(220, 110, 20)

        color_map = {
            CellKind.START: (QColor(100, 150, 255), QColor(50, 100, 220)),
            CellKind.GEM: (QColor(100, 220, 100), QColor(50, 170, 50)),
            CellKind.SKULL: (QColor(255, 100, 100), QColor(200, 50, 50)),
        }
        if self.kind in color_map:
            return color_map[self.kind]

        if self.on_optimal_path:
            return QColor(255, 240, 120), QColor(210, 180, 30)

        return QColor(240, 240, 240), QColor(180, 180, 180)

    def boundingRect(self) -> QRectF:
        return QRectF(0, 0, self.size, self.size)

    def paint(self, painter, option, widget=None):
        painter.setRenderHint(QPainter.Antialiasing)
        painter.setBrush(self.brush())
        painter.setPen(self.pen())
        painter.drawRoundedRect(self.boundingRect().adjusted(2, 2, -2, -2), 8, 8, Qt.AbsoluteSize)
