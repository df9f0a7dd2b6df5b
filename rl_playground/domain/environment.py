"""Fixed 5x5 grid world: layout, transitions, rewards and terminal cells."""

from typing import Tuple

from .types import (
    Action, CellKind, Position, RLConfig, ACTION_DELTAS, GRID_SIZE,
    START_POSITION, GEM_POSITION, SKULL_POSITIONS
)

Layout = Tuple[Tuple[CellKind, ...], ...]


def build_layout(size: int = GRID_SIZE) -> Layout:
    """
    Build the fixed grid layout.

    Start at (0,0), gem at (4,4), skulls at (2,2), (1,3) and (3,1).
    The returned layout is immutable.
    """
    cells = [[CellKind.EMPTY for _ in range(size)] for _ in range(size)]
    cells[START_POSITION[0]][START_POSITION[1]] = CellKind.START
    cells[GEM_POSITION[0]][GEM_POSITION[1]] = CellKind.GEM
    for row, col in SKULL_POSITIONS:
        cells[row][col] = CellKind.SKULL
    return tuple(tuple(row) for row in cells)


class GridEnvironment:
    """Deterministic grid world. All methods are pure functions of the layout."""

    def __init__(self, config: RLConfig):
        self.config = config
        self.size = GRID_SIZE
        self._layout = build_layout(self.size)

    @property
    def start(self) -> Position:
        return START_POSITION

    @property
    def gem(self) -> Position:
        return GEM_POSITION

    @property
    def skulls(self) -> Tuple[Position, ...]:
        return SKULL_POSITIONS

    @property
    def num_states(self) -> int:
        return self.size * self.size

    def layout(self) -> Layout:
        """Get the grid layout (row-major)."""
        return self._layout

    def cell_kind(self, pos: Position) -> CellKind:
        return self._layout[pos[0]][pos[1]]

    def is_valid_position(self, pos: Position) -> bool:
        """Check if position is within grid bounds."""
        row, col = pos
        return 0 <= row < self.size and 0 <= col < self.size

    def state_id(self, pos: Position) -> int:
        """Dense integer identifier of a position: row * size + col."""
        return pos[0] * self.size + pos[1]

    def position_of(self, state_id: int) -> Position:
        return divmod(state_id, self.size)

    def transition(self, pos: Position, action: Action) -> Position:
        """Apply the action's displacement, clamping each axis to the grid."""
        d_row, d_col = ACTION_DELTAS[action]
        row = min(max(pos[0] + d_row, 0), self.size - 1)
        col = min(max(pos[1] + d_col, 0), self.size - 1)
        return (row, col)

    def reward(self, pos: Position) -> float:
        """Reward for arriving at a position."""
        kind = self.cell_kind(pos)
        if kind == CellKind.GEM:
            return self.config.reward_gem
        if kind == CellKind.SKULL:
            return self.config.reward_skull
        return self.config.reward_step

    def is_terminal(self, pos: Position) -> bool:
        """Gem and skull cells end the episode."""
        return self.cell_kind(pos) in (CellKind.GEM, CellKind.SKULL)
