import pytest

from rl_playground.domain.environment import build_layout
from rl_playground.domain.types import ACTIONS, CellKind


def all_positions(size=5):
    return [(r, c) for r in range(size) for c in range(size)]


def test_layout_is_fixed():
    layout = build_layout()
    assert len(layout) == 5 and all(len(row) == 5 for row in layout)
    assert layout[0][0] == CellKind.START
    assert layout[4][4] == CellKind.GEM
    for r, c in [(2, 2), (1, 3), (3, 1)]:
        assert layout[r][c] == CellKind.SKULL
    kinds = [kind for row in layout for kind in row]
    assert kinds.count(CellKind.EMPTY) == 25 - 5


def test_transition_stays_in_bounds(env):
    for pos in all_positions():
        for action in ACTIONS:
            r, c = env.transition(pos, action)
            assert 0 <= r < 5 and 0 <= c < 5


@pytest.mark.parametrize("pos,action,expected", [
    ((2, 2), "up", (1, 2)),
    ((2, 2), "down", (3, 2)),
    ((2, 2), "left", (2, 1)),
    ((2, 2), "right", (2, 3)),
    ((0, 0), "up", (0, 0)),
    ((0, 0), "left", (0, 0)),
    ((4, 4), "down", (4, 4)),
    ((4, 4), "right", (4, 4)),
    ((0, 3), "up", (0, 3)),
])
def test_transition_clamps_each_axis(env, pos, action, expected):
    assert env.transition(pos, action) == expected


def test_reward_by_cell(env):
    for pos in all_positions():
        kind = env.cell_kind(pos)
        if kind == CellKind.GEM:
            assert env.reward(pos) == 10
        elif kind == CellKind.SKULL:
            assert env.reward(pos) == -10
        else:
            assert env.reward(pos) == -0.1


def test_terminal_only_on_gem_and_skulls(env):
    terminal = {pos for pos in all_positions() if env.is_terminal(pos)}
    assert terminal == {(4, 4), (2, 2), (1, 3), (3, 1)}


def test_step_right_from_start(env):
    next_pos = env.transition((0, 0), "right")
    assert next_pos == (0, 1)
    assert env.reward(next_pos) == pytest.approx(-0.1)
    assert not env.is_terminal(next_pos)


def test_step_into_skull(env):
    next_pos = env.transition((1, 2), "right")
    assert next_pos == (1, 3)
    assert env.reward(next_pos) == -10
    assert env.is_terminal(next_pos)


def test_state_id_round_trip(env):
    assert env.state_id((0, 0)) == 0
    assert env.state_id((4, 4)) == 24
    assert env.state_id((2, 3)) == 13
    assert env.position_of(13) == (2, 3)
