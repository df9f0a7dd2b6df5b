import dataclasses

import pytest

from rl_playground.domain.path_tracker import PathTracker
from rl_playground.domain.qlearning import QTable
from rl_playground.domain.types import PathStep, RLConfig


@pytest.fixture
def tracker(env, config):
    return PathTracker(env, config)


def table_with_moves(env, moves):
    table = QTable(env.num_states)
    for position, action in moves.items():
        table.set(env.state_id(position), action, 1.0)
    return table


def test_empty_table_yields_start_only(tracker, env):
    table = QTable(env.num_states)
    assert tracker.extract_optimal_path(table) == ((0, 0),)
    assert table.is_empty()


def test_path_to_gem_includes_terminal(tracker, env):
    moves = {(0, c): "right" for c in range(4)}
    moves.update({(r, 4): "down" for r in range(4)})
    path = tracker.extract_optimal_path(table_with_moves(env, moves))
    assert path == ((0, 0), (0, 1), (0, 2), (0, 3), (0, 4), (1, 4), (2, 4), (3, 4), (4, 4))


def test_path_into_skull_ends_on_skull(tracker, env):
    moves = {(0, 0): "down", (1, 0): "down", (2, 0): "right", (2, 1): "right"}
    path = tracker.extract_optimal_path(table_with_moves(env, moves))
    assert path[-1] == (2, 2)
    assert len(path) == 5


def test_path_stops_at_unknown_state(tracker, env):
    path = tracker.extract_optimal_path(table_with_moves(env, {(0, 0): "right"}))
    assert path == ((0, 0), (0, 1))


def test_cycle_is_capped_without_terminal(tracker, env):
    # "left" at the start bumps the wall forever
    path = tracker.extract_optimal_path(table_with_moves(env, {(0, 0): "left"}))
    assert len(path) == 50
    assert not env.is_terminal(path[-1])


def test_path_never_exceeds_cap_plus_terminal(env):
    tracker = PathTracker(env, RLConfig(max_path_steps=3))
    moves = {(0, c): "right" for c in range(4)}
    path = tracker.extract_optimal_path(table_with_moves(env, moves))
    assert len(path) <= 4


def test_record_and_clear_trajectory(tracker):
    tracker.record_step(PathStep((0, 0), "right", -0.1))
    tracker.record_step(PathStep((0, 1), "right", -0.1))
    assert len(tracker.trajectory) == 2
    assert tracker.trajectory_reward() == pytest.approx(-0.2)
    assert tracker.recent_steps(1) == (PathStep((0, 1), "right", -0.1),)

    tracker.clear_trajectory()
    assert tracker.trajectory == ()


def test_save_snapshot_empty_is_noop(tracker):
    assert tracker.save_snapshot([], 0) is None
    assert tracker.history == ()


def test_save_snapshot_copies_and_totals(tracker):
    steps = [PathStep((0, 0), "right", -0.1), PathStep((0, 1), "down", -0.1)]
    saved = tracker.save_snapshot(steps, 4)
    assert saved.name == "Path 5"
    assert saved.total_reward == pytest.approx(-0.2)
    assert saved.steps == tuple(steps)

    steps.append(PathStep((1, 1), "down", -0.1))
    assert len(tracker.history[0].steps) == 2
    with pytest.raises(dataclasses.FrozenInstanceError):
        saved.name = "changed"


def test_save_current_path_once_per_trajectory(tracker):
    tracker.record_step(PathStep((0, 0), "right", -0.1))
    assert tracker.save_current_path() is not None
    assert tracker.save_current_path() is None
    assert len(tracker.history) == 1

    tracker.record_step(PathStep((0, 1), "down", -0.1))
    second = tracker.save_current_path()
    assert second.name == "Path 2"
    assert len(tracker.history[0].steps) == 1
