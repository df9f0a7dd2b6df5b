import pytest

QtCore = pytest.importorskip("PySide6.QtCore")

from rl_playground.app.controller import PlaygroundController
from rl_playground.domain.types import EpisodePhase

from .conftest import ScriptedRNG, ROUTE_TO_SKULL


@pytest.fixture(scope="module")
def qt_app():
    return QtCore.QCoreApplication.instance() or QtCore.QCoreApplication([])


@pytest.fixture
def controller(qt_app, config):
    ctrl = PlaygroundController(config, seed=0)
    yield ctrl
    ctrl.cleanup()


@pytest.fixture
def scripted_controller(qt_app, config):
    """Build a controller whose exploration follows the given actions."""
    built = []

    def build(actions):
        ctrl = PlaygroundController(config, rng=ScriptedRNG(actions))
        built.append(ctrl)
        return ctrl

    yield build
    for ctrl in built:
        ctrl.cleanup()


def test_toggle_run_starts_and_stops_timer(controller):
    assert controller.toggle_run()
    assert controller._timer.isActive()
    assert controller._timer.interval() == 300
    assert not controller.toggle_run()
    assert not controller._timer.isActive()


def test_step_publishes_snapshot(controller):
    received = []
    controller.state_changed.connect(received.append)
    assert controller.step()
    assert received[-1].statistics.step_count == 1


def test_terminal_step_waits_for_settle_timer(scripted_controller):
    controller = scripted_controller(ROUTE_TO_SKULL)
    episodes = []
    controller.episode_completed.connect(episodes.append)

    for _ in range(4):
        assert controller.step()
    assert controller._settle_timer.isActive()
    assert episodes[0].steps == 4
    assert not controller.step()

    controller._on_settle_elapsed()
    assert controller.engine.phase == EpisodePhase.ACTIVE
    assert controller.engine.agent_position == (0, 0)


def test_timer_tick_skips_while_settling(scripted_controller):
    controller = scripted_controller(ROUTE_TO_SKULL)
    controller.toggle_run()
    for _ in range(4):
        controller._on_timer_tick()
    controller._on_timer_tick()
    assert controller.engine.statistics().step_count == 4


def test_reset_stops_timers(scripted_controller):
    controller = scripted_controller(ROUTE_TO_SKULL)
    controller.toggle_run()
    for _ in range(4):
        controller.step()
    assert controller.reset()
    assert not controller._timer.isActive()
    assert not controller._settle_timer.isActive()
    assert controller.get_statistics()["step_count"] == 0


def test_save_and_show_path_report_outcome(controller):
    assert not controller.show_optimal_path()
    assert not controller.save_current_path()
    controller.step()
    assert controller.save_current_path()
    assert not controller.save_current_path()
    assert controller.show_optimal_path()


def test_get_statistics(controller):
    stats = controller.get_statistics()
    assert stats["step_count"] == 0
    assert stats["best_episode_reward"] is None
    assert stats["current_epsilon"] == 0.2
    assert stats["current_state"] == "active"
    assert not stats["running"]
