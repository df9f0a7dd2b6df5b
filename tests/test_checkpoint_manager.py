import json

import pytest

from rl_playground.app.engine import LearningEngine
from rl_playground.utils.checkpoint_manager import CheckpointManager
from rl_playground.utils.rng import SeededRNG

from .conftest import ScriptedRNG, ROUTE_TO_GEM


@pytest.fixture
def manager(tmp_path):
    return CheckpointManager(str(tmp_path / "checkpoints"))


def trained_engine():
    engine = LearningEngine(rng=ScriptedRNG(ROUTE_TO_GEM + ["right"]))
    for _ in range(8):
        engine.step()
    engine.finish_settling()
    engine.step()
    engine.save_current_path()
    return engine


def test_save_and_restore(manager):
    engine = trained_engine()
    path = manager.save_checkpoint("after_gem", engine)
    assert path.endswith("after_gem.json")
    assert manager.list_checkpoints() == ["after_gem"]

    checkpoint = manager.load_checkpoint("after_gem")
    assert checkpoint.episode_count == 1
    assert checkpoint.step_count == 9
    assert "3,4" in checkpoint.q_table

    restored = LearningEngine(rng=SeededRNG(0))
    assert manager.apply_checkpoint(checkpoint, restored)

    original_q = engine.q_table_snapshot().as_dict()
    restored_q = restored.q_table_snapshot().as_dict()
    assert restored_q.keys() == original_q.keys()
    for state_id, row in original_q.items():
        for action, value in row.items():
            assert restored_q[state_id][action] == pytest.approx(value)

    stats = restored.statistics()
    assert stats.epsilon == pytest.approx(engine.epsilon)
    assert stats.best_episode_reward == pytest.approx(9.3)
    assert restored.saved_paths[0].name == "Path 1"
    assert restored.saved_paths[0].steps == engine.saved_paths[0].steps


def test_fresh_engine_checkpoint_keeps_negative_infinity(manager):
    engine = LearningEngine(rng=SeededRNG(0))
    manager.save_checkpoint("fresh", engine)
    checkpoint = manager.load_checkpoint("fresh")
    assert checkpoint.best_episode_reward is None

    restored = LearningEngine(rng=SeededRNG(0))
    assert manager.apply_checkpoint(checkpoint, restored)
    assert restored.statistics().best_episode_reward == float("-inf")


def test_missing_checkpoint(manager):
    assert manager.load_checkpoint("nope") is None


def test_corrupt_checkpoint(manager, capsys):
    (manager.checkpoints_dir / "broken.json").write_text("{not json")
    assert manager.load_checkpoint("broken") is None
    assert "Error loading checkpoint broken" in capsys.readouterr().out


def test_apply_rejects_positions_outside_grid(manager):
    engine = LearningEngine(rng=SeededRNG(0))
    manager.save_checkpoint("bad", engine)
    checkpoint_file = manager.checkpoints_dir / "bad.json"
    data = json.loads(checkpoint_file.read_text())
    data["q_table"] = {"9,9": {"up": 1.0}}
    checkpoint_file.write_text(json.dumps(data))

    checkpoint = manager.load_checkpoint("bad")
    assert not manager.apply_checkpoint(checkpoint, LearningEngine(rng=SeededRNG(0)))


def test_apply_onto_same_engine_keeps_one_copy_of_saved_paths(manager):
    engine = LearningEngine(rng=ScriptedRNG(["right", "down"]))
    engine.step()
    engine.save_current_path()
    manager.save_checkpoint("same", engine)

    assert manager.apply_checkpoint(manager.load_checkpoint("same"), engine)
    assert [saved.name for saved in engine.saved_paths] == ["Path 1"]

    engine.step()
    engine.save_current_path()
    assert [saved.name for saved in engine.saved_paths] == ["Path 1", "Path 2"]


def test_apply_rejects_null_q_value(manager, capsys):
    engine = LearningEngine(rng=SeededRNG(0))
    manager.save_checkpoint("null_value", engine)
    checkpoint_file = manager.checkpoints_dir / "null_value.json"
    data = json.loads(checkpoint_file.read_text())
    data["q_table"] = {"0,0": {"right": None}}
    checkpoint_file.write_text(json.dumps(data))

    checkpoint = manager.load_checkpoint("null_value")
    assert not manager.apply_checkpoint(checkpoint, LearningEngine(rng=SeededRNG(0)))
    assert "Error applying checkpoint null_value" in capsys.readouterr().out
