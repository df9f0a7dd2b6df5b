from rl_playground.train_background import main


def test_headless_training_runs(capsys):
    assert main(["--episodes", "30", "--seed", "1", "--log-every", "10"]) == 0
    out = capsys.readouterr().out
    assert "Training completed!" in out
    assert "Total episodes: 30" in out
    assert "Success rate:" in out


def test_save_then_resume_from_checkpoint(tmp_path, capsys):
    checkpoint_dir = tmp_path / "ckpt"
    assert main(["--episodes", "20", "--seed", "2", "--log-every", "0",
                 "--checkpoint-dir", str(checkpoint_dir), "--save-checkpoint"]) == 0
    files = list(checkpoint_dir.glob("*.json"))
    assert len(files) == 1
    capsys.readouterr()

    assert main(["--episodes", "5", "--seed", "3", "--log-every", "0",
                 "--checkpoint-dir", str(checkpoint_dir), "--load-checkpoint", files[0].stem]) == 0
    out = capsys.readouterr().out
    assert "Checkpoint loaded" in out


def test_unknown_checkpoint_starts_fresh(tmp_path, capsys):
    assert main(["--episodes", "1", "--seed", "0", "--log-every", "0",
                 "--checkpoint-dir", str(tmp_path), "--load-checkpoint", "missing"]) == 0
    assert "Starting fresh" in capsys.readouterr().out
