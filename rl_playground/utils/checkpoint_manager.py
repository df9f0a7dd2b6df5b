"""Training checkpoint management for the RL playground."""

import json
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from ..app.engine import LearningEngine
from ..domain.types import PathStep, RLConfig, SavedPath, TrainingCheckpoint, ACTIONS, GRID_SIZE


def serialize_saved_path(saved: SavedPath) -> Dict:
    return {
        "id": saved.id,
        "name": saved.name,
        "total_reward": saved.total_reward,
        "timestamp": saved.timestamp.isoformat(),
        "steps": [
            {"position": list(step.position), "action": step.action, "reward": step.reward}
            for step in saved.steps
        ]
    }


def deserialize_saved_path(data: Dict) -> SavedPath:
    return SavedPath(
        id=data["id"],
        name=data["name"],
        steps=tuple(
            PathStep(position=tuple(step["position"]), action=step["action"], reward=step["reward"])
            for step in data["steps"]
        ),
        total_reward=data["total_reward"],
        timestamp=datetime.fromisoformat(data["timestamp"])
    )


class CheckpointManager:
    """Saves and restores engine state as JSON files."""

    def __init__(self, checkpoints_dir: str = "training_checkpoints"):
        self.checkpoints_dir = Path(checkpoints_dir)
        self.checkpoints_dir.mkdir(parents=True, exist_ok=True)

    def save_checkpoint(self, checkpoint_id: str, engine: LearningEngine) -> str:
        """Write the engine's learned state to ``<checkpoint_id>.json``."""
        stats = engine.statistics()
        q_table = engine.q_table_snapshot()

        # Serialize Q-table, keyed by "row,col"
        q_values = {}
        if q_table is not None:
            for state_id, row in q_table.as_dict().items():
                r, c = divmod(state_id, GRID_SIZE)
                q_values[f"{r},{c}"] = row

        checkpoint_dict = {
            "checkpoint_id": checkpoint_id,
            "timestamp": datetime.now().isoformat(),
            "episode_count": stats.episode_count,
            "step_count": stats.step_count,
            "cumulative_reward": stats.cumulative_reward,
            "best_episode_reward": stats.best_episode_reward if stats.has_best_episode else None,
            "epsilon": stats.epsilon,
            "q_table": q_values,
            "saved_paths": [serialize_saved_path(saved) for saved in engine.saved_paths],
            "config": asdict(engine.config)
        }

        checkpoint_file = self.checkpoints_dir / f"{checkpoint_id}.json"
        with open(checkpoint_file, 'w') as f:
            json.dump(checkpoint_dict, f, indent=2)

        return str(checkpoint_file)

    def load_checkpoint(self, checkpoint_id: str) -> Optional[TrainingCheckpoint]:
        """Load a training checkpoint."""
        checkpoint_file = self.checkpoints_dir / f"{checkpoint_id}.json"

        if not checkpoint_file.exists():
            return None

        try:
            with open(checkpoint_file, 'r') as f:
                data = json.load(f)

            return TrainingCheckpoint(
                checkpoint_id=data["checkpoint_id"],
                timestamp=data["timestamp"],
                episode_count=data["episode_count"],
                step_count=data["step_count"],
                cumulative_reward=data["cumulative_reward"],
                best_episode_reward=data.get("best_episode_reward"),
                epsilon=data["epsilon"],
                q_table=data["q_table"],
                saved_paths=data.get("saved_paths", []),
                config=RLConfig(**data.get("config", {}))
            )

        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            print(f"Error loading checkpoint {checkpoint_id}: {e}")
            return None

    def apply_checkpoint(self, checkpoint: TrainingCheckpoint, engine: LearningEngine) -> bool:
        """Restore a checkpoint onto ``engine``. The engine is reset first."""
        try:
            q_values = {}
            for coord_str, row in checkpoint.q_table.items():
                r, c = (int(part) for part in coord_str.split(","))
                if not (0 <= r < GRID_SIZE and 0 <= c < GRID_SIZE):
                    raise ValueError(f"Position {coord_str} is outside the grid")
                unknown = set(row) - set(ACTIONS)
                if unknown:
                    raise ValueError(f"Unknown actions at {coord_str}: {sorted(unknown)}")
                q_values[r * GRID_SIZE + c] = {action: float(value) for action, value in row.items()}

            best = checkpoint.best_episode_reward
            engine.restore_state(
                q_values=q_values,
                epsilon=checkpoint.epsilon,
                step_count=checkpoint.step_count,
                episode_count=checkpoint.episode_count,
                cumulative_reward=checkpoint.cumulative_reward,
                best_episode_reward=float("-inf") if best is None else best,
                saved_paths=[deserialize_saved_path(data) for data in checkpoint.saved_paths]
            )
            return True

        except (KeyError, TypeError, ValueError) as e:
            print(f"Error applying checkpoint {checkpoint.checkpoint_id}: {e}")
            return False

    def list_checkpoints(self) -> List[str]:
        """Ids of all stored checkpoints, oldest first."""
        files = sorted(self.checkpoints_dir.glob("*.json"), key=lambda p: p.stat().st_mtime)
        return [checkpoint_file.stem for checkpoint_file in files]
