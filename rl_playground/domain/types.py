"""Core type definitions for the RL playground."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Literal, Optional, Tuple

# Grid positions are (row, col)
Position = Tuple[int, int]

# Actions the agent can take, in tie-breaking order
Action = Literal["up", "down", "left", "right"]
ActionInt = Literal[0, 1, 2, 3]

ACTIONS: Tuple[Action, ...] = ("up", "down", "left", "right")

GRID_SIZE = 5


class CellKind(Enum):
    """Contents of a single grid cell."""
    EMPTY = ""
    START = "start"
    GEM = "gem"
    SKULL = "skull"


class EpisodePhase(Enum):
    """Phases of the episode lifecycle."""
    ACTIVE = "active"
    SETTLING = "settling"


@dataclass
class RLConfig:
    """Configuration for the learning engine."""
    learning_rate: float = 0.1  # alpha
    discount_factor: float = 0.9  # gamma
    epsilon: float = 0.2
    epsilon_decay: float = 0.995
    epsilon_min: float = 0.01
    reward_gem: float = 10.0
    reward_skull: float = -10.0
    reward_step: float = -0.1  # living cost, favours short paths
    max_path_steps: int = 50  # cap for greedy path extraction
    # Driver timing
    step_interval_ms: int = 300
    settle_delay_ms: int = 500
    # Display
    trajectory_display_limit: int = 5
    saved_paths_display_limit: int = 3


@dataclass(frozen=True)
class PathStep:
    """A single recorded move: where it was taken from, what was done, what it paid."""
    position: Position
    action: Action
    reward: float


@dataclass(frozen=True)
class SavedPath:
    """Immutable snapshot of a trajectory kept in the saved-path history."""
    id: str
    name: str
    steps: Tuple[PathStep, ...]
    total_reward: float
    timestamp: datetime

    @property
    def length(self) -> int:
        return len(self.steps)


@dataclass(frozen=True)
class Statistics:
    """Counters exposed to the display."""
    step_count: int
    episode_count: int
    cumulative_reward: float
    best_episode_reward: float
    epsilon: float

    @property
    def has_best_episode(self) -> bool:
        return self.best_episode_reward != float("-inf")


@dataclass(frozen=True)
class EpisodeResult:
    """Record of a finished (or abandoned) episode."""
    number: int
    steps: int
    total_reward: float
    reached_gem: bool
    epsilon_used: float
    terminated: bool = True


@dataclass(frozen=True)
class EngineSnapshot:
    """Observable engine state returned by every command."""
    agent_position: Position
    statistics: Statistics
    phase: EpisodePhase
    running: bool
    has_q_values: bool
    trajectory: Tuple[PathStep, ...]
    optimal_path: Tuple[Position, ...]
    show_optimal_path: bool
    saved_paths: Tuple[SavedPath, ...]


@dataclass
class TrainingResult:
    """Result of a headless training run."""
    episodes: List[EpisodeResult]
    total_episodes: int
    successful_episodes: int
    average_reward: float
    final_epsilon: float
    optimal_path: Tuple[Position, ...] = field(default_factory=tuple)

    @property
    def success_rate(self) -> float:
        """Calculate success rate."""
        return self.successful_episodes / self.total_episodes if self.total_episodes > 0 else 0.0

    @property
    def reached_gem(self) -> bool:
        """Whether the learned greedy path ends on the gem."""
        return bool(self.optimal_path) and self.optimal_path[-1] == GEM_POSITION


@dataclass
class TrainingCheckpoint:
    """Persisted engine state."""
    checkpoint_id: str
    timestamp: str
    episode_count: int
    step_count: int
    cumulative_reward: float
    best_episode_reward: Optional[float]
    epsilon: float
    q_table: Dict[str, Dict[str, float]]
    saved_paths: List[Dict]
    config: RLConfig


# Fixed layout
START_POSITION: Position = (0, 0)
GEM_POSITION: Position = (4, 4)
SKULL_POSITIONS: Tuple[Position, ...] = ((2, 2), (1, 3), (3, 1))

# Action mappings
ACTION_TO_INT: Dict[Action, ActionInt] = {
    "up": 0,
    "down": 1,
    "left": 2,
    "right": 3
}

INT_TO_ACTION: Dict[ActionInt, Action] = {
    0: "up",
    1: "down",
    2: "left",
    3: "right"
}

ACTION_DELTAS: Dict[Action, Position] = {
    "up": (-1, 0),
    "down": (1, 0),
    "left": (0, -1),
    "right": (0, 1)
}
