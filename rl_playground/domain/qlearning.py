"""Q-Learning components: the dense Q-table, the epsilon-greedy policy and the learner."""

from typing import Dict, Iterator

import numpy as np

from .environment import GridEnvironment
from ..utils.rng import SeededRNG
from .types import Action, Position, RLConfig, ACTIONS, ACTION_TO_INT, INT_TO_ACTION


class QTable:
    """Dense Q-value store indexed by (state_id, action index).

    A row only counts as present once it has been materialised through
    ``ensure_state``; unmaterialised rows read as zeros.
    """

    def __init__(self, num_states: int, num_actions: int = len(ACTIONS)):
        self.num_states = num_states
        self.num_actions = num_actions
        self._values = np.zeros((num_states, num_actions), dtype=np.float64)
        self._materialized = np.zeros(num_states, dtype=bool)

    def ensure_state(self, state_id: int) -> None:
        """Materialise a state with all actions at 0 if it is not present yet."""
        if not self._materialized[state_id]:
            self._values[state_id, :] = 0.0
            self._materialized[state_id] = True

    def has_state(self, state_id: int) -> bool:
        return bool(self._materialized[state_id])

    def is_empty(self) -> bool:
        return not self._materialized.any()

    def __len__(self) -> int:
        return int(self._materialized.sum())

    def get(self, state_id: int, action: Action) -> float:
        """Get Q-value for state-action pair."""
        return float(self._values[state_id, ACTION_TO_INT[action]])

    def set(self, state_id: int, action: Action, value: float) -> None:
        """Set Q-value for state-action pair, materialising the state."""
        self.ensure_state(state_id)
        self._values[state_id, ACTION_TO_INT[action]] = value

    def max_value(self, state_id: int) -> float:
        """Get the maximum Q-value."""
        return float(self._values[state_id].max())

    def best_action(self, state_id: int) -> Action:
        """Greedy action; ties go to the first action in ACTIONS order."""
        return INT_TO_ACTION[int(np.argmax(self._values[state_id]))]

    def states(self) -> Iterator[int]:
        """Ids of all materialised states, ascending."""
        return (int(s) for s in np.flatnonzero(self._materialized))

    def as_dict(self) -> Dict[int, Dict[Action, float]]:
        """Materialised rows keyed by state id."""
        return {
            state_id: {action: self.get(state_id, action) for action in ACTIONS}
            for state_id in self.states()
        }

    def copy(self) -> "QTable":
        """Independent snapshot of the table."""
        snapshot = QTable(self.num_states, self.num_actions)
        snapshot._values = self._values.copy()
        snapshot._materialized = self._materialized.copy()
        return snapshot

    def clear(self) -> None:
        self._values.fill(0.0)
        self._materialized.fill(False)


class EpsilonGreedyPolicy:
    """Explores uniformly with probability epsilon, otherwise exploits."""

    def __init__(self, environment: GridEnvironment):
        self.environment = environment

    def choose_action(self, state: Position, q_table: QTable, epsilon: float,
                      rng: SeededRNG) -> Action:
        """
        Select an action for ``state``.

        Querying a state materialises it in ``q_table``.
        """
        state_id = self.environment.state_id(state)
        q_table.ensure_state(state_id)

        if rng.random() < epsilon:
            return rng.choice(ACTIONS)
        return q_table.best_action(state_id)


class QLearner:
    """Owns the Q-table and applies the one-step Q-learning backup."""

    def __init__(self, environment: GridEnvironment, config: RLConfig):
        self.environment = environment
        self.config = config
        self.q_table = QTable(environment.num_states)

    @property
    def alpha(self) -> float:
        return self.config.learning_rate

    @property
    def gamma(self) -> float:
        return self.config.discount_factor

    def update(self, state: Position, action: Action, reward: float,
               next_state: Position) -> float:
        """
        Apply Q(s,a) += alpha * (r + gamma * max_a' Q(s',a') - Q(s,a)).

        Both rows are materialised first. Returns the new Q(s,a).
        """
        state_id = self.environment.state_id(state)
        next_id = self.environment.state_id(next_state)
        self.q_table.ensure_state(state_id)
        self.q_table.ensure_state(next_id)

        max_next = self.q_table.max_value(next_id)
        current_q = self.q_table.get(state_id, action)
        new_q = current_q + self.alpha * (reward + self.gamma * max_next - current_q)
        self.q_table.set(state_id, action, new_q)
        return new_q

    def decay_epsilon(self, epsilon: float) -> float:
        """Decayed exploration rate, floored at epsilon_min."""
        return max(epsilon * self.config.epsilon_decay, self.config.epsilon_min)

    def load_values(self, values: Dict[int, Dict[Action, float]]) -> None:
        """Replace the table with the given rows."""
        self.q_table.clear()
        for state_id, row in values.items():
            self.q_table.ensure_state(state_id)
            for action, value in row.items():
                self.q_table.set(state_id, action, value)

    def snapshot(self) -> QTable:
        return self.q_table.copy()

    def reset(self):
        """Discard everything learned."""
        self.q_table = QTable(self.environment.num_states)

