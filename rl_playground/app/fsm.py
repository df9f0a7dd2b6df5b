"""Finite State Machine for the episode lifecycle."""

from typing import Callable, Dict, Optional

from ..domain.types import EpisodePhase


class EpisodeStateMachine:
    """State machine for the ACTIVE / SETTLING episode phases."""

    def __init__(self):
        self.current_state = EpisodePhase.ACTIVE
        self._enter_callbacks: Dict[EpisodePhase, Callable[[Optional[Dict]], None]] = {}

        # Define valid state transitions
        self._valid_transitions = {
            EpisodePhase.ACTIVE: {EpisodePhase.SETTLING},
            EpisodePhase.SETTLING: {EpisodePhase.ACTIVE},
        }

    def on_state_enter(self, state: EpisodePhase, callback: Callable[[Optional[Dict]], None]):
        """Register callback for state entry."""
        self._enter_callbacks[state] = callback

    def can_transition(self, to_state: EpisodePhase) -> bool:
        """Check if transition to target state is valid."""
        return to_state in self._valid_transitions.get(self.current_state, set())

    def transition(self, to_state: EpisodePhase, context: Optional[Dict] = None) -> bool:
        """Attempt to transition to target state."""
        if not self.can_transition(to_state):
            return False

        self.current_state = to_state

        if to_state in self._enter_callbacks:
            self._enter_callbacks[to_state](context)

        return True

    # Convenience methods for common transitions

    def begin_settling(self, context: Optional[Dict] = None) -> bool:
        """Episode reached a terminal cell."""
        return self.transition(EpisodePhase.SETTLING, context)

    def begin_episode(self, context: Optional[Dict] = None) -> bool:
        """Settling finished, agent is back at the start."""
        return self.transition(EpisodePhase.ACTIVE, context)

    def force_active(self):
        """Jump straight to ACTIVE without callbacks (full reset)."""
        self.current_state = EpisodePhase.ACTIVE

    # State checking methods

    def is_active(self) -> bool:
        return self.current_state == EpisodePhase.ACTIVE

    def is_settling(self) -> bool:
        return self.current_state == EpisodePhase.SETTLING

    def get_state_description(self) -> str:
        """Get human-readable state description."""
        descriptions = {
            EpisodePhase.ACTIVE: "Exploring - agent is learning",
            EpisodePhase.SETTLING: "Episode finished - returning to start",
        }
        return descriptions.get(self.current_state, "Unknown state")
