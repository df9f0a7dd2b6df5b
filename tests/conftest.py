import pytest

from rl_playground.app.engine import LearningEngine
from rl_playground.domain.environment import GridEnvironment
from rl_playground.domain.types import RLConfig


class ScriptedRNG:
    """Explores on every draw and hands out a fixed sequence of actions."""

    def __init__(self, actions, explore=True):
        self.actions = list(actions)
        self.explore = explore

    def random(self):
        return 0.0 if self.explore else 1.0

    def choice(self, seq):
        assert tuple(seq) == ("up", "down", "left", "right")
        return self.actions.pop(0)


@pytest.fixture
def config():
    return RLConfig()


@pytest.fixture
def env(config):
    return GridEnvironment(config)


@pytest.fixture
def scripted_engine(config):
    """Build an engine whose exploration follows the given actions."""
    def build(actions):
        return LearningEngine(config, ScriptedRNG(actions))
    return build


# Start -> right x4 -> down x4 reaches the gem without touching a skull
ROUTE_TO_GEM = ["right"] * 4 + ["down"] * 4
# Start -> right, right, down, right lands on the skull at (1,3)
ROUTE_TO_SKULL = ["right", "right", "down", "right"]
