"""RL Playground - watch a Q-Learning agent learn its way to the gem.

This package implements a tabular Q-Learning engine on a fixed 5x5 grid
world, with a PySide6 front end and a headless trainer.
"""

__version__ = "1.0.0"
__author__ = "RL Playground"
