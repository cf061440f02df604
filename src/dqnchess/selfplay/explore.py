"""
Exploration strategies used to pick self-play moves.
"""

from __future__ import annotations

from typing import Protocol

import jax
import numpy as np

from dqnchess.rng import choice_index, uniform
from dqnchess.types import PRNGKey, Vector


class QValueSource(Protocol):
    """Anything that can score candidate actions for a state."""

    def q_values(self, state: Vector, actions: list[Vector]) -> np.ndarray:
        """Return one value per candidate action."""
        ...


class ExplorationStrategy(Protocol):
    """Picks the index of the move to play among the legal candidates."""

    def choose(self, key: PRNGKey, state: Vector, actions: list[Vector]) -> int:
        """Return an index into actions."""
        ...


class RandomExploration:
    """Uniformly random move selection."""

    def choose(self, key: PRNGKey, state: Vector, actions: list[Vector]) -> int:
        """Pick a uniformly random candidate."""
        del state
        return choice_index(key, len(actions))


class EpsilonGreedyExploration:
    """Greedy on the learner's Q-values, random with probability epsilon."""

    def __init__(self, source: QValueSource, epsilon: float) -> None:
        if not 0.0 <= epsilon <= 1.0:
            raise ValueError(f"epsilon must be in [0, 1], got {epsilon}")
        self._source = source
        self._epsilon = epsilon

    def choose(self, key: PRNGKey, state: Vector, actions: list[Vector]) -> int:
        """Pick a random candidate with probability epsilon, else the argmax."""
        explore_key, pick_key = jax.random.split(key)
        if uniform(explore_key) < self._epsilon:
            return choice_index(pick_key, len(actions))
        return int(np.argmax(self._source.q_values(state, actions)))
