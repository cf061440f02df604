"""Tests for exploration strategies."""

from __future__ import annotations

import jax
import numpy as np
import pytest

from dqnchess.selfplay.explore import EpsilonGreedyExploration, RandomExploration
from dqnchess.types import Vector


class _FixedValues:
    """Q-value source that prefers the candidate at a fixed index."""

    def __init__(self, best: int) -> None:
        self.best = best

    def q_values(self, state: Vector, actions: list[Vector]) -> np.ndarray:
        """Return one-hot values peaking at the preferred index."""
        del state
        values = np.zeros((len(actions),), dtype=np.float32)
        values[self.best] = 1.0
        return values


def _actions(count: int) -> list[Vector]:
    """Build count distinct dummy action vectors."""
    return [np.full((6,), float(i)) for i in range(count)]


def test_random_exploration_in_range_and_deterministic() -> None:
    """Random picks are legal indices and repeat for the same key."""
    strategy = RandomExploration()
    state = np.zeros((24,))
    key = jax.random.PRNGKey(0)
    first = strategy.choose(key, state, _actions(5))
    assert 0 <= first < 5
    assert strategy.choose(key, state, _actions(5)) == first


def test_epsilon_zero_is_greedy() -> None:
    """With epsilon 0 the argmax is always chosen."""
    strategy = EpsilonGreedyExploration(_FixedValues(best=3), epsilon=0.0)
    state = np.zeros((24,))
    for seed in range(10):
        assert strategy.choose(jax.random.PRNGKey(seed), state, _actions(6)) == 3


def test_epsilon_one_explores() -> None:
    """With epsilon 1 picks spread over several candidates."""
    strategy = EpsilonGreedyExploration(_FixedValues(best=0), epsilon=1.0)
    state = np.zeros((24,))
    picks = {
        strategy.choose(jax.random.PRNGKey(seed), state, _actions(8))
        for seed in range(40)
    }
    assert len(picks) > 1


def test_epsilon_validation() -> None:
    """Epsilon outside [0, 1] is rejected."""
    with pytest.raises(ValueError):
        EpsilonGreedyExploration(_FixedValues(best=0), epsilon=1.5)
