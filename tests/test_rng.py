"""Tests for deterministic RNG stream helpers."""

from __future__ import annotations

import jax
import jax.numpy as jnp
import pytest

from dqnchess.rng import RngStream, choice_index, uniform
from dqnchess.types import EpisodeId, Step


def test_rng_stream_episode_determinism() -> None:
    """RngStream yields identical keys for the same episode."""
    # Same episode should yield identical keys.
    stream = RngStream(base_key=jax.random.PRNGKey(42))

    key_a1 = stream.key_for_episode(EpisodeId(1))
    key_a2 = stream.key_for_episode(EpisodeId(1))
    key_b = stream.key_for_episode(EpisodeId(2))

    assert jnp.array_equal(key_a1, key_a2)
    assert not jnp.array_equal(key_a1, key_b)


def test_rng_stream_ply_key() -> None:
    """Ply keys are deterministic and differ by ply index."""
    stream = RngStream.from_seed(3)
    episode_key = stream.key_for_episode(EpisodeId(0))

    key0 = stream.key_for_ply(episode_key, 0)
    key0_again = stream.key_for_ply(episode_key, 0)
    key1 = stream.key_for_ply(episode_key, 1)

    assert jnp.array_equal(key0, key0_again)
    assert not jnp.array_equal(key0, key1)


def test_update_and_episode_domains_differ() -> None:
    """Update keys never collide with episode keys of the same index."""
    stream = RngStream.from_seed(0)
    assert not jnp.array_equal(
        stream.key_for_update(Step(5)), stream.key_for_episode(EpisodeId(5))
    )


def test_choice_index_and_uniform_ranges() -> None:
    """Draws stay in range; empty choices raise."""
    key = jax.random.PRNGKey(0)
    for offset in range(20):
        sub = jax.random.fold_in(key, offset)
        assert 0 <= choice_index(sub, 3) < 3
        assert 0.0 <= uniform(sub) < 1.0
    with pytest.raises(ValueError):
        choice_index(key, 0)
