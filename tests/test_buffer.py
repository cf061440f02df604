"""Tests for the replay ring buffer."""

from __future__ import annotations

import jax
import numpy as np
import pytest

from dqnchess.selfplay.buffer import ReplayBuffer, ReplayConfig


def _samples(start: int, count: int) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Build samples whose target equals their insertion index."""
    idx = np.arange(start, start + count, dtype=np.float32)
    states = np.repeat(idx[:, None], 3, axis=1)
    actions = np.repeat(idx[:, None], 2, axis=1)
    return states, actions, idx


def test_buffer_wraparound_keeps_newest() -> None:
    """Writing past capacity overwrites the oldest samples."""
    # Capacity 4, insert 3 then 3 more.
    buffer = ReplayBuffer(ReplayConfig(capacity=4, min_to_sample=1))
    buffer.add(*_samples(0, 3))
    buffer.add(*_samples(3, 3))
    assert len(buffer) == 4

    batch = buffer.sample_batch(jax.random.PRNGKey(0), 64)
    assert set(batch["targets"].tolist()) <= {2.0, 3.0, 4.0, 5.0}
    np.testing.assert_array_equal(batch["states"][:, 0], batch["targets"])
    np.testing.assert_array_equal(batch["actions"][:, 1], batch["targets"])


def test_buffer_oversized_batch() -> None:
    """A batch larger than capacity keeps only its tail."""
    buffer = ReplayBuffer(ReplayConfig(capacity=2, min_to_sample=1))
    buffer.add(*_samples(0, 5))
    assert len(buffer) == 2
    batch = buffer.sample_batch(jax.random.PRNGKey(1), 32)
    assert set(batch["targets"].tolist()) <= {3.0, 4.0}


def test_buffer_warmup_and_empty() -> None:
    """can_sample waits for min_to_sample; empty sampling raises."""
    buffer = ReplayBuffer(ReplayConfig(capacity=8, min_to_sample=2))
    assert not buffer.can_sample()
    with pytest.raises(ValueError):
        buffer.sample_batch(jax.random.PRNGKey(0), 1)
    buffer.add(*_samples(0, 1))
    assert not buffer.can_sample()
    buffer.add(*_samples(1, 1))
    assert buffer.can_sample()


def test_buffer_sampling_is_deterministic() -> None:
    """Same key, same batch."""
    buffer = ReplayBuffer(ReplayConfig(capacity=16, min_to_sample=1))
    buffer.add(*_samples(0, 16))
    key = jax.random.PRNGKey(7)
    first = buffer.sample_batch(key, 8)
    second = buffer.sample_batch(key, 8)
    np.testing.assert_array_equal(first["targets"], second["targets"])


def test_buffer_rejects_zero_capacity() -> None:
    """Capacity must be positive."""
    with pytest.raises(ValueError):
        ReplayBuffer(ReplayConfig(capacity=0, min_to_sample=0))
