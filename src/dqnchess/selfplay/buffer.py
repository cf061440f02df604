"""
Replay buffer for scaled (state, action, target) samples.

Design constraint:
- Keep host-side buffer metadata minimal
- Store samples as contiguous numpy arrays
- Deterministic sampling given RNG
"""

from __future__ import annotations

from dataclasses import dataclass

import jax
import numpy as np

from dqnchess.types import PRNGKey


@dataclass(frozen=True, slots=True)
class ReplayConfig:
    """Replay buffer capacity and sampling parameters."""

    capacity: int
    min_to_sample: int


class ReplayBuffer:
    """A simple ring buffer of learner samples."""

    def __init__(self, cfg: ReplayConfig) -> None:
        """Initialize empty buffer."""
        if cfg.capacity < 1:
            raise ValueError("ReplayBuffer capacity must be positive.")
        # Basic ring buffer bookkeeping.
        self._capacity = cfg.capacity
        self._min_to_sample = cfg.min_to_sample
        self._size = 0
        self._write_idx = 0
        self._states: np.ndarray | None = None
        self._actions: np.ndarray | None = None
        self._targets: np.ndarray | None = None

    def __len__(self) -> int:
        return self._size

    def add(
        self, states: np.ndarray, actions: np.ndarray, targets: np.ndarray
    ) -> None:
        """Insert a batch of samples into the buffer.

        Args:
            states: (N, state_size)
            actions: (N, action_size)
            targets: (N,)
        """
        count = int(states.shape[0])
        if count == 0:
            return
        # Keep only the newest samples when the batch exceeds capacity.
        if count >= self._capacity:
            states = states[-self._capacity :]
            actions = actions[-self._capacity :]
            targets = targets[-self._capacity :]
            count = self._capacity
            self._write_idx = 0
            self._size = self._capacity

        # Lazily initialize storage on first insert.
        if self._states is None:
            self._states = np.zeros(
                (self._capacity, *states.shape[1:]), dtype=np.float32
            )
            self._actions = np.zeros(
                (self._capacity, *actions.shape[1:]), dtype=np.float32
            )
            self._targets = np.zeros((self._capacity,), dtype=np.float32)

        # Insert into ring buffer and update pointers.
        self._insert(states, actions, targets, count)
        self._size = min(self._capacity, self._size + count)
        self._write_idx = (self._write_idx + count) % self._capacity

    def can_sample(self) -> bool:
        """Return True if buffer has enough data to sample."""
        return self._size >= max(self._min_to_sample, 1)

    def sample_batch(
        self, rng_key: PRNGKey, batch_size: int
    ) -> dict[str, np.ndarray]:
        """Sample a training batch.

        Returns:
            A dict of arrays:
              - states: (B, state_size)
              - actions: (B, action_size)
              - targets: (B,)
        """
        # Guard against sampling before any data is added.
        if (
            self._states is None
            or self._actions is None
            or self._targets is None
        ):
            raise ValueError("ReplayBuffer is empty.")

        # Sample indices deterministically from RNG key.
        indices = jax.random.randint(rng_key, (batch_size,), 0, self._size)
        indices_np = np.asarray(jax.device_get(indices))

        return {
            "states": self._states[indices_np],
            "actions": self._actions[indices_np],
            "targets": self._targets[indices_np],
        }

    def _insert(
        self,
        states: np.ndarray,
        actions: np.ndarray,
        targets: np.ndarray,
        count: int,
    ) -> None:
        """Insert numpy data into the ring buffer."""
        if (
            self._states is None
            or self._actions is None
            or self._targets is None
        ):
            raise ValueError("ReplayBuffer storage not initialized.")

        # Write in two segments if wrapping around the ring buffer.
        first = min(self._capacity - self._write_idx, count)
        second = count - first

        end = self._write_idx + first
        self._states[self._write_idx : end] = states[:first]
        self._actions[self._write_idx : end] = actions[:first]
        self._targets[self._write_idx : end] = targets[:first]

        if second > 0:
            self._states[:second] = states[first:]
            self._actions[:second] = actions[first:]
            self._targets[:second] = targets[first:]
