"""
Deterministic RNG utilities.

All randomness MUST flow through these helpers and explicit PRNGKey passing.
"""

from __future__ import annotations

from dataclasses import dataclass

import jax

from dqnchess.types import EpisodeId, PRNGKey, Step


@dataclass(frozen=True, slots=True)
class RngStream:
    """A deterministic RNG stream derived from a base key.

    This class is intentionally small and purely functional: calling methods
    returns new keys without mutating state.
    """

    base_key: PRNGKey

    @staticmethod
    def from_seed(seed: int) -> RngStream:
        """Build a stream from an integer seed."""
        return RngStream(base_key=jax.random.PRNGKey(seed))

    def key_for_episode(self, episode: EpisodeId) -> PRNGKey:
        """Derive a deterministic key for a self-play episode.

        Args:
            episode: Zero-based episode index.

        Returns:
            A PRNGKey derived via fold_in.
        """
        # Separate the episode and update domains before folding the index.
        domain = jax.random.fold_in(self.base_key, 0)
        return jax.random.fold_in(domain, int(episode))

    def key_for_ply(self, episode_key: PRNGKey, ply: int) -> PRNGKey:
        """Derive a deterministic key for one ply of an episode.

        Args:
            episode_key: The per-episode key.
            ply: Zero-based ply index within the episode.

        Returns:
            A PRNGKey derived via fold_in.
        """
        return jax.random.fold_in(episode_key, ply)

    def key_for_update(self, step: Step) -> PRNGKey:
        """Derive a deterministic key for a learner update step."""
        domain = jax.random.fold_in(self.base_key, 1)
        return jax.random.fold_in(domain, int(step))


def choice_index(key: PRNGKey, count: int) -> int:
    """Draw a uniform index in [0, count).

    Raises:
        ValueError: If count is not positive.
    """
    if count <= 0:
        raise ValueError("cannot choose from an empty set")
    return int(jax.random.randint(key, (), 0, count))


def uniform(key: PRNGKey) -> float:
    """Draw a uniform float in [0, 1)."""
    return float(jax.random.uniform(key, ()))
