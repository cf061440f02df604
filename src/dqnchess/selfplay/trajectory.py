"""
Transition and episode records produced by self-play.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from dqnchess.types import EpisodeId, Vector


@dataclass(frozen=True, slots=True)
class Transition:
    """One learner sample at the vector boundary.

    Attributes:
        state: Encoded position before the move.
        action: Encoded move.
        reward: Reward read from the position after the move.
        next_state: Encoded position after the move.
        next_actions: Encoded legal moves after the move; empty if terminal.
    """

    state: Vector
    action: Vector
    reward: float
    next_state: Vector
    next_actions: list[Vector] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class EpisodeSummary:
    """Outcome of one self-play episode.

    Attributes:
        episode: Zero-based episode index.
        plies: Number of moves played.
        final_reward: Reward of the last transition (0.0 if none).
        result: PGN result token, "*" when stopped by the halfmove cap.
        mean_loss: Mean learner loss over the episode's updates, if any.
        moves: Moves in UCI notation.
    """

    episode: EpisodeId
    plies: int
    final_reward: float
    result: str
    mean_loss: float | None
    moves: list[str]
