"""
Core type aliases and the collaborator protocols.

Hard requirements:
- No Any
- Flat numeric vectors only cross the learner boundary
- Prefer explicit type aliases, frozen dataclasses, and protocols.
"""

from __future__ import annotations

from pathlib import Path
from typing import NewType, Protocol

import jax
import numpy as np

from dqnchess.env.position import Move, Outcome, Position

# Canonical array types used across modules.
type Array = jax.Array
# PRNGKey is a JAX uint32[2] array by convention.
type PRNGKey = jax.Array
# Host-side codec vectors (float64, see codec.bitboard).
type Vector = np.ndarray

# Strongly-typed integer wrappers for counters/IDs.
Step = NewType("Step", int)
EpisodeId = NewType("EpisodeId", int)


class RulesEngine(Protocol):
    """Game rules collaborator."""

    def initial_position(self) -> Position:
        """Return the canonical starting position."""
        ...

    def legal_moves(self, position: Position) -> list[Move]:
        """Return the legal moves in a deterministic order."""
        ...

    def apply(self, position: Position, move: Move) -> Position:
        """Return the position after move; raise IllegalMoveError if illegal."""
        ...

    def outcome(self, position: Position) -> Outcome | None:
        """Return the decided outcome, or None while the game is undecided."""
        ...

    def validate(self, position: Position) -> None:
        """Raise InvalidPositionError if the layout is not a legal position."""
        ...

    def render(self, move: Move) -> str:
        """Render a move as text."""
        ...

    def parse_matching(self, text: str, legal_moves: list[Move]) -> Move | None:
        """Return the legal move rendered exactly as text, if any."""
        ...


class Learner(Protocol):
    """Value-function learner collaborator."""

    def update(
        self,
        state: Vector,
        action: Vector,
        reward: float,
        next_state: Vector,
        next_actions: list[Vector] | None = None,
    ) -> float | None:
        """Consume one transition; return the training loss if a step ran."""
        ...

    def best_action(
        self, state: Vector, actions: list[Vector]
    ) -> Vector | None:
        """Return the candidate action with the highest estimated value."""
        ...

    def save(self, path: Path) -> None:
        """Persist parameters to path."""
        ...

    def load(self, path: Path) -> None:
        """Restore parameters from path."""
        ...
