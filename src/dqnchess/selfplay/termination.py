"""
Episode termination policy.
"""

from __future__ import annotations

from typing import Final

from dqnchess.env.position import Position
from dqnchess.types import RulesEngine

# Fifty-move horizon expressed in half-moves; a hard episode cap.
HALFMOVE_LIMIT: Final[int] = 100


class ChessTermination:
    """Stops on a decided outcome or when the halfmove clock hits the cap."""

    def __init__(
        self, rules: RulesEngine, halfmove_limit: int = HALFMOVE_LIMIT
    ) -> None:
        self._rules = rules
        self._halfmove_limit = halfmove_limit

    def should_stop(self, position: Position) -> bool:
        """Return True if the episode is over."""
        if position.halfmoves >= self._halfmove_limit:
            return True
        return self._rules.outcome(position) is not None
