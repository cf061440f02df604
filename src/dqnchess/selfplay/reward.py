"""
Sparse reward for self-play transitions.

The reward is read from the position after a move, from the perspective of
the side now to move:
- decisive: +1 if the winner is the side to move, else -1
- draw or undecided: 0
"""

from __future__ import annotations

from dqnchess.env.position import Position
from dqnchess.types import RulesEngine


def sparse_reward(rules: RulesEngine, position: Position) -> float:
    """Score a post-move position.

    Args:
        rules: Rules engine used to detect the outcome.
        position: Position after the move was applied.

    Returns:
        Reward in {-1.0, 0.0, 1.0}.
    """
    outcome = rules.outcome(position)
    if outcome is None or outcome.winner is None:
        return 0.0
    return 1.0 if outcome.winner == position.turn else -1.0
