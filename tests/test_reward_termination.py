"""Tests for the sparse reward and the termination policy."""

from __future__ import annotations

import chess

from dqnchess.env.position import Outcome, Position
from dqnchess.env.rules import ChessRules, position_from_board
from dqnchess.selfplay.reward import sparse_reward
from dqnchess.selfplay.termination import HALFMOVE_LIMIT, ChessTermination


def _position(fen: str) -> Position:
    """Build a Position from a FEN string."""
    return position_from_board(chess.Board(fen))


def test_reward_is_zero_while_undecided() -> None:
    """Ongoing games score zero."""
    rules = ChessRules()
    assert sparse_reward(rules, rules.initial_position()) == 0.0


def test_reward_for_checkmated_side_to_move() -> None:
    """The mated side to move sees -1."""
    rules = ChessRules()
    mated = _position(
        "rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 1 3"
    )
    assert sparse_reward(rules, mated) == -1.0


class SideToMoveWinsRules(ChessRules):
    """Rules engine that declares the side to move the winner."""

    def outcome(self, position: Position) -> Outcome | None:
        """Return a win for position.turn."""
        return Outcome(winner=position.turn)


def test_reward_when_side_to_move_wins() -> None:
    """A decisive result in favor of the side to move scores +1."""
    rules = SideToMoveWinsRules()
    position = rules.initial_position()
    assert sparse_reward(rules, position) == 1.0


def test_reward_for_stalemate_is_zero() -> None:
    """Stalemate is a draw and scores zero."""
    rules = ChessRules()
    stalemate = _position("7k/5Q2/6K1/8/8/8/8/8 b - - 0 1")
    outcome = rules.outcome(stalemate)
    assert outcome is not None and not outcome.decisive
    assert sparse_reward(rules, stalemate) == 0.0


def test_termination_halfmove_boundary() -> None:
    """The halfmove cap triggers at 100, not at 99."""
    rules = ChessRules()
    termination = ChessTermination(rules)
    assert HALFMOVE_LIMIT == 100
    fen = "4k3/8/8/8/8/8/8/R3K3 w - - {clock} 80"
    assert not termination.should_stop(_position(fen.format(clock=99)))
    assert termination.should_stop(_position(fen.format(clock=100)))


def test_termination_on_mate_and_start() -> None:
    """Decided positions stop; the initial position does not."""
    rules = ChessRules()
    termination = ChessTermination(rules)
    assert not termination.should_stop(rules.initial_position())
    assert termination.should_stop(
        _position("rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 1 3")
    )


def test_termination_custom_limit() -> None:
    """A smaller cap is honored."""
    rules = ChessRules()
    termination = ChessTermination(rules, halfmove_limit=10)
    assert termination.should_stop(
        _position("4k3/8/8/8/8/8/8/R3K3 w - - 10 30")
    )
