"""
Human vs. agent play from the terminal.

Turn structure:
- human turn: read a line, match it against the rendering of each legal
  move, reprompt (without changing the position) until one matches
- agent turn: pick the legal action with the highest learner value
The loop ends when the side to move has no legal moves or the game is
decided (insufficient material or the halfmove cap).
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from dqnchess.codec.action import decode_action, encode_action
from dqnchess.codec.state import encode_state
from dqnchess.env.position import Color, Move, Outcome, Position
from dqnchess.errors import InputParseError, NoLegalActionError
from dqnchess.selfplay.termination import HALFMOVE_LIMIT, ChessTermination
from dqnchess.types import Learner, RulesEngine


@dataclass(frozen=True, slots=True)
class PlayResult:
    """Final state of an interactive game."""

    position: Position
    outcome: Outcome | None
    moves: list[str]


def read_human_move(
    rules: RulesEngine, legal: list[Move], read_line: Callable[[], str]
) -> Move:
    """Read one line and match it against the legal moves.

    Raises:
        InputParseError: If the text matches no legal move.
    """
    text = read_line().strip()
    move = rules.parse_matching(text, legal)
    if move is None:
        raise InputParseError(f"not a legal move: {text!r}")
    return move


def choose_agent_move(
    learner: Learner, position: Position, legal: list[Move]
) -> Move:
    """Ask the learner for the best legal move.

    Raises:
        NoLegalActionError: If the learner returns no action.
    """
    actions = [encode_action(move) for move in legal]
    best = learner.best_action(encode_state(position), actions)
    if best is None:
        raise NoLegalActionError("learner returned no action")
    return decode_action(best)


def play_interactive(
    *,
    rules: RulesEngine,
    learner: Learner,
    human_color: Color = Color.WHITE,
    read_line: Callable[[], str] = input,
    write: Callable[[str], None] = print,
    board_text: Callable[[Position], str] | None = None,
    halfmove_limit: int = HALFMOVE_LIMIT,
) -> PlayResult:
    """Alternate human and agent moves until the game ends.

    Args:
        rules: Rules engine.
        learner: Trained learner, only read here.
        human_color: Side played by the human.
        read_line: Source of human input lines.
        write: Sink for board diagrams, prompts and moves.
        board_text: Optional board renderer.
        halfmove_limit: Halfmove clock value that ends the game.

    Returns:
        PlayResult with the final position and move list.
    """
    position = rules.initial_position()
    moves: list[str] = []
    termination = ChessTermination(rules, halfmove_limit=halfmove_limit)
    legal = rules.legal_moves(position)
    while legal and not termination.should_stop(position):
        if board_text is not None:
            write(board_text(position))
        if position.turn == human_color:
            write("Your move:")
            try:
                move = read_human_move(rules, legal, read_line)
            except InputParseError as exc:
                # Recoverable: show the options and ask again.
                write(str(exc))
                write(
                    "Legal moves: "
                    + " ".join(rules.render(candidate) for candidate in legal)
                )
                continue
        else:
            move = choose_agent_move(learner, position, legal)

        position = rules.apply(position, move)
        text = rules.render(move)
        moves.append(text)
        write(text)
        legal = rules.legal_moves(position)

    outcome = rules.outcome(position)
    write(
        f"Game over: {'*' if outcome is None else outcome.result_token()}"
    )
    return PlayResult(position=position, outcome=outcome, moves=moves)
