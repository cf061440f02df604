"""Tests for PGN formatting of self-play games."""

from __future__ import annotations

import io
from datetime import date
from pathlib import Path

import chess.pgn

from dqnchess.pgn.writer import (
    PgnHeaders,
    episode_pgn,
    format_pgn,
    write_pgn_file,
)
from dqnchess.selfplay.trajectory import EpisodeSummary
from dqnchess.types import EpisodeId


def test_format_and_write_pgn(tmp_path: Path) -> None:
    """format_pgn and write_pgn_file output valid PGN."""
    # Build headers and a short move list.
    headers = PgnHeaders(
        event="SelfPlay",
        site="Local",
        date=date(2025, 1, 1),
        round="1",
        white="White",
        black="Black",
        result="1-0",
    )
    moves = ["e2e4", "e7e5", "g1f3"]
    pgn = format_pgn(headers, moves)
    # Validate headers and movetext content.
    assert '[Event "SelfPlay"]' in pgn
    assert '[Date "2025.01.01"]' in pgn
    assert "1. e2e4 e7e5 2. g1f3 1-0" in pgn

    path = tmp_path / "game.pgn"
    write_pgn_file(path, pgn)
    assert path.read_text(encoding="utf-8") == pgn


def test_long_movetext_wraps_under_80_columns() -> None:
    """Movetext lines stay within the PGN export width."""
    headers = PgnHeaders(
        event="SelfPlay",
        site="Local",
        date=date(2025, 1, 1),
        round="1",
        white="A",
        black="B",
        result="*",
    )
    moves = ["g1f3", "g8f6", "f3g1", "f6g8"] * 20
    pgn = format_pgn(headers, moves)
    movetext = pgn.split("\n\n", 1)[1].strip().splitlines()
    assert len(movetext) > 1
    assert all(len(line) < 80 for line in movetext)
    assert movetext[-1].endswith("*")


def test_episode_pgn_is_readable_by_python_chess() -> None:
    """python-chess parses the exported game back to the same moves."""
    summary = EpisodeSummary(
        episode=EpisodeId(4),
        plies=4,
        final_reward=-1.0,
        result="0-1",
        mean_loss=None,
        moves=["f2f3", "e7e5", "g2g4", "d8h4"],
    )
    pgn = episode_pgn(summary, "dqnchess", date(2026, 3, 2))
    assert '[Round "5"]' in pgn

    game = chess.pgn.read_game(io.StringIO(pgn))
    assert game is not None
    assert [move.uci() for move in game.mainline_moves()] == summary.moves
    assert game.headers["Result"] == "0-1"
    assert game.end().board().is_checkmate()
