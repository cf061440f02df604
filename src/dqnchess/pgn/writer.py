"""
PGN writer for logged self-play games.

Outputs a PGN string and writes to /runs/<run_id>/games/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Final

from dqnchess.selfplay.trajectory import EpisodeSummary

# PGN export format keeps movetext lines under 80 characters.
_MAX_LINE: Final[int] = 79


@dataclass(frozen=True, slots=True)
class PgnHeaders:
    """Seven-tag-roster PGN headers."""

    event: str
    site: str
    date: date
    round: str
    white: str
    black: str
    result: str  # "1-0", "0-1", "1/2-1/2", "*"


def _movetext_tokens(moves: list[str], result: str) -> list[str]:
    """Number moves in white/black pairs and append the result token."""
    tokens: list[str] = []
    for idx, move in enumerate(moves):
        if idx % 2 == 0:
            tokens.append(f"{idx // 2 + 1}.")
        tokens.append(move)
    tokens.append(result)
    return tokens


def _wrap(tokens: list[str]) -> list[str]:
    """Greedily pack tokens into lines of at most _MAX_LINE characters."""
    lines: list[str] = []
    current = ""
    for token in tokens:
        candidate = f"{current} {token}" if current else token
        if len(candidate) > _MAX_LINE and current:
            lines.append(current)
            candidate = token
        current = candidate
    if current:
        lines.append(current)
    return lines


def format_pgn(headers: PgnHeaders, moves: list[str]) -> str:
    """Format headers + movetext into a PGN string."""
    roster = [
        ("Event", headers.event),
        ("Site", headers.site),
        ("Date", headers.date.strftime("%Y.%m.%d")),
        ("Round", headers.round),
        ("White", headers.white),
        ("Black", headers.black),
        ("Result", headers.result),
    ]
    header_lines = [f'[{key} "{value}"]' for key, value in roster]
    movetext = _wrap(_movetext_tokens(moves, headers.result))
    return "\n".join(header_lines) + "\n\n" + "\n".join(movetext) + "\n"


def episode_pgn(summary: EpisodeSummary, event: str, played_on: date) -> str:
    """Format a self-play episode as PGN (moves in UCI notation)."""
    headers = PgnHeaders(
        event=event,
        site="local",
        date=played_on,
        round=str(int(summary.episode) + 1),
        white="selfplay",
        black="selfplay",
        result=summary.result,
    )
    return format_pgn(headers, summary.moves)


def write_pgn_file(path: Path, pgn: str) -> None:
    """Write PGN to disk (UTF-8)."""
    path.write_text(pgn, encoding="utf-8")
