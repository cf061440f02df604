"""
Engine-independent game data: roles, colors, positions and moves.

Squares are indexed 0..63 with a1 = 0, b1 = 1, ..., h8 = 63. Every mask is a
64-bit integer where bit i marks square i.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class Role(IntEnum):
    """Piece role; the value is the role index used by both codecs."""

    PAWN = 0
    KNIGHT = 1
    BISHOP = 2
    ROOK = 3
    QUEEN = 4
    KING = 5


class Color(IntEnum):
    """Side identifier; the value is the side-to-move slot value."""

    WHITE = 0
    BLACK = 1

    def other(self) -> Color:
        """Return the opposing color."""
        return Color.BLACK if self is Color.WHITE else Color.WHITE


@dataclass(frozen=True, slots=True)
class Position:
    """Immutable snapshot of a chess position.

    Attributes:
        pawns .. kings: Occupancy masks per role (both colors).
        white, black: Occupancy masks per color.
        turn: Side to move.
        halfmoves: Plies since the last capture or pawn move.
        fullmoves: Move counter, starts at 1.
        ep_square: En-passant target square when a capture is legal.
        castling_rights: Mask of rook origin squares that may still castle.
        promoted: Mask of pieces that were promoted.
    """

    pawns: int
    knights: int
    bishops: int
    rooks: int
    queens: int
    kings: int
    white: int
    black: int
    turn: Color = Color.WHITE
    halfmoves: int = 0
    fullmoves: int = 1
    ep_square: int | None = None
    castling_rights: int = 0
    promoted: int = 0

    def role_masks(self) -> tuple[int, int, int, int, int, int]:
        """Return role masks ordered by Role value."""
        return (
            self.pawns,
            self.knights,
            self.bishops,
            self.rooks,
            self.queens,
            self.kings,
        )

    def color_masks(self) -> tuple[int, int]:
        """Return color masks ordered by Color value."""
        return (self.white, self.black)


@dataclass(frozen=True, slots=True)
class NormalMove:
    """A regular move, possibly a capture and/or a promotion."""

    role: Role
    from_square: int
    capture: Role | None
    to_square: int
    promotion: Role | None = None


@dataclass(frozen=True, slots=True)
class EnPassantMove:
    """An en-passant pawn capture."""

    from_square: int
    to_square: int


@dataclass(frozen=True, slots=True)
class CastleMove:
    """Castling, identified by the king and rook origin squares."""

    king: int
    rook: int


@dataclass(frozen=True, slots=True)
class PutMove:
    """Placement of a piece from reserve (drop variants)."""

    role: Role
    to_square: int


type Move = NormalMove | EnPassantMove | CastleMove | PutMove


@dataclass(frozen=True, slots=True)
class Outcome:
    """Decided game result; winner None means draw."""

    winner: Color | None

    @property
    def decisive(self) -> bool:
        """Return True if one side won."""
        return self.winner is not None

    def result_token(self) -> str:
        """Return the PGN result token."""
        if self.winner is Color.WHITE:
            return "1-0"
        if self.winner is Color.BLACK:
            return "0-1"
        return "1/2-1/2"
