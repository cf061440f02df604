"""
Move <-> 6-slot action vector codec.

Slot layout: [kind, role, from, capture + 1, to, promotion + 1]

Kinds:
- 0 normal:     all slots; capture/promotion are 0 when absent
- 1 en passant: from, to
- 2 castle:     from = king origin, to = rook origin
- 3 put:        role, to
Unused slots are written as 0 and ignored on decode.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Final

import numpy as np

from dqnchess.env.position import (
    CastleMove,
    EnPassantMove,
    Move,
    NormalMove,
    PutMove,
    Role,
)
from dqnchess.errors import InvalidActionError
from dqnchess.types import Vector

ACTION_SIZE: Final[int] = 6

_KIND: Final[int] = 0
_ROLE: Final[int] = 1
_FROM: Final[int] = 2
_CAPTURE: Final[int] = 3
_TO: Final[int] = 4
_PROMOTION: Final[int] = 5


class MoveKind(IntEnum):
    """Action discriminant values."""

    NORMAL = 0
    EN_PASSANT = 1
    CASTLE = 2
    PUT = 3


def _optional_role(role: Role | None) -> int:
    """Encode an optional role with 0 reserved for None."""
    return 0 if role is None else int(role) + 1


def encode_action(move: Move) -> Vector:
    """Encode a move into an action vector of shape (ACTION_SIZE,)."""
    match move:
        case NormalMove():
            slots = [
                MoveKind.NORMAL,
                int(move.role),
                move.from_square,
                _optional_role(move.capture),
                move.to_square,
                _optional_role(move.promotion),
            ]
        case EnPassantMove():
            slots = [
                MoveKind.EN_PASSANT,
                0,
                move.from_square,
                0,
                move.to_square,
                0,
            ]
        case CastleMove():
            slots = [MoveKind.CASTLE, 0, move.king, 0, move.rook, 0]
        case PutMove():
            slots = [MoveKind.PUT, int(move.role), 0, 0, move.to_square, 0]
        case _:
            raise TypeError(f"unsupported move type: {type(move)}")
    return np.asarray(slots, dtype=np.float64)


def _slot_int(vector: Vector, index: int) -> int:
    """Read an integral slot.

    Raises:
        InvalidActionError: If the slot is fractional or not finite.
    """
    value = float(vector[index])
    if not np.isfinite(value) or value != np.floor(value):
        raise InvalidActionError(f"slot {index} is not an integer: {value}")
    return int(value)


def _square(vector: Vector, index: int) -> int:
    square = _slot_int(vector, index)
    if not 0 <= square < 64:
        raise InvalidActionError(
            f"square out of range in slot {index}: {square}"
        )
    return square


def _role(value: int, index: int) -> Role:
    try:
        return Role(value)
    except ValueError as exc:
        raise InvalidActionError(
            f"role out of range in slot {index}: {value}"
        ) from exc


def _decode_optional_role(vector: Vector, index: int) -> Role | None:
    """Undo the +1 offset of an optional role slot (applied exactly once)."""
    value = _slot_int(vector, index)
    if value == 0:
        return None
    return _role(value - 1, index)


def decode_action(vector: Vector) -> Move:
    """Decode an action vector into a move.

    Raises:
        InvalidActionError: If the discriminant is not 0..3 or a field is
            out of range.
    """
    vector = np.asarray(vector)
    if vector.shape != (ACTION_SIZE,):
        raise InvalidActionError(
            f"expected shape ({ACTION_SIZE},), got {vector.shape}"
        )
    kind = _slot_int(vector, _KIND)
    if kind == MoveKind.NORMAL:
        return NormalMove(
            role=_role(_slot_int(vector, _ROLE), _ROLE),
            from_square=_square(vector, _FROM),
            capture=_decode_optional_role(vector, _CAPTURE),
            to_square=_square(vector, _TO),
            promotion=_decode_optional_role(vector, _PROMOTION),
        )
    if kind == MoveKind.EN_PASSANT:
        return EnPassantMove(
            from_square=_square(vector, _FROM), to_square=_square(vector, _TO)
        )
    if kind == MoveKind.CASTLE:
        return CastleMove(
            king=_square(vector, _FROM), rook=_square(vector, _TO)
        )
    if kind == MoveKind.PUT:
        return PutMove(
            role=_role(_slot_int(vector, _ROLE), _ROLE),
            to_square=_square(vector, _TO),
        )
    raise InvalidActionError(f"invalid action discriminant: {kind}")


def feature_scale() -> Vector:
    """Return per-slot divisors mapping raw slots into [0, 1]."""
    return np.asarray([3.0, 5.0, 63.0, 6.0, 63.0, 6.0], dtype=np.float64)
