"""
Position <-> fixed-length state vector codec.

Slot layout (STATE_SIZE = 24):
- 0..11:  pawn, knight, bishop, rook, queen, king masks as (low, high)
- 12..15: white, black masks as (low, high)
- 16:     side to move (0 white, 1 black)
- 17:     halfmove clock
- 18:     fullmove counter
- 19:     en-passant square + 1 (0 means none)
- 20..21: promoted mask as (low, high)
- 22..23: castling-rights mask as (low, high)
"""

from __future__ import annotations

from typing import Final

import numpy as np

from dqnchess.codec.bitboard import join, split_to_floats, to_float
from dqnchess.env.position import Color, Position
from dqnchess.env.rules import ChessRules
from dqnchess.errors import InvalidPositionError
from dqnchess.types import RulesEngine, Vector

STATE_SIZE: Final[int] = 24
# Bumped whenever the slot layout changes; persisted next to model params.
STATE_SCHEMA_VERSION: Final[int] = 1

_BOARD_SLOTS: Final[int] = 16
_TURN: Final[int] = 16
_HALFMOVES: Final[int] = 17
_FULLMOVES: Final[int] = 18
_EP_SQUARE: Final[int] = 19
_PROMOTED: Final[int] = 20
_CASTLING: Final[int] = 22

_HALF_SCALE: Final[float] = float(2**32)


def encode_state(
    position: Position, dtype: np.dtype = np.dtype(np.float64)
) -> Vector:
    """Encode a position into a state vector.

    Args:
        position: Position to encode.
        dtype: Floating dtype of the output vector.

    Returns:
        Array of shape (STATE_SIZE,).

    Raises:
        PrecisionError: If dtype cannot store a mask half exactly.
    """
    slots: list[float] = []
    # Role masks then color masks, two slots each.
    for mask in (*position.role_masks(), *position.color_masks()):
        slots.extend(split_to_floats(mask, dtype))
    slots.append(float(int(position.turn)))
    slots.append(to_float(position.halfmoves, dtype))
    slots.append(to_float(position.fullmoves, dtype))
    # Offset by one so that square 0 (a1) is distinct from "none".
    ep = 0 if position.ep_square is None else position.ep_square + 1
    slots.append(float(ep))
    slots.extend(split_to_floats(position.promoted, dtype))
    slots.extend(split_to_floats(position.castling_rights, dtype))
    return np.asarray(slots, dtype=dtype)


def _slot_int(vector: Vector, index: int) -> int:
    """Read a slot that must hold a non-negative integer.

    Raises:
        InvalidPositionError: If the slot is negative, fractional or not finite.
    """
    value = float(vector[index])
    if not np.isfinite(value) or value < 0 or value != np.floor(value):
        raise InvalidPositionError(
            f"slot {index} is not a non-negative integer"
        )
    return int(value)


def _join_slots(vector: Vector, index: int) -> int:
    """Join the (low, high) slot pair starting at index."""
    try:
        return join(_slot_int(vector, index), _slot_int(vector, index + 1))
    except ValueError as exc:
        raise InvalidPositionError(
            f"slots {index}..{index + 1}: {exc}"
        ) from exc


def _check_layout(position: Position) -> None:
    """Check mask consistency before asking the rules engine.

    Raises:
        InvalidPositionError: If role masks overlap or colors do not
            partition the occupied squares.
    """
    occupied = 0
    for mask in position.role_masks():
        if occupied & mask:
            raise InvalidPositionError("role masks are not disjoint")
        occupied |= mask
    if position.white & position.black:
        raise InvalidPositionError("color masks overlap")
    if position.white | position.black != occupied:
        raise InvalidPositionError("color masks do not match role masks")


def decode_state(vector: Vector, rules: RulesEngine | None = None) -> Position:
    """Decode a state vector back into a position.

    Args:
        vector: Array of shape (STATE_SIZE,).
        rules: Rules engine used for the final legality check; defaults to
            standard chess.

    Returns:
        Reconstructed Position.

    Raises:
        InvalidPositionError: If the vector does not describe a legal position.
    """
    vector = np.asarray(vector)
    if vector.shape != (STATE_SIZE,):
        raise InvalidPositionError(
            f"expected shape ({STATE_SIZE},), got {vector.shape}"
        )
    masks = [_join_slots(vector, index) for index in range(0, _BOARD_SLOTS, 2)]
    turn = _slot_int(vector, _TURN)
    if turn > 1:
        raise InvalidPositionError(f"side to move must be 0 or 1, got {turn}")
    fullmoves = _slot_int(vector, _FULLMOVES)
    if fullmoves < 1:
        raise InvalidPositionError("fullmove counter must be at least 1")
    ep = _slot_int(vector, _EP_SQUARE)
    if ep > 64:
        raise InvalidPositionError(f"en-passant slot out of range: {ep}")

    position = Position(
        pawns=masks[0],
        knights=masks[1],
        bishops=masks[2],
        rooks=masks[3],
        queens=masks[4],
        kings=masks[5],
        white=masks[6],
        black=masks[7],
        turn=Color(turn),
        halfmoves=_slot_int(vector, _HALFMOVES),
        fullmoves=fullmoves,
        ep_square=None if ep == 0 else ep - 1,
        castling_rights=_join_slots(vector, _CASTLING),
        promoted=_join_slots(vector, _PROMOTED),
    )
    _check_layout(position)
    if rules is None:
        rules = ChessRules()
    rules.validate(position)
    return position


def feature_scale() -> Vector:
    """Return per-slot divisors mapping raw slots into roughly [0, 1]."""
    scale = np.ones((STATE_SIZE,), dtype=np.float64)
    scale[:_BOARD_SLOTS] = _HALF_SCALE
    scale[_HALFMOVES] = 100.0
    scale[_FULLMOVES] = 200.0
    scale[_EP_SQUARE] = 64.0
    scale[_PROMOTED : _PROMOTED + 2] = _HALF_SCALE
    scale[_CASTLING : _CASTLING + 2] = _HALF_SCALE
    return scale
