"""Tests for the Position <-> state vector codec."""

from __future__ import annotations

import chess
import numpy as np
import pytest

from dqnchess.codec.state import (
    STATE_SIZE,
    decode_state,
    encode_state,
    feature_scale,
)
from dqnchess.env.position import Color, Position
from dqnchess.env.rules import ChessRules, position_from_board
from dqnchess.errors import InvalidPositionError, PrecisionError


def _position(fen: str) -> Position:
    """Build a Position from a FEN string."""
    return position_from_board(chess.Board(fen))


def test_initial_position_roundtrip() -> None:
    """The initial position survives encode/decode unchanged."""
    rules = ChessRules()
    position = rules.initial_position()
    vector = encode_state(position)
    assert vector.shape == (STATE_SIZE,)
    assert vector.dtype == np.float64
    assert decode_state(vector) == position


def test_initial_position_slots() -> None:
    """Slots hold split masks and game counters in their fixed places."""
    vector = encode_state(ChessRules().initial_position())
    # Pawns on ranks 2 and 7.
    assert vector[0] == 65280.0
    assert vector[1] == 16711680.0
    # White to move, clocks reset, no en-passant square.
    assert vector[16] == 0.0
    assert vector[17] == 0.0
    assert vector[18] == 1.0
    assert vector[19] == 0.0
    # Rooks on a1/h1 and a8/h8 may castle.
    assert vector[22] == float(0x81)
    assert vector[23] == float(0x81000000)


def test_played_positions_roundtrip() -> None:
    """Every position of a short game roundtrips."""
    rules = ChessRules()
    position = rules.initial_position()
    for text in ["e2e4", "d7d5", "e4d5", "g8f6", "f1b5", "c7c6"]:
        move = rules.parse_matching(text, rules.legal_moves(position))
        assert move is not None
        position = rules.apply(position, move)
        assert decode_state(encode_state(position)) == position
    assert position.turn == Color.WHITE
    assert position.fullmoves == 4


def test_en_passant_square_offset() -> None:
    """The en-passant slot stores square + 1 and decodes back."""
    position = _position("4k3/8/8/3pP3/8/8/8/4K3 w - d6 0 2")
    assert position.ep_square == chess.D6
    vector = encode_state(position)
    assert vector[19] == float(chess.D6 + 1)
    assert decode_state(vector).ep_square == chess.D6


def test_en_passant_slot_out_of_range() -> None:
    """An en-passant slot above 64 is rejected."""
    vector = encode_state(ChessRules().initial_position())
    vector[19] = 65.0
    with pytest.raises(InvalidPositionError):
        decode_state(vector)


def test_float32_initial_position_raises() -> None:
    """float32 cannot hold the castling high half of the initial position."""
    with pytest.raises(PrecisionError):
        encode_state(ChessRules().initial_position(), np.dtype(np.float32))


def test_float32_small_masks_allowed() -> None:
    """float32 works when every half stays below 2**24."""
    # Kings on e1 and e3 only; all halves are small.
    position = _position("8/8/8/8/8/4k3/8/4K3 w - - 0 1")
    vector = encode_state(position, np.dtype(np.float32))
    assert vector.dtype == np.float32
    assert decode_state(vector) == position


def test_overlapping_role_masks_rejected() -> None:
    """A square claimed by two roles cannot be decoded."""
    base = ChessRules().initial_position()
    broken = Position(
        pawns=base.pawns,
        knights=base.knights | (1 << chess.E2),
        bishops=base.bishops,
        rooks=base.rooks,
        queens=base.queens,
        kings=base.kings,
        white=base.white,
        black=base.black,
        castling_rights=base.castling_rights,
    )
    with pytest.raises(InvalidPositionError):
        decode_state(encode_state(broken))


def test_color_masks_must_match_roles() -> None:
    """Color masks that miss an occupied square are rejected."""
    base = ChessRules().initial_position()
    broken = Position(
        pawns=base.pawns,
        knights=base.knights,
        bishops=base.bishops,
        rooks=base.rooks,
        queens=base.queens,
        kings=base.kings,
        white=base.white & ~(1 << chess.E2),
        black=base.black,
        castling_rights=base.castling_rights,
    )
    with pytest.raises(InvalidPositionError):
        decode_state(encode_state(broken))


def test_missing_king_rejected() -> None:
    """A board without a black king fails the rules check."""
    lone_king = 1 << chess.E1
    position = Position(
        pawns=0,
        knights=0,
        bishops=0,
        rooks=0,
        queens=0,
        kings=lone_king,
        white=lone_king,
        black=0,
    )
    with pytest.raises(InvalidPositionError):
        decode_state(encode_state(position))


def test_malformed_vectors_rejected() -> None:
    """Wrong shapes and non-integral slots are rejected."""
    with pytest.raises(InvalidPositionError):
        decode_state(np.zeros((STATE_SIZE - 1,)))
    vector = encode_state(ChessRules().initial_position())
    vector[17] = 0.5
    with pytest.raises(InvalidPositionError):
        decode_state(vector)
    vector = encode_state(ChessRules().initial_position())
    vector[16] = 2.0
    with pytest.raises(InvalidPositionError):
        decode_state(vector)


def test_feature_scale_maps_initial_position_into_unit_range() -> None:
    """Scaled slots of the initial position stay within [0, 1]."""
    scaled = encode_state(ChessRules().initial_position()) / feature_scale()
    assert np.all(scaled >= 0.0)
    assert np.all(scaled <= 1.0)
