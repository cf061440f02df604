"""
State/action vector codecs.
"""

from dqnchess.codec.action import ACTION_SIZE, decode_action, encode_action
from dqnchess.codec.bitboard import join, split
from dqnchess.codec.state import (
    STATE_SCHEMA_VERSION,
    STATE_SIZE,
    decode_state,
    encode_state,
)

__all__ = [
    "ACTION_SIZE",
    "STATE_SCHEMA_VERSION",
    "STATE_SIZE",
    "decode_action",
    "decode_state",
    "encode_action",
    "encode_state",
    "join",
    "split",
]
