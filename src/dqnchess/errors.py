"""
Exception hierarchy shared by the codecs, loops and persistence.
"""

from __future__ import annotations


class DqnChessError(Exception):
    """Base class for all project errors."""


class InvalidPositionError(DqnChessError):
    """A decoded state vector does not describe a legal position."""


class InvalidActionError(DqnChessError):
    """An action vector has an unknown discriminant or a bad field."""


class IllegalMoveError(DqnChessError):
    """The rules engine rejected a move drawn from its own legal set."""


class PersistenceError(DqnChessError):
    """Model parameters could not be saved or loaded."""


class InputParseError(DqnChessError):
    """Interactive text input matched no legal move."""


class NoLegalActionError(DqnChessError):
    """The learner returned no action for a non-empty candidate set."""


class PrecisionError(DqnChessError, ValueError):
    """A bitboard half cannot be stored exactly in the requested float type."""
