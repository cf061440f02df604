"""
python-chess wrapper implementing the RulesEngine protocol.

The wrapper exists to:
- keep chess.Board/chess.Move out of the codecs and loops
- convert between python-chess objects and Position/Move values
- surface rule violations as project errors
"""

from __future__ import annotations

import chess

from dqnchess.env.position import (
    CastleMove,
    Color,
    EnPassantMove,
    Move,
    NormalMove,
    Outcome,
    Position,
    PutMove,
    Role,
)
from dqnchess.errors import IllegalMoveError, InvalidPositionError


def _role_from_piece_type(piece_type: chess.PieceType) -> Role:
    """Map a python-chess piece type (1..6) to a Role (0..5)."""
    return Role(piece_type - 1)


def _piece_type_from_role(role: Role) -> chess.PieceType:
    """Map a Role (0..5) to a python-chess piece type (1..6)."""
    return chess.PieceType(int(role) + 1)


def board_from_position(position: Position) -> chess.Board:
    """Build a python-chess board from a Position.

    Args:
        position: Position to convert.

    Returns:
        A board with an empty move stack. It is not validated.
    """
    board = chess.Board(None)
    # Copy masks directly; python-chess stores the same bit layout.
    board.pawns = position.pawns
    board.knights = position.knights
    board.bishops = position.bishops
    board.rooks = position.rooks
    board.queens = position.queens
    board.kings = position.kings
    board.occupied_co[chess.WHITE] = position.white
    board.occupied_co[chess.BLACK] = position.black
    board.occupied = position.white | position.black
    board.promoted = position.promoted
    # Game-state counters and rights.
    board.turn = chess.WHITE if position.turn is Color.WHITE else chess.BLACK
    board.castling_rights = position.castling_rights
    board.ep_square = position.ep_square
    board.halfmove_clock = position.halfmoves
    board.fullmove_number = position.fullmoves
    return board


def position_from_board(board: chess.Board) -> Position:
    """Snapshot a python-chess board into a Position.

    The en-passant square is kept only when an en-passant capture is legal,
    so that equal positions compare equal.
    """
    ep_square = board.ep_square if board.has_legal_en_passant() else None
    return Position(
        pawns=board.pawns,
        knights=board.knights,
        bishops=board.bishops,
        rooks=board.rooks,
        queens=board.queens,
        kings=board.kings,
        white=board.occupied_co[chess.WHITE],
        black=board.occupied_co[chess.BLACK],
        turn=Color.WHITE if board.turn == chess.WHITE else Color.BLACK,
        halfmoves=board.halfmove_clock,
        fullmoves=board.fullmove_number,
        ep_square=ep_square,
        castling_rights=board.clean_castling_rights(),
        promoted=board.promoted,
    )


def _castling_rook(board: chess.Board, move: chess.Move) -> chess.Square:
    """Return the rook origin square of a castling move."""
    # King-takes-own-rook notation already names the rook square.
    if board.piece_type_at(move.to_square) == chess.ROOK:
        return move.to_square
    rank = chess.square_rank(move.from_square)
    if chess.square_file(move.to_square) > chess.square_file(move.from_square):
        return chess.square(7, rank)
    return chess.square(0, rank)


def move_from_chess(board: chess.Board, move: chess.Move) -> Move:
    """Classify a python-chess move in the context of a board.

    Args:
        board: Board the move is played on.
        move: python-chess move.

    Returns:
        The tagged Move value.

    Raises:
        IllegalMoveError: If the origin square is empty.
    """
    if move.drop is not None:
        return PutMove(
            role=_role_from_piece_type(move.drop), to_square=move.to_square
        )
    if board.is_castling(move):
        return CastleMove(
            king=move.from_square, rook=_castling_rook(board, move)
        )
    if board.is_en_passant(move):
        return EnPassantMove(
            from_square=move.from_square, to_square=move.to_square
        )
    piece_type = board.piece_type_at(move.from_square)
    if piece_type is None:
        square = chess.square_name(move.from_square)
        raise IllegalMoveError(f"no piece on {square}")
    captured = board.piece_type_at(move.to_square)
    return NormalMove(
        role=_role_from_piece_type(piece_type),
        from_square=move.from_square,
        capture=None if captured is None else _role_from_piece_type(captured),
        to_square=move.to_square,
        promotion=(
            None
            if move.promotion is None
            else _role_from_piece_type(move.promotion)
        ),
    )


def move_to_chess(move: Move) -> chess.Move:
    """Convert a tagged Move into a python-chess move (standard notation)."""
    match move:
        case NormalMove(
            from_square=from_square, to_square=to_square, promotion=promotion
        ):
            return chess.Move(
                from_square,
                to_square,
                promotion=(
                    None
                    if promotion is None
                    else _piece_type_from_role(promotion)
                ),
            )
        case EnPassantMove(from_square=from_square, to_square=to_square):
            return chess.Move(from_square, to_square)
        case CastleMove(king=king, rook=rook):
            # Standard chess writes castling as the king's two-square step.
            rank = chess.square_rank(king)
            kingside = chess.square_file(rook) > chess.square_file(king)
            return chess.Move(king, chess.square(6 if kingside else 2, rank))
        case PutMove(role=role, to_square=to_square):
            return chess.Move(
                to_square, to_square, drop=_piece_type_from_role(role)
            )
    raise TypeError(f"unsupported move type: {type(move)}")


class ChessRules:
    """Standard chess rules backed by python-chess."""

    def initial_position(self) -> Position:
        """Return the standard starting position."""
        return position_from_board(chess.Board())

    def legal_moves(self, position: Position) -> list[Move]:
        """Return legal moves in python-chess generation order."""
        board = board_from_position(position)
        return [move_from_chess(board, move) for move in board.legal_moves]

    def apply(self, position: Position, move: Move) -> Position:
        """Play a move and return the resulting position.

        Raises:
            IllegalMoveError: If the move is not legal in position.
        """
        board = board_from_position(position)
        chess_move = move_to_chess(move)
        # The tagged fields must agree with the board, not just the squares.
        if not board.is_legal(chess_move) or move_from_chess(
            board, chess_move
        ) != move:
            raise IllegalMoveError(
                f"illegal move {chess_move.uci()} in {board.fen()}"
            )
        board.push(chess_move)
        return position_from_board(board)

    def outcome(self, position: Position) -> Outcome | None:
        """Return checkmate/stalemate/insufficient-material style outcomes."""
        result = board_from_position(position).outcome(claim_draw=False)
        if result is None:
            return None
        if result.winner is None:
            return Outcome(winner=None)
        return Outcome(
            winner=Color.WHITE if result.winner == chess.WHITE else Color.BLACK
        )

    def validate(self, position: Position) -> None:
        """Reject layouts python-chess considers invalid.

        Raises:
            InvalidPositionError: If the board status is not valid.
        """
        board = board_from_position(position)
        status = board.status()
        if status != chess.STATUS_VALID:
            raise InvalidPositionError(f"invalid position: {status!r}")

    def render(self, move: Move) -> str:
        """Render a move in UCI notation."""
        return move_to_chess(move).uci()

    def parse_matching(self, text: str, legal_moves: list[Move]) -> Move | None:
        """Return the legal move whose UCI text equals text, if any."""
        for move in legal_moves:
            if self.render(move) == text:
                return move
        return None

    def board_text(self, position: Position) -> str:
        """Return an ASCII diagram of the board."""
        return str(board_from_position(position))

    def fen(self, position: Position) -> str:
        """Return the FEN of a position."""
        return board_from_position(position).fen()
