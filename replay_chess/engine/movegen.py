"""Legal move generation: generate broadly, then filter by king safety."""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Tuple

from .move import Move
from .piece import Colour, Piece, Position, Role
from .square import DOWN, UP, Square


# (rook file, rook destination file, king destination file, files that must be empty)
_CASTLES: Tuple[Tuple[int, int, int, Tuple[int, ...]], ...] = (
    (7, 5, 6, (5, 6)),
    (0, 3, 2, (1, 2, 3)),
)


def _no_history() -> str:
    return ""


class MoveGenerator:
    """Legal moves for the side that owns ``king``.

    Args:
        position (Position): Current position. It is toggled in place while
            filtering and restored before :meth:`generate` returns.
        king (Piece): King of the side to move.
        last_move (Optional[Move]): Previous move, needed for en passant.
        history (Callable[[], str]): Lazily supplies the move text played so far;
            a king or rook whose home token appears there has lost castling.
    """

    def __init__(
        self,
        position: Position,
        king: Piece,
        last_move: Optional[Move] = None,
        history: Callable[[], str] = _no_history,
    ) -> None:
        self.position = position
        self.king = king
        self.last_move = last_move
        self.history = history
        self.check_count = 0

    def generate(self) -> List[Move]:
        position = self.position
        self.check_count = position.checks(self.king, count_all=True)
        moves: List[Move] = []
        if self.check_count == 0:
            self._castling(moves)
        if self.check_count <= 1:
            for piece in position.pieces_of(self.king.colour):
                _ALGORITHMS[piece.role](self, piece, moves)
        else:
            # only the king can answer a double check
            self._jumping(self.king, moves)
        return self._remove_illegal(moves)

    def _remove_illegal(self, moves: List[Move]) -> List[Move]:
        position = self.position
        legal = []
        for move in moves:
            pieces = move.pieces
            target = move.p2 if move.p2.role is Role.KING else self.king
            position.toggle(pieces)
            safe = position.checks(target) == 0
            position.toggle(pieces)
            if safe:
                legal.append(move)
        return legal

    def _pawn(self, piece: Piece, moves: List[Move]) -> None:
        position = self.position
        white = piece.colour is Colour.WHITE
        push = UP if white else DOWN

        to1 = piece.shift(push)
        if to1 is not None and position[to1.square] is None:
            moves.append(Move(piece, to1))
            if piece.square.rank == (1 if white else 6):
                to2 = to1.shift(push)
                if to2 is not None and position[to2.square] is None:
                    moves.append(Move(piece, to2))

        last = self.last_move
        for attack in Role.PAWN.offsets(piece.colour):
            to = piece.shift(attack)
            if to is None:
                continue
            capture = position[to.square]
            if capture is not None:
                if capture.colour is not piece.colour:
                    moves.append(Move(piece, to, capture))
            elif (
                last is not None
                and last.p2.role is Role.PAWN
                and abs(last.p1.square.rank - last.p2.square.rank) == 2
                and last.p2.square.rank == piece.square.rank
                and last.p2.square.file == to.square.file
            ):
                # en passant
                moves.append(Move(piece, to, last.p2))

    def _jumping(self, piece: Piece, moves: List[Move]) -> None:
        position = self.position
        for offset in piece.role.offsets():
            to = piece.shift(offset)
            if to is None:
                continue
            capture = position[to.square]
            if capture is None:
                moves.append(Move(piece, to))
            elif capture.colour is not piece.colour:
                moves.append(Move(piece, to, capture))

    def _sliding(self, piece: Piece, moves: List[Move]) -> None:
        position = self.position
        for direction in piece.role.offsets():
            for square in piece.square.ray(direction):
                capture = position[square]
                if capture is None:
                    moves.append(Move(piece, piece.moved_to(square)))
                    continue
                if capture.colour is not piece.colour:
                    moves.append(Move(piece, piece.moved_to(square), capture))
                break

    def _castling(self, moves: List[Move]) -> None:
        king = self.king
        rank = 0 if king.colour is Colour.WHITE else 7
        if king.square != Square(4, rank):
            return
        history = self.history()
        if king.token in history:
            return
        position = self.position
        for rook_file, rook_to_file, king_to_file, between in _CASTLES:
            if any(position[Square(f, rank)] is not None for f in between):
                continue
            corner = position[Square(rook_file, rank)]
            if corner is None or corner.role is not Role.ROOK or corner.colour is not king.colour:
                continue
            rook_to = corner.moved_to(Square(rook_to_file, rank))
            # Only the rook's landing square is tested for attack. It is also the
            # square the king crosses, and the king's own landing square is
            # covered by the legality filter.
            if corner.token not in history and position.checks(rook_to) == 0:
                king_to = king.moved_to(Square(king_to_file, rank))
                moves.append(Move(king, king_to, corner, rook_to))


_ALGORITHMS: Dict[Role, Callable[[MoveGenerator, Piece, List[Move]], None]] = {
    Role.PAWN: MoveGenerator._pawn,
    Role.KNIGHT: MoveGenerator._jumping,
    Role.KING: MoveGenerator._jumping,
    Role.BISHOP: MoveGenerator._sliding,
    Role.ROOK: MoveGenerator._sliding,
    Role.QUEEN: MoveGenerator._sliding,
}
