from __future__ import annotations

from dataclasses import dataclass
from itertools import islice
from typing import Dict, List, Optional, Tuple

from .errors import NotationError
from .piece import GLYPHS, LETTERS, Colour, Position, Role
from .square import DOWN, FILES, RANKS, UP, Square


STARTPOS_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

# Root token string of a fresh game: black pieces first, so white is to move.
START_POSITION = (
    "♜h8♟h7♞g8♟g7♝f8♟f7♚e8♟e7♛d8♟d7♝c8♟c7♞b8♟b7♜a8♟a7"
    "♙h2♖h1♙g2♘g1♙f2♗f1♙e2♔e1♙d2♕d1♙c2♗c1♙b2♘b1♙a2♖a1"
)

PIECE_TO_CHAR: Dict[Tuple[Colour, Role], str] = {v: k for k, v in LETTERS.items()}

_SIDES = {"w": Colour.WHITE, "b": Colour.BLACK}

# Castling right -> king and rook tokens that must still be on their home squares
_CASTLING: Dict[str, Tuple[str, str]] = {
    "K": ("♔e1", "♖h1"),
    "Q": ("♔e1", "♖a1"),
    "k": ("♚e8", "♜h8"),
    "q": ("♚e8", "♜a8"),
}


@dataclass(frozen=True)
class FenFields:
    """The parts of a FEN record that matter to a game tree.

    Attributes:
        position (Position): Piece placement.
        turn (Colour): Side to move.
        castling (str): Castling letters, empty for ``"-"``.
        en_passant (Optional[Square]): Square behind a pawn that just made a
            double step.
    """

    position: Position
    turn: Colour
    castling: str
    en_passant: Optional[Square]


def _placement_tokens(placement: str) -> List[str]:
    rows = placement.split("/")
    if len(rows) != len(RANKS):
        raise NotationError(f"FEN board must have 8 ranks, got {len(rows)}")
    tokens: List[str] = []
    for row, rank in zip(rows, reversed(RANKS)):
        files = iter(FILES)
        for ch in row:
            if ch in "12345678":
                if len(list(islice(files, int(ch)))) != int(ch):
                    raise NotationError(f"FEN rank {rank} runs past the h-file")
                continue
            kind = LETTERS.get(ch)
            if kind is None:
                raise NotationError(f"invalid piece in FEN: {ch!r}")
            file = next(files, None)
            if file is None:
                raise NotationError(f"FEN rank {rank} runs past the h-file")
            tokens.append(GLYPHS[kind] + file + rank)
        if next(files, None) is not None:
            raise NotationError(f"FEN rank {rank} stops before the h-file")
    return tokens


def parse_fen(fen: str) -> FenFields:
    """Parse a Forsyth–Edwards Notation string.

    The move counters are checked for form and then dropped; a game tree
    counts moves by its depth.

    Raises:
        NotationError: If any of the six fields is malformed.
    """
    if not fen or not isinstance(fen, str):
        raise NotationError("FEN must be a non-empty string")
    fields = fen.split()
    if len(fields) != 6:
        raise NotationError(f"FEN must have 6 fields, got {len(fields)}")
    placement, side, castling, ep, halfmove, fullmove = fields

    position = Position.parse("".join(_placement_tokens(placement)))

    turn = _SIDES.get(side)
    if turn is None:
        raise NotationError(f"side to move must be 'w' or 'b', got {side!r}")

    if castling == "-":
        castling = ""
    elif set(castling) - set(_CASTLING) or len(set(castling)) != len(castling):
        raise NotationError(f"invalid castling rights: {castling!r}")

    en_passant: Optional[Square] = None
    if ep != "-":
        try:
            en_passant = Square.parse(ep)
        except ValueError as e:
            raise NotationError(f"invalid en passant square: {ep!r}") from e
        # white captures onto rank 6, black onto rank 3
        if en_passant.rank != (5 if turn is Colour.WHITE else 2):
            raise NotationError(f"en passant square {ep} is on the wrong rank")

    if not (halfmove.isdigit() and fullmove.isdigit()) or int(fullmove) == 0:
        raise NotationError(f"invalid move counters in FEN: {halfmove} {fullmove}")

    return FenFields(position, turn, castling, en_passant)


def root_from_fen(fen: str) -> str:
    """Convert ``fen`` into the root token string of a new game tree.

    A root has no move history. Castling is then available exactly when the
    king and rook stand on their home squares, and no en passant capture is
    available, so the FEN must say the same.

    Raises:
        NotationError: If ``fen`` does not parse, claims castling rights or an
            en passant capture the root cannot carry, or describes an
            impossible position (see :meth:`Position.is_valid`).
    """
    record = parse_fen(fen)
    position, turn = record.position, record.turn
    tokens = {p.token for p in position}

    for letter, home in _CASTLING.items():
        at_home = all(token in tokens for token in home)
        if letter in record.castling and not at_home:
            raise NotationError(f"castling right {letter!r} without king and rook at home")
        if at_home and letter not in record.castling:
            raise NotationError(
                f"castling right {letter!r} missing; king and rook at home can always castle"
            )

    if record.en_passant is not None:
        _check_en_passant(position, turn, record.en_passant)

    if not position.is_valid(turn):
        raise NotationError("FEN describes an invalid position")
    return position.text(turn)


def _check_en_passant(position: Position, turn: Colour, square: Square) -> None:
    pushed = square.shift(DOWN if turn is Colour.WHITE else UP)
    pawn = position[pushed] if pushed is not None else None
    if pawn is None or pawn.role is not Role.PAWN or pawn.colour is turn:
        raise NotationError(f"en passant square {square} has no pawn in front of it")
    # squares from which a pawn of the side to move attacks ``square``
    for offset in Role.PAWN.offsets(turn.opposite):
        origin = square.shift(offset)
        captor = position[origin] if origin is not None else None
        if captor is not None and captor.role is Role.PAWN and captor.colour is turn:
            raise NotationError(
                f"en passant capture on {square} cannot be carried into a new game tree"
            )


def board_placement(position: Position) -> str:
    """Serialize the piece placement field of a FEN string."""
    rows: List[str] = []
    for rank_idx in range(7, -1, -1):
        run = 0
        row = []
        for file_idx in range(8):
            piece = position[Square(file_idx, rank_idx)]
            if piece is None:
                run += 1
                continue
            if run > 0:
                row.append(str(run))
                run = 0
            row.append(PIECE_TO_CHAR[(piece.colour, piece.role)])
        if run > 0:
            row.append(str(run))
        rows.append("".join(row))
    return "/".join(rows)
