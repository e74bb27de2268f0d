"""Pieces, token glyphs and the position model.

A position is a set of pieces with at most one piece per square. Pieces compare
by colour, role and square only; ``uid`` follows a physical piece from move to
move for callers that animate or otherwise track it.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .errors import NotationError
from .square import (
    DOWN,
    DOWN_LEFT,
    DOWN_RIGHT,
    FILES,
    LEFT,
    RANKS,
    RIGHT,
    UP,
    UP_LEFT,
    UP_RIGHT,
    Offset,
    Square,
)


class Colour(Enum):
    WHITE = "white"
    BLACK = "black"

    @property
    def opposite(self) -> "Colour":
        return Colour.BLACK if self is Colour.WHITE else Colour.WHITE


class Role(Enum):
    PAWN = "pawn"
    KNIGHT = "knight"
    BISHOP = "bishop"
    ROOK = "rook"
    QUEEN = "queen"
    KING = "king"

    def offsets(self, colour: Colour = Colour.WHITE) -> Tuple[Offset, ...]:
        """Move or attack offsets; pawn offsets are its captures for ``colour``."""
        if self is Role.PAWN:
            return _PAWN_ATTACKS[colour]
        return _OFFSETS[self]


PROMOTIONS: Tuple[Role, ...] = (Role.KNIGHT, Role.BISHOP, Role.ROOK, Role.QUEEN)

_PAWN_ATTACKS: Dict[Colour, Tuple[Offset, ...]] = {
    Colour.WHITE: (UP_LEFT, UP_RIGHT),
    Colour.BLACK: (DOWN_LEFT, DOWN_RIGHT),
}

_OFFSETS: Dict[Role, Tuple[Offset, ...]] = {
    Role.KNIGHT: (
        Offset(-2, -1),
        Offset(-2, 1),
        Offset(-1, -2),
        Offset(-1, 2),
        Offset(1, -2),
        Offset(1, 2),
        Offset(2, -1),
        Offset(2, 1),
    ),
    Role.BISHOP: (UP_LEFT, DOWN_LEFT, UP_RIGHT, DOWN_RIGHT),
    Role.ROOK: (LEFT, RIGHT, UP, DOWN),
    Role.QUEEN: (LEFT, RIGHT, UP, DOWN, UP_LEFT, DOWN_LEFT, UP_RIGHT, DOWN_RIGHT),
    Role.KING: (LEFT, RIGHT, UP, DOWN, UP_LEFT, DOWN_LEFT, UP_RIGHT, DOWN_RIGHT),
}

GLYPHS: Dict[Tuple[Colour, Role], str] = {
    (Colour.WHITE, Role.PAWN): "♙",
    (Colour.WHITE, Role.KNIGHT): "♘",
    (Colour.WHITE, Role.BISHOP): "♗",
    (Colour.WHITE, Role.ROOK): "♖",
    (Colour.WHITE, Role.QUEEN): "♕",
    (Colour.WHITE, Role.KING): "♔",
    (Colour.BLACK, Role.PAWN): "♟",
    (Colour.BLACK, Role.KNIGHT): "♞",
    (Colour.BLACK, Role.BISHOP): "♝",
    (Colour.BLACK, Role.ROOK): "♜",
    (Colour.BLACK, Role.QUEEN): "♛",
    (Colour.BLACK, Role.KING): "♚",
}
GLYPH_TO_PIECE: Dict[str, Tuple[Colour, Role]] = {v: k for k, v in GLYPHS.items()}

# FEN letters; also accepted by lenient (search token) parsing
LETTERS: Dict[str, Tuple[Colour, Role]] = {
    "P": (Colour.WHITE, Role.PAWN),
    "N": (Colour.WHITE, Role.KNIGHT),
    "B": (Colour.WHITE, Role.BISHOP),
    "R": (Colour.WHITE, Role.ROOK),
    "Q": (Colour.WHITE, Role.QUEEN),
    "K": (Colour.WHITE, Role.KING),
    "p": (Colour.BLACK, Role.PAWN),
    "n": (Colour.BLACK, Role.KNIGHT),
    "b": (Colour.BLACK, Role.BISHOP),
    "r": (Colour.BLACK, Role.ROOK),
    "q": (Colour.BLACK, Role.QUEEN),
    "k": (Colour.BLACK, Role.KING),
}

TOKEN_WIDTH = 3

_uids = itertools.count(1)


def _next_uid() -> int:
    return next(_uids)


@dataclass(frozen=True, slots=True)
class Piece:
    """A piece standing on a square.

    Attributes:
        colour (Colour): Owner of the piece.
        role (Role): Piece kind.
        square (Square): Occupied square.
        uid (int): Identity of the physical piece. Ignored by ``==`` and ``hash``.
    """

    colour: Colour
    role: Role
    square: Square
    uid: int = field(default_factory=_next_uid, compare=False, repr=False)

    def shift(self, offset: Offset) -> Optional["Piece"]:
        """Return this piece moved by ``offset``, or ``None`` when that leaves the board."""
        to = self.square.shift(offset)
        if to is None:
            return None
        return Piece(self.colour, self.role, to, self.uid)

    def moved_to(self, square: Square) -> "Piece":
        return Piece(self.colour, self.role, square, self.uid)

    def with_role(self, role: Role) -> "Piece":
        return Piece(self.colour, role, self.square, self.uid)

    def with_uid(self, uid: int) -> "Piece":
        return Piece(self.colour, self.role, self.square, uid)

    @property
    def glyph(self) -> str:
        return GLYPHS[(self.colour, self.role)]

    @property
    def token(self) -> str:
        """Three-character token, e.g. ``"♘f3"``."""
        return self.glyph + str(self.square)

    def __str__(self) -> str:
        return self.token


def parse_token(text: str, *, lenient: bool = False) -> Piece:
    """Parse one ``<glyph><file><rank>`` token.

    Args:
        text (str): Token such as ``"♙e4"``.
        lenient (bool): Also accept FEN letters (``"Pe4"``, ``"nF6"``) and
            uppercase files, as typed into a search box.

    Returns:
        Piece: Parsed piece with a fresh ``uid``.

    Raises:
        NotationError: If ``text`` is not exactly one token.
    """
    if len(text) != TOKEN_WIDTH:
        raise NotationError(f"invalid token: {text!r}")
    chessman, file, rank = text[0], text[1], text[2]
    kind = GLYPH_TO_PIECE.get(chessman)
    if lenient:
        kind = kind or LETTERS.get(chessman)
        file = file.lower()
    if kind is None or file not in FILES or rank not in RANKS:
        raise NotationError(f"invalid token: {text!r}")
    colour, role = kind
    return Piece(colour, role, Square(FILES.index(file), RANKS.index(rank)))


def split_tokens(text: str) -> List[str]:
    """Split token text into its fixed-width tokens.

    Raises:
        NotationError: If the length is not a multiple of the token width.
    """
    if len(text) % TOKEN_WIDTH:
        raise NotationError(f"token text has a dangling fragment: {text!r}")
    return [text[i : i + TOKEN_WIDTH] for i in range(0, len(text), TOKEN_WIDTH)]


def parse_pieces(text: str) -> List[Piece]:
    return [parse_token(token) for token in split_tokens(text)]


# Attack scan: jumping attackers check one square, sliding families march rays.
_JUMPERS: Tuple[Role, ...] = (Role.PAWN, Role.KNIGHT)
_SLIDERS: Tuple[Role, ...] = (Role.BISHOP, Role.ROOK)


class Position:
    """Mutable set of pieces keyed by square.

    ``toggle`` performs the symmetric difference with a move's piece set, which
    is its own inverse: toggling the same pieces twice restores the position.
    """

    __slots__ = ("_board",)

    def __init__(self, pieces: Iterable[Piece] = ()) -> None:
        self._board: Dict[Square, Piece] = {p.square: p for p in pieces}

    @classmethod
    def parse(cls, text: str) -> "Position":
        """Build a position from concatenated tokens (any count).

        Raises:
            NotationError: If a token is malformed or two tokens share a square.
        """
        pieces = parse_pieces(text)
        position = cls(pieces)
        if len(position) != len(pieces):
            raise NotationError(f"two pieces share a square: {text!r}")
        return position

    def __getitem__(self, square: Square) -> Optional[Piece]:
        return self._board.get(square)

    def __iter__(self) -> Iterator[Piece]:
        return iter(list(self._board.values()))

    def __len__(self) -> int:
        return len(self._board)

    def __contains__(self, piece: object) -> bool:
        if not isinstance(piece, Piece):
            return False
        return self._board.get(piece.square) == piece

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Position):
            return NotImplemented
        return self._board == other._board

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Position({self.text(Colour.WHITE)!r})"

    def copy(self) -> "Position":
        return Position(self._board.values())

    def pieces(self) -> frozenset:
        return frozenset(self._board.values())

    def pieces_of(self, colour: Colour) -> List[Piece]:
        """Pieces of ``colour`` in square order, independent of toggle history."""
        return sorted((p for p in self._board.values() if p.colour is colour), key=lambda p: p.square)

    def king(self, colour: Colour) -> Piece:
        for p in self._board.values():
            if p.role is Role.KING and p.colour is colour:
                return p
        raise ValueError(f"no {colour.value} king in position")

    # -- Symmetric difference ------------------------------------------------

    def toggle(self, pieces: Iterable[Piece]) -> None:
        """XOR ``pieces`` into the position in place.

        Pieces already present are removed before the others are placed, so a
        capture frees its square before the capturer lands on it.
        """
        board = self._board
        added = []
        for p in pieces:
            if board.get(p.square) == p:
                del board[p.square]
            else:
                added.append(p)
        for p in added:
            board[p.square] = p

    def symmetric_difference(self, pieces: Iterable[Piece]) -> "Position":
        result = self.copy()
        result.toggle(pieces)
        return result

    # -- Attack detection ----------------------------------------------------

    def checks(self, king: Piece, count_all: bool = False) -> int:
        """Count enemy pieces attacking ``king``'s square.

        Args:
            king (Piece): Piece whose square and colour define the target.
                Any piece works; castling tests a rook's landing square this way.
            count_all (bool): Count every attacker instead of returning ``1`` on
                the first one found.

        Returns:
            int: ``0`` when the square is safe.
        """
        board = self._board
        colour = king.colour
        origin = king.square
        count = 0

        for jumper in _JUMPERS:
            for offset in jumper.offsets(colour):
                to = origin.shift(offset)
                if to is None:
                    continue
                capture = board.get(to)
                if capture is not None and capture.role is jumper and capture.colour is not colour:
                    if not count_all:
                        return 1
                    count += 1

        for slider in _SLIDERS:
            for direction in slider.offsets():
                for distance, to in enumerate(origin.ray(direction), 1):
                    capture = board.get(to)
                    if capture is None:
                        continue
                    role = capture.role
                    if capture.colour is not colour and (
                        role is slider
                        or role is Role.QUEEN
                        or (role is Role.KING and distance == 1)
                    ):
                        if not count_all:
                            return 1
                        count += 1
                    # sliders never see through an occupied square
                    break

        return count

    def is_valid(self, turn: Colour) -> bool:
        """Sanity check for imported positions with ``turn`` to move."""
        if len(self._board) <= 2:
            return False
        for p in self._board.values():
            if p.role is Role.PAWN and p.square.rank in (0, 7):
                return False
        kings = [p for p in self._board.values() if p.role is Role.KING]
        for colour in Colour:
            if sum(1 for k in kings if k.colour is colour) != 1:
                return False
        # the side that just moved cannot have left its king en prise
        return self.checks(self.king(turn.opposite)) == 0

    # -- Text --------------------------------------------------------------

    def text(self, turn: Colour) -> str:
        """Concatenated tokens with the side not to move first.

        Pieces sort by colour (white first), then square; the order is
        descending when white is to move and ascending when black is.
        """
        ordered = sorted(
            self._board.values(),
            key=lambda p: (p.colour is Colour.BLACK, p.square),
            reverse=turn is Colour.WHITE,
        )
        return "".join(p.token for p in ordered)
