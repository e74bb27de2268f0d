from __future__ import annotations

from typing import Dict, NamedTuple, Optional, Tuple


FILES = "abcdefgh"
RANKS = "12345678"


class Offset(NamedTuple):
    """Board displacement in display coordinates.

    ``dx`` grows towards the h-file, ``dy`` grows towards rank 1 (white sits at
    the bottom of the board), so ``UP`` points from white's side towards black's.
    """

    dx: int
    dy: int

    def scaled(self, distance: int) -> "Offset":
        return Offset(self.dx * distance, self.dy * distance)


UP = Offset(0, -1)
DOWN = Offset(0, 1)
LEFT = Offset(-1, 0)
RIGHT = Offset(1, 0)
UP_LEFT = Offset(-1, -1)
UP_RIGHT = Offset(1, -1)
DOWN_LEFT = Offset(-1, 1)
DOWN_RIGHT = Offset(1, 1)


class Square(NamedTuple):
    """A board square.

    Attributes:
        file (int): 0..7, ``0`` is the a-file.
        rank (int): 0..7, ``0`` is rank 1.

    Squares order file-major, then by rank.
    """

    file: int
    rank: int

    @property
    def x(self) -> int:
        return self.file

    @property
    def y(self) -> int:
        # rank 1 is the bottom row of the display grid
        return 7 - self.rank

    def __str__(self) -> str:
        return FILES[self.file] + RANKS[self.rank]

    @classmethod
    def parse(cls, text: str) -> "Square":
        """Parse algebraic notation such as ``"e4"``.

        Raises:
            ValueError: If ``text`` is not a square name.
        """
        if len(text) != 2 or text[0] not in FILES or text[1] not in RANKS:
            raise ValueError(f"invalid square: {text!r}")
        return cls(FILES.index(text[0]), RANKS.index(text[1]))

    @classmethod
    def from_xy(cls, x: int, y: int) -> Optional["Square"]:
        if 0 <= x < 8 and 0 <= y < 8:
            return cls(x, 7 - y)
        return None

    def shift(self, offset: Offset) -> Optional["Square"]:
        """Return the square ``offset`` away, or ``None`` when it is off the board."""
        key = (self, offset)
        if key in _SHIFTS:
            return _SHIFTS[key]
        to = _SHIFTS[key] = Square.from_xy(self.x + offset.dx, self.y + offset.dy)
        return to

    def ray(self, direction: Offset) -> Tuple["Square", ...]:
        """Squares reached by repeatedly stepping ``direction``, nearest first.

        At most seven squares; the ray ends at the board edge.
        """
        key = (self, direction)
        squares = _RAYS.get(key)
        if squares is None:
            found = []
            for distance in range(1, 8):
                to = self.shift(direction.scaled(distance))
                if to is None:
                    break
                found.append(to)
            squares = _RAYS[key] = tuple(found)
        return squares


_SHIFTS: Dict[Tuple[Square, Offset], Optional[Square]] = {}
_RAYS: Dict[Tuple[Square, Offset], Tuple[Square, ...]] = {}
