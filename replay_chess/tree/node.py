from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Dict, FrozenSet, Optional

from ..engine.piece import GLYPH_TO_PIECE, Colour, split_tokens


class Badge(IntEnum):
    """Whether a recorded continuation follows the intended line."""

    CORRECT = 0
    WRONG = 1


@dataclass(eq=False)
class Chessboard:
    """One node of a game tree: the position reached by ``pieces`` from ``parent``.

    Attributes:
        id (int): Stable identifier inside its :class:`~replay_chess.tree.store.TreeStore`.
        pieces (str): Move text that produced this node; for a root, the tokens
            of every piece on the board.
        visited (datetime): Last time the node was reached.
        badge (Badge): Correct/wrong classification of this continuation.
        comment (str): Free-text annotation.
        parent (Optional[int]): Parent node id, ``None`` for a root.
        children (Dict[str, int]): Child ids keyed by their move text.
        puzzle (Optional[int]): Puzzle group id shared with the parent.
    """

    id: int
    pieces: str
    visited: datetime
    badge: Badge = Badge.CORRECT
    comment: str = ""
    parent: Optional[int] = None
    children: Dict[str, int] = field(default_factory=dict)
    puzzle: Optional[int] = None

    @property
    def is_root(self) -> bool:
        return self.parent is None

    @property
    def turn(self) -> Colour:
        # the first token always belongs to the side that is not to move
        colour, _ = GLYPH_TO_PIECE[self.pieces[0]]
        return colour.opposite

    @property
    def tokens(self) -> FrozenSet[str]:
        return frozenset(split_tokens(self.pieces))
