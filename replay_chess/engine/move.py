from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, List, Optional

from .errors import NotationError
from .piece import PROMOTIONS, Piece, Position, Role, parse_token, split_tokens


@dataclass(frozen=True)
class Move:
    """A move as two to four pieces.

    Shapes:
        - ``p1 -> p2``: quiet move (``p2`` may carry a promotion role).
        - ``p1 -> p2`` plus ``p3``: capture; ``p3`` is the captured piece on its
          own square, which differs from ``p2`` for en passant.
        - ``p1 -> p2`` plus ``p3 -> p4``: castling, king then rook.

    XOR-ing :attr:`pieces` into a position plays the move; XOR-ing it again
    takes the move back.
    """

    p1: Piece
    p2: Piece
    p3: Optional[Piece] = None
    p4: Optional[Piece] = None

    @property
    def pieces(self) -> FrozenSet[Piece]:
        members = [self.p1, self.p2]
        if self.p3 is not None:
            members.append(self.p3)
        if self.p4 is not None:
            members.append(self.p4)
        return frozenset(members)

    @property
    def promoting(self) -> bool:
        return self.p1.role is Role.PAWN and self.p2.square.rank in (0, 7)

    @property
    def is_castling(self) -> bool:
        return self.p4 is not None

    @property
    def captured(self) -> Optional[Piece]:
        return self.p3 if self.p4 is None else None

    def promote(self, role: Role) -> "Move":
        return Move(self.p1, self.p2.with_role(role), self.p3, self.p4)

    def promotions(self) -> List["Move"]:
        """One move per promotion role, or just this move when not promoting."""
        if not self.promoting:
            return [self]
        return [self.promote(role) for role in PROMOTIONS]

    def match_ids(self, position: Position) -> "Move":
        """Copy piece identities from ``position`` onto this move.

        The mover is found at either end of the move, so this works against the
        position before or after the move was played.

        Raises:
            ValueError: If ``position`` holds neither end of the move.
        """
        uid = _find_uid(position, self.p1, self.p2)
        p3, p4 = self.p3, self.p4
        if p3 is not None and p4 is not None:
            rook_uid = _find_uid(position, p3, p4)
            p3, p4 = p3.with_uid(rook_uid), p4.with_uid(rook_uid)
        return Move(self.p1.with_uid(uid), self.p2.with_uid(uid), p3, p4)

    def to_text(self) -> str:
        """Serialize into concatenated tokens, e.g. ``"♙e2♙e4"``."""
        text = self.p1.token + self.p2.token
        if self.p3 is not None:
            text += self.p3.token
        if self.p4 is not None:
            text += self.p4.token
        return text

    def __str__(self) -> str:
        return self.to_text()


def _find_uid(position: Position, before: Piece, after: Piece) -> int:
    for candidate in (position[before.square], position[after.square]):
        if candidate is not None and (candidate == before or candidate == after):
            return candidate.uid
    raise ValueError(f"position holds neither {before} nor {after}")


def parse_move(text: str) -> Move:
    """Parse move text made of 2, 3 or 4 tokens.

    Args:
        text (str): Move encoded like ``"♘g1♘f3"`` or ``"♔e1♔g1♖h1♖f1"``.

    Returns:
        Move: Parsed move; piece identities are fresh until :meth:`Move.match_ids`.

    Raises:
        NotationError: If the token count is not 2, 3 or 4, or a token is invalid.
    """
    tokens = split_tokens(text)
    if len(tokens) not in (2, 3, 4):
        raise NotationError(f"move must have 2, 3 or 4 tokens: {text!r}")
    pieces = [parse_token(token) for token in tokens]
    pieces.extend([None] * (4 - len(pieces)))  # type: ignore[list-item]
    return Move(*pieces)
