from __future__ import annotations

import logging
from typing import List, Optional

from ..tree.node import Badge, Chessboard
from ..tree.store import TreeStore
from .errors import IllegalMoveError, NavigationError
from .fen import root_from_fen
from .move import Move, parse_move
from .movegen import MoveGenerator
from .piece import PROMOTIONS, Colour, Piece, Position


logger = logging.getLogger(__name__)

STRIKE_LIMIT = 3


class Game:
    """Game engine positioned on one node of a game tree.

    Responsibility: keep the derived position, side to move, last move and
    legal move list in step with the current node while moves are played,
    taken back, or replayed from recorded lines.

    Attributes:
        store (TreeStore): Owner of the game tree.
        board (Chessboard): Current node.
        position (Position): Pieces on the board at ``board``.
        king (Piece): King of the side to move.
        last_move (Optional[Move]): Move that produced ``board``.
        moves (List[Move]): Legal moves; promotions appear once, as a pawn
            reaching the last rank.
        in_check (bool): Whether ``king`` is attacked.
        computer (Optional[Colour]): Side replayed from recorded lines.
    """

    def __init__(self, store: TreeStore, board: Chessboard, *, strike_limit: int = STRIKE_LIMIT) -> None:
        self.store = store
        self.strike_limit = strike_limit
        self.computer: Optional[Colour] = None
        self.moves: List[Move] = []
        self.in_check = False
        self.jump(board)

    @classmethod
    def new(cls, store: Optional[TreeStore] = None, **kwargs) -> "Game":
        store = store if store is not None else TreeStore()
        return cls(store, store.opening(), **kwargs)

    @classmethod
    def from_fen(cls, fen: str, store: Optional[TreeStore] = None, **kwargs) -> "Game":
        store = store if store is not None else TreeStore()
        return cls(store, store.create(root_from_fen(fen)), **kwargs)

    # --- State ---

    @property
    def turn(self) -> Colour:
        return self.king.colour

    @property
    def checkmate(self) -> bool:
        return not self.moves and self.in_check

    @property
    def stalemate(self) -> bool:
        return not self.moves and not self.in_check

    def legal_moves(self) -> List[Move]:
        return list(self.moves)

    def find_move(self, text: str) -> Move:
        """Resolve move text against the legal list.

        A promoting move must name its promotion role in the second token.

        Raises:
            NotationError: If ``text`` does not parse.
            IllegalMoveError: If no legal move matches.
        """
        wanted = parse_move(text)
        for move in self.moves:
            if (
                move.p1 != wanted.p1
                or move.p2.square != wanted.p2.square
                or move.p3 != wanted.p3
                or move.p4 != wanted.p4
            ):
                continue
            if move.promoting:
                if wanted.p2.role in PROMOTIONS and wanted.p2.colour is move.p2.colour:
                    return move.promote(wanted.p2.role)
            elif move.p2 == wanted.p2:
                return move
        raise IllegalMoveError(f"illegal move: {text}")

    # --- Navigation ---

    def play(self, move: Move) -> None:
        """Play ``move``, reusing the matching child node when one exists.

        ``move`` must come from :attr:`moves` (with a promotion role chosen).
        New nodes are badged wrong while a computer side is replaying.
        """
        text = move.to_text()
        clone = self.store.child(self.board, text)
        if clone is not None:
            self.board = clone
        else:
            badge = Badge.CORRECT if self.computer is None else Badge.WRONG
            self.board = self.store.create(text, parent=self.board, badge=badge)
        self._apply(move)

        if self.computer is not self.king.colour:
            return
        if self.board.badge is Badge.CORRECT:
            if not self.computer_move():
                self._stop_computer("no recorded continuation")
        elif self.board.badge is Badge.WRONG:
            puzzle = self.store.puzzle_of(self.board)
            if puzzle is not None:
                puzzle.strikes += 1
                logger.info("wrong move", extra={"node_id": self.board.id, "strikes": puzzle.strikes})
                if puzzle.strikes >= self.strike_limit:
                    self._stop_computer("strike limit reached")

    def computer_move(self) -> bool:
        """Replay the recorded continuation for the side to move.

        Candidates are children with at least one correct child of their own;
        the oldest visited wins. A successful reply hands the side to move to
        the computer.

        Returns:
            bool: True if a move was played.

        Raises:
            NavigationError: If the chosen reply is not linked back to the
                current node. Nothing changes in that case.
        """
        candidates = [
            child
            for child in self.store.children(self.board)
            if any(grandchild.badge is Badge.CORRECT for grandchild in self.store.children(child))
        ]
        if not candidates:
            return False
        reply = min(candidates, key=lambda node: (node.visited, node.id))
        move = self._move_to(reply)
        self.computer = self.king.colour
        self.board = reply
        logger.debug("computer reply", extra={"node_id": self.board.id, "move": self.board.pieces})
        self._apply(move)
        return True

    def forward(self) -> None:
        """Step to the most recently visited child.

        Raises:
            NavigationError: If the current node has no children, or the newest
                child is not linked back to it.
        """
        children = self.store.children(self.board)
        if not children:
            raise NavigationError("no moves to redo")
        target = max(children, key=lambda node: (node.visited, node.id))
        move = self._move_to(target)
        self.board = target
        self._apply(move)

    def backward(self) -> None:
        """Take back the last move by XOR-ing it out again.

        Raises:
            NavigationError: At the root of the tree.
        """
        parent = self.store.parent(self.board)
        if parent is None or self.last_move is None:
            raise NavigationError("no moves to undo")
        move = self.last_move
        self.board = parent
        self._apply(move)

    def jump(self, board: Chessboard) -> None:
        """Move to any node, rebuilding the position from its ancestry."""
        self.board = board
        self.position = self.store.position(board)
        self.king = self.position.king(board.turn)
        self.last_move = self.store.last_move(board, self.position)
        self._generate()

    def _move_to(self, child: Chessboard) -> Move:
        move = self.store.last_move(child, self.position)
        if move is None or self.store.parent(child) is not self.board:
            raise NavigationError(f"node {child.id} is not linked to node {self.board.id}")
        return move

    def _apply(self, move: Move) -> None:
        self.store.touch(self.board)
        self.position.toggle(move.pieces)
        self.king = self.position.king(self.king.colour.opposite)
        # taking a move back lands on a node produced by a different move
        self.last_move = self.store.last_move(self.board, self.position)
        self._generate()

    def _generate(self) -> None:
        board = self.board
        generator = MoveGenerator(
            self.position,
            self.king,
            self.last_move,
            history=lambda: self.store.history(board),
        )
        self.moves = generator.generate()
        self.in_check = generator.check_count != 0

    def _stop_computer(self, reason: str) -> None:
        logger.info("computer replay stopped", extra={"node_id": self.board.id, "reason": reason})
        self.computer = None
        puzzle = self.store.puzzle_of(self.board)
        if puzzle is not None:
            puzzle.reschedule(self.store.now())
