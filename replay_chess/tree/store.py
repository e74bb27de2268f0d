from __future__ import annotations

import itertools
import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Set

from ..engine.fen import START_POSITION
from ..engine.move import Move, parse_move
from ..engine.piece import Position, parse_pieces, split_tokens
from .node import Badge, Chessboard
from .puzzle import DAY, Puzzle


logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TreeStore:
    """Thread-safe in-memory arena of game tree nodes and puzzles.

    Responsibilities:
    - Create nodes as children of existing nodes (or as new roots)
    - Resolve parent/child/puzzle links by id, keeping both directions in sync
    - Derive position, history and last move of a node from its ancestry
    - Merge duplicate opening trees (graft) and delete subtrees

    A node's parent is always created before it; only :meth:`reparent` moves a
    node, and it refuses to create a cycle.
    """

    def __init__(self, clock: Optional[Clock] = None) -> None:
        self._lock = threading.RLock()
        self._nodes: Dict[int, Chessboard] = {}
        self._puzzles: Dict[int, Puzzle] = {}
        self._node_ids = itertools.count(1)
        self._puzzle_ids = itertools.count(1)
        self._clock: Clock = clock or _utcnow

    def now(self) -> datetime:
        return self._clock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._nodes)

    def __contains__(self, node: object) -> bool:
        with self._lock:
            return isinstance(node, Chessboard) and self._nodes.get(node.id) is node

    # ---- Nodes ----

    def create(
        self,
        pieces: str,
        parent: Optional[Chessboard] = None,
        badge: Badge = Badge.CORRECT,
    ) -> Chessboard:
        """Create a node; a child joins its parent's puzzle group.

        Raises:
            ValueError: If ``parent`` already has a child with the same move text.
        """
        with self._lock:
            node = Chessboard(
                id=next(self._node_ids),
                pieces=pieces,
                visited=self.now(),
                badge=badge,
            )
            if parent is not None:
                if pieces in parent.children:
                    raise ValueError(f"node {parent.id} already has child {pieces}")
                node.parent = parent.id
                node.puzzle = parent.puzzle
                parent.children[pieces] = node.id
            self._nodes[node.id] = node
        logger.debug("created node", extra={"node_id": node.id, "parent_id": node.parent})
        return node

    def get(self, node_id: int) -> Optional[Chessboard]:
        with self._lock:
            return self._nodes.get(node_id)

    def parent(self, node: Chessboard) -> Optional[Chessboard]:
        if node.parent is None:
            return None
        with self._lock:
            return self._nodes[node.parent]

    def children(self, node: Chessboard) -> List[Chessboard]:
        with self._lock:
            return [self._nodes[i] for i in node.children.values()]

    def child(self, node: Chessboard, pieces: str) -> Optional[Chessboard]:
        with self._lock:
            child_id = node.children.get(pieces)
            return None if child_id is None else self._nodes[child_id]

    def touch(self, node: Chessboard) -> None:
        node.visited = self.now()

    def roots(self) -> List[Chessboard]:
        with self._lock:
            return [n for n in self._nodes.values() if n.parent is None]

    # ---- Derived views ----

    def lineage(self, node: Chessboard) -> Iterator[Chessboard]:
        """Yield ``node`` and then each ancestor up to the root."""
        current: Optional[Chessboard] = node
        while current is not None:
            yield current
            current = self.parent(current)

    def path(self, node: Chessboard) -> List[Chessboard]:
        """Nodes from the root down to ``node``."""
        return list(self.lineage(node))[::-1]

    def history(self, node: Chessboard) -> str:
        """Move text of every move leading to ``node``, in playing order.

        The root's setup string is not a move and is left out.
        """
        return "".join(board.pieces for board in self.path(node) if board.parent is not None)

    def position(self, node: Chessboard) -> Position:
        """Replay the path from the root, XOR-ing each node's pieces in turn."""
        position = Position()
        for board in self.path(node):
            position.toggle(parse_pieces(board.pieces))
        return position

    def position_tokens(self, node: Chessboard) -> Set[str]:
        tokens: Set[str] = set()
        for board in self.lineage(node):
            tokens.symmetric_difference_update(split_tokens(board.pieces))
        return tokens

    def last_move(self, node: Chessboard, position: Position) -> Optional[Move]:
        """Decode the move that produced ``node`` with identities from ``position``."""
        if node.parent is None:
            return None
        return parse_move(node.pieces).match_ids(position)

    def matches_tokens(self, node: Chessboard, tokens: Iterable[str]) -> bool:
        """True when every token appears in the node's move or in its position."""
        wanted = set(tokens)
        if not wanted or wanted <= node.tokens:
            return True
        return wanted <= self.position_tokens(node)

    def is_ancestor(self, ancestor: Chessboard, node: Chessboard) -> bool:
        if ancestor.puzzle != node.puzzle:
            return False
        return any(board is ancestor for board in self.lineage(node))

    def subtree(self, node: Chessboard) -> List[Chessboard]:
        with self._lock:
            found = []
            stack = [node]
            while stack:
                current = stack.pop()
                found.append(current)
                stack.extend(self._nodes[i] for i in current.children.values())
            return found

    def search(self, comment: str = "", tokens: Iterable[str] = ()) -> List[Chessboard]:
        """Annotated nodes, oldest visit first, filtered by comment text and tokens."""
        wanted = list(tokens)
        needle = comment.casefold()
        with self._lock:
            boards = [n for n in self._nodes.values() if n.comment]
        if needle:
            boards = [n for n in boards if needle in n.comment.casefold()]
        if wanted:
            boards = [n for n in boards if self.matches_tokens(n, wanted)]
        return sorted(boards, key=lambda n: (n.visited, n.id))

    # ---- Structural edits ----

    def reparent(self, node: Chessboard, parent: Chessboard) -> None:
        """Move ``node`` (and its subtree) under ``parent``.

        Raises:
            ValueError: If ``parent`` lies inside ``node``'s subtree or already
                has a child with the same move text.
        """
        with self._lock:
            if any(board is node for board in self.lineage(parent)):
                raise ValueError(f"node {node.id} is an ancestor of node {parent.id}")
            if node.pieces in parent.children:
                raise ValueError(f"node {parent.id} already has child {node.pieces}")
            old = self.parent(node)
            if old is not None:
                del old.children[node.pieces]
            parent.children[node.pieces] = node.id
            node.parent = parent.id
            for board in self.subtree(node):
                board.puzzle = parent.puzzle

    def graft(self, source: Chessboard, onto: Chessboard) -> None:
        """Merge ``source``'s descendants into the tree under ``onto``.

        Children with matching move text are merged recursively and their
        comments appended; the others are re-parented onto ``onto``. Matched
        nodes stay behind under ``source``.
        """
        for child in self.children(source):
            clone = self.child(onto, child.pieces)
            if clone is None:
                self.reparent(child, onto)
                continue
            if child.comment:
                clone.comment = f"{clone.comment}\n{child.comment}" if clone.comment else child.comment
            self.graft(child, clone)

    def delete(self, node: Chessboard) -> None:
        """Remove ``node`` and its whole subtree, with any puzzle rooted there."""
        with self._lock:
            doomed = self.subtree(node)
            parent = self.parent(node)
            if parent is not None:
                del parent.children[node.pieces]
            ids = {board.id for board in doomed}
            for board in doomed:
                del self._nodes[board.id]
            for puzzle_id in [p.id for p in self._puzzles.values() if p.board in ids]:
                del self._puzzles[puzzle_id]
        logger.info("deleted subtree", extra={"node_id": node.id, "nodes": len(doomed)})

    def opening(self) -> Chessboard:
        """Return the single opening tree, creating or consolidating it as needed.

        Candidates are parentless, puzzle-less roots holding the standard start
        position. When several exist, later ones are grafted onto the
        earliest-visited one and deleted.
        """
        with self._lock:
            openings = sorted(
                (
                    n
                    for n in self._nodes.values()
                    if n.parent is None and n.puzzle is None and n.pieces == START_POSITION
                ),
                key=lambda n: (n.visited, n.id),
            )
            if not openings:
                return self.create(START_POSITION)
            original, duplicates = openings[0], openings[1:]
            for duplicate in duplicates:
                self.graft(duplicate, original)
                self.delete(duplicate)
            if duplicates:
                logger.info(
                    "merged opening trees",
                    extra={"node_id": original.id, "merged": len(duplicates)},
                )
            return original

    # ---- Puzzles ----

    def create_puzzle(self, board: Chessboard) -> Puzzle:
        """Start a puzzle group rooted at ``board``; its subtree joins the group."""
        with self._lock:
            now = self.now()
            puzzle = Puzzle(id=next(self._puzzle_ids), board=board.id, due=now, solved=now - DAY)
            self._puzzles[puzzle.id] = puzzle
            for node in self.subtree(board):
                node.puzzle = puzzle.id
        return puzzle

    def puzzle(self, puzzle_id: int) -> Optional[Puzzle]:
        with self._lock:
            return self._puzzles.get(puzzle_id)

    def puzzle_of(self, node: Chessboard) -> Optional[Puzzle]:
        if node.puzzle is None:
            return None
        return self.puzzle(node.puzzle)

    def puzzles(self) -> List[Puzzle]:
        with self._lock:
            return sorted(self._puzzles.values(), key=lambda p: p.due)
