from __future__ import annotations

import threading
import uuid
from typing import Dict, Optional

from ...engine.game import Game
from ...tree.store import TreeStore


class InMemorySessionStore:
    """Thread-safe in-memory game session store.

    Responsibilities:
    - Own the game tree shared by every session
    - Create new sessions with unique `game_id`s
    - Retrieve existing sessions by `game_id`
    - Delete sessions (their nodes stay in the tree)
    """

    def __init__(self, tree: Optional[TreeStore] = None, *, strike_limit: int = 3) -> None:
        self._lock = threading.RLock()
        self._games: Dict[str, Game] = {}
        self.tree = tree if tree is not None else TreeStore()
        self.strike_limit = strike_limit

    def create(self, game: Optional[Game] = None) -> str:
        """Create a new game session and return its `game_id`."""
        gid = str(uuid.uuid4())
        if game is None:
            game = Game.new(self.tree, strike_limit=self.strike_limit)
        with self._lock:
            self._games[gid] = game
        return gid

    def get(self, game_id: str) -> Optional[Game]:
        with self._lock:
            return self._games.get(game_id)

    def delete(self, game_id: str) -> None:
        with self._lock:
            if game_id in self._games:
                del self._games[game_id]
