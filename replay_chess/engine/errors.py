from __future__ import annotations


class NotationError(ValueError):
    """Move, position or FEN text that cannot be parsed."""


class IllegalMoveError(ValueError):
    """A well-formed move that is not legal in the current position."""


class NavigationError(ValueError):
    """Stepping past the root or a leaf of the game tree."""
