from __future__ import annotations

from typing import Dict

from .game import Game


def perft(game: Game, depth: int) -> int:
    """Count leaf positions ``depth`` plies below the current node.

    Definition:
    - depth == 0 returns 1 (the current node).
    - depth > 0 returns the sum over every legal move's perft(depth-1), with a
      promoting move counted once per promotion role.

    Moves are played through :meth:`Game.play` and always taken back with
    :meth:`Game.backward`, so the game ends on the node it started from. The
    last ply is counted from the legal move list instead of being played.

    Raises:
        ValueError: If ``depth`` is negative.
    """
    if depth < 0:
        raise ValueError("depth must be >= 0")
    if depth == 0:
        return 1
    if depth == 1:
        return sum(len(move.promotions()) for move in game.moves)

    nodes = 0
    for move in list(game.moves):
        for variant in move.promotions():
            game.play(variant)
            nodes += perft(game, depth - 1)
            game.backward()
    return nodes


def perft_divide(game: Game, depth: int) -> Dict[str, int]:
    """Leaf counts below each legal move, keyed by move text.

    Raises:
        ValueError: If ``depth`` is less than 1.
    """
    if depth < 1:
        raise ValueError("depth must be >= 1")
    counts: Dict[str, int] = {}
    for move in list(game.moves):
        for variant in move.promotions():
            game.play(variant)
            counts[variant.to_text()] = perft(game, depth - 1)
            game.backward()
    return counts
