#!/usr/bin/env python3
# ruff: noqa: E402
"""Compare per-move perft counts against python-chess to locate generator bugs."""

from __future__ import annotations

import argparse
import os
import sys
from typing import Dict

try:
    import chess
except ImportError:
    print(
        "Missing dependency: python-chess. Please install it (e.g., pip install chess)",
        file=sys.stderr,
    )
    raise

REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from replay_chess.engine.fen import STARTPOS_FEN
from replay_chess.engine.game import Game
from replay_chess.engine.move import parse_move
from replay_chess.engine.perft import perft_divide
from replay_chess.engine.piece import Role

_PROMOTION_LETTERS = {Role.KNIGHT: "n", Role.BISHOP: "b", Role.ROOK: "r", Role.QUEEN: "q"}


def to_uci(text: str) -> str:
    move = parse_move(text)
    promo = _PROMOTION_LETTERS.get(move.p2.role, "") if move.promoting else ""
    return f"{move.p1.square}{move.p2.square}{promo}"


def reference_perft(board: chess.Board, depth: int) -> int:
    if depth == 0:
        return 1
    nodes = 0
    for move in board.legal_moves:
        board.push(move)
        nodes += reference_perft(board, depth - 1)
        board.pop()
    return nodes


def reference_divide(fen: str, depth: int) -> Dict[str, int]:
    board = chess.Board(fen)
    counts: Dict[str, int] = {}
    for move in board.legal_moves:
        board.push(move)
        counts[move.uci()] = reference_perft(board, depth - 1)
        board.pop()
    return counts


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--fen", type=str, default=STARTPOS_FEN)
    parser.add_argument("--depth", type=int, default=2)
    args = parser.parse_args()
    if args.depth < 1:
        parser.error("depth must be >= 1")

    ours = {to_uci(text): n for text, n in perft_divide(Game.from_fen(args.fen), args.depth).items()}
    theirs = reference_divide(args.fen, args.depth)

    mismatches = 0
    for uci in sorted(set(ours) | set(theirs)):
        a, b = ours.get(uci), theirs.get(uci)
        if a != b:
            mismatches += 1
            print(f"{uci}: ours={a} python-chess={b}")
    print(f"total ours={sum(ours.values())} python-chess={sum(theirs.values())} mismatches={mismatches}")
    return 1 if mismatches else 0


if __name__ == "__main__":
    sys.exit(main())
