from __future__ import annotations

import pytest

from replay_chess.engine.fen import STARTPOS_FEN
from replay_chess.engine.game import Game


@pytest.mark.parametrize(
    "fen",
    [
        STARTPOS_FEN,
        "r3k2r/p1ppqpb1/bn2pnp1/3PN3/1p2P3/2N2Q1p/PPPBBPPP/R3K2R w KQkq - 0 1",
        "r3k2r/Pppp1ppp/1b3nbN/nP6/BBP1P3/q4N2/Pp1P2PP/R2Q1RK1 w kq - 0 1",
    ],
)
def test_play_backward_round_trip(fen: str) -> None:
    game = Game.from_fen(fen)
    root = game.board
    before = game.position.copy()
    legal = [m.to_text() for m in game.moves]

    for move in list(game.moves):
        for variant in move.promotions():
            game.play(variant)
            assert game.position != before
            game.backward()
            assert game.board is root
            assert game.position == before
            assert game.last_move is None
            assert [m.to_text() for m in game.moves] == legal


def test_mover_keeps_identity_across_play_and_backward() -> None:
    game = Game.new()
    knight = next(p for p in game.position if p.token == "♘g1")
    game.play(game.find_move("♘g1♘f3"))
    moved = next(p for p in game.position if p.token == "♘f3")
    assert moved.uid == knight.uid
    assert game.last_move is not None and game.last_move.p2.uid == knight.uid

    game.backward()
    restored = next(p for p in game.position if p.token == "♘g1")
    assert restored.uid == knight.uid


def test_castling_rook_keeps_identity() -> None:
    game = Game.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
    rook = next(p for p in game.position if p.token == "♖h1")
    game.play(game.find_move("♔e1♔g1♖h1♖f1"))
    assert next(p for p in game.position if p.token == "♖f1").uid == rook.uid
