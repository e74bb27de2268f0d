from __future__ import annotations

from replay_chess.engine.game import Game


def moves_set(game: Game) -> set[str]:
    return {v.to_text() for m in game.moves for v in m.promotions()}


def test_single_check_allows_blocks() -> None:
    game = Game.from_fen("4k3/8/8/3R4/8/8/8/r3K3 w - - 0 1")
    assert game.in_check
    assert moves_set(game) == {"♔e1♔d2", "♔e1♔e2", "♔e1♔f2", "♖d5♖d1"}


def test_double_check_only_king_moves() -> None:
    # rook a1 and knight f3 both attack e1; the rook on a7 could take a1
    game = Game.from_fen("4k3/R7/8/8/8/5n2/8/r3K3 w - - 0 1")
    assert game.in_check
    assert game.position.checks(game.king, count_all=True) == 2
    assert moves_set(game) == {"♔e1♔e2", "♔e1♔f2"}


def test_king_cannot_retreat_along_checking_ray() -> None:
    game = Game.from_fen("4k3/8/8/8/8/8/8/r3K3 w - - 0 1")
    assert moves_set(game) == {"♔e1♔d2", "♔e1♔e2", "♔e1♔f2"}


def test_fools_mate_is_checkmate() -> None:
    game = Game.new()
    for text in ("♙f2♙f3", "♟e7♟e5", "♙g2♙g4", "♛d8♛h4"):
        game.play(game.find_move(text))
    assert game.in_check
    assert game.moves == []
    assert game.checkmate and not game.stalemate


def test_stalemate() -> None:
    game = Game.from_fen("7k/5Q2/6K1/8/8/8/8/8 b - - 0 1")
    assert not game.in_check
    assert game.moves == []
    assert game.stalemate and not game.checkmate


def test_every_legal_move_leaves_own_king_safe() -> None:
    game = Game.from_fen("r3k2r/p1ppqpb1/bn2pnp1/3PN3/1p2P3/2N2Q1p/PPPBBPPP/R3K2R w KQkq - 0 1")
    colour = game.turn
    for move in game.moves:
        after = game.position.symmetric_difference(move.pieces)
        assert after.checks(after.king(colour)) == 0
