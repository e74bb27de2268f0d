from __future__ import annotations

import pytest

from replay_chess.engine.errors import NotationError
from replay_chess.engine.fen import START_POSITION
from replay_chess.engine.move import parse_move
from replay_chess.engine.piece import Piece, Position, Role


@pytest.mark.parametrize(
    "text",
    ["♘g1♘f3", "♘c3♘d5♝d5", "♙e5♙d6♟d5", "♔e1♔g1♖h1♖f1", "♟b2♛a1♖a1"],
)
def test_text_round_trip(text: str) -> None:
    assert parse_move(text).to_text() == text


@pytest.mark.parametrize(
    "text",
    ["", "♘g1", "♔e1♔g1♖h1♖f1♙a2", "♘g1♘f", "Ng1Nf3", "♘g1♘f9"],
)
def test_parse_move_rejects(text: str) -> None:
    with pytest.raises(NotationError):
        parse_move(text)


def test_shapes() -> None:
    quiet = parse_move("♘g1♘f3")
    assert quiet.captured is None and not quiet.is_castling

    capture = parse_move("♙e5♙d6♟d5")
    assert capture.captured is not None
    assert str(capture.captured.square) == "d5"  # en passant takes off a different square

    castle = parse_move("♔e1♔c1♖a1♖d1")
    assert castle.is_castling and castle.captured is None
    assert len(castle.pieces) == 4


def test_promotion_variants() -> None:
    push = parse_move("♙e7♙e8")
    assert push.promoting
    assert [m.to_text() for m in push.promotions()] == ["♙e7♘e8", "♙e7♗e8", "♙e7♖e8", "♙e7♕e8"]
    assert not parse_move("♙e6♙e7").promoting
    assert parse_move("♙e6♙e7").promotions() == [parse_move("♙e6♙e7")]


def test_black_promotion_is_rank_one() -> None:
    assert parse_move("♟d2♟d1").promoting
    assert not parse_move("♟d7♟d5").promoting


def test_match_ids_against_either_side_of_the_move() -> None:
    pos = Position.parse(START_POSITION)
    knight = next(p for p in pos if p.token == "♘g1")

    before = parse_move("♘g1♘f3").match_ids(pos)
    assert before.p1.uid == knight.uid and before.p2.uid == knight.uid

    pos.toggle(before.pieces)
    after = parse_move("♘g1♘f3").match_ids(pos)
    assert after.p1.uid == knight.uid


def test_match_ids_covers_castling_rook() -> None:
    pos = Position.parse("♚e8♜h8♔e1♖h1")
    rook = next(p for p in pos if p.token == "♖h1")
    move = parse_move("♔e1♔g1♖h1♖f1").match_ids(pos)
    assert move.p3 is not None and move.p4 is not None
    assert move.p3.uid == rook.uid == move.p4.uid


def test_match_ids_unknown_piece() -> None:
    pos = Position.parse(START_POSITION)
    with pytest.raises(ValueError):
        parse_move("♘c4♘d6").match_ids(pos)


def test_with_role_keeps_identity() -> None:
    pawn = parse_move("♙e7♙e8").p2
    queen = pawn.with_role(Role.QUEEN)
    assert isinstance(queen, Piece)
    assert queen.uid == pawn.uid and queen.token == "♕e8"
