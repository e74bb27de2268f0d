from __future__ import annotations

import pytest

from replay_chess.engine.errors import NotationError
from replay_chess.engine.piece import Colour, Piece, Position, Role, parse_token
from replay_chess.engine.square import UP, Square


def test_equality_ignores_identity() -> None:
    a = Piece(Colour.WHITE, Role.KNIGHT, Square.parse("g1"))
    b = Piece(Colour.WHITE, Role.KNIGHT, Square.parse("g1"))
    assert a.uid != b.uid
    assert a == b
    assert hash(a) == hash(b)
    assert len({a, b}) == 1


def test_shift_keeps_identity_and_stays_pure() -> None:
    pawn = Piece(Colour.WHITE, Role.PAWN, Square.parse("e2"))
    moved = pawn.shift(UP)
    assert moved is not None
    assert moved.square == Square.parse("e3")
    assert moved.uid == pawn.uid
    assert pawn.square == Square.parse("e2")


def test_shift_off_board() -> None:
    pawn = Piece(Colour.WHITE, Role.PAWN, Square.parse("e8"))
    assert pawn.shift(UP) is None


def test_token() -> None:
    assert Piece(Colour.BLACK, Role.QUEEN, Square.parse("d8")).token == "♛d8"
    assert str(Piece(Colour.WHITE, Role.KING, Square.parse("e1"))) == "♔e1"


def test_parse_token_strict() -> None:
    piece = parse_token("♞f6")
    assert (piece.colour, piece.role, str(piece.square)) == (Colour.BLACK, Role.KNIGHT, "f6")
    for bad in ("Nf6", "♞F6", "♞f9", "♞f", "xf6"):
        with pytest.raises(NotationError):
            parse_token(bad)


def test_parse_token_lenient_accepts_letters_and_uppercase_files() -> None:
    assert parse_token("Pe4", lenient=True).token == "♙e4"
    assert parse_token("nF6", lenient=True).token == "♞f6"
    assert parse_token("♚E8", lenient=True).token == "♚e8"
    with pytest.raises(NotationError):
        parse_token("Xe4", lenient=True)


def _position(text: str) -> Position:
    return Position.parse(text)


def test_knight_and_pawn_checks() -> None:
    pos = _position("♚e8♞f3♔e1")
    assert pos.checks(pos.king(Colour.WHITE)) == 1

    # black pawns attack towards rank 1
    pos = _position("♚e8♟d5♔e4")
    assert pos.checks(pos.king(Colour.WHITE)) == 1
    pos = _position("♚e8♟d3♔e4")
    assert pos.checks(pos.king(Colour.WHITE)) == 0


def test_sliders_are_blocked_by_any_piece() -> None:
    pos = _position("♚h8♜e8♔e1")
    assert pos.checks(pos.king(Colour.WHITE)) == 1
    # own piece in between
    pos = _position("♚h8♜e8♖e4♔e1")
    assert pos.checks(pos.king(Colour.WHITE)) == 0
    # enemy piece that cannot attack along the ray also blocks
    pos = _position("♚h8♜e8♞e4♔e1")
    assert pos.checks(pos.king(Colour.WHITE)) == 0


def test_queen_attacks_on_both_families() -> None:
    pos = _position("♚h8♛a5♔e1")
    assert pos.checks(pos.king(Colour.WHITE)) == 1
    pos = _position("♚h8♛e5♔e1")
    assert pos.checks(pos.king(Colour.WHITE)) == 1


def test_king_attacks_only_adjacent_squares() -> None:
    pos = _position("♚e3♔e1")
    assert pos.checks(pos.king(Colour.WHITE)) == 0
    pos = _position("♚e2♔e1")
    assert pos.checks(pos.king(Colour.WHITE)) == 1


def test_count_all_finds_double_check() -> None:
    pos = _position("♚e8♜a1♞f3♔e1")
    king = pos.king(Colour.WHITE)
    assert pos.checks(king) == 1
    assert pos.checks(king, count_all=True) == 2


def test_checks_on_any_piece_square() -> None:
    pos = _position("♚e8♜f8♔e1♖h1")
    landing = Piece(Colour.WHITE, Role.ROOK, Square.parse("f1"))
    assert pos.checks(landing) == 1


@pytest.mark.parametrize(
    ("text", "turn", "valid"),
    [
        ("♚e8♟e7♔e1", Colour.WHITE, True),
        ("♚e8♔e1", Colour.WHITE, False),  # too few pieces
        ("♚e8♙a8♔e1", Colour.WHITE, False),  # unpromoted pawn on the last rank
        ("♚e8♟a1♔e1", Colour.WHITE, False),
        ("♚e8♛d8♕d1", Colour.WHITE, False),  # no white king
        ("♚e8♚a8♔e1", Colour.WHITE, False),  # two black kings
        ("♚e8♖e4♔e1", Colour.WHITE, False),  # side not to move is in check
        ("♚e8♖e4♔e1", Colour.BLACK, True),
    ],
)
def test_is_valid(text: str, turn: Colour, valid: bool) -> None:
    assert _position(text).is_valid(turn) is valid
