from __future__ import annotations

from fastapi.testclient import TestClient

from replay_chess.engine.fen import START_POSITION
from replay_chess.protocol.http.app import create_app


def _new_game(client: TestClient) -> str:
    return client.post("/api/games").json()["game_id"]


def test_move_updates_state() -> None:
    client = TestClient(create_app())
    game_id = _new_game(client)
    r = client.post(f"/api/games/{game_id}/move", json={"move": "♙e2♙e4"})
    assert r.status_code == 200
    state = r.json()
    assert state["turn"] == "black"
    assert state["last_move"] == "♙e2♙e4"
    assert state["history"] == ["♙e2♙e4"]
    assert "♟e7♟e5" in state["legal_moves"]


def test_illegal_move_returns_400() -> None:
    client = TestClient(create_app())
    game_id = _new_game(client)
    r = client.post(f"/api/games/{game_id}/move", json={"move": "♙e2♙e5"})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "illegal_move"

    r = client.post(f"/api/games/{game_id}/move", json={"move": "e2e4"})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "invalid_notation"


def test_backward_without_moves_returns_400() -> None:
    client = TestClient(create_app())
    game_id = _new_game(client)
    r = client.post(f"/api/games/{game_id}/backward")
    assert r.status_code == 400
    body = r.json()
    assert body["error"]["code"] == "navigation_error"
    assert "no moves" in body["error"]["message"].lower()


def test_backward_restores_prior_state() -> None:
    client = TestClient(create_app())
    game_id = _new_game(client)
    client.post(f"/api/games/{game_id}/move", json={"move": "♙e2♙e4"})

    r = client.post(f"/api/games/{game_id}/backward")
    assert r.status_code == 200
    state = r.json()
    assert state["position"] == START_POSITION
    assert state["last_move"] is None
    assert state["history"] == []
    assert len(state["legal_moves"]) == 20


def test_forward_and_jump() -> None:
    client = TestClient(create_app())
    game_id = _new_game(client)
    root_id = client.get(f"/api/games/{game_id}/state").json()["node_id"]
    client.post(f"/api/games/{game_id}/move", json={"move": "♙e2♙e4"})
    client.post(f"/api/games/{game_id}/backward")

    r = client.post(f"/api/games/{game_id}/forward")
    assert r.status_code == 200
    assert r.json()["last_move"] == "♙e2♙e4"

    r = client.post(f"/api/games/{game_id}/jump", json={"node_id": root_id})
    assert r.json()["node_id"] == root_id

    r = client.post(f"/api/games/{game_id}/jump", json={"node_id": 9999})
    assert r.status_code == 404


def test_forward_at_leaf_returns_400() -> None:
    client = TestClient(create_app())
    game_id = _new_game(client)
    client.post(f"/api/games/{game_id}/move", json={"move": "♙e2♙e4"})
    r = client.post(f"/api/games/{game_id}/forward")
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "navigation_error"


def test_checkmate_reported() -> None:
    client = TestClient(create_app())
    game_id = _new_game(client)
    for move in ("♙f2♙f3", "♟e7♟e5", "♙g2♙g4", "♛d8♛h4"):
        r = client.post(f"/api/games/{game_id}/move", json={"move": move})
    state = r.json()
    assert state["checkmate"] and state["in_check"]
    assert not state["stalemate"]
    assert state["legal_moves"] == []


def test_computer_replays_recorded_line() -> None:
    client = TestClient(create_app())
    game_id = _new_game(client)
    for move in ("♙e2♙e4", "♟e7♟e5", "♘g1♘f3"):
        client.post(f"/api/games/{game_id}/move", json={"move": move})
    for _ in range(2):
        client.post(f"/api/games/{game_id}/backward")

    # now after 1. e4 with black to move
    r = client.post(f"/api/games/{game_id}/computer")
    assert r.status_code == 200
    state = r.json()
    assert state["last_move"] == "♟e7♟e5"
    assert state["computer"] == "black"


def test_computer_without_continuation_returns_409() -> None:
    client = TestClient(create_app())
    game_id = _new_game(client)
    r = client.post(f"/api/games/{game_id}/computer")
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "conflict"
