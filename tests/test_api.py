"""Tests for the FastAPI PerfectXO interface."""

from __future__ import annotations

from fastapi.testclient import TestClient

from perfectxo import ui
from perfectxo.ui import app


client = TestClient(app)


def test_create_game_defaults():
    response = client.post("/api/game", json={})
    assert response.status_code == 200
    payload = response.json()
    assert payload["computerSymbol"] == "X"
    assert payload["humanSymbol"] == "O"
    assert payload["toMove"] == "human"
    assert payload["outcome"] == "ongoing"
    assert payload["moveLog"] == []
    assert payload["score"] == 0
    assert payload["result"] == {
        "outcome": "ongoing",
        "message": "Game is ongoing",
        "tone": "exciting",
    }
    assert payload["prediction"]["message"] == "Draw!"
    assert len(payload["availableMoves"]) == 9
    assert payload["cells"] == [["", "", ""], ["", "", ""], ["", "", ""]]


def test_computer_first_opens_in_corner():
    response = client.post(
        "/api/game", json={"computerSymbol": "O", "computerFirst": True}
    )
    assert response.status_code == 200
    payload = response.json()
    assert payload["cells"][0][0] == "O"
    assert payload["moveLog"] == [{"player": "O", "x": 0, "y": 0}]
    assert payload["toMove"] == "human"
    assert len(payload["availableMoves"]) == 8


def test_move_triggers_computer_reply():
    game_id = client.post("/api/game", json={}).json()["id"]

    move_response = client.post(f"/api/game/{game_id}/move", json={"x": 1, "y": 1})
    assert move_response.status_code == 200
    state = move_response.json()
    assert state["moveLog"] == [
        {"player": "O", "x": 1, "y": 1},
        {"player": "X", "x": 0, "y": 0},
    ]
    assert state["lastMove"] == {"player": "X", "x": 0, "y": 0}
    assert state["cells"][1][1] == "O"
    assert state["cells"][0][0] == "X"
    assert state["toMove"] == "human"

    follow_up = client.get(f"/api/game/{game_id}")
    assert follow_up.status_code == 200
    assert follow_up.json()["moveLog"] == state["moveLog"]


def test_invalid_move_rejected():
    game_id = client.post("/api/game", json={}).json()["id"]
    first_move = client.post(f"/api/game/{game_id}/move", json={"x": 1, "y": 1})
    assert first_move.status_code == 200

    duplicate_move = client.post(f"/api/game/{game_id}/move", json={"x": 1, "y": 1})
    assert duplicate_move.status_code == 400
    assert duplicate_move.json()["detail"]


def test_full_game_never_lost_by_computer():
    game_id = client.post("/api/game", json={}).json()["id"]
    state = client.get(f"/api/game/{game_id}").json()
    while state["outcome"] == "ongoing":
        move = state["availableMoves"][0]
        response = client.post(f"/api/game/{game_id}/move", json=move)
        assert response.status_code == 200
        state = response.json()

    assert state["outcome"] in ("computer", "draw")
    assert state["availableMoves"] == []

    late_move = client.post(f"/api/game/{game_id}/move", json={"x": 0, "y": 0})
    assert late_move.status_code == 400
    assert late_move.json()["detail"] == "Game already finished"


def test_rejects_unsupported_options():
    assert client.post("/api/game", json={"size": 4}).status_code == 422
    assert client.post("/api/game", json={"computerSymbol": "Z"}).status_code == 422


def test_rejects_out_of_range_move():
    game_id = client.post("/api/game", json={}).json()["id"]
    response = client.post(f"/api/game/{game_id}/move", json={"x": 3, "y": 0})
    assert response.status_code == 422


def test_missing_game_returns_404():
    assert client.get("/api/game/missing").status_code == 404
    missing_move = client.post("/api/game/missing/move", json={"x": 0, "y": 0})
    assert missing_move.status_code == 404


def test_index_serves_page():
    response = client.get("/")
    assert response.status_code == 200
    assert "PerfectXO" in response.text


def test_idle_games_expire():
    stale_id = client.post("/api/game", json={}).json()["id"]
    active_id = client.post("/api/game", json={}).json()["id"]
    ui.SESSIONS[stale_id].last_active -= ui.SESSION_TTL_SECONDS

    client.post("/api/game", json={})

    assert stale_id not in ui.SESSIONS
    assert client.get(f"/api/game/{stale_id}").status_code == 404
    assert client.get(f"/api/game/{active_id}").status_code == 200
