"""Integration tests for the game HTTP and WebSocket API."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from powergrid_backend.api import create_api
from powergrid_backend.api.dependencies import get_game_registry
from powergrid_backend.api.services import AuthService, GameRegistry
from powergrid_backend.settings import get_settings

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture
def client() -> Iterator[TestClient]:
    """Return a FastAPI test client with an isolated game registry."""

    app = create_api()
    registry = GameRegistry.create_default()
    app.dependency_overrides[get_game_registry] = lambda: registry

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def _issue_token(subject: str) -> str:
    """Create a signed access token for *subject*."""
    auth_service = AuthService(settings=get_settings())
    return auth_service.create_access_token(subject)


def _create_game(client: TestClient, game_id: str = "test-game") -> dict[str, object]:
    response = client.post("/games", json={"game_id": game_id, "random_seed": 7})
    assert response.status_code == 201
    return response.json()


def test_create_and_fetch_game(client: TestClient) -> None:
    created = _create_game(client)
    assert created == {"game_id": "test-game", "random_seed": 7, "phase": "lobby"}

    duplicate = client.post("/games", json={"game_id": "test-game"})
    assert duplicate.status_code == 409

    snapshot = client.get("/games/test-game")
    assert snapshot.status_code == 200
    game = snapshot.json()["game"]
    assert game["phase"] == "lobby"
    assert "hex_cell_resources" not in game

    assert client.get("/games/missing").status_code == 404


def test_websocket_game_flow(client: TestClient) -> None:
    _create_game(client)
    token = _issue_token("player-1")

    with client.websocket_connect(f"/ws/games/test-game?token={token}") as websocket:
        initial = websocket.receive_json()
        assert initial["type"] == "game_state"
        assert initial["game"]["phase"] == "lobby"
        assert initial["private"] is None

        websocket.send_json({"type": "PAUSE"})
        websocket.send_json({"type": "JOIN_GAME", "name": "Alice"})
        joined = websocket.receive_json()
        assert joined["type"] == "game_state"
        assert joined["game"]["players"]["player-1"]["is_host"] is True
        assert joined["private"] == {"survey_results_by_hex": {}}

        websocket.send_json({"type": "START_GAME"})
        started = websocket.receive_json()
        assert started["game"]["phase"] == "auction:initiatingBid"


def test_invalid_commands_get_an_error(client: TestClient) -> None:
    _create_game(client)
    token = _issue_token("player-1")

    with client.websocket_connect(f"/ws/games/test-game?token={token}") as websocket:
        websocket.receive_json()

        websocket.send_json({"type": "TICK"})
        error = websocket.receive_json()
        assert error["type"] == "error"
        assert error["message"] == "Invalid command"
        assert error["detail"]["errors"]

        websocket.send_json({"type": "AUCTION_PLACE_BID", "amount": -5})
        error = websocket.receive_json()
        assert error["type"] == "error"


def test_other_players_see_each_others_moves(client: TestClient) -> None:
    _create_game(client)
    alice = _issue_token("alice")
    bob = _issue_token("bob")

    with (
        client.websocket_connect(f"/ws/games/test-game?token={alice}") as first,
        client.websocket_connect(f"/ws/games/test-game?token={bob}") as second,
    ):
        first.receive_json()
        second.receive_json()

        second.send_json({"type": "JOIN_GAME", "name": "Bob"})
        seen_by_alice = first.receive_json()
        seen_by_bob = second.receive_json()

        assert "bob" in seen_by_alice["game"]["players"]
        assert seen_by_alice["private"] is None
        assert seen_by_bob["private"] == {"survey_results_by_hex": {}}


def test_websocket_requires_valid_token(client: TestClient) -> None:
    _create_game(client)

    with (
        pytest.raises(WebSocketDisconnect),
        client.websocket_connect("/ws/games/test-game?token=bogus") as websocket,
    ):
        websocket.receive_json()


def test_websocket_unknown_game(client: TestClient) -> None:
    token = _issue_token("player-1")

    with client.websocket_connect(f"/ws/games/nope?token={token}") as websocket:
        error = websocket.receive_json()
        assert error["type"] == "error"
        assert error["message"] == "Game not found"
        with pytest.raises(WebSocketDisconnect):
            websocket.receive_json()
