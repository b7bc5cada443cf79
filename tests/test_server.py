"""End-to-end checks of the websocket endpoint."""
from __future__ import annotations

from typing import Any, Dict, Iterator, List

import pytest
from fastapi.testclient import TestClient

from towerlobby import config
from towerlobby.server import create_app


def _receive_until(websocket: Any, event: str) -> Dict[str, Any]:
    while True:
        message = websocket.receive_json()
        if message["event"] == event:
            return message


def _collect_until(websocket: Any, event: str) -> List[Dict[str, Any]]:
    seen = []
    while True:
        message = websocket.receive_json()
        seen.append(message)
        if message["event"] == event:
            return seen


def _send(websocket: Any, event: str, data: Any = None) -> None:
    websocket.send_json({"event": event, "data": data})


@pytest.fixture()
def client() -> Iterator[TestClient]:
    with TestClient(create_app()) as client:
        yield client


def test_health_reports_empty_lobby(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "sessions": 0, "connections": 0}


def test_server_list_sent_on_connect(client: TestClient) -> None:
    with client.websocket_connect("/ws") as websocket:
        assert websocket.receive_json() == {"event": "serverList", "data": []}


def test_host_join_start_and_relay(client: TestClient) -> None:
    with client.websocket_connect("/ws") as alice:
        _receive_until(alice, "serverList")
        _send(alice, "hostServer", {"name": "Castle", "maxPlayers": 2, "playerName": "Alice"})
        lobby = _receive_until(alice, "joinedLobby")["data"]
        assert lobby["players"][0]["isHost"] is True

        with client.websocket_connect("/ws") as bob:
            listing = _receive_until(bob, "serverList")["data"]
            assert [entry["id"] for entry in listing] == [lobby["id"]]

            _send(bob, "joinServer", {"serverId": lobby["id"], "playerName": "Bob"})
            joined = _receive_until(bob, "joinedLobby")["data"]
            assert [p["name"] for p in joined["players"]] == ["Alice", "Bob"]
            update = _receive_until(alice, "lobbyUpdate")["data"]
            assert len(update["players"]) == 2

            _send(alice, "startGame")
            started = _receive_until(bob, "gameStarted")["data"]
            assert started["difficulty"] == config.DEFAULT_DIFFICULTY

            _send(bob, "towerPlaced", {"x": 1, "y": 2})
            assert _receive_until(alice, "towerPlaced")["data"] == {"x": 1, "y": 2}

            _send(alice, "waveStart")
            assert _receive_until(bob, "waveStart")["data"] is None
            assert _receive_until(alice, "waveStart")["data"] is None

        update = _receive_until(alice, "lobbyUpdate")["data"]
        assert [p["name"] for p in update["players"]] == ["Alice"]


def test_host_disconnect_closes_session(client: TestClient) -> None:
    with client.websocket_connect("/ws") as bob:
        _receive_until(bob, "serverList")
        with client.websocket_connect("/ws") as alice:
            _receive_until(alice, "serverList")
            _send(alice, "hostServer", {"name": "Castle"})
            lobby = _receive_until(alice, "joinedLobby")["data"]
            _send(bob, "joinServer", {"serverId": lobby["id"]})
            _receive_until(bob, "joinedLobby")

        closed = _receive_until(bob, "serverClosed")
        assert closed["data"] == config.HOST_DISCONNECTED_REASON
        assert _receive_until(bob, "serverList")["data"] == []

    assert client.get("/health").json()["sessions"] == 0


def test_rejections_reach_only_the_sender(client: TestClient) -> None:
    with client.websocket_connect("/ws") as observer:
        assert observer.receive_json() == {"event": "serverList", "data": []}
        with client.websocket_connect("/ws") as websocket:
            _receive_until(websocket, "serverList")
            _send(websocket, "joinServer", {"serverId": 1})
            assert _receive_until(websocket, "error")["data"] == config.NOT_FOUND_MESSAGE

            websocket.send_text("not json")
            assert _receive_until(websocket, "error")["data"] == "Malformed message"

            _send(websocket, "launchMissiles", {})
            assert "Unknown event" in _receive_until(websocket, "error")["data"]

            websocket.send_json(["hostServer"])
            assert _receive_until(websocket, "error")["data"] == "message must be an object"

            # The next broadcast the observer sees is the listing for this host.
            _send(websocket, "hostServer", {"name": "Castle"})
            seen = _collect_until(observer, "serverList")
            assert [message["event"] for message in seen] == ["serverList"]
            assert seen[0]["data"][0]["name"] == "Castle"


def test_binary_frame_is_rejected_without_closing_session(client: TestClient) -> None:
    with client.websocket_connect("/ws") as bob:
        _receive_until(bob, "serverList")
        with client.websocket_connect("/ws") as alice:
            _receive_until(alice, "serverList")
            _send(alice, "hostServer", {"name": "Castle"})
            lobby = _receive_until(alice, "joinedLobby")["data"]
            _send(bob, "joinServer", {"serverId": lobby["id"]})
            _receive_until(bob, "joinedLobby")

            alice.send_bytes(b'{"event": "leaveLobby"}')
            assert _receive_until(alice, "error")["data"] == "Malformed message"

            _send(alice, "startGame")
            seen = _collect_until(bob, "gameStarted")
            assert "serverClosed" not in [message["event"] for message in seen]
            assert client.get("/health").json()["sessions"] == 1
