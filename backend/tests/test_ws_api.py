import random

import pytest
from fastapi.testclient import TestClient

from battleship.main import create_app


@pytest.fixture()
def client(test_config):
    app = create_app(test_config, rng=random.Random(42))
    # общий портал: все сокеты в одном event loop, иначе доставка между ними зависает
    with TestClient(app) as client:
        yield client


def _connect(client):
    ws = client.websocket_connect("/ws")
    session = ws.__enter__()
    hello = session.receive_json()
    assert hello["type"] == "connected"
    return ws, session, hello["playerId"]


def test_health_and_stats(client):
    assert client.get("/health").json() == {"status": "ok"}
    stats = client.get("/stats").json()
    assert stats["connections"] == 0
    assert stats["matches"] == {"waiting": 0, "setup": 0, "battle": 0, "finished": 0}


def test_quick_match_battle_over_websocket(client, wire_fleet):
    ctx_a, a, a_id = _connect(client)
    ctx_b, b, b_id = _connect(client)
    try:
        a.send_json({"type": "join-quick-match", "playerName": "Alice"})
        assert a.receive_json() == {"type": "waiting-for-opponent"}

        b.send_json({"type": "join-quick-match", "playerName": "  Bob  "})
        start_a, start_b = a.receive_json(), b.receive_json()
        assert start_a == start_b
        assert start_a["type"] == "game-start"
        assert start_a["players"] == [{"id": a_id, "name": "Alice"}, {"id": b_id, "name": "Bob"}]
        assert "roomCode" not in start_a

        a.send_json({"type": "place-ships", "ships": wire_fleet})
        assert a.receive_json() == {"type": "ships-placed"}
        b.send_json({"type": "place-ships", "ships": wire_fleet})
        assert b.receive_json() == {"type": "ships-placed"}
        battle_a, battle_b = a.receive_json(), b.receive_json()
        assert battle_a == battle_b
        assert battle_a["type"] == "battle-start"

        sockets = {a_id: a, b_id: b}
        turn = battle_a["currentTurn"]
        other = b_id if turn == a_id else a_id

        # чужой ход и мусор не дают никаких событий
        sockets[other].send_json({"type": "attack", "row": 3, "col": 3})
        sockets[other].send_text("not json")
        sockets[other].send_json({"type": "join-room", "playerName": "x", "roomCode": "NOPE00"})
        assert sockets[other].receive_json() == {"type": "room-not-found"}
        sockets[turn].send_json({"type": "attack", "row": 0, "col": 0})
        for ws in (a, b):
            result = ws.receive_json()
            assert result == {
                "type": "attack-result",
                "row": 0,
                "col": 0,
                "isHit": True,
                "currentTurn": other,
                "attackerId": turn,
                "sunkShip": None,
            }

        stats = client.get("/stats").json()
        assert stats["connections"] == 2
        assert stats["matches"]["battle"] == 1
    finally:
        ctx_a.__exit__(None, None, None)
        ctx_b.__exit__(None, None, None)


def test_disconnect_notifies_opponent(client):
    ctx_a, a, a_id = _connect(client)
    ctx_b, b, b_id = _connect(client)
    try:
        a.send_json({"type": "join-quick-match", "playerName": "Alice"})
        a.receive_json()
        b.send_json({"type": "join-quick-match", "playerName": "Bob"})
        a.receive_json()
        b.receive_json()
        ctx_b.__exit__(None, None, None)
        assert a.receive_json() == {"type": "player-disconnected", "playerId": b_id}
    finally:
        ctx_a.__exit__(None, None, None)


def test_private_room_over_websocket(client):
    ctx_a, a, a_id = _connect(client)
    ctx_b, b, b_id = _connect(client)
    ctx_c, c, c_id = _connect(client)
    try:
        a.send_json({"type": "create-room", "playerName": "Alice"})
        created = a.receive_json()
        assert created["type"] == "room-created"
        code = created["roomCode"]

        b.send_json({"type": "join-room", "playerName": "Bob", "roomCode": "NOPE00"})
        assert b.receive_json() == {"type": "room-not-found"}

        b.send_json({"type": "join-room", "playerName": "", "roomCode": code})
        start = a.receive_json()
        assert start["type"] == "game-start"
        assert start["roomCode"] == code
        assert start["matchId"] == created["matchId"]
        assert start["players"][1] == {"id": b_id, "name": f"Player-{b_id[:6]}"}
        assert b.receive_json() == start

        c.send_json({"type": "join-room", "playerName": "Carl", "roomCode": code})
        assert c.receive_json() == {"type": "room-full"}
    finally:
        ctx_a.__exit__(None, None, None)
        ctx_b.__exit__(None, None, None)
        ctx_c.__exit__(None, None, None)


def test_incremental_placement_over_websocket(client):
    ctx_a, a, a_id = _connect(client)
    ctx_b, b, b_id = _connect(client)
    try:
        a.send_json({"type": "join-quick-match", "playerName": "Alice"})
        a.receive_json()
        b.send_json({"type": "join-quick-match", "playerName": "Bob"})
        a.receive_json()
        b.receive_json()

        a.send_json({"type": "place-ship", "shipId": "destroyer", "row": 0, "col": 0})
        assert a.receive_json() == {
            "type": "ship-placed",
            "shipId": "destroyer",
            "positions": [{"row": 0, "col": 0}, {"row": 0, "col": 1}],
        }
        # пересечение отклоняется молча, следующая команда проходит
        a.send_json({"type": "place-ship", "shipId": "submarine", "row": 0, "col": 1, "orientation": "vertical"})
        a.send_json({"type": "place-ship", "shipId": "destroyer", "row": 5, "col": 5})
        placed = a.receive_json()
        assert placed["shipId"] == "destroyer"
        assert placed["positions"] == [{"row": 5, "col": 5}, {"row": 5, "col": 6}]
    finally:
        ctx_a.__exit__(None, None, None)
        ctx_b.__exit__(None, None, None)
