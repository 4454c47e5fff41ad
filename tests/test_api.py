"""API tests for the negotiation endpoints."""

import json

import pytest
from starlette.testclient import TestClient

from conftest import FakeStore


def _token(client: TestClient, room_id: str, faction: str) -> str:
    response = client.post("/api/auth", json={"room_id": room_id, "faction": faction})
    assert response.status_code == 200, response.text
    return response.json()["access_token"]


def _auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _create(client: TestClient, token: str, participants: list[str]) -> str:
    response = client.post("/api/conversations", json={"participants": participants}, headers=_auth(token))
    assert response.status_code == 200, response.text
    return response.json()["conversation_id"]


def test_negotiation_scenario(client: TestClient, store: FakeStore) -> None:
    england = _token(client, "room-x", "england")
    conversation_id = _create(client, england, ["france"])
    assert _create(client, england, ["france"]) == conversation_id
    assert json.loads(store.data["room:room-x:conversations"]) == [conversation_id]

    listed = client.get("/api/conversations", params={"room_id": "room-x"}, headers=_auth(england)).json()
    assert listed == [{"conversation_id": conversation_id, "participants": ["england", "france"]}]

    france = _token(client, "room-x", "france")
    m1 = client.post("/api/messages", json={"conversation_id": conversation_id, "content": "hello"}, headers=_auth(england))
    m2 = client.post("/api/messages", json={"conversation_id": conversation_id, "content": "bonjour"}, headers=_auth(france))
    assert m1.status_code == 200 and m2.status_code == 200

    messages = client.get(
        "/api/messages", params={"conversation_id": conversation_id, "since": 0}, headers=_auth(france)
    ).json()
    assert [m["message_id"] for m in messages] == [m1.json()["message_id"], m2.json()["message_id"]]
    assert messages[1]["timestamp"] >= messages[0]["timestamp"]
    assert messages[0]["sender_faction"] == "england"
    assert messages[1]["content"] == "bonjour"

    germany = _token(client, "room-x", "germany")
    response = client.post(
        "/api/messages", json={"conversation_id": conversation_id, "content": "guten tag"}, headers=_auth(germany)
    )
    assert response.status_code == 403
    response = client.get("/api/messages", params={"conversation_id": conversation_id}, headers=_auth(germany))
    assert response.status_code == 403


def test_auth_rejects_invalid_faction(client: TestClient) -> None:
    response = client.post("/api/auth", json={"room_id": "room-x", "faction": "spain"})
    assert response.status_code == 400
    assert "detail" in response.json()


def test_auth_accepts_country_alias(client: TestClient) -> None:
    response = client.post("/api/auth", json={"room_id": "room-x", "country": "austria"})
    assert response.status_code == 200
    assert response.json()["access_token"].startswith("room-x|austria|")


def test_auth_missing_field_is_bad_request(client: TestClient) -> None:
    response = client.post("/api/auth", json={"room_id": "room-x"})
    assert response.status_code == 400


@pytest.mark.parametrize(
    "headers",
    [{}, {"Authorization": "Token abc"}, {"Authorization": "Bearer room-x|england|deadbeef"}],
)
def test_endpoints_require_valid_token(client: TestClient, headers: dict[str, str]) -> None:
    assert client.get("/api/conversations", headers=headers).status_code == 401
    assert client.post("/api/conversations", json={"participants": ["france"]}, headers=headers).status_code == 401
    assert client.get("/api/messages", params={"conversation_id": "x"}, headers=headers).status_code == 401
    assert client.post("/api/messages", json={"conversation_id": "x", "content": "hi"}, headers=headers).status_code == 401


def test_room_mismatch_is_forbidden(client: TestClient) -> None:
    token = _token(client, "room-x", "england")
    response = client.get("/api/conversations", params={"room_id": "room-y"}, headers=_auth(token))
    assert response.status_code == 403
    response = client.post(
        "/api/conversations", json={"participants": ["france"], "room_id": "room-y"}, headers=_auth(token)
    )
    assert response.status_code == 403


def test_room_with_pipe_round_trips(client: TestClient) -> None:
    token = _token(client, "league|game 7", "turkey")
    response = client.get("/api/conversations", params={"room_id": "league|game 7"}, headers=_auth(token))
    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.parametrize(
    "participants",
    [[], ["england"], ["france", "germany", "italy"], ["france", "france"], ["spain"], ["england", "england", "france"]],
)
def test_create_rejects_bad_participant_lists(client: TestClient, participants: list[str]) -> None:
    token = _token(client, "room-x", "england")
    response = client.post("/api/conversations", json={"participants": participants}, headers=_auth(token))
    assert response.status_code == 400


def test_create_with_caller_listed_gives_same_id(client: TestClient) -> None:
    england = _token(client, "room-x", "england")
    italy = _token(client, "room-x", "italy")
    a = _create(client, england, ["england", "italy", "russia"])
    b = _create(client, italy, ["russia", "england"])
    assert a == b


def test_message_size_boundary(client: TestClient) -> None:
    token = _token(client, "room-x", "england")
    conversation_id = _create(client, token, ["france"])
    ok = client.post("/api/messages", json={"conversation_id": conversation_id, "content": "x" * 4096}, headers=_auth(token))
    assert ok.status_code == 200
    too_big = client.post("/api/messages", json={"conversation_id": conversation_id, "content": "x" * 4097}, headers=_auth(token))
    assert too_big.status_code == 400


def test_unknown_conversation_is_not_found(client: TestClient) -> None:
    token = _token(client, "room-x", "england")
    response = client.get("/api/messages", params={"conversation_id": "ffffffffffffffff"}, headers=_auth(token))
    assert response.status_code == 404
    response = client.post("/api/messages", json={"conversation_id": "ffffffffffffffff", "content": "hi"}, headers=_auth(token))
    assert response.status_code == 404


def test_conversation_from_other_room_is_forbidden(client: TestClient) -> None:
    here = _token(client, "room-x", "england")
    there = _token(client, "room-y", "england")
    conversation_id = _create(client, here, ["france"])
    response = client.get("/api/messages", params={"conversation_id": conversation_id}, headers=_auth(there))
    assert response.status_code == 403


def test_messages_query_validation(client: TestClient) -> None:
    token = _token(client, "room-x", "england")
    assert client.get("/api/messages", headers=_auth(token)).status_code == 400
    response = client.get("/api/messages", params={"conversation_id": "x", "since": "soon"}, headers=_auth(token))
    assert response.status_code == 400


def test_storage_failure_is_500_without_internals(client: TestClient, store: FakeStore) -> None:
    token = _token(client, "room-x", "england")
    store.fail = True
    response = client.get("/api/conversations", headers=_auth(token))
    assert response.status_code == 500
    assert response.json() == {"detail": "Storage unavailable"}


def test_seat_can_only_be_claimed_once(seat_client: TestClient) -> None:
    assert seat_client.post("/api/auth", json={"room_id": "room-x", "faction": "russia"}).status_code == 200
    second = seat_client.post("/api/auth", json={"room_id": "room-x", "faction": "russia"})
    assert second.status_code == 409
    assert seat_client.post("/api/auth", json={"room_id": "room-y", "faction": "russia"}).status_code == 200


def test_without_seat_claims_tokens_can_be_reissued(client: TestClient) -> None:
    assert _token(client, "room-x", "russia") == _token(client, "room-x", "russia")


def test_health_and_cors_preflight(client: TestClient) -> None:
    assert client.get("/api/health").text == "ok"
    response = client.options(
        "/api/messages",
        headers={
            "Origin": "https://example.com",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Authorization",
        },
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
