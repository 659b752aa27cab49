"""Tests for normalized error responses."""

from fastapi.testclient import TestClient

from stackr.main import app
from stackr.features.challenges.service import challenge_service


def _create_challenge(client, user_id="owner"):
    resp = client.post("/v1/challenges", json={"user_id": user_id, "target_amount": 10})
    return resp.json()["challenge"]["id"]


def test_validation_error_has_standard_shape():
    client = TestClient(app)
    resp = client.post("/v1/challenges", json={"user_id": "u1", "type": "yearly"})
    assert resp.status_code == 400
    body = resp.json()
    rid = resp.headers.get("x-request-id")
    assert body["error"]["code"] == "validation_error"
    assert body["error"]["request_id"] == rid
    assert body["error"]["message"].startswith("type:")


def test_permission_error_normalized():
    client = TestClient(app)
    challenge_id = _create_challenge(client)

    resp = client.post(
        f"/v1/challenges/{challenge_id}/contributions",
        json={"user_id": "other", "amount": 5},
    )
    assert resp.status_code == 403
    body = resp.json()
    rid = resp.headers.get("x-request-id")
    assert body["error"]["code"] == "forbidden"
    assert body["error"]["request_id"] == rid


def test_not_found_normalized():
    client = TestClient(app)
    resp = client.get("/v1/challenges/does-not-exist", params={"user_id": "u1"})
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "not_found"


def test_invalid_contribution_normalized():
    client = TestClient(app)
    challenge_id = _create_challenge(client)

    resp = client.post(
        f"/v1/challenges/{challenge_id}/contributions",
        json={"user_id": "owner", "amount": 0},
    )
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"]["code"] == "invalid_contribution"
    assert body["detail"] == body["error"]["message"]


def test_non_finite_contribution_is_a_client_error():
    client = TestClient(app)
    challenge_id = _create_challenge(client)

    resp = client.post(
        f"/v1/challenges/{challenge_id}/contributions",
        content='{"user_id": "owner", "amount": NaN}',
        headers={"content-type": "application/json"},
    )
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"]["code"] == "validation_error"
    assert body["error"]["message"].startswith("amount:")


def test_invalid_duration_normalized():
    client = TestClient(app)
    resp = client.post("/v1/challenges", json={"user_id": "u1", "duration": 0})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "invalid_duration"


def test_unknown_route_uses_error_shape():
    client = TestClient(app)
    resp = client.get("/v1/nowhere")
    assert resp.status_code == 404
    body = resp.json()
    assert body["error"]["code"] == "not_found"
    assert body["error"]["request_id"] == resp.headers.get("x-request-id")


def test_unhandled_error_is_internal(monkeypatch):
    def boom(user_id):
        raise RuntimeError("storage offline")

    monkeypatch.setattr(challenge_service, "get_statistics", boom)
    client = TestClient(app, raise_server_exceptions=False)
    resp = client.get("/v1/achievements/stats", params={"user_id": "u1"})
    assert resp.status_code == 500
    body = resp.json()
    assert body["error"]["code"] == "internal_error"
    assert "storage offline" not in body["error"]["message"]
