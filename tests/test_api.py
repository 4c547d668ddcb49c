"""Tests for the HTTP surface."""
import base64
import inspect

import pytest
from fastapi.routing import APIRoute
from fastapi.testclient import TestClient

from salarycmp.server import api
from salarycmp.shared.config import CoordinatorConfig

ALICE = "0x" + "a1" * 20
BOB = "0x" + "b2" * 20
CAROL = "0x" + "c3" * 20
DAVE = "0x" + "d4" * 20


@pytest.fixture
def client():
    app = api.create_app(config=CoordinatorConfig(max_batch_size=3))
    return TestClient(app)


def value_body(caller, amount):
    encrypted = api.state.engine.encrypt_input(amount)
    return {
        "caller": caller,
        "handle_b64": base64.b64encode(encrypted.handle).decode("ascii"),
        "proof_b64": base64.b64encode(encrypted.proof).decode("ascii"),
    }


class TestValues:
    """Test value endpoints."""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_submit_and_update(self, client):
        response = client.post("/values", json=value_body(ALICE, 90000))
        assert response.status_code == 200
        assert response.json()["event"] == "ValueSubmitted"
        assert response.json()["principal"] == ALICE

        response = client.put("/values", json=value_body(ALICE, 95000))
        assert response.status_code == 200
        assert response.json()["event"] == "ValueUpdated"

        assert client.get(f"/values/{ALICE}").json() == {"exists": True}
        handle = client.get(f"/values/{ALICE}/handle", params={"viewer": ALICE}).json()
        assert handle["type"] == "euint64"

    def test_update_without_submit(self, client):
        response = client.put("/values", json=value_body(ALICE, 95000))

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "not_found"

    def test_forged_proof(self, client):
        body = value_body(ALICE, 90000)
        body["proof_b64"] = base64.b64encode(b"forged").decode("ascii")

        response = client.post("/values", json=body)

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "invalid_ciphertext"

    def test_invalid_address(self, client):
        response = client.post("/values", json=value_body("alice", 90000))

        assert response.status_code == 422

    def test_value_handle_owner_only(self, client):
        client.post("/values", json=value_body(ALICE, 90000))

        response = client.get(f"/values/{ALICE}/handle", params={"viewer": BOB})

        assert response.status_code == 403
        assert response.json()["detail"]["code"] == "unauthorized"

    def test_value_handle_needs_viewer(self, client):
        client.post("/values", json=value_body(ALICE, 90000))

        response = client.get(f"/values/{ALICE}/handle")

        assert response.status_code == 422

    def test_value_handle_viewer_case_insensitive(self, client):
        client.post("/values", json=value_body(ALICE, 90000))

        response = client.get(f"/values/{ALICE}/handle", params={"viewer": ALICE.upper().replace("0X", "0x")})

        assert response.status_code == 200

    def test_addresses_are_case_insensitive(self, client):
        client.post("/values", json=value_body(ALICE.upper().replace("0X", "0x"), 90000))

        assert client.get(f"/values/{ALICE}").json() == {"exists": True}


class TestComparisons:
    """Test comparison endpoints."""

    def test_compare_and_query(self, client):
        client.post("/values", json=value_body(ALICE, 90000))
        client.post("/values", json=value_body(BOB, 80000))

        response = client.post("/comparisons", json={"caller": ALICE, "other": BOB})
        assert response.status_code == 200
        assert response.json()["requester"] == ALICE

        response = client.get(f"/comparisons/{ALICE}/{BOB}", params={"viewer": BOB})
        assert response.status_code == 200
        assert response.json()["type"] == "ebool"

        assert client.get(f"/comparisons/{ALICE}/{BOB}/exists").json() == {"exists": True}
        assert client.get(f"/comparisons/{BOB}/{ALICE}/exists").json() == {"exists": False}

    def test_repeat_compare_conflicts(self, client):
        client.post("/values", json=value_body(ALICE, 90000))
        client.post("/values", json=value_body(BOB, 80000))
        client.post("/comparisons", json={"caller": ALICE, "other": BOB})

        response = client.post("/comparisons", json={"caller": ALICE, "other": BOB})

        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "already_performed"

    def test_self_comparison(self, client):
        response = client.post("/comparisons", json={"caller": ALICE, "other": ALICE})

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "self_comparison"

    def test_non_participant_forbidden(self, client):
        client.post("/values", json=value_body(ALICE, 90000))
        client.post("/values", json=value_body(BOB, 80000))
        client.post("/comparisons", json={"caller": ALICE, "other": BOB})

        response = client.get(f"/comparisons/{ALICE}/{BOB}", params={"viewer": CAROL})

        assert response.status_code == 403

    def test_batch_partial_progress(self, client):
        for caller, amount in ((ALICE, 90000), (BOB, 80000), (CAROL, 70000)):
            client.post("/values", json=value_body(caller, amount))

        response = client.post(
            "/comparisons/batch",
            json={"caller": ALICE, "others": [BOB, CAROL, DAVE]},
        )

        assert response.status_code == 404
        assert client.get(f"/comparisons/{ALICE}/{BOB}/exists").json() == {"exists": True}
        assert client.get(f"/comparisons/{ALICE}/{CAROL}/exists").json() == {"exists": True}

    def test_batch_skips_existing(self, client):
        for caller, amount in ((ALICE, 90000), (BOB, 80000), (CAROL, 70000)):
            client.post("/values", json=value_body(caller, amount))
        client.post("/comparisons", json={"caller": ALICE, "other": BOB})

        response = client.post("/comparisons/batch", json={"caller": ALICE, "others": [BOB, CAROL]})

        assert response.status_code == 200
        assert [e["target"] for e in response.json()["performed"]] == [CAROL]

    def test_batch_limit_from_config(self, client):
        client.post("/values", json=value_body(ALICE, 90000))

        response = client.post(
            "/comparisons/batch",
            json={"caller": ALICE, "others": [BOB, CAROL, DAVE, "0x" + "e5" * 20]},
        )

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "batch_too_large"
        assert client.get("/info").json()["max_batch_size"] == 3


class TestHandlers:
    """Test how handlers are scheduled."""

    def test_handlers_run_in_threadpool(self):
        # Sync endpoints go to FastAPI's worker threads, where the coordinator lock applies.
        endpoints = [route.endpoint for route in api.app.routes if isinstance(route, APIRoute)]

        assert endpoints
        assert not any(inspect.iscoroutinefunction(endpoint) for endpoint in endpoints)
