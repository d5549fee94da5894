"""End-to-end tests for the negotiation HTTP API.

Uses FastAPI TestClient against an in-memory SQLite database and a fake
clock, so deadline behaviour can be driven without waiting.
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from typing import Any

import pytest
from fastapi.testclient import TestClient
from helpers import FakeClock, auth_headers

from negotiations.app import create_app

CLIENT = {"Client-Identifier": "device-abc"}

# ---------------------------------------------------------------------------
# Fixtures and helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def client(services: dict[str, Any]) -> TestClient:
    return TestClient(create_app(services))


def _create(
    client: TestClient,
    *,
    product_id: int = 1,
    price: float = 150.00,
    email: str = "a@x.com",
    headers: dict[str, str] | None = None,
) -> dict[str, Any]:
    resp = client.post(
        "/negotiations",
        json={
            "product_id": product_id,
            "proposed_price": price,
            "client_email": email,
            "client_name": "Alice",
        },
        headers=CLIENT if headers is None else headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def _respond(client: TestClient, negotiation_id: int, accept: bool) -> Any:
    return client.post(
        f"/negotiations/{negotiation_id}/respond",
        json={"is_accepted": accept, "comment": "ok" if accept else "too low"},
        headers=auth_headers(user_id=7),
    )


def _propose(client: TestClient, negotiation_id: int, price: float, headers=CLIENT) -> Any:
    return client.post(
        f"/negotiations/{negotiation_id}/propose-new-price",
        json={"proposed_price": price},
        headers=headers,
    )


# ---------------------------------------------------------------------------
# POST /negotiations
# ---------------------------------------------------------------------------


class TestCreate:
    def test_created(self, client: TestClient) -> None:
        body = _create(client)
        assert body["id"] == 1
        assert body["status"] == "pending"
        assert body["attempt_count"] == 1
        assert body["client_token"] == "device-abc"
        assert Decimal(str(body["proposed_price"])) == Decimal("150")
        assert "version" not in body

    def test_without_client_identifier(self, client: TestClient) -> None:
        body = _create(client, headers={})
        assert body["client_token"] is None

    def test_unknown_product(self, client: TestClient) -> None:
        resp = client.post(
            "/negotiations",
            json={"product_id": 99, "proposed_price": 10, "client_email": "a@x.com"},
        )
        assert resp.status_code == 400
        assert resp.json() == {"detail": "Product not found"}

    def test_zero_price(self, client: TestClient) -> None:
        resp = client.post(
            "/negotiations",
            json={"product_id": 1, "proposed_price": 0, "client_email": "a@x.com"},
        )
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Proposed price must be greater than 0"

    def test_bad_email_is_a_bad_request(self, client: TestClient) -> None:
        resp = client.post(
            "/negotiations",
            json={"product_id": 1, "proposed_price": 10, "client_email": "nope"},
        )
        assert resp.status_code == 400
        detail = resp.json()["detail"]
        assert detail.startswith("client_email:")
        assert "valid email" in detail

    def test_non_numeric_price_is_a_bad_request(self, client: TestClient) -> None:
        resp = client.post(
            "/negotiations",
            json={"product_id": 1, "proposed_price": "abc", "client_email": "a@x.com"},
        )
        assert resp.status_code == 400
        assert resp.json()["detail"].startswith("proposed_price:")

    def test_missing_field_is_a_bad_request(self, client: TestClient) -> None:
        resp = client.post("/negotiations", json={"product_id": 1, "proposed_price": 10})
        assert resp.status_code == 400
        assert resp.json()["detail"].startswith("client_email:")

    def test_email_kept_as_submitted(self, client: TestClient) -> None:
        """Mixed-case addresses are stored verbatim so the owner can match them."""
        created = _create(client, email="Alice@Example.COM", headers={})
        assert created["client_email"] == "Alice@Example.COM"

        owned = client.get(
            f"/negotiations/{created['id']}", params={"email": "Alice@Example.COM"}
        )
        mine = client.get("/negotiations/client", params={"email": "Alice@Example.COM"})

        assert owned.status_code == 200
        assert [n["id"] for n in mine.json()] == [created["id"]]

    def test_duplicate_by_email(self, client: TestClient) -> None:
        _create(client)
        resp = client.post(
            "/negotiations",
            json={"product_id": 1, "proposed_price": 160, "client_email": "a@x.com"},
            headers={"Client-Identifier": "other-device"},
        )
        assert resp.status_code == 400
        assert resp.json()["detail"] == "You already have an active negotiation for this product"

    def test_duplicate_by_token(self, client: TestClient) -> None:
        _create(client)
        resp = client.post(
            "/negotiations",
            json={"product_id": 1, "proposed_price": 160, "client_email": "b@x.com"},
            headers=CLIENT,
        )
        assert resp.status_code == 400


# ---------------------------------------------------------------------------
# POST /negotiations/{id}/respond
# ---------------------------------------------------------------------------


class TestRespond:
    def test_accept(self, client: TestClient) -> None:
        created = _create(client)
        resp = _respond(client, created["id"], accept=True)
        assert resp.status_code == 200
        assert resp.json() == {"status": "accepted", "message": "Negotiation accepted"}

    def test_reject_message(self, client: TestClient) -> None:
        created = _create(client)
        resp = _respond(client, created["id"], accept=False)
        assert resp.status_code == 200
        assert resp.json() == {
            "status": "rejected",
            "message": "Negotiation rejected. Client has 7 days to propose a new price.",
        }

    def test_requires_authentication(self, client: TestClient) -> None:
        created = _create(client)
        resp = client.post(
            f"/negotiations/{created['id']}/respond", json={"is_accepted": True}
        )
        assert resp.status_code == 401
        assert resp.headers["WWW-Authenticate"] == "Bearer"

    def test_invalid_token_is_unauthenticated(self, client: TestClient) -> None:
        created = _create(client)
        resp = client.post(
            f"/negotiations/{created['id']}/respond",
            json={"is_accepted": True},
            headers={"Authorization": "Bearer garbage"},
        )
        assert resp.status_code == 401

    def test_client_role_forbidden(self, client: TestClient) -> None:
        created = _create(client)
        resp = client.post(
            f"/negotiations/{created['id']}/respond",
            json={"is_accepted": True},
            headers=auth_headers(user_id=3, roles=["client"]),
        )
        assert resp.status_code == 403

    def test_seller_allowed(self, client: TestClient) -> None:
        created = _create(client)
        resp = client.post(
            f"/negotiations/{created['id']}/respond",
            json={"is_accepted": True},
            headers=auth_headers(user_id=4, roles=["seller"]),
        )
        assert resp.status_code == 200

    def test_not_found(self, client: TestClient) -> None:
        assert _respond(client, 404, accept=True).status_code == 404

    def test_already_answered(self, client: TestClient) -> None:
        created = _create(client)
        _respond(client, created["id"], accept=True)
        resp = _respond(client, created["id"], accept=False)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "This negotiation is no longer pending"


# ---------------------------------------------------------------------------
# POST /negotiations/{id}/propose-new-price
# ---------------------------------------------------------------------------


class TestProposeNewPrice:
    def test_success(self, client: TestClient) -> None:
        created = _create(client)
        _respond(client, created["id"], accept=False)
        resp = _propose(client, created["id"], 175.00)
        assert resp.status_code == 200
        assert resp.json() == {"message": "New price proposed successfully", "attempt_count": 2}

    def test_by_email_query(self, client: TestClient) -> None:
        created = _create(client)
        _respond(client, created["id"], accept=False)
        resp = client.post(
            f"/negotiations/{created['id']}/propose-new-price?email=a@x.com",
            json={"proposed_price": 175},
        )
        assert resp.status_code == 200

    def test_stranger_forbidden(self, client: TestClient) -> None:
        created = _create(client)
        _respond(client, created["id"], accept=False)
        resp = _propose(client, created["id"], 175, headers={"Client-Identifier": "nope"})
        assert resp.status_code == 403

    def test_not_rejected(self, client: TestClient) -> None:
        created = _create(client)
        resp = _propose(client, created["id"], 175)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Can only propose a new price for rejected negotiations"

    def test_zero_price(self, client: TestClient) -> None:
        created = _create(client)
        _respond(client, created["id"], accept=False)
        resp = _propose(client, created["id"], 0)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Proposed price must be greater than 0"

    def test_non_numeric_price(self, client: TestClient) -> None:
        created = _create(client)
        _respond(client, created["id"], accept=False)
        resp = client.post(
            f"/negotiations/{created['id']}/propose-new-price",
            json={"proposed_price": "abc"},
            headers=CLIENT,
        )
        assert resp.status_code == 400
        assert resp.json()["detail"].startswith("proposed_price:")

    def test_expired_deadline_cancels(self, client: TestClient, clock: FakeClock) -> None:
        created = _create(client)
        _respond(client, created["id"], accept=False)
        clock.advance(timedelta(days=7, seconds=1))

        resp = _propose(client, created["id"], 175)

        assert resp.status_code == 400
        assert resp.json()["detail"] == "The deadline for this negotiation has passed"
        status = client.get(f"/negotiations/{created['id']}", headers=CLIENT).json()["status"]
        assert status == "cancelled"


# ---------------------------------------------------------------------------
# GET routes
# ---------------------------------------------------------------------------


class TestQueries:
    def test_get_as_owner(self, client: TestClient) -> None:
        created = _create(client)
        resp = client.get(f"/negotiations/{created['id']}", headers=CLIENT)
        assert resp.status_code == 200
        assert resp.json() == created

    def test_get_as_owner_by_email(self, client: TestClient) -> None:
        created = _create(client)
        resp = client.get(f"/negotiations/{created['id']}", params={"email": "a@x.com"})
        assert resp.status_code == 200

    def test_get_as_authenticated_user(self, client: TestClient) -> None:
        created = _create(client)
        resp = client.get(
            f"/negotiations/{created['id']}", headers=auth_headers(roles=["client"])
        )
        assert resp.status_code == 200

    def test_get_forbidden(self, client: TestClient) -> None:
        created = _create(client)
        resp = client.get(f"/negotiations/{created['id']}")
        assert resp.status_code == 403

    def test_get_missing(self, client: TestClient) -> None:
        assert client.get("/negotiations/77", headers=auth_headers()).status_code == 404

    def test_list_client(self, client: TestClient) -> None:
        _create(client, product_id=1)
        _create(client, product_id=2, email="b@x.com", headers={})

        by_token = client.get("/negotiations/client", headers=CLIENT).json()
        by_either = client.get(
            "/negotiations/client", headers=CLIENT, params={"email": "b@x.com"}
        ).json()

        assert [n["id"] for n in by_token] == [1]
        assert [n["id"] for n in by_either] == [1, 2]

    def test_list_client_requires_identity(self, client: TestClient) -> None:
        resp = client.get("/negotiations/client")
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Either client identifier or email is required"

    def test_list_all_staff_only(self, client: TestClient) -> None:
        _create(client)
        assert client.get("/negotiations").status_code == 401
        assert client.get("/negotiations", headers=auth_headers(roles=["client"])).status_code == 403
        resp = client.get("/negotiations", headers=auth_headers(roles=["seller"]))
        assert resp.status_code == 200
        assert len(resp.json()) == 1

    def test_list_by_product(self, client: TestClient) -> None:
        _create(client, product_id=1)
        _create(client, product_id=2)
        resp = client.get("/negotiations/product/2", headers=auth_headers())
        assert resp.status_code == 200
        assert [n["product_id"] for n in resp.json()] == [2]


# ---------------------------------------------------------------------------
# Full scenario
# ---------------------------------------------------------------------------


def test_three_attempts_then_cancelled(client: TestClient, clock: FakeClock) -> None:
    """Offer, two counter-rounds, then the third rejection closes the door."""
    negotiation_id = _create(client)["id"]

    for price, attempt in ((175.00, 2), (190.00, 3)):
        assert _respond(client, negotiation_id, accept=False).status_code == 200
        clock.advance(timedelta(days=2))
        resp = _propose(client, negotiation_id, price)
        assert resp.json()["attempt_count"] == attempt

    _respond(client, negotiation_id, accept=False)
    resp = _propose(client, negotiation_id, 200.00)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Maximum number of negotiation attempts (3) has been reached"

    body = client.get(f"/negotiations/{negotiation_id}", headers=auth_headers()).json()
    assert body["status"] == "cancelled"
    assert body["attempt_count"] == 3

    # A cancelled negotiation frees the client to start over
    assert _create(client)["id"] == 2
