"""Tests for checkout and viewer endpoints."""

from datetime import timedelta

from fastapi.testclient import TestClient

from unboxme.api.app import create_app
from tests.conftest import T0, FakeClock, FakePaymentClient


def _ready_draft(client: TestClient, *delays: int) -> dict[str, object]:
    draft = client.post("/drafts").json()
    draft_id = draft["id"]
    client.patch(f"/drafts/{draft_id}", json={"title": "Happy Birthday"})
    for _ in delays[1:]:
        client.post(f"/drafts/{draft_id}/cards")
    cards = client.get(f"/drafts/{draft_id}").json()["cards"]
    for index, (card, delay) in enumerate(zip(cards, delays, strict=True)):
        client.patch(
            f"/drafts/{draft_id}/cards/{card['id']}",
            json={"message": f"Card {index + 1}", "unlock_delay_days": delay},
        )
    return client.get(f"/drafts/{draft_id}").json()


def _purchase(
    client: TestClient, payment_client: FakePaymentClient, *delays: int
) -> dict[str, object]:
    draft = _ready_draft(client, *delays)
    started = client.post(
        f"/drafts/{draft['id']}/checkout", json={"email": "buyer@example.com"}
    ).json()
    payment_client.settle(started["payment_intent_id"])
    response = client.post(
        f"/drafts/{draft['id']}/complete",
        json={"payment_intent_id": started["payment_intent_id"]},
    )
    assert response.status_code == 201
    return response.json()


def test_checkout_requires_ready_draft(container) -> None:
    client = TestClient(create_app(container))
    draft = client.post("/drafts").json()

    response = client.post(
        f"/drafts/{draft['id']}/checkout", json={"email": "buyer@example.com"}
    )

    assert response.status_code == 422
    assert "Title is required" in response.json()["problems"]


def test_checkout_returns_client_secret_and_quote(
    container, payment_client: FakePaymentClient
) -> None:
    client = TestClient(create_app(container))
    draft = _ready_draft(client, 0, 1)

    response = client.post(
        f"/drafts/{draft['id']}/checkout", json={"email": "buyer@example.com"}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["client_secret"] == "pi_1_secret"
    assert data["quote"]["amount"] == "9.99"
    assert payment_client.created[0]["amount_minor"] == 999


def test_unpaid_completion_returns_payment_required(
    container, payment_client: FakePaymentClient
) -> None:
    client = TestClient(create_app(container))
    draft = _ready_draft(client, 0)
    started = client.post(
        f"/drafts/{draft['id']}/checkout", json={"email": "buyer@example.com"}
    ).json()

    response = client.post(
        f"/drafts/{draft['id']}/complete",
        json={"payment_intent_id": started["payment_intent_id"]},
    )

    assert response.status_code == 402
    assert response.json()["payment_status"] == "requires_payment_method"
    assert client.get(f"/drafts/{draft['id']}").status_code == 200


def test_purchase_and_view_box(
    container, payment_client: FakePaymentClient, clock: FakeClock
) -> None:
    client = TestClient(create_app(container))
    purchase = _purchase(client, payment_client, 3, 0, 2)

    assert purchase["slug"] == "happy-birthday"
    assert purchase["share_link"] == "https://unboxme.app/box/happy-birthday"
    assert purchase["card_count"] == 3

    clock.advance(hours=47, minutes=30)
    data = client.get(f"/boxes/{purchase['slug']}").json()

    assert [card["state"] for card in data["cards"]] == [
        "unlocked",
        "unlocked",
        "locked",
    ]
    assert data["cards"][0]["card"]["message"] == "Card 1"
    locked = data["cards"][2]
    assert locked["card"] is None
    assert locked["remaining_seconds"] == 30 * 60
    assert locked["countdown"] == "1 hour remaining"


def test_reveal_locked_card_returns_locked(
    container, payment_client: FakePaymentClient, clock: FakeClock
) -> None:
    client = TestClient(create_app(container))
    purchase = _purchase(client, payment_client, 0, 1)

    response = client.post(f"/boxes/{purchase['slug']}/cards/1/reveal")
    assert response.status_code == 423
    assert response.json()["countdown"] == "1 day remaining"

    clock.now = T0 + timedelta(days=1)
    response = client.post(f"/boxes/{purchase['slug']}/cards/1/reveal")
    assert response.status_code == 200
    assert response.json()["message"] == "Card 2"


def test_completion_is_idempotent(
    container, payment_client: FakePaymentClient
) -> None:
    client = TestClient(create_app(container))
    draft = _ready_draft(client, 0)
    started = client.post(
        f"/drafts/{draft['id']}/checkout", json={"email": "buyer@example.com"}
    ).json()
    payment_client.settle(started["payment_intent_id"])
    body = {"payment_intent_id": started["payment_intent_id"]}

    first = client.post(f"/drafts/{draft['id']}/complete", json=body)
    second = client.post(f"/drafts/{draft['id']}/complete", json=body)

    assert first.status_code == second.status_code == 201
    assert first.json() == second.json()


def test_paid_box_persists_despite_later_edits(
    container, payment_client: FakePaymentClient
) -> None:
    client = TestClient(create_app(container))
    draft = _ready_draft(client, 0)
    started = client.post(
        f"/drafts/{draft['id']}/checkout", json={"email": "buyer@example.com"}
    ).json()
    client.patch(f"/drafts/{draft['id']}", json={"has_confetti": True})
    payment_client.settle(started["payment_intent_id"])

    response = client.post(
        f"/drafts/{draft['id']}/complete",
        json={"payment_intent_id": started["payment_intent_id"]},
    )

    assert response.status_code == 201
    box = client.get(f"/boxes/{response.json()['slug']}").json()
    assert box["has_confetti"] is False


def test_missing_box_redirects_to_safe_default(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/boxes/nope")

    assert response.status_code == 404
    assert response.json()["redirect_to"] == "/"
