"""Order status transitions, archiving and listings."""

from fastapi.testclient import TestClient
from sqlalchemy import select

from app.main import app
from app.models import AuditLog
from app.services.order_status import can_transition
from factories import auth_headers, make_product, make_user


def _place_order(client: TestClient, headers: dict[str, str], product_id: int) -> str:
    response = client.post(
        "/api/v1/orders/checkout",
        json={"customer_name": "Ana", "items": [{"product_id": product_id, "quantity": 1}]},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["id"]


def _seed(session_factory):
    with session_factory() as db:
        customer = make_user(db, "ana@example.com")
        cashier = make_user(db, "till@example.com", role="cashier")
        manager = make_user(db, "boss@example.com", role="manager")
        product = make_product(db, "Latte", "4.00")
        return auth_headers(customer), auth_headers(cashier), auth_headers(manager), product.id


def test_transition_table() -> None:
    assert can_transition("pending", "preparing")
    assert can_transition("ready", "cancelled")
    assert not can_transition("pending", "completed")
    assert not can_transition("completed", "cancelled")
    assert not can_transition("cancelled", "pending")


def test_staff_walks_order_to_completed_and_archives(session_factory) -> None:
    customer_headers, cashier_headers, _, product_id = _seed(session_factory)

    with TestClient(app) as client:
        order_id = _place_order(client, customer_headers, product_id)
        for status in ("preparing", "ready", "completed"):
            response = client.patch(f"/api/v1/orders/{order_id}/status", json={"status": status}, headers=cashier_headers)
            assert response.status_code == 200, response.text
            assert response.json()["status"] == status

        archived = client.patch(f"/api/v1/orders/{order_id}/archive", headers=cashier_headers)
        listing = client.get("/api/v1/orders", headers=cashier_headers)
        after_archive = client.patch(f"/api/v1/orders/{order_id}/status", json={"status": "cancelled"}, headers=cashier_headers)

    assert archived.status_code == 200
    assert archived.json()["is_archived"] is True
    assert listing.status_code == 200
    assert listing.json() == []
    assert after_archive.status_code == 409

    with session_factory() as db:
        actions = db.scalars(select(AuditLog.action_type).order_by(AuditLog.id.asc())).all()
        assert actions == ["order_status_changed"] * 3 + ["order_archived"]


def test_illegal_transition_is_a_conflict(session_factory) -> None:
    customer_headers, cashier_headers, _, product_id = _seed(session_factory)

    with TestClient(app) as client:
        order_id = _place_order(client, customer_headers, product_id)
        response = client.patch(f"/api/v1/orders/{order_id}/status", json={"status": "completed"}, headers=cashier_headers)

    assert response.status_code == 409
    assert response.json()["reason"] == "invalid_status_transition"


def test_unknown_status_value_is_rejected(session_factory) -> None:
    customer_headers, cashier_headers, _, product_id = _seed(session_factory)

    with TestClient(app) as client:
        order_id = _place_order(client, customer_headers, product_id)
        response = client.patch(f"/api/v1/orders/{order_id}/status", json={"status": "shipped"}, headers=cashier_headers)

    assert response.status_code == 422


def test_customer_cannot_change_status(session_factory) -> None:
    customer_headers, _, _, product_id = _seed(session_factory)

    with TestClient(app) as client:
        order_id = _place_order(client, customer_headers, product_id)
        response = client.patch(f"/api/v1/orders/{order_id}/status", json={"status": "preparing"}, headers=customer_headers)

    assert response.status_code == 403


def test_only_manager_archives_cancelled_orders(session_factory) -> None:
    customer_headers, cashier_headers, manager_headers, product_id = _seed(session_factory)

    with TestClient(app) as client:
        order_id = _place_order(client, customer_headers, product_id)
        client.patch(f"/api/v1/orders/{order_id}/status", json={"status": "cancelled"}, headers=cashier_headers)
        by_cashier = client.patch(f"/api/v1/orders/{order_id}/archive", headers=cashier_headers)
        by_manager = client.patch(f"/api/v1/orders/{order_id}/archive", headers=manager_headers)

    assert by_cashier.status_code == 409
    assert by_manager.status_code == 200
    assert by_manager.json()["is_archived"] is True


def test_pending_order_cannot_be_archived(session_factory) -> None:
    customer_headers, _, manager_headers, product_id = _seed(session_factory)

    with TestClient(app) as client:
        order_id = _place_order(client, customer_headers, product_id)
        response = client.patch(f"/api/v1/orders/{order_id}/archive", headers=manager_headers)

    assert response.status_code == 409


def test_customer_sees_only_own_orders(session_factory) -> None:
    customer_headers, cashier_headers, _, product_id = _seed(session_factory)
    with session_factory() as db:
        other_headers = auth_headers(make_user(db, "ben@example.com"))

    with TestClient(app) as client:
        order_id = _place_order(client, customer_headers, product_id)
        mine = client.get("/api/v1/orders/me", headers=customer_headers)
        theirs = client.get("/api/v1/orders/me", headers=other_headers)
        peek = client.get(f"/api/v1/orders/{order_id}", headers=other_headers)
        staff_view = client.get(f"/api/v1/orders/{order_id}", headers=cashier_headers)
        listing_as_customer = client.get("/api/v1/orders", headers=customer_headers)

    assert [order["id"] for order in mine.json()] == [order_id]
    assert theirs.json() == []
    assert peek.status_code == 404
    assert staff_view.status_code == 200
    assert listing_as_customer.status_code == 403


def test_missing_order_is_not_found(session_factory) -> None:
    _, cashier_headers, _, _ = _seed(session_factory)

    with TestClient(app) as client:
        response = client.patch("/api/v1/orders/does-not-exist/status", json={"status": "preparing"}, headers=cashier_headers)

    assert response.status_code == 404
    assert response.json()["reason"] == "order_not_found"
