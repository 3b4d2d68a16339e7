"""Reward definitions, claims, voucher grants and customer info endpoints."""

from decimal import Decimal

from fastapi.testclient import TestClient
from sqlalchemy import select

from app.main import app
from app.models import AuditLog, CustomerVoucher, Reward, User
from factories import auth_headers, make_reward, make_user


def test_manager_creates_reward_with_legacy_criteria_keys(session_factory) -> None:
    with session_factory() as db:
        manager_headers = auth_headers(make_user(db, "boss@example.com", role="manager"))
        cashier_headers = auth_headers(make_user(db, "till@example.com", role="cashier"))

    payload = {
        "name": "Happy hour",
        "points_cost": 50,
        "discount_percentage": "15",
        "criteria": {
            "activeTimeWindows": [{"startTime": "15:00", "endTime": "17:00"}],
            "minPurchasesMonthly": 2,
        },
    }
    with TestClient(app) as client:
        created = client.post("/api/v1/rewards/definitions", json=payload, headers=manager_headers)
        forbidden = client.post("/api/v1/rewards/definitions", json=payload, headers=cashier_headers)
        listing = client.get("/api/v1/rewards/definitions")

    assert created.status_code == 201, created.text
    body = created.json()
    assert body["criteria"] == {
        "min_purchases_monthly": 2,
        "is_birthday_only": False,
        "is_birth_month_only": False,
        "active_time_windows": [{"start_time": "15:00:00", "end_time": "17:00:00"}],
        "is_sign_up_bonus": False,
    }
    assert forbidden.status_code == 403
    assert [reward["name"] for reward in listing.json()] == ["Happy hour"]

    with session_factory() as db:
        assert db.scalar(select(AuditLog.action_type)) == "reward_created"


def test_invalid_criteria_is_rejected(session_factory) -> None:
    with session_factory() as db:
        manager_headers = auth_headers(make_user(db, "boss@example.com", role="manager"))

    with TestClient(app) as client:
        response = client.post(
            "/api/v1/rewards/definitions",
            json={"name": "Broken", "criteria": {"allowedDaysOfWeek": [7]}},
            headers=manager_headers,
        )

    assert response.status_code == 422


def test_update_and_deactivate_reward(session_factory) -> None:
    with session_factory() as db:
        manager_headers = auth_headers(make_user(db, "boss@example.com", role="manager"))
        reward_id = make_reward(db, "Dollar off", points_cost=100, discount_fixed_amount=Decimal("1.00")).id

    with TestClient(app) as client:
        updated = client.put(f"/api/v1/rewards/definitions/{reward_id}", json={"points_cost": 150}, headers=manager_headers)
        deleted = client.delete(f"/api/v1/rewards/definitions/{reward_id}", headers=manager_headers)
        active = client.get("/api/v1/rewards/definitions")
        everything = client.get("/api/v1/rewards/definitions", params={"include_inactive": True})

    assert updated.status_code == 200
    assert updated.json()["points_cost"] == 150
    assert Decimal(updated.json()["discount_fixed_amount"]) == Decimal("1.00")
    assert deleted.json()["is_active"] is False
    assert active.json() == []
    assert len(everything.json()) == 1


def test_customer_claims_reward_once(session_factory) -> None:
    with session_factory() as db:
        customer = make_user(db, "ana@example.com", loyalty_points=500)
        reward_id = make_reward(db, "Free pastry", points_cost=200).id
        headers = auth_headers(customer)
        customer_id = customer.id

    with TestClient(app) as client:
        first = client.post("/api/v1/rewards/claim", json={"reward_id": reward_id}, headers=headers)
        second = client.post("/api/v1/rewards/claim", json={"reward_id": reward_id}, headers=headers)
        available = client.get(f"/api/v1/rewards/available/{customer_id}", headers=headers)
        verified = client.post("/api/v1/rewards/verify-claimed", json={"reward_ids": [reward_id, "unknown"]}, headers=headers)

    assert first.status_code == 200, first.text
    assert first.json()["loyalty_points"] == 300
    assert second.status_code == 409
    assert second.json()["reason"] == "already_claimed"

    entries = available.json()["rewards"]
    assert len(entries) == 1
    assert entries[0]["is_claimed"] is True
    assert entries[0]["is_eligible"] is True

    assert verified.json()["rewards"] == [
        {"reward_id": reward_id, "is_claimed": True, "is_redeemed": False},
        {"reward_id": "unknown", "is_claimed": False, "is_redeemed": False},
    ]

    with session_factory() as db:
        assert db.get(User, customer_id).loyalty_points == 300


def test_available_rewards_explain_ineligibility(session_factory) -> None:
    with session_factory() as db:
        customer = make_user(db, "ben@example.com", loyalty_points=20)
        make_reward(db, "Big prize", points_cost=200)
        make_reward(db, "Voucher only", type="voucher")
        headers = auth_headers(customer)
        customer_id = customer.id

    with TestClient(app) as client:
        response = client.get(f"/api/v1/rewards/available/{customer_id}", headers=headers)

    assert response.status_code == 200
    entries = response.json()["rewards"]
    assert [entry["reward"]["name"] for entry in entries] == ["Big prize"]
    assert entries[0]["is_eligible"] is False
    assert entries[0]["ineligibility_reason"] == "Insufficient points. Need 200, have 20."


def test_staff_grants_voucher_and_customer_claims_it(session_factory) -> None:
    with session_factory() as db:
        customer = make_user(db, "cy@example.com")
        cashier = make_user(db, "till@example.com", role="cashier")
        reward_id = make_reward(db, "Free coffee", type="voucher", description="Any size").id
        customer_headers = auth_headers(customer)
        cashier_headers = auth_headers(cashier)
        customer_id = customer.id

    with TestClient(app) as client:
        granted = client.post(
            "/api/v1/rewards/grant-voucher",
            json={"customer_id": customer_id, "reward_id": reward_id, "notes": "Sorry for the wait"},
            headers=cashier_headers,
        )
        by_customer = client.post(
            "/api/v1/rewards/grant-voucher",
            json={"customer_id": customer_id, "reward_id": reward_id},
            headers=customer_headers,
        )
        info = client.get(f"/api/v1/customers/{customer_id}/info", headers=cashier_headers)
        voucher_id = granted.json()["id"]
        claimed = client.post("/api/v1/rewards/claim", json={"voucher_id": voucher_id}, headers=customer_headers)
        claimed_again = client.post("/api/v1/rewards/claim", json={"voucher_id": voucher_id}, headers=customer_headers)
        info_after = client.get(f"/api/v1/customers/{customer_id}/info", headers=customer_headers)

    assert granted.status_code == 201, granted.text
    assert granted.json()["status"] == "active"
    assert granted.json()["name_snapshot"] == "Free coffee"
    assert granted.json()["expires_at"] is not None
    assert by_customer.status_code == 403

    assert info.status_code == 200
    assert [v["id"] for v in info.json()["active_vouchers"]] == [voucher_id]

    assert claimed.status_code == 200
    assert claimed_again.status_code == 409
    assert claimed_again.json()["reason"] == "voucher_not_usable"
    assert info_after.json()["active_vouchers"] == []

    with session_factory() as db:
        voucher = db.get(CustomerVoucher, voucher_id)
        assert voucher.granted_by_method == "employee_granted"
        assert voucher.grant_notes == "Sorry for the wait"


def test_grant_voucher_for_unknown_customer(session_factory) -> None:
    with session_factory() as db:
        cashier_headers = auth_headers(make_user(db, "till@example.com", role="cashier"))
        reward_id = make_reward(db, "Free coffee", type="voucher").id

    with TestClient(app) as client:
        response = client.post(
            "/api/v1/rewards/grant-voucher",
            json={"customer_id": 9999, "reward_id": reward_id},
            headers=cashier_headers,
        )

    assert response.status_code == 404
    assert response.json()["reason"] == "customer_not_found"


def test_customer_info_is_private(session_factory) -> None:
    with session_factory() as db:
        customer = make_user(db, "dee@example.com", loyalty_points=42, membership_tier="gold")
        other_headers = auth_headers(make_user(db, "eve@example.com"))
        own_headers = auth_headers(customer)
        customer_id = customer.id

    with TestClient(app) as client:
        own = client.get(f"/api/v1/customers/{customer_id}/info", headers=own_headers)
        other = client.get(f"/api/v1/customers/{customer_id}/info", headers=other_headers)

    assert own.status_code == 200
    assert own.json()["loyalty_points"] == 42
    assert own.json()["membership_tier"] == "gold"
    assert own.json()["purchases_this_month"] == 0
    assert other.status_code == 403


def test_claim_request_needs_exactly_one_target(session_factory) -> None:
    with session_factory() as db:
        headers = auth_headers(make_user(db, "fay@example.com"))

    with TestClient(app) as client:
        response = client.post("/api/v1/rewards/claim", json={}, headers=headers)

    assert response.status_code == 422


def test_voucher_reward_cannot_be_claimed_as_general_reward(session_factory) -> None:
    with session_factory() as db:
        headers = auth_headers(make_user(db, "gus@example.com"))
        reward_id = make_reward(db, "Free coffee", type="voucher").id

    with TestClient(app) as client:
        response = client.post("/api/v1/rewards/claim", json={"reward_id": reward_id}, headers=headers)

    assert response.status_code == 422
    with session_factory() as db:
        assert db.get(Reward, reward_id).is_active is True


def test_update_rejects_null_for_required_fields(session_factory) -> None:
    with session_factory() as db:
        manager_headers = auth_headers(make_user(db, "boss@example.com", role="manager"))
        reward_id = make_reward(db, "Dollar off", points_cost=100).id

    with TestClient(app) as client:
        responses = [
            client.put(f"/api/v1/rewards/definitions/{reward_id}", json={field: None}, headers=manager_headers)
            for field in ("name", "type", "points_cost", "allow_multiple_claims", "is_active")
        ]
        cleared = client.put(f"/api/v1/rewards/definitions/{reward_id}", json={"description": None}, headers=manager_headers)

    assert [response.status_code for response in responses] == [422] * 5
    assert cleared.status_code == 200
    with session_factory() as db:
        assert db.get(Reward, reward_id).name == "Dollar off"


def test_reward_update_audit_keeps_only_changed_fields(session_factory) -> None:
    with session_factory() as db:
        manager_headers = auth_headers(make_user(db, "boss@example.com", role="manager"))
        reward_id = make_reward(db, "Dollar off", points_cost=100).id

    with TestClient(app) as client:
        client.put(f"/api/v1/rewards/definitions/{reward_id}", json={"points_cost": 150}, headers=manager_headers)
        client.delete(f"/api/v1/rewards/definitions/{reward_id}", headers=manager_headers)

    with session_factory() as db:
        entries = db.scalars(select(AuditLog).order_by(AuditLog.id.asc())).all()
        assert [entry.action_type for entry in entries] == ["reward_updated", "reward_deactivated"]
        assert entries[0].before_snapshot == {"points_cost": 100}
        assert entries[0].after_snapshot == {"points_cost": 150}
        assert entries[1].after_snapshot == {"is_active": False}
        assert entries[1].actor_identifier == "boss@example.com"
