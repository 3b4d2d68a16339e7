"""Centralized role and ownership guards for order and reward operations."""

from __future__ import annotations

from fastapi import HTTPException

from app.models import Order, User
from app.models.user import STAFF_ROLES

CHECKOUT_STAFF_ROLES: set[str] = {"manager", "employee", "cashier"}
ORDER_STATUS_ROLES: set[str] = set(STAFF_ROLES)
VOUCHER_GRANT_ROLES: set[str] = {"manager", "employee", "cashier"}


def ensure_role(user: User, allowed_roles: set[str]) -> None:
    """Ensure user role is one of allowed roles."""
    if user.role not in allowed_roles:
        raise HTTPException(status_code=403, detail="Forbidden")


def ensure_staff(user: User) -> None:
    ensure_role(user, ORDER_STATUS_ROLES)


def ensure_can_view_customer(user: User, customer_id: int) -> None:
    """Customers only see themselves; staff see everyone."""
    if user.is_staff:
        return
    if user.id != customer_id:
        raise HTTPException(status_code=403, detail="Forbidden")


def ensure_can_access_order(user: User, order: Order) -> None:
    """Apply IDOR-safe ownership checks; return 404 to avoid leaking."""
    if user.is_staff:
        return
    if order.customer_id != user.id:
        raise HTTPException(status_code=404, detail="Order not found")
