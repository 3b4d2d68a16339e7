"""Order status transition helpers."""

from __future__ import annotations

from datetime import datetime

from app.models.order import Order

ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    "pending": {"preparing", "cancelled"},
    "preparing": {"ready", "cancelled"},
    "ready": {"completed", "cancelled"},
    "completed": set(),
    "cancelled": set(),
}


def can_transition(current: str, new: str) -> bool:
    """Return whether order can move from current to new status."""
    return new in ALLOWED_TRANSITIONS.get(current, set())


def can_archive(order: Order, role: str) -> bool:
    """Completed orders can be archived; managers may also archive cancelled ones."""
    if order.is_archived:
        return False
    if order.status == "completed":
        return True
    return order.status == "cancelled" and role == "manager"


def set_status(order: Order, new_status: str, now: datetime) -> None:
    order.status = new_status
    order.updated_at = now
