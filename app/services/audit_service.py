"""Audit trail for staff actions on orders, reward definitions and vouchers."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from app.models import AuditLog, Order, User

logger = logging.getLogger(__name__)

ORDER_ACTIONS = frozenset({"order_status_changed", "order_archived"})
REWARD_ACTIONS = frozenset({"reward_created", "reward_updated", "reward_deactivated", "voucher_granted"})

Snapshot = dict[str, Any]


def changed_fields(before: Snapshot | None, after: Snapshot | None) -> tuple[Snapshot | None, Snapshot | None]:
    """Reduce two snapshots to the keys whose values differ.

    A missing side (creation, grant) is kept as-is.
    """
    if before is None or after is None:
        return before, after
    keys = [key for key in after.keys() | before.keys() if before.get(key) != after.get(key)]
    return {key: before.get(key) for key in keys}, {key: after.get(key) for key in keys}


def _append(
    db: Session,
    actor: User | None,
    action_type: str,
    *,
    order_id: str | None = None,
    reward_id: str | None = None,
    before: Snapshot | None = None,
    after: Snapshot | None = None,
) -> AuditLog:
    before, after = changed_fields(before, after)
    entry = AuditLog(
        actor_user_id=actor.id if actor is not None else None,
        actor_identifier=actor.email if actor is not None else "system",
        action_type=action_type,
        order_id=order_id,
        reward_id=reward_id,
        before_snapshot=before,
        after_snapshot=after,
    )
    db.add(entry)
    logger.info("[AUDIT] %s by %s (order=%s reward=%s)", action_type, entry.actor_identifier, order_id, reward_id)
    return entry


def record_order_event(
    db: Session,
    actor: User | None,
    order: Order,
    action_type: str,
    *,
    before: Snapshot,
    after: Snapshot,
) -> AuditLog:
    if action_type not in ORDER_ACTIONS:
        raise ValueError(f"Unsupported order audit action: {action_type}")
    return _append(db, actor, action_type, order_id=order.id, before=before, after=after)


def record_reward_event(
    db: Session,
    actor: User | None,
    reward_id: str,
    action_type: str,
    *,
    before: Snapshot | None = None,
    after: Snapshot | None = None,
) -> AuditLog:
    if action_type not in REWARD_ACTIONS:
        raise ValueError(f"Unsupported reward audit action: {action_type}")
    return _append(db, actor, action_type, reward_id=reward_id, before=before, after=after)
