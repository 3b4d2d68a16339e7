"""Redemption ledger: claims, voucher consumption, usage records and points.

Every balance or status change here is a single conditional UPDATE checked by
``rowcount``. None of these functions commit; they run inside the caller's
transaction so a checkout either applies all of them or none.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from datetime import datetime, time, timedelta, timezone
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.reward import ClaimedReward, CustomerVoucher, LoyaltyPointsTransaction, Reward, RewardUsage
from app.models.user import User
from app.schemas.reward import RewardCriteria
from app.services.errors import (
    AlreadyClaimed,
    CheckoutValidationError,
    ConcurrentRedemption,
    InsufficientPoints,
    VoucherNotFound,
    VoucherNotUsable,
)
from app.services.pricing import ZERO, to_money
from app.utils.time import as_utc, utc_now

logger = logging.getLogger(__name__)


def find_exclusive_claim(db: Session, customer_id: int, reward_id: str) -> ClaimedReward | None:
    return db.scalar(
        select(ClaimedReward)
        .where(
            ClaimedReward.customer_id == customer_id,
            ClaimedReward.reward_id == reward_id,
            ClaimedReward.is_exclusive.is_(True),
        )
        .limit(1)
    )


def find_unused_claim(db: Session, customer_id: int, reward_id: str) -> ClaimedReward | None:
    return db.scalar(
        select(ClaimedReward)
        .where(
            ClaimedReward.customer_id == customer_id,
            ClaimedReward.reward_id == reward_id,
            ClaimedReward.used_at.is_(None),
        )
        .order_by(ClaimedReward.claimed_at.asc())
        .limit(1)
    )


def has_usage(db: Session, customer_id: int, reward_id: str) -> bool:
    found = db.scalar(
        select(RewardUsage.id)
        .where(RewardUsage.customer_id == customer_id, RewardUsage.reward_id == reward_id)
        .limit(1)
    )
    return found is not None


def deduct_points(db: Session, customer_id: int, cost: int, *, reward_id: str | None, order_id: str | None) -> None:
    """Atomically take ``cost`` points, refusing to go below zero."""
    result = db.execute(
        update(User)
        .where(User.id == customer_id, User.loyalty_points >= cost)
        .values(loyalty_points=User.loyalty_points - cost)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        balance = db.scalar(select(User.loyalty_points).where(User.id == customer_id))
        raise InsufficientPoints(f"Insufficient points. Need {cost}, have {balance or 0}.")
    db.add(
        LoyaltyPointsTransaction(
            user_id=customer_id,
            points=-cost,
            transaction_type="redeemed",
            order_id=order_id,
            reward_id=reward_id,
        )
    )


def claim_general_reward(
    db: Session,
    customer_id: int,
    reward: Reward,
    *,
    order_id: str | None = None,
) -> ClaimedReward:
    """Insert a claim row and pay the reward's point cost."""
    exclusive = not reward.allow_multiple_claims
    if exclusive and find_exclusive_claim(db, customer_id, reward.id) is not None:
        raise AlreadyClaimed("You have already claimed this reward.")

    claim = ClaimedReward(customer_id=customer_id, reward_id=reward.id, is_exclusive=exclusive)
    db.add(claim)
    try:
        db.flush()
    except IntegrityError as exc:
        raise AlreadyClaimed("You have already claimed this reward.") from exc

    if reward.points_cost > 0:
        deduct_points(db, customer_id, reward.points_cost, reward_id=reward.id, order_id=order_id)

    logger.info("[LEDGER] Claimed reward id=%s for customer id=%s cost=%s", reward.id, customer_id, reward.points_cost)
    return claim


def mark_claim_used(db: Session, claim: ClaimedReward, order_id: str, now: datetime | None = None) -> None:
    """Turn an open claim into a usage; a second caller loses the race."""
    result = db.execute(
        update(ClaimedReward)
        .where(ClaimedReward.id == claim.id, ClaimedReward.used_at.is_(None))
        .values(used_at=now or utc_now(), order_id=order_id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise ConcurrentRedemption("This reward has already been used.")


def ensure_voucher_usable(voucher: CustomerVoucher | None, customer_id: int, now: datetime | None = None) -> CustomerVoucher:
    """Check ownership, status and expiry of a voucher instance."""
    if voucher is None or voucher.customer_id != customer_id:
        raise VoucherNotFound("Voucher not found.")
    if voucher.status != "active":
        raise VoucherNotUsable(f"Voucher is {voucher.status} and cannot be used.")
    current = as_utc(now or utc_now())
    if voucher.expires_at is not None and as_utc(voucher.expires_at) <= current:
        raise VoucherNotUsable("Voucher has expired.")
    return voucher


def consume_voucher(
    db: Session,
    voucher: CustomerVoucher,
    order_id: str | None = None,
    now: datetime | None = None,
) -> None:
    """Flip an active voucher to claimed exactly once."""
    result = db.execute(
        update(CustomerVoucher)
        .where(CustomerVoucher.id == voucher.id, CustomerVoucher.status == "active")
        .values(status="claimed", claimed_at=now or utc_now(), order_id=order_id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise ConcurrentRedemption("This voucher has already been used.")
    logger.info("[LEDGER] Consumed voucher id=%s order id=%s", voucher.id, order_id)


def record_usage(
    db: Session,
    *,
    reward: Reward,
    order_id: str,
    customer_id: int | None,
    discount_applied: Decimal = ZERO,
    free_items: Sequence[int] | None = None,
    voucher_id: str | None = None,
) -> RewardUsage:
    if discount_applied > 0:
        usage_type = "discount"
    elif free_items:
        usage_type = "free_items"
    else:
        usage_type = "other"
    usage = RewardUsage(
        reward_id=reward.id,
        voucher_id=voucher_id,
        order_id=order_id,
        customer_id=customer_id,
        usage_type=usage_type,
        discount_amount=to_money(discount_applied),
        free_items=list(free_items) if free_items else None,
    )
    db.add(usage)
    return usage


def credit_loyalty_points(db: Session, customer_id: int, order_id: str, total: Decimal) -> int:
    """Credit floor(total) points; returns the number credited."""
    points = math.floor(total)
    if points <= 0:
        return 0
    db.execute(
        update(User)
        .where(User.id == customer_id)
        .values(loyalty_points=User.loyalty_points + points)
        .execution_options(synchronize_session=False)
    )
    db.add(
        LoyaltyPointsTransaction(
            user_id=customer_id,
            points=points,
            transaction_type="earned",
            order_id=order_id,
        )
    )
    return points


def voucher_expiry(reward: Reward, now: datetime | None = None) -> datetime:
    """Expiry for a new voucher: end of the criteria's range, else the default window."""
    criteria = RewardCriteria.model_validate(reward.criteria or {})
    if criteria.valid_date_range is not None and criteria.valid_date_range.end_date is not None:
        last_day = criteria.valid_date_range.end_date + timedelta(days=1)
        return datetime.combine(last_day, time.min, tzinfo=timezone.utc)
    return as_utc(now or utc_now()) + timedelta(days=settings.voucher_default_expiry_days)


def grant_voucher(
    db: Session,
    *,
    reward: Reward,
    customer_id: int,
    method: str = "employee_granted",
    granted_by_user_id: int | None = None,
    notes: str | None = None,
    now: datetime | None = None,
) -> CustomerVoucher:
    """Create an active voucher instance of a voucher-type reward."""
    if not reward.is_voucher_type:
        raise CheckoutValidationError("Only voucher rewards can be granted to customers.")
    current = as_utc(now or utc_now())
    voucher = CustomerVoucher(
        reward_id=reward.id,
        customer_id=customer_id,
        name_snapshot=reward.name,
        description_snapshot=reward.description,
        status="active",
        granted_by_method=method,
        granted_by_user_id=granted_by_user_id,
        grant_notes=notes,
        granted_at=current,
        expires_at=voucher_expiry(reward, current),
    )
    db.add(voucher)
    db.flush()
    logger.info("[LEDGER] Granted voucher id=%s reward id=%s to customer id=%s", voucher.id, reward.id, customer_id)
    return voucher


def expire_vouchers(db: Session, now: datetime | None = None) -> int:
    """Move overdue active vouchers to expired; returns how many moved."""
    current = as_utc(now or utc_now())
    result = db.execute(
        update(CustomerVoucher)
        .where(
            CustomerVoucher.status == "active",
            CustomerVoucher.expires_at.is_not(None),
            CustomerVoucher.expires_at <= current,
        )
        .values(status="expired")
        .execution_options(synchronize_session=False)
    )
    if result.rowcount:
        logger.info("[LEDGER] Expired %s voucher(s)", result.rowcount)
    return result.rowcount
