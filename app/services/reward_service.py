"""Reward definitions and the customer-facing claim, grant and lookup flows."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.reward import ClaimedReward, CustomerVoucher, Reward
from app.models.user import User
from app.schemas.reward import (
    AvailableReward,
    CustomerInfoResponse,
    GrantVoucherRequest,
    RewardClaimStatus,
    RewardCreate,
    RewardRead,
    RewardUpdate,
    VoucherRead,
)
from app.services import ledger
from app.services.audit_service import record_reward_event
from app.services.customer_service import build_snapshot, get_customer, list_active_vouchers
from app.services.eligibility import evaluate
from app.services.errors import (
    AlreadyRedeemed,
    CheckoutValidationError,
    CustomerNotFound,
    RewardNotEligible,
    RewardNotFound,
)
from app.services.transaction import atomic
from app.utils.time import utc_now


def _reward_values(payload: RewardCreate | RewardUpdate, *, partial: bool) -> dict:
    values = payload.model_dump(exclude_unset=partial, exclude={"criteria"})
    if "criteria" in payload.model_fields_set or not partial:
        values["criteria"] = (
            payload.criteria.model_dump(mode="json", exclude_none=True) if payload.criteria is not None else None
        )
    return values


def _snapshot(reward: Reward) -> dict:
    return RewardRead.model_validate(reward).model_dump(mode="json")


def get_reward(db: Session, reward_id: str) -> Reward:
    reward = db.get(Reward, reward_id)
    if reward is None:
        raise RewardNotFound(f"Reward {reward_id} not found.")
    return reward


def list_rewards(db: Session, include_inactive: bool = False) -> list[Reward]:
    query = select(Reward).order_by(Reward.created_at.asc())
    if not include_inactive:
        query = query.where(Reward.is_active.is_(True))
    return list(db.scalars(query).all())


def create_reward(db: Session, payload: RewardCreate, actor: User) -> Reward:
    reward = Reward(**_reward_values(payload, partial=False))
    with atomic(db, "reward create"):
        db.add(reward)
        db.flush()
        record_reward_event(db, actor, reward.id, "reward_created", after=_snapshot(reward))
    db.refresh(reward)
    return reward


def update_reward(db: Session, reward_id: str, payload: RewardUpdate, actor: User) -> Reward:
    with atomic(db, "reward update"):
        reward = get_reward(db, reward_id)
        before = _snapshot(reward)
        for key, value in _reward_values(payload, partial=True).items():
            setattr(reward, key, value)
        db.flush()
        record_reward_event(db, actor, reward.id, "reward_updated", before=before, after=_snapshot(reward))
    db.refresh(reward)
    return reward


def deactivate_reward(db: Session, reward_id: str, actor: User) -> Reward:
    """Retire a reward; claims and usage rows keep referencing it."""
    with atomic(db, "reward deactivate"):
        reward = get_reward(db, reward_id)
        before = _snapshot(reward)
        reward.is_active = False
        record_reward_event(db, actor, reward.id, "reward_deactivated", before=before, after=_snapshot(reward))
    db.refresh(reward)
    return reward


def claim_reward(db: Session, customer: User, reward_id: str, now: datetime | None = None) -> int:
    """Claim a general reward outside checkout; returns the new points balance."""
    current = now or utc_now()
    with atomic(db, "reward claim"):
        reward = get_reward(db, reward_id)
        if not reward.is_active:
            raise RewardNotFound(f"Reward {reward_id} not found.")
        if reward.is_voucher_type:
            raise CheckoutValidationError("Voucher rewards are claimed through a voucher instance.")
        if not reward.allow_multiple_claims and ledger.has_usage(db, customer.id, reward.id):
            raise AlreadyRedeemed(f'Reward "{reward.name}" has already been redeemed.')

        result = evaluate(build_snapshot(db, customer, current), reward.criteria, points_cost=reward.points_cost, now=current)
        if not result.eligible:
            raise RewardNotEligible(result.reason or "Not eligible for this reward.")
        ledger.claim_general_reward(db, customer.id, reward)
    db.refresh(customer)
    return customer.loyalty_points


def claim_voucher(db: Session, customer: User, voucher_id: str, now: datetime | None = None) -> CustomerVoucher:
    """Use a voucher instance without an order."""
    current = now or utc_now()
    with atomic(db, "voucher claim"):
        voucher = ledger.ensure_voucher_usable(db.get(CustomerVoucher, voucher_id), customer.id, current)
        ledger.consume_voucher(db, voucher, None, current)
    db.refresh(voucher)
    return voucher


def grant_voucher(db: Session, payload: GrantVoucherRequest, actor: User) -> CustomerVoucher:
    with atomic(db, "voucher grant"):
        if get_customer(db, payload.customer_id) is None:
            raise CustomerNotFound("Customer not found.")
        reward = get_reward(db, payload.reward_id)
        if not reward.is_active:
            raise RewardNotFound(f"Reward {payload.reward_id} not found.")
        voucher = ledger.grant_voucher(
            db,
            reward=reward,
            customer_id=payload.customer_id,
            method="employee_granted",
            granted_by_user_id=actor.id,
            notes=payload.notes,
        )
        record_reward_event(
            db,
            actor,
            reward.id,
            "voucher_granted",
            after={"voucher_id": voucher.id, "customer_id": payload.customer_id},
        )
    db.refresh(voucher)
    return voucher


def expire_overdue_vouchers(db: Session, now: datetime | None = None) -> int:
    with atomic(db, "voucher expiry"):
        return ledger.expire_vouchers(db, now)


def available_rewards(db: Session, customer: User, now: datetime | None = None) -> list[AvailableReward]:
    """Active general rewards with the customer's eligibility.

    Exclusive rewards already used are left out. A reward with an open claim
    is shown as claimed and judged without its point criteria.
    """
    current = now or utc_now()
    snapshot = build_snapshot(db, customer, current)
    entries: list[AvailableReward] = []
    for reward in list_rewards(db):
        if reward.is_voucher_type:
            continue
        exclusive = not reward.allow_multiple_claims
        open_claim = ledger.find_unused_claim(db, customer.id, reward.id)
        if exclusive and open_claim is None:
            if ledger.has_usage(db, customer.id, reward.id) or ledger.find_exclusive_claim(db, customer.id, reward.id):
                continue
        if open_claim is not None:
            result = evaluate(snapshot, reward.criteria, now=current, include_point_criteria=False)
        else:
            result = evaluate(snapshot, reward.criteria, points_cost=reward.points_cost, now=current)
        entries.append(
            AvailableReward(
                reward=RewardRead.model_validate(reward),
                is_claimed=open_claim is not None,
                is_eligible=result.eligible,
                ineligibility_reason=result.reason,
            )
        )
    return entries


def verify_claimed(db: Session, customer_id: int, reward_ids: list[str]) -> list[RewardClaimStatus]:
    statuses: list[RewardClaimStatus] = []
    for reward_id in reward_ids:
        claims = db.scalars(
            select(ClaimedReward).where(ClaimedReward.customer_id == customer_id, ClaimedReward.reward_id == reward_id)
        ).all()
        statuses.append(
            RewardClaimStatus(
                reward_id=reward_id,
                is_claimed=bool(claims),
                is_redeemed=ledger.has_usage(db, customer_id, reward_id) or any(c.used_at is not None for c in claims),
            )
        )
    return statuses


def customer_info(db: Session, customer_id: int, now: datetime | None = None) -> CustomerInfoResponse:
    customer = get_customer(db, customer_id)
    if customer is None:
        raise CustomerNotFound("Customer not found.")
    snapshot = build_snapshot(db, customer, now)
    return CustomerInfoResponse(
        id=customer.id,
        name=customer.name,
        loyalty_points=snapshot.loyalty_points,
        purchases_this_month=snapshot.purchases_this_month,
        lifetime_total_spend=snapshot.lifetime_spend,
        membership_tier=snapshot.membership_tier,
        birth_date=snapshot.birth_date,
        join_date=snapshot.join_date,
        referrals_made=snapshot.referrals_made,
        active_vouchers=[VoucherRead.model_validate(v) for v in list_active_vouchers(db, customer.id, now)],
    )
