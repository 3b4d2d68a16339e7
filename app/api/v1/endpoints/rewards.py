"""Reward catalogue, claim and voucher endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.core.security import get_current_user
from app.db.session import get_db
from app.models.user import User
from app.schemas.reward import (
    AvailableRewardsResponse,
    ClaimRequest,
    ClaimResponse,
    GrantVoucherRequest,
    RewardCreate,
    RewardRead,
    RewardUpdate,
    VerifyClaimedRequest,
    VerifyClaimedResponse,
    VoucherRead,
)
from app.services import reward_service
from app.services.customer_service import get_customer, list_active_vouchers
from app.services.security_guards import VOUCHER_GRANT_ROLES, ensure_can_view_customer, ensure_role

router: APIRouter = APIRouter()


@router.get("/definitions", response_model=list[RewardRead])
def list_definitions(
    include_inactive: bool = Query(default=False),
    db: Session = Depends(get_db),
) -> list[RewardRead]:
    rewards = reward_service.list_rewards(db, include_inactive=include_inactive)
    return [RewardRead.model_validate(reward) for reward in rewards]


@router.post("/definitions", response_model=RewardRead, status_code=status.HTTP_201_CREATED)
def create_definition(
    payload: RewardCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> RewardRead:
    ensure_role(current_user, {"manager"})
    return RewardRead.model_validate(reward_service.create_reward(db, payload, current_user))


@router.put("/definitions/{reward_id}", response_model=RewardRead)
def update_definition(
    reward_id: str,
    payload: RewardUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> RewardRead:
    ensure_role(current_user, {"manager"})
    return RewardRead.model_validate(reward_service.update_reward(db, reward_id, payload, current_user))


@router.delete("/definitions/{reward_id}", response_model=RewardRead)
def delete_definition(
    reward_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> RewardRead:
    ensure_role(current_user, {"manager"})
    return RewardRead.model_validate(reward_service.deactivate_reward(db, reward_id, current_user))


@router.post("/claim", response_model=ClaimResponse)
def claim(
    payload: ClaimRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ClaimResponse:
    if current_user.role != "customer":
        raise HTTPException(status_code=403, detail="Only customers can claim rewards")
    if payload.voucher_id:
        voucher = reward_service.claim_voucher(db, current_user, payload.voucher_id)
        return ClaimResponse(message=f'Voucher "{voucher.name_snapshot}" claimed.', loyalty_points=current_user.loyalty_points)
    balance = reward_service.claim_reward(db, current_user, payload.reward_id)
    return ClaimResponse(message="Reward claimed.", loyalty_points=balance)


@router.post("/grant-voucher", response_model=VoucherRead, status_code=status.HTTP_201_CREATED)
def grant_voucher(
    payload: GrantVoucherRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> VoucherRead:
    ensure_role(current_user, VOUCHER_GRANT_ROLES)
    return VoucherRead.model_validate(reward_service.grant_voucher(db, payload, current_user))


@router.get("/available/{customer_id}", response_model=AvailableRewardsResponse)
def available(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> AvailableRewardsResponse:
    ensure_can_view_customer(current_user, customer_id)
    customer = get_customer(db, customer_id)
    if customer is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    reward_service.expire_overdue_vouchers(db)
    return AvailableRewardsResponse(
        rewards=reward_service.available_rewards(db, customer),
        vouchers=[VoucherRead.model_validate(v) for v in list_active_vouchers(db, customer.id)],
    )


@router.post("/verify-claimed", response_model=VerifyClaimedResponse)
def verify_claimed(
    payload: VerifyClaimedRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> VerifyClaimedResponse:
    return VerifyClaimedResponse(rewards=reward_service.verify_claimed(db, current_user.id, payload.reward_ids))
