"""Reward, voucher and eligibility schemas."""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

RewardType = Literal["standard", "voucher", "discount_coupon", "loyalty_tier_perk", "manual_grant"]


class _CriteriaModel(BaseModel):
    """Criteria documents accept both snake_case and the legacy camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TimeWindow(_CriteriaModel):
    start_time: time
    end_time: time
    days_of_week: list[int] | None = None

    @field_validator("days_of_week")
    @classmethod
    def _valid_days(cls, value: list[int] | None) -> list[int] | None:
        if value is not None and any(day < 0 or day > 6 for day in value):
            raise ValueError("days_of_week values must be between 0 (Sunday) and 6 (Saturday)")
        return value


class DateRange(_CriteriaModel):
    start_date: date | None = None
    end_date: date | None = None


class RewardCriteria(_CriteriaModel):
    """Eligibility rules attached to a reward definition."""

    min_points: int | None = Field(default=None, ge=0)
    min_purchases_monthly: int | None = Field(default=None, ge=0)
    cumulative_spend_total: Decimal | None = Field(default=None, ge=0)
    min_referrals: int | None = Field(default=None, ge=0)
    required_customer_tier: list[str] | None = None
    is_birthday_only: bool = False
    is_birth_month_only: bool = False
    allowed_days_of_week: list[int] | None = None
    active_time_windows: list[TimeWindow] | None = None
    valid_date_range: DateRange | None = None
    is_sign_up_bonus: bool = False

    @field_validator("allowed_days_of_week")
    @classmethod
    def _valid_days(cls, value: list[int] | None) -> list[int] | None:
        if value is not None and any(day < 0 or day > 6 for day in value):
            raise ValueError("allowed_days_of_week values must be between 0 (Sunday) and 6 (Saturday)")
        return value


class RewardCreate(BaseModel):
    """Payload for creating a reward definition."""

    name: str = Field(min_length=1)
    description: str | None = None
    type: RewardType = "standard"
    points_cost: int = Field(default=0, ge=0)
    discount_percentage: Decimal | None = Field(default=None, ge=0, le=100)
    discount_fixed_amount: Decimal | None = Field(default=None, ge=0)
    free_item_product_ids: list[int] = Field(default_factory=list)
    criteria: RewardCriteria | None = None
    allow_multiple_claims: bool = False
    is_active: bool = True
    earning_hint: str | None = None


class RewardUpdate(BaseModel):
    """Partial update of a reward definition."""

    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    type: RewardType | None = None
    points_cost: int | None = Field(default=None, ge=0)
    discount_percentage: Decimal | None = Field(default=None, ge=0, le=100)
    discount_fixed_amount: Decimal | None = Field(default=None, ge=0)
    free_item_product_ids: list[int] | None = None
    criteria: RewardCriteria | None = None
    allow_multiple_claims: bool | None = None
    is_active: bool | None = None
    earning_hint: str | None = None

    @field_validator("name", "type", "points_cost", "allow_multiple_claims", "is_active", mode="before")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not set to null")
        return value


class RewardRead(BaseModel):
    """Serialized reward definition."""

    id: str
    name: str
    description: str | None
    type: str
    points_cost: int
    discount_percentage: Decimal | None
    discount_fixed_amount: Decimal | None
    free_item_product_ids: list[int] | None
    criteria: dict | None
    allow_multiple_claims: bool
    is_active: bool
    earning_hint: str | None

    model_config = ConfigDict(from_attributes=True)


class ClaimRequest(BaseModel):
    """Claim either a general reward or one of the caller's voucher instances."""

    reward_id: str | None = None
    voucher_id: str | None = None

    @model_validator(mode="after")
    def _exactly_one(self) -> "ClaimRequest":
        if bool(self.reward_id) == bool(self.voucher_id):
            raise ValueError("Provide either reward_id or voucher_id, not both.")
        return self


class ClaimResponse(BaseModel):
    message: str
    loyalty_points: int


class GrantVoucherRequest(BaseModel):
    customer_id: int
    reward_id: str
    notes: str | None = None


class VoucherRead(BaseModel):
    """Serialized voucher instance."""

    id: str
    reward_id: str
    customer_id: int
    name_snapshot: str
    description_snapshot: str | None
    status: str
    granted_by_method: str
    granted_at: datetime
    expires_at: datetime | None
    claimed_at: datetime | None
    order_id: str | None

    model_config = ConfigDict(from_attributes=True)


class AvailableReward(BaseModel):
    """Reward definition annotated with the caller's eligibility."""

    reward: RewardRead
    is_claimed: bool
    is_eligible: bool
    ineligibility_reason: str | None = None


class AvailableRewardsResponse(BaseModel):
    rewards: list[AvailableReward]
    vouchers: list[VoucherRead]


class VerifyClaimedRequest(BaseModel):
    reward_ids: list[str] = Field(min_length=1)


class RewardClaimStatus(BaseModel):
    reward_id: str
    is_claimed: bool
    is_redeemed: bool


class VerifyClaimedResponse(BaseModel):
    rewards: list[RewardClaimStatus]


class CustomerInfoResponse(BaseModel):
    """Customer activity snapshot plus standing vouchers."""

    id: int
    name: str
    loyalty_points: int
    purchases_this_month: int
    lifetime_total_spend: Decimal
    membership_tier: str | None
    birth_date: date | None
    join_date: date | None
    referrals_made: int
    active_vouchers: list[VoucherRead]
