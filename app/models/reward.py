"""Reward definitions and the redemption ledger tables."""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, Numeric, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base

REWARD_TYPES = ("standard", "voucher", "discount_coupon", "loyalty_tier_perk", "manual_grant")
VOUCHER_REWARD_TYPES = frozenset({"voucher", "manual_grant"})
VOUCHER_STATUSES = ("active", "claimed", "expired")
VOUCHER_GRANT_METHODS = ("system_earned", "employee_granted", "signup_bonus", "customer_claimed")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Reward(Base):
    """Reward definition maintained by managers."""

    __tablename__ = "rewards"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    type: Mapped[str] = mapped_column(String(32), nullable=False, default="standard")
    points_cost: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    discount_percentage: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
    discount_fixed_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    free_item_product_ids: Mapped[list | None] = mapped_column(JSON, nullable=True)
    criteria: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    allow_multiple_claims: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    earning_hint: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    @property
    def is_voucher_type(self) -> bool:
        return self.type in VOUCHER_REWARD_TYPES


class ClaimedReward(Base):
    """A customer's claim on a general reward; usage is recorded separately."""

    __tablename__ = "claimed_rewards"

    id: Mapped[int] = mapped_column(primary_key=True)
    customer_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    reward_id: Mapped[str] = mapped_column(ForeignKey("rewards.id"), nullable=False)
    is_exclusive: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    claimed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    order_id: Mapped[str | None] = mapped_column(ForeignKey("orders.id"), nullable=True)

    __table_args__ = (
        Index(
            "uq_claimed_rewards_exclusive",
            "customer_id",
            "reward_id",
            unique=True,
            sqlite_where=text("is_exclusive = 1"),
            postgresql_where=text("is_exclusive"),
        ),
        Index("ix_claimed_rewards_customer_reward", "customer_id", "reward_id"),
    )


class CustomerVoucher(Base):
    """Customer-scoped single-use instance of a voucher reward."""

    __tablename__ = "customer_vouchers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    reward_id: Mapped[str] = mapped_column(ForeignKey("rewards.id"), nullable=False)
    customer_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    name_snapshot: Mapped[str] = mapped_column(String(255), nullable=False)
    description_snapshot: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="active")
    granted_by_method: Mapped[str] = mapped_column(String(32), nullable=False, default="employee_granted")
    granted_by_user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    grant_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    granted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    claimed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    order_id: Mapped[str | None] = mapped_column(ForeignKey("orders.id"), nullable=True)


class RewardUsage(Base):
    """Append-only audit row linking a spent reward to its order."""

    __tablename__ = "reward_usages"

    id: Mapped[int] = mapped_column(primary_key=True)
    reward_id: Mapped[str] = mapped_column(ForeignKey("rewards.id"), nullable=False, index=True)
    voucher_id: Mapped[str | None] = mapped_column(ForeignKey("customer_vouchers.id"), nullable=True)
    order_id: Mapped[str] = mapped_column(ForeignKey("orders.id"), nullable=False, index=True)
    customer_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)
    usage_type: Mapped[str] = mapped_column(String(16), nullable=False, default="other")
    discount_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    free_items: Mapped[list | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


class LoyaltyPointsTransaction(Base):
    """Signed points movement; the user's balance mirrors the running sum."""

    __tablename__ = "loyalty_points_transactions"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    transaction_type: Mapped[str] = mapped_column(String(16), nullable=False)
    order_id: Mapped[str | None] = mapped_column(ForeignKey("orders.id"), nullable=True)
    reward_id: Mapped[str | None] = mapped_column(ForeignKey("rewards.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
