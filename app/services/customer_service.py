"""Customer activity snapshot and voucher lookups."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from app.models.order import Order
from app.models.reward import CustomerVoucher
from app.models.user import User
from app.services.eligibility import CustomerSnapshot
from app.services.pricing import ZERO, to_money
from app.utils.time import as_utc, month_window_utc, utc_now


def get_customer(db: Session, customer_id: int) -> User | None:
    user = db.get(User, customer_id)
    if user is None or user.role != "customer":
        return None
    return user


def build_snapshot(db: Session, customer: User, now: datetime | None = None) -> CustomerSnapshot:
    """Collect the figures eligibility criteria look at; cancelled orders do not count."""
    start, end = month_window_utc(now)
    counted = (Order.customer_id == customer.id, Order.status != "cancelled")

    purchases = db.scalar(
        select(func.count(Order.id)).where(*counted, Order.created_at >= start, Order.created_at < end)
    )
    spend = db.scalar(select(func.coalesce(func.sum(Order.total_amount), 0)).where(*counted))

    return CustomerSnapshot(
        customer_id=customer.id,
        loyalty_points=customer.loyalty_points or 0,
        purchases_this_month=int(purchases or 0),
        lifetime_spend=to_money(Decimal(str(spend or ZERO))),
        membership_tier=customer.membership_tier,
        birth_date=customer.birth_date,
        join_date=customer.join_date,
        referrals_made=customer.referrals_made or 0,
    )


def list_active_vouchers(db: Session, customer_id: int, now: datetime | None = None) -> list[CustomerVoucher]:
    current = as_utc(now or utc_now())
    return list(
        db.scalars(
            select(CustomerVoucher)
            .where(
                CustomerVoucher.customer_id == customer_id,
                CustomerVoucher.status == "active",
                or_(CustomerVoucher.expires_at.is_(None), CustomerVoucher.expires_at > current),
            )
            .order_by(CustomerVoucher.granted_at.desc())
        ).all()
    )
