"""User ORM model carrying the loyalty profile."""

from datetime import date, datetime, timezone

from sqlalchemy import Boolean, CheckConstraint, Date, DateTime, Enum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base

USER_ROLES = ("manager", "employee", "cashier", "cook", "customer")
STAFF_ROLES = frozenset({"manager", "employee", "cashier", "cook"})


def normalize_user_role(value: str | None) -> str:
    """Normalize role values to the canonical lowercase representation."""
    normalized = str(value or "").strip().lower()
    if normalized not in USER_ROLES:
        raise ValueError(f"Unsupported user role: {value}")
    return normalized


class User(Base):
    """Account used by customers and staff alike."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(Enum(*USER_ROLES, name="user_role"), nullable=False, default="customer")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    loyalty_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    membership_tier: Mapped[str | None] = mapped_column(String(32), nullable=True)
    birth_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    join_date: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
        default=lambda: datetime.now(timezone.utc).date(),
    )
    referrals_made: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (CheckConstraint("loyalty_points >= 0", name="ck_users_loyalty_points_non_negative"),)

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES
