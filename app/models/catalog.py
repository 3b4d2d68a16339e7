"""Catalog ORM models read by the pricing step of checkout."""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class Product(Base):
    """Sellable catalog product."""

    __tablename__ = "products"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(String(128), nullable=True)
    base_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    availability: Mapped[str] = mapped_column(String(16), nullable=False, default="available")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )


class OptionGroup(Base):
    """Named set of options such as size or milk type."""

    __tablename__ = "option_groups"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    selection_type: Mapped[str] = mapped_column(String(16), nullable=False, default="radio")
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    options: Mapped[list["Option"]] = relationship(back_populates="group")


class Option(Base):
    """Selectable option with its price modifier."""

    __tablename__ = "options"

    id: Mapped[int] = mapped_column(primary_key=True)
    option_group_id: Mapped[int] = mapped_column(ForeignKey("option_groups.id"), nullable=False)
    label: Mapped[str] = mapped_column(String(128), nullable=False)
    price_modifier: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))

    group: Mapped[OptionGroup] = relationship(back_populates="options")
