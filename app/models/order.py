"""Order models; catalog values are snapshotted at checkout time."""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class Order(Base):
    """Committed checkout; totals never change after insert."""

    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    customer_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)
    placed_by_user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    customer_name_snapshot: Mapped[str] = mapped_column(String(255), nullable=False)
    subtotal_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    discount_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="pending")
    ticket_number: Mapped[str] = mapped_column(String(16), nullable=False)
    is_archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    items: Mapped[list["OrderLineItem"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLineItem.id",
    )

    __table_args__ = (
        Index("ix_orders_customer_created", "customer_id", "created_at"),
        Index("ix_orders_archived_created", "is_archived", "created_at"),
    )


class OrderLineItem(Base):
    """Snapshot of a priced cart line."""

    __tablename__ = "order_line_items"

    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[str] = mapped_column(ForeignKey("orders.id"), nullable=False, index=True)
    product_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    product_name_snapshot: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    unit_price_snapshot: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    line_total: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    is_reward_item: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    reward_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    order: Mapped[Order] = relationship(back_populates="items")
    selected_options: Mapped[list["OrderLineItemOption"]] = relationship(
        back_populates="line_item",
        cascade="all, delete-orphan",
        order_by="OrderLineItemOption.id",
    )


class OrderLineItemOption(Base):
    """Option label and modifier as they were when the order was placed."""

    __tablename__ = "order_line_item_options"

    id: Mapped[int] = mapped_column(primary_key=True)
    order_line_item_id: Mapped[int] = mapped_column(ForeignKey("order_line_items.id"), nullable=False, index=True)
    option_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    group_name_snapshot: Mapped[str | None] = mapped_column(String(128), nullable=True)
    label_snapshot: Mapped[str] = mapped_column(String(128), nullable=False)
    price_modifier_snapshot: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))

    line_item: Mapped[OrderLineItem] = relationship(back_populates="selected_options")
