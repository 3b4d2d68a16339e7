"""Checkout and order API schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

OrderStatus = Literal["pending", "preparing", "ready", "completed", "cancelled"]


class CheckoutItemPayload(BaseModel):
    """Single cart line as sent by the client; prices are never trusted."""

    product_id: int
    quantity: int = Field(default=1, ge=1)
    selected_option_ids: dict[str, int | str | list[int | str] | None] = Field(default_factory=dict)
    is_reward_item: bool = False
    reward_id: str | None = None


class RedeemedRewardPayload(BaseModel):
    """Reward or voucher the customer wants applied to this order."""

    reward_id: str
    voucher_id: str | None = None


class CheckoutRequest(BaseModel):
    """Payload for placing an order."""

    customer_name: str = Field(min_length=1)
    items: list[CheckoutItemPayload]
    redeemed_rewards: list[RedeemedRewardPayload] = Field(default_factory=list)
    customer_id: int | None = None


class OrderItemOptionResponse(BaseModel):
    option_id: int | None
    group_name: str | None
    label: str
    price_modifier: Decimal


class OrderItemResponse(BaseModel):
    """Serialized order line."""

    product_id: int | None
    product_name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    is_reward_item: bool
    reward_id: str | None
    selected_options: list[OrderItemOptionResponse]


class OrderSummary(BaseModel):
    """Committed order as returned by checkout and order listings."""

    id: str
    ticket_number: str
    customer_id: int | None
    customer_name: str
    status: str
    is_archived: bool
    subtotal_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    points_earned: int = 0
    created_at: datetime
    items: list[OrderItemResponse]

    model_config = ConfigDict(from_attributes=True)


class StatusUpdate(BaseModel):
    status: OrderStatus
