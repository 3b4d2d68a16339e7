"""Discount aggregation for a priced checkout."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Literal

from app.models.reward import Reward
from app.services.pricing import ZERO, to_money


@dataclass(frozen=True)
class DiscountDirective:
    kind: Literal["percentage", "fixed"]
    value: Decimal

    def amount_for(self, subtotal: Decimal) -> Decimal:
        if self.kind == "percentage":
            return to_money(subtotal * self.value / Decimal(100))
        return to_money(self.value)


def directives_for_reward(reward: Reward) -> list[DiscountDirective]:
    """Discounts a reward grants; free-item rewards grant none."""
    directives: list[DiscountDirective] = []
    if reward.discount_percentage:
        directives.append(DiscountDirective("percentage", Decimal(reward.discount_percentage)))
    if reward.discount_fixed_amount:
        directives.append(DiscountDirective("fixed", Decimal(reward.discount_fixed_amount)))
    return directives


def aggregate(subtotal: Decimal, directives: Iterable[DiscountDirective]) -> Decimal:
    """Sum directive amounts and clamp the result to ``[0, subtotal]``."""
    total = sum((directive.amount_for(subtotal) for directive in directives), ZERO)
    return to_money(max(ZERO, min(total, subtotal)))
