"""Server-side pricing of cart lines against the live catalog."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.orm import Session

from app.core.config import settings
from app.services import catalog_service
from app.services.errors import CheckoutValidationError, ProductNotFound, ProductUnavailable

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
CURRENCY_SYMBOLS = {"USD": "$", "EUR": "€", "GBP": "£"}

OptionSelection = Mapping[str, int | str | Sequence[int | str] | None]


def to_money(value: Decimal | int | float | str) -> Decimal:
    """Quantize a value to cents."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(amount: Decimal | int | float | str) -> str:
    """Render an amount in the configured currency, e.g. $4.50 or 4.50 PLN."""
    value = to_money(amount)
    symbol = CURRENCY_SYMBOLS.get(settings.currency.upper())
    if symbol is None:
        return f"{value:.2f} {settings.currency.upper()}"
    return f"{symbol}{value:.2f}"


@dataclass(frozen=True)
class CartLine:
    product_id: int
    quantity: int
    selected_option_ids: OptionSelection = field(default_factory=dict)
    is_reward_item: bool = False
    reward_id: str | None = None


@dataclass(frozen=True)
class PricedOption:
    option_id: int
    label: str
    group_name: str | None
    price_modifier: Decimal


@dataclass(frozen=True)
class PricedLine:
    product_id: int
    product_name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    is_reward_item: bool
    reward_id: str | None
    options: list[PricedOption]


def flatten_option_ids(selection: OptionSelection) -> list[int]:
    """Collapse a group -> id(s) mapping into option ids, dropping blanks and junk."""
    option_ids: list[int] = []
    for group_key, chosen in selection.items():
        if chosen is None or chosen == "":
            continue
        values = chosen if isinstance(chosen, (list, tuple)) else [chosen]
        for raw in values:
            if raw is None or raw == "":
                continue
            try:
                option_ids.append(int(raw))
            except (TypeError, ValueError):
                logger.warning("[PRICING] Ignoring malformed option id %r in group %s", raw, group_key)
    return option_ids


def price_line(db: Session, line: CartLine) -> PricedLine:
    """Price one cart line.

    Unit price is the product base price plus the modifiers of every chosen
    option that still exists. Reward free items are forced to zero. Raises
    ``ProductNotFound`` or ``ProductUnavailable`` for a bad product.
    """
    if line.quantity < 1:
        raise CheckoutValidationError("Each item must have a positive quantity.")

    product = catalog_service.get_product(db, line.product_id)
    if product is None:
        raise ProductNotFound(line.product_id)
    if product.availability != "available":
        raise ProductUnavailable(product.name)

    requested_ids = flatten_option_ids(line.selected_option_ids)
    options_by_id = catalog_service.get_options(db, requested_ids)

    unit_price = to_money(product.base_price)
    priced_options: list[PricedOption] = []
    for option_id in requested_ids:
        option = options_by_id.get(option_id)
        if option is None:
            logger.warning("[PRICING] Skipping unknown option id=%s for product id=%s", option_id, product.id)
            continue
        modifier = to_money(option.price_modifier or ZERO)
        unit_price += modifier
        priced_options.append(
            PricedOption(
                option_id=option.id,
                label=option.label,
                group_name=option.group.name if option.group is not None else None,
                price_modifier=modifier,
            )
        )

    if line.is_reward_item:
        unit_price = ZERO

    return PricedLine(
        product_id=product.id,
        product_name=product.name,
        quantity=line.quantity,
        unit_price=unit_price,
        line_total=to_money(unit_price * line.quantity),
        is_reward_item=line.is_reward_item,
        reward_id=line.reward_id,
        options=priced_options,
    )


def subtotal(lines: Sequence[PricedLine]) -> Decimal:
    return to_money(sum((line.line_total for line in lines), ZERO))
