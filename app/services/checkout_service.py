"""Checkout orchestration and order lifecycle.

``place_order`` runs as one unit of work on the caller's session: validate,
price, re-check every redemption, aggregate discounts, write the order graph,
apply ledger updates, credit points, commit. Any failure rolls the whole
session back so no partial order or ledger row survives.
"""

from __future__ import annotations

import logging
import secrets
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.models.order import Order, OrderLineItem, OrderLineItemOption
from app.models.reward import ClaimedReward, CustomerVoucher, Reward
from app.models.user import User
from app.schemas.order import CheckoutRequest, OrderItemOptionResponse, OrderItemResponse, OrderSummary
from app.services import ledger, pricing
from app.services.audit_service import record_order_event
from app.services.customer_service import build_snapshot
from app.services.discounts import DiscountDirective, aggregate, directives_for_reward
from app.services.eligibility import CustomerSnapshot, evaluate
from app.services.errors import (
    AlreadyClaimed,
    AlreadyRedeemed,
    CheckoutValidationError,
    InvalidStatusTransition,
    OrderNotFound,
    RewardNotEligible,
    RewardNotFound,
    VoucherNotFound,
)
from app.services.order_status import can_archive, can_transition, set_status
from app.services.transaction import atomic
from app.utils.time import utc_now

logger = logging.getLogger(__name__)


@dataclass
class Redemption:
    """A reward the order redeems, resolved and checked before any write."""

    reward: Reward
    voucher: CustomerVoucher | None = None
    open_claim: ClaimedReward | None = None
    directives: list[DiscountDirective] = field(default_factory=list)
    discount_applied: Decimal = pricing.ZERO
    free_items: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class CheckoutResult:
    order: Order
    points_earned: int


def _new_ticket_number() -> str:
    return str(secrets.randbelow(9000) + 1000)


def _resolve_redemptions(db: Session, request: CheckoutRequest, customer: User | None) -> list[Redemption]:
    if request.redeemed_rewards and customer is None:
        raise CheckoutValidationError("Rewards can only be redeemed for a registered customer.")

    seen_rewards: set[str] = set()
    seen_vouchers: set[str] = set()
    redemptions: list[Redemption] = []
    for entry in request.redeemed_rewards:
        if entry.voucher_id:
            if entry.voucher_id in seen_vouchers:
                raise CheckoutValidationError("The same voucher cannot be redeemed twice in one order.")
            seen_vouchers.add(entry.voucher_id)
        else:
            if entry.reward_id in seen_rewards:
                raise CheckoutValidationError("The same reward cannot be redeemed twice in one order.")
            seen_rewards.add(entry.reward_id)

        reward = db.get(Reward, entry.reward_id)
        if reward is None or not reward.is_active:
            raise RewardNotFound(f"Reward {entry.reward_id} not found.")

        voucher = None
        if entry.voucher_id:
            voucher = db.get(CustomerVoucher, entry.voucher_id)
            if voucher is None or voucher.reward_id != reward.id:
                raise VoucherNotFound("Voucher not found.")
        elif reward.is_voucher_type:
            raise CheckoutValidationError(f'Reward "{reward.name}" can only be redeemed with a voucher.')

        redemptions.append(Redemption(reward=reward, voucher=voucher, directives=directives_for_reward(reward)))
    return redemptions


def _validate_reward_items(request: CheckoutRequest, redemptions: Sequence[Redemption]) -> None:
    """Each redemption grants one unit of each of its free products."""
    granted: dict[str, set[int]] = {}
    allowance: Counter[tuple[str, int]] = Counter()
    for item in redemptions:
        products = set(item.reward.free_item_product_ids or [])
        granted.setdefault(item.reward.id, set()).update(products)
        for product_id in products:
            allowance[(item.reward.id, product_id)] += 1

    claimed: Counter[tuple[str, int]] = Counter()
    for line in request.items:
        if not line.is_reward_item:
            continue
        if not line.reward_id or line.reward_id not in granted:
            raise CheckoutValidationError("Free items must belong to a reward redeemed in this order.")
        if line.product_id not in granted[line.reward_id]:
            raise CheckoutValidationError(f"Product with ID {line.product_id} is not a free item of this reward.")
        key = (line.reward_id, line.product_id)
        claimed[key] += line.quantity
        if claimed[key] > allowance[key]:
            raise CheckoutValidationError(
                f"Only {allowance[key]} free unit(s) of product ID {line.product_id} can be taken with this reward."
            )



def _check_redemption(
    db: Session,
    redemption: Redemption,
    snapshot: CustomerSnapshot,
    now: datetime,
) -> None:
    """Re-confirm that a customer may use a reward right now."""
    reward = redemption.reward
    if redemption.voucher is not None:
        ledger.ensure_voucher_usable(redemption.voucher, snapshot.customer_id, now)
        return

    if not reward.allow_multiple_claims and ledger.has_usage(db, snapshot.customer_id, reward.id):
        raise AlreadyRedeemed(f'Reward "{reward.name}" has already been redeemed.')

    redemption.open_claim = ledger.find_unused_claim(db, snapshot.customer_id, reward.id)
    if redemption.open_claim is not None:
        result = evaluate(snapshot, reward.criteria, now=now, include_point_criteria=False)
    else:
        if not reward.allow_multiple_claims and ledger.find_exclusive_claim(db, snapshot.customer_id, reward.id):
            raise AlreadyClaimed(f'Reward "{reward.name}" has already been claimed.')
        result = evaluate(snapshot, reward.criteria, points_cost=reward.points_cost, now=now)
    if not result.eligible:
        raise RewardNotEligible(result.reason or "Not eligible for this reward.")


def _allocate_discounts(subtotal: Decimal, redemptions: Sequence[Redemption]) -> Decimal:
    """Split the clamped order discount across redemptions in request order."""
    total = aggregate(subtotal, [d for item in redemptions for d in item.directives])
    remaining = total
    for item in redemptions:
        wanted = sum((d.amount_for(subtotal) for d in item.directives), pricing.ZERO)
        item.discount_applied = min(wanted, remaining)
        remaining -= item.discount_applied
    return total


def _write_order(
    db: Session,
    request: CheckoutRequest,
    priced: Sequence[pricing.PricedLine],
    *,
    customer: User | None,
    placed_by: User,
    subtotal: Decimal,
    discount: Decimal,
) -> Order:
    order = Order(
        customer_id=customer.id if customer is not None else None,
        placed_by_user_id=placed_by.id,
        customer_name_snapshot=request.customer_name.strip(),
        subtotal_amount=subtotal,
        discount_amount=discount,
        total_amount=pricing.to_money(subtotal - discount),
        status="pending",
        ticket_number=_new_ticket_number(),
    )
    db.add(order)
    db.flush()

    line_rows: list[tuple[OrderLineItem, pricing.PricedLine]] = []
    for line in priced:
        row = OrderLineItem(
            order_id=order.id,
            product_id=line.product_id,
            product_name_snapshot=line.product_name,
            quantity=line.quantity,
            unit_price_snapshot=line.unit_price,
            line_total=line.line_total,
            is_reward_item=line.is_reward_item,
            reward_id=line.reward_id,
        )
        db.add(row)
        line_rows.append((row, line))
    db.flush()

    for row, line in line_rows:
        for option in line.options:
            db.add(
                OrderLineItemOption(
                    order_line_item_id=row.id,
                    option_id=option.option_id,
                    group_name_snapshot=option.group_name,
                    label_snapshot=option.label,
                    price_modifier_snapshot=option.price_modifier,
                )
            )
    db.flush()
    return order


def _apply_ledger(db: Session, order: Order, customer: User, redemptions: Sequence[Redemption], now: datetime) -> None:
    for item in redemptions:
        if item.voucher is not None:
            ledger.consume_voucher(db, item.voucher, order.id, now)
        else:
            claim = item.open_claim
            if claim is None:
                claim = ledger.claim_general_reward(db, customer.id, item.reward, order_id=order.id)
            ledger.mark_claim_used(db, claim, order.id, now)
        ledger.record_usage(
            db,
            reward=item.reward,
            order_id=order.id,
            customer_id=customer.id,
            discount_applied=item.discount_applied,
            free_items=item.free_items,
            voucher_id=item.voucher.id if item.voucher is not None else None,
        )


def place_order(
    db: Session,
    request: CheckoutRequest,
    *,
    placed_by: User,
    customer: User | None,
    earn_points: bool,
    now: datetime | None = None,
) -> CheckoutResult:
    """Price, validate and commit an order with all its redemption side effects."""
    current = now or utc_now()
    if not request.items:
        raise CheckoutValidationError("Order must contain at least one item.")

    with atomic(db, "checkout"):
        redemptions = _resolve_redemptions(db, request, customer)
        _validate_reward_items(request, redemptions)

        priced = [
            pricing.price_line(
                db,
                pricing.CartLine(
                    product_id=item.product_id,
                    quantity=item.quantity,
                    selected_option_ids=item.selected_option_ids,
                    is_reward_item=item.is_reward_item,
                    reward_id=item.reward_id if item.is_reward_item else None,
                ),
            )
            for item in request.items
        ]
        for item in redemptions:
            item.free_items = [
                line.product_id for line in priced if line.is_reward_item and line.reward_id == item.reward.id
            ]

        if customer is not None and redemptions:
            snapshot = build_snapshot(db, customer, current)
            for item in redemptions:
                _check_redemption(db, item, snapshot, current)

        subtotal = pricing.subtotal(priced)
        discount = _allocate_discounts(subtotal, redemptions)

        order = _write_order(
            db,
            request,
            priced,
            customer=customer,
            placed_by=placed_by,
            subtotal=subtotal,
            discount=discount,
        )
        if customer is not None:
            _apply_ledger(db, order, customer, redemptions, current)

        points_earned = 0
        if earn_points and customer is not None:
            points_earned = ledger.credit_loyalty_points(db, customer.id, order.id, order.total_amount)

    db.refresh(order)
    logger.info(
        "[CHECKOUT] Order id=%s ticket=%s total=%s discount=%s points=%s",
        order.id,
        order.ticket_number,
        order.total_amount,
        order.discount_amount,
        points_earned,
    )
    return CheckoutResult(order=order, points_earned=points_earned)


def get_order(db: Session, order_id: str) -> Order:
    order = db.scalar(
        select(Order)
        .options(selectinload(Order.items).selectinload(OrderLineItem.selected_options))
        .where(Order.id == order_id)
    )
    if order is None:
        raise OrderNotFound("Order not found.")
    return order


def list_orders(db: Session, limit: int | None = None) -> list[Order]:
    """Non-archived orders, newest first."""
    query = (
        select(Order)
        .options(selectinload(Order.items).selectinload(OrderLineItem.selected_options))
        .where(Order.is_archived.is_(False))
        .order_by(Order.created_at.desc())
    )
    if limit:
        query = query.limit(limit)
    return list(db.scalars(query).all())


def list_customer_orders(db: Session, customer_id: int) -> list[Order]:
    return list(
        db.scalars(
            select(Order)
            .options(selectinload(Order.items).selectinload(OrderLineItem.selected_options))
            .where(Order.customer_id == customer_id)
            .order_by(Order.created_at.desc())
        ).all()
    )


def update_status(db: Session, order_id: str, new_status: str, actor: User) -> Order:
    order = get_order(db, order_id)
    if order.is_archived:
        raise InvalidStatusTransition("Archived orders cannot change status.")
    if not can_transition(order.status, new_status):
        raise InvalidStatusTransition(f"Cannot change order status from {order.status} to {new_status}.")
    before = {"status": order.status}
    set_status(order, new_status, utc_now())
    record_order_event(db, actor, order, "order_status_changed", before=before, after={"status": new_status})
    db.commit()
    db.refresh(order)
    return order


def archive_order(db: Session, order_id: str, actor: User) -> Order:
    order = get_order(db, order_id)
    if not can_archive(order, actor.role):
        raise InvalidStatusTransition(f"Order with status {order.status} cannot be archived.")
    order.is_archived = True
    order.updated_at = utc_now()
    record_order_event(
        db,
        actor,
        order,
        "order_archived",
        before={"is_archived": False, "status": order.status},
        after={"is_archived": True, "status": order.status},
    )
    db.commit()
    db.refresh(order)
    return order


def to_summary(order: Order, points_earned: int = 0) -> OrderSummary:
    return OrderSummary(
        id=order.id,
        ticket_number=order.ticket_number,
        customer_id=order.customer_id,
        customer_name=order.customer_name_snapshot,
        status=order.status,
        is_archived=order.is_archived,
        subtotal_amount=order.subtotal_amount,
        discount_amount=order.discount_amount,
        total_amount=order.total_amount,
        points_earned=points_earned,
        created_at=order.created_at,
        items=[
            OrderItemResponse(
                product_id=item.product_id,
                product_name=item.product_name_snapshot,
                quantity=item.quantity,
                unit_price=item.unit_price_snapshot,
                line_total=item.line_total,
                is_reward_item=item.is_reward_item,
                reward_id=item.reward_id,
                selected_options=[
                    OrderItemOptionResponse(
                        option_id=option.option_id,
                        group_name=option.group_name_snapshot,
                        label=option.label_snapshot,
                        price_modifier=option.price_modifier_snapshot,
                    )
                    for option in item.selected_options
                ],
            )
            for item in order.items
        ],
    )
