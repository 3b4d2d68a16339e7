"""Checkout and order lifecycle endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.core.security import get_current_user
from app.db.session import get_db
from app.models.user import User
from app.schemas.order import CheckoutRequest, OrderSummary, StatusUpdate
from app.services import checkout_service
from app.services.customer_service import get_customer
from app.services.security_guards import CHECKOUT_STAFF_ROLES, ensure_can_access_order, ensure_role, ensure_staff

router: APIRouter = APIRouter()


@router.post("/checkout", response_model=OrderSummary, status_code=status.HTTP_201_CREATED)
def checkout(
    payload: CheckoutRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> OrderSummary:
    """Place an order; customers earn points, staff ring up for a customer or a guest."""
    if current_user.role == "customer":
        if payload.customer_id is not None and payload.customer_id != current_user.id:
            raise HTTPException(status_code=403, detail="Customers can only order for themselves")
        customer: User | None = current_user
        earn_points = True
    else:
        ensure_role(current_user, CHECKOUT_STAFF_ROLES)
        customer = None
        if payload.customer_id is not None:
            customer = get_customer(db, payload.customer_id)
            if customer is None:
                raise HTTPException(status_code=404, detail="Customer not found")
        earn_points = False

    result = checkout_service.place_order(
        db,
        payload,
        placed_by=current_user,
        customer=customer,
        earn_points=earn_points,
    )
    return checkout_service.to_summary(result.order, result.points_earned)


@router.get("", response_model=list[OrderSummary])
def list_orders(
    limit: int | None = Query(default=None, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[OrderSummary]:
    """Non-archived orders, newest first (staff only)."""
    ensure_staff(current_user)
    return [checkout_service.to_summary(order) for order in checkout_service.list_orders(db, limit)]


@router.get("/me", response_model=list[OrderSummary])
def my_orders(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[OrderSummary]:
    return [checkout_service.to_summary(order) for order in checkout_service.list_customer_orders(db, current_user.id)]


@router.get("/{order_id}", response_model=OrderSummary)
def get_order(
    order_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> OrderSummary:
    order = checkout_service.get_order(db, order_id)
    ensure_can_access_order(current_user, order)
    return checkout_service.to_summary(order)


@router.patch("/{order_id}/status", response_model=OrderSummary)
def update_order_status(
    order_id: str,
    payload: StatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> OrderSummary:
    ensure_staff(current_user)
    order = checkout_service.update_status(db, order_id, payload.status, current_user)
    return checkout_service.to_summary(order)


@router.patch("/{order_id}/archive", response_model=OrderSummary)
def archive_order(
    order_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> OrderSummary:
    ensure_staff(current_user)
    order = checkout_service.archive_order(db, order_id, current_user)
    return checkout_service.to_summary(order)
