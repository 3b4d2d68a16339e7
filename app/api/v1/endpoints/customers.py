"""Customer activity endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.security import get_current_user
from app.db.session import get_db
from app.models.user import User
from app.schemas.reward import CustomerInfoResponse
from app.services import reward_service
from app.services.security_guards import ensure_can_view_customer

router: APIRouter = APIRouter()


@router.get("/{customer_id}/info", response_model=CustomerInfoResponse)
def customer_info(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> CustomerInfoResponse:
    ensure_can_view_customer(current_user, customer_id)
    return reward_service.customer_info(db, customer_id)
