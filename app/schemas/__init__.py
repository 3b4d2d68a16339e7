"""Schema exports."""

from app.schemas.auth import AuthUserResponse, LoginRequest, RegisterRequest, TokenResponse
from app.schemas.order import (
    CheckoutItemPayload,
    CheckoutRequest,
    OrderItemResponse,
    OrderSummary,
    RedeemedRewardPayload,
    StatusUpdate,
)
from app.schemas.reward import (
    AvailableRewardsResponse,
    ClaimRequest,
    CustomerInfoResponse,
    GrantVoucherRequest,
    RewardCreate,
    RewardCriteria,
    RewardRead,
    RewardUpdate,
    VoucherRead,
)

__all__ = [
    "AuthUserResponse",
    "LoginRequest",
    "RegisterRequest",
    "TokenResponse",
    "CheckoutItemPayload",
    "CheckoutRequest",
    "OrderItemResponse",
    "OrderSummary",
    "RedeemedRewardPayload",
    "StatusUpdate",
    "AvailableRewardsResponse",
    "ClaimRequest",
    "CustomerInfoResponse",
    "GrantVoucherRequest",
    "RewardCreate",
    "RewardCriteria",
    "RewardRead",
    "RewardUpdate",
    "VoucherRead",
]
