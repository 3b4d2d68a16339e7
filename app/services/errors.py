"""Domain exceptions raised by checkout and redemption services.

Every exception carries a machine-readable ``reason`` and the HTTP status the
API layer should answer with. Business failures use 4xx codes; only
:class:`CheckoutInfrastructureError` maps to a 5xx and its message is opaque.
"""

from __future__ import annotations


class CheckoutError(Exception):
    """Base class for expected checkout and redemption failures."""

    reason: str = "checkout_failed"
    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class CheckoutValidationError(CheckoutError):
    """Malformed request detected before any write."""

    reason = "validation_error"
    status_code = 422


class ProductNotFound(CheckoutError):
    reason = "product_not_found"
    status_code = 404

    def __init__(self, product_id: int) -> None:
        super().__init__(f"Product with ID {product_id} not found.")
        self.product_id = product_id


class ProductUnavailable(CheckoutError):
    reason = "product_unavailable"
    status_code = 409

    def __init__(self, product_name: str) -> None:
        super().__init__(f'Product "{product_name}" is currently unavailable.')
        self.product_name = product_name


class RewardNotFound(CheckoutError):
    reason = "reward_not_found"
    status_code = 404


class VoucherNotFound(CheckoutError):
    reason = "voucher_not_found"
    status_code = 404


class RewardNotEligible(CheckoutError):
    reason = "reward_not_eligible"
    status_code = 409


class InsufficientPoints(CheckoutError):
    reason = "insufficient_points"
    status_code = 409


class AlreadyClaimed(CheckoutError):
    reason = "already_claimed"
    status_code = 409


class AlreadyRedeemed(CheckoutError):
    reason = "already_redeemed"
    status_code = 409


class VoucherNotUsable(CheckoutError):
    """Voucher is expired or already consumed."""

    reason = "voucher_not_usable"
    status_code = 409


class ConcurrentRedemption(CheckoutError):
    """A conditional update matched no rows because another request won."""

    reason = "concurrent_redemption"
    status_code = 409


class CustomerNotFound(CheckoutError):
    reason = "customer_not_found"
    status_code = 404


class OrderNotFound(CheckoutError):
    reason = "order_not_found"
    status_code = 404


class InvalidStatusTransition(CheckoutError):
    reason = "invalid_status_transition"
    status_code = 409


class CheckoutInfrastructureError(CheckoutError):
    reason = "internal_error"
    status_code = 500

    def __init__(self, message: str = "Checkout failed. Please try again.") -> None:
        super().__init__(message)
