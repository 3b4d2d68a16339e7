"""Application models package."""

from app.models.audit_log import AuditLog
from app.models.catalog import Option, OptionGroup, Product
from app.models.order import Order, OrderLineItem, OrderLineItemOption
from app.models.reward import ClaimedReward, CustomerVoucher, LoyaltyPointsTransaction, Reward, RewardUsage
from app.models.user import User

__all__ = [
    "User", "Product", "OptionGroup", "Option", "Order", "OrderLineItem", "OrderLineItemOption",
    "Reward", "ClaimedReward", "CustomerVoucher", "RewardUsage", "LoyaltyPointsTransaction", "AuditLog",
]
