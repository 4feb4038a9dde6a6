from .users import User
from .platform_accounts import PlatformAccount
from .orders import Order
from .platform_tokens import PlatformToken
from .ad_sheets import AdSheet
from .ad_spend import AdSpendRecord
from .enums import PlatformType, OrderStatus, ReconcileAction

__all__ = [
    "User",
    "PlatformAccount",
    "Order",
    "PlatformToken",
    "AdSheet",
    "AdSpendRecord",
    "PlatformType",
    "OrderStatus",
    "ReconcileAction",
]
