from .base import ResponseBase
from .orders import (
    LineItem,
    CandidateOrder,
    CollectionStats,
    CollectionResult,
    OrderRead,
    OrderStatsRead,
    CollectOrdersRequest,
    BatchCollectRequest,
)
from .summary import MerchantSummaryRow
from .ad_spend import SpendRow, ImportResult

__all__ = [
    "ResponseBase",
    "LineItem",
    "CandidateOrder",
    "CollectionStats",
    "CollectionResult",
    "OrderRead",
    "OrderStatsRead",
    "CollectOrdersRequest",
    "BatchCollectRequest",
    "MerchantSummaryRow",
    "SpendRow",
    "ImportResult",
]
