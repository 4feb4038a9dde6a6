"""
Pydantic schemas for normalized orders and collection results.
"""
from datetime import date, datetime
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field, ConfigDict

from affiliate_orders.models.db.enums import OrderStatus

class LineItem(BaseModel):
    """One normalized partner record. Several may share an order_id."""
    order_id: str
    merchant_id: Optional[str] = None
    merchant_name: Optional[str] = None
    order_amount: float = Field(0.0, ge=0)
    commission: float = Field(0.0, ge=0)
    status: OrderStatus = OrderStatus.PENDING
    order_date: date
    raw: Dict[str, Any] = Field(default_factory=dict, description="Partner record as received")

class CandidateOrder(BaseModel):
    """All line items of one order_id folded together; input to reconciliation."""
    order_id: str
    merchant_id: Optional[str] = None
    merchant_name: Optional[str] = None
    order_amount: float = Field(0.0, ge=0)
    commission: float = Field(0.0, ge=0)
    status: OrderStatus = OrderStatus.PENDING
    order_date: date
    raw: Dict[str, Any] = Field(default_factory=dict)

class CollectionStats(BaseModel):
    new: int = 0
    updated: int = 0
    skipped: int = 0
    deleted: int = 0
    dropped: int = Field(0, description="Partner records discarded for missing id or date")
    total: int = Field(0, description="Raw partner records received")

class OrderRead(BaseModel):
    id: int
    platform_account_id: int
    order_id: str
    merchant_id: Optional[str]
    merchant_name: Optional[str]
    merchant_slug: Optional[str]
    order_amount: float
    commission: float
    status: OrderStatus
    order_date: date
    affiliate_name: Optional[str]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class CollectionResult(BaseModel):
    """Outcome of collecting one account; failures are reported, not raised."""
    success: bool
    message: str
    account_id: Optional[int] = None
    platform: Optional[str] = None
    stats: CollectionStats = Field(default_factory=CollectionStats)
    orders: List[OrderRead] = Field(default_factory=list)

class CollectOrdersRequest(BaseModel):
    account_id: int
    start_date: date
    end_date: date

class BatchCollectRequest(BaseModel):
    account_ids: List[int] = Field(min_length=1)
    start_date: date
    end_date: date

class OrderStatsRead(BaseModel):
    total_orders: int = 0
    total_amount: float = 0.0
    total_commission: float = 0.0
    confirmed_commission: float = 0.0
    pending_commission: float = 0.0
    rejected_commission: float = 0.0
