"""
Schemas for the merchant ROI summary.
"""
from typing import Optional
from pydantic import BaseModel, Field

class MerchantSummaryRow(BaseModel):
    """Spend group joined to its order group by merchant id + affiliate label."""
    merchant_id: str
    affiliate_name: str
    merchant_name: str = ""
    merchant_slug: str = ""
    campaign_names: str = Field("", description="Distinct campaign names, comma joined")
    campaign_budget: float = 0.0
    currency: Optional[str] = None
    impressions: int = 0
    clicks: int = 0
    cost: float = Field(0.0, description="Reporting-currency spend")
    order_count: int = 0
    total_amount: float = 0.0
    total_commission: float = 0.0
    confirmed_commission: float = 0.0
    pending_commission: float = 0.0
    rejected_commission: float = 0.0
    conversion_rate: float = 0.0
    epc: float = 0.0
    cpc: float = 0.0
    roi: float = 0.0
