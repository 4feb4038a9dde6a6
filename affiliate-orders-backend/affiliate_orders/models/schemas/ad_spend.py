"""
Schemas for the ad-spend CSV import.
"""
import datetime as dt
from typing import Optional
from pydantic import BaseModel, Field

class SpendRow(BaseModel):
    """One parsed CSV row, before persistence."""
    campaign_name: str
    date: dt.date
    campaign_budget: float = 0.0
    currency: Optional[str] = None
    impressions: int = 0
    clicks: int = 0
    cost: float = 0.0
    affiliate_name: str = ""
    merchant_id: str = ""
    merchant_slug: str = ""

class ImportResult(BaseModel):
    success: bool
    message: str
    sheet_id: Optional[int] = None
    inserted: int = 0
    updated: int = 0
    skipped: int = Field(0, description="Duplicates in the CSV plus historical rows already stored")
    dropped: int = Field(0, description="Rows with too few columns, no campaign or no usable date")
    total: int = 0
