"""
Merchant ROI summary endpoint.
"""
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from affiliate_orders.api.deps import get_current_user, get_db, parse_account_ids
from affiliate_orders.models.db import User
from affiliate_orders.models.schemas.base import ResponseBase
from affiliate_orders.services.ad_spend_matcher import summarize_merchants

router = APIRouter()

@router.get(
    "/merchant-summary",
    response_model=ResponseBase,
    summary="Orders joined to ad spend per merchant, sorted by ROI"
)
async def merchant_summary_endpoint(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    account_ids: Optional[str] = Query(None, description="Comma separated platform account ids"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ResponseBase:
    rows = await summarize_merchants(
        db,
        current_user.id,
        start_date=start_date,
        end_date=end_date,
        account_ids=parse_account_ids(account_ids),
    )
    return ResponseBase(data={"count": len(rows), "rows": [r.model_dump() for r in rows]})
