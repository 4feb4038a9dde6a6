"""
Ad-spend sheet import and listing endpoints.
"""
from datetime import date
from typing import Optional
from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session
from affiliate_orders.api.deps import get_current_user, get_db, require_owned_sheet
from affiliate_orders.models.db import User
from affiliate_orders.models.schemas.base import ResponseBase
from affiliate_orders.services.ad_spend_import import import_ad_spend, list_ad_spend

router = APIRouter()

@router.post(
    "/sheets/{sheet_id}/import",
    response_model=ResponseBase,
    summary="Import a sheet's spend (downloads the CSV unless csv_text is given)"
)
async def import_sheet_endpoint(
    sheet_id: int,
    csv_text: Optional[str] = Body(None, embed=True),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ResponseBase:
    require_owned_sheet(db, current_user, sheet_id)
    result = await import_ad_spend(db, sheet_id, csv_text, user_id=current_user.id)
    return ResponseBase(success=result.success, message=result.message, data=result.model_dump())

@router.get("", response_model=ResponseBase, summary="List imported spend rows, newest first")
async def list_spend_endpoint(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    sheet_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ResponseBase:
    records = await list_ad_spend(db, current_user.id, start_date=start_date, end_date=end_date, sheet_id=sheet_id)
    return ResponseBase(
        data={
            "count": len(records),
            "records": [
                {
                    "id": r.id,
                    "sheet_id": r.sheet_id,
                    "date": r.date.isoformat(),
                    "campaign_name": r.campaign_name,
                    "affiliate_name": r.affiliate_name,
                    "merchant_id": r.merchant_id,
                    "merchant_slug": r.merchant_slug,
                    "campaign_budget": r.campaign_budget,
                    "currency": r.currency,
                    "impressions": r.impressions,
                    "clicks": r.clicks,
                    "cost": r.cost,
                }
                for r in records
            ],
        }
    )
