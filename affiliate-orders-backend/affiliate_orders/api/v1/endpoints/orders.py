"""
Order collection and order read endpoints.
"""
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from affiliate_orders.api.deps import (
    get_collection_service,
    get_current_user,
    get_db,
    parse_account_ids,
    require_owned_account,
)
from affiliate_orders.models.db import OrderStatus, User
from affiliate_orders.models.schemas.base import ResponseBase
from affiliate_orders.models.schemas.orders import BatchCollectRequest, CollectOrdersRequest
from affiliate_orders.services.collection_service import CollectionService
from affiliate_orders.services.order_queries import list_orders, order_stats
from affiliate_orders.utils import get_logger

router = APIRouter()
logger = get_logger(__name__)

@router.post(
    "/collect-orders",
    response_model=ResponseBase,
    summary="Collect and reconcile one account's orders for a date range"
)
async def collect_orders_endpoint(
    payload: CollectOrdersRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: CollectionService = Depends(get_collection_service),
) -> ResponseBase:
    require_owned_account(db, current_user, payload.account_id)
    logger.info(
        "Collection requested",
        user_id=current_user.id,
        account_id=payload.account_id,
        request_id=getattr(request.state, "request_id", None),
    )
    result = await service.collect_orders(
        payload.account_id,
        payload.start_date,
        payload.end_date,
        user_id=current_user.id,
    )
    return ResponseBase(success=result.success, message=result.message, data=result.model_dump(mode="json"))

@router.post(
    "/collect-orders/batch",
    response_model=ResponseBase,
    summary="Collect several accounts one after another"
)
async def collect_orders_batch_endpoint(
    payload: BatchCollectRequest,
    current_user: User = Depends(get_current_user),
    service: CollectionService = Depends(get_collection_service),
) -> ResponseBase:
    results = await service.collect_orders_batch(
        payload.account_ids,
        payload.start_date,
        payload.end_date,
        user_id=current_user.id,
    )
    succeeded = sum(1 for r in results if r.success)
    return ResponseBase(
        success=succeeded == len(results),
        message=f"{succeeded}/{len(results)} accounts collected",
        data={"results": [r.model_dump(mode="json") for r in results]},
    )

@router.get("/orders", response_model=ResponseBase, summary="List stored orders, newest first")
async def list_orders_endpoint(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    account_ids: Optional[str] = Query(None, description="Comma separated platform account ids"),
    status: Optional[OrderStatus] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ResponseBase:
    orders = await list_orders(
        db,
        current_user.id,
        start_date=start_date,
        end_date=end_date,
        account_ids=parse_account_ids(account_ids),
        status=status,
    )
    return ResponseBase(
        data={"count": len(orders), "orders": [o.model_dump(mode="json") for o in orders]}
    )

@router.get("/stats", response_model=ResponseBase, summary="Order count and commission totals")
async def order_stats_endpoint(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    account_ids: Optional[str] = Query(None, description="Comma separated platform account ids"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ResponseBase:
    stats = await order_stats(
        db,
        current_user.id,
        start_date=start_date,
        end_date=end_date,
        account_ids=parse_account_ids(account_ids),
    )
    return ResponseBase(data=stats.model_dump())
