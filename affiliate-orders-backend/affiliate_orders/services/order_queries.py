"""Read models over stored orders: newest-first listing and commission totals."""
from __future__ import annotations

from datetime import date
from typing import Optional

from sqlalchemy import case, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from affiliate_orders import config
from affiliate_orders.exceptions import PersistenceError
from affiliate_orders.models.db import Order, OrderStatus, PlatformAccount
from affiliate_orders.models.schemas.orders import OrderRead, OrderStatsRead
from .order_repository import OrderRepository


async def list_orders(
    db: Session,
    user_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    account_ids: Optional[list[int]] = None,
    status: Optional[OrderStatus] = None,
    limit: Optional[int] = None,
) -> list[OrderRead]:
    rows = await OrderRepository(db).query(
        user_id=user_id,
        account_ids=account_ids,
        start_date=start_date,
        end_date=end_date,
        status=status,
        limit=limit or config.ORDER_LIST_LIMIT,
    )
    return [OrderRead.model_validate(r) for r in rows]


def _commission_when(status: OrderStatus):
    return func.coalesce(func.sum(case((Order.status == status, Order.commission), else_=0)), 0)


async def order_stats(
    db: Session,
    user_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    account_ids: Optional[list[int]] = None,
) -> OrderStatsRead:
    q = (
        db.query(
            func.count(Order.id),
            func.coalesce(func.sum(Order.order_amount), 0),
            func.coalesce(func.sum(Order.commission), 0),
            _commission_when(OrderStatus.APPROVED),
            _commission_when(OrderStatus.PENDING),
            _commission_when(OrderStatus.REJECTED),
        )
        .join(PlatformAccount, Order.platform_account_id == PlatformAccount.id)
        .filter(PlatformAccount.user_id == user_id)
    )
    if start_date is not None:
        q = q.filter(Order.order_date >= start_date)
    if end_date is not None:
        q = q.filter(Order.order_date <= end_date)
    if account_ids:
        q = q.filter(Order.platform_account_id.in_(account_ids))
    try:
        count, amount, commission, confirmed, pending, rejected = q.one()
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError("Failed to compute order stats", details={"error": str(e)}) from e
    return OrderStatsRead(
        total_orders=int(count or 0),
        total_amount=round(float(amount or 0), 2),
        total_commission=round(float(commission or 0), 2),
        confirmed_commission=round(float(confirmed or 0), 2),
        pending_commission=round(float(pending or 0), 2),
        rejected_commission=round(float(rejected or 0), 2),
    )


__all__ = ["list_orders", "order_stats"]
