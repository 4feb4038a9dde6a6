"""Async order store over a SQLAlchemy session.

Every write commits on its own; any SQLAlchemy failure rolls the session back
and surfaces as PersistenceError.
"""
from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from affiliate_orders.exceptions import PersistenceError
from affiliate_orders.models.db import Order, OrderStatus, PlatformAccount
from affiliate_orders.models.schemas.orders import CandidateOrder
from affiliate_orders.utils import get_logger
from affiliate_orders.utils.slug import merchant_slug
from affiliate_orders.utils.time import utc_now

logger = get_logger(__name__)


class OrderRepository:
    def __init__(self, db: Session):
        self.db = db

    def _fail(self, operation: str, error: SQLAlchemyError, **context) -> PersistenceError:
        self.db.rollback()
        logger.error("Order store failure", operation=operation, error=str(error), **context)
        return PersistenceError(f"Order store failed during {operation}", details={"error": str(error), **context})

    async def get(self, account_id: int, order_id: str) -> Optional[Order]:
        try:
            return (
                self.db.query(Order)
                .filter(Order.platform_account_id == account_id, Order.order_id == order_id)
                .one_or_none()
            )
        except SQLAlchemyError as e:
            raise self._fail("get", e, account_id=account_id, order_id=order_id) from e

    async def upsert(
        self,
        account_id: int,
        candidate: CandidateOrder,
        affiliate_name: Optional[str],
        existing: Optional[Order] = None,
    ) -> Order:
        """Insert a new order or overwrite the mutable fields of ``existing``.

        Order id, merchant id, order date and created_at are never touched on update.
        """
        try:
            if existing is None:
                row = Order(
                    platform_account_id=account_id,
                    order_id=candidate.order_id,
                    merchant_id=candidate.merchant_id,
                    merchant_name=candidate.merchant_name,
                    merchant_slug=merchant_slug(candidate.merchant_name),
                    order_amount=candidate.order_amount,
                    commission=candidate.commission,
                    status=candidate.status,
                    order_date=candidate.order_date,
                    affiliate_name=affiliate_name,
                    raw_data=candidate.raw,
                )
                self.db.add(row)
            else:
                row = existing
                row.status = candidate.status
                row.order_amount = candidate.order_amount
                row.commission = candidate.commission
                row.merchant_name = candidate.merchant_name
                row.merchant_slug = merchant_slug(candidate.merchant_name)
                row.affiliate_name = affiliate_name
                row.raw_data = candidate.raw
                row.updated_at = utc_now()
            self.db.commit()
            self.db.refresh(row)
            return row
        except SQLAlchemyError as e:
            raise self._fail("upsert", e, account_id=account_id, order_id=candidate.order_id) from e

    async def delete(self, account_id: int, order_ids: Iterable[str]) -> int:
        ids = list(order_ids)
        if not ids:
            return 0
        try:
            deleted = (
                self.db.query(Order)
                .filter(Order.platform_account_id == account_id, Order.order_id.in_(ids))
                .delete(synchronize_session=False)
            )
            self.db.commit()
            return int(deleted)
        except SQLAlchemyError as e:
            raise self._fail("delete", e, account_id=account_id, count=len(ids)) from e

    async def order_ids_in_range(self, account_id: int, start_date: date, end_date: date) -> set[str]:
        try:
            rows = (
                self.db.query(Order.order_id)
                .filter(
                    Order.platform_account_id == account_id,
                    Order.order_date >= start_date,
                    Order.order_date <= end_date,
                )
                .all()
            )
        except SQLAlchemyError as e:
            raise self._fail("order_ids_in_range", e, account_id=account_id) from e
        return {r[0] for r in rows}

    async def query(
        self,
        user_id: Optional[int] = None,
        account_ids: Optional[list[int]] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[OrderStatus] = None,
        limit: Optional[int] = None,
    ) -> list[Order]:
        """Orders newest first, optionally scoped to a user, accounts, dates and status."""
        try:
            q = self.db.query(Order)
            if user_id is not None:
                q = q.join(PlatformAccount, Order.platform_account_id == PlatformAccount.id).filter(
                    PlatformAccount.user_id == user_id
                )
            if account_ids:
                q = q.filter(Order.platform_account_id.in_(account_ids))
            if start_date is not None:
                q = q.filter(Order.order_date >= start_date)
            if end_date is not None:
                q = q.filter(Order.order_date <= end_date)
            if status is not None:
                q = q.filter(Order.status == status)
            q = q.order_by(Order.order_date.desc(), Order.id.desc())
            if limit is not None:
                q = q.limit(limit)
            return q.all()
        except SQLAlchemyError as e:
            raise self._fail("query", e, user_id=user_id) from e


__all__ = ["OrderRepository"]
