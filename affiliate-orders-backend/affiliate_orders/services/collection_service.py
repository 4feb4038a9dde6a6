"""Order collection orchestrator.

``collect_orders`` runs one account end to end:

1. Load the PlatformAccount (scoped to the caller when a user id is given).
2. Build the partner adapter and fetch + normalize the range.
3. Fold line items into candidate orders.
4. Reconcile candidates against the store (and delete stale orders for
   delete-reconciling partners).
5. Return a CollectionResult; failures are reported, never raised.

``collect_orders_batch`` runs several accounts strictly one after another with
a pause between them.
"""
from __future__ import annotations

import asyncio
import time
from datetime import date
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from affiliate_orders import config
from affiliate_orders.exceptions import CollectionError, PersistenceError, UpstreamAPIError
from affiliate_orders.integrations import CaptchaSolver, PlatformAdapter, build_adapter
from affiliate_orders.models.db import PlatformAccount
from affiliate_orders.models.schemas.orders import CollectionResult, CollectionStats, OrderRead
from affiliate_orders.utils import get_logger, log_business_event, log_performance
from .order_aggregator import aggregate
from .order_repository import OrderRepository
from .reconciliation_engine import reconcile
from .token_store import SqlTokenStore, TokenStore

logger = get_logger(__name__)

AdapterFactory = Callable[[PlatformAccount], PlatformAdapter]


def summary_message(stats: CollectionStats) -> str:
    parts = []
    if stats.new:
        parts.append(f"{stats.new} new")
    if stats.updated:
        parts.append(f"{stats.updated} updated")
    if stats.skipped:
        parts.append(f"{stats.skipped} skipped")
    if stats.deleted:
        parts.append(f"{stats.deleted} deleted")
    if stats.dropped:
        parts.append(f"{stats.dropped} dropped")
    if not parts:
        return "Collection complete: no orders found"
    return "Collection complete: " + ", ".join(parts)


class CollectionService:
    def __init__(
        self,
        db: Session,
        token_store: Optional[TokenStore] = None,
        captcha_solver: Optional[CaptchaSolver] = None,
        adapter_factory: Optional[AdapterFactory] = None,
    ):
        self.db = db
        self.repo = OrderRepository(db)
        self.token_store = token_store or SqlTokenStore(db)
        self.captcha_solver = captcha_solver
        self.adapter_factory = adapter_factory

    def adapter_for(self, account: PlatformAccount) -> PlatformAdapter:
        if self.adapter_factory is not None:
            return self.adapter_factory(account)
        return build_adapter(account.platform, self.token_store, self.captcha_solver)

    def _load_account(self, account_id: int, user_id: Optional[int]) -> Optional[PlatformAccount]:
        q = self.db.query(PlatformAccount).filter(PlatformAccount.id == account_id)
        if user_id is not None:
            q = q.filter(PlatformAccount.user_id == user_id)
        return q.one_or_none()

    async def collect_orders(
        self,
        account_id: int,
        start_date: date,
        end_date: date,
        user_id: Optional[int] = None,
    ) -> CollectionResult:
        started = time.perf_counter()
        try:
            account = self._load_account(account_id, user_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            return CollectionResult(success=False, message=f"Collection failed: {PersistenceError(str(e))}", account_id=account_id)
        if account is None:
            return CollectionResult(success=False, message="Platform account not found or not accessible", account_id=account_id)
        if start_date > end_date:
            return CollectionResult(
                success=False,
                message="start_date must not be after end_date",
                account_id=account.id,
                platform=account.platform.value,
            )

        platform = account.platform.value
        logger.info(
            "Collection started",
            account_id=account.id,
            platform=platform,
            start_date=start_date.isoformat(),
            end_date=end_date.isoformat(),
        )
        try:
            adapter = self.adapter_for(account)
            fetched = await adapter.collect(account, start_date, end_date)
            candidates = aggregate(fetched.line_items)
            stats = CollectionStats(total=fetched.total, dropped=fetched.dropped)
            outcome = await reconcile(
                self.repo,
                account,
                candidates,
                stats,
                delete_missing=adapter.delete_reconcile,
                observed_order_ids=fetched.observed_order_ids,
                start_date=start_date,
                end_date=end_date,
            )
        except CollectionError as e:
            logger.warning("Collection failed", account_id=account.id, platform=platform, error=str(e))
            return CollectionResult(success=False, message=f"Collection failed: {e}", account_id=account.id, platform=platform)
        except SQLAlchemyError as e:
            self.db.rollback()
            error = PersistenceError("Order store failed", details={"error": str(e)})
            logger.error("Collection failed in store", account_id=account.id, platform=platform, error=str(e), exc_info=True)
            return CollectionResult(success=False, message=f"Collection failed: {error}", account_id=account.id, platform=platform)
        except Exception as e:
            error = UpstreamAPIError(str(e), platform=platform)
            logger.error("Collection failed unexpectedly", account_id=account.id, platform=platform, error=str(e), exc_info=True)
            return CollectionResult(success=False, message=f"Collection failed: {error}", account_id=account.id, platform=platform)

        duration_ms = (time.perf_counter() - started) * 1000
        log_business_event(
            "orders_collected",
            {
                "account_id": account.id,
                "platform": platform,
                **outcome.stats.model_dump(),
            },
            user_id=account.user_id,
        )
        log_performance("collect_orders", duration_ms, {"account_id": account.id, "platform": platform})
        return CollectionResult(
            success=True,
            message=summary_message(outcome.stats),
            account_id=account.id,
            platform=platform,
            stats=outcome.stats,
            orders=[OrderRead.model_validate(o) for o in outcome.orders],
        )

    async def collect_orders_batch(
        self,
        account_ids: list[int],
        start_date: date,
        end_date: date,
        user_id: Optional[int] = None,
    ) -> list[CollectionResult]:
        results: list[CollectionResult] = []
        for index, account_id in enumerate(account_ids):
            if index > 0:
                await asyncio.sleep(config.INTER_ACCOUNT_PAUSE_SECONDS)
            results.append(await self.collect_orders(account_id, start_date, end_date, user_id=user_id))
        logger.info(
            "Batch collection finished",
            accounts=len(account_ids),
            succeeded=sum(1 for r in results if r.success),
        )
        return results


async def collect_orders(db: Session, account_id: int, start_date: date, end_date: date, **kwargs) -> CollectionResult:
    user_id = kwargs.pop("user_id", None)
    return await CollectionService(db, **kwargs).collect_orders(account_id, start_date, end_date, user_id=user_id)


async def collect_orders_batch(db: Session, account_ids: list[int], start_date: date, end_date: date, **kwargs) -> list[CollectionResult]:
    user_id = kwargs.pop("user_id", None)
    return await CollectionService(db, **kwargs).collect_orders_batch(account_ids, start_date, end_date, user_id=user_id)


__all__ = ["CollectionService", "collect_orders", "collect_orders_batch", "summary_message"]
