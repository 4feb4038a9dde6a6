"""Reconciliation engine: decide and apply insert / update / skip / delete.

``decide(existing, candidate)`` is pure. ``reconcile(...)`` walks the
aggregated candidates for one account, applies each decision through the
OrderRepository and, for delete-reconciling partners, removes stored orders in
the fetched range that the partner no longer returns.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from affiliate_orders.models.db import Order, PlatformAccount, ReconcileAction
from affiliate_orders.models.schemas.orders import CandidateOrder, CollectionStats
from affiliate_orders.utils import get_logger, log_business_event
from affiliate_orders.utils.metrics import money_differs
from .order_repository import OrderRepository

logger = get_logger(__name__)


def decide(existing: Optional[Order], candidate: CandidateOrder) -> ReconcileAction:
    if existing is None:
        return ReconcileAction.INSERT
    if (
        existing.status != candidate.status
        or money_differs(existing.order_amount, candidate.order_amount)
        or money_differs(existing.commission, candidate.commission)
    ):
        return ReconcileAction.UPDATE
    return ReconcileAction.SKIP


@dataclass
class ReconcileOutcome:
    stats: CollectionStats
    orders: list[Order] = field(default_factory=list)
    deleted_order_ids: list[str] = field(default_factory=list)


async def reconcile(
    repo: OrderRepository,
    account: PlatformAccount,
    candidates: dict[str, CandidateOrder],
    stats: Optional[CollectionStats] = None,
    *,
    delete_missing: bool = False,
    observed_order_ids: Optional[set[str]] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> ReconcileOutcome:
    """Persist candidates for ``account`` and count what happened.

    With ``delete_missing`` the stored ids for ``start_date..end_date`` minus
    ``observed_order_ids`` (or the candidate ids when not given) are deleted.
    """
    outcome = ReconcileOutcome(stats=stats or CollectionStats())
    affiliate_name = account.affiliate_name or None

    for order_id, candidate in candidates.items():
        existing = await repo.get(account.id, order_id)
        action = decide(existing, candidate)
        if action is ReconcileAction.SKIP:
            outcome.stats.skipped += 1
            outcome.orders.append(existing)  # type: ignore[arg-type]
            continue
        if action is ReconcileAction.UPDATE:
            logger.info(
                "Order changed upstream",
                account_id=account.id,
                order_id=order_id,
                status_from=existing.status.value,  # type: ignore[union-attr]
                status_to=candidate.status.value,
                amount_from=existing.order_amount,  # type: ignore[union-attr]
                amount_to=candidate.order_amount,
                commission_from=existing.commission,  # type: ignore[union-attr]
                commission_to=candidate.commission,
            )
        row = await repo.upsert(account.id, candidate, affiliate_name, existing)
        outcome.orders.append(row)
        if action is ReconcileAction.INSERT:
            outcome.stats.new += 1
        else:
            outcome.stats.updated += 1

    if delete_missing:
        if start_date is None or end_date is None:
            raise ValueError("delete reconciliation needs the fetched date range")
        observed = observed_order_ids if observed_order_ids is not None else set(candidates)
        stored = await repo.order_ids_in_range(account.id, start_date, end_date)
        stale = sorted(stored - observed)
        if stale:
            outcome.stats.deleted += await repo.delete(account.id, stale)
            outcome.deleted_order_ids = stale
            log_business_event(
                "orders_deleted",
                {
                    "account_id": account.id,
                    "platform": account.platform.value,
                    "count": len(stale),
                    "start_date": start_date.isoformat(),
                    "end_date": end_date.isoformat(),
                },
            )

    return outcome


__all__ = ["decide", "reconcile", "ReconcileOutcome"]
