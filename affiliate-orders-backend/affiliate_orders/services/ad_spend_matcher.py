"""Join persisted orders to imported ad spend and compute per-merchant ROI.

Rows are keyed by ``"{merchant_id}_{affiliate_label.lower()}"``: the merchant id
is the partner's id (which ad campaign names carry as their last segment) and
the affiliate label ties a campaign to the partner account it promotes. The
output is spend-driven: every spend group yields a row, with order metrics when
a matching order group exists.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from affiliate_orders import config
from affiliate_orders.models.db import AdSheet, AdSpendRecord, Order, OrderStatus, PlatformAccount
from affiliate_orders.models.schemas.summary import MerchantSummaryRow
from affiliate_orders.utils import get_logger
from affiliate_orders.utils.metrics import safe_div

logger = get_logger(__name__)


def match_key(merchant_id: Any, affiliate_name: Optional[str]) -> str:
    return f"{merchant_id}_{(affiliate_name or '').lower()}"


def to_reporting_cost(cost: float | None, currency: Optional[str]) -> float:
    amount = float(cost or 0.0)
    if (currency or "").strip().upper() == config.ALT_CURRENCY.upper():
        return amount / config.ALT_CURRENCY_RATE
    return amount


@dataclass
class _OrderGroup:
    merchant_id: str
    affiliate_name: str
    merchant_name: str = ""
    merchant_slug: str = ""
    order_count: int = 0
    total_amount: float = 0.0
    total_commission: float = 0.0
    confirmed_commission: float = 0.0
    pending_commission: float = 0.0
    rejected_commission: float = 0.0


@dataclass
class _SpendGroup:
    merchant_id: str
    affiliate_name: str
    merchant_slug: str = ""
    campaign_names: list[str] = field(default_factory=list)
    impressions: int = 0
    clicks: int = 0
    cost: float = 0.0
    end_budget: Optional[float] = None
    end_currency: Optional[str] = None
    max_budget: Optional[float] = None
    max_currency: Optional[str] = None


def _group_orders(orders: Iterable[Any]) -> dict[str, _OrderGroup]:
    groups: dict[str, _OrderGroup] = {}
    for order in orders:
        key = match_key(order.merchant_id, order.affiliate_name)
        group = groups.get(key)
        if group is None:
            group = groups[key] = _OrderGroup(
                merchant_id=str(order.merchant_id or ""),
                affiliate_name=order.affiliate_name or "",
                merchant_name=order.merchant_name or "",
                merchant_slug=order.merchant_slug or "",
            )
        commission = float(order.commission or 0.0)
        group.order_count += 1
        group.total_amount += float(order.order_amount or 0.0)
        group.total_commission += commission
        status = OrderStatus(order.status)
        if status is OrderStatus.APPROVED:
            group.confirmed_commission += commission
        elif status is OrderStatus.REJECTED:
            group.rejected_commission += commission
        else:
            group.pending_commission += commission
    return groups


def _max(current: Any, candidate: Any) -> Any:
    if candidate is None:
        return current
    if current is None:
        return candidate
    return max(current, candidate)


def _group_spend(records: Iterable[Any], end_date: Optional[date]) -> dict[str, _SpendGroup]:
    groups: dict[str, _SpendGroup] = {}
    for record in records:
        if not record.merchant_id or not record.affiliate_name:
            continue
        key = match_key(record.merchant_id, record.affiliate_name)
        group = groups.get(key)
        if group is None:
            group = groups[key] = _SpendGroup(
                merchant_id=str(record.merchant_id),
                affiliate_name=record.affiliate_name,
                merchant_slug=record.merchant_slug or "",
            )
        if record.campaign_name and record.campaign_name not in group.campaign_names:
            group.campaign_names.append(record.campaign_name)
        group.impressions += int(record.impressions or 0)
        group.clicks += int(record.clicks or 0)
        group.cost += to_reporting_cost(record.cost, record.currency)
        budget = float(record.campaign_budget) if record.campaign_budget is not None else None
        group.max_budget = _max(group.max_budget, budget)
        group.max_currency = _max(group.max_currency, record.currency or None)
        if end_date is not None and record.date == end_date:
            group.end_budget = _max(group.end_budget, budget)
            group.end_currency = _max(group.end_currency, record.currency or None)
    return groups


def _roi_sort_key(row: MerchantSummaryRow) -> float:
    return row.roi if row.cost > 0 else float("-inf")


def summarize(
    orders: Iterable[Any],
    spend_records: Iterable[Any],
    end_date: Optional[date] = None,
) -> list[MerchantSummaryRow]:
    """Merge order and spend groups, sorted by ROI (zero-cost rows last).

    ``orders`` need merchant_id, merchant_name, merchant_slug, affiliate_name,
    status, order_amount and commission; ``spend_records`` need the
    AdSpendRecord columns. Budget and currency come from rows dated
    ``end_date`` (or the range maximum when no end date is given).
    """
    order_groups = _group_orders(orders)
    rows: list[MerchantSummaryRow] = []
    for key, spend in _group_spend(spend_records, end_date).items():
        match = order_groups.get(key)
        budget = spend.end_budget if end_date is not None else spend.max_budget
        currency = spend.end_currency if end_date is not None else spend.max_currency
        cost = round(spend.cost, 2)
        commission = round(match.total_commission, 2) if match else 0.0
        order_count = match.order_count if match else 0
        rows.append(
            MerchantSummaryRow(
                merchant_id=spend.merchant_id,
                affiliate_name=match.affiliate_name if match else spend.affiliate_name,
                merchant_name=match.merchant_name if match else "",
                merchant_slug=match.merchant_slug if match else spend.merchant_slug,
                campaign_names=",".join(spend.campaign_names),
                campaign_budget=budget or 0.0,
                currency=currency,
                impressions=spend.impressions,
                clicks=spend.clicks,
                cost=cost,
                order_count=order_count,
                total_amount=round(match.total_amount, 2) if match else 0.0,
                total_commission=commission,
                confirmed_commission=round(match.confirmed_commission, 2) if match else 0.0,
                pending_commission=round(match.pending_commission, 2) if match else 0.0,
                rejected_commission=round(match.rejected_commission, 2) if match else 0.0,
                conversion_rate=safe_div(order_count, spend.clicks),
                epc=safe_div(commission, spend.clicks),
                cpc=safe_div(cost, spend.clicks),
                roi=safe_div(commission - cost, cost),
            )
        )
    rows.sort(key=_roi_sort_key, reverse=True)
    return rows


@dataclass(frozen=True)
class OrderFact:
    """Order reduced to what the summary needs, with the effective affiliate label."""
    merchant_id: Optional[str]
    merchant_name: Optional[str]
    merchant_slug: Optional[str]
    affiliate_name: Optional[str]
    status: OrderStatus
    order_amount: float
    commission: float


async def summarize_merchants(
    db: Session,
    user_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    account_ids: Optional[list[int]] = None,
) -> list[MerchantSummaryRow]:
    """Per-merchant ROI for one user's orders and imported spend.

    With ``account_ids`` orders are limited to those accounts and spend rows to
    their affiliate labels (case-insensitive).
    """
    order_q = (
        db.query(Order, PlatformAccount.affiliate_name)
        .join(PlatformAccount, Order.platform_account_id == PlatformAccount.id)
        .filter(PlatformAccount.user_id == user_id)
    )
    spend_q = (
        db.query(AdSpendRecord)
        .join(AdSheet, AdSpendRecord.sheet_id == AdSheet.id)
        .filter(AdSheet.user_id == user_id)
    )
    if start_date is not None:
        order_q = order_q.filter(Order.order_date >= start_date)
        spend_q = spend_q.filter(AdSpendRecord.date >= start_date)
    if end_date is not None:
        order_q = order_q.filter(Order.order_date <= end_date)
        spend_q = spend_q.filter(AdSpendRecord.date <= end_date)

    if account_ids:
        order_q = order_q.filter(Order.platform_account_id.in_(account_ids))
        labels = {
            (name or "").lower()
            for (name,) in db.query(PlatformAccount.affiliate_name)
            .filter(PlatformAccount.id.in_(account_ids), PlatformAccount.user_id == user_id)
            .all()
            if name
        }
        if labels:
            spend_q = spend_q.filter(func.lower(AdSpendRecord.affiliate_name).in_(sorted(labels)))

    spend_records = spend_q.order_by(AdSpendRecord.date, AdSpendRecord.id).all()

    facts = [
        OrderFact(
            merchant_id=order.merchant_id,
            merchant_name=order.merchant_name,
            merchant_slug=order.merchant_slug,
            affiliate_name=account_label or order.affiliate_name,
            status=order.status,
            order_amount=order.order_amount,
            commission=order.commission,
        )
        for order, account_label in order_q.order_by(Order.order_date, Order.id).all()
    ]

    rows = summarize(facts, spend_records, end_date)
    logger.info(
        "Merchant summary built",
        user_id=user_id,
        orders=len(facts),
        spend_records=len(spend_records),
        rows=len(rows),
    )
    return rows


__all__ = ["match_key", "to_reporting_cost", "summarize", "summarize_merchants", "OrderFact"]
