"""Fold partner line items into one candidate order per order id."""
from __future__ import annotations

from typing import Iterable

from affiliate_orders.models.schemas.orders import CandidateOrder, LineItem


def aggregate(line_items: Iterable[LineItem]) -> dict[str, CandidateOrder]:
    """Group line items by order id, preserving first-seen order.

    The first item for an id fixes merchant, status and date; later items only
    add their amount and commission and replace the raw payload.
    """
    merged: dict[str, CandidateOrder] = {}
    for item in line_items:
        current = merged.get(item.order_id)
        if current is None:
            merged[item.order_id] = CandidateOrder(
                order_id=item.order_id,
                merchant_id=item.merchant_id,
                merchant_name=item.merchant_name,
                order_amount=item.order_amount,
                commission=item.commission,
                status=item.status,
                order_date=item.order_date,
                raw=item.raw,
            )
            continue
        current.order_amount = round(current.order_amount + item.order_amount, 6)
        current.commission = round(current.commission + item.commission, 6)
        current.raw = item.raw
    return merged


__all__ = ["aggregate"]
