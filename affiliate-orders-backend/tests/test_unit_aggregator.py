from datetime import date

from affiliate_orders.models.db import OrderStatus
from affiliate_orders.models.schemas.orders import LineItem
from affiliate_orders.services.order_aggregator import aggregate


def _item(order_id, amount, commission, status=OrderStatus.PENDING, **kw):
    return LineItem(
        order_id=order_id,
        merchant_id=kw.get("merchant_id", "m1"),
        merchant_name=kw.get("merchant_name", "Shop"),
        order_amount=amount,
        commission=commission,
        status=status,
        order_date=kw.get("order_date", date(2025, 3, 1)),
        raw=kw.get("raw", {"n": order_id}),
    )


def test_line_items_of_one_order_are_summed():
    merged = aggregate(
        [
            _item("A", 10.0, 1.0, raw={"n": 1}),
            _item("B", 5.0, 0.5),
            _item("A", 20.0, 2.0, status=OrderStatus.APPROVED, merchant_name="Other", raw={"n": 2}),
        ]
    )
    assert list(merged) == ["A", "B"]
    a = merged["A"]
    assert a.order_amount == 30.0
    assert a.commission == 3.0
    # First item fixes identity and status; raw follows the last item
    assert a.status is OrderStatus.PENDING
    assert a.merchant_name == "Shop"
    assert a.raw == {"n": 2}


def test_sums_do_not_accumulate_float_noise():
    merged = aggregate([_item("A", 0.1, 0.1), _item("A", 0.2, 0.2)])
    assert merged["A"].order_amount == 0.3
    assert merged["A"].commission == 0.3


def test_empty_input():
    assert aggregate([]) == {}


def test_two_line_items_fold_to_order_totals():
    merged = aggregate([_item("X", 10.00, 1.00), _item("X", 5.00, 0.50)])
    assert merged["X"].order_amount == 15.00
    assert merged["X"].commission == 1.50
