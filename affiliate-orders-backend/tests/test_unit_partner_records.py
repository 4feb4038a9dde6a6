from datetime import date

import pytest

from affiliate_orders.exceptions import ValidationError
from affiliate_orders.integrations.base import normalize_rows
from affiliate_orders.models.db import OrderStatus
from affiliate_orders.models.schemas.platform import (
    LinkBuxRecord,
    LinkHaitaoLoginRecord,
    LinkHaitaoTokenRecord,
    PartnerMaticRecord,
    RewardooRecord,
    first_present,
    map_status,
)


@pytest.mark.parametrize(
    "record_cls,raw,expected",
    [
        (PartnerMaticRecord, "Approved", OrderStatus.APPROVED),
        (PartnerMaticRecord, "Rejected", OrderStatus.REJECTED),
        (PartnerMaticRecord, "Canceled", OrderStatus.REJECTED),
        (PartnerMaticRecord, "approved", OrderStatus.PENDING),
        (PartnerMaticRecord, "Pending", OrderStatus.PENDING),
        (LinkBuxRecord, "Approved", OrderStatus.APPROVED),
        (LinkBuxRecord, "Rejected", OrderStatus.REJECTED),
        (LinkBuxRecord, "Canceled", OrderStatus.PENDING),
        (LinkBuxRecord, "REJECTED", OrderStatus.PENDING),
        (RewardooRecord, "Approved", OrderStatus.APPROVED),
        (RewardooRecord, "Rejected", OrderStatus.REJECTED),
        (RewardooRecord, "Canceled", OrderStatus.PENDING),
        (LinkHaitaoTokenRecord, "Approved", OrderStatus.APPROVED),
        (LinkHaitaoTokenRecord, "effective", OrderStatus.APPROVED),
        (LinkHaitaoTokenRecord, "Expired", OrderStatus.REJECTED),
        (LinkHaitaoTokenRecord, "pending", OrderStatus.PENDING),
        (LinkHaitaoLoginRecord, "rejected", OrderStatus.REJECTED),
        (LinkHaitaoLoginRecord, "canceled", OrderStatus.PENDING),
        (PartnerMaticRecord, "something new", OrderStatus.PENDING),
        (LinkBuxRecord, None, OrderStatus.PENDING),
    ],
)
def test_status_mapping(record_cls, raw, expected):
    assert record_cls.canonical_status(raw) is expected


def test_status_table_applies_to_line_items():
    row = {"order_id": "X1", "sale_amount": 5, "sale_comm": 0.5, "status": "Canceled", "order_time": "2025-03-01"}
    assert LinkBuxRecord.model_validate(row).to_line_item().status is OrderStatus.PENDING
    assert PartnerMaticRecord.model_validate(row).to_line_item().status is OrderStatus.REJECTED


def test_map_status_with_explicit_tables():
    assert map_status(" Approved ", frozenset({"Approved"}), frozenset()) is OrderStatus.APPROVED
    assert map_status("APPROVED", frozenset({"approved"}), frozenset(), case_sensitive=False) is OrderStatus.APPROVED


def test_first_present_skips_blank_and_null_strings():
    assert first_present(None, "", "null", "x") == "x"
    assert first_present(None, None) is None
    assert first_present(0, "y") == 0


def test_partnermatic_record_mapping():
    item = PartnerMaticRecord.model_validate(
        {
            "order_id": "PM-1",
            "brand_id": 71017,
            "merchant_name": "Champion US",
            "sale_amount": "120.50",
            "sale_comm": "12.05",
            "status": "Approved",
            "order_time": 1740787200,
            "extra_field": "kept",
        }
    ).to_line_item()
    assert item.order_id == "PM-1"
    assert item.merchant_id == "71017"
    assert item.order_amount == 120.5
    assert item.commission == 12.05
    assert item.status is OrderStatus.APPROVED
    assert item.order_date == date(2025, 3, 1)
    assert item.raw["extra_field"] == "kept"


def test_linkhaitao_token_record_falls_back_to_sign_id():
    record = LinkHaitaoTokenRecord.model_validate(
        {"sign_id": "S-9", "m_id": "55", "advertiser_name": "Shop", "sale_amount": 10, "cashback": 1, "status": "pending", "order_time": "2025-03-02 10:00:00"}
    )
    assert record.order_key() == "S-9"
    assert record.to_line_item().order_date == date(2025, 3, 2)


def test_linkhaitao_login_record_uses_updated_date_when_day_missing():
    item = LinkHaitaoLoginRecord.model_validate(
        {"id": 7, "mcid": "m1", "sitename": "Site", "amount": "5", "total_cmsn": "0.5", "status": "effective", "date_ymd": None, "updated_date": "2025-03-04"}
    ).to_line_item()
    assert item.order_id == "7"
    assert item.status is OrderStatus.APPROVED
    assert item.order_date == date(2025, 3, 4)


def test_rewardoo_null_validation_date_and_negative_commission():
    item = RewardooRecord.model_validate(
        {"rewardoo_id": "R1", "mid": "9", "merchant_name": "M", "sale_amount": "30", "sale_comm": "-2", "status": "Pending", "order_time": "2025-03-05", "validation_date": "null"}
    ).to_line_item()
    assert item.order_id == "R1"
    assert item.commission == 0.0
    assert item.order_date == date(2025, 3, 5)


def test_missing_order_id_raises_validation_error():
    with pytest.raises(ValidationError) as exc:
        LinkBuxRecord.model_validate({"mid": "1", "order_time": "2025-03-01"}).to_line_item()
    assert exc.value.field == "order_id"


def test_normalize_rows_counts_dropped_but_observes_ids():
    rows = [
        {"order_id": "A", "order_time": "2025-03-01", "sale_amount": 1, "sale_comm": 0.1},
        {"order_id": "B", "order_time": "null"},
        {"linkbux_id": None},
        "not a dict",
    ]
    result = normalize_rows(rows, LinkBuxRecord)
    assert result.total == 4
    assert [i.order_id for i in result.line_items] == ["A"]
    assert result.dropped == 3
    assert result.observed_order_ids == {"A", "B"}


def test_normalize_rows_drops_out_of_range_epoch():
    valid = {"order_id": "PM-1", "sale_amount": "10", "sale_comm": "1", "status": "Approved", "order_time": 1740787200}
    rows = [valid, {**valid, "order_id": "PM-2", "order_time": "99999999999999"}]
    result = normalize_rows(rows, PartnerMaticRecord)
    assert result.dropped == 1
    assert [i.order_id for i in result.line_items] == ["PM-1"]
    assert result.observed_order_ids == {"PM-1", "PM-2"}
