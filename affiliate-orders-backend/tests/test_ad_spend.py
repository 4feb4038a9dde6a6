from datetime import date
from types import SimpleNamespace

import pytest

from affiliate_orders.models.db import AdSpendRecord, OrderStatus, PlatformType
from affiliate_orders.services.ad_spend_import import import_ad_spend, list_ad_spend, parse_spend_csv
from affiliate_orders.services.ad_spend_matcher import summarize, summarize_merchants, to_reporting_cost

HEADER = "Campaign,Country,URL,Budget,Currency,Type,Strategy,Date,Impressions,Clicks,Cost\nsub,header,,,,,,,,,\n"
CAMPAIGN = "596-pm1-Champion-US-0826-71017"


def _csv(*rows):
    return HEADER + "\n".join(rows) + "\n"


def _row(campaign=CAMPAIGN, day="2025-03-01", budget="50", currency="USD", impressions="1,000", clicks="40", cost="12.5"):
    return f'{campaign},US,https://x.test,{budget},{currency},Search,MaxClicks,{day},"{impressions}",{clicks},{cost}'


def test_parse_spend_csv_drops_and_dedupes():
    parsed = parse_spend_csv(
        _csv(
            _row(),
            _row(cost="99"),  # same campaign and date
            "bad,row",
            _row(day=""),
            ",US,https://x.test,1,USD,Search,MaxClicks,2025-03-01,1,1,1",
            "",
            _row(day="2025/03/02"),
        )
    )
    assert parsed.total == 6
    assert parsed.dropped == 3
    assert parsed.duplicates == 1
    assert [r.date for r in parsed.rows] == [date(2025, 3, 1), date(2025, 3, 2)]
    first = parsed.rows[0]
    assert first.cost == 12.5
    assert first.impressions == 1000
    assert first.affiliate_name == "pm1"
    assert first.merchant_id == "71017"
    assert first.merchant_slug == "champion"


@pytest.mark.asyncio
async def test_import_refreshes_today_and_freezes_history(db_session, sheet_factory):
    sheet = sheet_factory()
    today = date(2025, 3, 2)
    first = await import_ad_spend(
        db_session, sheet.id, _csv(_row(day="2025-03-01"), _row(day="2025-03-01"), _row(day="2025-03-02", cost="5")), today=today
    )
    assert first.success
    assert (first.inserted, first.updated, first.skipped) == (2, 0, 1)

    second = await import_ad_spend(
        db_session, sheet.id, _csv(_row(day="2025-03-01", cost="77"), _row(day="2025-03-02", cost="8")), today=today
    )
    assert (second.inserted, second.updated, second.skipped) == (0, 1, 1)
    assert second.message == "Import complete: 0 new, 1 updated, 1 skipped"

    db_session.expire_all()
    costs = {r.date: r.cost for r in db_session.query(AdSpendRecord).all()}
    assert costs == {date(2025, 3, 1): 12.5, date(2025, 3, 2): 8.0}


@pytest.mark.asyncio
async def test_import_downloads_csv_when_not_given(db_session, sheet_factory, fake_http):
    sheet = sheet_factory()
    http = fake_http(_csv(_row()))
    result = await import_ad_spend(db_session, sheet.id, http=http, today=date(2025, 3, 5))
    assert result.inserted == 1
    assert http.calls[0]["url"] == "https://docs.google.com/spreadsheets/d/abcDEF_123-xyz/export?format=csv&gid=0"


@pytest.mark.asyncio
async def test_import_rejects_foreign_sheet(db_session, sheet_factory, user_factory):
    sheet = sheet_factory()
    other = user_factory()
    result = await import_ad_spend(db_session, sheet.id, _csv(_row()), user_id=other.id)
    assert not result.success


@pytest.mark.asyncio
async def test_list_ad_spend_newest_first(db_session, sheet_factory, spend_factory):
    sheet = sheet_factory()
    spend_factory(sheet, CAMPAIGN, date(2025, 3, 1))
    spend_factory(sheet, CAMPAIGN, date(2025, 3, 3))
    records = await list_ad_spend(db_session, sheet.user_id)
    assert [r.date for r in records] == [date(2025, 3, 3), date(2025, 3, 1)]
    assert await list_ad_spend(db_session, sheet.user_id + 1000) == []


def test_reporting_cost_converts_alternate_currency():
    assert to_reporting_cost(71.5, "CNY") == pytest.approx(10.0)
    assert to_reporting_cost(10, "usd") == 10
    assert to_reporting_cost(None, None) == 0.0


def _spend(campaign, day, cost, clicks, budget=5.0, currency="USD", affiliate="pm1", merchant_id=None):
    return SimpleNamespace(
        campaign_name=campaign,
        date=day,
        cost=cost,
        clicks=clicks,
        impressions=clicks * 10,
        campaign_budget=budget,
        currency=currency,
        affiliate_name=affiliate,
        merchant_id=merchant_id or campaign.rsplit("-", 1)[-1],
        merchant_slug="champion",
    )


def _order(merchant_id, commission, amount, status, affiliate="PM1"):
    return SimpleNamespace(
        merchant_id=merchant_id,
        merchant_name="Champion US",
        merchant_slug="championus",
        affiliate_name=affiliate,
        status=status,
        order_amount=amount,
        commission=commission,
    )


def test_summarize_joins_and_sorts_by_roi():
    spend = [
        _spend(CAMPAIGN, date(2025, 3, 1), 10.0, 20, budget=5.0),
        _spend(CAMPAIGN, date(2025, 3, 2), 71.5, 30, budget=8.0, currency="CNY"),
        _spend("1-pm1-Free-US-0826-555", date(2025, 3, 2), 0.0, 10),
        _spend("2-lb1-Other-US-0826-999", date(2025, 3, 2), 50.0, 25, affiliate="lb1"),
        _spend("short-name", date(2025, 3, 2), 3.0, 1, affiliate="", merchant_id=""),
    ]
    orders = [
        _order("71017", 30.0, 100.0, OrderStatus.APPROVED),
        _order("71017", 10.0, 50.0, OrderStatus.PENDING),
        _order("424242", 99.0, 999.0, OrderStatus.APPROVED),
    ]
    rows = summarize(orders, spend, end_date=date(2025, 3, 2))

    assert [r.merchant_id for r in rows] == ["71017", "999", "555"]
    top = rows[0]
    assert top.affiliate_name == "PM1"
    assert top.merchant_name == "Champion US"
    assert top.cost == 20.0
    assert top.clicks == 50
    assert top.campaign_budget == 8.0
    assert top.currency == "CNY"
    assert top.campaign_names == CAMPAIGN
    assert top.order_count == 2
    assert top.confirmed_commission == 30.0
    assert top.pending_commission == 10.0
    assert top.roi == pytest.approx(1.0)
    assert top.epc == pytest.approx(0.8)
    assert top.cpc == pytest.approx(0.4)
    assert top.conversion_rate == pytest.approx(0.04)

    spend_only = rows[1]
    assert spend_only.merchant_name == ""
    assert spend_only.order_count == 0
    assert spend_only.roi == pytest.approx(-1.0)
    assert rows[2].cost == 0.0
    assert rows[2].roi == 0.0


@pytest.mark.asyncio
async def test_summarize_merchants_scopes_to_user_and_accounts(
    db_session, user_factory, account_factory, order_factory, sheet_factory, spend_factory
):
    user = user_factory()
    pm = account_factory(PlatformType.PARTNERMATIC, user=user, affiliate_name="pm1")
    lb = account_factory(PlatformType.LINKBUX, user=user, affiliate_name="lb1")
    order_factory(pm, "A1", merchant_id="71017", commission=30.0, status=OrderStatus.APPROVED, order_date=date(2025, 3, 1))
    order_factory(lb, "B1", merchant_id="999", commission=5.0, order_date=date(2025, 3, 1))
    sheet = sheet_factory(user=user)
    spend_factory(sheet, CAMPAIGN, date(2025, 3, 1), cost=10.0, clicks=20)
    spend_factory(sheet, "2-lb1-Other-US-0826-999", date(2025, 3, 1), cost=10.0, clicks=10)

    outsider_sheet = sheet_factory()
    spend_factory(outsider_sheet, CAMPAIGN, date(2025, 3, 1), cost=500.0, clicks=1)

    rows = await summarize_merchants(db_session, user.id, date(2025, 3, 1), date(2025, 3, 31))
    by_id = {r.merchant_id: r for r in rows}
    assert set(by_id) == {"71017", "999"}
    assert by_id["71017"].cost == 10.0
    assert by_id["71017"].roi == pytest.approx(2.0)

    scoped = await summarize_merchants(db_session, user.id, date(2025, 3, 1), date(2025, 3, 31), account_ids=[pm.id])
    assert [r.merchant_id for r in scoped] == ["71017"]
