from datetime import date

from affiliate_orders.api import deps
from affiliate_orders.integrations.partnermatic import PartnerMaticAdapter
from affiliate_orders.main import app
from affiliate_orders.models.db import OrderStatus, PlatformType
from affiliate_orders.services.collection_service import CollectionService
from affiliate_orders.services.token_store import InMemoryTokenStore


def _use_fake_partner(db_session, http):
    app.dependency_overrides[deps.get_collection_service] = lambda: CollectionService(
        db_session, token_store=InMemoryTokenStore(), adapter_factory=lambda acc: PartnerMaticAdapter(http)
    )


def test_health_and_root(client):
    r = client.get("/api/v1/health")
    assert r.status_code == 200
    assert r.json()["checks"]["database"] == "healthy"
    assert client.get("/").json()["api_base"] == "/api/v1"


def test_invalid_api_key_is_rejected(client):
    r = client.get("/api/v1/orders", headers={"Authorization": "Bearer nope"})
    assert r.status_code == 401
    assert r.json()["success"] is False


def test_collect_orders_endpoint(client, db_session, auth_header, account_factory, fake_http):
    headers, user = auth_header
    acc = account_factory(PlatformType.PARTNERMATIC, user=user)
    http = fake_http(
        {"code": "0", "data": {"list": [{"order_id": "P1", "brand_id": "1", "merchant_name": "Shop", "sale_amount": "25", "sale_comm": "2.5", "status": "Approved", "order_time": "2025-03-04"}]}}
    )
    _use_fake_partner(db_session, http)

    r = client.post(
        "/api/v1/collect-orders",
        json={"account_id": acc.id, "start_date": "2025-03-01", "end_date": "2025-03-31"},
        headers=headers,
    )
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["data"]["stats"]["new"] == 1
    assert body["data"]["orders"][0]["order_id"] == "P1"
    assert "X-Request-ID" in r.headers


def test_collect_orders_for_foreign_account_is_404(client, db_session, auth_header, account_factory, fake_http):
    headers, _ = auth_header
    foreign = account_factory(PlatformType.PARTNERMATIC)
    _use_fake_partner(db_session, fake_http())
    r = client.post(
        "/api/v1/collect-orders",
        json={"account_id": foreign.id, "start_date": "2025-03-01", "end_date": "2025-03-31"},
        headers=headers,
    )
    assert r.status_code == 404


def test_collect_orders_validates_body(client, auth_header):
    headers, _ = auth_header
    r = client.post("/api/v1/collect-orders", json={"account_id": 1}, headers=headers)
    assert r.status_code == 422


def test_batch_endpoint_reports_partial_success(client, db_session, auth_header, account_factory, fake_http):
    headers, user = auth_header
    good = account_factory(PlatformType.PARTNERMATIC, user=user)
    _use_fake_partner(db_session, fake_http({"code": "0", "data": {"list": []}}))
    r = client.post(
        "/api/v1/collect-orders/batch",
        json={"account_ids": [good.id, 424242], "start_date": "2025-03-01", "end_date": "2025-03-31"},
        headers=headers,
    )
    body = r.json()
    assert body["success"] is False
    assert body["message"] == "1/2 accounts collected"
    assert [res["success"] for res in body["data"]["results"]] == [True, False]


def test_orders_and_stats_are_user_scoped(client, auth_header, account_factory, order_factory):
    headers, user = auth_header
    mine = account_factory(PlatformType.PARTNERMATIC, user=user)
    theirs = account_factory(PlatformType.PARTNERMATIC)
    order_factory(mine, "M1", commission=10.0, status=OrderStatus.APPROVED, order_date=date(2025, 3, 1))
    order_factory(mine, "M2", commission=4.0, status=OrderStatus.PENDING, order_date=date(2025, 3, 5))
    order_factory(mine, "M3", commission=1.0, status=OrderStatus.REJECTED, order_date=date(2025, 3, 6))
    order_factory(theirs, "T1", commission=50.0)

    r = client.get("/api/v1/orders", params={"start_date": "2025-03-01", "end_date": "2025-03-31"}, headers=headers)
    data = r.json()["data"]
    assert [o["order_id"] for o in data["orders"]] == ["M3", "M2", "M1"]

    r = client.get("/api/v1/orders", params={"status": "Approved"}, headers=headers)
    assert [o["order_id"] for o in r.json()["data"]["orders"]] == ["M1"]

    stats = client.get("/api/v1/stats", headers=headers).json()["data"]
    assert stats["total_orders"] == 3
    assert stats["total_commission"] == 15.0
    assert stats["confirmed_commission"] == 10.0
    assert stats["pending_commission"] == 4.0
    assert stats["rejected_commission"] == 1.0


def test_import_and_summary_endpoints(client, auth_header, account_factory, order_factory, sheet_factory):
    headers, user = auth_header
    acc = account_factory(PlatformType.PARTNERMATIC, user=user, affiliate_name="pm1")
    order_factory(acc, "A1", merchant_id="71017", commission=30.0, order_date=date(2025, 3, 1))
    sheet = sheet_factory(user=user)
    csv_text = (
        "h1\nh2\n"
        "596-pm1-Champion-US-0826-71017,US,https://x.test,50,USD,Search,MaxClicks,2025-03-01,1000,40,10\n"
    )

    r = client.post(f"/api/v1/ad-spend/sheets/{sheet.id}/import", json={"csv_text": csv_text}, headers=headers)
    assert r.status_code == 200
    assert r.json()["data"]["inserted"] == 1

    listed = client.get("/api/v1/ad-spend", headers=headers).json()["data"]
    assert listed["count"] == 1
    assert listed["records"][0]["merchant_id"] == "71017"

    summary = client.get(
        "/api/v1/merchant-summary",
        params={"start_date": "2025-03-01", "end_date": "2025-03-31", "account_ids": str(acc.id)},
        headers=headers,
    ).json()["data"]
    assert summary["count"] == 1
    row = summary["rows"][0]
    assert row["merchant_id"] == "71017"
    assert row["roi"] == 2.0


def test_import_foreign_sheet_is_404(client, auth_header, sheet_factory):
    headers, _ = auth_header
    foreign = sheet_factory()
    r = client.post(f"/api/v1/ad-spend/sheets/{foreign.id}/import", json={"csv_text": "h1\nh2\n"}, headers=headers)
    assert r.status_code == 404


def test_store_outage_maps_to_503(client, auth_header, monkeypatch):
    from affiliate_orders.api.v1.endpoints import orders as orders_endpoint
    from affiliate_orders.exceptions import PersistenceError

    async def _broken(*args, **kwargs):
        raise PersistenceError("Failed to compute order stats", details={"error": "disk I/O error"})

    monkeypatch.setattr(orders_endpoint, "order_stats", _broken)
    headers, _ = auth_header
    r = client.get("/api/v1/stats", headers=headers)
    assert r.status_code == 503
    assert r.json()["message"] == "Failed to compute order stats"
