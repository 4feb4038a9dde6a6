import secrets
import sys
from datetime import date
from pathlib import Path
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure project root on sys.path so 'affiliate_orders' resolves without an install
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from affiliate_orders.main import app  # type: ignore
from affiliate_orders.database import Base  # type: ignore
from affiliate_orders.api import deps  # type: ignore
"""Pytest fixtures, factories and fakes.

All model modules are imported before create_all() so every table exists.
"""
from affiliate_orders.utils.campaign import parse_campaign_name
from affiliate_orders.utils.slug import merchant_slug
from affiliate_orders.models.db import (
    User, PlatformAccount, Order, AdSheet, AdSpendRecord, PlatformType, OrderStatus,
)

# Single shared in-memory connection: every session (test + API) sees the same data.
engine = create_engine(
    "sqlite+pysqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

@pytest.fixture(autouse=True)
def create_test_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture()
def db_session():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()

def _override_get_db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()

app.dependency_overrides[deps.get_db] = _override_get_db

@pytest.fixture()
def client():
    yield TestClient(app)
    app.dependency_overrides.pop(deps.get_collection_service, None)

@pytest.fixture(autouse=True)
def _no_batch_pause(monkeypatch):
    from affiliate_orders import config
    monkeypatch.setattr(config, "INTER_ACCOUNT_PAUSE_SECONDS", 0.0)

# ---------- Fakes ----------

class FakePartnerHttp:
    """Stands in for PartnerHttp: replays queued responses and records every call.

    A queued Exception instance is raised instead of returned.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    async def _next(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        if not self.responses:
            raise AssertionError(f"unexpected partner call: {method} {url}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def get_json(self, url, params=None, headers=None):
        return await self._next("GET", url, params=params, headers=headers)

    async def post_json(self, url, payload, headers=None):
        return await self._next("POST", url, json=payload, headers=headers)

    async def post_form(self, url, form, headers=None):
        return await self._next("POST", url, data=form, headers=headers)

    async def get_bytes(self, url, params=None):
        return await self._next("GET", url, params=params)

    async def get_text(self, url, params=None):
        return await self._next("GET", url, params=params)

class FakeCaptchaSolver:
    def __init__(self, *codes):
        self.codes = list(codes)
        self.images = []

    async def solve(self, image):
        self.images.append(image)
        return self.codes.pop(0) if self.codes else "abcd"

@pytest.fixture()
def fake_http():
    return FakePartnerHttp

@pytest.fixture()
def fake_solver():
    return FakeCaptchaSolver

# ---------- Data factory helpers ----------

@pytest.fixture()
def user_factory(db_session):
    def _create(username: str | None = None):
        username = username or f"user-{secrets.token_hex(3)}"
        u = User(username=username, email=f"{username}@example.com", api_key=f"key_{secrets.token_hex(12)}")
        db_session.add(u)
        db_session.commit()
        db_session.refresh(u)
        return u
    return _create

@pytest.fixture()
def account_factory(db_session, user_factory):
    def _create(
        platform: PlatformType = PlatformType.PARTNERMATIC,
        *,
        user: User | None = None,
        api_token: str | None = "tok_123",
        affiliate_name: str | None = "pm1",
        account_name: str | None = None,
        account_password: str | None = None,
    ):
        user = user or user_factory()
        acc = PlatformAccount(
            user_id=user.id,
            platform=platform,
            account_name=account_name or f"acct-{secrets.token_hex(3)}",
            account_password=account_password,
            api_token=api_token,
            affiliate_name=affiliate_name,
        )
        db_session.add(acc)
        db_session.commit()
        db_session.refresh(acc)
        return acc
    return _create

@pytest.fixture()
def order_factory(db_session):
    def _create(
        account: PlatformAccount,
        order_id: str,
        *,
        merchant_id: str = "71017",
        merchant_name: str = "Champion US",
        order_amount: float = 100.0,
        commission: float = 10.0,
        status: OrderStatus = OrderStatus.PENDING,
        order_date: date = date(2025, 3, 10),
        affiliate_name: str | None = None,
    ):
        o = Order(
            platform_account_id=account.id,
            order_id=order_id,
            merchant_id=merchant_id,
            merchant_name=merchant_name,
            merchant_slug=merchant_slug(merchant_name),
            order_amount=order_amount,
            commission=commission,
            status=status,
            order_date=order_date,
            affiliate_name=affiliate_name if affiliate_name is not None else account.affiliate_name,
            raw_data={"order_id": order_id},
        )
        db_session.add(o)
        db_session.commit()
        db_session.refresh(o)
        return o
    return _create

@pytest.fixture()
def sheet_factory(db_session, user_factory):
    def _create(user: User | None = None, sheet_url: str = "https://docs.google.com/spreadsheets/d/abcDEF_123-xyz/edit#gid=0"):
        user = user or user_factory()
        sheet = AdSheet(user_id=user.id, sheet_name="Spend", sheet_url=sheet_url, sheet_key=None)
        db_session.add(sheet)
        db_session.commit()
        db_session.refresh(sheet)
        return sheet
    return _create

@pytest.fixture()
def spend_factory(db_session):
    def _create(sheet: AdSheet, campaign_name: str, spend_date: date, **fields):
        info = parse_campaign_name(campaign_name)
        record = AdSpendRecord(
            sheet_id=sheet.id,
            date=spend_date,
            campaign_name=campaign_name,
            affiliate_name=info.affiliate_name or None,
            merchant_id=info.merchant_id or None,
            merchant_slug=info.merchant_slug or None,
            campaign_budget=fields.get("campaign_budget", 0.0),
            currency=fields.get("currency", "USD"),
            impressions=fields.get("impressions", 0),
            clicks=fields.get("clicks", 0),
            cost=fields.get("cost", 0.0),
        )
        db_session.add(record)
        db_session.commit()
        db_session.refresh(record)
        return record
    return _create

@pytest.fixture()
def auth_header(user_factory):
    user = user_factory()
    return {"Authorization": f"Bearer {user.api_key}"}, user
