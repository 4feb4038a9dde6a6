"""Cached partner session tokens.

Callers go through the ``TokenStore`` protocol so the login flow does not care
whether tokens live in the database or in memory. Stores never evict; only the
newest token per account is consulted.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from affiliate_orders.exceptions import PersistenceError
from affiliate_orders.models.db import PlatformToken
from affiliate_orders.utils import get_logger
from affiliate_orders.utils.time import utc_now

logger = get_logger(__name__)


@dataclass(frozen=True)
class StoredToken:
    token: str
    expire_time: datetime | None

    def is_valid(self, now: datetime | None = None) -> bool:
        if self.expire_time is None:
            return False
        return self.expire_time > (now or utc_now())


class TokenStore(Protocol):
    async def get(self, account_id: int) -> StoredToken | None:
        ...

    async def put(self, account_id: int, token: str, expire_time: datetime | None) -> None:
        ...


def _aware(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes even for timezone=True columns
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class SqlTokenStore:
    """Token cache backed by the ``platform_tokens`` table."""

    def __init__(self, db: Session):
        self.db = db

    async def get(self, account_id: int) -> StoredToken | None:
        try:
            row = (
                self.db.query(PlatformToken)
                .filter(PlatformToken.platform_account_id == account_id)
                .order_by(PlatformToken.created_at.desc(), PlatformToken.id.desc())
                .first()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError("Failed to read cached token", details={"account_id": account_id, "error": str(e)}) from e
        if row is None:
            return None
        return StoredToken(token=row.token, expire_time=_aware(row.expire_time))

    async def put(self, account_id: int, token: str, expire_time: datetime | None) -> None:
        try:
            self.db.add(PlatformToken(platform_account_id=account_id, token=token, expire_time=expire_time))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError("Failed to store token", details={"account_id": account_id, "error": str(e)}) from e
        logger.info("Partner token cached", account_id=account_id, expire_time=expire_time)


class InMemoryTokenStore:
    """Dict-backed store for tests and one-off runs."""

    def __init__(self) -> None:
        self._tokens: dict[int, list[StoredToken]] = {}

    async def get(self, account_id: int) -> StoredToken | None:
        history = self._tokens.get(account_id)
        return history[-1] if history else None

    async def put(self, account_id: int, token: str, expire_time: datetime | None) -> None:
        self._tokens.setdefault(account_id, []).append(StoredToken(token=token, expire_time=expire_time))

    def history(self, account_id: int) -> list[StoredToken]:
        return list(self._tokens.get(account_id, []))


__all__ = ["StoredToken", "TokenStore", "SqlTokenStore", "InMemoryTokenStore"]
