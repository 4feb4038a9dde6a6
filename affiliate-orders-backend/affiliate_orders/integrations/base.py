"""Common adapter contract shared by every partner integration."""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

from affiliate_orders import config
from affiliate_orders.exceptions import AuthenticationFailure, UpstreamAPIError, ValidationError
from affiliate_orders.models.db import PlatformAccount, PlatformType
from affiliate_orders.models.schemas.orders import LineItem
from affiliate_orders.models.schemas.platform import PartnerRecord
from affiliate_orders.utils import get_logger
from .http import PartnerHttp

logger = get_logger(__name__)


@dataclass
class AdapterResult:
    line_items: list[LineItem] = field(default_factory=list)
    # Includes ids of records later dropped for a missing date
    observed_order_ids: set[str] = field(default_factory=set)
    dropped: int = 0
    total: int = 0


def normalize_rows(rows: list[Any], record_type: type[PartnerRecord]) -> AdapterResult:
    """Validate raw partner rows into line items, counting what had to be dropped."""
    result = AdapterResult(total=len(rows))
    for row in rows:
        if not isinstance(row, dict):
            result.dropped += 1
            continue
        record = record_type.model_validate(row)
        key = record.order_key()
        if key:
            result.observed_order_ids.add(key)
        try:
            result.line_items.append(record.to_line_item())
        except ValidationError as e:
            result.dropped += 1
            logger.debug(
                "Partner record dropped",
                platform=record_type.platform.value,
                field=e.field,
                value=e.value,
                order_id=key,
            )
    return result


def is_success_code(value: Any) -> bool:
    return value == 0 or value == "0"


class PlatformAdapter(ABC):
    """Fetches one account's orders for a date range and normalizes them."""

    platform: PlatformType
    record_type: type[PartnerRecord]

    def __init__(self, http: PartnerHttp, base_url: Optional[str] = None):
        self.http = http
        self.base_url = (base_url or config.PARTNER_ENDPOINTS[self.platform.value]).rstrip("/")
        self.logger = get_logger(f"integration.{self.platform.value}")

    @property
    def delete_reconcile(self) -> bool:
        """Whether stored orders missing from a fetch of the range get deleted."""
        return self.platform.value in config.DELETE_RECONCILE_PLATFORMS

    def record_type_for(self, account: PlatformAccount) -> type[PartnerRecord]:
        return self.record_type

    def require_token(self, account: PlatformAccount) -> str:
        token = (account.api_token or "").strip()
        if not token:
            raise AuthenticationFailure(
                f"{self.platform.value} account has no API token configured",
                details={"account_id": account.id},
            )
        return token

    def upstream_error(self, payload: Any, message: Optional[str], code: Any = None) -> UpstreamAPIError:
        return UpstreamAPIError(
            message or "Partner reported failure",
            platform=self.platform.value,
            error_code=None if code is None else str(code),
            details={"response": payload} if isinstance(payload, dict) else None,
        )

    @abstractmethod
    async def fetch_rows(self, account: PlatformAccount, start_date: date, end_date: date) -> list[Any]:
        """Authenticate and return the partner's raw order rows for the range."""

    async def collect(self, account: PlatformAccount, start_date: date, end_date: date) -> AdapterResult:
        rows = await self.fetch_rows(account, start_date, end_date)
        result = normalize_rows(rows, self.record_type_for(account))
        self.logger.info(
            "Partner rows normalized",
            account_id=account.id,
            total=result.total,
            line_items=len(result.line_items),
            dropped=result.dropped,
        )
        return result


__all__ = ["AdapterResult", "PlatformAdapter", "normalize_rows", "is_success_code"]
