"""LinkBux and Rewardoo integrations.

Both networks run the same medium API and share its response envelope; they
differ only in endpoint, HTTP verb and row shape.
"""
from datetime import date
from typing import Any, Optional

from affiliate_orders import config
from affiliate_orders.models.db import PlatformAccount, PlatformType
from affiliate_orders.models.schemas.platform import LinkBuxRecord
from .base import PlatformAdapter, is_success_code


class MediumApiAdapter(PlatformAdapter):
    """Envelope handling for ``api.php?mod=medium`` style partners."""

    def extract_rows(self, payload: Any) -> list[Any]:
        if not isinstance(payload, dict):
            raise self.upstream_error(payload, f"{self.platform.value} returned an unexpected body")
        status = payload.get("status") if isinstance(payload.get("status"), dict) else {}
        data = payload.get("data")
        ok = is_success_code(payload.get("code")) or is_success_code(status.get("code"))
        if ok and data:
            if isinstance(data, dict):
                rows: Optional[list[Any]] = data.get("list") or data.get("transactions") or []
            else:
                rows = data if isinstance(data, list) else []
            return list(rows or [])
        message = payload.get("msg") or payload.get("message") or status.get("msg") or f"{self.platform.value} data fetch failed"
        code = payload.get("code") if payload.get("code") is not None else status.get("code")
        raise self.upstream_error(payload, message, code)


class LinkBuxAdapter(MediumApiAdapter):
    platform = PlatformType.LINKBUX
    record_type = LinkBuxRecord

    async def fetch_rows(self, account: PlatformAccount, start_date: date, end_date: date) -> list[Any]:
        payload = await self.http.get_json(
            f"{self.base_url}/api.php",
            params={
                "mod": "medium",
                "op": "transaction_v2",
                "token": self.require_token(account),
                "begin_date": start_date.isoformat(),
                "end_date": end_date.isoformat(),
                "type": "json",
                "status": "All",
                "limit": str(config.PAGE_SIZES["linkbux"]),
            },
        )
        return self.extract_rows(payload)


__all__ = ["MediumApiAdapter", "LinkBuxAdapter"]
