"""PartnerMatic integration (JSON performance report, API token in body)."""
from datetime import date
from typing import Any

from affiliate_orders import config
from affiliate_orders.models.db import PlatformAccount, PlatformType
from affiliate_orders.models.schemas.platform import PartnerMaticRecord
from .base import PlatformAdapter


class PartnerMaticAdapter(PlatformAdapter):
    platform = PlatformType.PARTNERMATIC
    record_type = PartnerMaticRecord

    async def fetch_rows(self, account: PlatformAccount, start_date: date, end_date: date) -> list[Any]:
        payload = await self.http.post_json(
            f"{self.base_url}/report/performance",
            {
                "source": "partnermatic",
                "token": self.require_token(account),
                "dataScope": "user",
                "beginDate": start_date.isoformat(),
                "endDate": end_date.isoformat(),
                "curPage": 1,
                "perPage": config.PAGE_SIZES["partnermatic"],
            },
        )
        if not isinstance(payload, dict):
            raise self.upstream_error(payload, "PartnerMatic returned an unexpected body")
        data = payload.get("data")
        if payload.get("code") == "0" and isinstance(data, dict) and data.get("list") is not None:
            return list(data["list"])
        raise self.upstream_error(payload, payload.get("message") or "PartnerMatic data fetch failed", payload.get("code"))


__all__ = ["PartnerMaticAdapter"]
