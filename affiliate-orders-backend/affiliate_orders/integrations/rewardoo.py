"""Rewardoo integration (form POST to the medium transaction API)."""
from datetime import date
from typing import Any

from affiliate_orders import config
from affiliate_orders.models.db import PlatformAccount, PlatformType
from affiliate_orders.models.schemas.platform import RewardooRecord
from .linkbux import MediumApiAdapter


class RewardooAdapter(MediumApiAdapter):
    platform = PlatformType.REWARDOO
    record_type = RewardooRecord

    async def fetch_rows(self, account: PlatformAccount, start_date: date, end_date: date) -> list[Any]:
        payload = await self.http.post_form(
            f"{self.base_url}/api.php?mod=medium&op=transaction_details",
            {
                "token": self.require_token(account),
                "begin_date": start_date.isoformat(),
                "end_date": end_date.isoformat(),
                "page": "1",
                "limit": str(config.PAGE_SIZES["rewardoo"]),
            },
        )
        return self.extract_rows(payload)


__all__ = ["RewardooAdapter"]
