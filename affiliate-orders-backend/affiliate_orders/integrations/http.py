"""
Outbound HTTP seam for partner APIs and sheet exports.

All partner traffic goes through ``PartnerHttp`` so adapters never touch
aiohttp directly and tests can substitute a recording fake.
"""
import asyncio
from typing import Any, Dict, Optional

import aiohttp

from affiliate_orders import config
from affiliate_orders.exceptions import UpstreamAPIError
from affiliate_orders.utils import get_logger

logger = get_logger(__name__)


class PartnerHttp:
    """Thin aiohttp wrapper that turns every transport problem into UpstreamAPIError."""

    def __init__(self, platform: str, timeout_seconds: Optional[float] = None):
        self.platform = platform
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else config.PARTNER_HTTP_TIMEOUT_SECONDS

    def _session(self) -> aiohttp.ClientSession:
        if self.timeout_seconds is None:
            return aiohttp.ClientSession()
        return aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout_seconds))

    async def _request(
        self,
        method: str,
        url: str,
        *,
        expect: str = "json",
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        logger.debug(
            "Partner request",
            platform=self.platform,
            method=method,
            url=url,
        )
        try:
            async with self._session() as session:
                async with session.request(method, url, params=params, json=json, data=data, headers=headers) as response:
                    if response.status >= 400:
                        raise UpstreamAPIError(
                            f"HTTP {response.status} from partner",
                            platform=self.platform,
                            error_code=str(response.status),
                        )
                    if expect == "bytes":
                        return await response.read()
                    if expect == "text":
                        return await response.text()
                    return await response.json(content_type=None)
        except asyncio.TimeoutError:
            logger.error("Partner request timed out", platform=self.platform, url=url)
            raise UpstreamAPIError("Partner request timed out", platform=self.platform)
        except aiohttp.ClientError as e:
            logger.error("Partner client error", platform=self.platform, url=url, error=str(e))
            raise UpstreamAPIError(f"Partner client error: {e}", platform=self.platform)
        except ValueError as e:  # body was not JSON
            logger.error("Partner returned non-JSON body", platform=self.platform, url=url, error=str(e))
            raise UpstreamAPIError("Partner returned a non-JSON body", platform=self.platform)

    async def get_json(self, url: str, params: Optional[Dict[str, Any]] = None, headers: Optional[Dict[str, str]] = None) -> Any:
        return await self._request("GET", url, params=params, headers=headers)

    async def post_json(self, url: str, payload: Dict[str, Any], headers: Optional[Dict[str, str]] = None) -> Any:
        return await self._request("POST", url, json=payload, headers=headers)

    async def post_form(self, url: str, form: Dict[str, Any], headers: Optional[Dict[str, str]] = None) -> Any:
        return await self._request("POST", url, data=form, headers=headers)

    async def get_bytes(self, url: str, params: Optional[Dict[str, Any]] = None) -> bytes:
        return await self._request("GET", url, expect="bytes", params=params)

    async def get_text(self, url: str, params: Optional[Dict[str, Any]] = None) -> str:
        return await self._request("GET", url, expect="text", params=params)


__all__ = ["PartnerHttp"]
