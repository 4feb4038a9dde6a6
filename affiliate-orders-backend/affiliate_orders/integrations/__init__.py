"""
Partner integrations and the adapter registry.
"""
from typing import Optional

from affiliate_orders.models.db import PlatformType
from affiliate_orders.services.token_store import TokenStore
from .base import AdapterResult, PlatformAdapter
from .captcha import CaptchaSolver, CommandCaptchaSolver
from .http import PartnerHttp
from .linkbux import LinkBuxAdapter
from .linkhaitao import LinkHaitaoAdapter
from .partnermatic import PartnerMaticAdapter
from .rewardoo import RewardooAdapter

ADAPTERS: dict[PlatformType, type[PlatformAdapter]] = {
    PlatformType.LINKHAITAO: LinkHaitaoAdapter,
    PlatformType.PARTNERMATIC: PartnerMaticAdapter,
    PlatformType.LINKBUX: LinkBuxAdapter,
    PlatformType.REWARDOO: RewardooAdapter,
}


def build_adapter(
    platform: PlatformType | str,
    token_store: TokenStore,
    captcha_solver: Optional[CaptchaSolver] = None,
    http: Optional[PartnerHttp] = None,
) -> PlatformAdapter:
    """Instantiate the adapter for ``platform``. Unknown platforms raise ValueError."""
    platform_type = PlatformType(platform)
    transport = http or PartnerHttp(platform_type.value)
    if platform_type is PlatformType.LINKHAITAO:
        return LinkHaitaoAdapter(transport, token_store, captcha_solver or CommandCaptchaSolver())
    return ADAPTERS[platform_type](transport)


__all__ = [
    "ADAPTERS",
    "AdapterResult",
    "PlatformAdapter",
    "PartnerHttp",
    "CaptchaSolver",
    "CommandCaptchaSolver",
    "build_adapter",
]
