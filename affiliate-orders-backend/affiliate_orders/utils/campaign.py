"""Parsing helpers for ad campaign names and Google Sheet URLs."""
from __future__ import annotations

import re
from dataclasses import dataclass

from .slug import merchant_slug

_SHEET_KEY = re.compile(r"/d/([a-zA-Z0-9_-]+)")

# <seq>-<affiliate>-<merchant...>-<country>-<date>-<id>
MIN_CAMPAIGN_SEGMENTS = 5


@dataclass(frozen=True)
class CampaignInfo:
    affiliate_name: str = ""
    merchant_id: str = ""
    merchant_slug: str = ""


def parse_campaign_name(campaign_name: str | None) -> CampaignInfo:
    """Split a campaign name into affiliate label, merchant id and merchant slug.

    The merchant name may itself contain dashes, so it is everything between the
    affiliate segment and the trailing country/date/id triple. Names with fewer
    than five segments carry no usable identity and yield empty fields.
    """
    if not campaign_name:
        return CampaignInfo()
    parts = campaign_name.strip().split("-")
    if len(parts) < MIN_CAMPAIGN_SEGMENTS:
        return CampaignInfo()
    merchant_name = "-".join(parts[2:len(parts) - 3])
    return CampaignInfo(
        affiliate_name=parts[1],
        merchant_id=parts[-1],
        merchant_slug=merchant_slug(merchant_name),
    )


def extract_sheet_key(sheet_url: str | None) -> str | None:
    if not sheet_url:
        return None
    match = _SHEET_KEY.search(sheet_url)
    return match.group(1) if match else None


__all__ = ["CampaignInfo", "parse_campaign_name", "extract_sheet_key", "MIN_CAMPAIGN_SEGMENTS"]
