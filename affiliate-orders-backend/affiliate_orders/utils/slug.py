"""Merchant name → comparison slug."""
from __future__ import annotations

import re

_NON_SLUG = re.compile(r"[^a-z0-9]")


def merchant_slug(name: str | None) -> str:
    """Lowercase and strip everything outside ASCII ``a-z0-9``.

    >>> merchant_slug("Screwfix - FR")
    'screwfixfr'
    """
    if not name:
        return ""
    return _NON_SLUG.sub("", name.lower())


__all__ = ["merchant_slug"]
