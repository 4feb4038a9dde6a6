"""Time utilities (UTC now, elapsed formatting, partner date normalization)."""
from __future__ import annotations
from datetime import date, datetime, timezone, timedelta
from typing import Any

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

def format_elapsed(start: datetime, end: datetime | None = None) -> str:
    end_ts = end or utc_now()
    delta: timedelta = end_ts - start
    ms = int(delta.total_seconds() * 1000)
    if ms < 1000:
        return f"{ms}ms"
    if ms < 60_000:
        return f"{ms/1000:.2f}s"
    return f"{delta.total_seconds()/60:.2f}m"

def epoch_to_date(seconds: float) -> date | None:
    """UTC calendar date of an epoch; None when the value is outside the datetime range."""
    moment = _from_epoch(float(seconds))
    return moment.date() if moment is not None else None

def parse_partner_date(value: Any) -> date | None:
    """Normalize a partner-supplied order date to a calendar date.

    Accepts Unix epoch seconds (int, float or a numeric string), compact
    ``YYYYMMDD`` strings and ISO-like
    strings such as ``2025-03-01``, ``2025-03-01 12:30:00`` or
    ``2025-03-01T12:30:00Z``. Anything else yields None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)):
        return epoch_to_date(value) if value > 0 else None
    text = str(value).strip()
    if not text or text.lower() == "null":
        return None
    if text.isdigit() and len(text) == 8:  # compact YYYYMMDD
        try:
            return datetime.strptime(text, "%Y%m%d").date()
        except ValueError:
            return None
    try:
        seconds = float(text)
    except ValueError:
        seconds = None
    if seconds is not None:
        return epoch_to_date(seconds) if seconds > 0 else None
    day_part = text.replace("T", " ").split(" ")[0]
    try:
        return date.fromisoformat(day_part[:10])
    except ValueError:
        return None

def _from_epoch(seconds: float) -> datetime | None:
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        return None

def parse_expiry(value: Any) -> datetime | None:
    """Parse a token expiry (epoch seconds or ISO date-time) into an aware UTC datetime."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return _from_epoch(float(value))
    text = str(value).strip()
    if not text:
        return None
    if text.isdigit():
        return _from_epoch(int(text))
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)

__all__ = ["utc_now", "format_elapsed", "epoch_to_date", "parse_partner_date", "parse_expiry"]
