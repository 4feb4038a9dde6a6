"""Core application configuration & tunable collection rules.

Every value the collection engine treats as a business rule (money tolerance,
currency conversion, login retry bounds, batch pacing, partner endpoints,
delete-reconciliation policy) lives here as a module constant so it can be
adjusted without touching adapter or service logic. Values are read from the
environment once at import time; tests monkeypatch the module attributes.
"""
from __future__ import annotations

import os


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


def _env_set(name: str, default: str) -> frozenset[str]:
    raw = os.getenv(name, default)
    return frozenset(p.strip().lower() for p in raw.split(",") if p.strip())


# ----------------------------- Reconciliation ----------------------------- #
# Absolute tolerance for comparing stored vs freshly fetched money values.
# A difference strictly greater than this triggers an update.
MONEY_TOLERANCE: float = _env_float("MONEY_TOLERANCE", 0.01)

# Platforms whose adapter replaces the stored range instead of merging into it:
# stored orders inside the requested date range that the latest fetch did not
# return are deleted.
DELETE_RECONCILE_PLATFORMS: frozenset[str] = _env_set("DELETE_RECONCILE_PLATFORMS", "partnermatic")

# ------------------------------- Ad spend --------------------------------- #
# Spend rows in the alternate currency are divided by this rate to land in the
# reporting currency (USD).
REPORTING_CURRENCY: str = os.getenv("REPORTING_CURRENCY", "USD")
ALT_CURRENCY: str = os.getenv("ALT_CURRENCY", "CNY")
ALT_CURRENCY_RATE: float = _env_float("ALT_CURRENCY_RATE", 7.15)

# Fixed column layout of the spend CSV export and number of header rows.
SPEND_CSV_SETTINGS: dict[str, int] = {
    "header_rows": 2,
    "min_columns": 11,
}

# ------------------------------ Login / auth ------------------------------ #
LOGIN_SETTINGS: dict[str, int | str] = {
    "max_attempts": 5,
    "remember": "1",
}
CAPTCHA_CODE_LENGTH: int = 4
CAPTCHA_SOLVER_COMMAND: str = os.getenv("CAPTCHA_SOLVER_COMMAND", "python ocr_solver.py")

# Key mixed into LinkHaitao request signatures.
LH_SIGN_KEY: str = os.getenv("LH_SIGN_KEY", "")

# Fernet key used to decrypt stored partner login passwords.
ACCOUNT_ENCRYPTION_KEY: str | None = os.getenv("ACCOUNT_ENCRYPTION_KEY") or None

# ------------------------------ Batch pacing ------------------------------ #
# Pause between accounts in a batch run to stay inside partner rate limits.
INTER_ACCOUNT_PAUSE_SECONDS: float = _env_float("INTER_ACCOUNT_PAUSE_SECONDS", 1.0)

# ---------------------------- Partner endpoints --------------------------- #
_timeout_env = os.getenv("PARTNER_HTTP_TIMEOUT_SECONDS")
# None keeps aiohttp's default session timeout.
PARTNER_HTTP_TIMEOUT_SECONDS: float | None = float(_timeout_env) if _timeout_env and _timeout_env.strip() else None

PARTNER_ENDPOINTS: dict[str, str] = {
    "linkhaitao": os.getenv("LINKHAITAO_BASE_URL", "https://www.linkhaitao.com"),
    "partnermatic": os.getenv("PARTNERMATIC_BASE_URL", "https://api.partnermatic.com"),
    "linkbux": os.getenv("LINKBUX_BASE_URL", "https://www.linkbux.com"),
    "rewardoo": os.getenv("REWARDOO_BASE_URL", "https://admin.rewardoo.com"),
}

# Single-page sizes requested from each partner.
PAGE_SIZES: dict[str, int] = {
    "linkhaitao_token": 4000,
    "linkhaitao_login": 100,
    "partnermatic": 2000,
    "linkbux": 2000,
    "rewardoo": 1000,
}

GOOGLE_SHEETS_EXPORT_URL: str = "https://docs.google.com/spreadsheets/d/{key}/export?format=csv&gid=0"

# -------------------------------- Read side ------------------------------- #
ORDER_LIST_LIMIT: int = 1000

__all__ = [
    "MONEY_TOLERANCE",
    "DELETE_RECONCILE_PLATFORMS",
    "REPORTING_CURRENCY",
    "ALT_CURRENCY",
    "ALT_CURRENCY_RATE",
    "SPEND_CSV_SETTINGS",
    "LOGIN_SETTINGS",
    "CAPTCHA_CODE_LENGTH",
    "CAPTCHA_SOLVER_COMMAND",
    "LH_SIGN_KEY",
    "ACCOUNT_ENCRYPTION_KEY",
    "INTER_ACCOUNT_PAUSE_SECONDS",
    "PARTNER_HTTP_TIMEOUT_SECONDS",
    "PARTNER_ENDPOINTS",
    "PAGE_SIZES",
    "GOOGLE_SHEETS_EXPORT_URL",
    "ORDER_LIST_LIMIT",
]
