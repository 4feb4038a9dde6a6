"""Import daily campaign spend from a Google Sheet CSV export.

Columns (fixed order): campaign name, target country, landing URL, daily
budget, budget currency, campaign type, bid strategy, date, impressions,
clicks, cost. The first rows of the export are headers.

Persist rule: rows dated today are inserted or refreshed (today's numbers are
still moving); older rows are inserted once and never rewritten.
"""
from __future__ import annotations

import csv
import io
import time
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from affiliate_orders import config
from affiliate_orders.exceptions import CollectionError, PersistenceError, ValidationError
from affiliate_orders.integrations.http import PartnerHttp
from affiliate_orders.models.db import AdSheet, AdSpendRecord
from affiliate_orders.models.schemas.ad_spend import ImportResult, SpendRow
from affiliate_orders.utils import get_logger, log_business_event, log_performance
from affiliate_orders.utils.campaign import extract_sheet_key, parse_campaign_name
from affiliate_orders.utils.time import parse_partner_date, utc_now

logger = get_logger(__name__)

COL_CAMPAIGN = 0
COL_BUDGET = 3
COL_CURRENCY = 4
COL_DATE = 7
COL_IMPRESSIONS = 8
COL_CLICKS = 9
COL_COST = 10


def _number(value: Any) -> float:
    text = str(value or "").replace(",", "").strip()
    try:
        return float(text) if text else 0.0
    except ValueError:
        return 0.0


def _count(value: Any) -> int:
    return int(_number(value))


def parse_spend_row(fields: Sequence[str]) -> SpendRow:
    """Turn one CSV row into a SpendRow; raises ValidationError when unusable."""
    if len(fields) < config.SPEND_CSV_SETTINGS["min_columns"]:
        raise ValidationError("columns", "row has too few columns", len(fields))
    campaign_name = (fields[COL_CAMPAIGN] or "").strip()
    if not campaign_name:
        raise ValidationError("campaign_name", "missing campaign name")
    raw_date = (fields[COL_DATE] or "").strip()
    spend_date = parse_partner_date(raw_date.replace("/", "-")) if raw_date else None
    if spend_date is None:
        raise ValidationError("date", "missing or unparseable date", raw_date)

    info = parse_campaign_name(campaign_name)
    return SpendRow(
        campaign_name=campaign_name,
        date=spend_date,
        campaign_budget=_number(fields[COL_BUDGET]),
        currency=(fields[COL_CURRENCY] or "").strip() or None,
        impressions=_count(fields[COL_IMPRESSIONS]),
        clicks=_count(fields[COL_CLICKS]),
        cost=_number(fields[COL_COST]),
        affiliate_name=info.affiliate_name,
        merchant_id=info.merchant_id,
        merchant_slug=info.merchant_slug,
    )


@dataclass
class ParsedSheet:
    rows: list[SpendRow] = field(default_factory=list)
    duplicates: int = 0
    dropped: int = 0
    total: int = 0


def parse_spend_csv(text: str) -> ParsedSheet:
    """Parse an export, dropping bad rows and keeping the first of each (campaign, date)."""
    parsed = ParsedSheet()
    seen: set[tuple[str, date]] = set()
    reader = csv.reader(io.StringIO(text))
    for index, fields in enumerate(reader):
        if index < config.SPEND_CSV_SETTINGS["header_rows"]:
            continue
        if not any((f or "").strip() for f in fields):
            continue
        parsed.total += 1
        try:
            row = parse_spend_row([f.strip() for f in fields])
        except ValidationError as e:
            parsed.dropped += 1
            logger.debug("Spend row dropped", row=index + 1, field=e.field, value=e.value)
            continue
        key = (row.campaign_name, row.date)
        if key in seen:
            parsed.duplicates += 1
            continue
        seen.add(key)
        parsed.rows.append(row)
    return parsed


def _apply(record: AdSpendRecord, row: SpendRow) -> None:
    record.affiliate_name = row.affiliate_name or None
    record.merchant_id = row.merchant_id or None
    record.merchant_slug = row.merchant_slug or None
    record.campaign_budget = row.campaign_budget
    record.currency = row.currency
    record.impressions = row.impressions
    record.clicks = row.clicks
    record.cost = row.cost


def persist_spend_rows(db: Session, sheet_id: int, rows: list[SpendRow], today: date) -> tuple[int, int, int]:
    """Write parsed rows for a sheet. Returns (inserted, updated, skipped)."""
    inserted = updated = skipped = 0
    try:
        for row in rows:
            existing = (
                db.query(AdSpendRecord)
                .filter(
                    AdSpendRecord.sheet_id == sheet_id,
                    AdSpendRecord.date == row.date,
                    AdSpendRecord.campaign_name == row.campaign_name,
                )
                .one_or_none()
            )
            if existing is None:
                record = AdSpendRecord(sheet_id=sheet_id, date=row.date, campaign_name=row.campaign_name)
                _apply(record, row)
                db.add(record)
                inserted += 1
            elif row.date == today:
                _apply(existing, row)
                existing.updated_at = utc_now()
                updated += 1
            else:
                skipped += 1
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError("Failed to store ad spend rows", details={"sheet_id": sheet_id, "error": str(e)}) from e
    return inserted, updated, skipped


async def fetch_sheet_csv(sheet: AdSheet, http: Optional[PartnerHttp] = None) -> str:
    key = sheet.sheet_key or extract_sheet_key(sheet.sheet_url)
    if not key:
        raise ValidationError("sheet_url", "cannot find a sheet id in the URL", sheet.sheet_url)
    transport = http or PartnerHttp("google_sheets")
    return await transport.get_text(config.GOOGLE_SHEETS_EXPORT_URL.format(key=key))


async def import_ad_spend(
    db: Session,
    sheet_id: int,
    csv_text: Optional[str] = None,
    *,
    user_id: Optional[int] = None,
    http: Optional[PartnerHttp] = None,
    today: Optional[date] = None,
) -> ImportResult:
    """Import one sheet's spend. ``csv_text`` skips the download when given."""
    started = time.perf_counter()
    q = db.query(AdSheet).filter(AdSheet.id == sheet_id)
    if user_id is not None:
        q = q.filter(AdSheet.user_id == user_id)
    sheet = q.one_or_none()
    if sheet is None:
        return ImportResult(success=False, message="Ad sheet not found or not accessible", sheet_id=sheet_id)

    try:
        text = csv_text if csv_text is not None else await fetch_sheet_csv(sheet, http)
        parsed = parse_spend_csv(text)
        inserted, updated, skipped = persist_spend_rows(db, sheet.id, parsed.rows, today or utc_now().date())
    except CollectionError as e:
        logger.warning("Ad spend import failed", sheet_id=sheet_id, error=str(e))
        return ImportResult(success=False, message=f"Import failed: {e}", sheet_id=sheet_id)

    result = ImportResult(
        success=True,
        message=f"Import complete: {inserted} new, {updated} updated, {skipped + parsed.duplicates} skipped",
        sheet_id=sheet.id,
        inserted=inserted,
        updated=updated,
        skipped=skipped + parsed.duplicates,
        dropped=parsed.dropped,
        total=parsed.total,
    )
    log_business_event(
        "ad_spend_imported",
        {
            "sheet_id": sheet.id,
            "inserted": inserted,
            "updated": updated,
            "skipped": result.skipped,
            "dropped": parsed.dropped,
        },
        user_id=sheet.user_id,
    )
    log_performance("import_ad_spend", (time.perf_counter() - started) * 1000, {"sheet_id": sheet.id, "rows": parsed.total})
    return result


async def list_ad_spend(
    db: Session,
    user_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    sheet_id: Optional[int] = None,
    limit: Optional[int] = None,
) -> list[AdSpendRecord]:
    """Stored spend rows for a user's sheets, newest first."""
    q = db.query(AdSpendRecord).join(AdSheet, AdSpendRecord.sheet_id == AdSheet.id).filter(AdSheet.user_id == user_id)
    if sheet_id is not None:
        q = q.filter(AdSpendRecord.sheet_id == sheet_id)
    if start_date is not None:
        q = q.filter(AdSpendRecord.date >= start_date)
    if end_date is not None:
        q = q.filter(AdSpendRecord.date <= end_date)
    q = q.order_by(AdSpendRecord.date.desc(), AdSpendRecord.id.desc())
    return q.limit(limit or config.ORDER_LIST_LIMIT).all()


__all__ = [
    "parse_spend_row",
    "parse_spend_csv",
    "persist_spend_rows",
    "fetch_sheet_csv",
    "import_ad_spend",
    "list_ad_spend",
    "ParsedSheet",
]
