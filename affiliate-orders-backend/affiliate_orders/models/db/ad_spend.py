"""
SQLAlchemy model for one campaign's spend on one day, imported from an ad sheet.
"""
from __future__ import annotations
import datetime as dt
from typing import TYPE_CHECKING
from sqlalchemy import Integer, String, Numeric, Date, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship, Mapped, mapped_column
from sqlalchemy.sql import func

if TYPE_CHECKING:  # pragma: no cover
    from .ad_sheets import AdSheet
from affiliate_orders.database import Base

class AdSpendRecord(Base):
    __tablename__ = "ad_spend_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    sheet_id: Mapped[int] = mapped_column(Integer, ForeignKey("ad_sheets.id"), nullable=False, index=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    campaign_name: Mapped[str] = mapped_column(String, nullable=False)

    # Parsed from campaign_name
    affiliate_name: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    merchant_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    merchant_slug: Mapped[str | None] = mapped_column(String, nullable=True)

    campaign_budget: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), default=0.0)
    currency: Mapped[str | None] = mapped_column(String, nullable=True)
    impressions: Mapped[int] = mapped_column(Integer, default=0)
    clicks: Mapped[int] = mapped_column(Integer, default=0)
    cost: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), default=0.0)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    sheet: Mapped["AdSheet"] = relationship("AdSheet", back_populates="spend_records")

    __table_args__ = (
        UniqueConstraint("sheet_id", "date", "campaign_name", name="unique_sheet_date_campaign"),
    )
