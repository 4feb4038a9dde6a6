from __future__ import annotations
"""SQLAlchemy model for a Google Sheet that holds daily ad spend."""
from datetime import datetime
from typing import TYPE_CHECKING
from sqlalchemy import Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship, Mapped, mapped_column

if TYPE_CHECKING:  # pragma: no cover
    from .users import User
    from .ad_spend import AdSpendRecord
from sqlalchemy.sql import func
from affiliate_orders.database import Base

class AdSheet(Base):
    __tablename__ = "ad_sheets"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    sheet_name: Mapped[str] = mapped_column(String, nullable=False)
    sheet_url: Mapped[str] = mapped_column(String, nullable=False)
    sheet_key: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    user: Mapped["User"] = relationship("User", back_populates="ad_sheets")
    spend_records: Mapped[list["AdSpendRecord"]] = relationship("AdSpendRecord", back_populates="sheet")
