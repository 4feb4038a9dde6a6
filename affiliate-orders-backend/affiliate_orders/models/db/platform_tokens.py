"""Cached partner session tokens. Only the newest row per account is consulted."""
from __future__ import annotations
from datetime import datetime
from sqlalchemy import Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from affiliate_orders.database import Base

class PlatformToken(Base):
    __tablename__ = "platform_tokens"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    platform_account_id: Mapped[int] = mapped_column(Integer, ForeignKey("platform_accounts.id"), nullable=False, index=True)
    token: Mapped[str] = mapped_column(String, nullable=False)
    expire_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
