from __future__ import annotations
"""SQLAlchemy model for users owning partner accounts and ad sheets."""
from datetime import datetime
from typing import TYPE_CHECKING
from sqlalchemy import Integer, String, DateTime, Boolean
from sqlalchemy.orm import relationship, Mapped, mapped_column

if TYPE_CHECKING:  # pragma: no cover
    from .platform_accounts import PlatformAccount
    from .ad_sheets import AdSheet
from sqlalchemy.sql import func
from affiliate_orders.database import Base

class User(Base):
    __tablename__ = "users"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    username: Mapped[str] = mapped_column(String, unique=True, index=True)
    email: Mapped[str] = mapped_column(String, unique=True, index=True)
    api_key: Mapped[str | None] = mapped_column(String, unique=True, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    platform_accounts: Mapped[list["PlatformAccount"]] = relationship("PlatformAccount", back_populates="user")
    ad_sheets: Mapped[list["AdSheet"]] = relationship("AdSheet", back_populates="user")
