from __future__ import annotations
"""SQLAlchemy model for a user's login on one affiliate network."""
from datetime import datetime
from typing import TYPE_CHECKING
from sqlalchemy import Integer, String, DateTime, Boolean, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship, Mapped, mapped_column

if TYPE_CHECKING:  # pragma: no cover
    from .users import User
    from .orders import Order
from sqlalchemy.sql import func
from affiliate_orders.database import Base
from .enums import PlatformType

class PlatformAccount(Base):
    __tablename__ = "platform_accounts"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    platform: Mapped[PlatformType] = mapped_column(Enum(PlatformType), nullable=False, index=True)
    account_name: Mapped[str] = mapped_column(String, nullable=False)
    # Fernet ciphertext; decrypted only at login time
    account_password: Mapped[str | None] = mapped_column(String, nullable=True)
    api_token: Mapped[str | None] = mapped_column(String, nullable=True)
    # Short label (e.g. "pm1") shared with ad campaign names
    affiliate_name: Mapped[str | None] = mapped_column(String, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    user: Mapped["User"] = relationship("User", back_populates="platform_accounts")
    orders: Mapped[list["Order"]] = relationship("Order", back_populates="platform_account")

    __table_args__ = (
        UniqueConstraint("user_id", "platform", "account_name", name="unique_user_platform_account"),
    )
