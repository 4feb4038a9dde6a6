"""
SQLAlchemy model for canonical affiliate orders, one row per (account, partner order id).
"""
from __future__ import annotations
from datetime import date, datetime
from typing import TYPE_CHECKING, Any
from sqlalchemy import Integer, String, Numeric, Date, DateTime, Enum, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship, Mapped, mapped_column
from sqlalchemy.sql import func

if TYPE_CHECKING:  # pragma: no cover
    from .platform_accounts import PlatformAccount
from affiliate_orders.database import Base
from .enums import OrderStatus

class Order(Base):
    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    platform_account_id: Mapped[int] = mapped_column(Integer, ForeignKey("platform_accounts.id"), nullable=False, index=True)
    order_id: Mapped[str] = mapped_column(String, nullable=False)

    # Merchant identity as reported by the partner
    merchant_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    merchant_name: Mapped[str | None] = mapped_column(String, nullable=True)
    merchant_slug: Mapped[str | None] = mapped_column(String, nullable=True)

    # Money, always >= 0
    order_amount: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), default=0.0)
    commission: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), default=0.0)
    status: Mapped[OrderStatus] = mapped_column(Enum(OrderStatus), default=OrderStatus.PENDING, index=True)
    order_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    affiliate_name: Mapped[str | None] = mapped_column(String, nullable=True)

    # Metadata
    raw_data: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)  # last partner record seen
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    platform_account: Mapped["PlatformAccount"] = relationship("PlatformAccount", back_populates="orders")

    __table_args__ = (
        UniqueConstraint("platform_account_id", "order_id", name="unique_account_order"),
    )
