"""
Pydantic schemas for raw partner order records.

Every partner (and each LinkHaitao API mode) returns a differently shaped
record. Each shape is its own model that knows how to turn itself into a
normalized ``LineItem``; unknown keys are kept so the raw payload can be
stored verbatim.
"""
from typing import Any, ClassVar, Dict, FrozenSet, Optional
from pydantic import BaseModel, ConfigDict

from affiliate_orders.exceptions import ValidationError
from affiliate_orders.models.db.enums import OrderStatus, PlatformType
from affiliate_orders.utils.metrics import to_money
from affiliate_orders.utils.time import parse_partner_date
from .orders import LineItem


def map_status(
    raw: Any,
    approved: FrozenSet[str],
    rejected: FrozenSet[str],
    case_sensitive: bool = True,
) -> OrderStatus:
    """
    Partner status → canonical status using one partner's vocabulary.

    Matching is exact unless ``case_sensitive`` is False, in which case the
    tables are expected in lower case. Anything not listed is Pending.
    """
    if raw is None:
        return OrderStatus.PENDING
    value = str(raw).strip()
    if not case_sensitive:
        value = value.lower()
    if value in approved:
        return OrderStatus.APPROVED
    if value in rejected:
        return OrderStatus.REJECTED
    return OrderStatus.PENDING


# LinkHaitao reports lower-case statuses in both API modes.
_LH_APPROVED = frozenset({"approved", "effective"})
_LH_REJECTED = frozenset({"rejected", "expired"})


def first_present(*values: Any) -> Any:
    """First value that is not None, empty or the literal string ``"null"``."""
    for value in values:
        if value is None:
            continue
        if isinstance(value, str) and (not value.strip() or value.strip().lower() == "null"):
            continue
        return value
    return None


def as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class PartnerRecord(BaseModel):
    """Base for raw partner records. Subclasses declare the partner's keys."""
    platform: ClassVar[PlatformType]
    approved_statuses: ClassVar[FrozenSet[str]] = frozenset({"Approved"})
    rejected_statuses: ClassVar[FrozenSet[str]] = frozenset({"Rejected"})
    case_sensitive_status: ClassVar[bool] = True

    model_config = ConfigDict(extra="allow")

    def order_key(self) -> Optional[str]:
        raise NotImplementedError

    def to_line_item(self) -> LineItem:
        raise NotImplementedError

    def raw_payload(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)

    @classmethod
    def canonical_status(cls, raw: Any) -> OrderStatus:
        return map_status(raw, cls.approved_statuses, cls.rejected_statuses, cls.case_sensitive_status)

    def _line_item(
        self,
        *,
        merchant_id: Any,
        merchant_name: Any,
        amount: Any,
        commission: Any,
        status: Any,
        order_date: Any,
    ) -> LineItem:
        order_id = self.order_key()
        if not order_id:
            raise ValidationError("order_id", "missing order id", None)
        parsed_date = parse_partner_date(order_date)
        if parsed_date is None:
            raise ValidationError("order_date", "missing or unparseable order date", order_date)
        return LineItem(
            order_id=order_id,
            merchant_id=as_text(merchant_id),
            merchant_name=as_text(merchant_name),
            order_amount=to_money(amount),
            commission=to_money(commission),
            status=self.canonical_status(status),
            order_date=parsed_date,
            raw=self.raw_payload(),
        )


class LinkHaitaoTokenRecord(PartnerRecord):
    """Row of ``data.list`` from the LinkHaitao token API (cashback2)."""
    platform: ClassVar[PlatformType] = PlatformType.LINKHAITAO
    approved_statuses: ClassVar[FrozenSet[str]] = _LH_APPROVED
    rejected_statuses: ClassVar[FrozenSet[str]] = _LH_REJECTED
    case_sensitive_status: ClassVar[bool] = False

    order_id: Any = None
    sign_id: Any = None
    m_id: Any = None
    advertiser_name: Any = None
    sale_amount: Any = None
    cashback: Any = None
    status: Any = None
    order_time: Any = None

    def order_key(self) -> Optional[str]:
        return as_text(first_present(self.order_id, self.sign_id))

    def to_line_item(self) -> LineItem:
        return self._line_item(
            merchant_id=self.m_id,
            merchant_name=self.advertiser_name,
            amount=self.sale_amount,
            commission=self.cashback,
            status=self.status,
            order_date=self.order_time,
        )


class LinkHaitaoLoginRecord(PartnerRecord):
    """Row of ``payload.info`` from the LinkHaitao dashboard report (login session)."""
    platform: ClassVar[PlatformType] = PlatformType.LINKHAITAO
    approved_statuses: ClassVar[FrozenSet[str]] = _LH_APPROVED
    rejected_statuses: ClassVar[FrozenSet[str]] = _LH_REJECTED
    case_sensitive_status: ClassVar[bool] = False

    id: Any = None
    mcid: Any = None
    sitename: Any = None
    amount: Any = None
    total_cmsn: Any = None
    status: Any = None
    date_ymd: Any = None
    updated_date: Any = None

    def order_key(self) -> Optional[str]:
        return as_text(first_present(self.id))

    def to_line_item(self) -> LineItem:
        return self._line_item(
            merchant_id=self.mcid,
            merchant_name=self.sitename,
            amount=self.amount,
            commission=self.total_cmsn,
            status=self.status,
            order_date=first_present(self.date_ymd, self.updated_date),
        )


class PartnerMaticRecord(PartnerRecord):
    platform: ClassVar[PlatformType] = PlatformType.PARTNERMATIC
    rejected_statuses: ClassVar[FrozenSet[str]] = frozenset({"Rejected", "Canceled"})

    order_id: Any = None
    brand_id: Any = None
    merchant_name: Any = None
    sale_amount: Any = None
    sale_comm: Any = None
    status: Any = None
    order_time: Any = None  # usually epoch seconds

    def order_key(self) -> Optional[str]:
        return as_text(first_present(self.order_id))

    def to_line_item(self) -> LineItem:
        return self._line_item(
            merchant_id=self.brand_id,
            merchant_name=self.merchant_name,
            amount=self.sale_amount,
            commission=self.sale_comm,
            status=self.status,
            order_date=self.order_time,
        )


class LinkBuxRecord(PartnerRecord):
    platform: ClassVar[PlatformType] = PlatformType.LINKBUX

    order_id: Any = None
    linkbux_id: Any = None
    mid: Any = None
    merchant_name: Any = None
    sale_amount: Any = None
    sale_comm: Any = None
    status: Any = None
    order_time: Any = None
    validation_date: Any = None

    def order_key(self) -> Optional[str]:
        return as_text(first_present(self.order_id, self.linkbux_id))

    def to_line_item(self) -> LineItem:
        return self._line_item(
            merchant_id=self.mid,
            merchant_name=self.merchant_name,
            amount=self.sale_amount,
            commission=self.sale_comm,
            status=self.status,
            order_date=first_present(self.order_time, self.validation_date),
        )


class RewardooRecord(PartnerRecord):
    platform: ClassVar[PlatformType] = PlatformType.REWARDOO

    order_id: Any = None
    rewardoo_id: Any = None
    mid: Any = None
    merchant_name: Any = None
    sale_amount: Any = None
    sale_comm: Any = None
    status: Any = None
    order_time: Any = None
    validation_date: Any = None  # "null" when not yet validated

    def order_key(self) -> Optional[str]:
        return as_text(first_present(self.order_id, self.rewardoo_id))

    def to_line_item(self) -> LineItem:
        return self._line_item(
            merchant_id=self.mid,
            merchant_name=self.merchant_name,
            amount=self.sale_amount,
            commission=self.sale_comm,
            status=self.status,
            order_date=first_present(self.order_time, self.validation_date),
        )


__all__ = [
    "map_status",
    "first_present",
    "PartnerRecord",
    "LinkHaitaoTokenRecord",
    "LinkHaitaoLoginRecord",
    "PartnerMaticRecord",
    "LinkBuxRecord",
    "RewardooRecord",
]
