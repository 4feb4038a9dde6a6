"""Central Enum definitions for core domain states.

These replace scattered string literals so DB models, schemas and adapter
normalizers agree on the same vocabulary.
"""
from __future__ import annotations
import enum


class PlatformType(str, enum.Enum):
    LINKHAITAO = "linkhaitao"
    PARTNERMATIC = "partnermatic"
    LINKBUX = "linkbux"
    REWARDOO = "rewardoo"


class OrderStatus(str, enum.Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


# ------------------ Reconciliation outcomes ------------------ #

class ReconcileAction(str, enum.Enum):
    INSERT = "insert"
    UPDATE = "update"
    SKIP = "skip"
    DELETE = "delete"


__all__ = [
    "PlatformType",
    "OrderStatus",
    "ReconcileAction",
]
