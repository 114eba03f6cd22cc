"""
Database models package.

WHY: Centralizing model imports ensures Alembic can discover all models
for migration generation and makes it easier to import models elsewhere.
"""

from subledger.models.base import Base, TimestampMixin, PrimaryKeyMixin, utcnow
from subledger.models.package import Package
from subledger.models.subscription import (
    PlanDurationKey,
    SubscriptionRecord,
    SubscriptionStatus,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "PrimaryKeyMixin",
    "utcnow",
    "Package",
    "PlanDurationKey",
    "SubscriptionRecord",
    "SubscriptionStatus",
]
