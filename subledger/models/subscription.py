"""
Subscription record model for the credit ledger.

WHY: Each purchase of a package creates one immutable-price record:
1. price_paid is what the user was charged for the chosen plan duration
2. credits_purchased freezes price_paid plus any credit carried forward
3. credits_remaining tracks the value still usable after cancel/expiry
4. package_name is a snapshot, decoupled from later package renames

LIFECYCLE:
- active -> expired: superseded by a newer purchase of the same package,
  or simply time-elapsed (never rewritten by a background job)
- active -> cancelled: explicit user action
Both targets are terminal. Records are never physically deleted.

ACTIVITY: "effectively active" means status == active AND expiry_date > now.
The predicate is defined once, as a hybrid method, and used by every read
path both in Python and in SQL.
"""

import enum
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    and_,
)
from sqlalchemy.ext.hybrid import hybrid_method

from subledger.models.base import Base, PrimaryKeyMixin, TimestampMixin


class PlanDurationKey(str, enum.Enum):
    """
    Plan durations a package can be bought for.

    WHY: A closed enumeration replaces loosely-typed duration strings;
    raw input is validated against it at the API boundary.
    """

    WEEKLY = "weekly"
    FIFTEEN_DAY = "15-day"
    MONTHLY = "monthly"


class SubscriptionStatus(str, enum.Enum):
    """
    Stored lifecycle status of a subscription record.

    Statuses:
    - ACTIVE: purchased and not superseded or cancelled (may still be
      time-elapsed; see is_effectively_active)
    - EXPIRED: superseded by a newer purchase, or marked expired
    - CANCELLED: cancelled by the user
    """

    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class SubscriptionRecord(Base, PrimaryKeyMixin, TimestampMixin):
    """
    One purchase of a package by a user.

    RELATIONS:
    - Many-to-one with Package (package_id), name snapshotted at purchase
    - Keyed by the identity provider's user id (no local user table)
    """

    __tablename__ = "subscription_records"
    __table_args__ = (
        # Backstops for the ledger invariants checked in the service
        CheckConstraint(
            "credits_remaining <= credits_purchased",
            name="ck_subscription_records_credits",
        ),
        CheckConstraint(
            "expiry_date > start_date",
            name="ck_subscription_records_period",
        ),
    )

    user_id = Column(String(64), nullable=False, index=True)
    package_id = Column(
        Integer,
        ForeignKey("packages.id"),
        nullable=False,
        index=True,
    )
    package_name = Column(
        String(255),
        nullable=False,
        doc="Package name at purchase time",
    )
    plan_duration = Column(
        Enum(
            PlanDurationKey,
            name="planduration",
            values_callable=lambda enum: [e.value for e in enum],
        ),
        nullable=False,
    )

    # Money
    # WHY: Numeric(12, 2) keeps amounts in minor-unit precision end to end
    price_paid = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="BDT")
    credits_purchased = Column(
        Numeric(12, 2),
        nullable=False,
        doc="price_paid plus carried-forward credit, frozen at creation",
    )
    credits_remaining = Column(
        Numeric(12, 2),
        nullable=False,
        doc="Unused value; never exceeds credits_purchased",
    )

    # Period
    start_date = Column(DateTime, nullable=False)
    expiry_date = Column(DateTime, nullable=False, index=True)

    status = Column(
        Enum(
            SubscriptionStatus,
            name="subscriptionrecordstatus",
            values_callable=lambda enum: [e.value for e in enum],
        ),
        nullable=False,
        default=SubscriptionStatus.ACTIVE,
        index=True,
    )
    is_active = Column(
        Boolean,
        nullable=False,
        default=True,
        doc="Usable flag, cleared on any terminal transition",
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<SubscriptionRecord(id={self.id}, user_id={self.user_id}, "
            f"package_id={self.package_id}, plan={self.plan_duration.value}, "
            f"status={self.status.value})>"
        )

    @hybrid_method
    def is_effectively_active(self, now: datetime) -> bool:
        """
        Check whether the record grants access at ``now``.

        WHY: Stored status is not lazily rewritten when a plan runs out, so
        status alone never means "active".
        """
        return self.status == SubscriptionStatus.ACTIVE and self.expiry_date > now

    @is_effectively_active.expression
    def is_effectively_active(cls, now: datetime):
        return and_(cls.status == SubscriptionStatus.ACTIVE, cls.expiry_date > now)
