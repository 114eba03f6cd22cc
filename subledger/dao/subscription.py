"""
Subscription Record Data Access Object (DAO).

WHAT: DAO for the subscription ledger's records.

WHY: Every read path of the ledger must apply the effectively-active
predicate rather than trust the stored status. Keeping those queries here,
built from SubscriptionRecord.is_effectively_active, means the date
comparison exists in exactly one place.

HOW: Extends BaseDAO with user-scoped queries, lifecycle transitions
(supersede, cancel) and the aggregates behind the admin
revenue view.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func, not_, select
from sqlalchemy.ext.asyncio import AsyncSession

from subledger.dao.base import BaseDAO
from subledger.models.subscription import SubscriptionRecord, SubscriptionStatus


class SubscriptionRecordDAO(BaseDAO[SubscriptionRecord]):
    """
    Data Access Object for SubscriptionRecord model.

    WHAT: Handles all database operations for subscription records.

    WHY: Centralizes ledger queries for:
    - Upgrade detection (the user's live record on a package)
    - History, active and expired views
    - Revenue rollups
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize SubscriptionRecordDAO.

        Args:
            session: Async database session
        """
        super().__init__(SubscriptionRecord, session)

    # ========================================================================
    # Lookups
    # ========================================================================

    async def get_by_id_for_user(
        self, record_id: int, user_id: str
    ) -> Optional[SubscriptionRecord]:
        """
        Retrieve a record by ID, ensuring it belongs to the user.

        WHY: Users may only see and cancel their own records.

        Args:
            record_id: Primary key
            user_id: Owner's user id

        Returns:
            The record if found and owned by the user, None otherwise
        """
        result = await self.session.execute(
            select(SubscriptionRecord).where(
                SubscriptionRecord.id == record_id,
                SubscriptionRecord.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_effective_for_package(
        self, user_id: str, package_id: int, now: datetime
    ) -> Optional[SubscriptionRecord]:
        """
        Get the user's effectively-active record on a package.

        WHAT: Finds the record a new purchase of the same package would
        supersede.

        WHY: At most one such record exists; ordering by newest first keeps
        the lookup deterministic even against legacy data.

        Args:
            user_id: User id
            package_id: Package ID
            now: Reference time for the expiry check

        Returns:
            The live record, or None
        """
        result = await self.session.execute(
            select(SubscriptionRecord)
            .where(
                SubscriptionRecord.user_id == user_id,
                SubscriptionRecord.package_id == package_id,
                SubscriptionRecord.is_effectively_active(now),
            )
            .order_by(SubscriptionRecord.created_at.desc(), SubscriptionRecord.id.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def get_most_recent_effective(
        self, user_id: str, now: datetime
    ) -> Optional[SubscriptionRecord]:
        """
        Get the user's newest effectively-active record on any package.

        WHY: The cart-style checkout applies the credit of this record.

        Args:
            user_id: User id
            now: Reference time for the expiry check

        Returns:
            The newest live record, or None
        """
        result = await self.session.execute(
            select(SubscriptionRecord)
            .where(
                SubscriptionRecord.user_id == user_id,
                SubscriptionRecord.is_effectively_active(now),
            )
            .order_by(SubscriptionRecord.created_at.desc(), SubscriptionRecord.id.desc())
            .limit(1)
        )
        return result.scalars().first()

    # ========================================================================
    # User views
    # ========================================================================

    async def list_for_user(
        self, user_id: str, skip: int = 0, limit: int = 100
    ) -> List[SubscriptionRecord]:
        """
        Get a user's full purchase history, newest first.

        Args:
            user_id: User id
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            List of records
        """
        return await self.get_all(skip=skip, limit=limit, user_id=user_id)

    async def list_effective_for_user(
        self, user_id: str, now: datetime
    ) -> List[SubscriptionRecord]:
        """
        Get a user's effectively-active records, newest first.

        Args:
            user_id: User id
            now: Reference time for the expiry check

        Returns:
            List of live records
        """
        result = await self.session.execute(
            select(SubscriptionRecord)
            .where(
                SubscriptionRecord.user_id == user_id,
                SubscriptionRecord.is_effectively_active(now),
            )
            .order_by(SubscriptionRecord.created_at.desc(), SubscriptionRecord.id.desc())
        )
        return list(result.scalars().all())

    async def list_expired_for_user(
        self, user_id: str, now: datetime
    ) -> List[SubscriptionRecord]:
        """
        Get a user's expired records, newest first.

        WHAT: Records marked expired plus records still stored as active
        whose expiry date has passed. Cancelled records are not expired.

        Args:
            user_id: User id
            now: Reference time for the expiry check

        Returns:
            List of expired records
        """
        result = await self.session.execute(
            select(SubscriptionRecord)
            .where(
                SubscriptionRecord.user_id == user_id,
                SubscriptionRecord.status != SubscriptionStatus.CANCELLED,
                not_(SubscriptionRecord.is_effectively_active(now)),
            )
            .order_by(SubscriptionRecord.created_at.desc(), SubscriptionRecord.id.desc())
        )
        return list(result.scalars().all())

    # ========================================================================
    # Lifecycle transitions
    # ========================================================================

    async def mark_expired(self, record_id: int) -> Optional[SubscriptionRecord]:
        """
        Supersede a record.

        WHY: Called when a newer purchase of the same package replaces it.
        Its unused value is either carried into the new record's
        credits_purchased or forfeited, so nothing stays usable here and
        credits_remaining is finalized at zero.

        Args:
            record_id: Record ID

        Returns:
            Updated record or None if not found
        """
        return await self.update(
            record_id,
            status=SubscriptionStatus.EXPIRED,
            is_active=False,
            credits_remaining=Decimal("0.00"),
        )

    async def mark_cancelled(
        self, record_id: int, credits_remaining: Decimal
    ) -> Optional[SubscriptionRecord]:
        """
        Cancel a record and persist the value it retains.

        Args:
            record_id: Record ID
            credits_remaining: Unused value to keep for future purchases

        Returns:
            Updated record or None if not found
        """
        return await self.update(
            record_id,
            status=SubscriptionStatus.CANCELLED,
            is_active=False,
            credits_remaining=credits_remaining,
        )

    # ========================================================================
    # Aggregates
    # ========================================================================

    async def sum_price_paid(self, since: Optional[datetime] = None) -> Decimal:
        """
        Sum price_paid across all records.

        Args:
            since: Only include records created at or after this time

        Returns:
            Sum of price_paid (0 when there are no records)
        """
        query = select(func.coalesce(func.sum(SubscriptionRecord.price_paid), 0))
        if since is not None:
            query = query.where(SubscriptionRecord.created_at >= since)

        result = await self.session.execute(query)
        return Decimal(str(result.scalar_one() or 0))

    async def count_effective(self, now: datetime) -> int:
        """Count effectively-active records across all users."""
        result = await self.session.execute(
            select(func.count())
            .select_from(SubscriptionRecord)
            .where(SubscriptionRecord.is_effectively_active(now))
        )
        return int(result.scalar_one())

    async def count_distinct_users(self) -> int:
        """Count users that ever purchased a subscription."""
        result = await self.session.execute(
            select(func.count(func.distinct(SubscriptionRecord.user_id)))
        )
        return int(result.scalar_one())
