"""
Revenue aggregation service.

WHAT: Read-only rollups over all subscription records for the admin view.

WHY: Admins need a quick picture of sales: money taken overall and in the
recent window, how many subscriptions currently grant access, and how many
users ever bought one.

HOW: Sums and counts run in the database through SubscriptionRecordDAO.
"Active" uses the same effectively-active predicate as the user views.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from subledger.core.config import settings
from subledger.dao.subscription import SubscriptionRecordDAO
from subledger.models.base import utcnow
from subledger.models.subscription import SubscriptionRecord
from subledger.services.plan_catalog import quantize_money

logger = logging.getLogger(__name__)


@dataclass
class RevenueStats:
    """Revenue rollup for the admin dashboard."""

    total_revenue: Decimal
    monthly_revenue: Decimal
    active_subscriptions: int
    total_users: int


class RevenueService:
    """
    Service for admin revenue reporting.

    WHAT: Computes revenue statistics and lists every record.
    """

    def __init__(self, db: AsyncSession):
        """
        Initialize revenue service.

        Args:
            db: Async database session
        """
        self.db = db
        self.dao = SubscriptionRecordDAO(db)

    async def get_revenue_stats(self, now: Optional[datetime] = None) -> RevenueStats:
        """
        Compute revenue statistics.

        WHAT:
        - total_revenue: sum of price_paid over all records
        - monthly_revenue: the same sum over records created within the last
          REVENUE_WINDOW_DAYS days
        - active_subscriptions: effectively-active records
        - total_users: distinct purchasing users

        Args:
            now: Reference time (defaults to current UTC time)

        Returns:
            RevenueStats
        """
        now = now or utcnow()
        window_start = now - timedelta(days=settings.REVENUE_WINDOW_DAYS)

        total_revenue = await self.dao.sum_price_paid()
        monthly_revenue = await self.dao.sum_price_paid(since=window_start)
        active_subscriptions = await self.dao.count_effective(now)
        total_users = await self.dao.count_distinct_users()

        logger.debug(
            f"Revenue stats computed: total={total_revenue}, active={active_subscriptions}",
            extra={"window_start": window_start.isoformat()},
        )

        return RevenueStats(
            total_revenue=quantize_money(total_revenue),
            monthly_revenue=quantize_money(monthly_revenue),
            active_subscriptions=active_subscriptions,
            total_users=total_users,
        )

    async def list_all_records(
        self, skip: int = 0, limit: int = 100
    ) -> List[SubscriptionRecord]:
        """Get every user's records, newest first."""
        return await self.dao.get_all(skip=skip, limit=limit)

    async def count_all_records(self) -> int:
        """Count every record, for paging the admin table."""
        return await self.dao.count()
