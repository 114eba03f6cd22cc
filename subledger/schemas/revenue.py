"""
Admin revenue schemas.

WHAT: Revenue rollup and the admin's all-records view.
"""

from decimal import Decimal
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from subledger.schemas.subscription import SubscriptionRecordResponse


class RevenueStatsResponse(BaseModel):
    """
    Revenue statistics.

    WHY: monthly_revenue covers a rolling window, not the calendar month.
    """

    model_config = ConfigDict(from_attributes=True)

    total_revenue: Decimal = Field(description="Sum of all prices paid")
    monthly_revenue: Decimal = Field(description="Sum of prices paid in the rolling window")
    active_subscriptions: int = Field(description="Subscriptions currently granting access")
    total_users: int = Field(description="Distinct purchasing users")


class AdminSubscriptionsResponse(BaseModel):
    """All users' records together with the revenue rollup."""

    items: List[SubscriptionRecordResponse]
    total: int
    stats: RevenueStatsResponse
