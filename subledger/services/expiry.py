"""
Expiry date service.

WHAT: Computes when a plan bought at a given moment ends.

WHY: Date arithmetic is an external contract the ledger depends on but
does not own. The ledger talks to it through ExpiryService so a store-side
implementation (e.g. a database function) can replace the bundled one.

HOW: FixedDayExpiryService adds the catalog's day length to the start
date, so a monthly plan is always 30 days regardless of the calendar.
"""

from datetime import datetime, timedelta
from typing import Protocol, Union

from subledger.models.subscription import PlanDurationKey
from subledger.services.plan_catalog import get_plan_duration


class ExpiryService(Protocol):
    """Contract for expiry date calculation."""

    def expiry_date(
        self, start_date: datetime, duration_key: Union[str, PlanDurationKey]
    ) -> datetime:
        """Return the moment a plan started at start_date stops granting access."""
        ...


class FixedDayExpiryService:
    """Expiry as start date plus the catalog day length."""

    def expiry_date(
        self, start_date: datetime, duration_key: Union[str, PlanDurationKey]
    ) -> datetime:
        return start_date + timedelta(days=get_plan_duration(duration_key).day_length)
