"""
Proration calculator.

WHAT: Converts a package's monthly base price into the price of a plan
duration.

WHY: Packages are priced once, per month. Shorter plans are sold at a
fixed fraction of that price, taken from the plan catalog.
"""

import logging
from decimal import Decimal
from typing import Union

from subledger.core.exceptions import UnknownPlanDurationError
from subledger.models.subscription import PlanDurationKey
from subledger.services.plan_catalog import get_plan_duration, quantize_money

logger = logging.getLogger(__name__)


def price(base_price: Union[Decimal, int, str], duration_key: Union[str, PlanDurationKey]) -> Decimal:
    """
    Price a package for a plan duration.

    WHAT: base_price * multiplier, rounded to two places.

    WHY: An unknown duration falls back to the unmodified base price. This is
    the permissive path used for quotes and display; purchases validate the
    key strictly before they ever reach here.

    Args:
        base_price: Monthly base price of the package
        duration_key: Plan duration key

    Returns:
        Prorated price
    """
    base = quantize_money(base_price)
    try:
        duration = get_plan_duration(duration_key)
    except UnknownPlanDurationError:
        logger.warning(
            f"Unknown plan duration {duration_key!r}, charging base price",
            extra={"duration": str(duration_key)},
        )
        return base

    return quantize_money(base * duration.price_multiplier)
