"""
Plan duration catalog.

WHAT: The fixed, ordered list of durations a package can be bought for,
with the day length and price multiplier of each.

WHY: Proration, credit valuation and expiry all derive from the same
table, so a duration's day length and price can never disagree.

HOW: A module-level tuple of frozen dataclasses keyed by PlanDurationKey.
Exactly one entry carries multiplier 1: the monthly unit that package
base prices are quoted in.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Union

from subledger.core.exceptions import UnknownPlanDurationError
from subledger.models.subscription import PlanDurationKey

# Currency minor unit used for every stored amount
MONEY_QUANTUM = Decimal("0.01")


def quantize_money(amount: Union[Decimal, int, float, str]) -> Decimal:
    """
    Round an amount to the currency's minor unit.

    WHY: Half-up rounding at two places matches how the amounts are shown
    to users, and Numeric(12, 2) columns store exactly this precision.
    """
    if not isinstance(amount, Decimal):
        amount = Decimal(str(amount))
    return amount.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PlanDuration:
    """
    Immutable catalog entry.

    Attributes:
        key: Duration key stored on subscription records
        label: Display label
        day_length: Days of access the duration grants
        price_multiplier: Factor applied to the monthly base price
    """

    key: PlanDurationKey
    label: str
    day_length: int
    price_multiplier: Decimal


PLAN_DURATIONS = (
    PlanDuration(PlanDurationKey.WEEKLY, "7 Days", 7, Decimal("0.25")),
    PlanDuration(PlanDurationKey.FIFTEEN_DAY, "15 Days", 15, Decimal("0.5")),
    PlanDuration(PlanDurationKey.MONTHLY, "1 Month", 30, Decimal("1")),
)

_BY_KEY: Dict[PlanDurationKey, PlanDuration] = {d.key: d for d in PLAN_DURATIONS}


def parse_duration_key(value: Union[str, PlanDurationKey]) -> PlanDurationKey:
    """
    Validate a raw duration string.

    Args:
        value: Raw key such as "weekly" or "15-day"

    Returns:
        The matching PlanDurationKey

    Raises:
        UnknownPlanDurationError: If the key is not in the catalog
    """
    if isinstance(value, PlanDurationKey):
        return value
    try:
        return PlanDurationKey(value)
    except ValueError:
        raise UnknownPlanDurationError(
            message=f"Unknown plan duration: {value}",
            duration=value,
            allowed=[d.key.value for d in PLAN_DURATIONS],
        )


def get_plan_duration(key: Union[str, PlanDurationKey]) -> PlanDuration:
    """
    Look up a catalog entry.

    Raises:
        UnknownPlanDurationError: If the key is not in the catalog
    """
    return _BY_KEY[parse_duration_key(key)]


def list_plan_durations() -> List[PlanDuration]:
    """Return the catalog in display order."""
    return list(PLAN_DURATIONS)
