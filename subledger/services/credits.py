"""
Credit valuation.

WHAT: Values the unused part of a subscription.

WHY: Cancelling or upgrading mid-period must not forfeit what the user
already paid for. The unused value is the daily rate of the original
purchase times the whole days still left.

HOW: Pure functions; the day length is always the one the amount was
priced for, never the day length of a newer plan.
"""

import math
from datetime import datetime
from decimal import Decimal
from typing import Union

from subledger.core.exceptions import ValidationError
from subledger.services.plan_catalog import quantize_money

SECONDS_PER_DAY = 86400


def days_remaining(expiry_date: datetime, now: datetime) -> int:
    """
    Whole days left until expiry, rounding any partial day up.

    Returns zero or a negative number once the expiry date has passed.
    """
    return math.ceil((expiry_date - now).total_seconds() / SECONDS_PER_DAY)


def unused_value(
    amount_paid: Union[Decimal, int, str],
    day_length: int,
    days_left: int,
) -> Decimal:
    """
    Value of the days a user paid for but has not used.

    Args:
        amount_paid: Amount charged for the plan
        day_length: Days the amount was priced for
        days_left: Days remaining on the plan

    Returns:
        max(0, amount_paid / day_length * days_left), rounded to two places

    Raises:
        ValidationError: If day_length is not positive
    """
    if day_length <= 0:
        raise ValidationError(
            message="Plan day length must be positive",
            day_length=day_length,
        )
    if days_left <= 0:
        return quantize_money(0)

    amount = amount_paid if isinstance(amount_paid, Decimal) else Decimal(str(amount_paid))
    value = amount / Decimal(day_length) * Decimal(days_left)
    return quantize_money(max(Decimal(0), value))
