"""
Unit tests for the plan duration catalog.

WHAT: Tests lookups, ordering and key validation.
"""

from decimal import Decimal

import pytest

from subledger.core.exceptions import UnknownPlanDurationError, ValidationError
from subledger.models.subscription import PlanDurationKey
from subledger.services.plan_catalog import (
    get_plan_duration,
    list_plan_durations,
    parse_duration_key,
    quantize_money,
)


class TestPlanCatalog:
    """Tests for catalog contents."""

    def test_catalog_display_order(self):
        """Durations are listed shortest first."""
        keys = [d.key for d in list_plan_durations()]
        assert keys == [
            PlanDurationKey.WEEKLY,
            PlanDurationKey.FIFTEEN_DAY,
            PlanDurationKey.MONTHLY,
        ]

    @pytest.mark.parametrize(
        "key,label,day_length,multiplier",
        [
            ("weekly", "7 Days", 7, Decimal("0.25")),
            ("15-day", "15 Days", 15, Decimal("0.5")),
            ("monthly", "1 Month", 30, Decimal("1")),
        ],
    )
    def test_catalog_entries(self, key, label, day_length, multiplier):
        duration = get_plan_duration(key)
        assert duration.label == label
        assert duration.day_length == day_length
        assert duration.price_multiplier == multiplier

    def test_exactly_one_monthly_unit(self):
        """Only the monthly entry has multiplier 1."""
        units = [d for d in list_plan_durations() if d.price_multiplier == Decimal("1")]
        assert [d.key for d in units] == [PlanDurationKey.MONTHLY]

    def test_entries_are_immutable(self):
        duration = get_plan_duration(PlanDurationKey.WEEKLY)
        with pytest.raises(AttributeError):
            duration.day_length = 8


class TestParseDurationKey:
    """Tests for boundary validation of raw keys."""

    def test_parse_valid_string(self):
        assert parse_duration_key("15-day") is PlanDurationKey.FIFTEEN_DAY

    def test_parse_enum_passthrough(self):
        assert parse_duration_key(PlanDurationKey.MONTHLY) is PlanDurationKey.MONTHLY

    def test_parse_unknown_key_raises(self):
        with pytest.raises(UnknownPlanDurationError) as exc_info:
            parse_duration_key("yearly")

        assert isinstance(exc_info.value, ValidationError)
        assert exc_info.value.status_code == 400
        assert exc_info.value.context["duration"] == "yearly"

    def test_lookup_unknown_key_raises(self):
        with pytest.raises(UnknownPlanDurationError):
            get_plan_duration("quarterly")


class TestQuantizeMoney:
    """Tests for minor-unit rounding."""

    def test_rounds_half_up(self):
        assert quantize_money(Decimal("128.575")) == Decimal("128.58")
        assert quantize_money(Decimal("128.574")) == Decimal("128.57")

    def test_accepts_int_and_str(self):
        assert quantize_money(300) == Decimal("300.00")
        assert quantize_money("0.5") == Decimal("0.50")
