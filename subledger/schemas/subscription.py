"""
Subscription ledger schemas for API request/response validation.

WHAT: Pydantic schemas for plans, quotes, purchases, checkouts and
subscription records.

WHY: Schemas provide:
1. Type-safe request/response handling
2. Plan durations validated against the closed enumeration at the boundary
3. OpenAPI documentation generation

HOW: Uses Pydantic v2 with Field and model_config. Money is exposed as
Decimal, which serializes to a string with its two decimal places intact.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from subledger.models.subscription import (
    PlanDurationKey,
    SubscriptionRecord,
    SubscriptionStatus,
)


# ============================================================================
# Plan Catalog Schemas
# ============================================================================


class PlanDurationInfo(BaseModel):
    """
    One plan duration as shown on the pricing picker.
    """

    model_config = ConfigDict(from_attributes=True)

    key: PlanDurationKey
    label: str = Field(description="Display label, e.g. '7 Days'")
    day_length: int = Field(description="Days of access granted")
    price_multiplier: Decimal = Field(description="Fraction of the monthly price charged")


class PlansResponse(BaseModel):
    """Response for listing plan durations."""

    plans: List[PlanDurationInfo]


class QuoteResponse(BaseModel):
    """
    Prorated price of a package for a plan duration.

    WHY: Lets the frontend show the exact amount before purchase.
    """

    package_id: int
    plan_duration: PlanDurationKey
    base_price: Decimal = Field(description="Monthly base price")
    price: Decimal = Field(description="Price for the selected duration")
    currency: str


# ============================================================================
# Request Schemas
# ============================================================================


class PurchaseRequest(BaseModel):
    """
    Request to buy a package.

    WHY: Buying a package the user already holds upgrades or renews it.
    """

    package_id: int = Field(gt=0, description="Package to buy")
    plan_duration: PlanDurationKey = Field(description="Plan duration key")


class CheckoutRequest(BaseModel):
    """
    Request for a cart-style checkout paid with existing credits.
    """

    package_id: int = Field(gt=0, description="Package to buy")
    plan_duration: PlanDurationKey = Field(
        default=PlanDurationKey.MONTHLY,
        description="Plan duration key",
    )


# ============================================================================
# Record Schemas
# ============================================================================


class SubscriptionRecordResponse(BaseModel):
    """
    Schema for a subscription record.

    WHY: effectively_active is computed at response time, because the
    stored status of a time-elapsed record may still read "active".
    """

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    package_id: int
    package_name: str
    plan_duration: PlanDurationKey

    # Money
    price_paid: Decimal
    currency: str
    credits_purchased: Decimal
    credits_remaining: Decimal

    # Period
    start_date: datetime
    expiry_date: datetime

    # Status
    status: SubscriptionStatus
    is_active: bool
    effectively_active: bool = False

    # Timestamps
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(
        cls, record: SubscriptionRecord, now: datetime
    ) -> "SubscriptionRecordResponse":
        """Build the response, evaluating activity at ``now``."""
        response = cls.model_validate(record)
        response.effectively_active = record.is_effectively_active(now)
        return response


class SubscriptionListResponse(BaseModel):
    """Response for listing subscription records."""

    items: List[SubscriptionRecordResponse]
    total: int


class PurchaseResponse(BaseModel):
    """
    Response for a purchase.

    WHY: Tells the user which record was superseded and how much credit
    moved into the new one.
    """

    subscription: SubscriptionRecordResponse
    superseded_id: Optional[int] = None
    credits_carried: Decimal


class CheckoutResponse(BaseModel):
    """Response for a cart-style checkout."""

    subscription: SubscriptionRecordResponse
    prior_id: Optional[int] = None
    credits_applied: Decimal
    credits_left: Decimal
