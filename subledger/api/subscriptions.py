"""
Subscription ledger API endpoints.

WHAT: REST API endpoints for the subscription ledger:
1. GET /subscriptions/plans - List plan durations
2. GET /subscriptions/quote - Prorated price of a package
3. GET /subscriptions - Purchase history
4. GET /subscriptions/active - Subscriptions currently granting access
5. GET /subscriptions/expired - Expired subscriptions
6. POST /subscriptions/purchase - Buy, upgrade or renew a package
7. POST /subscriptions/checkout - Buy a package paid with existing credits
8. POST /subscriptions/{record_id}/cancel - Cancel and keep unused value

WHY: Thin HTTP layer over SubscriptionService; every endpoint is scoped
to the authenticated user.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from subledger.core.auth import CurrentUser
from subledger.core.deps import get_current_user
from subledger.core.exceptions import PackageNotFoundError
from subledger.dao.package import PackageDAO
from subledger.db.session import get_db
from subledger.models.base import utcnow
from subledger.models.package import Package
from subledger.models.subscription import PlanDurationKey
from subledger.schemas.subscription import (
    CheckoutRequest,
    CheckoutResponse,
    PlanDurationInfo,
    PlansResponse,
    PurchaseRequest,
    PurchaseResponse,
    QuoteResponse,
    SubscriptionListResponse,
    SubscriptionRecordResponse,
)
from subledger.services import proration
from subledger.services.plan_catalog import list_plan_durations
from subledger.services.subscription_service import SubscriptionService

router = APIRouter(prefix="/subscriptions", tags=["Subscriptions"])


async def _get_purchasable_package(db: AsyncSession, package_id: int) -> Package:
    """
    Resolve a package that can currently be bought.

    Raises:
        PackageNotFoundError: If the package does not exist or is inactive
    """
    package = await PackageDAO(db).get_active_by_id(package_id)
    if package is None:
        raise PackageNotFoundError(package_id=package_id)
    return package


# ============================================================================
# Plan Information
# ============================================================================


@router.get(
    "/plans",
    response_model=PlansResponse,
    summary="List plan durations",
    description="Returns the plan durations with their day length and price multiplier.",
)
async def list_plans():
    """
    List plan durations in display order.

    Returns:
        Plan catalog
    """
    return PlansResponse(
        plans=[PlanDurationInfo.model_validate(d) for d in list_plan_durations()]
    )


@router.get(
    "/quote",
    response_model=QuoteResponse,
    summary="Quote a package price",
    description="Returns the prorated price of a package for a plan duration.",
)
async def quote_price(
    package_id: int = Query(..., gt=0),
    plan_duration: PlanDurationKey = Query(...),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Quote the price of a package for a plan duration.

    WHY: The amount shown before purchase must match what purchase charges.
    """
    package = await _get_purchasable_package(db, package_id)
    return QuoteResponse(
        package_id=package.id,
        plan_duration=plan_duration,
        base_price=package.base_price,
        price=proration.price(package.base_price, plan_duration),
        currency=package.currency,
    )


# ============================================================================
# User Views
# ============================================================================


@router.get(
    "",
    response_model=SubscriptionListResponse,
    summary="Get subscription history",
    description="Returns all of the user's subscription records, newest first.",
)
async def list_history(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Get the current user's purchase history."""
    records = await SubscriptionService(db).list_history(
        current_user.user_id, skip=skip, limit=limit
    )
    now = utcnow()
    return SubscriptionListResponse(
        items=[SubscriptionRecordResponse.from_record(r, now) for r in records],
        total=len(records),
    )


@router.get(
    "/active",
    response_model=SubscriptionListResponse,
    summary="Get active subscriptions",
    description="Returns the user's subscriptions that currently grant access.",
)
async def list_active(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Get the current user's effectively-active subscriptions."""
    now = utcnow()
    records = await SubscriptionService(db).list_effective_subscriptions(
        current_user.user_id, now=now
    )
    return SubscriptionListResponse(
        items=[SubscriptionRecordResponse.from_record(r, now) for r in records],
        total=len(records),
    )


@router.get(
    "/expired",
    response_model=SubscriptionListResponse,
    summary="Get expired subscriptions",
    description="Returns superseded and time-elapsed subscriptions. Cancelled ones are excluded.",
)
async def list_expired(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Get the current user's expired subscriptions."""
    now = utcnow()
    records = await SubscriptionService(db).list_expired(current_user.user_id, now=now)
    return SubscriptionListResponse(
        items=[SubscriptionRecordResponse.from_record(r, now) for r in records],
        total=len(records),
    )


# ============================================================================
# Lifecycle
# ============================================================================


@router.post(
    "/purchase",
    response_model=PurchaseResponse,
    status_code=201,
    summary="Purchase a package",
    description=(
        "Buys a package for a plan duration. A live subscription to the same "
        "package is superseded and, for an equal or longer plan, its unused "
        "value is carried into the new one."
    ),
)
async def purchase(
    request: PurchaseRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Purchase, upgrade or renew a package.

    Raises:
        PackageNotFoundError: If the package does not exist or is inactive
    """
    package = await _get_purchasable_package(db, request.package_id)

    result = await SubscriptionService(db).purchase(
        user_id=current_user.user_id,
        package_id=package.id,
        package_name=package.name,
        base_price=package.base_price,
        duration_key=request.plan_duration,
        currency=package.currency,
    )

    return PurchaseResponse(
        subscription=SubscriptionRecordResponse.from_record(result.record, utcnow()),
        superseded_id=result.superseded.id if result.superseded else None,
        credits_carried=result.credits_carried,
    )


@router.post(
    "/checkout",
    response_model=CheckoutResponse,
    status_code=201,
    summary="Checkout with credits",
    description=(
        "Buys a package paying with the credits of the newest live "
        "subscription, which is cancelled in the process."
    ),
)
async def checkout(
    request: CheckoutRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Cart-style checkout that spends existing credits.

    Raises:
        PackageNotFoundError: If the package does not exist or is inactive
        ConflictError: If the package already has another live subscription
    """
    package = await _get_purchasable_package(db, request.package_id)

    result = await SubscriptionService(db).apply_credits_to_new_purchase(
        user_id=current_user.user_id,
        package_id=package.id,
        package_name=package.name,
        total_price=proration.price(package.base_price, request.plan_duration),
        currency=package.currency,
        duration_key=request.plan_duration,
    )

    return CheckoutResponse(
        subscription=SubscriptionRecordResponse.from_record(result.record, utcnow()),
        prior_id=result.prior.id if result.prior else None,
        credits_applied=result.credits_applied,
        credits_left=result.credits_left,
    )


@router.post(
    "/{record_id}/cancel",
    response_model=SubscriptionRecordResponse,
    summary="Cancel a subscription",
    description="Cancels a live subscription; its unused value stays on the record as credit.",
)
async def cancel(
    record_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Cancel one of the current user's subscriptions.

    Raises:
        SubscriptionNotFoundError: If the record is not the user's
        SubscriptionInactiveError: If the record is no longer active
    """
    record = await SubscriptionService(db).cancel(record_id, user_id=current_user.user_id)
    return SubscriptionRecordResponse.from_record(record, utcnow())
