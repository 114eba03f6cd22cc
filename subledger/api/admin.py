"""
Admin API endpoints.

WHAT: Cross-user subscription listing and revenue statistics.

SECURITY (OWASP):
- A01: Admin role required on every endpoint
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from subledger.core.auth import CurrentUser
from subledger.core.deps import require_admin
from subledger.db.session import get_db
from subledger.models.base import utcnow
from subledger.schemas.revenue import AdminSubscriptionsResponse, RevenueStatsResponse
from subledger.schemas.subscription import SubscriptionRecordResponse
from subledger.services.revenue_service import RevenueService

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get(
    "/subscriptions",
    response_model=AdminSubscriptionsResponse,
    summary="List all subscriptions",
    description="Returns every user's subscription records with revenue statistics.",
)
async def list_all_subscriptions(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
):
    """
    List every subscription record, newest first.

    Returns:
        Records and revenue statistics
    """
    now = utcnow()
    service = RevenueService(db)
    records = await service.list_all_records(skip=skip, limit=limit)
    total = await service.count_all_records()
    stats = await service.get_revenue_stats(now=now)

    return AdminSubscriptionsResponse(
        items=[SubscriptionRecordResponse.from_record(r, now) for r in records],
        total=total,
        stats=RevenueStatsResponse.model_validate(stats),
    )


@router.get(
    "/revenue",
    response_model=RevenueStatsResponse,
    summary="Get revenue statistics",
    description="Returns total and rolling-window revenue, active subscriptions and users.",
)
async def get_revenue(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
):
    """Get revenue statistics."""
    stats = await RevenueService(db).get_revenue_stats()
    return RevenueStatsResponse.model_validate(stats)
