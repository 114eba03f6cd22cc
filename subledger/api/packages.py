"""
Package API endpoints.

WHAT: Lists the packages a user can subscribe to.

WHY: The purchase flow starts from the package catalog. Packages are
managed elsewhere; this router is read-only.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from subledger.core.auth import CurrentUser
from subledger.core.deps import get_current_user
from subledger.dao.package import PackageDAO
from subledger.db.session import get_db
from subledger.schemas.package import PackageListResponse, PackageResponse

router = APIRouter(prefix="/packages", tags=["Packages"])


@router.get(
    "",
    response_model=PackageListResponse,
    summary="List active packages",
    description="Returns every package that can currently be purchased.",
)
async def list_packages(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    List purchasable packages, newest first.

    Returns:
        Active packages
    """
    packages = await PackageDAO(db).get_active_packages()
    return PackageListResponse(
        items=[PackageResponse.model_validate(p) for p in packages],
        total=len(packages),
    )
