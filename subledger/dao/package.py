"""
Package Data Access Object (DAO).

WHAT: Read access to the package catalog.

WHY: Packages are owned by the admin surface. The ledger only needs to
list the packages users can buy and resolve the one being purchased.
"""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from subledger.dao.base import BaseDAO
from subledger.models.package import Package


class PackageDAO(BaseDAO[Package]):
    """Data Access Object for Package model."""

    def __init__(self, session: AsyncSession):
        super().__init__(Package, session)

    async def get_active_packages(self) -> List[Package]:
        """
        Get all purchasable packages, newest first.

        Returns:
            List of active packages
        """
        result = await self.session.execute(
            select(Package)
            .where(Package.is_active.is_(True))
            .order_by(Package.created_at.desc(), Package.id.desc())
        )
        return list(result.scalars().all())

    async def get_active_by_id(self, package_id: int) -> Optional[Package]:
        """
        Get a package only if it can currently be purchased.

        Args:
            package_id: Package ID

        Returns:
            Package if found and active, None otherwise
        """
        result = await self.session.execute(
            select(Package).where(
                Package.id == package_id,
                Package.is_active.is_(True),
            )
        )
        return result.scalar_one_or_none()
