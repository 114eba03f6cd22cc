"""
Data Access Object (DAO) package.

WHY: DAOs provide a clean separation between database operations and business logic,
making the codebase more testable and maintainable.
"""

from subledger.dao.base import BaseDAO
from subledger.dao.package import PackageDAO
from subledger.dao.subscription import SubscriptionRecordDAO

__all__ = [
    "BaseDAO",
    "PackageDAO",
    "SubscriptionRecordDAO",
]
