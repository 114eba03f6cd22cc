"""Database package"""

from subledger.db.session import AsyncSessionLocal, engine, get_db
from subledger.models.base import Base

__all__ = ["Base", "AsyncSessionLocal", "engine", "get_db"]
