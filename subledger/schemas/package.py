"""
Package schemas.

WHAT: Read-only representation of purchasable packages.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PackageResponse(BaseModel):
    """Schema for a package."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    base_price: Decimal = Field(description="Monthly base price")
    currency: str
    is_active: bool
    created_at: datetime


class PackageListResponse(BaseModel):
    """Response for listing packages."""

    items: List[PackageResponse]
    total: int
