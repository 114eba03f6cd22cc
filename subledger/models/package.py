"""
Package model for the subscription catalog.

WHY: A package is what users subscribe to. Its base_price is the monthly
reference price every plan duration is prorated from. Packages are managed
by the admin surface; the ledger only reads them.
"""

from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, Column, Numeric, String, Text

from subledger.models.base import Base, PrimaryKeyMixin, TimestampMixin


class Package(Base, PrimaryKeyMixin, TimestampMixin):
    """Subscription package with a monthly base price."""

    __tablename__ = "packages"
    __table_args__ = (
        CheckConstraint("base_price >= 0", name="ck_packages_base_price_non_negative"),
    )

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    base_price = Column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0.00"),
        comment="Monthly reference price",
    )
    currency = Column(String(3), nullable=False, default="BDT")
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    def __repr__(self) -> str:
        return f"<Package(id={self.id}, name={self.name!r}, base_price={self.base_price})>"
