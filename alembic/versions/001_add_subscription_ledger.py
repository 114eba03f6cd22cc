"""Add packages and subscription_records tables.

Revision ID: 001
Revises:
Create Date: 2026-10-19

WHAT: Creates the package catalog and the subscription ledger.

WHY: Every purchase of a package is one subscription record:
1. price_paid is the prorated price of the chosen plan duration
2. credits_purchased/credits_remaining track value carried between plans
3. status plus expiry_date decide whether a record grants access

HOW: Two tables with a foreign key from records to packages. The plan
duration and status columns are PostgreSQL enums created with the table.
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


PLAN_DURATION = sa.Enum("weekly", "15-day", "monthly", name="planduration")
RECORD_STATUS = sa.Enum("active", "expired", "cancelled", name="subscriptionrecordstatus")


def upgrade() -> None:
    """Create packages and subscription_records."""
    op.create_table(
        "packages",
        sa.Column("id", sa.Integer(), nullable=False, primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("base_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="BDT"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "created_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        # WHY: Base prices are monthly amounts and never negative
        sa.CheckConstraint("base_price >= 0", name="ck_packages_base_price_non_negative"),
    )
    op.create_index("ix_packages_id", "packages", ["id"])
    op.create_index("ix_packages_is_active", "packages", ["is_active"])
    op.create_index("ix_packages_created_at", "packages", ["created_at"])

    op.create_table(
        "subscription_records",
        sa.Column("id", sa.Integer(), nullable=False, primary_key=True),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column(
            "package_id",
            sa.Integer(),
            sa.ForeignKey("packages.id"),
            nullable=False,
        ),
        sa.Column("package_name", sa.String(length=255), nullable=False),
        sa.Column("plan_duration", PLAN_DURATION, nullable=False),
        # Money
        sa.Column("price_paid", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="BDT"),
        sa.Column("credits_purchased", sa.Numeric(12, 2), nullable=False),
        sa.Column("credits_remaining", sa.Numeric(12, 2), nullable=False),
        # Period
        sa.Column("start_date", sa.DateTime(), nullable=False),
        sa.Column("expiry_date", sa.DateTime(), nullable=False),
        # Status
        sa.Column("status", RECORD_STATUS, nullable=False, server_default="active"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        # Timestamps
        sa.Column(
            "created_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        # WHY: Backstops for the ledger invariants enforced in the service
        sa.CheckConstraint(
            "credits_remaining <= credits_purchased",
            name="ck_subscription_records_credits",
        ),
        sa.CheckConstraint(
            "expiry_date > start_date",
            name="ck_subscription_records_period",
        ),
    )

    # Create indexes
    # WHY: History is read per user; upgrade detection per user and package
    op.create_index("ix_subscription_records_id", "subscription_records", ["id"])
    op.create_index("ix_subscription_records_user_id", "subscription_records", ["user_id"])
    op.create_index("ix_subscription_records_package_id", "subscription_records", ["package_id"])
    op.create_index("ix_subscription_records_status", "subscription_records", ["status"])
    op.create_index("ix_subscription_records_expiry_date", "subscription_records", ["expiry_date"])
    op.create_index("ix_subscription_records_created_at", "subscription_records", ["created_at"])
    op.create_index(
        "ix_subscription_records_user_package",
        "subscription_records",
        ["user_id", "package_id"],
    )


def downgrade() -> None:
    """Remove subscription_records and packages."""
    op.drop_index("ix_subscription_records_user_package", table_name="subscription_records")
    op.drop_index("ix_subscription_records_created_at", table_name="subscription_records")
    op.drop_index("ix_subscription_records_expiry_date", table_name="subscription_records")
    op.drop_index("ix_subscription_records_status", table_name="subscription_records")
    op.drop_index("ix_subscription_records_package_id", table_name="subscription_records")
    op.drop_index("ix_subscription_records_user_id", table_name="subscription_records")
    op.drop_index("ix_subscription_records_id", table_name="subscription_records")
    op.drop_table("subscription_records")

    op.drop_index("ix_packages_created_at", table_name="packages")
    op.drop_index("ix_packages_is_active", table_name="packages")
    op.drop_index("ix_packages_id", table_name="packages")
    op.drop_table("packages")

    op.execute("DROP TYPE IF EXISTS subscriptionrecordstatus")
    op.execute("DROP TYPE IF EXISTS planduration")
