"""
Unit tests for SubscriptionRecord DAO.

WHAT: Tests for SubscriptionRecordDAO database operations.

WHY: Verifies that:
1. Every view applies the effectively-active predicate
2. User scoping is enforced
3. Lifecycle transitions update status and the usable flag
4. Aggregates match the stored records
"""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.exc import IntegrityError

from subledger.dao.package import PackageDAO
from subledger.dao.subscription import SubscriptionRecordDAO
from subledger.models.base import utcnow
from subledger.models.subscription import PlanDurationKey, SubscriptionStatus
from tests.factories import PackageFactory, SubscriptionRecordFactory


@pytest.fixture
def now() -> datetime:
    return utcnow().replace(microsecond=0)


@pytest_asyncio.fixture
async def package(db_session):
    return await PackageFactory.create(db_session)


class TestSubscriptionRecordDAOCreate:
    """Tests for record creation."""

    @pytest.mark.asyncio
    async def test_create_record(self, db_session, package, now):
        dao = SubscriptionRecordDAO(db_session)

        record = await dao.create(
            user_id="user-1",
            package_id=package.id,
            package_name=package.name,
            plan_duration=PlanDurationKey.FIFTEEN_DAY,
            price_paid=Decimal("600.00"),
            currency="BDT",
            credits_purchased=Decimal("600.00"),
            credits_remaining=Decimal("600.00"),
            start_date=now,
            expiry_date=now + timedelta(days=15),
        )

        assert record.id is not None
        assert record.status == SubscriptionStatus.ACTIVE
        assert record.is_active is True
        assert record.plan_duration == PlanDurationKey.FIFTEEN_DAY
        assert record.created_at is not None

    @pytest.mark.asyncio
    async def test_remaining_above_purchased_rejected_by_schema(self, db_session, package, now):
        with pytest.raises(IntegrityError):
            await SubscriptionRecordDAO(db_session).create(
                user_id="user-1",
                package_id=package.id,
                package_name=package.name,
                plan_duration=PlanDurationKey.WEEKLY,
                price_paid=Decimal("300.00"),
                credits_purchased=Decimal("300.00"),
                credits_remaining=Decimal("300.01"),
                start_date=now,
                expiry_date=now + timedelta(days=7),
            )
        await db_session.rollback()

    @pytest.mark.asyncio
    async def test_expiry_not_after_start_rejected_by_schema(self, db_session, package, now):
        with pytest.raises(IntegrityError):
            await SubscriptionRecordDAO(db_session).create(
                user_id="user-1",
                package_id=package.id,
                package_name=package.name,
                plan_duration=PlanDurationKey.WEEKLY,
                price_paid=Decimal("300.00"),
                credits_purchased=Decimal("300.00"),
                credits_remaining=Decimal("300.00"),
                start_date=now,
                expiry_date=now,
            )
        await db_session.rollback()


class TestSubscriptionRecordDAOLookups:
    """Tests for user-scoped lookups."""

    @pytest.mark.asyncio
    async def test_get_by_id_for_user_scopes_owner(self, db_session, package, now):
        record = await SubscriptionRecordFactory.create(db_session, "user-1", package, now=now)
        dao = SubscriptionRecordDAO(db_session)

        assert (await dao.get_by_id_for_user(record.id, "user-1")).id == record.id
        assert await dao.get_by_id_for_user(record.id, "user-2") is None

    @pytest.mark.asyncio
    async def test_get_effective_for_package_ignores_inactive(self, db_session, package, now):
        await SubscriptionRecordFactory.create(
            db_session, "user-1", package, days_left=-1, now=now
        )
        await SubscriptionRecordFactory.create(
            db_session, "user-1", package, status=SubscriptionStatus.CANCELLED, now=now
        )
        dao = SubscriptionRecordDAO(db_session)

        assert await dao.get_effective_for_package("user-1", package.id, now) is None

        live = await SubscriptionRecordFactory.create(
            db_session, "user-1", package, days_left=3, now=now
        )
        assert (await dao.get_effective_for_package("user-1", package.id, now)).id == live.id

    @pytest.mark.asyncio
    async def test_get_most_recent_effective(self, db_session, package, now):
        other = await PackageFactory.create(db_session, name="Other")
        await SubscriptionRecordFactory.create(
            db_session, "user-1", package, created_at=now - timedelta(days=2), now=now
        )
        newest = await SubscriptionRecordFactory.create(
            db_session, "user-1", other, created_at=now - timedelta(days=1), now=now
        )
        dao = SubscriptionRecordDAO(db_session)

        assert (await dao.get_most_recent_effective("user-1", now)).id == newest.id
        assert await dao.get_most_recent_effective("user-2", now) is None


class TestSubscriptionRecordDAOViews:
    """Tests for history, active and expired views."""

    @pytest.mark.asyncio
    async def test_list_for_user_newest_first(self, db_session, package, now):
        first = await SubscriptionRecordFactory.create(
            db_session, "user-1", package, created_at=now - timedelta(days=2), now=now
        )
        second = await SubscriptionRecordFactory.create(
            db_session, "user-1", package, created_at=now - timedelta(days=1), now=now
        )
        await SubscriptionRecordFactory.create(db_session, "user-2", package, now=now)

        records = await SubscriptionRecordDAO(db_session).list_for_user("user-1")

        assert [r.id for r in records] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_expired_view_includes_elapsed_active(self, db_session, package, now):
        elapsed = await SubscriptionRecordFactory.create(
            db_session, "user-1", package, days_left=-1, now=now
        )
        marked = await SubscriptionRecordFactory.create(
            db_session, "user-1", package, status=SubscriptionStatus.EXPIRED, now=now
        )
        await SubscriptionRecordFactory.create(
            db_session, "user-1", package, status=SubscriptionStatus.CANCELLED, days_left=-5, now=now
        )
        live = await SubscriptionRecordFactory.create(
            db_session, "user-1", package, days_left=4, now=now
        )
        dao = SubscriptionRecordDAO(db_session)

        expired = await dao.list_expired_for_user("user-1", now)
        effective = await dao.list_effective_for_user("user-1", now)

        assert {r.id for r in expired} == {elapsed.id, marked.id}
        assert [r.id for r in effective] == [live.id]


class TestSubscriptionRecordDAOTransitions:
    """Tests for lifecycle transitions."""

    @pytest.mark.asyncio
    async def test_mark_expired(self, db_session, package, now):
        record = await SubscriptionRecordFactory.create(db_session, "user-1", package, now=now)

        updated = await SubscriptionRecordDAO(db_session).mark_expired(record.id)

        assert updated.status == SubscriptionStatus.EXPIRED
        assert updated.is_active is False
        assert updated.credits_remaining == Decimal("0.00")
        assert updated.credits_purchased == record.credits_purchased

    @pytest.mark.asyncio
    async def test_mark_cancelled(self, db_session, package, now):
        record = await SubscriptionRecordFactory.create(db_session, "user-1", package, now=now)

        updated = await SubscriptionRecordDAO(db_session).mark_cancelled(
            record.id, Decimal("250.50")
        )

        assert updated.status == SubscriptionStatus.CANCELLED
        assert updated.is_active is False
        assert updated.credits_remaining == Decimal("250.50")

    @pytest.mark.asyncio
    async def test_transition_missing_record(self, db_session):
        assert await SubscriptionRecordDAO(db_session).mark_expired(12345) is None


class TestSubscriptionRecordDAOAggregates:
    """Tests for revenue aggregates."""

    @pytest.mark.asyncio
    async def test_sum_price_paid(self, db_session, package, now):
        dao = SubscriptionRecordDAO(db_session)
        assert await dao.sum_price_paid() == Decimal("0")

        await SubscriptionRecordFactory.create(
            db_session, "user-1", package, price_paid=Decimal("300.00"), now=now
        )
        await SubscriptionRecordFactory.create(
            db_session,
            "user-2",
            package,
            price_paid=Decimal("600.50"),
            created_at=now - timedelta(days=45),
            now=now,
        )

        assert await dao.sum_price_paid() == Decimal("900.50")
        assert await dao.sum_price_paid(since=now - timedelta(days=30)) == Decimal("300.00")

    @pytest.mark.asyncio
    async def test_counts(self, db_session, package, now):
        await SubscriptionRecordFactory.create(db_session, "user-1", package, now=now)
        await SubscriptionRecordFactory.create(
            db_session, "user-1", package, status=SubscriptionStatus.EXPIRED, now=now
        )
        await SubscriptionRecordFactory.create(
            db_session, "user-2", package, days_left=-1, now=now
        )
        dao = SubscriptionRecordDAO(db_session)

        assert await dao.count_effective(now) == 1
        assert await dao.count_distinct_users() == 2
        assert await dao.count(user_id="user-1") == 2


class TestPackageDAO:
    """Tests for PackageDAO."""

    @pytest.mark.asyncio
    async def test_active_packages_only(self, db_session):
        active = await PackageFactory.create(db_session, name="Active")
        retired = await PackageFactory.create(db_session, name="Retired", is_active=False)
        dao = PackageDAO(db_session)

        assert [p.id for p in await dao.get_active_packages()] == [active.id]
        assert (await dao.get_active_by_id(active.id)).name == "Active"
        assert await dao.get_active_by_id(retired.id) is None
        assert await dao.get_active_by_id(999) is None

    @pytest.mark.asyncio
    async def test_negative_base_price_rejected_by_schema(self, db_session):
        with pytest.raises(IntegrityError):
            await PackageDAO(db_session).create(name="Broken", base_price=Decimal("-1.00"))
        await db_session.rollback()
