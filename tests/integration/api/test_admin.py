"""
Integration tests for the admin API.

WHAT: Tests the all-records listing and revenue statistics endpoints.

WHY: Revenue data spans every user and must be admin-only.
"""

from decimal import Decimal

import pytest
import pytest_asyncio

from subledger.models.subscription import PlanDurationKey, SubscriptionStatus
from tests.factories import PackageFactory, SubscriptionRecordFactory


@pytest_asyncio.fixture
async def ledger(db_session):
    """A small ledger across two users."""
    package = await PackageFactory.create(db_session, base_price=Decimal("1200.00"))
    await SubscriptionRecordFactory.create(
        db_session,
        "user-1",
        package,
        plan_duration=PlanDurationKey.WEEKLY,
        price_paid=Decimal("300.00"),
        days_left=4,
    )
    await SubscriptionRecordFactory.create(
        db_session,
        "user-2",
        package,
        price_paid=Decimal("1200.00"),
        status=SubscriptionStatus.CANCELLED,
    )
    return package


class TestAdminAccess:
    """Admin endpoints require the admin role."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/api/admin/subscriptions", "/api/admin/revenue"])
    async def test_regular_user_forbidden(self, client, user_headers, path):
        response = await client.get(path, headers=user_headers)

        assert response.status_code == 403
        assert response.json()["error"] == "AuthorizationError"

    @pytest.mark.asyncio
    async def test_anonymous_unauthorized(self, client):
        response = await client.get("/api/admin/revenue")

        assert response.status_code == 401


class TestAdminEndpoints:
    """Tests for admin listing and revenue."""

    @pytest.mark.asyncio
    async def test_revenue(self, client, admin_headers, ledger):
        response = await client.get("/api/admin/revenue", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["total_revenue"]) == Decimal("1500.00")
        assert Decimal(data["monthly_revenue"]) == Decimal("1500.00")
        assert data["active_subscriptions"] == 1
        assert data["total_users"] == 2

    @pytest.mark.asyncio
    async def test_all_subscriptions(self, client, admin_headers, ledger):
        response = await client.get("/api/admin/subscriptions", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert {r["user_id"] for r in data["items"]} == {"user-1", "user-2"}
        assert data["stats"]["active_subscriptions"] == 1

    @pytest.mark.asyncio
    async def test_all_subscriptions_total_spans_pages(self, client, admin_headers, ledger):
        response = await client.get(
            "/api/admin/subscriptions", params={"limit": 1}, headers=admin_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert len(data["items"]) == 1
        assert data["total"] == 2

    @pytest.mark.asyncio
    async def test_empty_ledger(self, client, admin_headers):
        response = await client.get("/api/admin/revenue", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["total_revenue"]) == Decimal("0")
        assert data["total_users"] == 0
