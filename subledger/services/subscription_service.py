"""
Subscription ledger service.

WHAT: Business logic for buying, upgrading and cancelling package
subscriptions, and for the credit that moves between them.

WHY: A user who changes plans mid-period keeps the value of the days they
did not use. The ledger must:
1. Keep at most one effectively-active record per user and package
2. Never hand out more credit than was paid for
3. Apply the supersede and the new purchase together or not at all

HOW: Coordinates SubscriptionRecordDAO with the pure pricing helpers
(proration, credits) and the pluggable ExpiryService. Every write runs in
the caller's session; a store failure rolls the session back and surfaces
as DatabaseError.

Credit policies:
- purchase(): an upgrade or same-length renewal of the same package
  supersedes the live record and carries its unused value into the new
  record's credits. A shorter plan supersedes it and forfeits that value.
- apply_credits_to_new_purchase(): cart-style checkout that cancels the
  user's newest live record and discounts the new price by its credits.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from subledger.core.config import settings
from subledger.core.exceptions import (
    ConflictError,
    DatabaseError,
    ExpiryServiceError,
    LedgerInvariantError,
    SubscriptionInactiveError,
    SubscriptionNotFoundError,
    ValidationError,
)
from subledger.dao.subscription import SubscriptionRecordDAO
from subledger.models.base import utcnow
from subledger.models.subscription import PlanDurationKey, SubscriptionRecord
from subledger.services import proration
from subledger.services.credits import days_remaining, unused_value
from subledger.services.expiry import ExpiryService, FixedDayExpiryService
from subledger.services.plan_catalog import (
    get_plan_duration,
    parse_duration_key,
    quantize_money,
)

logger = logging.getLogger(__name__)


# ============================================================================
# Data Classes
# ============================================================================


@dataclass
class PurchaseResult:
    """
    Outcome of a purchase.

    WHAT: The new record, the record it superseded (if any) and the credit
    carried over from it.
    """

    record: SubscriptionRecord
    superseded: Optional[SubscriptionRecord] = None
    credits_carried: Decimal = Decimal("0.00")


@dataclass
class CreditApplicationResult:
    """
    Outcome of a cart-style checkout.

    WHAT: The new record, the prior record that was cancelled to fund it,
    how much credit was applied and how much stayed on the prior record.
    """

    record: SubscriptionRecord
    prior: Optional[SubscriptionRecord] = None
    credits_applied: Decimal = Decimal("0.00")
    credits_left: Decimal = Decimal("0.00")


# ============================================================================
# Subscription Ledger Service
# ============================================================================


class SubscriptionService:
    """
    Service for the subscription ledger.

    WHAT: High-level interface for subscription lifecycle operations.

    WHY: Centralizes ledger rules:
    - Upgrade detection and credit carry-forward
    - Cancellation with unused-value retention
    - Expiry-aware history, active and expired views
    """

    def __init__(
        self,
        db: AsyncSession,
        expiry_service: Optional[ExpiryService] = None,
    ):
        """
        Initialize subscription service.

        Args:
            db: Async database session
            expiry_service: Expiry date calculator (fixed-day by default)
        """
        self.db = db
        self.dao = SubscriptionRecordDAO(db)
        self.expiry_service = expiry_service or FixedDayExpiryService()

    # ========================================================================
    # Purchase
    # ========================================================================

    async def purchase(
        self,
        user_id: str,
        package_id: int,
        package_name: str,
        base_price: Union[Decimal, int, str],
        duration_key: Union[str, PlanDurationKey],
        currency: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> PurchaseResult:
        """
        Buy a package for a plan duration.

        WHAT: Creates a new active record, superseding the user's live record
        on the same package if there is one.

        WHY: Buying the same package again is how users upgrade or renew.
        When the new plan is at least as long as the live one, the unused
        value of the live one is carried into the new record. A shorter plan
        still supersedes the live record but carries nothing.

        Args:
            user_id: Purchasing user
            package_id: Package being bought
            package_name: Package name to snapshot on the record
            base_price: Monthly base price of the package
            duration_key: Plan duration key
            currency: Currency code (defaults to settings.DEFAULT_CURRENCY)
            now: Reference time (defaults to current UTC time)

        Returns:
            PurchaseResult

        Raises:
            UnknownPlanDurationError: If duration_key is not in the catalog
            ValidationError: If base_price is negative
            ExpiryServiceError: If the expiry date cannot be computed
            DatabaseError: If the record store fails
        """
        key = parse_duration_key(duration_key)
        base = quantize_money(base_price)
        if base < 0:
            raise ValidationError(
                message="Base price must not be negative",
                base_price=str(base),
            )

        now = now or utcnow()
        currency = currency or settings.DEFAULT_CURRENCY
        new_duration = get_plan_duration(key)
        final_price = proration.price(base, key)

        existing = await self.dao.get_effective_for_package(user_id, package_id, now)

        credits_to_add = Decimal("0.00")
        credits_forfeited = Decimal("0.00")
        if existing is not None:
            existing_duration = get_plan_duration(existing.plan_duration)
            existing_value = unused_value(
                existing.price_paid,
                existing_duration.day_length,
                days_remaining(existing.expiry_date, now),
            )
            if new_duration.day_length >= existing_duration.day_length:
                credits_to_add = existing_value
            else:
                credits_forfeited = existing_value

        expiry_date = self._compute_expiry(now, key)
        credits_total = quantize_money(final_price + credits_to_add)
        self._check_invariants(
            credits_purchased=credits_total,
            credits_remaining=credits_total,
            start_date=now,
            expiry_date=expiry_date,
        )

        superseded = None
        try:
            if existing is not None:
                superseded = await self.dao.mark_expired(existing.id)

            record = await self.dao.create(
                user_id=user_id,
                package_id=package_id,
                package_name=package_name,
                plan_duration=key,
                price_paid=final_price,
                currency=currency,
                credits_purchased=credits_total,
                credits_remaining=credits_total,
                start_date=now,
                expiry_date=expiry_date,
                is_active=True,
            )
        except SQLAlchemyError as e:
            raise await self._store_failure("purchase", e, user_id=user_id, package_id=package_id)

        if superseded is not None:
            logger.info(
                f"Superseded subscription {superseded.id} with {record.id}, "
                f"carried {credits_to_add} {currency}",
                extra={
                    "user_id": user_id,
                    "package_id": package_id,
                    "superseded_id": superseded.id,
                    "credits_carried": str(credits_to_add),
                },
            )
        if credits_forfeited > 0:
            logger.warning(
                f"Subscription {existing.id} replaced by shorter plan {key.value}, "
                f"{credits_forfeited} {currency} unused value forfeited",
                extra={
                    "user_id": user_id,
                    "package_id": package_id,
                    "superseded_id": existing.id,
                    "credits_forfeited": str(credits_forfeited),
                },
            )
        logger.info(
            f"Subscription {record.id} purchased: package {package_id}, "
            f"{key.value}, {final_price} {currency}",
            extra={
                "user_id": user_id,
                "package_id": package_id,
                "plan_duration": key.value,
                "price_paid": str(final_price),
            },
        )

        return PurchaseResult(
            record=record,
            superseded=superseded,
            credits_carried=credits_to_add,
        )

    # ========================================================================
    # Cancellation
    # ========================================================================

    async def cancel(
        self,
        record_id: int,
        user_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> SubscriptionRecord:
        """
        Cancel a subscription, keeping its unused value as credit.

        Args:
            record_id: Record to cancel
            user_id: Owner to scope the lookup to (None for admin access)
            now: Reference time (defaults to current UTC time)

        Returns:
            The cancelled record

        Raises:
            SubscriptionNotFoundError: If the record does not exist or is
                not owned by user_id
            SubscriptionInactiveError: If the record is not effectively
                active; nothing is written
            DatabaseError: If the record store fails
        """
        now = now or utcnow()

        if user_id is not None:
            record = await self.dao.get_by_id_for_user(record_id, user_id)
        else:
            record = await self.dao.get_by_id(record_id)

        if record is None:
            raise SubscriptionNotFoundError(record_id=record_id)

        if not record.is_effectively_active(now):
            raise SubscriptionInactiveError(
                record_id=record_id,
                status=record.status.value,
            )

        duration = get_plan_duration(record.plan_duration)
        credits = unused_value(
            record.price_paid,
            duration.day_length,
            days_remaining(record.expiry_date, now),
        )
        self._check_invariants(
            credits_purchased=record.credits_purchased,
            credits_remaining=credits,
            start_date=record.start_date,
            expiry_date=record.expiry_date,
        )

        try:
            cancelled = await self.dao.mark_cancelled(record.id, credits)
        except SQLAlchemyError as e:
            raise await self._store_failure("cancel", e, user_id=record.user_id, record_id=record_id)

        logger.info(
            f"Subscription {record_id} cancelled, {credits} {record.currency} retained",
            extra={
                "user_id": record.user_id,
                "record_id": record_id,
                "credits_remaining": str(credits),
            },
        )
        return cancelled

    # ========================================================================
    # Cart-style checkout
    # ========================================================================

    async def apply_credits_to_new_purchase(
        self,
        user_id: str,
        package_id: int,
        package_name: str,
        total_price: Union[Decimal, int, str],
        currency: Optional[str] = None,
        duration_key: Union[str, PlanDurationKey] = PlanDurationKey.MONTHLY,
        now: Optional[datetime] = None,
    ) -> CreditApplicationResult:
        """
        Pay for a purchase with the credits of the newest live subscription.

        WHAT: The user's most recent effectively-active record (any package)
        funds the purchase: final price = max(0, total - credits). The prior
        record is cancelled and keeps whatever credit was not needed. The
        new record is a fresh charge with no credits of its own.

        WHY: Mirrors a cart checkout where existing credit is spent rather
        than carried. It is kept apart from purchase() because the two
        credit policies produce different records.

        Args:
            user_id: Purchasing user
            package_id: Package being bought
            package_name: Package name to snapshot on the record
            total_price: Cart total before credits
            currency: Currency code (defaults to settings.DEFAULT_CURRENCY)
            duration_key: Plan duration of the new record
            now: Reference time (defaults to current UTC time)

        Returns:
            CreditApplicationResult

        Raises:
            UnknownPlanDurationError: If duration_key is not in the catalog
            ValidationError: If total_price is negative
            ConflictError: If the target package has another live record
            ExpiryServiceError: If the expiry date cannot be computed
            DatabaseError: If the record store fails
        """
        key = parse_duration_key(duration_key)
        total = quantize_money(total_price)
        if total < 0:
            raise ValidationError(
                message="Total price must not be negative",
                total_price=str(total),
            )

        now = now or utcnow()
        currency = currency or settings.DEFAULT_CURRENCY

        prior = await self.dao.get_most_recent_effective(user_id, now)
        target_live = await self.dao.get_effective_for_package(user_id, package_id, now)
        if target_live is not None and (prior is None or target_live.id != prior.id):
            raise ConflictError(
                message="Package already has an active subscription; purchase it instead",
                package_id=package_id,
                record_id=target_live.id,
            )

        credits = quantize_money(prior.credits_remaining) if prior is not None else Decimal("0.00")
        applied = min(credits, total)
        final_price = quantize_money(total - applied)
        credits_left = quantize_money(credits - applied)

        expiry_date = self._compute_expiry(now, key)
        self._check_invariants(
            credits_purchased=final_price,
            credits_remaining=Decimal("0.00"),
            start_date=now,
            expiry_date=expiry_date,
        )

        cancelled_prior = None
        try:
            if prior is not None:
                cancelled_prior = await self.dao.mark_cancelled(prior.id, credits_left)

            record = await self.dao.create(
                user_id=user_id,
                package_id=package_id,
                package_name=package_name,
                plan_duration=key,
                price_paid=final_price,
                currency=currency,
                credits_purchased=final_price,
                credits_remaining=Decimal("0.00"),
                start_date=now,
                expiry_date=expiry_date,
                is_active=True,
            )
        except SQLAlchemyError as e:
            raise await self._store_failure("checkout", e, user_id=user_id, package_id=package_id)

        logger.info(
            f"Checkout {record.id}: applied {applied} of {credits} {currency} credit, "
            f"charged {final_price}",
            extra={
                "user_id": user_id,
                "package_id": package_id,
                "prior_id": prior.id if prior is not None else None,
                "credits_applied": str(applied),
                "price_paid": str(final_price),
            },
        )

        return CreditApplicationResult(
            record=record,
            prior=cancelled_prior,
            credits_applied=applied,
            credits_left=credits_left,
        )

    # ========================================================================
    # Queries
    # ========================================================================

    async def list_history(
        self, user_id: str, skip: int = 0, limit: int = 100
    ) -> List[SubscriptionRecord]:
        """Get every record of a user, newest first."""
        return await self.dao.list_for_user(user_id, skip=skip, limit=limit)

    async def list_effective_subscriptions(
        self, user_id: str, now: Optional[datetime] = None
    ) -> List[SubscriptionRecord]:
        """Get the records that currently grant access."""
        return await self.dao.list_effective_for_user(user_id, now or utcnow())

    async def list_expired(
        self, user_id: str, now: Optional[datetime] = None
    ) -> List[SubscriptionRecord]:
        """
        Get records that no longer grant access and were not cancelled.

        WHY: Includes records still stored as active whose expiry date has
        passed, since stored status is never rewritten lazily.
        """
        return await self.dao.list_expired_for_user(user_id, now or utcnow())

    async def get_effective_subscription(
        self, user_id: str, package_id: int, now: Optional[datetime] = None
    ) -> Optional[SubscriptionRecord]:
        """Get the user's live record on a package, if any."""
        return await self.dao.get_effective_for_package(user_id, package_id, now or utcnow())

    # ========================================================================
    # Helpers
    # ========================================================================

    def _compute_expiry(self, start_date: datetime, key: PlanDurationKey) -> datetime:
        """
        Ask the expiry service when a plan started now ends.

        Raises:
            ExpiryServiceError: If the service fails or returns a date that
                is not after start_date
        """
        try:
            expiry_date = self.expiry_service.expiry_date(start_date, key)
        except Exception as e:
            logger.error(
                f"Expiry service failed for {key.value}: {e}",
                extra={"plan_duration": key.value},
            )
            raise ExpiryServiceError(plan_duration=key.value) from e

        if not isinstance(expiry_date, datetime) or expiry_date <= start_date:
            logger.error(
                f"Expiry service returned {expiry_date!r} for start {start_date}",
                extra={"plan_duration": key.value},
            )
            raise ExpiryServiceError(
                message="Expiry date service returned an invalid date",
                plan_duration=key.value,
            )
        return expiry_date

    @staticmethod
    def _check_invariants(
        credits_purchased: Decimal,
        credits_remaining: Decimal,
        start_date: datetime,
        expiry_date: datetime,
    ) -> None:
        """
        Reject a record state that must never be persisted.

        Raises:
            LedgerInvariantError: If credits_remaining > credits_purchased
                or expiry_date <= start_date
        """
        if credits_remaining > credits_purchased:
            raise LedgerInvariantError(
                message="Remaining credits exceed purchased credits",
                credits_purchased=str(credits_purchased),
                credits_remaining=str(credits_remaining),
            )
        if expiry_date <= start_date:
            raise LedgerInvariantError(
                message="Expiry date must be after start date",
                start_date=start_date.isoformat(),
                expiry_date=expiry_date.isoformat(),
            )

    async def _store_failure(
        self, operation: str, error: SQLAlchemyError, **context
    ) -> DatabaseError:
        """
        Roll back the unit of work and build the error to raise.

        Returns:
            DatabaseError for the caller to raise
        """
        await self.db.rollback()
        logger.error(
            f"Record store failure during {operation}: {error}",
            extra={"operation": operation, **context},
        )
        return DatabaseError(operation=operation)
