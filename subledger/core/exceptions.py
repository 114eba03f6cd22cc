"""
Custom exception hierarchy for structured error handling.

WHY: Custom exceptions provide:
1. Consistent error handling across the API
2. HTTP status code mapping for FastAPI
3. Structured error responses with contextual data
4. One error per failed ledger operation, so callers decide on retries

The ledger taxonomy maps onto this hierarchy as:
- ValidationError: bad input or a state that must not be persisted
- ConflictError: operating on a record that is already terminal
- DependencyError: the record store or the expiry service failed
"""

from typing import Any, Dict, Optional


class AppException(Exception):
    """
    Base exception class for all application exceptions.

    WHY: Centralizing exception handling in a base class ensures consistent
    error responses, HTTP status code mapping, and prevents sensitive data
    leaks in error messages.

    All custom exceptions should inherit from this class.
    """

    status_code: int = 500
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        **context: Any,
    ):
        """
        Initialize exception with message and context.

        Args:
            message: Human-readable error message
            status_code: HTTP status code (overrides class default)
            **context: Additional context for debugging (filtered in to_dict)
        """
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize exception to dictionary for JSON response.

        Returns:
            Dictionary with error details (sensitive fields filtered out)
        """
        sensitive_fields = {"password", "token", "secret", "key", "api_key"}
        filtered_context = {
            k: v for k, v in self.context.items() if k.lower() not in sensitive_fields
        }

        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "status_code": self.status_code,
            "details": filtered_context if filtered_context else None,
        }


# ============================================================================
# Authentication & Authorization Exceptions
# ============================================================================


class AuthenticationError(AppException):
    """
    Raised when the bearer token is missing, invalid or expired.

    HTTP Status: 401 Unauthorized
    """

    status_code = 401
    default_message = "Authentication failed"


class AuthorizationError(AppException):
    """
    Raised when user lacks permissions for an action.

    HTTP Status: 403 Forbidden
    """

    status_code = 403
    default_message = "You do not have permission to perform this action"


class TokenExpiredError(AuthenticationError):
    """Raised when JWT token has expired."""

    default_message = "Token has expired"


class TokenInvalidError(AuthenticationError):
    """Raised when JWT token is malformed or has invalid signature."""

    default_message = "Token is invalid"


# ============================================================================
# Validation Exceptions
# ============================================================================


class ValidationError(AppException):
    """
    Raised when input validation fails.

    WHY: Validation errors should return 400 Bad Request with details
    about which fields failed validation, helping users correct their input.

    HTTP Status: 400 Bad Request
    """

    status_code = 400
    default_message = "Validation failed"


class UnknownPlanDurationError(ValidationError):
    """
    Raised when a duration key is not in the plan catalog.

    WHY: An unknown key on a strict path is a configuration error, not
    something the ledger can recover from by guessing a duration.
    """

    default_message = "Unknown plan duration"


class LedgerInvariantError(ValidationError):
    """
    Raised when a record about to be persisted would break a ledger invariant.

    WHY: States like credits_remaining > credits_purchased or
    expiry_date <= start_date are rejected before the write, never repaired
    after it.
    """

    default_message = "Subscription record violates ledger invariants"


# ============================================================================
# Resource Exceptions
# ============================================================================


class ResourceNotFoundError(AppException):
    """
    Raised when a requested resource doesn't exist.

    HTTP Status: 404 Not Found
    """

    status_code = 404
    default_message = "Resource not found"


class SubscriptionNotFoundError(ResourceNotFoundError):
    """Subscription record not found (or not owned by the caller)."""

    default_message = "Subscription not found"


class PackageNotFoundError(ResourceNotFoundError):
    """Package not found."""

    default_message = "Package not found"


# ============================================================================
# Conflict Exceptions
# ============================================================================


class ConflictError(AppException):
    """
    Raised when the request conflicts with the current state of a record.

    WHY: Cancelling or superseding a record that is already terminal must be
    reported, not silently accepted, so a retried request never double-applies.

    HTTP Status: 409 Conflict
    """

    status_code = 409
    default_message = "Request conflicts with current state"


class SubscriptionInactiveError(ConflictError):
    """Raised when a cancellation targets a record that is no longer active."""

    default_message = "Subscription is already inactive"


# ============================================================================
# Dependency Exceptions
# ============================================================================


class DependencyError(AppException):
    """
    Base exception for failures of collaborators the ledger depends on.

    WHY: Store and expiry-service failures are upstream problems, not caller
    mistakes; the whole operation fails with a single error and nothing is
    retried inside the core.

    HTTP Status: 502 Bad Gateway
    """

    status_code = 502
    default_message = "Dependency failure"


class DatabaseError(DependencyError):
    """
    Raised when the record store fails to read or write.

    WHY: Database errors are caught at the service layer and converted
    to application exceptions with safe error messages (no SQL exposed).

    HTTP Status: 503 Service Unavailable
    """

    status_code = 503
    default_message = "Record store unavailable"


class ExpiryServiceError(DependencyError):
    """Raised when the expiry-date service fails or breaks its contract."""

    default_message = "Expiry date service error"
