"""
FastAPI dependencies for authentication and authorization.

WHY: Dependencies provide reusable identity checks that can be injected
into route handlers, so every ledger endpoint is scoped to the caller.
"""

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from subledger.core.auth import CurrentUser, user_from_token
from subledger.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    TokenExpiredError,
    TokenInvalidError,
)


# HTTP Bearer token security scheme
# WHY: auto_error=False lets us answer with our own 401 payload
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> CurrentUser:
    """
    Get current authenticated user from the bearer token.

    Usage:
        @router.get("/protected")
        async def protected_route(user: CurrentUser = Depends(get_current_user)):
            return {"user_id": user.user_id}

    Args:
        credentials: JWT token from Authorization header

    Returns:
        Authenticated CurrentUser

    Raises:
        AuthenticationError: If the token is missing, invalid or expired
    """
    if credentials is None:
        raise AuthenticationError(message="Not authenticated")

    try:
        return user_from_token(credentials.credentials)
    except (TokenExpiredError, TokenInvalidError) as e:
        raise AuthenticationError(
            message=e.message,
            status_code=e.status_code,
        )


async def require_admin(
    current_user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """
    Require user to have the admin role.

    Args:
        current_user: User from get_current_user dependency

    Returns:
        CurrentUser (guaranteed to be admin)

    Raises:
        AuthorizationError: If user is not admin
    """
    if not current_user.is_admin:
        raise AuthorizationError(
            message="Admin access required",
            user_id=current_user.user_id,
            user_role=current_user.role,
        )

    return current_user
