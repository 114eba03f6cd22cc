"""
JWT verification for identities issued by the external identity provider.

WHY: The ledger does not own users. It trusts bearer tokens signed with the
shared JWT_SECRET and reads two claims from them:
- sub: the user id every subscription record is keyed by
- role: "admin" unlocks the revenue view, anything else is a regular user
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from jose import ExpiredSignatureError, JWTError, jwt

from subledger.core.config import settings
from subledger.core.exceptions import TokenExpiredError, TokenInvalidError

ADMIN_ROLE = "admin"
USER_ROLE = "user"


@dataclass(frozen=True)
class CurrentUser:
    """Identity extracted from a verified token."""

    user_id: str
    role: str = USER_ROLE

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


def create_access_token(
    user_id: str,
    role: str = USER_ROLE,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a JWT access token.

    WHY: Production tokens come from the identity provider; this helper
    issues compatible tokens for local development and tests.

    Args:
        user_id: Value for the sub claim
        role: Value for the role claim
        expires_delta: Optional custom expiration time

    Returns:
        JWT token string
    """
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.JWT_EXPIRATION_MINUTES)

    to_encode = {
        "sub": user_id,
        "role": role,
        "exp": expire,
        "iat": datetime.utcnow(),
        "nbf": datetime.utcnow(),
    }

    return jwt.encode(
        to_encode,
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )


def verify_token(token: str) -> Dict[str, Any]:
    """
    Verify and decode a JWT token.

    Args:
        token: JWT token string

    Returns:
        Decoded token payload

    Raises:
        TokenExpiredError: If token has expired
        TokenInvalidError: If token is malformed or signature invalid
    """
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except ExpiredSignatureError:
        raise TokenExpiredError(message="Token has expired")
    except JWTError as e:
        raise TokenInvalidError(message="Invalid token", error=str(e))


def user_from_token(token: str) -> CurrentUser:
    """
    Build the caller identity from a bearer token.

    Raises:
        TokenExpiredError: If token has expired
        TokenInvalidError: If token is invalid or carries no subject
    """
    payload = verify_token(token)
    user_id = payload.get("sub")
    if not user_id:
        raise TokenInvalidError(message="Invalid token: missing subject")
    return CurrentUser(user_id=str(user_id), role=payload.get("role") or USER_ROLE)
