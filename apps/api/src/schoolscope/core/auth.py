"""
Authentication and Authorization Module

FastAPI dependencies that resolve the calling user from a session token,
plus the admin predicate used by the moderation workflow.

The token is read from the ``Authorization: Bearer`` header first and
the session cookie second. Handlers receive an explicit ``CurrentUser``
(or None) and pass it down to the service layer; nothing below the
router looks at the request.
"""

import logging
from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from schoolscope.core.config import settings
from schoolscope.core.database import get_db

logger = logging.getLogger(__name__)

# Security scheme for OpenAPI documentation. auto_error is off so the
# cookie can be used as a fallback.
security = HTTPBearer(
    auto_error=False,
    description="Session token",
)


@dataclass
class CurrentUser:
    """
    The authenticated caller of a request.

    Attributes:
        id: User's unique identifier
        email: User's email address
        name: Display name (optional)
        is_admin: Whether the user may moderate school edits
        session_id: Stored id (token hash) of the session in use
    """

    id: str
    email: str
    is_admin: bool
    name: str | None = None
    session_id: str | None = None

    def __str__(self) -> str:
        return f"CurrentUser(id={self.id}, is_admin={self.is_admin})"


def is_admin(user: CurrentUser | None) -> bool:
    """True iff a user is present and carries the admin flag."""
    return user is not None and user.is_admin


def _extract_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None,
) -> str | None:
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.session_cookie_name)


async def get_optional_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser | None:
    """
    Resolve the caller, or None for anonymous requests.

    Invalid and expired tokens are treated as anonymous.
    """
    # Imported here to keep core free of module-level imports from modules/
    from schoolscope.modules.auth.service import validate_session

    token = _extract_token(request, credentials)
    if not token:
        return None

    found = await validate_session(db, token)
    if found is None:
        logger.debug("Session token rejected")
        return None

    session, user = found
    return CurrentUser(
        id=str(user.id),
        email=user.email,
        name=user.name,
        is_admin=user.is_admin,
        session_id=session.id,
    )


async def get_current_user(
    user: CurrentUser | None = Depends(get_optional_user),
) -> CurrentUser:
    """
    Require an authenticated caller.

    Raises:
        HTTPException 401: If no valid session accompanies the request
    """
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "AUTHENTICATION_REQUIRED",
                "message": "You must be signed in to do that.",
            },
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


__all__ = [
    "CurrentUser",
    "get_current_user",
    "get_optional_user",
    "is_admin",
]
