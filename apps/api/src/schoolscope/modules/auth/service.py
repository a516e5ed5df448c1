"""
Authentication Service Layer

Session lifecycle and account sign-up/sign-in.

Sessions:
- ``create_session`` issues a random token and stores only its SHA-256 hash
- ``validate_session`` resolves a token to ``(session, user)`` or None.
  Expired sessions are deleted; sessions past the halfway point of their
  lifetime are extended to a full lifetime again.
- ``invalidate_session`` deletes a session (logout)
"""

import logging
from datetime import timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolscope.core.config import settings
from schoolscope.core.security import (
    generate_session_token,
    hash_password,
    hash_token,
    verify_password,
)
from schoolscope.modules.auth import repository
from schoolscope.modules.auth.models import UserSession
from schoolscope.modules.shared import as_utc, utcnow
from schoolscope.modules.users.models import User
from schoolscope.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)


class AuthServiceError(Exception):
    """Base exception for authentication errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class EmailAlreadyRegisteredError(AuthServiceError):
    """Raised when signing up with an email that already has an account."""

    def __init__(self):
        super().__init__(
            message="An account with this email already exists.",
            error_code="EMAIL_ALREADY_REGISTERED",
            status_code=409,
        )


class InvalidCredentialsError(AuthServiceError):
    """Raised when the email/password pair does not match an account."""

    def __init__(self):
        super().__init__(
            message="Invalid email or password.",
            error_code="INVALID_CREDENTIALS",
            status_code=401,
        )


class AccountInactiveError(AuthServiceError):
    """Raised when a deactivated account tries to sign in."""

    def __init__(self):
        super().__init__(
            message="Your account has been deactivated.",
            error_code="ACCOUNT_INACTIVE",
            status_code=403,
        )


def _session_lifetime() -> timedelta:
    return timedelta(days=settings.session_expiry_days)


async def create_session(db: AsyncSession, user_id: str) -> tuple[UserSession, str]:
    """
    Start a new session for a user.

    Returns:
        Tuple of (stored session, plain token for the client)
    """
    token = generate_session_token()
    session = await repository.create(
        db,
        session_id=hash_token(token),
        user_id=str(user_id),
        expires_at=utcnow() + _session_lifetime(),
    )
    logger.info(f"Created session for user {user_id}")
    return session, token


async def validate_session(
    db: AsyncSession, token: str
) -> tuple[UserSession, User] | None:
    """
    Resolve a session token.

    Args:
        db: Database session
        token: Plain token presented by the client

    Returns:
        (session, user) if the token is valid and the user active, else None
    """
    session_id = hash_token(token)
    found = await repository.get_with_user(db, session_id)
    if found is None:
        return None

    session, user = found
    now = utcnow()
    expires_at = as_utc(session.expires_at)

    if expires_at <= now:
        logger.info(f"Session for user {user.id} expired, deleting")
        await repository.delete_by_id(db, session_id)
        return None

    if not user.is_active:
        return None

    lifetime = _session_lifetime()
    if expires_at - now < lifetime / 2:
        session = await repository.extend(db, session, now + lifetime)
        logger.debug(f"Extended session for user {user.id}")

    return session, user


async def invalidate_session(db: AsyncSession, session_id: str) -> None:
    """Delete a session by its stored id."""
    await repository.delete_by_id(db, session_id)
    logger.info("Session invalidated")


async def register(
    db: AsyncSession,
    *,
    email: str,
    password: str,
    name: str | None = None,
) -> tuple[User, str]:
    """
    Create an account and sign it in.

    Returns:
        Tuple of (new user, session token)

    Raises:
        EmailAlreadyRegisteredError: If the email is taken
    """
    if await UserRepository.email_exists(db, email):
        logger.warning("Registration attempt for an existing email")
        raise EmailAlreadyRegisteredError()

    try:
        user = await UserRepository.create(
            db,
            email=email,
            password_hash=hash_password(password),
            name=name,
        )
        await db.commit()
    except IntegrityError as e:
        # Lost a race with a concurrent sign-up for the same email
        await db.rollback()
        logger.warning("Registration lost a race for an existing email")
        raise EmailAlreadyRegisteredError() from e

    _, token = await create_session(db, user.id)
    return user, token


async def login(db: AsyncSession, *, email: str, password: str) -> tuple[User, str]:
    """
    Authenticate with email and password.

    Returns:
        Tuple of (user, session token)

    Raises:
        InvalidCredentialsError: Unknown email or wrong password
        AccountInactiveError: Account is deactivated
    """
    user = await UserRepository.get_by_email(db, email)

    if not user or not verify_password(password, user.password_hash):
        logger.warning("Failed login attempt")
        raise InvalidCredentialsError()

    if not user.is_active:
        logger.warning(f"Login attempt for inactive account: {user.id}")
        raise AccountInactiveError()

    _, token = await create_session(db, user.id)
    logger.info(f"User logged in: {user.id} (admin: {user.is_admin})")
    return user, token
