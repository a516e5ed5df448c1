"""Authentication router."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from schoolscope.core.auth import CurrentUser, get_current_user, get_optional_user, is_admin
from schoolscope.core.config import settings
from schoolscope.core.database import get_db
from schoolscope.modules.auth import service
from schoolscope.modules.auth.schemas import (
    AdminCheckResponse,
    LoginRequest,
    LogoutResponse,
    RegisterRequest,
    SessionResponse,
    UserResponse,
)
from schoolscope.modules.auth.service import AuthServiceError
from schoolscope.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

router = APIRouter()

# Mounted under /admin
admin_check_router = APIRouter()


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_expiry_days * 24 * 60 * 60,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


def _handle_service_error(e: AuthServiceError) -> None:
    """Convert service errors to HTTPExceptions."""
    raise HTTPException(
        status_code=e.status_code,
        detail={
            "error": e.error_code,
            "message": e.message,
        },
    ) from e


@router.post("/register", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> SessionResponse:
    """
    Create an account and start a session.

    Raises:
        HTTPException 409: Email already registered
    """
    try:
        user, token = await service.register(
            db, email=data.email, password=data.password, name=data.name
        )
    except AuthServiceError as e:
        _handle_service_error(e)

    _set_session_cookie(response, token)
    return SessionResponse(user=UserResponse.model_validate(user), session_token=token)


@router.post("/login", response_model=SessionResponse)
async def login(
    credentials: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> SessionResponse:
    """
    Authenticate with email and password and start a session.

    Raises:
        HTTPException 401: Invalid credentials
        HTTPException 403: Account inactive
    """
    try:
        user, token = await service.login(
            db, email=credentials.email, password=credentials.password
        )
    except AuthServiceError as e:
        _handle_service_error(e)

    _set_session_cookie(response, token)
    return SessionResponse(user=UserResponse.model_validate(user), session_token=token)


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    response: Response,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> LogoutResponse:
    """End the current session."""
    if user.session_id:
        await service.invalidate_session(db, user.session_id)
    response.delete_cookie(settings.session_cookie_name)
    logger.info(f"User logged out: {user.id}")
    return LogoutResponse()


@router.get("/me", response_model=UserResponse)
async def me(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """Return the signed-in user."""
    record = await UserRepository.get_by_id(db, user.id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "AUTHENTICATION_REQUIRED",
                "message": "You must be signed in to do that.",
            },
        )
    return UserResponse.model_validate(record)


@admin_check_router.get("/check", response_model=AdminCheckResponse)
async def admin_check(
    user: CurrentUser | None = Depends(get_optional_user),
) -> AdminCheckResponse:
    """Report whether the caller is an admin. Anonymous callers get false."""
    return AdminCheckResponse(is_admin=is_admin(user))
