"""Authentication module."""

from schoolscope.modules.auth.models import UserSession
from schoolscope.modules.auth.router import admin_check_router, router
from schoolscope.modules.auth.schemas import LoginRequest, RegisterRequest, SessionResponse

__all__ = [
    "router",
    "admin_check_router",
    "UserSession",
    "LoginRequest",
    "RegisterRequest",
    "SessionResponse",
]
