"""
Core module - Configuration, database, security, and utilities.
"""

from schoolscope.core.config import get_settings, settings
from schoolscope.core.database import Base, close_db, get_db, init_db
from schoolscope.core.redis import close_redis, init_redis
from schoolscope.core.security import (
    generate_session_token,
    hash_password,
    hash_token,
    verify_password,
)

__all__ = [
    # Config
    "settings",
    "get_settings",
    # Database
    "Base",
    "get_db",
    "init_db",
    "close_db",
    # Redis
    "init_redis",
    "close_redis",
    # Security
    "hash_password",
    "verify_password",
    "generate_session_token",
    "hash_token",
]
