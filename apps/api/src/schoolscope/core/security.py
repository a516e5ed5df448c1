"""
Security Utilities

Password hashing and session token helpers.

Session tokens are random URL-safe strings handed to the client once.
Only their SHA-256 digest is stored, so a leaked database does not
expose usable tokens.
"""

import hashlib
import secrets

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

SESSION_TOKEN_BYTES = 32  # 256 bits of entropy


def hash_password(password: str) -> str:
    """Hash a password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Check a plain password against a stored bcrypt hash."""
    try:
        return pwd_context.verify(plain_password, password_hash)
    except ValueError:
        # Malformed hash in the database
        return False


def generate_session_token() -> str:
    """Generate a new opaque session token."""
    return secrets.token_urlsafe(SESSION_TOKEN_BYTES)


def hash_token(token: str) -> str:
    """
    Hash a session token for storage.

    Args:
        token: The plain token sent by the client

    Returns:
        Hex-encoded SHA-256 digest used as the session id
    """
    return hashlib.sha256(token.encode()).hexdigest()
