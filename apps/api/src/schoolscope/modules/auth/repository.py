"""
Session Repository

Database operations for login sessions.
"""

from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolscope.modules.auth.models import UserSession
from schoolscope.modules.users.models import User


async def create(
    db: AsyncSession,
    session_id: str,
    user_id: str,
    expires_at: datetime,
) -> UserSession:
    """Store a new session."""
    session = UserSession(id=session_id, user_id=user_id, expires_at=expires_at)
    db.add(session)
    await db.commit()
    await db.refresh(session)
    return session


async def get_with_user(
    db: AsyncSession, session_id: str
) -> tuple[UserSession, User] | None:
    """Load a session together with its user."""
    result = await db.execute(
        select(UserSession, User)
        .join(User, User.id == UserSession.user_id)
        .where(UserSession.id == session_id)
    )
    row = result.first()
    if row is None:
        return None
    return row[0], row[1]


async def extend(db: AsyncSession, session: UserSession, expires_at: datetime) -> UserSession:
    """Push a session's expiry forward."""
    session.expires_at = expires_at
    await db.commit()
    return session


async def delete_by_id(db: AsyncSession, session_id: str) -> None:
    """Delete a single session."""
    await db.execute(delete(UserSession).where(UserSession.id == session_id))
    await db.commit()

