"""
School Edits Repository

Database operations for school edit proposals.

Functions here only flush; the service layer owns commit/rollback so that
a decision and the school change it applies land in one transaction.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Row, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from schoolscope.modules.school_edits.models import (
    VALID_STATUS_TRANSITIONS,
    EditStatus,
    SchoolEdit,
)
from schoolscope.modules.schools.models import EditableField, School
from schoolscope.modules.shared import utcnow
from schoolscope.modules.users.models import User


class InvalidStatusTransitionError(ValueError):
    """Raised when a status change outside the state machine is attempted."""

    def __init__(self, current_status: EditStatus, new_status: EditStatus):
        self.current_status = current_status
        self.new_status = new_status
        valid_transitions = VALID_STATUS_TRANSITIONS.get(current_status, set())
        super().__init__(
            f"Invalid status transition: {current_status.value} -> {new_status.value}. "
            f"Valid transitions: {sorted(s.value for s in valid_transitions)}"
        )


async def create(
    db: AsyncSession,
    *,
    school_id: str | UUID,
    user_id: str | UUID,
    field: EditableField,
    old_value: str | None,
    new_value: str,
    reason: str | None = None,
) -> SchoolEdit:
    """Create a new PENDING edit."""
    edit = SchoolEdit(
        school_id=str(school_id),
        user_id=str(user_id),
        field=field,
        old_value=old_value,
        new_value=new_value,
        reason=reason,
        status=EditStatus.PENDING,
    )

    db.add(edit)
    await db.flush()
    await db.refresh(edit)

    return edit


async def get_by_id(db: AsyncSession, id: str | UUID) -> SchoolEdit | None:
    """Get an edit by ID."""
    return await db.get(SchoolEdit, str(id))


async def has_pending_for_field(
    db: AsyncSession, school_id: str | UUID, field: EditableField
) -> bool:
    """Whether a PENDING edit already exists for this school field."""
    result = await db.execute(
        select(SchoolEdit.id)
        .where(
            SchoolEdit.school_id == str(school_id),
            SchoolEdit.field == field,
            SchoolEdit.status == EditStatus.PENDING,
        )
        .limit(1)
    )
    return result.first() is not None


async def transition_from_pending(
    db: AsyncSession,
    id: str | UUID,
    status: EditStatus,
    *,
    reviewed_by: str | UUID | None = None,
    reviewed_at: datetime | None = None,
) -> bool:
    """
    Move an edit out of PENDING with a single conditional UPDATE.

    ``UPDATE school_edits SET status=... WHERE id=:id AND status='PENDING'``

    Exactly one of two concurrent callers can match the row; the other sees
    zero affected rows. The caller must inspect the return value.

    Args:
        db: Database session
        id: Edit UUID
        status: Target status (APPROVED or REJECTED)
        reviewed_by: Admin making the decision
        reviewed_at: Decision time (defaults to now)

    Returns:
        True if this call performed the transition, False if the edit does
        not exist or is no longer PENDING

    Raises:
        InvalidStatusTransitionError: If ``status`` is not reachable from PENDING
    """
    if status not in VALID_STATUS_TRANSITIONS[EditStatus.PENDING]:
        raise InvalidStatusTransitionError(EditStatus.PENDING, status)

    result = await db.execute(
        update(SchoolEdit)
        .where(
            SchoolEdit.id == str(id),
            SchoolEdit.status == EditStatus.PENDING,
        )
        .values(
            status=status,
            reviewed_by=str(reviewed_by) if reviewed_by is not None else None,
            reviewed_at=reviewed_at or utcnow(),
        )
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount == 1


async def get_edits_for_admin(
    db: AsyncSession,
    *,
    status: EditStatus | None = None,
) -> list[Row]:
    """
    Get edits for the admin moderation queue, newest first.

    Each row is ``(SchoolEdit, user_name, user_email, school_name,
    school_suburb, school_state)``. Outer joins keep edits whose user or
    school has since been deleted; those columns are then None.

    Args:
        db: Database session
        status: Only return edits in this status (optional)
    """
    query = (
        select(
            SchoolEdit,
            User.name,
            User.email,
            School.name,
            School.suburb,
            School.state,
        )
        .outerjoin(User, User.id == SchoolEdit.user_id)
        .outerjoin(School, School.id == SchoolEdit.school_id)
    )

    if status is not None:
        query = query.where(SchoolEdit.status == status)

    query = query.order_by(SchoolEdit.created_at.desc())

    result = await db.execute(query)
    return list(result.all())


async def get_pending_for_school(db: AsyncSession, school_id: str | UUID) -> list[Row]:
    """
    Get a school's PENDING edits, newest first.

    Each row is ``(SchoolEdit, user_name, user_email)``.
    """
    result = await db.execute(
        select(SchoolEdit, User.name, User.email)
        .outerjoin(User, User.id == SchoolEdit.user_id)
        .where(
            SchoolEdit.school_id == str(school_id),
            SchoolEdit.status == EditStatus.PENDING,
        )
        .order_by(SchoolEdit.created_at.desc())
    )
    return list(result.all())
