"""
School Edits Service Layer

Business logic for the school edit moderation workflow.

This module implements:
1. Proposal:
   - Any signed-in user proposes a new value for one editable school field
   - The field and value are validated against the closed EditableField set
   - The school's current value is captured as ``old_value``
   - The edit is created PENDING

2. Decision (admin only):
   - PENDING -> APPROVED writes ``new_value`` to exactly that school column
   - PENDING -> REJECTED leaves the school untouched
   - The status check-and-set is one conditional UPDATE; a second decision
     on the same edit always fails with EditAlreadyProcessedError
   - Status change and school change commit together or not at all
   - The proposer is emailed after commit (best effort)

3. Listing:
   - Admin moderation queue, optionally filtered by status, newest first
   - Public list of a school's pending edits
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from schoolscope.core.auth import CurrentUser, is_admin
from schoolscope.core.config import settings
from schoolscope.core.email import send_edit_approved, send_edit_rejected
from schoolscope.modules.school_edits import repository
from schoolscope.modules.school_edits.field_changes import FieldChangeError, parse_field_change
from schoolscope.modules.school_edits.models import DECISION_STATUSES, EditStatus, SchoolEdit
from schoolscope.modules.schools.repository import SchoolRepository
from schoolscope.modules.shared import utcnow
from schoolscope.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)


class EditServiceError(Exception):
    """Base exception for school edit service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class AdminAccessRequiredError(EditServiceError):
    """Raised when a non-admin calls an admin-only operation."""

    def __init__(self):
        super().__init__(
            message="Admin access required",
            error_code="ADMIN_ACCESS_REQUIRED",
            status_code=403,
        )


class AuthenticationRequiredError(EditServiceError):
    """Raised when an anonymous caller tries to propose an edit."""

    def __init__(self):
        super().__init__(
            message="You must be signed in to suggest an edit.",
            error_code="AUTHENTICATION_REQUIRED",
            status_code=401,
        )


class InvalidDecisionError(EditServiceError):
    """Raised when a decision or status filter is not a recognised status."""

    def __init__(self, value: object, allowed: str = "APPROVED or REJECTED"):
        super().__init__(
            message=f"Invalid status '{value}'. Must be {allowed}",
            error_code="INVALID_STATUS",
            status_code=400,
        )


class InvalidFieldChangeError(EditServiceError):
    """Raised when a proposed field or value is rejected."""

    def __init__(self, message: str, error_code: str):
        super().__init__(message=message, error_code=error_code, status_code=400)


class EditNotFoundError(EditServiceError):
    """Raised when an edit is not found."""

    def __init__(self, edit_id: str | UUID | None = None):
        message = f"Edit request {edit_id} not found" if edit_id else "Edit request not found"
        super().__init__(
            message=message,
            error_code="EDIT_NOT_FOUND",
            status_code=404,
        )


class SchoolNotFoundError(EditServiceError):
    """Raised when the school an edit refers to does not exist."""

    def __init__(self, school_id: str | UUID | None = None):
        message = f"School {school_id} not found" if school_id else "School not found"
        super().__init__(
            message=message,
            error_code="SCHOOL_NOT_FOUND",
            status_code=404,
        )


class EditAlreadyProcessedError(EditServiceError):
    """Raised when deciding an edit that is no longer PENDING."""

    def __init__(self, current_status: EditStatus | None = None):
        message = "Edit request has already been processed"
        if current_status is not None:
            message = f"{message} (status: {current_status.value})"
        super().__init__(
            message=message,
            error_code="EDIT_ALREADY_PROCESSED",
            status_code=400,
        )


class DuplicatePendingEditError(EditServiceError):
    """Raised when a field already has a pending edit and duplicates are refused."""

    def __init__(self, field: str):
        super().__init__(
            message=f"There is already a pending edit for {field}",
            error_code="DUPLICATE_PENDING_EDIT",
            status_code=409,
        )


# ============================================
# Admin gate
# ============================================


def require_admin(actor: CurrentUser | None) -> CurrentUser:
    """
    Guard for admin-only operations.

    Raises:
        AdminAccessRequiredError: If the actor is absent or not an admin
    """
    if not is_admin(actor):
        logger.warning(
            f"Admin access denied for {actor.id if actor else 'anonymous caller'}"
        )
        raise AdminAccessRequiredError()
    return actor


def parse_decision(value: object) -> EditStatus:
    """
    Validate an admin decision.

    Raises:
        InvalidDecisionError: Unless value is APPROVED or REJECTED
    """
    if not isinstance(value, str):
        raise InvalidDecisionError(value)
    try:
        decision = EditStatus(value)
    except ValueError as e:
        raise InvalidDecisionError(value) from e
    if decision not in DECISION_STATUSES:
        raise InvalidDecisionError(value)
    return decision


def parse_status_filter(value: str | None) -> EditStatus | None:
    """
    Validate the admin list filter. None or "ALL" means no filter.

    Raises:
        InvalidDecisionError: For anything other than a known status
    """
    if value is None or value == "" or value.upper() == "ALL":
        return None
    try:
        return EditStatus(value.upper())
    except ValueError as e:
        raise InvalidDecisionError(value, allowed="PENDING, APPROVED, REJECTED or ALL") from e


def _as_uuid(value: str | UUID) -> str | None:
    """Canonical string form of an id, or None if it is not a UUID."""
    try:
        return str(UUID(str(value)))
    except ValueError:
        return None


# ============================================
# Proposal
# ============================================


async def propose_edit(
    db: AsyncSession,
    *,
    school_id: str | UUID,
    actor: CurrentUser | None,
    field: str,
    new_value: str,
    reason: str | None = None,
) -> SchoolEdit:
    """
    Propose a change to one field of a school.

    Args:
        db: Database session
        school_id: School to change
        actor: Signed-in caller
        field: Name of an editable school field
        new_value: Proposed value
        reason: Optional justification

    Returns:
        The new PENDING SchoolEdit

    Raises:
        AuthenticationRequiredError: If actor is None
        InvalidFieldChangeError: If the field or value is rejected
        SchoolNotFoundError: If the school doesn't exist
        DuplicatePendingEditError: If duplicates are refused and one exists
    """
    if actor is None:
        raise AuthenticationRequiredError()

    try:
        change = parse_field_change(field, new_value)
    except FieldChangeError as e:
        logger.warning(f"Rejected edit proposal from {actor.id}: {e.message}")
        raise InvalidFieldChangeError(e.message, e.error_code) from e

    school_key = _as_uuid(school_id)
    school = await SchoolRepository.get_by_id(db, school_key) if school_key else None
    if not school:
        logger.warning(f"Edit proposed for missing school: {school_id}")
        raise SchoolNotFoundError(school_id)

    # Multiple pending edits per field are allowed unless configured otherwise
    if settings.reject_duplicate_pending_edits and await repository.has_pending_for_field(
        db, school.id, change.field
    ):
        logger.warning(f"Duplicate pending edit for school {school_id} field {change.field.value}")
        raise DuplicatePendingEditError(change.field.value)

    try:
        edit = await repository.create(
            db,
            school_id=school.id,
            user_id=actor.id,
            field=change.field,
            old_value=school.get_field(change.field),
            new_value=change.value,
            reason=reason,
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(
        f"User {actor.id} proposed edit {edit.id} for school {school_id}: "
        f"field={change.field.value}"
    )
    return edit


# ============================================
# Decision
# ============================================


async def decide_edit(
    db: AsyncSession,
    edit_id: str | UUID,
    decision: object,
    actor: CurrentUser | None,
    *,
    reason: str | None = None,
) -> SchoolEdit:
    """
    Approve or reject a pending edit.

    The status change is a conditional UPDATE on ``status = 'PENDING'``. On
    approval the school column is updated in the same transaction; if the
    school has been deleted the transaction is rolled back and the edit
    stays PENDING.

    Args:
        db: Database session
        edit_id: Edit to decide
        decision: "APPROVED" or "REJECTED"
        actor: Caller; must be an admin
        reason: Optional note included in the rejection email

    Returns:
        The updated SchoolEdit

    Raises:
        AdminAccessRequiredError: If actor is not an admin
        InvalidDecisionError: If decision is not APPROVED/REJECTED
        EditNotFoundError: If the edit doesn't exist
        EditAlreadyProcessedError: If the edit is not PENDING
        SchoolNotFoundError: If approving and the school no longer exists
    """
    admin = require_admin(actor)
    status = parse_decision(decision)

    logger.info(f"Admin {admin.id} deciding edit {edit_id}: {status.value}")

    edit_key = _as_uuid(edit_id)
    edit = await repository.get_by_id(db, edit_key) if edit_key else None
    if not edit:
        logger.warning(f"Edit not found: {edit_id}")
        raise EditNotFoundError(edit_id)

    if edit.status != EditStatus.PENDING:
        logger.warning(f"Edit {edit_id} already processed: status={edit.status.value}")
        raise EditAlreadyProcessedError(edit.status)

    try:
        # ============================================
        # ATOMIC TRANSACTION: status change + school change
        # ============================================
        transitioned = await repository.transition_from_pending(
            db,
            edit.id,
            status,
            reviewed_by=admin.id,
            reviewed_at=utcnow(),
        )
        if not transitioned:
            # Another decision committed between our read and our update
            logger.warning(f"Edit {edit_id} was decided concurrently")
            raise EditAlreadyProcessedError()

        if status == EditStatus.APPROVED:
            applied = await SchoolRepository.apply_field_change(
                db, edit.school_id, edit.field, edit.new_value
            )
            if not applied:
                logger.warning(
                    f"Cannot approve edit {edit_id}: school {edit.school_id} no longer exists"
                )
                raise SchoolNotFoundError(edit.school_id)

        await db.commit()
        # ============================================
        # END ATOMIC TRANSACTION
        # ============================================
    except Exception:
        await db.rollback()
        raise

    await db.refresh(edit)
    logger.info(f"Edit {edit_id} {status.value.lower()} by admin {admin.id}")

    await _notify_proposer(db, edit, reason)
    return edit


async def _notify_proposer(db: AsyncSession, edit: SchoolEdit, reason: str | None) -> None:
    """Email the proposer about a decision. Failures are logged and ignored."""
    try:
        user = await UserRepository.get_by_id(db, edit.user_id)
        if user is None:
            logger.info(f"Proposer of edit {edit.id} no longer exists, skipping email")
            return

        school = await SchoolRepository.get_by_id(db, edit.school_id)
        school_name = school.name if school else "a school"
        field_label = edit.field.value.replace("_", " ").capitalize()

        if edit.status == EditStatus.APPROVED:
            await send_edit_approved(
                to_email=user.email,
                user_name=user.display_name,
                school_name=school_name,
                field_label=field_label,
                new_value=edit.new_value,
                school_id=str(edit.school_id),
            )
        else:
            await send_edit_rejected(
                to_email=user.email,
                user_name=user.display_name,
                school_name=school_name,
                field_label=field_label,
                new_value=edit.new_value,
                reason=reason,
            )
    except Exception as e:
        # Don't fail the request - email is non-critical
        logger.error(f"Failed to send decision email for edit {edit.id}: {e}", exc_info=True)


# ============================================
# Listing
# ============================================


async def list_edits(
    db: AsyncSession,
    actor: CurrentUser | None,
    *,
    status: str | None = None,
) -> list[dict]:
    """
    Admin moderation queue.

    Args:
        db: Database session
        actor: Caller; must be an admin
        status: PENDING, APPROVED, REJECTED, ALL or None

    Returns:
        Newest-first list of dicts with ``edit``, ``user`` and ``school`` keys.
        ``user``/``school`` are None when the referenced record is gone.

    Raises:
        AdminAccessRequiredError: If actor is not an admin
        InvalidDecisionError: If status is not a recognised filter
    """
    admin = require_admin(actor)
    status_filter = parse_status_filter(status)

    rows = await repository.get_edits_for_admin(db, status=status_filter)

    items = []
    for edit, user_name, user_email, school_name, school_suburb, school_state in rows:
        items.append(
            {
                "edit": edit,
                "user": (
                    {"name": user_name, "email": user_email} if user_email is not None else None
                ),
                "school": (
                    {"name": school_name, "suburb": school_suburb, "state": school_state}
                    if school_name is not None
                    else None
                ),
            }
        )

    logger.info(
        f"Admin {admin.id} listed edits: status={status_filter.value if status_filter else 'ALL'}, "
        f"count={len(items)}"
    )
    return items


async def list_pending_for_school(db: AsyncSession, school_id: str | UUID) -> list[dict]:
    """
    Pending edits for one school, newest first.

    Returns:
        List of dicts with ``edit`` and ``proposed_by`` (display name or None)
    """
    school_key = _as_uuid(school_id)
    if school_key is None:
        return []

    rows = await repository.get_pending_for_school(db, school_key)
    return [
        {"edit": edit, "proposed_by": user_name or user_email}
        for edit, user_name, user_email in rows
    ]
