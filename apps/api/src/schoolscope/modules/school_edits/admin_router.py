"""
School Edits Admin Router

Moderation endpoints for administrators.

Endpoints:
- GET /admin/schools/edits - List edits, optionally filtered by status
- PUT /admin/schools/edits/{edit_id} - Approve or reject a pending edit

Security:
- Both endpoints require an admin session; anonymous callers and
  non-admins receive 403
- Decisions are rate limited per admin
- Every decision is logged with the admin's id
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from schoolscope.core.auth import CurrentUser, get_optional_user
from schoolscope.core.database import get_db
from schoolscope.core.rate_limit import enforce_rate_limit
from schoolscope.modules.school_edits import service
from schoolscope.modules.school_edits.models import EditStatus
from schoolscope.modules.school_edits.schemas import (
    AdminEditListItem,
    AdminEditListResponse,
    DecideEditRequest,
    DecideEditResponse,
    SchoolEditResponse,
)
from schoolscope.modules.school_edits.service import EditServiceError

logger = logging.getLogger(__name__)

router = APIRouter()

RATE_LIMIT_DECIDE = (30, 60)  # 30 decisions per minute


def _handle_service_error(e: EditServiceError) -> None:
    """Convert service errors to HTTPExceptions."""
    raise HTTPException(
        status_code=e.status_code,
        detail={
            "error": e.error_code,
            "message": e.message,
        },
    ) from e


def _internal_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred. Please try again later.",
        },
    )


@router.get(
    "",
    response_model=AdminEditListResponse,
    summary="List School Edits",
    description="""
List school edits for moderation, newest first.

**Filters:**
- `status`: PENDING, APPROVED, REJECTED or ALL (default: all)

Each edit includes the proposer's name/email and the school's
name/suburb/state. Either is null if the record has since been deleted.

**Access:** Admin only
""",
    responses={
        400: {"description": "Unknown status filter"},
        403: {"description": "Forbidden - not an admin"},
    },
)
async def list_edits(
    status_filter: str | None = Query(
        None,
        alias="status",
        description="PENDING, APPROVED, REJECTED or ALL",
    ),
    user: CurrentUser | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
) -> AdminEditListResponse:
    try:
        items = await service.list_edits(db, user, status=status_filter)
    except EditServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        logger.exception(f"Unexpected error listing school edits: {e}")
        raise _internal_error() from e

    return AdminEditListResponse(
        edits=[
            AdminEditListItem(
                **SchoolEditResponse.model_validate(item["edit"]).model_dump(),
                user=item["user"],
                school=item["school"],
            )
            for item in items
        ]
    )


@router.put(
    "/{edit_id}",
    response_model=DecideEditResponse,
    summary="Approve or Reject School Edit",
    description="""
Decide a pending school edit.

- **APPROVED**: the proposed value is written to the school
- **REJECTED**: the school is left unchanged

An edit can be decided once. A second decision fails with
`EDIT_ALREADY_PROCESSED` whatever its value. If the school has been
deleted, approval fails with `SCHOOL_NOT_FOUND` and the edit stays PENDING.

The proposer is emailed the outcome.

**Access:** Admin only
""",
    responses={
        400: {"description": "Invalid status, or edit already processed"},
        403: {"description": "Forbidden - not an admin"},
        404: {"description": "Edit or school not found"},
        429: {"description": "Too many decisions"},
    },
)
async def decide_edit(
    edit_id: str,
    data: DecideEditRequest | None = None,
    user: CurrentUser | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
) -> DecideEditResponse:
    data = data or DecideEditRequest()

    try:
        admin = service.require_admin(user)
        await enforce_rate_limit(f"school_edits:decide:{admin.id}", *RATE_LIMIT_DECIDE)

        edit = await service.decide_edit(db, edit_id, data.status, admin, reason=data.reason)

        message = (
            "Edit approved and applied to school"
            if edit.status == EditStatus.APPROVED
            else "Edit rejected"
        )
        return DecideEditResponse(edit=SchoolEditResponse.model_validate(edit), message=message)

    except EditServiceError as e:
        _handle_service_error(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error deciding edit {edit_id}: {e}")
        raise _internal_error() from e
