"""
School Edits Router

Public endpoints for proposing changes to a school and viewing the
changes awaiting moderation.

Endpoints:
- POST /schools/{school_id}/edits - Propose a change to one field (signed in)
- GET /schools/{school_id}/edits - List the school's pending edits

Security:
- Proposals require a valid session
- Proposals are rate limited per user
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from schoolscope.core.auth import CurrentUser, get_current_user
from schoolscope.core.database import get_db
from schoolscope.core.rate_limit import enforce_rate_limit
from schoolscope.modules.school_edits import service
from schoolscope.modules.school_edits.schemas import (
    PendingEditItem,
    ProposeEditRequest,
    ProposeEditResponse,
    SchoolEditResponse,
    SchoolPendingEditsResponse,
)
from schoolscope.modules.school_edits.service import EditServiceError

logger = logging.getLogger(__name__)

router = APIRouter()

RATE_LIMIT_PROPOSE = (10, 60)  # 10 proposals per minute


@router.post(
    "/{school_id}/edits",
    response_model=ProposeEditResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Propose School Edit",
    description="""
Suggest a new value for one field of a school.

Editable fields: name, suburb, state, postcode, address, phone, email,
website, principal_name.

The edit is created with status PENDING and is applied only once an admin
approves it.
""",
    responses={
        400: {"description": "Unknown field or invalid value"},
        401: {"description": "Not signed in"},
        404: {"description": "School not found"},
        409: {"description": "A pending edit already exists for this field"},
        429: {"description": "Too many proposals"},
    },
)
async def propose_edit(
    school_id: str,
    data: ProposeEditRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ProposeEditResponse:
    await enforce_rate_limit(f"school_edits:propose:{user.id}", *RATE_LIMIT_PROPOSE)

    try:
        edit = await service.propose_edit(
            db,
            school_id=school_id,
            actor=user,
            field=data.field,
            new_value=data.new_value,
            reason=data.reason,
        )
        return ProposeEditResponse(edit=SchoolEditResponse.model_validate(edit))

    except EditServiceError as e:
        raise HTTPException(
            status_code=e.status_code,
            detail={
                "error": e.error_code,
                "message": e.message,
            },
        ) from e
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error proposing edit for school {school_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "INTERNAL_ERROR",
                "message": "An unexpected error occurred. Please try again later.",
            },
        ) from e


@router.get(
    "/{school_id}/edits",
    response_model=SchoolPendingEditsResponse,
    summary="List Pending Edits For School",
)
async def list_pending_edits(
    school_id: str,
    db: AsyncSession = Depends(get_db),
) -> SchoolPendingEditsResponse:
    """Pending edits for a school, newest first."""
    try:
        items = await service.list_pending_for_school(db, school_id)
    except Exception as e:
        logger.exception(f"Unexpected error listing edits for school {school_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "INTERNAL_ERROR",
                "message": "An unexpected error occurred. Please try again later.",
            },
        ) from e

    return SchoolPendingEditsResponse(
        edits=[
            PendingEditItem(
                **SchoolEditResponse.model_validate(item["edit"]).model_dump(),
                proposed_by=item["proposed_by"],
            )
            for item in items
        ]
    )
