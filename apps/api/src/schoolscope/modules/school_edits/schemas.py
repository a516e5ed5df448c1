"""
School Edit Schemas

Pydantic schemas for request validation and response serialization.

Request bodies take ``field`` and ``status`` loosely typed: the service
layer validates them, after the admin check, so that bad values surface as
400 responses with a specific error code rather than generic 422 validation
errors.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from schoolscope.modules.school_edits.models import EditStatus
from schoolscope.modules.schools.models import EditableField

# ============================================
# Request Schemas
# ============================================


class ProposeEditRequest(BaseModel):
    """Request body for POST /schools/{school_id}/edits."""

    field: str = Field(..., description="Editable school field, e.g. 'phone'")
    new_value: str = Field(..., description="Proposed value")
    reason: str | None = Field(
        None,
        max_length=1000,
        description="Why the change is needed (optional)",
    )


class DecideEditRequest(BaseModel):
    """Request body for PUT /admin/schools/edits/{edit_id}."""

    status: Any = Field(
        None,
        description="APPROVED or REJECTED",
        json_schema_extra={"example": "APPROVED"},
    )
    reason: str | None = Field(
        None,
        max_length=1000,
        description="Optional note for the proposer",
    )


# ============================================
# Response Schemas
# ============================================


class SchoolEditResponse(BaseModel):
    """A school edit record."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: str
    user_id: str
    field: EditableField
    old_value: str | None = None
    new_value: str
    reason: str | None = None
    status: EditStatus
    reviewed_by: str | None = None
    reviewed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class EditUserSummary(BaseModel):
    """Proposer details shown alongside an edit."""

    name: str | None = None
    email: str


class EditSchoolSummary(BaseModel):
    """Target school details shown alongside an edit."""

    name: str
    suburb: str
    state: str


class AdminEditListItem(SchoolEditResponse):
    """Edit enriched with proposer and school details for the admin queue.

    ``user`` / ``school`` are null when the referenced record no longer exists.
    """

    user: EditUserSummary | None = None
    school: EditSchoolSummary | None = None


class AdminEditListResponse(BaseModel):
    success: bool = True
    edits: list[AdminEditListItem]


class DecideEditResponse(BaseModel):
    success: bool = True
    edit: SchoolEditResponse
    message: str


class ProposeEditResponse(BaseModel):
    success: bool = True
    edit: SchoolEditResponse
    message: str = "Edit submitted for review"


class PendingEditItem(SchoolEditResponse):
    """Pending edit shown on a school's public page."""

    proposed_by: str | None = Field(None, description="Proposer display name")


class SchoolPendingEditsResponse(BaseModel):
    success: bool = True
    edits: list[PendingEditItem]
