"""
School Edit Models

Community-proposed changes to a single school attribute, moderated by
an admin.
"""

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, Index, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from schoolscope.modules.schools.models import EditableField
from schoolscope.modules.shared import BaseModel


class EditStatus(str, enum.Enum):
    """Moderation status of a school edit."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class SchoolEdit(BaseModel):
    """
    A proposed change to one field of one school.

    Created PENDING; an admin moves it to APPROVED (the change is written
    to the school) or REJECTED. Both outcomes are terminal.
    """

    __tablename__ = "school_edits"

    # Weak references: no FK constraints, so a school or user can be deleted
    # while its edit history remains.
    school_id: Mapped[str] = mapped_column(Uuid(as_uuid=False), nullable=False)
    user_id: Mapped[str] = mapped_column(Uuid(as_uuid=False), nullable=False)

    # What changes
    field: Mapped[EditableField] = mapped_column(
        Enum(EditableField, name="editable_field", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    old_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    new_value: Mapped[str] = mapped_column(Text, nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Moderation
    status: Mapped[EditStatus] = mapped_column(
        Enum(EditStatus, name="edit_status"),
        nullable=False,
        default=EditStatus.PENDING,
    )
    reviewed_by: Mapped[str | None] = mapped_column(Uuid(as_uuid=False), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_school_edits_status_created_at", "status", "created_at"),
        Index("ix_school_edits_school_field_status", "school_id", "field", "status"),
        Index("ix_school_edits_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<SchoolEdit(id={self.id}, school_id={self.school_id}, "
            f"field={self.field.value}, status={self.status.value})>"
        )


# Valid status transitions. PENDING is the only non-terminal state.
VALID_STATUS_TRANSITIONS: dict[EditStatus, set[EditStatus]] = {
    EditStatus.PENDING: {EditStatus.APPROVED, EditStatus.REJECTED},
    EditStatus.APPROVED: set(),
    EditStatus.REJECTED: set(),
}

# Statuses an admin may choose when deciding an edit
DECISION_STATUSES = frozenset({EditStatus.APPROVED, EditStatus.REJECTED})
