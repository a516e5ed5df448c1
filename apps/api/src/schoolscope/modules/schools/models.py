"""
School Models

Database model for the school directory and the closed set of school
attributes that community members may propose changes to.
"""

from enum import Enum

from sqlalchemy import Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from schoolscope.modules.shared import BaseModel


class EditableField(str, Enum):
    """
    School attributes that can be changed through an edit proposal.

    Each member's value is the name of the School column it writes to.
    """

    NAME = "name"
    SUBURB = "suburb"
    STATE = "state"
    POSTCODE = "postcode"
    ADDRESS = "address"
    PHONE = "phone"
    EMAIL = "email"
    WEBSITE = "website"
    PRINCIPAL_NAME = "principal_name"


class School(BaseModel):
    """
    A school listed in the directory.

    Lifecycle (import, creation, deletion) is managed outside the edit
    workflow, which only ever updates a single EditableField column.
    """

    __tablename__ = "schools"

    # ACARA identifier from the national school register
    acara_id: Mapped[str | None] = mapped_column(
        String(20),
        unique=True,
        nullable=True,
    )

    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        index=True,
    )

    # Location
    suburb: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        default="",
    )
    state: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
        default="",
        index=True,
    )
    postcode: Mapped[str] = mapped_column(
        String(4),
        nullable=False,
        default="",
    )
    address: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    latitude: Mapped[float | None] = mapped_column(
        Float,
        nullable=True,
    )
    longitude: Mapped[float | None] = mapped_column(
        Float,
        nullable=True,
    )

    # Contact information
    phone: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True,
    )
    email: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    website: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )
    principal_name: Mapped[str | None] = mapped_column(
        String(200),
        nullable=True,
    )

    # Classification (Primary/Secondary/Combined, Government/Catholic/Independent)
    type: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )
    sector: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<School(id={self.id}, name={self.name}, suburb={self.suburb}, state={self.state})>"

    def get_field(self, field: EditableField) -> str | None:
        """Current value of an editable attribute."""
        return getattr(self, field.value)
