"""
User Models

Database models for community members and administrators.
"""

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from schoolscope.modules.shared import BaseModel


class User(BaseModel):
    """
    Registered SchoolScope user.

    Any authenticated user may propose school edits. Users with
    ``is_admin`` set moderate those proposals.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    name: Mapped[str | None] = mapped_column(
        String(200),
        nullable=True,
    )
    password_hash: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    # Permissions
    is_admin: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    # Account status
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, is_admin={self.is_admin})>"

    @property
    def display_name(self) -> str:
        """Name to show in listings, falling back to the email address."""
        return self.name or self.email
