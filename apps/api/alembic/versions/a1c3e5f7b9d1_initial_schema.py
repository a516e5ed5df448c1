"""initial schema

Revision ID: a1c3e5f7b9d1
Revises:
Create Date: 2026-10-17 09:00:00.000000

This migration creates:
1. users - community members and admins
2. user_sessions - server-side login sessions (token digest as primary key)
3. schools - the school directory
4. school_edits - proposed single-field school changes awaiting moderation

school_edits deliberately has no foreign keys: edits outlive the school or
user they refer to.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "a1c3e5f7b9d1"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

EDITABLE_FIELDS = (
    "name",
    "suburb",
    "state",
    "postcode",
    "address",
    "phone",
    "email",
    "website",
    "principal_name",
)
EDIT_STATUSES = ("PENDING", "APPROVED", "REJECTED")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Create users, user_sessions, schools and school_edits."""
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(as_uuid=False), nullable=False),
        *_timestamps(),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=True),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "user_sessions",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("user_id", sa.Uuid(as_uuid=False), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_user_sessions_user_id", "user_sessions", ["user_id"])

    op.create_table(
        "schools",
        sa.Column("id", sa.Uuid(as_uuid=False), nullable=False),
        *_timestamps(),
        sa.Column("acara_id", sa.String(length=20), nullable=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        # Location
        sa.Column("suburb", sa.String(length=100), nullable=False),
        sa.Column("state", sa.String(length=3), nullable=False),
        sa.Column("postcode", sa.String(length=4), nullable=False),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        # Contact information
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("website", sa.String(length=500), nullable=True),
        sa.Column("principal_name", sa.String(length=200), nullable=True),
        # Classification
        sa.Column("type", sa.String(length=50), nullable=True),
        sa.Column("sector", sa.String(length=50), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("acara_id"),
    )
    op.create_index("ix_schools_name", "schools", ["name"])
    op.create_index("ix_schools_state", "schools", ["state"])

    op.create_table(
        "school_edits",
        sa.Column("id", sa.Uuid(as_uuid=False), nullable=False),
        *_timestamps(),
        sa.Column("school_id", sa.Uuid(as_uuid=False), nullable=False),
        sa.Column("user_id", sa.Uuid(as_uuid=False), nullable=False),
        sa.Column("field", sa.Enum(*EDITABLE_FIELDS, name="editable_field"), nullable=False),
        sa.Column("old_value", sa.Text(), nullable=True),
        sa.Column("new_value", sa.Text(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("status", sa.Enum(*EDIT_STATUSES, name="edit_status"), nullable=False),
        sa.Column("reviewed_by", sa.Uuid(as_uuid=False), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_school_edits_status_created_at", "school_edits", ["status", "created_at"]
    )
    op.create_index(
        "ix_school_edits_school_field_status",
        "school_edits",
        ["school_id", "field", "status"],
    )
    op.create_index("ix_school_edits_user_id", "school_edits", ["user_id"])


def downgrade() -> None:
    """Drop all tables and enum types."""
    op.drop_index("ix_school_edits_user_id", table_name="school_edits")
    op.drop_index("ix_school_edits_school_field_status", table_name="school_edits")
    op.drop_index("ix_school_edits_status_created_at", table_name="school_edits")
    op.drop_table("school_edits")

    op.drop_index("ix_schools_state", table_name="schools")
    op.drop_index("ix_schools_name", table_name="schools")
    op.drop_table("schools")

    op.drop_index("ix_user_sessions_user_id", table_name="user_sessions")
    op.drop_table("user_sessions")

    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    sa.Enum(name="edit_status").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="editable_field").drop(op.get_bind(), checkfirst=True)
