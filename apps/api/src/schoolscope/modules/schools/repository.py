"""
School Repository

Database operations for school records.
"""

import logging
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from schoolscope.modules.schools.models import EditableField, School

logger = logging.getLogger(__name__)


class SchoolRepository:
    """Repository for school database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        name: str,
        suburb: str = "",
        state: str = "",
        postcode: str = "",
        address: str | None = None,
        phone: str | None = None,
        email: str | None = None,
        website: str | None = None,
        principal_name: str | None = None,
        acara_id: str | None = None,
        type: str | None = None,
        sector: str | None = None,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> School:
        """
        Create a new school record.

        Returns:
            Created School instance
        """
        school = School(
            name=name,
            suburb=suburb,
            state=state,
            postcode=postcode,
            address=address,
            phone=phone,
            email=email,
            website=website,
            principal_name=principal_name,
            acara_id=acara_id,
            type=type,
            sector=sector,
            latitude=latitude,
            longitude=longitude,
        )

        db.add(school)
        await db.flush()
        await db.refresh(school)

        logger.info(f"Created school: {school.id} - {school.name}")
        return school

    @staticmethod
    async def get_by_id(db: AsyncSession, school_id: str | UUID) -> School | None:
        """
        Get a school by ID.

        Args:
            db: Database session
            school_id: School UUID

        Returns:
            School instance or None if not found
        """
        result = await db.execute(select(School).where(School.id == str(school_id)))
        return result.scalar_one_or_none()

    @staticmethod
    async def apply_field_change(
        db: AsyncSession,
        school_id: str | UUID,
        field: EditableField,
        value: str,
    ) -> bool:
        """
        Overwrite a single editable column of a school.

        Issues one UPDATE touching only the column named by ``field`` (``updated_at`` is
        bumped by its onupdate default). The caller owns the transaction.

        Args:
            db: Database session
            school_id: School UUID
            field: Attribute to overwrite
            value: New value

        Returns:
            True if the school exists and was updated, False otherwise
        """
        column = getattr(School, EditableField(field).value)
        result = await db.execute(
            update(School)
            .where(School.id == str(school_id))
            .values({column: value})
            .execution_options(synchronize_session="fetch")
        )
        updated = result.rowcount > 0
        if updated:
            logger.info(f"Applied change to school {school_id}: field={column.key}")
        return updated

    @staticmethod
    async def delete(db: AsyncSession, school_id: str | UUID) -> bool:
        """
        Delete a school.

        Edit proposals referencing the school are left in place.

        Returns:
            True if a school was deleted
        """
        result = await db.execute(delete(School).where(School.id == str(school_id)))
        deleted = result.rowcount > 0
        if deleted:
            logger.info(f"Deleted school {school_id}")
        return deleted
