"""
Workflow tests for school edits against a real (SQLite) database.

These cover the properties that depend on actual SQL behaviour:
- approving writes exactly one school column
- a decided edit can never be decided again
- a failed approval leaves both the edit and the school untouched
- admin listings survive deleted users and schools
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy import delete

from schoolscope.core.auth import CurrentUser
from schoolscope.modules.school_edits import repository
from schoolscope.modules.school_edits.models import EditStatus, SchoolEdit
from schoolscope.modules.school_edits.service import (
    AdminAccessRequiredError,
    DuplicatePendingEditError,
    EditAlreadyProcessedError,
    SchoolNotFoundError,
    decide_edit,
    list_edits,
    list_pending_for_school,
    propose_edit,
)
from schoolscope.modules.schools.models import School
from schoolscope.modules.schools.repository import SchoolRepository
from schoolscope.modules.users.models import User
from schoolscope.modules.users.repository import UserRepository

SERVICE = "schoolscope.modules.school_edits.service"


@pytest.fixture(autouse=True)
def _no_email():
    with (
        patch(f"{SERVICE}.send_edit_approved", new_callable=AsyncMock) as approved,
        patch(f"{SERVICE}.send_edit_rejected", new_callable=AsyncMock) as rejected,
    ):
        yield approved, rejected


def _as_actor(user: User) -> CurrentUser:
    return CurrentUser(id=user.id, email=user.email, name=user.name, is_admin=user.is_admin)


async def _seed(db):
    proposer = await UserRepository.create(
        db, email="U1@example.com", password_hash="x", name="Una User"
    )
    admin = await UserRepository.create(
        db, email="a1@schoolscope.com.au", password_hash="x", name="Ari Admin", is_admin=True
    )
    school = await SchoolRepository.create(
        db,
        name="Bondi Public School",
        suburb="Bondi",
        state="NSW",
        postcode="2026",
        address="Wellington St, Bondi NSW 2026",
        phone="0291300000",
        email="bondi-p.school@det.nsw.edu.au",
        website="https://bondi-p.schools.nsw.gov.au",
        principal_name="Jane Smith",
        acara_id="41234",
        type="Primary",
        sector="Government",
        latitude=-33.89,
        longitude=151.27,
    )
    await db.commit()
    return _as_actor(proposer), _as_actor(admin), school


def _snapshot(school: School) -> dict:
    return {column.key: getattr(school, column.key) for column in School.__table__.columns}


@pytest.mark.asyncio
async def test_propose_then_approve_then_second_decision_fails(db_session, _no_email):
    """Propose a phone change, approve it, then try to reject it."""
    proposer, admin, school = await _seed(db_session)

    edit = await propose_edit(
        db_session,
        school_id=school.id,
        actor=proposer,
        field="phone",
        new_value="0299999999",
    )
    assert edit.status == EditStatus.PENDING
    assert edit.old_value == "0291300000"
    assert edit.user_id == proposer.id

    decided = await decide_edit(db_session, edit.id, "APPROVED", admin)
    assert decided.status == EditStatus.APPROVED
    assert decided.reviewed_by == admin.id
    assert decided.reviewed_at is not None

    await db_session.refresh(school)
    assert school.phone == "0299999999"

    with pytest.raises(EditAlreadyProcessedError):
        await decide_edit(db_session, edit.id, "REJECTED", admin)

    await db_session.refresh(school)
    assert school.phone == "0299999999"
    await db_session.refresh(decided)
    assert decided.status == EditStatus.APPROVED

    approved, _ = _no_email
    assert approved.call_args.kwargs["to_email"] == "u1@example.com"


@pytest.mark.asyncio
async def test_approve_changes_only_the_named_field(db_session):
    proposer, admin, school = await _seed(db_session)
    await db_session.refresh(school)
    before = _snapshot(school)

    edit = await propose_edit(
        db_session,
        school_id=school.id,
        actor=proposer,
        field="suburb",
        new_value="North Bondi",
    )
    await decide_edit(db_session, edit.id, "APPROVED", admin)

    await db_session.refresh(school)
    after = _snapshot(school)

    assert after["suburb"] == "North Bondi"
    changed = {key for key in before if before[key] != after[key]}
    assert changed <= {"suburb", "updated_at"}
    assert "suburb" in changed


@pytest.mark.asyncio
async def test_reject_leaves_school_unchanged(db_session):
    proposer, admin, school = await _seed(db_session)
    await db_session.refresh(school)
    before = _snapshot(school)

    edit = await propose_edit(
        db_session,
        school_id=school.id,
        actor=proposer,
        field="name",
        new_value="Bondi Beach Public School",
    )
    decided = await decide_edit(db_session, edit.id, "REJECTED", admin, reason="Unverified")
    assert decided.status == EditStatus.REJECTED

    await db_session.refresh(school)
    assert _snapshot(school) == before


@pytest.mark.asyncio
async def test_approval_for_deleted_school_keeps_edit_pending(db_session):
    proposer, admin, school = await _seed(db_session)
    school_id = school.id

    edit = await propose_edit(
        db_session,
        school_id=school_id,
        actor=proposer,
        field="phone",
        new_value="0299999999",
    )
    edit_id = edit.id

    assert await SchoolRepository.delete(db_session, school_id)
    await db_session.commit()

    with pytest.raises(SchoolNotFoundError):
        await decide_edit(db_session, edit_id, "APPROVED", admin)

    stored = await db_session.get(SchoolEdit, edit_id)
    await db_session.refresh(stored)
    assert stored.status == EditStatus.PENDING
    assert stored.reviewed_by is None

    # Rejecting does not need the school
    rejected = await decide_edit(db_session, edit_id, "REJECTED", admin)
    assert rejected.status == EditStatus.REJECTED


@pytest.mark.asyncio
async def test_non_admin_cannot_decide(db_session):
    proposer, _, school = await _seed(db_session)
    edit = await propose_edit(
        db_session,
        school_id=school.id,
        actor=proposer,
        field="phone",
        new_value="0299999999",
    )

    with pytest.raises(AdminAccessRequiredError):
        await decide_edit(db_session, edit.id, "APPROVED", proposer)

    await db_session.refresh(edit)
    assert edit.status == EditStatus.PENDING


@pytest.mark.asyncio
async def test_conditional_transition_succeeds_once(db_session):
    proposer, admin, school = await _seed(db_session)
    edit = await propose_edit(
        db_session,
        school_id=school.id,
        actor=proposer,
        field="phone",
        new_value="0299999999",
    )

    first = await repository.transition_from_pending(
        db_session, edit.id, EditStatus.APPROVED, reviewed_by=admin.id
    )
    second = await repository.transition_from_pending(
        db_session, edit.id, EditStatus.REJECTED, reviewed_by=admin.id
    )
    await db_session.commit()

    assert first is True
    assert second is False
    await db_session.refresh(edit)
    assert edit.status == EditStatus.APPROVED


@pytest.mark.asyncio
async def test_multiple_pending_edits_allowed_by_default(db_session):
    proposer, _, school = await _seed(db_session)

    for value in ("0299999999", "0288888888"):
        await propose_edit(
            db_session, school_id=school.id, actor=proposer, field="phone", new_value=value
        )

    pending = await list_pending_for_school(db_session, school.id)
    assert len(pending) == 2


@pytest.mark.asyncio
async def test_duplicate_pending_edit_refused_when_configured(db_session):
    proposer, _, school = await _seed(db_session)

    with patch(f"{SERVICE}.settings", MagicMock(reject_duplicate_pending_edits=True)):
        await propose_edit(
            db_session, school_id=school.id, actor=proposer, field="phone", new_value="0299999999"
        )

        with pytest.raises(DuplicatePendingEditError):
            await propose_edit(
                db_session,
                school_id=school.id,
                actor=proposer,
                field="phone",
                new_value="0288888888",
            )

        # A different field is unaffected
        await propose_edit(
            db_session, school_id=school.id, actor=proposer, field="postcode", new_value="2025"
        )


@pytest.mark.asyncio
async def test_admin_list_filters_orders_and_enriches(db_session):
    proposer, admin, school = await _seed(db_session)

    older = await propose_edit(
        db_session, school_id=school.id, actor=proposer, field="phone", new_value="0299999999"
    )
    newer = await propose_edit(
        db_session, school_id=school.id, actor=proposer, field="postcode", new_value="2025"
    )
    base = datetime(2026, 3, 1, tzinfo=UTC)
    older.created_at = base
    newer.created_at = base + timedelta(hours=1)
    await db_session.commit()

    await decide_edit(db_session, older.id, "REJECTED", admin)

    everything = await list_edits(db_session, admin)
    assert [item["edit"].id for item in everything] == [newer.id, older.id]
    assert everything[0]["user"] == {"name": "Una User", "email": "u1@example.com"}
    assert everything[0]["school"] == {"name": "Bondi Public School", "suburb": "Bondi", "state": "NSW"}

    pending = await list_edits(db_session, admin, status="PENDING")
    assert [item["edit"].id for item in pending] == [newer.id]

    rejected = await list_edits(db_session, admin, status="REJECTED")
    assert [item["edit"].id for item in rejected] == [older.id]


@pytest.mark.asyncio
async def test_admin_list_keeps_edits_of_deleted_records(db_session):
    proposer, admin, school = await _seed(db_session)
    edit = await propose_edit(
        db_session, school_id=school.id, actor=proposer, field="phone", new_value="0299999999"
    )
    edit_id = edit.id

    await db_session.execute(delete(User).where(User.id == proposer.id))
    await SchoolRepository.delete(db_session, school.id)
    await db_session.commit()

    items = await list_edits(db_session, admin)
    assert len(items) == 1
    assert items[0]["edit"].id == edit_id
    assert items[0]["user"] is None
    assert items[0]["school"] is None


@pytest.mark.asyncio
async def test_pending_for_school_excludes_decided_edits(db_session):
    proposer, admin, school = await _seed(db_session)
    kept = await propose_edit(
        db_session, school_id=school.id, actor=proposer, field="phone", new_value="0299999999"
    )
    decided = await propose_edit(
        db_session, school_id=school.id, actor=proposer, field="postcode", new_value="2025"
    )
    await decide_edit(db_session, decided.id, "APPROVED", admin)

    pending = await list_pending_for_school(db_session, school.id)
    assert [item["edit"].id for item in pending] == [kept.id]
    assert pending[0]["proposed_by"] == "Una User"
