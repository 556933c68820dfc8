"""Tests for the contact merge service."""

from datetime import datetime
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from estate_crm.domain.errors import (
    ContactNotFoundError,
    MergeIncompleteError,
    MergeValidationError,
)
from estate_crm.domain.services.contact_merge_service import ContactMergeService
from estate_crm.persistence.models import (
    Activity,
    CalendarEvent,
    Contact,
    ContactFile,
    ContactMergeLog,
    Deal,
    Notification,
    Property,
    Transaction,
)
from estate_crm.persistence.references import CONTACT_REFERENCES


async def seed(session, *objects):
    session.add_all(objects)
    await session.commit()
    return objects


async def contact_ids(session) -> set[int]:
    result = await session.execute(select(Contact.id))
    return set(result.scalars().all())


async def referenced_ids(session, reference) -> list[int]:
    """Current values of a referencing column, read straight from the database."""
    result = await session.execute(
        select(reference.column).where(reference.column.is_not(None)).order_by(reference.model.id)
    )
    return list(result.scalars().all())


@pytest.fixture
async def contacts(db_session):
    """Primary plus two duplicates and one unrelated contact."""
    await seed(
        db_session,
        Contact(id=1, name="Jane Doe", phone="+1 (555) 123-4567"),
        Contact(id=2, name="Jane D.", phone="15551234567", email="jane@example.com"),
        Contact(id=3, name="J. Doe", email="Jane@Example.com "),
        Contact(id=4, name="Someone Else", email="else@example.com"),
    )
    return [1, 2, 3, 4]


@pytest.fixture
def merge_service(db_session, event_bus):
    return ContactMergeService(db_session, event_bus=event_bus, atomic=True)


@pytest.mark.asyncio
async def test_merge_repoints_deal_and_deletes_duplicate(db_session, contacts, merge_service):
    """A deal on the duplicate ends up on the primary; the duplicate is gone."""
    (deal,) = await seed(db_session, Deal(contact_id=2, title="Villa purchase"))
    deal_id = deal.id

    result = await merge_service.merge_contacts(1, [2])

    row = await db_session.execute(select(Deal.contact_id).where(Deal.id == deal_id))
    assert row.scalar_one() == 1
    assert 2 not in await contact_ids(db_session)
    assert result.merged is True
    assert result.merged_ids == [2]
    assert result.reassigned == {"deals.contact_id": 1}


@pytest.mark.asyncio
async def test_merge_rewrites_every_reference(db_session, contacts, merge_service):
    """No registered column points at a merged contact afterwards."""
    await seed(db_session, Property(id=10, title="Sea view flat", owner_contact_id=3))
    await seed(
        db_session,
        Deal(contact_id=2, title="Flat"),
        Deal(contact_id=4, title="Unrelated"),
        Activity(contact_id=2, type="call"),
        Activity(contact_id=3, type="email"),
        CalendarEvent(contact_id=2, lead_id=3, title="Viewing", start_date=datetime(2025, 1, 5, 10)),
        Transaction(contact_id=3, transaction_type="sale", property_id=10),
        ContactFile(contact_id=2, name="passport.pdf", path="contacts/2/passport.pdf", tag="id"),
        Notification(contact_id=3, title="Follow up", message="Call back"),
    )

    result = await merge_service.merge_contacts(1, [2, 3])

    for reference in CONTACT_REFERENCES:
        values = await referenced_ids(db_session, reference)
        assert 2 not in values, reference.key
        assert 3 not in values, reference.key

    assert await referenced_ids(db_session, CONTACT_REFERENCES[0]) == [1, 4]
    assert await contact_ids(db_session) == {1, 4}
    assert result.reassigned == {
        "deals.contact_id": 1,
        "activities.contact_id": 2,
        "calendar_events.contact_id": 1,
        "calendar_events.lead_id": 1,
        "properties.owner_contact_id": 1,
        "transactions.contact_id": 1,
        "contact_files.contact_id": 1,
        "notifications.contact_id": 1,
    }


@pytest.mark.asyncio
async def test_primary_fields_are_not_modified(db_session, contacts, merge_service):
    """The primary keeps its own values even where duplicates have more data."""
    await merge_service.merge_contacts(1, [2])

    row = await db_session.execute(
        select(Contact.name, Contact.email, Contact.phone).where(Contact.id == 1)
    )
    assert tuple(row.one()) == ("Jane Doe", None, "+1 (555) 123-4567")


@pytest.mark.asyncio
async def test_empty_duplicates_is_a_noop(db_session, contacts, merge_service, event_bus):
    result = await merge_service.merge_contacts(1, [])

    assert result.merged is False
    assert result.merged_ids == []
    assert await contact_ids(db_session) == {1, 2, 3, 4}
    assert event_bus.published == []


@pytest.mark.asyncio
async def test_primary_in_duplicates_rejected_before_mutation(db_session, contacts, merge_service):
    await seed(db_session, Deal(contact_id=2, title="Flat"))

    with pytest.raises(MergeValidationError):
        await merge_service.merge_contacts(1, [2, 1])

    assert await contact_ids(db_session) == {1, 2, 3, 4}
    assert await referenced_ids(db_session, CONTACT_REFERENCES[0]) == [2]


@pytest.mark.asyncio
async def test_missing_contact_raises_not_found(db_session, contacts, merge_service):
    await seed(db_session, Deal(contact_id=2, title="Flat"))

    with pytest.raises(ContactNotFoundError) as exc_info:
        await merge_service.merge_contacts(1, [2, 99, 98])

    assert exc_info.value.contact_ids == [98, 99]
    assert await contact_ids(db_session) == {1, 2, 3, 4}
    assert await referenced_ids(db_session, CONTACT_REFERENCES[0]) == [2]


@pytest.mark.asyncio
async def test_missing_primary_raises_not_found(db_session, contacts, merge_service):
    with pytest.raises(ContactNotFoundError) as exc_info:
        await merge_service.merge_contacts(42, [2])

    assert exc_info.value.contact_ids == [42]


@pytest.mark.asyncio
async def test_repeated_duplicate_ids_collapsed(db_session, contacts, merge_service):
    result = await merge_service.merge_contacts(1, [3, 2, 3])

    assert result.merged_ids == [3, 2]
    assert await contact_ids(db_session) == {1, 4}


@pytest.mark.asyncio
async def test_retry_after_merge_is_not_idempotent(db_session, contacts, merge_service):
    await merge_service.merge_contacts(1, [2])

    with pytest.raises(ContactNotFoundError):
        await merge_service.merge_contacts(1, [2])


@pytest.mark.asyncio
async def test_merge_log_and_history(db_session, contacts, merge_service):
    await seed(db_session, Activity(contact_id=2, type="call"))

    await merge_service.merge_contacts(1, [2], merged_by="agent-7")

    history = await merge_service.get_merge_history(1)
    assert len(history) == 1
    entry = history[0]
    assert entry["merged_contact_id"] == 2
    assert entry["merged_by"] == "agent-7"
    assert entry["merged_contact_data"]["email"] == "jane@example.com"
    assert entry["merged_contact_data"]["phone"] == "15551234567"
    assert entry["reassigned_references"] == {"activities.contact_id": 1}
    assert entry["merged_at"] is not None


@pytest.mark.asyncio
async def test_merge_publishes_event(contacts, merge_service, event_bus):
    await merge_service.merge_contacts(1, [2, 3], merged_by="agent-7")

    assert event_bus.published == [
        ("contacts.merged", {"primary_id": 1, "merged_ids": [2, 3], "merged_by": "agent-7"}),
    ]


class TestMergeFailure:
    """Tests for failures after the merge started mutating data."""

    @pytest.mark.asyncio
    async def test_atomic_merge_rolls_back(self, db_session, contacts, event_bus):
        await seed(db_session, Deal(contact_id=2, title="Flat"))
        service = ContactMergeService(db_session, event_bus=event_bus, atomic=True)

        with patch.object(
            service, "_delete_contact", AsyncMock(side_effect=SQLAlchemyError("boom"))
        ):
            with pytest.raises(MergeIncompleteError) as exc_info:
                await service.merge_contacts(1, [2])

        error = exc_info.value
        assert error.rolled_back is True
        assert error.failed_step == "delete_contact:2"
        assert error.completed_steps == ["reassign_references:2", "write_merge_log:2"]
        assert isinstance(error.__cause__, SQLAlchemyError)

        # Nothing persisted
        assert await referenced_ids(db_session, CONTACT_REFERENCES[0]) == [2]
        assert await contact_ids(db_session) == {1, 2, 3, 4}
        logs = await db_session.execute(select(ContactMergeLog.id))
        assert logs.scalars().all() == []
        assert event_bus.published == []

    @pytest.mark.asyncio
    async def test_best_effort_merge_keeps_completed_steps(self, db_session, contacts, event_bus):
        await seed(db_session, Deal(contact_id=2, title="Flat"))
        service = ContactMergeService(db_session, event_bus=event_bus, atomic=False)

        with patch.object(
            service, "_delete_contact", AsyncMock(side_effect=SQLAlchemyError("boom"))
        ):
            with pytest.raises(MergeIncompleteError) as exc_info:
                await service.merge_contacts(1, [2])

        error = exc_info.value
        assert error.rolled_back is False
        assert error.failed_step == "delete_contact:2"
        assert "partially applied" in str(error)

        # Reference rewrite and merge log were committed, the duplicate survived
        assert await referenced_ids(db_session, CONTACT_REFERENCES[0]) == [1]
        assert 2 in await contact_ids(db_session)
        logs = await db_session.execute(select(ContactMergeLog.secondary_contact_id))
        assert logs.scalars().all() == [2]
        assert event_bus.published == []

    @pytest.mark.asyncio
    async def test_best_effort_merge_succeeds_without_failure(self, db_session, contacts, event_bus):
        await seed(db_session, Deal(contact_id=3, title="Flat"))
        service = ContactMergeService(db_session, event_bus=event_bus, atomic=False)

        result = await service.merge_contacts(1, [2, 3])

        assert result.reassigned == {"deals.contact_id": 1}
        assert await contact_ids(db_session) == {1, 4}


class TestMergePreview:
    """Tests for merge preview."""

    @pytest.mark.asyncio
    async def test_preview_reports_conflicts(self, contacts, merge_service):
        preview = await merge_service.get_merge_preview([1, 2, 3])

        assert [c.id for c in preview.contacts] == [1, 2, 3]
        assert preview.suggested_primary_id == 1
        conflicts = {c.field: c.values for c in preview.conflicts}
        assert conflicts["name"] == {1: "Jane Doe", 2: "Jane D.", 3: "J. Doe"}
        assert conflicts["phone"] == {1: "+1 (555) 123-4567", 2: "15551234567"}
        assert conflicts["email"] == {2: "jane@example.com", 3: "Jane@Example.com "}

    @pytest.mark.asyncio
    async def test_preview_needs_two_contacts(self, contacts, merge_service):
        with pytest.raises(MergeValidationError):
            await merge_service.get_merge_preview([1, 1])

    @pytest.mark.asyncio
    async def test_preview_missing_contact(self, contacts, merge_service):
        with pytest.raises(ContactNotFoundError):
            await merge_service.get_merge_preview([1, 77])


class TestChainedMerge:
    """Merging a contact that already absorbed others."""

    @pytest.mark.asyncio
    async def test_history_follows_the_new_primary(self, db_session, contacts, merge_service):
        await merge_service.merge_contacts(1, [2])

        result = await merge_service.merge_contacts(3, [1])

        assert result.reassigned == {"contact_merge_logs.primary_contact_id": 1}
        logs = await db_session.execute(
            select(ContactMergeLog.primary_contact_id, ContactMergeLog.secondary_contact_id)
            .order_by(ContactMergeLog.id)
        )
        assert [tuple(row) for row in logs.all()] == [(3, 2), (3, 1)]

        history = await merge_service.get_merge_history(3)
        assert sorted(entry["merged_contact_id"] for entry in history) == [1, 2]
        assert await merge_service.get_merge_history(1) == []

    @pytest.mark.asyncio
    async def test_no_log_points_at_a_deleted_contact(self, db_session, contacts, merge_service):
        await merge_service.merge_contacts(1, [2])
        await merge_service.merge_contacts(4, [1])
        await merge_service.merge_contacts(3, [4])

        logs = await db_session.execute(select(ContactMergeLog.primary_contact_id))
        assert set(logs.scalars().all()) == {3}
        assert await contact_ids(db_session) == {3}
