"""Contact merge service for merging duplicate contacts."""

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from estate_crm.domain.errors import (
    ContactNotFoundError,
    MergeIncompleteError,
    MergeValidationError,
)
from estate_crm.domain.events import CONTACTS_MERGED, EventBus, event_bus as default_event_bus
from estate_crm.persistence.models.contact import Contact
from estate_crm.persistence.references import CONTACT_REFERENCES, MERGE_LOG_REFERENCE, ContactReference
from estate_crm.persistence.repositories.contact_merge_log_repository import ContactMergeLogRepository
from estate_crm.persistence.repositories.contact_repository import ContactRepository
from estate_crm.settings import settings

logger = logging.getLogger(__name__)

CONFLICT_FIELDS = ("name", "email", "phone")


class MergeConflict:
    """Represents a field conflict between contacts."""

    def __init__(self, field: str, values: dict[int, Any]):
        self.field = field
        self.values = values  # {contact_id: value}


class MergePreview:
    """Preview of a merge operation."""

    def __init__(
        self,
        contacts: list[Contact],
        conflicts: list[MergeConflict],
        suggested_primary_id: int | None = None
    ):
        self.contacts = contacts
        self.conflicts = conflicts
        self.suggested_primary_id = suggested_primary_id


@dataclass
class MergeResult:
    """Outcome of a merge."""

    primary_id: int
    merged_ids: list[int] = field(default_factory=list)
    reassigned: dict[str, int] = field(default_factory=dict)  # {"deals.contact_id": 3}
    merged: bool = True  # False when there was nothing to merge


def _snapshot(contact: Contact) -> dict[str, Any]:
    return {
        'name': contact.name,
        'email': contact.email,
        'phone': contact.phone,
        'source': contact.source,
        'contact_status': contact.contact_status,
        'agent_id': contact.agent_id,
        'created_at': contact.created_at.isoformat() if contact.created_at else None,
    }


class ContactMergeService:
    """Service for merging contacts.

    By default a merge runs in a single transaction: reference rewrites,
    merge logs and deletes either all land or none do. With atomic=False
    every step commits on its own and a failure leaves earlier steps in
    place, reported through MergeIncompleteError.
    """

    def __init__(
        self,
        session: AsyncSession,
        event_bus: EventBus | None = None,
        atomic: bool | None = None,
        references: tuple[ContactReference, ...] = CONTACT_REFERENCES,
    ) -> None:
        """Initialize merge service."""
        self.session = session
        self.contact_repo = ContactRepository(session)
        self.merge_log_repo = ContactMergeLogRepository(session)
        self.event_bus = event_bus or default_event_bus
        self.atomic = settings.merge_atomic if atomic is None else atomic
        self.references = references

    async def get_merge_preview(self, contact_ids: list[int]) -> MergePreview:
        """Get a preview of merging contacts, showing conflicts.

        Args:
            contact_ids: Contact IDs to preview merging, suggested primary first

        Returns:
            MergePreview with contacts and conflicts

        Raises:
            MergeValidationError: If fewer than 2 distinct contacts
            ContactNotFoundError: If any contact does not exist
        """
        contact_ids = list(dict.fromkeys(contact_ids))
        if len(contact_ids) < 2:
            raise MergeValidationError("At least 2 contacts required for merge")

        contacts = await self._load_all(contact_ids)

        conflicts = []
        for field_name in CONFLICT_FIELDS:
            values = {}
            for contact in contacts:
                value = getattr(contact, field_name)
                if value:
                    values[contact.id] = value

            if len(set(values.values())) > 1:
                conflicts.append(MergeConflict(field_name, values))

        return MergePreview(
            contacts=contacts,
            conflicts=conflicts,
            suggested_primary_id=contacts[0].id,
        )

    async def merge_contacts(
        self,
        primary_contact_id: int,
        duplicate_contact_ids: list[int],
        merged_by: str | None = None,
    ) -> MergeResult:
        """Merge duplicate contacts into one primary contact.

        Every reference to a duplicate is rewritten to the primary, a
        merge log is written per duplicate, then the duplicates are
        deleted. The primary's own fields are left as they are.

        Args:
            primary_contact_id: ID of the contact that will survive
            duplicate_contact_ids: IDs of contacts to merge into primary
            merged_by: Agent performing the merge

        Returns:
            MergeResult; merged is False when there were no duplicates

        Raises:
            MergeValidationError: If the primary is listed as a duplicate
            ContactNotFoundError: If any contact does not exist
            MergeIncompleteError: If a step failed once mutation started
        """
        duplicate_ids = list(dict.fromkeys(duplicate_contact_ids))
        if not duplicate_ids:
            return MergeResult(primary_id=primary_contact_id, merged=False)

        if primary_contact_id in duplicate_ids:
            raise MergeValidationError("Primary contact cannot be in duplicate list")

        contacts = await self._load_all([primary_contact_id] + duplicate_ids)
        duplicates = contacts[1:]

        logger.info(
            "Merging contacts",
            extra={
                "primary_contact_id": primary_contact_id,
                "duplicate_contact_ids": duplicate_ids,
                "atomic": self.atomic,
            },
        )

        reassigned: dict[str, int] = {}
        completed: list[str] = []
        step = ""
        try:
            for duplicate in duplicates:
                # Captured before the delete expires the instance
                duplicate_id = duplicate.id
                snapshot = _snapshot(duplicate)

                step = f"reassign_references:{duplicate_id}"
                counts = await self._reassign_references(duplicate_id, primary_contact_id)
                await self._end_step()
                completed.append(step)

                step = f"write_merge_log:{duplicate_id}"
                self.merge_log_repo.add_merge_log(
                    primary_contact_id=primary_contact_id,
                    secondary_contact_id=duplicate_id,
                    merged_by=merged_by,
                    reassigned_references=counts,
                    secondary_data_snapshot=snapshot,
                )
                await self._end_step()
                completed.append(step)

                step = f"delete_contact:{duplicate_id}"
                await self._delete_contact(duplicate)
                await self._end_step()
                completed.append(step)

                for key, count in counts.items():
                    reassigned[key] = reassigned.get(key, 0) + count

            if self.atomic:
                step = "commit"
                await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                "Contact merge failed",
                extra={
                    "primary_contact_id": primary_contact_id,
                    "failed_step": step,
                    "completed_steps": completed,
                    "rolled_back": self.atomic,
                },
                exc_info=True,
            )
            raise MergeIncompleteError(
                primary_contact_id, step, completed, rolled_back=self.atomic
            ) from e

        result = MergeResult(
            primary_id=primary_contact_id,
            merged_ids=duplicate_ids,
            reassigned=reassigned,
        )
        logger.info(
            "Contacts merged",
            extra={
                "primary_contact_id": primary_contact_id,
                "merged_contact_ids": duplicate_ids,
                "reassigned": reassigned,
            },
        )
        await self.event_bus.publish(CONTACTS_MERGED, {
            "primary_id": primary_contact_id,
            "merged_ids": duplicate_ids,
            "merged_by": merged_by,
        })
        return result

    async def get_merge_history(self, contact_id: int) -> list[dict]:
        """Get merge history for a contact.

        Args:
            contact_id: Contact ID

        Returns:
            List of merge history entries, newest first
        """
        logs = await self.merge_log_repo.get_merge_history_for_contact(contact_id)

        return [
            {
                'id': log.id,
                'merged_contact_id': log.secondary_contact_id,
                'merged_contact_data': log.secondary_data_snapshot,
                'merged_by': log.merged_by,
                'merged_at': log.merged_at.isoformat() if log.merged_at else None,
                'reassigned_references': log.reassigned_references,
            }
            for log in logs
        ]

    async def _load_all(self, contact_ids: list[int]) -> list[Contact]:
        """Load contacts in the given order or raise for the missing ones."""
        contacts = await self.contact_repo.get_multiple_by_ids(contact_ids)
        if len(contacts) != len(contact_ids):
            found_ids = {c.id for c in contacts}
            raise ContactNotFoundError([i for i in contact_ids if i not in found_ids])
        return contacts

    async def _reassign_references(self, from_contact_id: int, to_contact_id: int) -> dict[str, int]:
        """Point every registered reference at from_contact_id to to_contact_id.

        Merge logs where from_contact_id was the primary move as well, so a
        contact absorbed earlier stays in the history of the new primary.

        Returns:
            Rows updated per reference, only for references that had rows
        """
        counts = {}
        for reference in (*self.references, MERGE_LOG_REFERENCE):
            stmt = (
                update(reference.model)
                .where(reference.column == from_contact_id)
                .values({reference.column_name: to_contact_id})
                .execution_options(synchronize_session=False)
            )
            result = await self.session.execute(stmt)
            if result.rowcount:
                counts[reference.key] = result.rowcount
        return counts

    async def _delete_contact(self, contact: Contact) -> None:
        await self.session.delete(contact)

    async def _end_step(self) -> None:
        """Flush inside the merge transaction, or commit in best-effort mode."""
        if self.atomic:
            await self.session.flush()
        else:
            await self.session.commit()
