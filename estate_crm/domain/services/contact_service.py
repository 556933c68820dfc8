"""Contact service for managing contacts."""

import csv
import io
import logging
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from estate_crm.domain.errors import ContactInUseError, ContactNotFoundError, ContactValidationError
from estate_crm.domain.events import (
    CONTACT_CREATED,
    CONTACT_DELETED,
    CONTACT_UPDATED,
    EventBus,
    event_bus as default_event_bus,
)
from estate_crm.domain.services.duplicate_detector import DuplicateGroup, find_duplicate_groups
from estate_crm.persistence.models.contact import CONTACT_STATUSES, Contact
from estate_crm.persistence.repositories.contact_merge_log_repository import ContactMergeLogRepository
from estate_crm.persistence.repositories.contact_repository import ContactRepository
from estate_crm.settings import settings

logger = logging.getLogger(__name__)

EXPORT_PAGE_SIZE = 500
CSV_HEADERS = ["name", "email", "phone", "contact_status", "source", "notes"]


class ContactService:
    """Service for contact management."""

    def __init__(self, session: AsyncSession, event_bus: EventBus | None = None) -> None:
        """Initialize contact service."""
        self.session = session
        self.contact_repo = ContactRepository(session)
        self.merge_log_repo = ContactMergeLogRepository(session)
        self.event_bus = event_bus or default_event_bus

    async def list_contacts(
        self,
        q: str | None = None,
        contact_status: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> tuple[list[Contact], int]:
        """List contacts matching a search.

        Returns:
            Page of contacts and total count
        """
        return await self.contact_repo.search(
            q=q, contact_status=contact_status, skip=skip, limit=limit
        )

    async def get_contact(self, contact_id: int) -> Contact:
        """Get a contact by ID.

        Raises:
            ContactNotFoundError: If the contact does not exist
        """
        contact = await self.contact_repo.get_by_id(contact_id)
        if contact is None:
            raise ContactNotFoundError([contact_id])
        return contact

    async def create_contact(self, **data: Any) -> Contact:
        """Create a contact."""
        _check_status(data.get("contact_status"))
        contact = await self.contact_repo.create(**data)
        logger.info("Contact created", extra={"contact_id": contact.id})
        await self.event_bus.publish(CONTACT_CREATED, {"contact_id": contact.id})
        return contact

    async def update_contact(self, contact_id: int, **fields: Any) -> Contact:
        """Update contact fields; None values are left unchanged.

        Raises:
            ContactNotFoundError: If the contact does not exist
        """
        _check_status(fields.get("contact_status"))
        contact = await self.contact_repo.update_contact(contact_id, **fields)
        if contact is None:
            raise ContactNotFoundError([contact_id])
        await self.event_bus.publish(CONTACT_UPDATED, {
            "contact_id": contact_id,
            "fields": sorted(k for k, v in fields.items() if v is not None),
        })
        return contact

    async def set_contact_status(self, contact_id: int, contact_status: str) -> Contact:
        """Set a contact's lifecycle status."""
        return await self.update_contact(contact_id, contact_status=contact_status)

    async def delete_contact(self, contact_id: int) -> None:
        """Delete a contact that nothing else references.

        Merge logs where the contact was primary are removed with it.

        Raises:
            ContactNotFoundError: If the contact does not exist
            ContactInUseError: If deals, activities or other records still
                point at the contact
        """
        if await self.contact_repo.get_by_id(contact_id) is None:
            raise ContactNotFoundError([contact_id])

        references = await self.contact_repo.count_references(contact_id)
        if references:
            raise ContactInUseError(contact_id, references)

        try:
            await self.merge_log_repo.delete_for_primary(contact_id)
            await self.contact_repo.delete(contact_id)
        except IntegrityError as e:
            # A referencing row appeared after the count
            await self.session.rollback()
            logger.warning(
                "Contact delete rejected by database",
                extra={"contact_id": contact_id},
                exc_info=True,
            )
            raise ContactInUseError(contact_id, {}) from e

        logger.info("Contact deleted", extra={"contact_id": contact_id})
        await self.event_bus.publish(CONTACT_DELETED, {"contact_id": contact_id})

    async def export_contacts(
        self,
        q: str | None = None,
        contact_status: str | None = None,
        page_size: int = EXPORT_PAGE_SIZE,
    ) -> list[Contact]:
        """Collect every contact matching a search, newest first, page by page."""
        contacts: list[Contact] = []
        while True:
            page, total = await self.contact_repo.search(
                q=q, contact_status=contact_status, skip=len(contacts), limit=page_size
            )
            contacts.extend(page)
            if not page or len(contacts) >= total:
                return contacts

    async def find_duplicates(self, min_phone_digits: int | None = None) -> list[DuplicateGroup]:
        """Run duplicate detection over all stored contacts, oldest first."""
        if min_phone_digits is None:
            min_phone_digits = settings.duplicate_min_phone_digits
        contacts = await self.contact_repo.list_for_dedup()
        groups = find_duplicate_groups(contacts, min_phone_digits=min_phone_digits)
        logger.info(
            "Duplicate scan finished",
            extra={"contacts_scanned": len(contacts), "duplicate_groups": len(groups)},
        )
        return groups


def _check_status(contact_status: str | None) -> None:
    if contact_status is not None and contact_status not in CONTACT_STATUSES:
        raise ContactValidationError(
            f"Invalid contact_status '{contact_status}', expected one of {', '.join(CONTACT_STATUSES)}"
        )


def contacts_to_csv(contacts: list[Contact]) -> str:
    """Render contacts as CSV with every value quoted.

    Newlines in notes are flattened to spaces so each contact stays on
    one line. Commas are kept; quoting holds them inside their column.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    buffer.write(",".join(CSV_HEADERS) + "\n")
    for contact in contacts:
        writer.writerow([
            contact.name or "",
            contact.email or "",
            contact.phone or "",
            contact.contact_status or "lead",
            contact.source or "",
            (contact.notes or "").replace("\r\n", " ").replace("\n", " "),
        ])
    return buffer.getvalue().rstrip("\n")
