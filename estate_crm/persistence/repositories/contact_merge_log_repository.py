"""Contact merge log repository."""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from estate_crm.persistence.models.contact_merge_log import ContactMergeLog
from estate_crm.persistence.repositories.base import BaseRepository


class ContactMergeLogRepository(BaseRepository[ContactMergeLog]):
    """Repository for ContactMergeLog entities."""

    def __init__(self, session: AsyncSession):
        """Initialize contact merge log repository."""
        super().__init__(ContactMergeLog, session)

    def add_merge_log(
        self,
        primary_contact_id: int,
        secondary_contact_id: int,
        merged_by: str | None = None,
        reassigned_references: dict | None = None,
        secondary_data_snapshot: dict | None = None,
    ) -> ContactMergeLog:
        """Stage a merge log entry in the current transaction.

        The caller decides when to commit, so the log lands together with
        the merge it describes.

        Args:
            primary_contact_id: ID of the primary (surviving) contact
            secondary_contact_id: ID of the secondary (deleted) contact
            merged_by: Agent who performed the merge
            reassigned_references: Rows moved per referencing column
            secondary_data_snapshot: Backup of secondary contact's data

        Returns:
            Pending merge log
        """
        merge_log = ContactMergeLog(
            primary_contact_id=primary_contact_id,
            secondary_contact_id=secondary_contact_id,
            merged_by=merged_by,
            reassigned_references=reassigned_references,
            secondary_data_snapshot=secondary_data_snapshot,
        )
        self.session.add(merge_log)
        return merge_log

    async def get_merge_history_for_contact(self, contact_id: int) -> list[ContactMergeLog]:
        """Get all merge logs where this contact was the primary.

        Args:
            contact_id: Contact ID to get history for

        Returns:
            List of merge logs, newest first
        """
        stmt = (
            select(ContactMergeLog)
            .where(ContactMergeLog.primary_contact_id == contact_id)
            .order_by(ContactMergeLog.merged_at.desc(), ContactMergeLog.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def was_contact_merged(self, contact_id: int) -> ContactMergeLog | None:
        """Check if a contact was merged away as a secondary.

        Args:
            contact_id: Contact ID to check

        Returns:
            Merge log if found, None otherwise
        """
        stmt = (
            select(ContactMergeLog)
            .where(ContactMergeLog.secondary_contact_id == contact_id)
            .order_by(ContactMergeLog.id.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def delete_for_primary(self, contact_id: int) -> int:
        """Stage deletion of the merge logs owned by a primary contact.

        Returns:
            Number of merge logs removed
        """
        stmt = delete(ContactMergeLog).where(ContactMergeLog.primary_contact_id == contact_id)
        result = await self.session.execute(stmt)
        return result.rowcount
