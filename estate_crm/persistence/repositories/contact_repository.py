"""Contact repository."""

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from estate_crm.persistence.models.contact import Contact
from estate_crm.persistence.references import CONTACT_REFERENCES, ContactReference
from estate_crm.persistence.repositories.base import BaseRepository


class ContactRepository(BaseRepository[Contact]):
    """Repository for Contact entities."""

    def __init__(self, session: AsyncSession):
        """Initialize contact repository."""
        super().__init__(Contact, session)

    async def search(
        self,
        q: str | None = None,
        contact_status: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> tuple[list[Contact], int]:
        """Search contacts by name, email or phone.

        Args:
            q: Case-insensitive substring matched against name, email and phone
            contact_status: Optional status filter
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            Page of contacts (newest first) and the total match count
        """
        conditions = []
        if q:
            pattern = f"%{q.strip().lower()}%"
            conditions.append(or_(
                func.lower(Contact.name).like(pattern),
                func.lower(Contact.email).like(pattern),
                Contact.phone.like(pattern),
            ))
        if contact_status:
            conditions.append(Contact.contact_status == contact_status)

        count_stmt = select(func.count()).select_from(Contact).where(*conditions)
        total = (await self.session.execute(count_stmt)).scalar_one()

        stmt = (
            select(Contact)
            .where(*conditions)
            .order_by(Contact.created_at.desc(), Contact.id.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def list_for_dedup(self, limit: int | None = None) -> list[Contact]:
        """List contacts oldest first, the order duplicate detection expects.

        Args:
            limit: Optional cap on the number of contacts scanned

        Returns:
            Contacts ordered by creation time then id
        """
        stmt = select(Contact).order_by(Contact.created_at, Contact.id)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_multiple_by_ids(self, ids: list[int]) -> list[Contact]:
        """Get multiple contacts by IDs.

        Args:
            ids: List of contact IDs

        Returns:
            Contacts found, in the order of ids
        """
        if not ids:
            return []

        stmt = select(Contact).where(Contact.id.in_(ids))
        result = await self.session.execute(stmt)
        by_id = {c.id: c for c in result.scalars().all()}
        return [by_id[i] for i in ids if i in by_id]

    async def update_contact(
        self,
        contact_id: int,
        **fields,
    ) -> Contact | None:
        """Update the given contact fields, ignoring None values.

        Returns:
            Updated contact or None if not found
        """
        return await self.update(
            contact_id, **{k: v for k, v in fields.items() if v is not None}
        )

    async def count_references(
        self,
        contact_id: int,
        references: tuple[ContactReference, ...] = CONTACT_REFERENCES,
    ) -> dict[str, int]:
        """Count rows in other tables that point at a contact.

        Returns:
            Row count per reference key, only for references that have rows
        """
        counts = {}
        for reference in references:
            stmt = (
                select(func.count())
                .select_from(reference.model)
                .where(reference.column == contact_id)
            )
            count = (await self.session.execute(stmt)).scalar_one()
            if count:
                counts[reference.key] = count
        return counts
