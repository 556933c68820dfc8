"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from estate_crm.domain.services.contact_merge_service import ContactMergeService
from estate_crm.domain.services.contact_service import ContactService
from estate_crm.persistence.database import get_db


def get_contact_service(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ContactService:
    """Contact service bound to the request's session."""
    return ContactService(db)


def get_merge_service(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ContactMergeService:
    """Merge service bound to the request's session."""
    return ContactMergeService(db)


async def get_agent_id(
    x_agent_id: Annotated[str | None, Header(alias="X-Agent-Id")] = None,
) -> str | None:
    """Acting agent, used to attribute merges."""
    return x_agent_id or None
