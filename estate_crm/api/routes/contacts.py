"""Contacts API endpoints."""

from typing import Annotated, NoReturn

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response, status
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field

from estate_crm.api.deps import get_agent_id, get_contact_service, get_merge_service
from estate_crm.domain.errors import (
    ContactDomainError,
    ContactNotFoundError,
    ContactValidationError,
    MergeIncompleteError,
)
from estate_crm.domain.services.contact_merge_service import ContactMergeService
from estate_crm.domain.services.contact_service import ContactService, contacts_to_csv
from estate_crm.persistence.repositories.contact_merge_log_repository import ContactMergeLogRepository

router = APIRouter()


# ============== Response Models ==============

class ContactResponse(BaseModel):
    """Contact response model."""

    id: int
    name: str | None
    email: str | None
    phone: str | None
    contact_status: str
    source: str | None
    agent_id: str | None
    notes: str | None
    created_at: str

    class Config:
        from_attributes = True


class ContactsListResponse(BaseModel):
    """Contacts list response."""

    contacts: list[ContactResponse]
    total: int


class DuplicateGroupResponse(BaseModel):
    """One group of probable duplicates."""

    contacts: list[ContactResponse]
    matched_on: list[str]
    suggested_primary_id: int


class DuplicatesResponse(BaseModel):
    """Duplicate scan result."""

    groups: list[DuplicateGroupResponse]
    total_groups: int


class MergeConflictResponse(BaseModel):
    """Merge conflict response."""

    field: str
    values: dict[str, str]  # contact_id -> value


class MergePreviewResponse(BaseModel):
    """Merge preview response."""

    contacts: list[ContactResponse]
    conflicts: list[MergeConflictResponse]
    suggested_primary_id: int | None


class MergeResultResponse(BaseModel):
    """Merge result response."""

    primary: ContactResponse
    merged_ids: list[int]
    reassigned: dict[str, int]
    merged: bool


class MergeHistoryEntry(BaseModel):
    """Merge history entry."""

    id: int
    merged_contact_id: int
    merged_contact_data: dict | None
    merged_by: str | None
    merged_at: str | None
    reassigned_references: dict | None


# ============== Request Models ==============

class CreateContactRequest(BaseModel):
    """Create contact request."""

    name: str | None = None
    email: str | None = None
    phone: str | None = None
    contact_status: str = "lead"
    source: str | None = None
    agent_id: str | None = None
    notes: str | None = None


class UpdateContactRequest(BaseModel):
    """Update contact request."""

    name: str | None = None
    email: str | None = None
    phone: str | None = None
    contact_status: str | None = None
    source: str | None = None
    agent_id: str | None = None
    notes: str | None = None


class UpdateStatusRequest(BaseModel):
    """Set contact status request."""

    contact_status: str


class MergeContactsRequest(BaseModel):
    """Merge contacts request."""

    duplicate_contact_ids: list[int] = Field(default_factory=list)


# ============== Helper Functions ==============

def _contact_to_response(contact) -> ContactResponse:
    """Convert a contact model to response."""
    return ContactResponse(
        id=contact.id,
        name=contact.name,
        email=contact.email,
        phone=contact.phone,
        contact_status=contact.contact_status or "lead",
        source=contact.source,
        agent_id=contact.agent_id,
        notes=contact.notes,
        created_at=contact.created_at.isoformat() if contact.created_at else "",
    )


def _raise_http(error: ContactDomainError) -> NoReturn:
    """Translate a domain error into an HTTP error."""
    if isinstance(error, ContactNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, ContactValidationError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(error))


# ============== Contact Endpoints ==============

@router.get("", response_model=ContactsListResponse)
async def list_contacts(
    service: Annotated[ContactService, Depends(get_contact_service)],
    q: str | None = Query(None, description="Search name, email or phone"),
    contact_status: str | None = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
) -> ContactsListResponse:
    """List contacts."""
    contacts, total = await service.list_contacts(
        q=q, contact_status=contact_status, skip=skip, limit=limit
    )
    return ContactsListResponse(
        contacts=[_contact_to_response(c) for c in contacts],
        total=total,
    )


@router.post("", response_model=ContactResponse, status_code=status.HTTP_201_CREATED)
async def create_contact(
    request: CreateContactRequest,
    service: Annotated[ContactService, Depends(get_contact_service)],
) -> ContactResponse:
    """Create a contact."""
    try:
        contact = await service.create_contact(**request.model_dump())
    except ContactDomainError as e:
        _raise_http(e)
    return _contact_to_response(contact)


@router.get("/export.csv", response_class=PlainTextResponse)
async def export_contacts_csv(
    service: Annotated[ContactService, Depends(get_contact_service)],
    q: str | None = Query(None),
    contact_status: str | None = Query(None, alias="status"),
) -> PlainTextResponse:
    """Export every matching contact as CSV; X-Total-Count carries the row count."""
    contacts = await service.export_contacts(q=q, contact_status=contact_status)
    return PlainTextResponse(
        contacts_to_csv(contacts),
        media_type="text/csv",
        headers={
            "Content-Disposition": 'attachment; filename="contacts.csv"',
            "X-Total-Count": str(len(contacts)),
        },
    )


@router.get("/duplicates", response_model=DuplicatesResponse)
async def find_duplicates(
    service: Annotated[ContactService, Depends(get_contact_service)],
    min_phone_digits: int | None = Query(None, ge=1),
) -> DuplicatesResponse:
    """Find groups of contacts sharing a phone number or email."""
    groups = await service.find_duplicates(min_phone_digits=min_phone_digits)
    return DuplicatesResponse(
        groups=[
            DuplicateGroupResponse(
                contacts=[_contact_to_response(c) for c in group.contacts],
                matched_on=group.matched_on,
                suggested_primary_id=group.suggested_primary.id,
            )
            for group in groups
        ],
        total_groups=len(groups),
    )


# ============== Merge Endpoints ==============

@router.post("/merge/preview", response_model=MergePreviewResponse)
async def get_merge_preview(
    merge_service: Annotated[ContactMergeService, Depends(get_merge_service)],
    contact_ids: list[int] = Body(..., embed=True),
) -> MergePreviewResponse:
    """Get a preview of merging multiple contacts."""
    try:
        preview = await merge_service.get_merge_preview(contact_ids)
    except ContactDomainError as e:
        _raise_http(e)

    return MergePreviewResponse(
        contacts=[_contact_to_response(c) for c in preview.contacts],
        conflicts=[
            MergeConflictResponse(
                field=conflict.field,
                values={str(k): v for k, v in conflict.values.items()},
            )
            for conflict in preview.conflicts
        ],
        suggested_primary_id=preview.suggested_primary_id,
    )


@router.get("/{contact_id}", response_model=ContactResponse)
async def get_contact(
    contact_id: int,
    service: Annotated[ContactService, Depends(get_contact_service)],
) -> ContactResponse:
    """Get a contact by ID."""
    try:
        contact = await service.get_contact(contact_id)
    except ContactNotFoundError:
        merge_log = await ContactMergeLogRepository(service.session).was_contact_merged(contact_id)
        detail = f"Contact {contact_id} not found"
        if merge_log:
            detail = f"Contact {contact_id} was merged into contact {merge_log.primary_contact_id}"
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
    return _contact_to_response(contact)


@router.put("/{contact_id}", response_model=ContactResponse)
async def update_contact(
    contact_id: int,
    request: UpdateContactRequest,
    service: Annotated[ContactService, Depends(get_contact_service)],
) -> ContactResponse:
    """Update contact fields."""
    try:
        contact = await service.update_contact(contact_id, **request.model_dump())
    except ContactDomainError as e:
        _raise_http(e)
    return _contact_to_response(contact)


@router.put("/{contact_id}/status", response_model=ContactResponse)
async def set_contact_status(
    contact_id: int,
    request: UpdateStatusRequest,
    service: Annotated[ContactService, Depends(get_contact_service)],
) -> ContactResponse:
    """Set a contact's status (lead, active_client, past_client)."""
    try:
        contact = await service.set_contact_status(contact_id, request.contact_status)
    except ContactDomainError as e:
        _raise_http(e)
    return _contact_to_response(contact)


@router.delete("/{contact_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_contact(
    contact_id: int,
    service: Annotated[ContactService, Depends(get_contact_service)],
) -> Response:
    """Delete a contact."""
    try:
        await service.delete_contact(contact_id)
    except ContactDomainError as e:
        _raise_http(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{contact_id}/merge", response_model=MergeResultResponse)
async def merge_contacts(
    contact_id: int,
    request: MergeContactsRequest,
    merge_service: Annotated[ContactMergeService, Depends(get_merge_service)],
    agent_id: Annotated[str | None, Depends(get_agent_id)],
):
    """Merge duplicate contacts into the contact in the path."""
    try:
        result = await merge_service.merge_contacts(
            primary_contact_id=contact_id,
            duplicate_contact_ids=request.duplicate_contact_ids,
            merged_by=agent_id,
        )
    except MergeIncompleteError as e:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={
                "detail": str(e),
                "failed_step": e.failed_step,
                "completed_steps": e.completed_steps,
                "rolled_back": e.rolled_back,
            },
        )
    except ContactDomainError as e:
        _raise_http(e)

    primary = await merge_service.contact_repo.get_by_id(contact_id)
    if primary is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Contact {contact_id} not found",
        )
    return MergeResultResponse(
        primary=_contact_to_response(primary),
        merged_ids=result.merged_ids,
        reassigned=result.reassigned,
        merged=result.merged,
    )


@router.get("/{contact_id}/merge-history", response_model=list[MergeHistoryEntry])
async def get_merge_history(
    contact_id: int,
    merge_service: Annotated[ContactMergeService, Depends(get_merge_service)],
) -> list[MergeHistoryEntry]:
    """Get merge history for a contact."""
    history = await merge_service.get_merge_history(contact_id)
    return [MergeHistoryEntry(**entry) for entry in history]
