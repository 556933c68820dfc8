"""API routes."""

from fastapi import APIRouter

from estate_crm.api.routes import contacts

api_router = APIRouter()

api_router.include_router(contacts.router, prefix="/contacts", tags=["contacts"])
