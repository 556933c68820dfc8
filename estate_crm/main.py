"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from estate_crm.api.middleware import RequestContextMiddleware
from estate_crm.api.routes import api_router
from estate_crm.logging_config import get_logger, setup_logging
from estate_crm.persistence.database import engine
from estate_crm.settings import settings

setup_logging()

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Application startup", extra={"environment": settings.environment})
    yield
    await engine.dispose()


app = FastAPI(
    title="Estate CRM API",
    description="Contact management and duplicate merging for the real-estate CRM",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestContextMiddleware)

app.include_router(api_router, prefix=settings.api_v1_prefix)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Estate CRM API",
        "version": "0.1.0",
        "docs": "/docs",
    }
