from __future__ import annotations

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from cosmic_notes.config import settings
from cosmic_notes.db.base import create_request_supabase_client, ping_database
from cosmic_notes.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()

SERVICE_NAME = "cosmic-notes-api"
VERSION = "0.1.0"


@router.get("/")
async def health_check():
    """Liveness probe; never touches dependencies."""
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={"status": "healthy", "service": SERVICE_NAME, "version": VERSION},
    )


@router.get("/ready")
async def readiness_check():
    """Readiness probe; 503 while the database is unreachable."""
    try:
        await ping_database(create_request_supabase_client())
    except Exception as err:
        logger.warning("Readiness check failed: %s", err, extra={"error_type": type(err).__name__})
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unavailable", "database": "error"},
        )

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "status": "ready",
            "database": "connected",
            "models": {
                "tagging": settings.tagging_model,
                "classification": settings.classification_model,
                "summary": settings.summary_model,
            },
            "api_prefix": settings.api_prefix,
        },
    )
