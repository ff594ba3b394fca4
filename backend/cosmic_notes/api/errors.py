from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import status
from fastapi.responses import JSONResponse

from cosmic_notes.core.errors import ApplicationError, NotFoundError, UserError
from cosmic_notes.utils.logging import get_logger

if TYPE_CHECKING:
    from fastapi import FastAPI, Request

logger = get_logger(__name__)


async def handle_not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": exc.message})


async def handle_user_error(request: Request, exc: UserError) -> JSONResponse:
    logger.info("Rejected request: %s", exc.message, extra={"path": request.url.path})
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": exc.message})


async def handle_application_error(request: Request, exc: ApplicationError) -> JSONResponse:
    logger.error(
        "Application error: %s",
        exc.message,
        extra={"path": request.url.path, "error_type": type(exc).__name__, "error_data": exc.data},
    )
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": exc.message})


def register_exception_handlers(app: FastAPI) -> None:
    # Starlette resolves handlers along the MRO, so NotFoundError wins over UserError
    app.add_exception_handler(NotFoundError, handle_not_found)
    app.add_exception_handler(UserError, handle_user_error)
    app.add_exception_handler(ApplicationError, handle_application_error)
