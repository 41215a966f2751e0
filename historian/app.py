from __future__ import annotations

import json
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .config import APP_NAME, APP_VERSION, HistorianError
from .logging_config import logger
from .routes import api_router


def _error_response(status_code: int, error: Any, **fields: Any) -> JSONResponse:
    if not isinstance(error, str):
        error = json.dumps(error)
    return JSONResponse({"ok": False, "error": error, **fields}, status_code=status_code)


# Every failure leaves the API as {"ok": false, "error": ...}
def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def _invalid_request(request: Request, exc: RequestValidationError):
        logger.debug("rejected request", extra={"errors": exc.errors(), "path": request.url.path})
        return _error_response(422, "Invalid request", detail=exc.errors())

    @app.exception_handler(HTTPException)
    async def _http_error(request: Request, exc: HTTPException):
        logger.debug("http error", extra={"status": exc.status_code, "path": request.url.path})
        return _error_response(exc.status_code, exc.detail)

    @app.exception_handler(HistorianError)
    async def _historian_error(request: Request, exc: HistorianError):
        # Archive or state files unreadable; the monitor may still be running.
        logger.error("status unavailable", extra={"error": str(exc), "path": request.url.path})
        return _error_response(status.HTTP_503_SERVICE_UNAVAILABLE, str(exc))

    @app.exception_handler(Exception)
    async def _unexpected_error(request: Request, exc: Exception):
        logger.exception("unexpected API error", extra={"path": request.url.path})
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def create_app() -> FastAPI:
    """Read-only API over the archive, cursor and summary documents."""
    application = FastAPI(title=APP_NAME, version=APP_VERSION, redoc_url=None)
    register_exception_handlers(application)
    application.include_router(api_router)
    return application


app = create_app()


__all__ = ["app", "create_app", "register_exception_handlers"]
