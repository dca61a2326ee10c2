# src/granular/api/errors.py
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..core.errors import GranularError
from ..core.logging import log


def error_response(exc: GranularError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": True,
            "message": exc.message,
            "status_code": exc.status_code,
        },
    )


def register_error_handlers(app: FastAPI) -> None:
    """
    Render granular search errors as JSON responses.

    Client errors keep their message; server-side errors are logged.
    """
    @app.exception_handler(GranularError)
    async def granular_exception_handler(request: Request, exc: GranularError):
        if exc.status_code >= 500:
            log.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
        return error_response(exc)

    log.success("Configured granular search error handlers")
