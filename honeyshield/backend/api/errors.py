"""
api/errors.py

Every error response has the same shape: {"message": "..."}.

  - HTTPException          → its status code, detail as the message
  - RequestValidationError → 400 with the first validation problem
  - anything else in a route wrapped by internal_errors() → 500 with a
    generic, endpoint-specific message; the exception goes to the log only
  - any other uncaught exception  → 500 "Internal server error"
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


@contextmanager
def internal_errors(message: str) -> Iterator[None]:
    """Turn unexpected exceptions inside the block into a 500 with *message*."""
    try:
        yield
    except HTTPException:
        raise
    except Exception:
        logger.exception(message)
        raise HTTPException(status_code=500, detail=message)


def _describe(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    return f"Invalid {location}: {first.get('msg', 'invalid value')}" if location else "Invalid request body"


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"message": _describe(exc)})

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"message": "Internal server error"})
