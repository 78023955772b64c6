"""
Application error type and the FastAPI handlers that render it.

Every expected failure is an ``AppError`` carrying the HTTP status to answer
with. Services re-raise ``AppError`` untouched and wrap anything else via
``wrap_errors`` so callers always see a descriptive message.
"""

from __future__ import annotations

import functools
from typing import Any, Awaitable, Callable, TypeVar

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

log = structlog.get_logger()

T = TypeVar("T")


class AppError(Exception):
    """An expected failure with the HTTP status code to report it under."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __repr__(self) -> str:
        return f"AppError({self.message!r}, {self.status_code})"


def wrap_errors(operation: str) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Re-raise AppError as-is; turn anything else into a 500 AppError.

    ``operation`` reads as a verb phrase: ``@wrap_errors("create user")``
    produces ``"Failed to create user: <cause>"``.
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return await func(*args, **kwargs)
            except AppError:
                raise
            except Exception as exc:
                raise AppError(f"Failed to {operation}: {exc}", 500) from exc

        return wrapper

    return decorator


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

def error_body(message: str) -> dict:
    return {"status": "error", "message": message}


def _validation_message(errors: list[dict]) -> str:
    parts = []
    for err in errors:
        loc = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path", "form"))
        msg = err.get("msg", "invalid value")
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "Validation failed: " + "; ".join(parts)


def register_exception_handlers(app: FastAPI, *, debug: bool = False) -> None:
    """Render every error as ``{"status": "error", "message": ...}``."""

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        if exc.status_code >= 500:
            log.error("request.failed", path=request.url.path, status=exc.status_code, error=exc.message)
        else:
            log.info("request.rejected", path=request.url.path, status=exc.status_code, error=exc.message)
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content=error_body(_validation_message(exc.errors())))

    @app.exception_handler(ValidationError)
    async def handle_model_validation(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content=error_body(_validation_message(exc.errors())))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        log.exception("request.unhandled_error", path=request.url.path)
        message = str(exc) if debug and str(exc) else "Internal server error"
        return JSONResponse(status_code=500, content=error_body(message))
