"""
Domain errors and the application-wide error boundary.

Services raise the ``CRMError`` family; ``register_exception_handlers`` turns
them into JSON responses and logs anything unexpected with enough context to
debug it after the fact.
"""
import logging
import traceback
from datetime import datetime, timezone
from typing import Callable, List

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from .config import settings

logger = logging.getLogger(__name__)


class CRMError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message


class NotFoundError(CRMError):
    status_code = status.HTTP_404_NOT_FOUND


class PermissionDeniedError(CRMError):
    status_code = status.HTTP_403_FORBIDDEN


class ConflictError(CRMError):
    status_code = status.HTTP_409_CONFLICT


class ValidationFailedError(CRMError):
    status_code = 422


class EmailDeliveryError(CRMError):
    status_code = status.HTTP_502_BAD_GATEWAY


ErrorListener = Callable[[Exception, Request], None]

_error_listeners: List[ErrorListener] = []


def add_error_listener(listener: ErrorListener) -> None:
    """Register a callback invoked for every unhandled exception."""
    _error_listeners.append(listener)


def clear_error_listeners() -> None:
    _error_listeners.clear()


def _notify_listeners(exc: Exception, request: Request) -> None:
    for listener in list(_error_listeners):
        try:
            listener(exc, request)
        except Exception:
            logger.exception("Error listener %r failed", listener)


async def crm_error_handler(request: Request, exc: CRMError) -> JSONResponse:
    logger.warning(
        "%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message
    )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    tb = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    logger.error(
        "Unhandled error on %s %s at %s\nError: %r\nMessage: %s\n%s",
        request.method,
        request.url.path,
        datetime.now(timezone.utc).isoformat(),
        exc,
        str(exc),
        tb,
    )
    _notify_listeners(exc, request)

    content = {"detail": "Something went wrong"}
    if settings.DEBUG:
        content["error"] = str(exc) or type(exc).__name__
        content["traceback"] = tb
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CRMError, crm_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
