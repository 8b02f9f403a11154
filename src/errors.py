"""Error taxonomy and the uniform JSON envelope returned by every endpoint."""

import logging
from contextlib import contextmanager
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Configure logging
logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that are reported to the client as an envelope."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class InvalidCredentials(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid email or password"


class NotAuthenticated(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Could not validate credentials"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not allowed"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class MethodNotAllowed(AppError):
    status_code = status.HTTP_405_METHOD_NOT_ALLOWED
    default_message = "Method not allowed"


class InternalError(AppError):
    pass


def envelope(
    message: str,
    data: Any = None,
    success: bool = True,
    pagination: Optional[dict] = None,
) -> dict:
    """
    Build the response body shared by all endpoints.

    `data` and `pagination` are left out entirely when not given, so a
    delete or an error carries only `success` and `message`.
    """
    body = {"success": success, "message": message}
    if data is not None:
        body["data"] = data
    if pagination is not None:
        body["pagination"] = pagination
    return body


def error_response(status_code: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=envelope(message, success=False),
        headers=headers,
    )


def _describe_validation_errors(errors) -> str:
    parts = []
    for error in errors:
        loc = [str(p) for p in error.get("loc", ()) if p not in ("body", "query", "form")]
        field = ".".join(loc) or "payload"
        if error.get("type") == "missing":
            parts.append(f"{field} is required")
        else:
            parts.append(f"{field}: {error.get('msg')}")
    return "; ".join(parts) or "Invalid request"


def validation_message(exc) -> str:
    """Flatten a pydantic validation error into one client-readable sentence."""
    return _describe_validation_errors(exc.errors())


def register_exception_handlers(app: FastAPI) -> None:
    """Route every error through the envelope instead of FastAPI's `detail` body."""

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        else:
            logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
        headers = None
        if exc.status_code == status.HTTP_401_UNAUTHORIZED:
            headers = {"WWW-Authenticate": "Bearer"}
        return error_response(exc.status_code, exc.message, headers)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return error_response(exc.status_code, message, getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        return error_response(status.HTTP_400_BAD_REQUEST, validation_message(exc))


@contextmanager
def handler_boundary(failure_message: str):
    """
    Let AppErrors through and turn anything else into a logged InternalError.

    Args:
        failure_message: Message reported to the client on unexpected failure
    """
    try:
        yield
    except AppError:
        raise
    except Exception as e:
        logger.error(f"{failure_message}: {e}", exc_info=True)
        raise InternalError(failure_message) from e
