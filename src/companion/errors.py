"""Error taxonomy and the FastAPI handlers that render it.

Business-rule failures (validation, auth, ownership) are raised as
CompanionError subclasses at the point of detection and converted to
`{"message": ...}` responses by one handler. Anything else reaching the
top is logged with its traceback and answered with a generic 500.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from companion.config import settings

logger = structlog.get_logger()


class CompanionError(Exception):
    """Base class for errors that map directly to an HTTP response."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, headers: dict | None = None):
        self.message = message or self.default_message
        self.headers = headers
        super().__init__(self.message)


class ValidationError(CompanionError):
    status_code = 400
    default_message = "Invalid request"


class DuplicateIdentityError(CompanionError):
    status_code = 400
    default_message = "Username or email is already taken"


class NoTokenError(CompanionError):
    status_code = 403
    default_message = "No token provided! Please login."


class UnauthorizedError(CompanionError):
    status_code = 401
    default_message = "Unauthorized! Token is invalid or expired."

    def __init__(self, message: str | None = None):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class InvalidCredentialError(CompanionError):
    status_code = 401
    default_message = "Invalid password"


class ForbiddenError(CompanionError):
    status_code = 403
    default_message = "Access denied!"


class NotFoundError(CompanionError):
    status_code = 404
    default_message = "Not found"


class ServerError(CompanionError):
    status_code = 500
    default_message = "Something went wrong!"


# ─── Handlers ───────────────────────────────────────────


async def companion_error_handler(request: Request, exc: CompanionError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "request.server_error",
            path=request.url.path,
            error=exc.message,
            cause=repr(exc.__cause__) if exc.__cause__ else None,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message},
        headers=exc.headers,
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed bodies and out-of-range fields are client errors (400)."""
    errors = [
        {
            "loc": [str(part) for part in err.get("loc", ())],
            "msg": err.get("msg", ""),
            "type": err.get("type", ""),
        }
        for err in exc.errors()
    ]
    first = errors[0] if errors else None
    message = (
        f"{'.'.join(first['loc'][1:]) or 'body'}: {first['msg']}"
        if first
        else "Invalid request"
    )
    return JSONResponse(
        status_code=400,
        content={"message": message, "errors": errors},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last line: log server-side, hide internals outside development."""
    logger.exception("request.unhandled_error", path=request.url.path)
    content = {"message": ServerError.default_message}
    if settings.is_development:
        content["error"] = str(exc)
    return JSONResponse(status_code=500, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CompanionError, companion_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
