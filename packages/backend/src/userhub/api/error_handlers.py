"""Map errors to the JSON error envelope.

Learn: Every error response has the same shape so clients can branch on
`error` (stable code) or `category` instead of parsing messages:

    {"success": false, "message": "...", "error": "token_expired",
     "category": "unauthenticated"}

Validation failures add "errors": [every violation message].
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from userhub.errors import (
    ErrorCategory,
    InternalError,
    Unauthenticated,
    UserHubError,
    ValidationFailed,
)

logger = structlog.get_logger()

_VALUE_ERROR_PREFIX = "Value error, "

_STATUS_CATEGORIES = {
    401: ErrorCategory.UNAUTHENTICATED,
    403: ErrorCategory.FORBIDDEN,
    404: ErrorCategory.NOT_FOUND,
    409: ErrorCategory.CONFLICT,
}


def validation_messages(errors: list[dict]) -> list[str]:
    """Flatten pydantic errors into human-readable messages, keeping all of them."""
    messages = []
    for err in errors:
        ctx = err.get("ctx") or {}
        if err.get("type") == "password_policy" and "violations" in ctx:
            messages.extend(ctx["violations"])
            continue
        msg = err.get("msg", "Invalid value")
        if msg.startswith(_VALUE_ERROR_PREFIX):
            msg = msg[len(_VALUE_ERROR_PREFIX):]
        else:
            field = ".".join(str(p) for p in err.get("loc", ())[1:])
            if field:
                msg = f"{field}: {msg}"
        messages.append(msg)
    return messages


async def userhub_error_handler(request: Request, exc: UserHubError) -> JSONResponse:
    if isinstance(exc, InternalError):
        logger.error(
            "request.internal_error",
            path=request.url.path,
            error=exc.code,
            retryable=exc.retryable,
        )
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    if exc.retryable:
        headers = {"Retry-After": "1"}
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    error = ValidationFailed(validation_messages(exc.errors()))
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    category = _STATUS_CATEGORIES.get(exc.status_code, ErrorCategory.BAD_REQUEST)
    if exc.status_code >= 500:
        category = ErrorCategory.INTERNAL
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "message": str(exc.detail),
            "error": f"http_{exc.status_code}",
            "category": category.value,
        },
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log the full stack trace, answer with a generic message."""
    logger.exception("request.unhandled_error", path=request.url.path)
    request_id = getattr(request.state, "request_id", None)
    headers = {"X-Request-ID": request_id} if request_id else None
    return JSONResponse(
        status_code=500, content=InternalError().to_dict(), headers=headers
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(UserHubError, userhub_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
