"""
Error Taxonomy

Every domain error carries a stable error code and the HTTP status it maps to.
Routes never build error responses by hand; the handlers registered here turn
a PortalError (or a request validation failure) into:

    {"error": "<CODE>", "message": "<text>", "fields": {...}}
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class PortalError(Exception):
    """Base exception for all portal errors."""

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = 400,
        fields: dict[str, str] | None = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.fields = fields
        super().__init__(message)


# ============================================
# Authentication (401)
# ============================================


class AuthError(PortalError):
    """Base for authentication failures."""


class InvalidCredentialsError(AuthError):
    def __init__(self):
        super().__init__(
            message="Invalid email or password.",
            error_code="INVALID_CREDENTIALS",
            status_code=status.HTTP_401_UNAUTHORIZED,
        )


class AccountInactiveError(AuthError):
    """Only raised after the password has been verified."""

    def __init__(self):
        super().__init__(
            message="Your account is inactive. Please contact an administrator.",
            error_code="ACCOUNT_INACTIVE",
            status_code=status.HTTP_401_UNAUTHORIZED,
        )


class NotAuthenticatedError(AuthError):
    def __init__(self):
        super().__init__(
            message="Authentication required.",
            error_code="NOT_AUTHENTICATED",
            status_code=status.HTTP_401_UNAUTHORIZED,
        )


# ============================================
# Authorization (403)
# ============================================


class AuthzError(PortalError):
    """Base for policy denials."""


class ForbiddenError(AuthzError):
    def __init__(self, message: str = "You do not have permission to perform this action."):
        super().__init__(
            message=message,
            error_code="FORBIDDEN",
            status_code=status.HTTP_403_FORBIDDEN,
        )


# ============================================
# Validation (400)
# ============================================


class ValidationError(PortalError):
    """Base for input validation failures."""


class InvalidStatusError(ValidationError):
    def __init__(self, value: str, allowed: list[str]):
        super().__init__(
            message=f"'{value}' is not a valid application status.",
            error_code="INVALID_STATUS",
            status_code=status.HTTP_400_BAD_REQUEST,
            fields={"status": f"Must be one of: {', '.join(allowed)}"},
        )


class MissingFieldError(ValidationError):
    def __init__(self, field: str):
        super().__init__(
            message=f"{field} is required.",
            error_code="MISSING_FIELD",
            status_code=status.HTTP_400_BAD_REQUEST,
            fields={field: "This field is required."},
        )


class InvalidEmailError(ValidationError):
    def __init__(self, field: str = "username"):
        super().__init__(
            message="Please enter a valid email address.",
            error_code="INVALID_EMAIL",
            status_code=status.HTTP_400_BAD_REQUEST,
            fields={field: "Must be a valid email address."},
        )


class ConflictError(ValidationError):
    """Duplicate or state-dependent input problems that are still a 400 for clients."""

    def __init__(self, message: str, error_code: str):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status.HTTP_400_BAD_REQUEST,
        )


# ============================================
# Not found (404)
# ============================================


class NotFoundError(PortalError):
    def __init__(self, resource: str, resource_id: int | str | None = None):
        message = f"{resource} {resource_id} not found" if resource_id is not None else (
            f"{resource} not found"
        )
        super().__init__(
            message=message,
            error_code=f"{resource.upper().replace(' ', '_').replace('-', '_')}_NOT_FOUND",
            status_code=status.HTTP_404_NOT_FOUND,
        )


# ============================================
# Workflow
# ============================================


class TransitionError(PortalError):
    """Base for status workflow failures."""


class IllegalTransitionError(TransitionError):
    def __init__(self, from_status: str, to_status: str):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            message=f"Cannot move an application from '{from_status}' to '{to_status}'.",
            error_code="ILLEGAL_TRANSITION",
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class NotificationError(PortalError):
    """Delivery failure. Logged by the dispatcher, never returned to a caller."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            error_code="NOTIFICATION_FAILED",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


class AuditWriteError(PortalError):
    """The audit entry could not be persisted; the enclosing mutation is rolled back."""

    def __init__(self, message: str = "The action could not be recorded and was not applied."):
        super().__init__(
            message=message,
            error_code="AUDIT_WRITE_FAILED",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


# ============================================
# Handlers
# ============================================


def _error_body(error: PortalError) -> dict:
    body: dict = {"error": error.error_code, "message": error.message}
    if error.fields:
        body["fields"] = error.fields
    return body


async def portal_error_handler(_request: Request, exc: PortalError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code}: {exc.message}")
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc), headers=headers)


async def request_validation_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    fields: dict[str, str] = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        fields[".".join(loc) or "body"] = err.get("msg", "Invalid value")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "VALIDATION_ERROR",
            "message": "The request contains invalid fields.",
            "fields": fields,
        },
    )


HTTP_ERROR_CODES = {
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
    status.HTTP_429_TOO_MANY_REQUESTS: "RATE_LIMIT_EXCEEDED",
}


async def http_exception_handler(
    _request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Render framework and rate-limit HTTPExceptions in the same envelope."""
    if isinstance(exc.detail, dict) and "error" in exc.detail:
        content = exc.detail
    else:
        content = {
            "error": HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR"),
            "message": str(exc.detail),
        }
    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=getattr(exc, "headers", None),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PortalError, portal_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
