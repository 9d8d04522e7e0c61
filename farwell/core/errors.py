"""
HTTP error catalogue.

Routers translate service exceptions into one of these; a single handler
registered on the app renders them as JSON.
"""

from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class ApiError(Exception):
    status_code = 500
    default_message = "Server Error"

    def __init__(self, message: str | None = None, *, headers: dict[str, str] | None = None, **payload: Any):
        self.message = message or self.default_message
        super().__init__(self.message)
        self.headers = headers
        self.payload = payload

    def body(self) -> dict[str, Any]:
        return {"message": self.message, **self.payload}


class ValidationError(ApiError):
    """422 with field-level messages (``{"email": ["..."]}``)."""

    status_code = 422
    default_message = "The given data was invalid."

    def __init__(self, errors: dict[str, list[str]], message: str | None = None):
        if message is None:
            first = next((msgs[0] for msgs in errors.values() if msgs), None)
            message = first or self.default_message
        super().__init__(message, errors=errors)
        self.errors = errors


class BadRequest(ApiError):
    status_code = 400
    default_message = "Bad Request"

    def body(self) -> dict[str, Any]:
        return {"error": self.message, **self.payload}


class Unauthorized(ApiError):
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(ApiError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(ApiError):
    status_code = 404
    default_message = "Not Found"


class TooManyRequests(ApiError):
    status_code = 429
    default_message = "Too many requests. Try again shortly."


class InternalError(ApiError):
    status_code = 500
    default_message = "Server Error"


class FieldErrors:
    """Collects validation messages per field, in insertion order."""

    def __init__(self) -> None:
        self._errors: dict[str, list[str]] = {}

    def add(self, field: str, message: str) -> None:
        self._errors.setdefault(field, []).append(message)

    def has(self, field: str) -> bool:
        return field in self._errors

    def __bool__(self) -> bool:
        return bool(self._errors)

    def raise_if_any(self) -> None:
        if self._errors:
            raise ValidationError(dict(self._errors))


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(exc.body(), status_code=exc.status_code, headers=exc.headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc) or "body"
        errors.setdefault(field, []).append(err.get("msg", "Invalid value."))
    return JSONResponse(ValidationError(errors).body(), status_code=422)
