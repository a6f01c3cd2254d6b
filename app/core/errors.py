"""Error taxonomy shared by the gateway, the JSON API and the web pages.

Every failure a caller can see is one of four kinds:

- ``ValidationError``: malformed or out-of-range input, user-correctable,
  detected before any store call and carrying field-level messages.
- ``NotFound``: the id does not reference an existing record.
- ``DuplicateKey``: the email collides with another record.
- ``StorageError``: anything else that went wrong reaching the store.

The JSON handlers registered by ``register_exception_handlers`` turn these into
400/404/409/500 responses and log each one.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from app.core.logging import get_logger


class StudentsError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message}


class ValidationError(StudentsError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Validation failed"

    def __init__(
        self,
        field_errors: dict[str, list[str]] | None = None,
        form_errors: Sequence[str] = (),
        message: str | None = None,
    ):
        super().__init__(message)
        self.field_errors = field_errors or {}
        self.form_errors = list(form_errors)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"detail": self.message, "errors": self.field_errors}
        if self.form_errors:
            body["form_errors"] = self.form_errors
        return body


class NotFound(StudentsError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Student not found"


class DuplicateKey(StudentsError):
    status_code = status.HTTP_409_CONFLICT
    message = "Email already exists"


class StorageError(StudentsError):
    message = "Storage failure"


def field_errors_from(errors: Sequence[dict[str, Any]]) -> tuple[dict[str, list[str]], list[str]]:
    """Group pydantic-style error dicts by field name.

    A leading ``body``/``path``/``query`` location segment is dropped so the
    same mapping serves both model validation and FastAPI request validation.
    Errors without a field location become form-level errors.
    """
    fields: dict[str, list[str]] = {}
    form: list[str] = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ())]
        if loc and loc[0] in ("body", "path", "query"):
            loc = loc[1:]
        msg = str(err.get("msg", "Invalid value"))
        if err.get("type") == "json_invalid":
            form.append(msg)
            continue
        # pydantic prefixa erros de ValueError
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, ") :]
        if loc:
            fields.setdefault(loc[0], []).append(msg)
        else:
            form.append(msg)
    return fields, form


def register_exception_handlers(
    app: FastAPI,
    *,
    html_error: Callable[[Request, StudentsError], Response] | None = None,
    is_api: Callable[[Request], bool] = lambda request: True,
) -> None:
    """Install JSON handlers; pages outside the API get ``html_error`` instead."""
    log = get_logger("errors")

    @app.exception_handler(StudentsError)
    async def students_error_handler(request: Request, exc: StudentsError) -> Response:
        event = log.bind(
            path=request.url.path,
            method=request.method,
            error=type(exc).__name__,
            status_code=exc.status_code,
        )
        if exc.status_code >= 500:
            event.error("request.failed", message=exc.message, cause=repr(exc.__cause__))
        else:
            event.info("request.rejected", message=exc.message)
        if html_error is not None and not is_api(request):
            return html_error(request, exc)
        return JSONResponse(exc.to_dict(), status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> Response:
        fields, form = field_errors_from(exc.errors())
        err = ValidationError(fields, form)
        log.info(
            "request.invalid",
            path=request.url.path,
            method=request.method,
            fields=sorted(fields),
        )
        if html_error is not None and not is_api(request):
            return html_error(request, err)
        return JSONResponse(err.to_dict(), status_code=err.status_code)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        log.exception("request.unhandled", path=request.url.path, method=request.method)
        return JSONResponse(
            {"detail": "Internal error"},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
