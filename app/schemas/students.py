from __future__ import annotations

import datetime as dt
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Annotated, Any, Literal

from email_validator import EmailNotValidError, validate_email
from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from app.core.errors import ValidationError, field_errors_from

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"

SORTABLE_FIELDS = ("first_name", "last_name", "email", "course", "year", "created_at")
SortField = Literal["first_name", "last_name", "email", "course", "year", "created_at"]
SortDir = Literal["asc", "desc"]

DEFAULT_SORT_FIELD: SortField = "created_at"
DEFAULT_SORT_DIR: SortDir = "desc"

REQUIRED_FIELDS = ("first_name", "last_name", "email")


def _check_email(v: str) -> str:
    """Só confere o formato; o endereço é gravado exatamente como veio."""
    try:
        validate_email(v, check_deliverability=False, test_environment=True)
    except EmailNotValidError as exc:
        raise ValueError(str(exc)) from exc
    return v


Email = Annotated[str, Field(max_length=255), AfterValidator(_check_email)]


class StudentCreateIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: Email
    phone: str | None = Field(None, max_length=50)
    date_of_birth: str | None = Field(None, pattern=DATE_PATTERN)
    course: str | None = Field(None, max_length=150)
    year: int | None = Field(None, ge=1, le=8)
    address: str | None = Field(None, max_length=255)
    notes: str | None = Field(None, max_length=1000)


class StudentUpdateIn(BaseModel):
    """Partial update: only the fields present in the payload are applied.

    Optional columns accept ``null`` to clear them; the required columns may be
    left out but never set to ``null``.
    """

    model_config = ConfigDict(extra="forbid")

    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    email: Email | None = None
    phone: str | None = Field(None, max_length=50)
    date_of_birth: str | None = Field(None, pattern=DATE_PATTERN)
    course: str | None = Field(None, max_length=150)
    year: int | None = Field(None, ge=1, le=8)
    address: str | None = Field(None, max_length=255)
    notes: str | None = Field(None, max_length=1000)

    @field_validator(*REQUIRED_FIELDS)
    @classmethod
    def not_null(cls, v: str | None) -> str:
        if v is None:
            raise ValueError("Field cannot be null")
        return v

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class StudentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    email: str
    phone: str | None
    date_of_birth: dt.date | None
    course: str | None
    year: int | None
    address: str | None
    notes: str | None
    created_at: dt.datetime
    updated_at: dt.datetime


class StudentIdOut(BaseModel):
    id: int


class ListMeta(BaseModel):
    total: int
    page: int
    pageSize: int
    totalPages: int


class StudentListOut(BaseModel):
    data: list[StudentOut]
    meta: ListMeta


def _parse(model: type[BaseModel], data: Mapping[str, Any] | None):
    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise ValidationError(form_errors=["Expected a JSON object"])
    try:
        return model.model_validate(dict(data))
    except PydanticValidationError as exc:
        fields, form = field_errors_from(exc.errors())
        raise ValidationError(fields, form) from exc


def parse_create(data: Mapping[str, Any] | None) -> StudentCreateIn:
    return _parse(StudentCreateIn, data)


def parse_update(data: Mapping[str, Any] | None) -> StudentUpdateIn:
    return _parse(StudentUpdateIn, data)


@dataclass(frozen=True)
class SortSpec:
    field: SortField
    dir: SortDir


def validate_sort(field: str | None, direction: str | None) -> SortSpec:
    """Allow-list the sort column; anything unknown falls back to created_at desc."""
    if not field:
        return SortSpec(field=DEFAULT_SORT_FIELD, dir=DEFAULT_SORT_DIR)
    f = field if field in SORTABLE_FIELDS else DEFAULT_SORT_FIELD
    d = direction if direction in ("asc", "desc") else DEFAULT_SORT_DIR
    return SortSpec(field=f, dir=d)
