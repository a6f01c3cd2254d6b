from __future__ import annotations

import math
from dataclasses import dataclass

from sqlalchemy import ColumnElement, Select, func, or_, select

from app.core.settings import settings
from app.models.student import Student
from app.schemas.students import SortSpec, validate_sort

SEARCH_COLUMNS = (
    Student.first_name,
    Student.last_name,
    Student.email,
    Student.phone,
    Student.course,
)


@dataclass(frozen=True)
class ListPlan:
    search: str | None
    page: int
    page_size: int
    sort: SortSpec

    @property
    def limit(self) -> int:
        return max(1, self.page_size)

    @property
    def offset(self) -> int:
        return (max(1, self.page) - 1) * self.limit


def _as_int(value: int | str | None, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def build_list_plan(
    search: str | None = None,
    page: int | str | None = None,
    page_size: int | str | None = None,
    sort_by: str | None = None,
    sort_dir: str | None = None,
) -> ListPlan:
    """Resolve raw list parameters into a plan.

    Nothing here rejects input: pages below 1 clamp to 1, a missing or
    non-numeric value takes its default, and the sort goes through the
    allow-list.
    """
    term = (search or "").strip() or None
    return ListPlan(
        search=term,
        page=max(1, _as_int(page, 1)),
        page_size=max(1, _as_int(page_size, settings.DEFAULT_PAGE_SIZE)),
        sort=validate_sort(sort_by, sort_dir),
    )


def search_clause(search: str | None) -> ColumnElement[bool] | None:
    if not search:
        return None
    return or_(*(col.icontains(search, autoescape=True) for col in SEARCH_COLUMNS))


def _filtered(stmt: Select, plan: ListPlan) -> Select:
    clause = search_clause(plan.search)
    if clause is not None:
        stmt = stmt.where(clause)
    return stmt


def select_page(plan: ListPlan) -> Select:
    column = getattr(Student, plan.sort.field)
    if plan.sort.dir == "asc":
        order = (column.asc(), Student.id.asc())
    else:
        order = (column.desc(), Student.id.desc())
    stmt = _filtered(select(Student), plan)
    return stmt.order_by(*order).limit(plan.limit).offset(plan.offset)


def select_total(plan: ListPlan) -> Select:
    return _filtered(select(func.count()).select_from(Student), plan)


def total_pages(total: int, page_size: int) -> int:
    return math.ceil(total / max(1, page_size))
