# app/web/routes/students.py
from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Form, Path, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from app.core.errors import DuplicateKey, ValidationError
from app.db import get_db
from app.repositories import students as repo
from app.schemas.students import REQUIRED_FIELDS, StudentOut, parse_create, parse_update
from app.services.student_query import build_list_plan, total_pages
from app.web.flash import set_flash
from app.web.templating import render

router = APIRouter()

StudentId = Annotated[int, Path(ge=1)]

FORM_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "phone",
    "date_of_birth",
    "course",
    "year",
    "address",
    "notes",
)

# cabeçalhos ordenáveis da tabela: (label, campo)
COLUMNS = [
    ("Name", "last_name"),
    ("Email", "email"),
    ("Course", "course"),
    ("Year", "year"),
]


def _form_payload(values: dict[str, str | None]) -> dict[str, Any]:
    """Campos opcionais vazios viram null; obrigatórios seguem como vieram."""
    payload: dict[str, Any] = {}
    for name in FORM_FIELDS:
        value = values.get(name)
        if name in REQUIRED_FIELDS:
            payload[name] = value or ""
        else:
            payload[name] = value if value not in (None, "") else None
    return payload


def _form_values(student) -> dict[str, str]:
    out = StudentOut.model_validate(student)
    return {
        name: "" if getattr(out, name) is None else str(getattr(out, name))
        for name in FORM_FIELDS
    }


def _first_errors(err: ValidationError) -> dict[str, str]:
    errors = {k: v[0] for k, v in err.field_errors.items() if v}
    if err.form_errors:
        errors["form"] = err.form_errors[0]
    return errors


def _render_form(
    request: Request,
    *,
    values: dict[str, Any],
    errors: dict[str, str] | None = None,
    student_id: int | None = None,
    status_code: int = 200,
) -> HTMLResponse:
    ctx = {
        "values": values,
        "errors": errors or {},
        "student_id": student_id,
        "action": f"/students/{student_id}/edit" if student_id else "/students/new",
        "title": "Edit Student" if student_id else "Create Student",
    }
    return render(request, "pages/students/form.html", ctx, status_code=status_code)


@router.get("/", include_in_schema=False)
def home_redirect():
    return RedirectResponse("/students", status_code=303)


@router.get("/students", response_class=HTMLResponse, name="students_list")
def students_list(
    request: Request,
    db: Session = Depends(get_db),
    search: str | None = Query(None),
    page: str | None = Query(None),
    page_size: str | None = Query(None, alias="pageSize"),
    sort_by: str | None = Query(None, alias="sortBy"),
    sort_dir: str | None = Query(None, alias="sortDir"),
):
    plan = build_list_plan(search, page, page_size, sort_by, sort_dir)
    rows, total = repo.list_page(db, plan)
    pages = max(1, total_pages(total, plan.limit))

    base = {"search": plan.search, "pageSize": plan.limit}
    headers = []
    for label, field in COLUMNS:
        active = plan.sort.field == field
        # mesmo campo alterna a direção; campo novo começa asc
        next_dir = ("desc" if plan.sort.dir == "asc" else "asc") if active else "asc"
        headers.append(
            {
                "label": label,
                "active": active,
                "dir": plan.sort.dir,
                "params": {**base, "sortBy": field, "sortDir": next_dir, "page": 1},
            }
        )

    current = {**base, "sortBy": plan.sort.field, "sortDir": plan.sort.dir}
    ctx = {
        "students": rows,
        "search": plan.search or "",
        "total": total,
        "page": plan.page,
        "total_pages": pages,
        "headers": headers,
        "sort": plan.sort,
        "page_size": plan.limit,
        "prev_params": {**current, "page": plan.page - 1} if plan.page > 1 else None,
        "next_params": {**current, "page": plan.page + 1} if plan.page < pages else None,
    }
    return render(request, "pages/students/list.html", ctx)


@router.get("/students/new", response_class=HTMLResponse, name="students_new")
def students_new(request: Request):
    return _render_form(request, values={name: "" for name in FORM_FIELDS})


@router.post("/students/new", response_class=HTMLResponse)
def students_create(
    request: Request,
    db: Session = Depends(get_db),
    first_name: str | None = Form(None),
    last_name: str | None = Form(None),
    email: str | None = Form(None),
    phone: str | None = Form(None),
    date_of_birth: str | None = Form(None),
    course: str | None = Form(None),
    year: str | None = Form(None),
    address: str | None = Form(None),
    notes: str | None = Form(None),
):
    values = {k: v for k, v in locals().items() if k in FORM_FIELDS}
    try:
        data = parse_create(_form_payload(values))
        student_id = repo.create(db, data.model_dump())
    except ValidationError as err:
        return _render_form(request, values=values, errors=_first_errors(err), status_code=400)
    except DuplicateKey as err:
        return _render_form(
            request, values=values, errors={"email": err.message}, status_code=409
        )
    set_flash(request, f"Student #{student_id} created.")
    return RedirectResponse("/students", status_code=303)


@router.get("/students/{student_id}", response_class=HTMLResponse, name="students_detail")
def students_detail(student_id: StudentId, request: Request, db: Session = Depends(get_db)):
    st = repo.get(db, student_id)
    return render(request, "pages/students/detail.html", {"student": st})


@router.get("/students/{student_id}/edit", response_class=HTMLResponse)
def students_edit(student_id: StudentId, request: Request, db: Session = Depends(get_db)):
    st = repo.get(db, student_id)
    return _render_form(request, values=_form_values(st), student_id=student_id)


@router.post("/students/{student_id}/edit", response_class=HTMLResponse)
def students_update(
    student_id: StudentId,
    request: Request,
    db: Session = Depends(get_db),
    first_name: str | None = Form(None),
    last_name: str | None = Form(None),
    email: str | None = Form(None),
    phone: str | None = Form(None),
    date_of_birth: str | None = Form(None),
    course: str | None = Form(None),
    year: str | None = Form(None),
    address: str | None = Form(None),
    notes: str | None = Form(None),
):
    values = {k: v for k, v in locals().items() if k in FORM_FIELDS}
    try:
        data = parse_update(_form_payload(values))
        repo.update(db, student_id, data.changes())
    except ValidationError as err:
        return _render_form(
            request,
            values=values,
            errors=_first_errors(err),
            student_id=student_id,
            status_code=400,
        )
    except DuplicateKey as err:
        return _render_form(
            request,
            values=values,
            errors={"email": err.message},
            student_id=student_id,
            status_code=409,
        )
    set_flash(request, f"Student #{student_id} updated.")
    return RedirectResponse(f"/students/{student_id}", status_code=303)


@router.post("/students/{student_id}/delete")
def students_delete(student_id: StudentId, request: Request, db: Session = Depends(get_db)):
    repo.delete(db, student_id)
    set_flash(request, f"Student #{student_id} deleted.")
    return RedirectResponse("/students", status_code=303)
