"""Record store gateway for the ``students`` table.

Each write is a single statement. Store failures are translated into the
error taxonomy in ``app.core.errors`` after the session is rolled back.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy import delete as sa_delete
from sqlalchemy import text
from sqlalchemy import update as sa_update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import DuplicateKey, NotFound, StorageError
from app.core.logging import get_logger
from app.models.student import Student
from app.services.student_query import ListPlan, select_page, select_total

log = get_logger("students.repository")

# MySQL ER_DUP_ENTRY / PostgreSQL unique_violation
_MYSQL_DUP_ENTRY = 1062
_PG_UNIQUE_VIOLATION = "23505"


def is_duplicate_key(exc: IntegrityError) -> bool:
    orig = exc.orig
    args = getattr(orig, "args", ())
    if args and args[0] == _MYSQL_DUP_ENTRY:
        return True
    if getattr(orig, "pgcode", None) == _PG_UNIQUE_VIOLATION:
        return True
    return "UNIQUE constraint failed" in str(orig)


def _to_row(record: Mapping[str, Any]) -> dict[str, Any]:
    row = dict(record)
    dob = row.get("date_of_birth")
    if isinstance(dob, str):
        # o validador só confere o formato; data impossível morre aqui
        try:
            row["date_of_birth"] = dt.date.fromisoformat(dob)
        except ValueError as exc:
            log.error("student.invalid_date", date_of_birth=dob)
            raise StorageError() from exc
    return row


def _write_failed(db: Session, exc: SQLAlchemyError, op: str, **ctx: Any) -> Exception:
    db.rollback()
    if isinstance(exc, IntegrityError) and is_duplicate_key(exc):
        log.info("student.duplicate_email", op=op, **ctx)
        return DuplicateKey()
    log.error("student.storage_error", op=op, error=str(exc), **ctx)
    return StorageError(f"Failed to {op} student")


def create(db: Session, record: Mapping[str, Any]) -> int:
    st = Student(**_to_row(record))
    db.add(st)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        raise _write_failed(db, exc, "create", email=st.email) from exc
    db.refresh(st)
    student_id = st.id
    log.info("student.created", id=student_id)
    return student_id


def get(db: Session, student_id: int) -> Student:
    try:
        st = db.get(Student, student_id, populate_existing=True)
    except SQLAlchemyError as exc:
        db.rollback()
        log.error("student.storage_error", op="get", id=student_id, error=str(exc))
        raise StorageError("Failed to fetch student") from exc
    if st is None:
        raise NotFound()
    return st


def list_page(db: Session, plan: ListPlan) -> tuple[Sequence[Student], int]:
    try:
        rows = db.execute(select_page(plan)).scalars().all()
        total = db.scalar(select_total(plan)) or 0
    except SQLAlchemyError as exc:
        db.rollback()
        log.error("student.storage_error", op="list", error=str(exc))
        raise StorageError("Failed to list students") from exc
    return rows, total


def update(db: Session, student_id: int, fields: Mapping[str, Any]) -> int:
    """Apply only ``fields``; returns the number of columns touched."""
    if not fields:
        return 0
    row = _to_row(fields)
    stmt = sa_update(Student).where(Student.id == student_id).values(**row)
    try:
        result = db.execute(stmt)
        db.commit()
    except SQLAlchemyError as exc:
        raise _write_failed(db, exc, "update", id=student_id) from exc
    if not result.rowcount:
        raise NotFound()
    log.info("student.updated", id=student_id, fields=sorted(row))
    return len(row)


def delete(db: Session, student_id: int) -> None:
    stmt = sa_delete(Student).where(Student.id == student_id)
    try:
        result = db.execute(stmt)
        db.commit()
    except SQLAlchemyError as exc:
        raise _write_failed(db, exc, "delete", id=student_id) from exc
    if not result.rowcount:
        raise NotFound()
    log.info("student.deleted", id=student_id)


def ping(db: Session) -> bool:
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        db.rollback()
        log.error("db.ping_failed", error=str(exc))
        return False
    return True
