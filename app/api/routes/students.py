# app/api/routes/students.py
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Path, Query, Response, status
from sqlalchemy.orm import Session

from app.db import get_db
from app.repositories import students as repo
from app.schemas.students import (
    ListMeta,
    StudentCreateIn,
    StudentIdOut,
    StudentListOut,
    StudentOut,
    StudentUpdateIn,
)
from app.services.student_query import build_list_plan, total_pages

router = APIRouter(prefix="/students", tags=["students"])

# ids começam em 1; zero, negativos e não numéricos viram 400
StudentId = Annotated[int, Path(ge=1, description="Id numérico do aluno")]


@router.get("", response_model=StudentListOut)
def list_students(
    db: Session = Depends(get_db),
    search: str | None = Query(None, description="Busca em nome, email, telefone, curso"),
    page: str | None = Query(None),
    page_size: str | None = Query(None, alias="pageSize"),
    sort_by: str | None = Query(None, alias="sortBy"),
    sort_dir: str | None = Query(None, alias="sortDir"),
):
    plan = build_list_plan(search, page, page_size, sort_by, sort_dir)
    rows, total = repo.list_page(db, plan)
    return StudentListOut(
        data=[StudentOut.model_validate(s) for s in rows],
        meta=ListMeta(
            total=total,
            page=plan.page,
            pageSize=plan.limit,
            totalPages=total_pages(total, plan.limit),
        ),
    )


@router.post("", response_model=StudentIdOut, status_code=status.HTTP_201_CREATED)
def create_student(payload: StudentCreateIn, db: Session = Depends(get_db)):
    student_id = repo.create(db, payload.model_dump())
    return StudentIdOut(id=student_id)


@router.get("/{student_id}", response_model=StudentOut)
def get_student(student_id: StudentId, db: Session = Depends(get_db)):
    return StudentOut.model_validate(repo.get(db, student_id))


@router.put(
    "/{student_id}",
    response_model=StudentIdOut,
    responses={204: {"description": "Nenhum campo informado"}},
)
def update_student(
    student_id: StudentId,
    payload: StudentUpdateIn | None = None,
    db: Session = Depends(get_db),
) -> Any:
    changes = payload.changes() if payload is not None else {}
    if not changes:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    repo.update(db, student_id, changes)
    return StudentIdOut(id=student_id)


@router.delete("/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_student(student_id: StudentId, db: Session = Depends(get_db)):
    repo.delete(db, student_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
