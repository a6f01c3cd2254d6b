# scripts/seed.py
from __future__ import annotations

import argparse

from sqlalchemy import delete
from sqlalchemy.orm import Session

from app.core.logging import configure_logging
from app.core.settings import settings
from app.db import dispose_engine, get_engine
from app.db.bootstrap import SAMPLE_STUDENTS, ensure_schema, seed_if_empty
from app.models.student import Student


def reset_students(engine) -> int:
    with Session(engine) as db:
        result = db.execute(delete(Student))
        db.commit()
        return result.rowcount or 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Cria a tabela students e popula com exemplos.")
    parser.add_argument("--schema-only", action="store_true", help="só garante a tabela")
    parser.add_argument(
        "--reset", action="store_true", help="apaga TODOS os alunos antes do seed"
    )
    args = parser.parse_args(argv)

    configure_logging(json=settings.LOG_JSON, level=settings.LOG_LEVEL)
    engine = get_engine(bootstrap=False)
    try:
        ensure_schema(engine)
        print(f"[Seed] Tabela '{Student.__tablename__}' pronta.")
        if args.schema_only:
            return 0
        if args.reset:
            removed = reset_students(engine)
            print(f"[Seed] {removed} aluno(s) removido(s).")
        inserted = seed_if_empty(engine)
        if inserted:
            print(f"[Seed] {inserted} aluno(s) de exemplo inseridos.")
            for row in SAMPLE_STUDENTS:
                print(f"- {row['first_name']} {row['last_name']} <{row['email']}>")
        else:
            print("[Seed] Tabela já tinha dados; nada a fazer.")
    finally:
        dispose_engine()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
