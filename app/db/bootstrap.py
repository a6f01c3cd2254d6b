"""One-time schema ensure + sample seed, run lazily on first engine access.

Concurrent first accesses (threads or processes) are not serialized here: the
table is created with ``checkfirst`` and a creator that loses the race finds
the table on re-inspection; a seeder that loses the race hits the unique email
index and backs off.
"""

from __future__ import annotations

import datetime as dt

from sqlalchemy import Engine, func, insert, inspect, select
from sqlalchemy.exc import IntegrityError, OperationalError, ProgrammingError
from sqlalchemy.orm import Session

from app.core.logging import get_logger
from app.db.base_class import Base
from app.models.student import Student

log = get_logger("bootstrap")

SAMPLE_STUDENTS: list[dict] = [
    {
        "first_name": "Alice",
        "last_name": "Johnson",
        "email": "alice.johnson@example.com",
        "phone": "555-0101",
        "date_of_birth": dt.date(2002, 3, 15),
        "course": "Computer Science",
        "year": 2,
        "address": "123 Maple St",
        "notes": "Enjoys algorithms.",
    },
    {
        "first_name": "Bob",
        "last_name": "Smith",
        "email": "bob.smith@example.com",
        "phone": "555-0102",
        "date_of_birth": dt.date(2001, 7, 21),
        "course": "Mathematics",
        "year": 3,
        "address": "456 Oak Ave",
        "notes": "Math club lead.",
    },
    {
        "first_name": "Carol",
        "last_name": "Nguyen",
        "email": "carol.nguyen@example.com",
        "phone": "555-0103",
        "date_of_birth": dt.date(2003, 1, 9),
        "course": "Physics",
        "year": 1,
        "address": "789 Pine Rd",
        "notes": "Lab assistant.",
    },
    {
        "first_name": "David",
        "last_name": "Lopez",
        "email": "david.lopez@example.com",
        "phone": "555-0104",
        "date_of_birth": dt.date(2000, 12, 30),
        "course": "Chemistry",
        "year": 4,
        "address": "321 Birch Blvd",
        "notes": "Research intern.",
    },
    {
        "first_name": "Eve",
        "last_name": "Khan",
        "email": "eve.khan@example.com",
        "phone": "555-0105",
        "date_of_birth": dt.date(2002, 11, 2),
        "course": "Computer Science",
        "year": 2,
        "address": "654 Cedar Ln",
        "notes": "AI study group.",
    },
    {
        "first_name": "Frank",
        "last_name": "O'Brien",
        "email": "frank.obrien@example.com",
        "phone": "555-0106",
        "date_of_birth": dt.date(2001, 5, 18),
        "course": "Economics",
        "year": 3,
        "address": "987 Spruce Dr",
        "notes": "TA for microeconomics.",
    },
    {
        "first_name": "Grace",
        "last_name": "Kim",
        "email": "grace.kim@example.com",
        "phone": "555-0107",
        "date_of_birth": dt.date(2003, 8, 24),
        "course": "Biology",
        "year": 1,
        "address": "159 Walnut St",
        "notes": "Pre-med track.",
    },
    {
        "first_name": "Hank",
        "last_name": "Patel",
        "email": "hank.patel@example.com",
        "phone": "555-0108",
        "date_of_birth": dt.date(2002, 4, 6),
        "course": "Statistics",
        "year": 2,
        "address": "753 Chestnut Ave",
        "notes": "Data viz enthusiast.",
    },
    {
        "first_name": "Ivy",
        "last_name": "Garcia",
        "email": "ivy.garcia@example.com",
        "phone": "555-0109",
        "date_of_birth": dt.date(2000, 9, 12),
        "course": "Philosophy",
        "year": 4,
        "address": "258 Elm Ct",
        "notes": "Debate team captain.",
    },
    {
        "first_name": "Jake",
        "last_name": "Chen",
        "email": "jake.chen@example.com",
        "phone": "555-0110",
        "date_of_birth": dt.date(2001, 2, 28),
        "course": "History",
        "year": 3,
        "address": "852 Willow Way",
        "notes": "Archival volunteer.",
    },
]

_bootstrapped = False


def ensure_schema(engine: Engine) -> None:
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
    except (OperationalError, ProgrammingError):
        # outro processo criou a tabela entre o check e o CREATE
        if not inspect(engine).has_table(Student.__tablename__):
            raise
        log.info("db.bootstrap.schema_race", table=Student.__tablename__)


def seed_if_empty(engine: Engine) -> int:
    with Session(engine) as db:
        count = db.scalar(select(func.count()).select_from(Student))
        if count:
            return 0
        try:
            db.execute(insert(Student), SAMPLE_STUDENTS)
            db.commit()
        except IntegrityError:
            db.rollback()
            log.info("db.bootstrap.seed_race")
            return 0
    log.info("db.bootstrap.seeded", inserted=len(SAMPLE_STUDENTS))
    return len(SAMPLE_STUDENTS)


def bootstrap(engine: Engine, *, force: bool = False) -> None:
    global _bootstrapped
    if _bootstrapped and not force:
        return
    ensure_schema(engine)
    seed_if_empty(engine)
    _bootstrapped = True
