from __future__ import annotations

import threading
from collections.abc import Generator

from sqlalchemy import Engine, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.core.logging import get_logger
from app.core.settings import settings

# Um único engine (pool) por processo, criado no primeiro acesso
_engine: Engine | None = None
_SessionLocal: sessionmaker[Session] | None = None
_engine_lock = threading.Lock()


def _build_engine() -> Engine:
    log = get_logger("db")
    missing = settings.missing_db_parts
    if missing:
        log.warning("db.config.missing", missing=missing)

    url = settings.database_url()
    kwargs: dict = {"pool_pre_ping": True, "connect_args": settings.connect_args()}
    if url.get_backend_name() != "sqlite":
        kwargs["pool_size"] = settings.DB_POOL_SIZE
    engine = create_engine(url, **kwargs)
    log.info("db.engine.created", backend=url.get_backend_name(), host=url.host)
    return engine


def get_engine(*, bootstrap: bool = True) -> Engine:
    """Devolve o engine do processo, criando (e fazendo bootstrap) na primeira chamada.

    `bootstrap=False` pula o schema/seed automático (usado pelo scripts/seed.py).
    """
    global _engine, _SessionLocal
    if _engine is None:
        with _engine_lock:
            if _engine is None:
                engine = _build_engine()
                _SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
                _engine = engine
    if bootstrap and settings.DB_BOOTSTRAP:
        from app.db.bootstrap import bootstrap as run_bootstrap

        try:
            run_bootstrap(_engine)  # no-op depois do primeiro sucesso
        except SQLAlchemyError as exc:
            # tenta de novo no próximo acesso; as rotas falham com StorageError
            get_logger("db").error("db.bootstrap.failed", error=str(exc))
    return _engine


def get_sessionmaker() -> sessionmaker[Session]:
    get_engine()
    assert _SessionLocal is not None
    return _SessionLocal


def get_db() -> Generator[Session, None, None]:
    """Dependency do FastAPI: abre uma sessão por request e fecha no final."""
    db = get_sessionmaker()()
    try:
        yield db
    finally:
        db.close()


def dispose_engine() -> None:
    global _engine, _SessionLocal
    with _engine_lock:
        if _engine is None:
            return
        _engine.dispose()
        _engine = None
        _SessionLocal = None
    get_logger("db").info("db.engine.disposed")


__all__ = ["dispose_engine", "get_db", "get_engine", "get_sessionmaker"]
