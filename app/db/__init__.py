from app.db.session import dispose_engine, get_db, get_engine, get_sessionmaker

__all__ = ["dispose_engine", "get_db", "get_engine", "get_sessionmaker"]
