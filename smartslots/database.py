# smartslots/database.py

from functools import lru_cache

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from .config import settings


@lru_cache
def get_engine() -> Engine:
    """Engine for DATABASE_URL (created on first use)."""
    url = settings.resolved_database_url
    if not url:
        raise RuntimeError("DATABASE_URL not set in .env")

    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    # SQLite is read from worker threads (asyncio.to_thread)
    engine = create_engine(url, connect_args={"check_same_thread": False})

    @event.listens_for(engine, "connect")
    def enable_sqlite_fk(dbapi_connection, _):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


@lru_cache
def get_session_factory() -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


def SessionLocal():
    return get_session_factory()()


# Dependency for FastAPI
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
