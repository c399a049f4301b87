import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from .config import settings

logger = logging.getLogger(__name__)

class Base(DeclarativeBase):
    pass


def make_engine(url: str) -> Engine:
    """
    Build an engine for the given URL.
    SQLite connections are shared across worker threads and wait on locks
    instead of failing immediately, so concurrent writers queue up.
    """
    if url.startswith("sqlite"):
        eng = create_engine(url, connect_args={"check_same_thread": False, "timeout": 30})

        @event.listens_for(eng, "connect")
        def _sqlite_pragmas(dbapi_conn, _record):
            cur = dbapi_conn.cursor()
            cur.execute("PRAGMA foreign_keys = ON")
            cur.close()

        return eng
    return create_engine(url, pool_pre_ping=True)


engine = make_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_schema(bind: Engine | None = None) -> None:
    """Create all tables for local runs and tests. Production uses Alembic."""
    from . import models  # noqa: F401  (register mappers)

    target = bind or engine
    Base.metadata.create_all(bind=target)
    logger.info("Schema ensured on %s", target.url.render_as_string(hide_password=True))
