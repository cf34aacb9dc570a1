"""SQLAlchemy engine and session factory for the SQL storage backend.

SQLite files get their parent directory created and skip pooling; any other
URL (PostgreSQL in deployment) gets a pre-pinged QueuePool.
"""

import os
from typing import Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import NullPool, QueuePool

from config.settings import get_settings


def _ensure_sqlite_dir(url: str) -> None:
    database = make_url(url).database
    if database and database != ":memory:":
        parent = os.path.dirname(database)
        if parent:
            os.makedirs(parent, exist_ok=True)


def create_db_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        _ensure_sqlite_dir(url)
        return create_engine(url, connect_args={"check_same_thread": False}, poolclass=NullPool)
    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        pool_recycle=3600,
    )


engine = create_db_engine(get_settings().database_url)
SessionLocal = sessionmaker(bind=engine, autoflush=False)

Base = declarative_base()


def get_db() -> Iterator[Session]:
    """Request-scoped session, closed when the response is sent."""
    with SessionLocal() as db:
        yield db


def init_db(bind: Optional[Engine] = None) -> None:
    """Create the users/portfolios/holdings/snapshots tables if missing."""
    from app.domain import models  # noqa: F401  registers the tables on Base
    Base.metadata.create_all(bind=bind or engine)
