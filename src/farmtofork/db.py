"""
Engine and session management.

The engine is created lazily by init_engine() so the app factory (and the
test-suite) decide which database to bind to. Repositories work with ORM
sessions obtained from session_scope(); the health check uses a raw
connection from get_connection().
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import JSON, BigInteger, Integer, create_engine
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from farmtofork.core.config import config

logger = logging.getLogger(__name__)

Base = declarative_base()

# JSONB on Postgres, plain JSON everywhere else (SQLite in tests).
JSONType = JSON().with_variant(JSONB(), "postgresql")

# SQLite only autoincrements INTEGER PRIMARY KEY columns.
IdType = BigInteger().with_variant(Integer(), "sqlite")

SessionLocal = sessionmaker(expire_on_commit=False)

_engine: Optional[Engine] = None


def normalize_database_url(url: str) -> str:
    # Hosted providers still hand out the legacy scheme.
    if url.startswith("postgres://"):
        return "postgresql://" + url[len("postgres://"):]
    return url


def init_engine(url: Optional[str] = None) -> Engine:
    """Create the global engine and bind the session factory to it."""
    global _engine

    url = normalize_database_url(url or config.database.url)

    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=config.database.echo,
        )
    else:
        engine = create_engine(
            url,
            pool_size=config.database.pool_size,
            max_overflow=config.database.max_overflow,
            pool_timeout=config.database.pool_timeout,
            pool_recycle=config.database.pool_recycle,
            pool_pre_ping=True,
            echo=config.database.echo,
        )

    if _engine is not None:
        _engine.dispose()
    _engine = engine
    SessionLocal.configure(bind=engine)
    logger.info(f"Database engine initialised ({engine.dialect.name})")
    return engine


def get_engine() -> Engine:
    if _engine is None:
        return init_engine()
    return _engine


@contextmanager
def get_connection() -> Iterator[Connection]:
    with get_engine().connect() as conn:
        yield conn


@contextmanager
def session_scope() -> Iterator[Session]:
    """Transactional scope: commit on success, roll back on any error."""
    get_engine()
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_all() -> None:
    # Importing the models registers them on Base.metadata.
    import farmtofork.models  # noqa: F401

    Base.metadata.create_all(get_engine())

