"""
Connection Engine (SQLAlchemy)

Purpose
-------
Centralizes database initialization for the application:
- Builds the SQLAlchemy connection URL from a `Settings` object.
- Creates the Engine (connection pool + SQL execution entry point).
- Binds the shared session factory used by `@transactional`.
- Defines shared MetaData and the Declarative Base class for ORM models.

Notes
-----
- Nothing connects at import time. The process entry point (`create_app` or the
  seed command) calls `build_engine(settings)`, `init_schema(engine)` and
  `bind_engine(engine)` and owns the engine's lifecycle.
- SQLite gets `check_same_thread=False` because FastAPI runs sync routes in a threadpool;
  an in-memory SQLite database additionally uses a single shared connection.
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.schema import MetaData

from chatnao.database.config.config import Settings


def build_connection_url(settings: Settings) -> URL:
    """Construct the SQLAlchemy connection URL from the settings' `DB_*` values."""
    return URL.create(
        drivername=settings.DB_DRIVER_NAME,   # e.g., "postgresql+psycopg2", "sqlite"
        username=settings.DB_USERNAME,
        password=settings.DB_PASSWORD,
        host=settings.DB_HOST,
        port=settings.DB_PORT,
        database=settings.DB_DATABASE_NAME,
    )


def build_engine(settings: Settings) -> Engine:
    """
    Create the Engine for the configured database.

    Parameters
    ----------
    settings : Settings
        Application settings.

    Returns
    -------
    Engine
        A SQLAlchemy engine; no connection is opened until first use.
    """
    url = build_connection_url(settings)
    if url.get_backend_name() == "sqlite":
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url, pool_pre_ping=True)


# --------------------------------------------------------------------
# Metadata object: stores schema-level information about tables,
# constraints, indexes, etc. Shared across all models.
# --------------------------------------------------------------------
metadata = MetaData()

# --------------------------------------------------------------------
# Declarative Base: root class for ORM models.
# --------------------------------------------------------------------
declarativeBase = declarative_base(metadata=metadata)

# --------------------------------------------------------------------
# Session factory used by `@transactional`. Unbound until `bind_engine`.
# --------------------------------------------------------------------
SessionFactory = sessionmaker(expire_on_commit=False)


def bind_engine(engine: Engine) -> None:
    """Point the shared session factory at `engine`."""
    SessionFactory.configure(bind=engine)


def init_schema(engine: Engine) -> None:
    """Create all tables known to `metadata` (no-op for tables that already exist)."""
    # entity modules register their tables on import
    from chatnao.database.entities import chats, messages, user  # noqa: F401

    metadata.create_all(engine)
