"""
Database configuration and session management

Environment variables:
- GRADEBOOK_DATABASE_URL: SQLAlchemy URL (default: sqlite:///./gradebook.db)
- GRADEBOOK_DB_ECHO: log emitted SQL (default: false)
- GRADEBOOK_DB_POOL_SIZE / GRADEBOOK_DB_MAX_OVERFLOW: pool sizing (non-SQLite only)

SQLite engines get two adjustments so tests can run against it:
1. ``check_same_thread=False`` (and a StaticPool for ``:memory:``) because the
   FastAPI test client runs requests in a worker thread.
2. The pysqlite SAVEPOINT recipe: the driver's own transaction handling is
   disabled and SQLAlchemy emits BEGIN itself, otherwise nested transactions
   (used by bulk grade upserts) do not roll back correctly. Foreign keys are
   switched on per connection.
"""
import logging
import os
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..core.settings import env_bool
from .base import Base

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///./gradebook.db"


def _install_sqlite_savepoint_support(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


class DatabaseConfig:
    """Owns the engine and the session factory"""

    def __init__(
        self,
        database_url: Optional[str] = None,
        echo: Optional[bool] = None,
        pool_size: Optional[int] = None,
        max_overflow: Optional[int] = None,
    ):
        self.database_url = database_url or os.getenv("GRADEBOOK_DATABASE_URL", DEFAULT_DATABASE_URL)
        self.echo = env_bool("GRADEBOOK_DB_ECHO", False) if echo is None else echo
        self.pool_size = pool_size or int(os.getenv("GRADEBOOK_DB_POOL_SIZE", "10"))
        self.max_overflow = max_overflow or int(os.getenv("GRADEBOOK_DB_MAX_OVERFLOW", "20"))

        self.engine = self._create_engine()
        self.SessionLocal = sessionmaker(
            bind=self.engine, autoflush=False, autocommit=False, expire_on_commit=False
        )

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    def _create_engine(self) -> Engine:
        if self.is_sqlite:
            kwargs = {"connect_args": {"check_same_thread": False}}
            if ":memory:" in self.database_url or self.database_url in ("sqlite://", "sqlite+pysqlite://"):
                kwargs["poolclass"] = StaticPool
            engine = create_engine(self.database_url, echo=self.echo, **kwargs)
            _install_sqlite_savepoint_support(engine)
        else:
            engine = create_engine(
                self.database_url,
                echo=self.echo,
                pool_pre_ping=True,
                pool_size=self.pool_size,
                max_overflow=self.max_overflow,
            )

        logger.info(
            "Database engine created",
            extra={"dialect": engine.dialect.name, "echo": self.echo},
        )
        return engine

    def create_all(self) -> None:
        # Importing the models registers every table on Base.metadata
        from . import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        from . import models  # noqa: F401

        Base.metadata.drop_all(bind=self.engine)

    def get_session(self) -> Session:
        return self.SessionLocal()


_db_config: Optional[DatabaseConfig] = None


def get_db_config() -> DatabaseConfig:
    """Process-wide database configuration, created on first use"""
    global _db_config
    if _db_config is None:
        _db_config = DatabaseConfig()
    return _db_config


def init_database(config: Optional[DatabaseConfig] = None) -> DatabaseConfig:
    """Create all tables on the given (or default) database"""
    config = config or get_db_config()
    config.create_all()
    logger.info("Database initialized", extra={"url": config.engine.url.render_as_string(hide_password=True)})
    return config


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency: one session per request"""
    db = get_db_config().get_session()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """Session context manager for scripts"""
    db = get_db_config().get_session()
    try:
        yield db
    finally:
        db.close()
