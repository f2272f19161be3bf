"""
TRIAL TRACKER - Database Connection Manager
============================================
Engine construction and session lifecycle for the trial store.

PostgreSQL runs behind a QueuePool. SQLite (tests, local demos) shares a
single connection through a StaticPool so an in-memory database outlives
the session that created it.
"""

import logging
from typing import Optional, Generator
from contextlib import contextmanager

from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool, StaticPool

from .config import DatabaseConfig

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE CASCADE unless asked per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class DatabaseManager:
    """
    Owns the engine and hands out sessions.

    Sessions do not expire loaded attributes on commit, so services can
    keep returning ORM objects after they commit.
    """

    def __init__(self, config: Optional[DatabaseConfig] = None):
        self.config = config or DatabaseConfig()
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    # =========================================================================
    # ENGINE
    # =========================================================================

    def _build_engine(self) -> Engine:
        if self.config.is_sqlite:
            engine = create_engine(
                self.config.connection_url,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
                echo=self.config.echo,
            )
            event.listen(engine, "connect", _enable_sqlite_foreign_keys)
            return engine

        return create_engine(
            self.config.connection_url,
            poolclass=QueuePool,
            pool_size=self.config.pool_size,
            max_overflow=self.config.max_overflow,
            pool_timeout=self.config.pool_timeout,
            pool_recycle=self.config.pool_recycle,
            pool_pre_ping=True,
            echo=self.config.echo,
        )

    def initialize(self) -> None:
        """Build the engine and session factory once."""
        if self._engine is not None:
            return

        try:
            self._engine = self._build_engine()
        except Exception as e:
            logger.error(f"Could not create engine for {self.config.display_name}: {e}")
            raise

        self._session_factory = sessionmaker(
            bind=self._engine,
            autoflush=False,
            expire_on_commit=False,
        )
        logger.info(f"Database engine ready: {self.config.display_name}")

    @property
    def engine(self) -> Engine:
        self.initialize()
        return self._engine

    # =========================================================================
    # SESSIONS
    # =========================================================================

    def get_session(self) -> Session:
        """New session; the caller closes it."""
        self.initialize()
        return self._session_factory()

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """
        Transactional scope for scripts.

        Usage:
            with db_manager.session() as session:
                AuthService(session).provision_user(fields)
        """
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # =========================================================================
    # SCHEMA & STATUS
    # =========================================================================

    def create_tables(self, drop_existing: bool = False) -> None:
        """Create users, clinical_trials and trial_notes if missing."""
        from .models import Base

        if drop_existing:
            Base.metadata.drop_all(self.engine)
            logger.warning("Dropped all trial tracker tables")

        Base.metadata.create_all(self.engine)
        logger.info(f"Tables ready: {', '.join(sorted(inspect(self.engine).get_table_names()))}")

    def health_check(self) -> bool:
        """True if a trivial query round-trips."""
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False

    def close(self) -> None:
        """Dispose of pooled connections."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Database connections closed")


# Singleton instance
_db_manager: Optional[DatabaseManager] = None


def get_db_manager() -> DatabaseManager:
    """Get singleton database manager configured from the environment."""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
        _db_manager.initialize()
    return _db_manager


def reset_db_manager() -> None:
    """Drop the singleton (tests switch databases this way)."""
    global _db_manager
    if _db_manager is not None:
        _db_manager.close()
        _db_manager = None
