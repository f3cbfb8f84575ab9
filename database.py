"""
Database access for the progression store.

Owns the SQLAlchemy engine, the session factory, schema creation and the
FastAPI session dependency.
"""

from contextlib import contextmanager
from typing import Generator
from sqlalchemy import create_engine, text, Engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool
from config import get_settings
import logging

logger = logging.getLogger(__name__)


class DatabaseManager:
    """
    Lazily builds the engine and session factory from settings.

    Repositories never commit on their own; callers either use
    ``session_scope()`` or commit explicitly from a service.
    """

    def __init__(self, database_url: str | None = None):
        self.settings = get_settings()
        self.database_url = database_url or str(self.settings.database_url)
        self._engine: Engine | None = None
        self._session_factory: sessionmaker | None = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = self._create_engine()
        return self._engine

    @property
    def session_factory(self) -> sessionmaker:
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                bind=self.engine,
                autocommit=False,
                autoflush=False,
                expire_on_commit=False,
            )
        return self._session_factory

    def _create_engine(self) -> Engine:
        """Create the engine; pooling options only apply to server databases."""
        url = make_url(self.database_url)
        logger.info(f"Creating database engine for: {url.render_as_string(hide_password=True)}")

        if url.get_backend_name() == "sqlite":
            engine = create_engine(self.database_url, connect_args={"check_same_thread": False})
        else:
            engine = create_engine(
                self.database_url,
                poolclass=QueuePool,
                pool_size=self.settings.db_pool_size,
                max_overflow=self.settings.db_max_overflow,
                pool_timeout=self.settings.db_pool_timeout,
                pool_pre_ping=True,
                echo=self.settings.log_level == "DEBUG",
            )

        logger.info("Database engine created successfully")
        return engine

    def create_tables(self) -> None:
        """Create any missing progression tables."""
        from shared.models.entities import Base

        Base.metadata.create_all(self.engine)

    def get_session(self) -> Session:
        return self.session_factory()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Transactional scope: commit on success, roll back and re-raise on error.

        Usage:
            with db_manager.session_scope() as session:
                ProgressRepository(session).get(user_id, subject)
        """
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Database transaction failed: {e}")
            raise
        finally:
            session.close()

    def health_check(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.info("Database health check passed")
            return True
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False

    def close(self):
        """Dispose of pooled connections."""
        if self._engine:
            self._engine.dispose()
            logger.info("Database engine closed")


# Global database manager instance
_db_manager: DatabaseManager | None = None


def get_db_manager() -> DatabaseManager:
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency yielding a request-scoped session.

    Usage:
        @router.get("/progress")
        def endpoint(db: Session = Depends(get_db)):
            ...
    """
    session = get_db_manager().get_session()
    try:
        yield session
    finally:
        session.close()


def reset_db_manager():
    """Reset the global database manager (useful for testing)."""
    global _db_manager
    if _db_manager:
        _db_manager.close()
    _db_manager = None
