"""Database engine, session factory and the session context manager."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from incident_detector.config import get_settings

Base = declarative_base()


class DatabaseManager:
    """
    Owns the engine and session factory.

    The engine is created on first use. Tests pass their own session_factory
    bound to a throwaway engine.
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        session_factory: Optional[sessionmaker] = None,
    ) -> None:
        self._database_url = database_url
        self._engine: Optional[Engine] = None
        self._session_factory = session_factory

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            settings = get_settings()
            url = make_url(self._database_url or settings.database_url)
            connect_args = {}
            if url.get_backend_name() == "postgresql":
                connect_args["application_name"] = settings.app_name
            self._engine = create_engine(
                url,
                pool_size=settings.database_pool_size,
                max_overflow=settings.database_max_overflow,
                pool_pre_ping=True,
                connect_args=connect_args,
            )
        return self._engine

    @property
    def session_factory(self) -> sessionmaker:
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                bind=self.engine, autoflush=False, expire_on_commit=False
            )
        return self._session_factory

    @contextmanager
    def db_session(self) -> Iterator[Session]:
        """Yield a session; roll back on error and always close."""
        db = self.session_factory()
        try:
            yield db
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


db_manager = DatabaseManager()
