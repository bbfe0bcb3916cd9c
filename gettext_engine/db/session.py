"""SQLAlchemy session management for the pending-string store."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from gettext_engine.db.base import Base
from gettext_engine.logging import logger


class Database:
    """Lazy SQLAlchemy engine/session factory wrapper."""

    def __init__(self, dsn: str | None = None, *, engine: Engine | None = None, echo: bool = False) -> None:
        if dsn is None and engine is None:
            raise ValueError("Either a DSN or an engine is required.")
        self.dsn = dsn
        self.echo = echo
        self._engine = engine
        self._session_factory: sessionmaker[Session] | None = None

    def _ensure_engine(self) -> None:
        if self._engine is None:
            self._engine = create_engine(self.dsn, echo=self.echo, future=True)
            logger.info("db_engine_initialized", dsn=self.dsn)
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                bind=self._engine,
                expire_on_commit=False,
                autoflush=False,
            )

    @property
    def engine(self) -> Engine:
        self._ensure_engine()
        assert self._engine is not None
        return self._engine

    @property
    def session_factory(self) -> sessionmaker[Session]:
        self._ensure_engine()
        assert self._session_factory is not None
        return self._session_factory

    def create_schema(self) -> None:
        Base.metadata.create_all(self.engine)

    @contextmanager
    def session(self) -> Iterator[Session]:
        factory = self.session_factory
        with factory() as session:
            try:
                yield session
                session.commit()
            except Exception:
                session.rollback()
                raise


__all__ = ["Database"]
