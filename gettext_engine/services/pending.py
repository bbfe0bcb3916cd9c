"""Stores for strings requested in development mode but missing from the dictionary."""

from __future__ import annotations

from collections import defaultdict
from typing import Protocol, runtime_checkable

from sqlalchemy import select

from gettext_engine.db.models import PendingMessage, PendingReference
from gettext_engine.db.session import Database
from gettext_engine.domain.models import PendingString


@runtime_checkable
class PendingStringStore(Protocol):
    def record_pending(self, language: str, message: str, plural: str | None, reference: str | None) -> PendingString:
        ...

    def list_pending(self, language: str) -> dict[str, PendingString]:
        ...

    def consume(self, language: str, message: str) -> PendingString | None:
        ...


class InMemoryPendingStore:
    """Pending strings kept for the lifetime of the store object."""

    def __init__(self) -> None:
        self._pending: dict[str, dict[str, PendingString]] = defaultdict(dict)

    def record_pending(self, language: str, message: str, plural: str | None, reference: str | None) -> PendingString:
        bucket = self._pending[language]
        pending = bucket.get(message)
        if pending is None:
            pending = PendingString(language=language, message=message)
            bucket[message] = pending
        if plural:
            pending.plural = plural
        if reference:
            pending.references.add(reference)
        return pending

    def list_pending(self, language: str) -> dict[str, PendingString]:
        return dict(self._pending.get(language, {}))

    def consume(self, language: str, message: str) -> PendingString | None:
        bucket = self._pending.get(language)
        if not bucket:
            return None
        return bucket.pop(message, None)


class SqlPendingStore:
    """Pending strings persisted per ``scope`` (e.g. a browser session id).

    Engines are often built per request; keeping pending strings in the
    database lets them outlive any single engine instance.
    """

    def __init__(self, database: Database, scope: str) -> None:
        self.database = database
        self.scope = scope

    def _find(self, session, language: str, message: str) -> PendingMessage | None:
        stmt = select(PendingMessage).where(
            PendingMessage.scope == self.scope,
            PendingMessage.language == language,
            PendingMessage.message == message,
        )
        return session.execute(stmt).scalar_one_or_none()

    @staticmethod
    def _to_model(row: PendingMessage) -> PendingString:
        return PendingString(
            language=row.language,
            message=row.message,
            plural=row.plural,
            references={item.reference for item in row.references},
        )

    def record_pending(self, language: str, message: str, plural: str | None, reference: str | None) -> PendingString:
        with self.database.session() as session:
            row = self._find(session, language, message)
            if row is None:
                row = PendingMessage(scope=self.scope, language=language, message=message)
                session.add(row)
            if plural:
                row.plural = plural
            if reference and reference not in {item.reference for item in row.references}:
                row.references.append(PendingReference(reference=reference))
            session.flush()
            return self._to_model(row)

    def list_pending(self, language: str) -> dict[str, PendingString]:
        with self.database.session() as session:
            stmt = (
                select(PendingMessage)
                .where(PendingMessage.scope == self.scope, PendingMessage.language == language)
                .order_by(PendingMessage.id)
            )
            rows = session.execute(stmt).scalars().all()
            return {row.message: self._to_model(row) for row in rows}

    def consume(self, language: str, message: str) -> PendingString | None:
        with self.database.session() as session:
            row = self._find(session, language, message)
            if row is None:
                return None
            pending = self._to_model(row)
            session.delete(row)
            return pending


__all__ = ["PendingStringStore", "InMemoryPendingStore", "SqlPendingStore"]
