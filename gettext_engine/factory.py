"""Build a ready-to-use translator from settings."""

from __future__ import annotations

from datetime import datetime
from typing import Callable

from gettext_engine.config import TranslatorSettings, get_settings
from gettext_engine.db.session import Database
from gettext_engine.logging import logger
from gettext_engine.services.cache import CacheStorage, DictionaryCache, MemoryCacheStorage
from gettext_engine.services.exceptions import ConfigurationError
from gettext_engine.services.pending import InMemoryPendingStore, PendingStringStore, SqlPendingStore
from gettext_engine.services.store import CatalogStore
from gettext_engine.services.translator import Translator
from gettext_engine.utils.datetime import utc_now


def build_pending_store(settings: TranslatorSettings, scope: str | None = None) -> PendingStringStore:
    """In-memory store, or a SQL one when a DSN is configured.

    SQL stores keep one bucket per ``scope`` (typically the user's session
    id), so a scope is required; ``scope`` wins over ``settings.pending.scope``.
    """

    if not settings.pending.dsn:
        return InMemoryPendingStore()
    scope = scope or settings.pending.scope
    if not scope:
        raise ConfigurationError("A per-session scope is required for the SQL pending-string store.")
    database = Database(settings.pending.dsn, echo=settings.pending.echo)
    database.create_schema()
    return SqlPendingStore(database, scope=scope)


def create_translator(
    settings: TranslatorSettings | None = None,
    *,
    cache_storage: CacheStorage | None = None,
    pending_store: PendingStringStore | None = None,
    pending_scope: str | None = None,
    clock: Callable[[], datetime] = utc_now,
) -> Translator:
    """Register configured sections in order, then set the default language."""

    settings = settings or get_settings()
    cache = DictionaryCache(
        cache_storage if cache_storage is not None else MemoryCacheStorage(),
        settings.effective_namespace,
        ttl_seconds=settings.cache.ttl_seconds or None,
    )
    store = CatalogStore(
        production_mode=settings.is_production,
        cache=cache,
        pending=pending_store if pending_store is not None else build_pending_store(settings, pending_scope),
        clock=clock,
        lock_timeout=settings.file_lock_timeout_seconds,
    )
    translator = Translator(store)
    for identifier, directory in settings.sections.items():
        translator.register_section(identifier, directory)
    if settings.scan_directory is not None:
        translator.set_scan_to_file(settings.scan_directory)
    translator.set_language(settings.default_language)

    logger.info(
        "translator_created",
        namespace=settings.effective_namespace,
        production_mode=settings.is_production,
        sections=list(store.sections),
    )
    return translator


__all__ = ["create_translator", "build_pending_store"]
