"""Dictionary caching with file-dependency and tag invalidation."""

from __future__ import annotations

import copy
import os
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Protocol, runtime_checkable

from gettext_engine.domain.models import Dictionary
from gettext_engine.logging import logger


@runtime_checkable
class CacheStorage(Protocol):
    def get(self, key: str) -> Any | None:
        ...

    def set(
        self,
        key: str,
        value: Any,
        *,
        expire_at: float | None = None,
        depends_on_files: Iterable[Path] = (),
        tags: Iterable[str] = (),
    ) -> None:
        ...

    def invalidate_by_tag(self, tag: str) -> int:
        ...


def _modification_time(path: Path) -> int | None:
    try:
        return os.stat(path).st_mtime_ns
    except OSError:
        return None


@dataclass
class _CacheRecord:
    value: Any
    expire_at: float | None
    files: dict[Path, int | None] = field(default_factory=dict)
    tags: frozenset[str] = frozenset()

    def is_fresh(self, now: float) -> bool:
        if self.expire_at is not None and now >= self.expire_at:
            return False
        return all(_modification_time(path) == mtime for path, mtime in self.files.items())


class MemoryCacheStorage:
    """Process-local cache storage.

    A record is dropped once it expires or once any file it depends on has a
    different modification time (or disappeared) compared to when it was stored.
    """

    def __init__(self) -> None:
        self._records: dict[str, _CacheRecord] = {}
        self._lock = threading.RLock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            record = self._records.get(key)
            if record is None:
                return None
            if not record.is_fresh(time.time()):
                del self._records[key]
                return None
            return record.value

    def set(
        self,
        key: str,
        value: Any,
        *,
        expire_at: float | None = None,
        depends_on_files: Iterable[Path] = (),
        tags: Iterable[str] = (),
    ) -> None:
        files = {Path(path): _modification_time(Path(path)) for path in depends_on_files}
        with self._lock:
            self._records[key] = _CacheRecord(
                value=value,
                expire_at=expire_at,
                files=files,
                tags=frozenset(tags),
            )

    def invalidate_by_tag(self, tag: str) -> int:
        with self._lock:
            stale = [key for key, record in self._records.items() if tag in record.tags]
            for key in stale:
                del self._records[key]
            return len(stale)

    def __len__(self) -> int:
        return len(self._records)


class DictionaryCache:
    """Language-keyed dictionary cache under an engine namespace."""

    def __init__(self, storage: CacheStorage, namespace: str, *, ttl_seconds: int | None = 7200) -> None:
        self.storage = storage
        self.namespace = namespace
        self.ttl_seconds = ttl_seconds

    def key(self, language: str) -> str:
        return f"{self.namespace}-dictionary-{language}"

    def tag(self, language: str) -> str:
        return f"{self.namespace}-dictionary-{language}"

    def get(self, language: str) -> Dictionary | None:
        value = self.storage.get(self.key(language))
        # Engines edit their dictionary in place; each gets its own copy.
        return copy.deepcopy(value) if isinstance(value, Dictionary) else None

    def set(self, dictionary: Dictionary) -> None:
        expire_at = time.time() + self.ttl_seconds if self.ttl_seconds else None
        self.storage.set(
            self.key(dictionary.language),
            copy.deepcopy(dictionary),
            expire_at=expire_at,
            depends_on_files=list(dictionary.files),
            tags=[self.tag(dictionary.language)],
        )

    def invalidate(self, language: str) -> None:
        removed = self.storage.invalidate_by_tag(self.tag(language))
        logger.info("dictionary_cache_invalidated", language=language, removed=removed)


__all__ = ["CacheStorage", "MemoryCacheStorage", "DictionaryCache"]
