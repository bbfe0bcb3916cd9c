"""Tests for dictionary caching and its invalidation rules."""

from __future__ import annotations

import os
import time

from gettext_engine.domain.models import Dictionary
from gettext_engine.services.cache import CacheStorage, DictionaryCache, MemoryCacheStorage


def _touch_later(path, seconds=5):
    stat = os.stat(path)
    os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns + seconds * 1_000_000_000))


def test_memory_storage_satisfies_protocol():
    assert isinstance(MemoryCacheStorage(), CacheStorage)


def test_record_dropped_when_dependency_changes(tmp_path):
    catalog = tmp_path / "cs.app.mo"
    catalog.write_bytes(b"v1")
    storage = MemoryCacheStorage()
    storage.set("key", "value", depends_on_files=[catalog])

    assert storage.get("key") == "value"

    _touch_later(catalog)

    assert storage.get("key") is None
    assert len(storage) == 0


def test_record_dropped_when_dependency_disappears(tmp_path):
    catalog = tmp_path / "cs.app.mo"
    catalog.write_bytes(b"v1")
    storage = MemoryCacheStorage()
    storage.set("key", "value", depends_on_files=[catalog])

    catalog.unlink()

    assert storage.get("key") is None


def test_record_dropped_after_expiry():
    storage = MemoryCacheStorage()
    storage.set("old", "value", expire_at=time.time() - 1)
    storage.set("fresh", "value", expire_at=time.time() + 60)

    assert storage.get("old") is None
    assert storage.get("fresh") == "value"


def test_invalidate_by_tag_only_touches_tagged_records():
    storage = MemoryCacheStorage()
    storage.set("a", 1, tags=["red"])
    storage.set("b", 2, tags=["red", "blue"])
    storage.set("c", 3, tags=["blue"])

    assert storage.invalidate_by_tag("red") == 2
    assert storage.get("a") is None
    assert storage.get("c") == 3


def test_dictionary_cache_namespaces_keys(tmp_path):
    catalog = tmp_path / "cs.app.mo"
    catalog.write_bytes(b"v1")
    storage = MemoryCacheStorage()
    first = DictionaryCache(storage, "site-a")
    second = DictionaryCache(storage, "site-b")
    dictionary = Dictionary(language="cs", files=[catalog])

    first.set(dictionary)

    assert first.key("cs") == "site-a-dictionary-cs"
    assert first.get("cs") == dictionary
    assert second.get("cs") is None

    second.invalidate("cs")
    assert first.get("cs") == dictionary

    first.invalidate("cs")
    assert first.get("cs") is None
