"""Tests for catalog loading, merging and persistence."""

from __future__ import annotations

import os

import pytest

from conftest import ENGLISH_PLURAL_FORMS, make_entry, write_mo
from gettext_engine.catalogs import mo, po
from gettext_engine.services.cache import DictionaryCache, MemoryCacheStorage
from gettext_engine.services.exceptions import (
    ConfigurationError,
    LanguageNotSetError,
    StateError,
)
from gettext_engine.services.store import NEW_STRINGS_BUCKET, CatalogStore


def _production_store(section_dirs, storage=None, **kwargs):
    store = CatalogStore(
        production_mode=True,
        cache=DictionaryCache(storage if storage is not None else MemoryCacheStorage(), "tests"),
        **kwargs,
    )
    store.register_section("app", section_dirs["app"])
    store.register_section("admin", section_dirs["admin"])
    store.set_language("cs")
    return store


def test_register_section_rejects_duplicates_and_missing_dirs(section_dirs, tmp_path):
    store = CatalogStore()
    store.register_section("app", section_dirs["app"])

    with pytest.raises(ConfigurationError):
        store.register_section("app", section_dirs["admin"])
    with pytest.raises(ConfigurationError):
        store.register_section("other", tmp_path / "missing")


def test_language_must_be_set_before_loading(section_dirs):
    store = CatalogStore()
    with pytest.raises(StateError):
        store.load()

    store.register_section("app", section_dirs["app"])
    with pytest.raises(LanguageNotSetError):
        store.load()
    with pytest.raises(ConfigurationError):
        store.set_language("")


def test_set_language_resets_only_on_change(section_dirs):
    store = CatalogStore()
    store.register_section("app", section_dirs["app"])
    store.set_language("cs")
    store.load()

    store.set_language("cs")
    assert store.loaded

    store.set_language("de")
    assert not store.loaded


def test_later_section_wins_on_key_collision(section_dirs):
    write_mo(section_dirs["app"] / "cs.app.mo", [make_entry("Save", "Uložit"), make_entry("Open", "Otevřít")])
    write_mo(
        section_dirs["admin"] / "cs.admin.mo",
        [make_entry("Save", "Uložit změny", section="admin")],
        plural_forms=ENGLISH_PLURAL_FORMS,
    )
    store = _production_store(section_dirs)

    dictionary = store.load()

    assert dictionary.entries["Save"].translations == ["Uložit změny"]
    assert dictionary.entries["Save"].section == "admin"
    assert dictionary.entries["Open"].section == "app"
    # plural rule always comes from the first registered section
    assert store.plural_rule().nplurals == 3


def test_missing_catalog_files_are_ignored(section_dirs):
    write_mo(section_dirs["admin"] / "cs.admin.mo", [make_entry("Users", "Uživatelé", section="admin")])
    store = _production_store(section_dirs)

    assert store.lookup("Users").translations == ["Uživatelé"]
    assert store.plural_forms().startswith("nplurals=3")


def test_corrupt_section_is_skipped_and_not_cached(section_dirs):
    write_mo(section_dirs["app"] / "cs.app.mo", [make_entry("Save", "Uložit")])
    (section_dirs["admin"] / "cs.admin.mo").write_bytes(b"not a catalog at all, definitely not")
    storage = MemoryCacheStorage()
    store = _production_store(section_dirs, storage)

    dictionary = store.load()

    assert list(dictionary.entries) == ["Save"]
    assert [error.identifier for error in store.load_errors] == ["admin"]
    assert len(storage) == 0


def test_production_dictionary_is_reused_until_file_changes(section_dirs, monkeypatch):
    catalog = write_mo(section_dirs["app"] / "cs.app.mo", [make_entry("Save", "Uložit")])
    storage = MemoryCacheStorage()
    calls = []
    decode = mo.decode

    def counting_decode(data, identifier):
        calls.append(identifier)
        return decode(data, identifier)

    monkeypatch.setattr(mo, "decode", counting_decode)

    first = _production_store(section_dirs, storage).load()
    second = _production_store(section_dirs, storage).load()
    assert second == first
    assert calls == ["app"]

    stat = os.stat(catalog)
    os.utime(catalog, ns=(stat.st_atime_ns, stat.st_mtime_ns + 5_000_000_000))

    third = _production_store(section_dirs, storage).load()
    assert third.entries == first.entries
    assert calls == ["app", "app"]


def test_development_mode_reads_textual_catalogs_without_cache(section_dirs):
    path = section_dirs["app"] / "cs.app.po"
    catalog = po.load_or_create(path, {"Plural-Forms": ENGLISH_PLURAL_FORMS})
    po.upsert(catalog, "Save", "Uložit")
    po.save(catalog, path)
    write_mo(section_dirs["app"] / "cs.app.mo", [make_entry("Save", "compiled")])
    storage = MemoryCacheStorage()
    store = CatalogStore(cache=DictionaryCache(storage, "tests"))
    store.register_section("app", section_dirs["app"])
    store.set_language("cs")

    assert store.lookup("Save").translations == ["Uložit"]
    assert store.plural_rule().nplurals == 2
    assert len(storage) == 0


def test_entries_for_groups_by_section_with_pending_strings(section_dirs):
    write_mo(section_dirs["app"] / "cs.app.mo", [make_entry("Save", "Uložit")])
    store = _production_store(section_dirs)
    store.pending.record_pending("cs", "Fresh", None, "views.py:1")
    store.pending.record_pending("cs", "  ", None, None)

    grouped = store.entries_for()

    assert grouped == {
        NEW_STRINGS_BUCKET: {"Fresh": None},
        "app": {"Save": ["Uložit"]},
        "admin": {},
    }
    assert store.entries_for("app") == {"Fresh": None, "Save": ["Uložit"]}


def test_set_entry_direct_takes_originals_from_pending(section_dirs):
    store = _production_store(section_dirs)
    store.pending.record_pending("cs", "%d file", "%d files", "views.py:10")

    entry = store.set_entry_direct("%d file", ["%d soubor", "%d soubory", "%d souborů"], "app")

    assert entry.originals == ["%d file", "%d files"]
    assert store.lookup("%d file") is entry


def test_persist_requires_loaded_dictionary(section_dirs):
    store = _production_store(section_dirs)
    with pytest.raises(StateError):
        store.persist("app")

    store.load()
    with pytest.raises(ConfigurationError):
        store.persist("unknown")


def test_persist_is_reproducible_and_invalidates_cache(section_dirs, fixed_clock):
    write_mo(section_dirs["app"] / "cs.app.mo", [make_entry("Save", "Uložit")])
    storage = MemoryCacheStorage()
    store = _production_store(section_dirs, storage, clock=fixed_clock)
    store.load()
    store.set_entry_direct("Close", "Zavřít", "app")
    assert len(storage) == 1

    path = store.persist("app")
    first = path.read_bytes()
    store.persist("app")

    assert path.read_bytes() == first
    assert len(storage) == 0
    entries, metadata = mo.decode(first, "app")
    assert {entry.key: entry.translations for entry in entries} == {"Close": ["Zavřít"], "Save": ["Uložit"]}
    assert metadata["PO-Revision-Date"] == "2024-03-01 12:30+0000"


def test_generate_metadata_prefers_recorded_values(section_dirs, fixed_clock):
    write_mo(
        section_dirs["app"] / "cs.app.mo",
        [make_entry("Save", "Uložit")],
        plural_forms=ENGLISH_PLURAL_FORMS,
    )
    store = _production_store(section_dirs, clock=fixed_clock)
    store.load()

    metadata = store.generate_metadata("app")

    assert list(metadata)[0] == "PO-Revision-Date"
    assert metadata["Plural-Forms"] == ENGLISH_PLURAL_FORMS
    assert metadata["MIME-Version"] == "1.0"
    assert "X-Poedit-Language" not in metadata
    assert store.generate_metadata("admin")["Plural-Forms"].startswith("nplurals=3")


def test_upsert_textual_consumes_pending_string(section_dirs):
    store = CatalogStore()
    store.register_section("app", section_dirs["app"])
    store.set_language("cs")
    store.pending.record_pending("cs", "Hello", None, "views/home.py:4")

    path = store.upsert_textual("app", "Hello", "Ahoj")

    catalog = po.parse(path)
    assert catalog.find("Hello").msgstr == "Ahoj"
    assert catalog.find("Hello").occurrences == [("views/home.py", "4")]
    assert store.pending.list_pending("cs") == {}


def test_persist_textual_writes_entries_and_pending(section_dirs):
    store = CatalogStore()
    store.register_section("app", section_dirs["app"])
    store.set_language("cs")
    store.set_entry_direct("Save", "Uložit", "app")
    store.pending.record_pending("cs", "%d file", "%d files", "views/list.py:9")

    path = store.persist_textual("app")

    catalog = po.parse(path)
    assert catalog.find("Save").msgstr == "Uložit"
    pending_entry = catalog.find("%d file")
    assert pending_entry.msgid_plural == "%d files"
    assert pending_entry.occurrences == [("views/list.py", "9")]


def test_unsaved_edit_stays_private_to_its_engine(section_dirs):
    write_mo(section_dirs["app"] / "cs.app.mo", [make_entry("Save", "Uložit")])
    storage = MemoryCacheStorage()
    editor = _production_store(section_dirs, storage)
    editor.load()

    editor.set_entry_direct("Save", "Draft", "app")
    editor.set_entry_direct("Close", "Zavřít", "app")

    reader = _production_store(section_dirs, storage)
    assert reader.lookup("Save").translations == ["Uložit"]
    assert reader.lookup("Close") is None
    assert editor.lookup("Save").translations == ["Draft"]


def test_set_entry_direct_rejects_empty_translation(section_dirs):
    store = _production_store(section_dirs)

    with pytest.raises(ConfigurationError):
        store.set_entry_direct("Key", [], "app")
    assert store.lookup("Key") is None


def test_malformed_textual_section_is_skipped_in_development(section_dirs):
    path = section_dirs["app"] / "cs.app.po"
    catalog = po.load_or_create(path, {"Plural-Forms": ENGLISH_PLURAL_FORMS})
    po.upsert(catalog, "Save", "Uložit")
    po.save(catalog, path)
    (section_dirs["admin"] / "cs.admin.po").write_text('msgid "a"b"\nmsgstr ""\n', encoding="utf-8")
    store = CatalogStore()
    store.register_section("app", section_dirs["app"])
    store.register_section("admin", section_dirs["admin"])
    store.set_language("cs")

    dictionary = store.load()

    assert list(dictionary.entries) == ["Save"]
    assert [error.identifier for error in store.load_errors] == ["admin"]
    assert store.load_errors[0].path == section_dirs["admin"] / "cs.admin.po"
