"""Per-language catalog loading, merging and persistence."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Sequence

from gettext_engine.catalogs import mo, po
from gettext_engine.catalogs.metadata import DEFAULT_PLURAL_FORMS, generate_metadata, metadata_lines
from gettext_engine.catalogs.plural import PluralRule, compile_rule
from gettext_engine.domain.models import CatalogSection, Dictionary, DictionaryEntry
from gettext_engine.logging import logger
from gettext_engine.services.cache import DictionaryCache
from gettext_engine.services.exceptions import (
    CatalogIOError,
    ConfigurationError,
    FormatError,
    LanguageNotSetError,
    StateError,
)
from gettext_engine.services.pending import InMemoryPendingStore, PendingStringStore
from gettext_engine.utils.datetime import utc_now
from gettext_engine.utils.files import locked, read_bytes, write_atomic

NEW_STRINGS_BUCKET = "newStrings"


@dataclass(frozen=True)
class SectionLoadError:
    identifier: str
    path: Path
    error: Exception


class CatalogStore:
    """Owns the registered sections and the merged dictionary of the active language."""

    def __init__(
        self,
        *,
        production_mode: bool = False,
        cache: DictionaryCache | None = None,
        pending: PendingStringStore | None = None,
        clock: Callable[[], datetime] = utc_now,
        lock_timeout: float = -1,
    ) -> None:
        self.production_mode = production_mode
        self.cache = cache
        self.pending = pending if pending is not None else InMemoryPendingStore()
        self.clock = clock
        self.lock_timeout = lock_timeout
        self._sections: dict[str, CatalogSection] = {}
        self._language: str | None = None
        self._dictionary: Dictionary | None = None
        self.load_errors: list[SectionLoadError] = []

    # -- configuration -------------------------------------------------

    def register_section(self, identifier: str, directory: str | Path) -> CatalogSection:
        if identifier in self._sections:
            raise ConfigurationError(f"Catalog section '{identifier}' is already registered.")
        path = Path(directory)
        if not path.is_dir():
            raise ConfigurationError(f"Directory '{path}' doesn't exist.")
        section = CatalogSection(identifier=identifier, directory=path)
        self._sections[identifier] = section
        logger.info("section_registered", section=identifier, directory=str(path))
        return section

    @property
    def sections(self) -> dict[str, CatalogSection]:
        return dict(self._sections)

    def section(self, identifier: str) -> CatalogSection:
        try:
            return self._sections[identifier]
        except KeyError:
            raise ConfigurationError(f"Catalog section '{identifier}' is not registered.") from None

    @property
    def language(self) -> str:
        if not self._language:
            raise LanguageNotSetError("Language must be defined.")
        return self._language

    @property
    def has_language(self) -> bool:
        return bool(self._language)

    def set_language(self, code: str) -> None:
        if not code:
            raise ConfigurationError("Language must be a nonempty string.")
        if code == self._language:
            return
        self._language = code
        self._dictionary = None
        self.load_errors = []
        logger.debug("language_changed", language=code)

    @property
    def loaded(self) -> bool:
        return self._dictionary is not None

    # -- loading -------------------------------------------------------

    def load(self) -> Dictionary:
        if self._dictionary is not None:
            return self._dictionary
        if not self._sections:
            raise StateError("Language file(s) must be defined.")
        language = self.language

        if self.production_mode and self.cache is not None:
            cached = self.cache.get(language)
            if cached is not None:
                logger.debug("dictionary_cache_hit", language=language, entries=len(cached.entries))
                self._dictionary = cached
                return cached

        suffix = "mo" if self.production_mode else "po"
        reader = self._read_compiled if self.production_mode else po.read_entries
        dictionary = Dictionary(language=language)
        errors: list[SectionLoadError] = []
        for identifier, section in self._sections.items():
            path = section.catalog_path(language, suffix)
            if not path.exists():
                continue
            try:
                entries, metadata = reader(path, identifier)
            except (FormatError, CatalogIOError) as exc:
                errors.append(SectionLoadError(identifier=identifier, path=path, error=exc))
                logger.error("catalog_section_skipped", section=identifier, path=str(path), error=str(exc))
                continue
            dictionary.merge(identifier, entries, metadata)
            dictionary.files.append(path)

        self.load_errors = errors
        if self.production_mode and self.cache is not None and not errors:
            self.cache.set(dictionary)
        logger.info(
            "dictionary_loaded",
            language=language,
            production_mode=self.production_mode,
            entries=len(dictionary.entries),
            files=len(dictionary.files),
            skipped=len(errors),
        )
        self._dictionary = dictionary
        return dictionary

    @staticmethod
    def _read_compiled(path: Path, identifier: str) -> tuple[list[DictionaryEntry], dict[str, str]]:
        return mo.decode(read_bytes(path), identifier)

    # -- lookup --------------------------------------------------------

    def lookup(self, key: str) -> DictionaryEntry | None:
        return self.load().entries.get(key)

    def _first_section_metadata(self) -> dict[str, str]:
        dictionary = self.load()
        first = next(iter(self._sections))
        return dictionary.metadata.get(first, {})

    def plural_forms(self) -> str:
        # Only the first registered section's header is consulted, whatever section an entry came from.
        return self._first_section_metadata().get("Plural-Forms") or DEFAULT_PLURAL_FORMS

    def plural_rule(self) -> PluralRule:
        return compile_rule(self.plural_forms())

    def entries_for(self, identifier: str | None = None) -> dict:
        dictionary = self.load()
        language = self.language
        new_strings = {
            message: None
            for message in self.pending.list_pending(language)
            if message.strip()
        }

        if identifier is not None:
            section_entries = {
                key: entry.translations
                for key, entry in dictionary.entries.items()
                if key.strip() and entry.section == identifier
            }
            return {**new_strings, **section_entries}

        grouped: dict[str, dict] = {NEW_STRINGS_BUCKET: new_strings}
        for name in self._sections:
            grouped[name] = {}
        for key, entry in dictionary.entries.items():
            if key.strip():
                grouped.setdefault(entry.section, {})[key] = entry.translations
        return grouped

    # -- editing -------------------------------------------------------

    def set_entry_direct(self, key: str, translation: str | Sequence[str], identifier: str) -> DictionaryEntry:
        """Update the in-memory dictionary only; call :meth:`persist` to write it out."""

        translations = [translation] if isinstance(translation, str) else list(translation)
        if not translations:
            raise ConfigurationError(f"Translation of '{key}' needs at least one variant.")
        dictionary = self.load()
        originals = [key]
        pending = self.pending.list_pending(self.language).get(key)
        if pending is not None:
            originals = pending.originals
        entry = DictionaryEntry(
            key=key,
            originals=originals,
            translations=translations,
            section=identifier,
        )
        dictionary.entries[key] = entry
        return entry

    def generate_metadata(self, identifier: str) -> dict[str, str]:
        recorded = self._dictionary.metadata.get(identifier) if self._dictionary is not None else None
        return generate_metadata(recorded, self.clock())

    def persist(self, identifier: str) -> Path:
        """Rewrite the compiled catalog of one section from the in-memory entries."""

        if self._dictionary is None:
            raise StateError("Nothing to save, translations are not loaded.")
        section = self.section(identifier)
        language = self.language
        entries = [entry for entry in self._dictionary.entries.values() if entry.section == identifier]
        payload = mo.encode(entries, metadata_lines(self.generate_metadata(identifier)))

        path = section.catalog_path(language, "mo")
        with locked(path, self.lock_timeout):
            write_atomic(path, payload)
        logger.info("catalog_persisted", section=identifier, path=str(path), entries=len(entries))

        if self.production_mode and self.cache is not None:
            self.cache.invalidate(language)
        return path

    def upsert_textual(self, identifier: str, key: str, translation: str | Sequence[str]) -> Path:
        """Insert or update a single entry of a section's textual catalog."""

        section = self.section(identifier)
        language = self.language
        path = section.catalog_path(language, "po")
        with locked(path, self.lock_timeout):
            catalog = po.load_or_create(path, self.generate_metadata(identifier))
            po.upsert(catalog, key, translation, self.pending, language)
            po.save(catalog, path)
        logger.info("textual_catalog_saved", section=identifier, path=str(path), key=key)
        return path

    def persist_textual(self, identifier: str) -> Path:
        """Write every in-memory entry of a section, plus all pending strings, into its textual catalog."""

        dictionary = self.load()
        section = self.section(identifier)
        language = self.language
        path = section.catalog_path(language, "po")
        with locked(path, self.lock_timeout):
            catalog = po.load_or_create(path, self.generate_metadata(identifier))
            for key, entry in dictionary.entries.items():
                if entry.section != identifier:
                    continue
                po.upsert(catalog, key, entry.translations, plural=entry.plural)
            for message, pending in self.pending.list_pending(language).items():
                if not message.strip() or catalog.find(message) is not None:
                    continue
                po.upsert(catalog, message, [""] * len(pending.originals), self.pending, language)
            po.save(catalog, path)
        logger.info("textual_catalog_saved", section=identifier, path=str(path), entries=len(catalog))
        return path


__all__ = ["CatalogStore", "SectionLoadError", "NEW_STRINGS_BUCKET"]
