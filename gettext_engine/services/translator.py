"""Public translation API: resolution, plural selection and pending-string capture."""

from __future__ import annotations

import inspect
from pathlib import Path
from typing import Any, Sequence

from gettext_engine.domain.models import CatalogSection
from gettext_engine.logging import logger
from gettext_engine.services.exceptions import StateError
from gettext_engine.services.language import primary_language
from gettext_engine.services.store import CatalogStore
from gettext_engine.utils.formatting import interpolate

SCAN_SECTION = "scan"


def _normalize_form(form: Any) -> tuple[str | None, int]:
    """Split a form selector into ``(plural_message, count)``."""

    if isinstance(form, (list, tuple)):
        if not form:
            return None, 1
        plural = form[0]
        return (str(plural) if plural is not None else None), _to_count(form[-1])
    if form is None:
        return None, 1
    return None, _to_count(form)


def _to_count(value: Any) -> int:
    if isinstance(value, int):
        return value
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 1


def _caller_reference(depth: int) -> str | None:
    frame = inspect.currentframe()
    try:
        for _ in range(depth + 1):
            if frame is None:
                return None
            frame = frame.f_back
        if frame is None:
            return None
        return f"{frame.f_code.co_filename}:{frame.f_lineno}"
    finally:
        del frame


class Translator:
    """Gettext-style translator over a :class:`CatalogStore`.

    ``translate("%d files", 5)`` picks the plural variant for five and
    interpolates the count; ``translate("file", ("files", 5))`` falls back to
    ``"files"`` while the message is untranslated.
    """

    def __init__(self, store: CatalogStore) -> None:
        self.store = store
        self._scan_directory: Path | None = None

    # -- configuration -------------------------------------------------

    @property
    def production_mode(self) -> bool:
        return self.store.production_mode

    @property
    def language(self) -> str:
        return self.store.language

    def set_language(self, code: str) -> "Translator":
        self.store.set_language(code)
        return self

    def register_section(self, identifier: str, directory: str | Path) -> "Translator":
        self.store.register_section(identifier, directory)
        return self

    def set_scan_to_file(self, directory: str | Path) -> "Translator":
        section = self.store.register_section(SCAN_SECTION, directory)
        self._scan_directory = section.directory
        return self

    @property
    def scan_directory(self) -> Path | None:
        return self._scan_directory

    @property
    def sections(self) -> dict[str, CatalogSection]:
        self.store.load()
        return self.store.sections

    def detect_language(self, accept_language: str | None = None) -> str:
        """Language from a request hint, else the configured one."""

        detected = primary_language(accept_language)
        if detected:
            return detected
        if not self.store.has_language:
            raise StateError("Language must be defined.")
        return self.store.language

    # -- translation ---------------------------------------------------

    def translate(self, message: Any, form: Any = None, *args: Any) -> str:
        return self._translate(message, form, args, stacklevel=1)

    def __call__(self, message: Any, form: Any = None, *args: Any) -> str:
        return self._translate(message, form, args, stacklevel=1)

    def _translate(self, message: Any, form: Any, args: Sequence[Any], *, stacklevel: int) -> str:
        self.store.load()
        message = "" if message is None else str(message)
        plural, count = _normalize_form(form)

        entry = self.store.lookup(message) if message else None
        if entry is not None:
            index = self.store.plural_rule().form_index(count)
            result = entry.translations[min(index, len(entry.translations) - 1)]
        else:
            if not self.production_mode and message:
                self._capture(message, plural, _caller_reference(stacklevel + 1))
            result = plural if count > 1 and plural else message

        substitutions = list(args)
        if form is not None and not isinstance(form, (list, tuple)):
            substitutions.insert(0, form)
        if len(substitutions) == 1 and isinstance(substitutions[0], (list, tuple)):
            substitutions = list(substitutions[0])
        if substitutions:
            result = interpolate(result, substitutions)
        return result

    def _capture(self, message: str, plural: str | None, reference: str | None) -> None:
        language = self.store.language
        self.store.pending.record_pending(language, message, plural, reference)
        logger.debug("pending_string_recorded", language=language, message=message, reference=reference)
        if self._scan_directory is not None:
            self.store.upsert_textual(SCAN_SECTION, message, "")

    def get_variants_count(self) -> int:
        self.store.load()
        return self.store.plural_rule().nplurals

    # -- editing -------------------------------------------------------

    def get_strings(self, identifier: str | None = None) -> dict:
        return self.store.entries_for(identifier)

    def set_translation(self, key: str, translation: str | Sequence[str], identifier: str) -> None:
        self.store.set_entry_direct(key, translation, identifier)

    def save(self, identifier: str) -> Path:
        return self.store.persist(identifier)

    def update_textual(self, identifier: str, key: str, translation: str | Sequence[str]) -> Path:
        return self.store.upsert_textual(identifier, key, translation)

    def save_textual(self, identifier: str) -> Path:
        return self.store.persist_textual(identifier)


__all__ = ["Translator", "SCAN_SECTION"]
