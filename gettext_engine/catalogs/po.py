"""Editable (``.po``) catalog adapter built on polib."""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Sequence

import polib

from gettext_engine.domain.models import DictionaryEntry
from gettext_engine.services.exceptions import FormatError
from gettext_engine.services.pending import PendingStringStore
from gettext_engine.utils.files import read_bytes, write_atomic

# Used when an entry is created without any recorded source location.
PLACEHOLDER_REFERENCE = "added-from-editor"

Translation = str | Sequence[str]


def parse(path: Path) -> polib.POFile:
    """Parse ``path``; syntax problems raise :class:`FormatError`."""

    raw = read_bytes(path)
    try:
        content = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise FormatError(f"Catalog '{path}' is not valid UTF-8: {exc}") from exc
    if not content.strip():
        return polib.POFile()
    try:
        return polib.pofile(content)
    except (OSError, ValueError) as exc:
        raise FormatError(f"Cannot parse catalog '{path}': {exc}") from exc


def load_or_create(path: Path, metadata: Mapping[str, str]) -> polib.POFile:
    """Parse ``path``, or create it with ``metadata`` as header when missing."""

    if path.exists():
        return parse(path)
    catalog = polib.POFile()
    catalog.metadata = dict(metadata)
    save(catalog, path)
    return catalog


def save(catalog: polib.POFile, path: Path) -> None:
    """Serialize the whole catalog over ``path``."""

    content = str(catalog)
    if not content.endswith("\n"):
        content += "\n"
    write_atomic(path, content.encode("utf-8"))


def read_entries(path: Path, identifier: str) -> tuple[list[DictionaryEntry], dict[str, str]]:
    """Translated entries of a textual catalog plus its header, for development loads."""

    catalog = parse(path)
    entries = []
    for entry in catalog:
        if not entry.msgid or entry.obsolete or "fuzzy" in entry.flags:
            continue
        translations = _translations_of(entry)
        if not any(translations):
            continue
        originals = [entry.msgid, entry.msgid_plural] if entry.msgid_plural else [entry.msgid]
        entries.append(
            DictionaryEntry(
                key=entry.msgid,
                originals=originals,
                translations=translations,
                section=identifier,
            )
        )
    return entries, dict(catalog.metadata)


def _translations_of(entry: polib.POEntry) -> list[str]:
    if entry.msgstr_plural:
        return [entry.msgstr_plural[index] for index in sorted(entry.msgstr_plural, key=int)]
    return [entry.msgstr]


def _occurrence(reference: str) -> tuple[str, str]:
    location, _, line = reference.rpartition(":")
    if location and line.isdigit():
        return location, line
    return reference, ""


def _set_translation(entry: polib.POEntry, translation: Translation) -> None:
    forms = [translation] if isinstance(translation, str) else list(translation)
    if len(forms) > 1 or (entry.msgid_plural and forms):
        entry.msgstr = ""
        entry.msgstr_plural = {index: form for index, form in enumerate(forms)}
    else:
        entry.msgstr_plural = {}
        entry.msgstr = forms[0] if forms else ""


def upsert(
    catalog: polib.POFile,
    key: str,
    translation: Translation,
    pending: PendingStringStore | None = None,
    language: str | None = None,
    *,
    plural: str | None = None,
) -> polib.POEntry:
    """Insert or update ``key``; recorded pending references travel into the entry."""

    resolved = pending.consume(language, key) if pending is not None and language else None
    if resolved and resolved.plural:
        plural = resolved.plural
    occurrences = [_occurrence(reference) for reference in sorted(resolved.references)] if resolved else []

    entry = catalog.find(key)
    if entry is None:
        entry = polib.POEntry(msgid=key)
        entry.occurrences = occurrences or [(PLACEHOLDER_REFERENCE, "")]
        catalog.append(entry)
    else:
        for occurrence in occurrences:
            if occurrence not in entry.occurrences:
                entry.occurrences.append(occurrence)

    if plural and not entry.msgid_plural:
        entry.msgid_plural = plural
    _set_translation(entry, translation)
    return entry


__all__ = [
    "PLACEHOLDER_REFERENCE",
    "parse",
    "load_or_create",
    "save",
    "read_entries",
    "upsert",
]
