"""Pydantic models shared across the catalog and service layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class CatalogSection(BaseModel):
    model_config = ConfigDict(frozen=True)

    identifier: str
    directory: Path

    def catalog_path(self, language: str, suffix: str) -> Path:
        """Return ``<directory>/<language>.<identifier>.<suffix>``."""

        return self.directory / f"{language}.{self.identifier}.{suffix}"


class DictionaryEntry(BaseModel):
    key: str
    originals: list[str]
    translations: list[str]
    # Identifier of the owning CatalogSection, not the section itself.
    section: str

    @property
    def plural(self) -> str | None:
        return self.originals[1] if len(self.originals) > 1 else None


class PendingString(BaseModel):
    language: str
    message: str
    plural: str | None = None
    references: set[str] = Field(default_factory=set)

    @property
    def originals(self) -> list[str]:
        return [self.message, self.plural] if self.plural else [self.message]


@dataclass
class Dictionary:
    """Merged entries and per-section metadata for one language."""

    language: str
    entries: dict[str, DictionaryEntry] = field(default_factory=dict)
    metadata: dict[str, dict[str, str]] = field(default_factory=dict)
    files: list[Path] = field(default_factory=list)

    def merge(self, identifier: str, entries: list[DictionaryEntry], metadata: dict[str, str]) -> None:
        # Later sections overwrite earlier ones on key collisions.
        for entry in entries:
            self.entries[entry.key] = entry
        if metadata:
            self.metadata.setdefault(identifier, {}).update(metadata)


__all__ = [
    "CatalogSection",
    "DictionaryEntry",
    "PendingString",
    "Dictionary",
]
