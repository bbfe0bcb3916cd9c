"""Shared pytest fixtures for catalog and translator tests."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from gettext_engine.catalogs import mo
from gettext_engine.catalogs.metadata import DEFAULT_PLURAL_FORMS
from gettext_engine.db.session import Database
from gettext_engine.domain.models import DictionaryEntry

ENGLISH_PLURAL_FORMS = "nplurals=2; plural=(n != 1);"
FIXED_NOW = datetime(2024, 3, 1, 12, 30, tzinfo=timezone.utc)


def make_entry(key: str, *translations: str, plural: str | None = None, section: str = "app") -> DictionaryEntry:
    return DictionaryEntry(
        key=key,
        originals=[key, plural] if plural else [key],
        translations=list(translations),
        section=section,
    )


def write_mo(path: Path, entries: list[DictionaryEntry], plural_forms: str = DEFAULT_PLURAL_FORMS) -> Path:
    header = [
        "Content-Type: text/plain; charset=UTF-8",
        f"Plural-Forms: {plural_forms}",
    ]
    path.write_bytes(mo.encode(entries, header))
    return path


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def section_dirs(tmp_path: Path) -> dict[str, Path]:
    dirs = {}
    for name in ("app", "admin"):
        directory = tmp_path / name
        directory.mkdir()
        dirs[name] = directory
    return dirs


@pytest.fixture
def database():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    db = Database(engine=engine)
    db.create_schema()
    try:
        yield db
    finally:
        engine.dispose()
