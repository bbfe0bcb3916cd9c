"""Catalog header defaults, parsing and generation."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Mapping

from gettext_engine.utils.datetime import format_revision_date

DEFAULT_PLURAL_FORMS = "nplurals=3; plural=((n==1) ? 0 : (n>=2 && n<=4 ? 1 : 2));"

# Ordered; a None/empty default is only emitted when the section recorded a value.
DEFAULT_METADATA: dict[str, str | None] = {
    "Project-Id-Version": "",
    "Report-Msgid-Bugs-To": None,
    "POT-Creation-Date": "",
    "Last-Translator": "",
    "Language-Team": "",
    "MIME-Version": "1.0",
    "Content-Type": "text/plain; charset=UTF-8",
    "Content-Transfer-Encoding": "8bit",
    "Plural-Forms": DEFAULT_PLURAL_FORMS,
    "X-Poedit-Language": None,
    "X-Poedit-Country": None,
    "X-Poedit-SourceCharset": None,
    "X-Poedit-KeywordsList": None,
}

_BLOCK_SPLIT_RE = re.compile(r"[\n,]+")


def parse_metadata_block(text: str) -> dict[str, str]:
    """Parse the header translation of a compiled catalog into ``{name: value}``."""

    metadata: dict[str, str] = {}
    for line in _BLOCK_SPLIT_RE.split(text.strip()):
        name, separator, value = line.partition(": ")
        if not separator or not name.strip():
            continue
        metadata[name.strip()] = value
    return metadata


def generate_metadata(recorded: Mapping[str, str] | None, now: datetime) -> dict[str, str]:
    """Build the header for a section: revision date, then defaults overridden by recorded values."""

    recorded = recorded or {}
    result = {"PO-Revision-Date": format_revision_date(now)}
    for name, default in DEFAULT_METADATA.items():
        if name in recorded:
            result[name] = recorded[name]
        elif default:
            result[name] = default
    return result


def metadata_lines(metadata: Mapping[str, str]) -> list[str]:
    return [f"{name}: {value}" for name, value in metadata.items()]


__all__ = [
    "DEFAULT_PLURAL_FORMS",
    "DEFAULT_METADATA",
    "parse_metadata_block",
    "generate_metadata",
    "metadata_lines",
]
