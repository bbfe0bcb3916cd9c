"""Best-effort language extraction from Accept-Language style hints."""

from __future__ import annotations


def primary_language(accept_language: str | None) -> str | None:
    """Return the primary two-letter subtag of the first language range.

    ``"cs-CZ,cs;q=0.9,en;q=0.8"`` gives ``"cs"``; wildcards, empty values and
    anything that is not a two-letter tag give ``None``.
    """

    if not accept_language:
        return None
    first_range = accept_language.split(",")[0].split(";")[0].strip()
    subtag = first_range.replace("_", "-").split("-")[0].lower()
    if len(subtag) != 2 or not subtag.isalpha():
        return None
    return subtag


__all__ = ["primary_language"]
