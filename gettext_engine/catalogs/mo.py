"""Compiled (``.mo``) catalog codec."""

from __future__ import annotations

import struct
from typing import Iterable

from gettext_engine.catalogs.metadata import parse_metadata_block
from gettext_engine.domain.models import DictionaryEntry
from gettext_engine.services.exceptions import FormatError

MAGIC = 0x950412DE
MAGIC_SWAPPED = 0xDE120495
HEADER_SIZE = 28
TABLE_ROW_SIZE = 8

_HEADER_LE = struct.Struct("<7I")


def _decode_text(raw: bytes, what: str) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise FormatError(f"{what} is not valid UTF-8: {exc}") from exc


def _read_table(data: bytes, byte_order: str, offset: int, count: int, name: str) -> list[tuple[int, int]]:
    end = offset + count * TABLE_ROW_SIZE
    if offset < HEADER_SIZE or end > len(data):
        raise FormatError(
            f"{name} table [{offset}, {end}) lies outside the catalog ({len(data)} bytes)."
        )
    values = struct.unpack_from(f"{byte_order}{count * 2}I", data, offset)
    return [(values[i], values[i + 1]) for i in range(0, len(values), 2)]


def _slice(data: bytes, length: int, offset: int, name: str, index: int) -> bytes:
    if offset + length > len(data):
        raise FormatError(
            f"{name} string #{index} [{offset}, {offset + length}) lies outside the catalog ({len(data)} bytes)."
        )
    return data[offset : offset + length]


def decode(data: bytes, identifier: str) -> tuple[list[DictionaryEntry], dict[str, str]]:
    """Decode a compiled catalog into entries tagged with ``identifier`` and its header metadata."""

    if len(data) < HEADER_SIZE:
        raise FormatError(f"Catalog is {len(data)} bytes, shorter than the {HEADER_SIZE}-byte header.")

    (magic,) = struct.unpack_from("<I", data, 0)
    if magic == MAGIC:
        byte_order = "<"
    elif magic == MAGIC_SWAPPED:
        byte_order = ">"
    else:
        raise FormatError(f"Bad magic number 0x{magic:08x}; not a gettext catalog.")

    _, _revision, count, originals_offset, translations_offset = struct.unpack_from(
        f"{byte_order}5I", data, 0
    )
    if count * TABLE_ROW_SIZE > len(data):
        raise FormatError(f"Catalog declares {count} entries, more than it can hold.")

    originals = _read_table(data, byte_order, originals_offset, count, "Originals")
    translations = _read_table(data, byte_order, translations_offset, count, "Translations")

    entries: list[DictionaryEntry] = []
    metadata: dict[str, str] = {}
    for index, ((o_length, o_offset), (t_length, t_offset)) in enumerate(zip(originals, translations)):
        original = _slice(data, o_length, o_offset, "Original", index)
        translation = _slice(data, t_length, t_offset, "Translation", index)
        if not translation:
            continue
        if not original:
            metadata.update(parse_metadata_block(_decode_text(translation, "Catalog header")))
            continue

        original_forms = _decode_text(original, f"Original #{index}").split("\0")
        entries.append(
            DictionaryEntry(
                key=original_forms[0],
                originals=original_forms,
                translations=_decode_text(translation, f"Translation #{index}").split("\0"),
                section=identifier,
            )
        )
    return entries, metadata


def encode(entries: Iterable[DictionaryEntry], metadata_lines: list[str]) -> bytes:
    """Encode one section's entries; output is sorted by key so it is reproducible."""

    ordered = sorted(entries, key=lambda entry: entry.key.encode("utf-8"))
    items = len(ordered) + 1
    strings_start = HEADER_SIZE + items * 16

    header_text = "\n".join(metadata_lines).encode("utf-8")
    ids = [b""]
    strings = [header_text]
    for entry in ordered:
        original = entry.key
        if len(entry.originals) > 1:
            original += "\0" + entry.originals[-1]
        ids.append(original.encode("utf-8"))
        strings.append("\0".join(entry.translations).encode("utf-8"))

    ids_blob = b"".join(value + b"\0" for value in ids)
    strings_blob_start = strings_start + len(ids_blob)

    original_table = []
    position = strings_start
    for value in ids:
        original_table.append((len(value), position))
        position += len(value) + 1

    translation_table = []
    position = strings_blob_start
    for value in strings:
        translation_table.append((len(value), position))
        position += len(value) + 1

    output = [
        _HEADER_LE.pack(
            MAGIC,
            0,
            items,
            HEADER_SIZE,
            HEADER_SIZE + items * TABLE_ROW_SIZE,
            0,
            strings_start,
        )
    ]
    for length, offset in original_table + translation_table:
        output.append(struct.pack("<2I", length, offset))
    output.append(ids_blob)
    output.extend(value + b"\0" for value in strings)
    return b"".join(output)


__all__ = ["MAGIC", "decode", "encode"]
