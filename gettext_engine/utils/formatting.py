"""printf-style positional interpolation for translated messages."""

from __future__ import annotations

import re
from typing import Any, Sequence

from gettext_engine.logging import logger

# Form-field tokens that must survive interpolation untouched.
RESERVED_TOKENS = ("%label", "%name", "%value")
_ESCAPES = {token: f"\x00{token[1:]}\x00" for token in RESERVED_TOKENS}

_PLACEHOLDER_RE = re.compile(
    r"%(?:(?P<position>\d+)\$)?(?P<flags>[-+ 0#]*)(?P<width>\d+)?(?:\.(?P<precision>\d+))?(?P<conversion>[bcdeEfFgGosuxX%])"
)


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return 0


def _as_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _render(match: re.Match[str], value: Any) -> str:
    conversion = match.group("conversion")
    spec = "%" + (match.group("flags") or "") + (match.group("width") or "")
    if match.group("precision") is not None:
        spec += "." + match.group("precision")

    if conversion == "s":
        return (spec + "s") % (value,)
    if conversion in "du":
        return (spec + "d") % (_as_int(value),)
    if conversion in "oxX":
        return (spec + conversion) % (_as_int(value),)
    if conversion in "eEfFgG":
        return (spec + conversion) % (_as_float(value),)
    if conversion == "c":
        return chr(_as_int(value))
    # "b": binary, padded like the other conversions.
    return (spec + "s") % (format(_as_int(value), "b"),)


def interpolate(message: str, args: Sequence[Any]) -> str:
    """Substitute ``%s``/``%d``/``%1$s``… placeholders in ``message`` with ``args``.

    Placeholders without a matching argument are left as written.
    """

    for token, escaped in _ESCAPES.items():
        message = message.replace(token, escaped)

    cursor = 0
    missing: list[str] = []

    def replace(match: re.Match[str]) -> str:
        nonlocal cursor
        if match.group("conversion") == "%":
            return "%"
        if match.group("position") is not None:
            index = int(match.group("position")) - 1
        else:
            index = cursor
            cursor += 1
        if index < 0 or index >= len(args):
            missing.append(match.group(0))
            return match.group(0)
        return _render(match, args[index])

    result = _PLACEHOLDER_RE.sub(replace, message)
    if missing:
        logger.warning("interpolation_arguments_missing", placeholders=missing, supplied=len(args))

    for token, escaped in _ESCAPES.items():
        result = result.replace(escaped, token)
    return result


__all__ = ["RESERVED_TOKENS", "interpolate"]
