"""Gettext dictionary engine: compiled/editable catalogs, plural rules and pending-string capture."""

from gettext_engine.factory import create_translator
from gettext_engine.services.exceptions import (
    CatalogIOError,
    ConfigurationError,
    ExpressionError,
    FormatError,
    LanguageNotSetError,
    StateError,
    TranslatorError,
)
from gettext_engine.services.store import CatalogStore
from gettext_engine.services.translator import Translator

__all__ = [
    "CatalogStore",
    "Translator",
    "create_translator",
    "TranslatorError",
    "ConfigurationError",
    "StateError",
    "LanguageNotSetError",
    "FormatError",
    "ExpressionError",
    "CatalogIOError",
]
