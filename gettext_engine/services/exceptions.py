"""Domain-specific exceptions."""

from __future__ import annotations


class TranslatorError(Exception):
    pass


class ConfigurationError(TranslatorError):
    pass


class StateError(TranslatorError):
    pass


class LanguageNotSetError(ConfigurationError, StateError):
    pass


class FormatError(TranslatorError):
    pass


class ExpressionError(TranslatorError):
    pass


class CatalogIOError(TranslatorError):
    pass


__all__ = [
    "TranslatorError",
    "ConfigurationError",
    "StateError",
    "LanguageNotSetError",
    "FormatError",
    "ExpressionError",
    "CatalogIOError",
]
