from gettext_engine.catalogs import metadata, mo, plural, po

__all__ = ["metadata", "mo", "plural", "po"]
