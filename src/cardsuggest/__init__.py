"""Typeahead suggestions for card catalogs, backed by a lazily refreshed catalog cache."""

__version__ = "0.1.0"
