from __future__ import annotations

from cardsuggest.models.cache import CacheEntry
from cardsuggest.models.catalog import TYPE_CLASSES, CardSet, CatalogContent
from cardsuggest.models.suggest import SelectionState, SuggestionCandidate, escape_value

__all__ = [
    # catalog
    "TYPE_CLASSES",
    "CardSet",
    "CatalogContent",
    # cache
    "CacheEntry",
    # suggest
    "SuggestionCandidate",
    "SelectionState",
    "escape_value",
]
