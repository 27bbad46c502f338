"""Incremental matching of typed queries against catalog and static lists.

A query is matched by case-insensitive substring containment. For the
card-name category, diacritics and ligatures are folded away first so an
unaccented query still finds accented names ("aether" finds "Æther
Vial"). The match span is mapped back onto the original string so the
renderer can highlight exactly the characters the user typed.
"""

from __future__ import annotations

import unicodedata
from collections.abc import Sequence
from typing import TYPE_CHECKING

import structlog

from cardsuggest.cache import DEFAULT_MAX_AGE_MS
from cardsuggest.errors import CardSuggestError
from cardsuggest.models.suggest import SuggestionCandidate

if TYPE_CHECKING:
    from cardsuggest.cache import CatalogCache, CatalogFetchFn
    from cardsuggest.models.catalog import CatalogContent

log = structlog.get_logger()

RARITIES: tuple[str, ...] = (
    "mythic", "rare", "uncommon", "common", "special", "token", "oversize",
)  # fmt: skip

COLORS: tuple[str, ...] = (
    "white", "blue", "black", "red", "green", "colorless",
    "azorius", "gruul", "dimir", "orzhov", "izzet",
    "rakdos", "golgari", "simic", "selesnya", "boros",
    "bant", "esper", "jund", "grixis", "naya",
    "abzan", "jeskai", "sultai", "mardu", "temur",
    "quandrix", "witherbloom", "lorehold", "silverquill", "prismari",
    "ink", "glint", "dune", "witch", "yore",
    "chaos", "aggression", "altruism", "growth", "artifice",
    "wubrg", "rainbow",
)  # fmt: skip

CONDITIONS: tuple[str, ...] = ("NM", "SP", "LP", "MP", "HP", "PO", "DMG")

FINISHES: tuple[str, ...] = ("foil", "nonfoil", "etched")

PROPERTIES: tuple[str, ...] = (
    "reserved", "token", "oversize", "funny", "wcd", "commander", "sldpromo",
)  # fmt: skip

FRAMES: tuple[str, ...] = (
    "fullart", "fa", "extendedart", "ea",
    "showcase", "sc", "borderless", "bd",
    "reskin", "gold", "retro",
)  # fmt: skip

PROMOS: tuple[str, ...] = (
    "arenaleague", "boosterfun", "bundle", "buyabox", "concept", "confettifoil",
    "doublerainbow", "draculaseries", "draftweekend", "embossed", "galaxyfoil",
    "gameday", "gilded", "glossy", "godzillaseries", "halofoil", "intropack", "promo",
    "judgegift", "neonink", "oilslick", "playpromo", "playerrewards", "poster",
    "prerelease", "promopack", "release", "schinesealtart", "scroll", "serialized",
    "silverfoil", "starterdeck", "stepandcompleat", "surgefoil", "textured", "thick",
    "wizardsplaynetwork",
)  # fmt: skip

LANGUAGES: tuple[str, ...] = ("jp", "jpn", "ph", "phrexian")

NAME_CATEGORY = "name"

# search prefix -> category
PREFIXES: dict[str, str] = {
    "": NAME_CATEGORY,
    "n": NAME_CATEGORY,
    "name": NAME_CATEGORY,
    "s": "set",
    "edition": "set",
    "t": "type",
    "r": "rarity",
    "c": "color",
    "color": "color",
    "ci": "color",
    "identity": "color",
    "cond": "condition",
    "f": "finish",
    "is": "property",
    "lang": "language",
}

STATIC_LISTS: dict[str, tuple[str, ...]] = {
    "rarity": RARITIES,
    "color": COLORS,
    "condition": CONDITIONS,
    "finish": FINISHES,
    "property": PROPERTIES + FRAMES + PROMOS,
    "language": LANGUAGES,
}

# Letters that NFD does not decompose.
_LIGATURES = {
    "Æ": "AE",
    "æ": "ae",
    "Œ": "OE",
    "œ": "oe",
    "Ø": "O",
    "ø": "o",
    "Đ": "D",
    "đ": "d",
    "Ł": "L",
    "ł": "l",
}


def _fold_char(ch: str, fold_diacritics: bool) -> str:
    if fold_diacritics:
        ch = _LIGATURES.get(ch, ch)
        ch = "".join(c for c in unicodedata.normalize("NFD", ch) if not unicodedata.combining(c))
    return ch.casefold()


def fold(text: str, fold_diacritics: bool = False) -> str:
    """Casefold ``text``, optionally stripping diacritics and expanding ligatures."""
    return "".join(_fold_char(ch, fold_diacritics) for ch in text)


def _fold_with_offsets(text: str, fold_diacritics: bool) -> tuple[str, list[int]]:
    """Fold ``text`` and return, for each folded character, its index in ``text``."""
    folded: list[str] = []
    offsets: list[int] = []
    for index, ch in enumerate(text):
        piece = _fold_char(ch, fold_diacritics)
        folded.append(piece)
        offsets.extend([index] * len(piece))
    return "".join(folded), offsets


def match_candidate(
    raw_value: str,
    query: str,
    prefix: str | None = None,
    fold_diacritics: bool = False,
) -> SuggestionCandidate | None:
    """Return a candidate if ``query`` occurs in ``raw_value``, else None."""
    needle = fold(query, fold_diacritics)
    if not needle:
        return SuggestionCandidate(raw_value=raw_value, prefix=prefix)

    haystack, offsets = _fold_with_offsets(raw_value, fold_diacritics)
    position = haystack.find(needle)
    if position < 0:
        return None

    start = offsets[position]
    end = offsets[position + len(needle) - 1] + 1
    return SuggestionCandidate(
        raw_value=raw_value,
        prefix=prefix,
        match_start=start,
        match_length=end - start,
    )


def filter_list(
    values: Sequence[str],
    query: str,
    prefix: str | None = None,
    fold_diacritics: bool = False,
    limit: int = 0,
) -> list[SuggestionCandidate]:
    """Match ``query`` against ``values``, keeping list order and dropping duplicates."""
    seen: set[str] = set()
    candidates: list[SuggestionCandidate] = []
    for value in values:
        if value in seen:
            continue
        candidate = match_candidate(value, query, prefix, fold_diacritics)
        if candidate is None:
            continue
        seen.add(value)
        candidates.append(candidate)
        if limit and len(candidates) >= limit:
            break
    return candidates


def normalize_prefix(prefix: str | None) -> str:
    return (prefix or "").strip().lower()


def parse_query(text: str) -> tuple[str, str]:
    """Split ``"t:cre"`` into ``("t", "cre")``.

    Text without a recognised ``prefix:`` is a card-name query, so names
    that contain a colon stay intact.
    """
    head, sep, tail = text.partition(":")
    key = normalize_prefix(head)
    if sep and key and key in PREFIXES:
        return key, tail.lstrip()
    return "", text


class SuggestionEngine:
    """Produces suggestion candidates for a category prefix and a typed query."""

    def __init__(
        self,
        cache: CatalogCache,
        fetcher: CatalogFetchFn,
        max_age: int = DEFAULT_MAX_AGE_MS,
        max_candidates: int = 0,
    ) -> None:
        self._cache = cache
        self._fetcher = fetcher
        self._max_age = max_age
        self._max_candidates = max_candidates

    @property
    def cache(self) -> CatalogCache:
        return self._cache

    async def _catalog(self) -> CatalogContent | None:
        try:
            return await self._cache.serve_data(self._fetcher, self._max_age)
        except CardSuggestError as exc:
            # Keep suggesting from whatever the cache still holds.
            log.warning(
                "suggest_catalog_error",
                code=exc.code,
                stale_fallback=self._cache.content is not None,
            )
            return self._cache.content

    async def backing_list(self, prefix: str | None) -> Sequence[str]:
        """Return the list of values a prefix completes against; empty if unknown."""
        category = PREFIXES.get(normalize_prefix(prefix))
        if category is None:
            return ()
        if category in STATIC_LISTS:
            return STATIC_LISTS[category]

        catalog = await self._catalog()
        if catalog is None:
            return ()
        if category == NAME_CATEGORY:
            return catalog.names
        if category == "set":
            return catalog.set_codes()
        return catalog.all_types()

    async def get_suggestions_by_prefix(
        self, prefix: str | None, query_text: str
    ) -> list[SuggestionCandidate]:
        key = normalize_prefix(prefix)
        category = PREFIXES.get(key)
        if category is None:
            log.debug("suggest_unknown_prefix", prefix=prefix)
            return []

        values = await self.backing_list(key)
        candidates = filter_list(
            values,
            query_text,
            prefix=None if category == NAME_CATEGORY else key,
            fold_diacritics=category == NAME_CATEGORY,
            limit=self._max_candidates,
        )
        log.debug(
            "suggest_matched",
            prefix=key,
            query_length=len(query_text),
            candidates=len(candidates),
        )
        return candidates

    async def suggest(self, text: str) -> list[SuggestionCandidate]:
        """Match a raw search-box token such as ``"s:dmu"`` or ``"Lili"``."""
        prefix, query = parse_query(text)
        return await self.get_suggestions_by_prefix(prefix, query)

