"""Catalog cache with age-based refresh and durable persistence.

The cache holds one complete catalog payload plus the time it was fetched.
``serve_data`` returns the cached payload while it is younger than
``max_age`` and otherwise awaits a refresh. Concurrent callers that need a
refresh share one in-flight fetch.

Storage failures never cross the class boundary: a store that cannot be
read is a cold start, a store that cannot be written is logged and the
in-memory state stays authoritative. Fetch failures do cross it, as
``CardSuggestError``, and leave the cached payload untouched.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Mapping
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from cardsuggest.errors import CardSuggestError, ErrorCode
from cardsuggest.models.cache import CacheEntry
from cardsuggest.models.catalog import CatalogContent

if TYPE_CHECKING:
    from cardsuggest.storage import CacheStore

log = structlog.get_logger()

DEFAULT_MAX_AGE_MS = 24 * 60 * 60 * 1000

CatalogFetchFn = Callable[[], Awaitable["CatalogContent | Mapping[str, Any]"]]


def _now_ms() -> int:
    return int(time.time() * 1000)


class CatalogCache:
    """Most recently fetched catalog payload, refreshed lazily on access."""

    def __init__(self, store: CacheStore, clock: Callable[[], int] = _now_ms) -> None:
        self._store = store
        self._clock = clock
        self._entry = CacheEntry()
        self._inflight: asyncio.Task[CatalogContent] | None = None

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def content(self) -> CatalogContent | None:
        return self._entry.content

    @property
    def last_fetch_timestamp(self) -> int:
        return self._entry.last_fetch_timestamp

    @property
    def is_empty(self) -> bool:
        return self._entry.is_empty

    @property
    def refreshing(self) -> bool:
        return self._inflight is not None

    def snapshot(self) -> CacheEntry:
        return self._entry

    def is_stale(self, max_age: int = DEFAULT_MAX_AGE_MS) -> bool:
        """True when a ``serve_data`` call with this ``max_age`` would fetch."""
        if self._entry.is_empty or self._entry.last_fetch_timestamp == 0:
            return True
        return self._clock() - self._entry.last_fetch_timestamp > max_age

    # ------------------------------------------------------------------
    # Serving
    # ------------------------------------------------------------------

    async def serve_data(
        self, fetcher: CatalogFetchFn, max_age: int = DEFAULT_MAX_AGE_MS
    ) -> CatalogContent:
        """Return the cached payload, refreshing it first when expired or empty.

        Raises ``CardSuggestError`` if a needed refresh fails; the previous
        payload and timestamp are kept in that case.
        """
        if max_age < 0:
            raise ValueError("max_age must be non-negative")

        now = self._clock()
        if not self.is_stale(max_age):
            log.debug("cache_served", age_ms=now - self._entry.last_fetch_timestamp)
            assert self._entry.content is not None
            return self._entry.content

        return await self.refresh(fetcher)

    async def refresh(self, fetcher: CatalogFetchFn) -> CatalogContent:
        """Fetch a new payload regardless of age, joining a refresh already in flight."""
        if self._inflight is None:
            log.info("cache_refresh_started", empty=self._entry.is_empty)
            self._inflight = asyncio.create_task(self._refresh(fetcher, self._clock()))
        else:
            log.debug("cache_refresh_coalesced")

        # Shielded so that a cancelled caller does not cancel the shared refresh.
        return await asyncio.shield(self._inflight)

    async def _refresh(self, fetcher: CatalogFetchFn, now: int) -> CatalogContent:
        try:
            try:
                payload = await fetcher()
            except CardSuggestError:
                log.warning("cache_refresh_failed", exc_info=True)
                raise
            except Exception as exc:
                log.warning("cache_refresh_failed", exc_info=True)
                raise CardSuggestError(
                    ErrorCode.CATALOG_FETCH_FAILED,
                    f"Catalog refresh failed: {exc}",
                    suggestion="Cached catalog data is still served; retry later.",
                    recoverable=True,
                ) from exc

            try:
                content = (
                    payload
                    if isinstance(payload, CatalogContent)
                    else CatalogContent.model_validate(payload)
                )
            except ValidationError as exc:
                log.warning("cache_refresh_invalid_payload", errors=exc.error_count())
                raise CardSuggestError(
                    ErrorCode.CATALOG_INVALID,
                    "Catalog provider returned an incomplete payload",
                    suggestion="Cached catalog data is still served; retry later.",
                    recoverable=True,
                ) from exc

            # Single swap of content and timestamp; readers never see a mix.
            self._entry = CacheEntry(content=content, last_fetch_timestamp=now)
            log.info(
                "cache_refresh_complete",
                names=len(content.names),
                sets=len(content.sets),
                types=len(content.all_types()),
            )
            await self.save_to_storage()
            return content
        finally:
            self._inflight = None

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def load_from_storage(self) -> None:
        """Restore state from the store. Missing or malformed data is a cold start."""
        try:
            entry = await self._store.load()
        except CardSuggestError:
            log.warning("cache_load_error", exc_info=True)
            entry = None

        if entry is None:
            self._entry = CacheEntry()
            log.info("cache_cold_start")
            return

        self._entry = entry
        log.info(
            "cache_loaded",
            last_fetch_timestamp=entry.last_fetch_timestamp,
            empty=entry.is_empty,
        )

    async def save_to_storage(self) -> None:
        """Persist the current state. Non-fatal on failure."""
        try:
            await self._store.save(self._entry)
        except CardSuggestError:
            log.warning("cache_write_error", exc_info=True)

    async def clear(self) -> None:
        """Drop the cached payload so the next ``serve_data`` call refreshes."""
        self._entry = CacheEntry()
        await self.save_to_storage()
        log.info("cache_cleared")
