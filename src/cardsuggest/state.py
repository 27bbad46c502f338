"""Application wiring: one shared HTTP client, cache and engine per process."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path

import aiosqlite
import httpx
import structlog

from cardsuggest.cache import CatalogCache
from cardsuggest.config import Settings
from cardsuggest.fetcher import CatalogFetcher, build_http_client
from cardsuggest.selection import SuggestionController
from cardsuggest.storage import CacheStore, JsonFileStore, SqliteStore
from cardsuggest.suggest import SuggestionEngine

log = structlog.get_logger()


@dataclass
class AppState:
    settings: Settings
    http_client: httpx.AsyncClient
    fetcher: CatalogFetcher
    cache: CatalogCache
    engine: SuggestionEngine

    def controller(self) -> SuggestionController:
        return SuggestionController(
            self.engine, min_match_length=self.settings.suggest.min_match_length
        )


@asynccontextmanager
async def _open_store(settings: Settings) -> AsyncIterator[CacheStore]:
    path = settings.cache.resolved_path()
    if settings.cache.backend == "json":
        yield JsonFileStore(path)
        return

    Path(path).parent.mkdir(parents=True, exist_ok=True)
    async with aiosqlite.connect(path) as db:
        store = SqliteStore(db)
        await store.init_db()
        yield store


@asynccontextmanager
async def create_app_state(settings: Settings | None = None) -> AsyncIterator[AppState]:
    """Open the HTTP client and cache store, load the cache, and close both on exit."""
    settings = settings or Settings()
    async with _open_store(settings) as store, build_http_client(settings.catalog) as client:
        fetcher = CatalogFetcher(client)
        cache = CatalogCache(store)
        await cache.load_from_storage()
        engine = SuggestionEngine(
            cache,
            fetcher.fetch_all,
            max_age=settings.cache.max_age_ms,
            max_candidates=settings.suggest.max_candidates,
        )
        log.debug(
            "app_state_ready",
            backend=settings.cache.backend,
            path=str(settings.cache.resolved_path()),
        )
        yield AppState(
            settings=settings,
            http_client=client,
            fetcher=fetcher,
            cache=cache,
            engine=engine,
        )
