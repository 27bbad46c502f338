"""Unit-specific fixtures (no I/O beyond tmp_path and in-memory SQLite)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import aiosqlite
import pytest

from cardsuggest.cache import CatalogCache
from cardsuggest.storage import JsonFileStore, SqliteStore

if TYPE_CHECKING:
    from pathlib import Path

    from tests.conftest import FakeClock


@pytest.fixture()
def json_store(tmp_path: Path) -> JsonFileStore:
    return JsonFileStore(tmp_path / "cache.json")


@pytest.fixture()
async def sqlite_store():
    """In-memory SQLite store for unit tests."""
    async with aiosqlite.connect(":memory:") as db:
        store = SqliteStore(db)
        await store.init_db()
        yield store


@pytest.fixture()
def cache(json_store: JsonFileStore, clock: FakeClock) -> CatalogCache:
    return CatalogCache(json_store, clock=clock)
