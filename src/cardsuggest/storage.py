"""Durable stores for the catalog cache document.

A store persists one ``CacheEntry`` as a single JSON document. Stores raise
``CacheStorageError`` on any I/O or decoding problem; deciding whether that
is fatal is left to ``CatalogCache``, which treats it as a cold start on
load and as a warning on save.
"""

from __future__ import annotations

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Protocol

import aiosqlite
from pydantic import ValidationError

from cardsuggest.errors import CacheStorageError
from cardsuggest.models.cache import CacheEntry


class CacheStore(Protocol):
    async def load(self) -> CacheEntry | None: ...

    async def save(self, entry: CacheEntry) -> None: ...


def _decode(raw: str) -> CacheEntry:
    try:
        return CacheEntry.model_validate_json(raw)
    except ValidationError as exc:
        raise CacheStorageError(f"Malformed cache document: {exc.error_count()} error(s)") from exc


def _encode(entry: CacheEntry) -> str:
    return json.dumps(entry.to_document(), indent=2, ensure_ascii=False)


class JsonFileStore:
    """Cache document in a JSON file, replaced atomically on every save."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    async def load(self) -> CacheEntry | None:
        """Return the stored entry, or ``None`` when the file does not exist."""
        raw = await asyncio.to_thread(self._read)
        if raw is None:
            return None
        return _decode(raw)

    async def save(self, entry: CacheEntry) -> None:
        await asyncio.to_thread(self._write, _encode(entry))

    def _read(self) -> str | None:
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise CacheStorageError(f"Cannot read {self.path}: {exc}") from exc

    def _write(self, document: str) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(document)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise CacheStorageError(f"Cannot write {self.path}: {exc}") from exc


_CREATE_CATALOG_TABLE = """
CREATE TABLE IF NOT EXISTS catalog_cache (
    key       TEXT PRIMARY KEY,
    document  TEXT NOT NULL
)
"""

_CATALOG_KEY = "catalog"


class SqliteStore:
    """Cache document kept as a single row of a SQLite table."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def init_db(self) -> None:
        """Create the table. Called once at startup."""
        try:
            await self._db.execute(_CREATE_CATALOG_TABLE)
            await self._db.commit()
        except aiosqlite.Error as exc:
            raise CacheStorageError(f"Cannot initialise cache table: {exc}") from exc

    async def load(self) -> CacheEntry | None:
        try:
            cursor = await self._db.execute(
                "SELECT document FROM catalog_cache WHERE key = ?", (_CATALOG_KEY,)
            )
            row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise CacheStorageError(f"Cannot read cache row: {exc}") from exc
        if row is None:
            return None
        return _decode(row[0])

    async def save(self, entry: CacheEntry) -> None:
        try:
            await self._db.execute(
                "INSERT OR REPLACE INTO catalog_cache (key, document) VALUES (?, ?)",
                (_CATALOG_KEY, _encode(entry)),
            )
            await self._db.commit()
        except aiosqlite.Error as exc:
            raise CacheStorageError(f"Cannot write cache row: {exc}") from exc
