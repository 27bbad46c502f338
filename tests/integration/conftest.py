"""Integration test fixtures.

Provides a mocked catalog API, settings pointing the cache at tmp_path,
and an environment for running ``python -m cardsuggest`` as a subprocess.
Catalog payload fixtures come from tests/conftest.py (sample_payload).
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any

import httpx
import pytest
import respx
import structlog

from cardsuggest.config import Settings
from cardsuggest.fetcher import NAMES_ENDPOINT, SETS_ENDPOINT, TYPE_ENDPOINTS

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

BASE_URL = "https://api.scryfall.com"

# Nothing listens here, so any real request fails fast.
UNREACHABLE_URL = "http://127.0.0.1:9"


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    """configure_logging binds the current stderr; don't leak it into later tests."""
    yield
    structlog.reset_defaults()


@pytest.fixture()
def catalog_api(sample_payload: dict[str, Any]) -> Iterator[respx.MockRouter]:
    """Mocked catalog endpoints serving the sample payload."""
    with respx.mock(base_url=BASE_URL, assert_all_called=False) as router:
        router.get(NAMES_ENDPOINT, name="names").mock(
            return_value=httpx.Response(
                200, json={"object": "catalog", "data": sample_payload["names"]}
            )
        )
        router.get(SETS_ENDPOINT).mock(
            return_value=httpx.Response(
                200, json={"object": "list", "data": sample_payload["sets"]}
            )
        )
        for name, path in TYPE_ENDPOINTS.items():
            router.get(path).mock(
                return_value=httpx.Response(
                    200, json={"object": "catalog", "data": sample_payload["types"][name]}
                )
            )
        yield router


@pytest.fixture()
def json_settings(tmp_path: Path) -> Settings:
    cache = {"backend": "json", "path": str(tmp_path / "cache.json")}
    return Settings(cache=cache)  # type: ignore[arg-type]


@pytest.fixture()
def sqlite_settings(tmp_path: Path) -> Settings:
    cache = {"backend": "sqlite", "path": str(tmp_path / "db" / "cache.db")}
    return Settings(cache=cache)  # type: ignore[arg-type]


@pytest.fixture()
def cli_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point in-process CLI runs at a cache file under tmp_path."""
    for key in list(os.environ):
        if key.startswith("CARDSUGGEST__"):
            monkeypatch.delenv(key)
    cache_path = tmp_path / "cache.json"
    monkeypatch.setenv("CARDSUGGEST__CACHE__PATH", str(cache_path))
    monkeypatch.chdir(tmp_path)
    return cache_path


@pytest.fixture()
def subprocess_env(tmp_path: Path) -> dict[str, str]:
    """Environment for ``python -m cardsuggest`` with an isolated, offline cache."""
    env = {key: value for key, value in os.environ.items() if not key.startswith("CARDSUGGEST__")}
    env["CARDSUGGEST__CACHE__PATH"] = str(tmp_path / "cache.json")
    env["CARDSUGGEST__CATALOG__BASE_URL"] = UNREACHABLE_URL
    env["CARDSUGGEST__CATALOG__TIMEOUT_SECONDS"] = "2"
    return env
