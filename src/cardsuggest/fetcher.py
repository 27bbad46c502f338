"""HTTP client for the upstream card catalog (Scryfall-compatible API).

Every catalog endpoint wraps its list in a ``data`` field. A request that
cannot produce that list raises ``CardSuggestError`` so callers can tell
"the provider failed" apart from "the provider has no entries".
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from cardsuggest.errors import CardSuggestError, ErrorCode
from cardsuggest.models.catalog import CardSet, CatalogContent

if TYPE_CHECKING:
    from cardsuggest.config import CatalogSettings

log = structlog.get_logger()

NAMES_ENDPOINT = "/catalog/card-names"
SETS_ENDPOINT = "/sets"
TYPE_ENDPOINTS: dict[str, str] = {
    "Creature": "/catalog/creature-types",
    "Planeswalker": "/catalog/planeswalker-types",
    "Land": "/catalog/land-types",
    "Artifact": "/catalog/artifact-types",
    "Enchantment": "/catalog/enchantment-types",
    "Spells": "/catalog/spell-types",
}


def build_http_client(settings: CatalogSettings) -> httpx.AsyncClient:
    """Create the shared client used for every catalog request."""
    return httpx.AsyncClient(
        base_url=settings.base_url,
        timeout=httpx.Timeout(settings.timeout_seconds),
        headers={
            "User-Agent": settings.user_agent,
            "Accept": "application/json",
        },
        follow_redirects=True,
    )


def _is_recoverable_status(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500


class CatalogFetcher:
    """Fetches card names, set metadata and type catalogs."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def fetch(self, endpoint: str) -> list[Any]:
        """GET ``endpoint`` and return its ``data`` list."""
        try:
            response = await self._client.get(endpoint)
        except httpx.HTTPError as exc:
            log.warning("catalog_request_error", endpoint=endpoint, error=str(exc))
            raise CardSuggestError(
                ErrorCode.CATALOG_FETCH_FAILED,
                f"Request to {endpoint} failed: {exc}",
                suggestion="Check network connectivity and retry.",
                recoverable=True,
            ) from exc

        if response.is_error:
            log.warning("catalog_http_error", endpoint=endpoint, status=response.status_code)
            raise CardSuggestError(
                ErrorCode.CATALOG_FETCH_FAILED,
                f"HTTP {response.status_code} from {endpoint}",
                suggestion="The catalog provider may be unavailable; retry later.",
                recoverable=_is_recoverable_status(response.status_code),
            )

        try:
            body = response.json()
        except ValueError as exc:
            log.warning("catalog_decode_error", endpoint=endpoint)
            raise CardSuggestError(
                ErrorCode.CATALOG_FETCH_FAILED,
                f"Response from {endpoint} is not valid JSON",
            ) from exc

        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, list):
            log.warning("catalog_missing_data", endpoint=endpoint)
            raise CardSuggestError(
                ErrorCode.CATALOG_FETCH_FAILED,
                f"Response from {endpoint} has no data list",
            )

        log.debug("catalog_fetched", endpoint=endpoint, count=len(data))
        return data

    async def fetch_names(self) -> list[str]:
        return [str(name) for name in await self.fetch(NAMES_ENDPOINT)]

    async def fetch_sets(self) -> list[CardSet]:
        raw_sets = await self.fetch(SETS_ENDPOINT)
        try:
            return [CardSet.model_validate(item) for item in raw_sets]
        except ValueError as exc:
            raise CardSuggestError(
                ErrorCode.CATALOG_INVALID,
                f"Set metadata from {SETS_ENDPOINT} is missing set codes",
            ) from exc

    async def fetch_types(self) -> dict[str, list[str]]:
        results = await asyncio.gather(*(self.fetch(path) for path in TYPE_ENDPOINTS.values()))
        return {
            name: [str(value) for value in values]
            for name, values in zip(TYPE_ENDPOINTS, results, strict=True)
        }

    async def fetch_all(self) -> CatalogContent:
        """Fetch all three categories; any single failure fails the whole payload."""
        sets, names, types = await asyncio.gather(
            self.fetch_sets(),
            self.fetch_names(),
            self.fetch_types(),
        )
        return CatalogContent(names=names, sets=sets, types=types)
