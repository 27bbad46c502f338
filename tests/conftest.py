"""Shared fixtures: a sample catalog payload, a controllable clock and a counting fetcher."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from cardsuggest.models.catalog import CatalogContent

T0 = 1_700_000_000_000  # ms


def _sample_payload() -> dict[str, Any]:
    return {
        "names": [
            "Liliana, Heretical Healer",
            "Æther Vial",
            "Lim-Dûl's Vault",
            "Jace Beleren",
            "Circle of Protection: Red",
            "Lightning Bolt",
        ],
        "sets": [
            {
                "code": "dmu",
                "name": "Dominaria United",
                "set_type": "expansion",
                "card_count": 281,
                "digital": False,
            },
            {"code": "mh2", "name": "Modern Horizons 2", "released_at": "2021-06-18"},
            {"code": "lea", "name": "Limited Edition Alpha"},
        ],
        "types": {
            "Creature": ["Elf", "Goblin", "Human"],
            "Planeswalker": ["Jace", "Liliana"],
            "Land": ["Forest", "Island"],
            "Artifact": ["Equipment", "Vehicle"],
            "Enchantment": ["Aura", "Saga"],
            "Spells": ["Adventure", "Arcane"],
        },
    }


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, now: int = T0) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class CountingFetcher:
    """Zero-argument catalog fetcher that records calls and can fail or block."""

    def __init__(self, payload: dict[str, Any]) -> None:
        self.payload = payload
        self.calls = 0
        self.error: BaseException | None = None
        self.gate: asyncio.Event | None = None

    async def __call__(self) -> dict[str, Any]:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.payload


@pytest.fixture()
def sample_payload() -> dict[str, Any]:
    return _sample_payload()


@pytest.fixture()
def sample_content(sample_payload: dict[str, Any]) -> CatalogContent:
    return CatalogContent.model_validate(sample_payload)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def fetcher(sample_payload: dict[str, Any]) -> CountingFetcher:
    return CountingFetcher(sample_payload)
