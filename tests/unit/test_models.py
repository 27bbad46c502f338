"""Unit tests for cardsuggest.models."""

from __future__ import annotations

from typing import Any

import pytest
from pydantic import ValidationError

from cardsuggest.models import (
    TYPE_CLASSES,
    CacheEntry,
    CatalogContent,
    SelectionState,
    SuggestionCandidate,
    escape_value,
)


class TestCatalogContent:
    def test_all_types_flattens_in_fixed_order(self, sample_content: CatalogContent) -> None:
        assert sample_content.all_types() == [
            "Elf", "Goblin", "Human",
            "Jace", "Liliana",
            "Forest", "Island",
            "Equipment", "Vehicle",
            "Aura", "Saga",
            "Adventure", "Arcane",
        ]  # fmt: skip

    def test_all_types_ignores_dict_order(self, sample_payload: dict[str, Any]) -> None:
        sample_payload["types"] = dict(reversed(list(sample_payload["types"].items())))
        content = CatalogContent.model_validate(sample_payload)
        assert content.all_types()[0] == "Elf"

    def test_set_codes(self, sample_content: CatalogContent) -> None:
        assert sample_content.set_codes() == ["dmu", "mh2", "lea"]

    def test_missing_type_class_rejected(self, sample_payload: dict[str, Any]) -> None:
        del sample_payload["types"]["Land"]
        with pytest.raises(ValidationError, match="Land"):
            CatalogContent.model_validate(sample_payload)

    def test_set_without_code_rejected(self, sample_payload: dict[str, Any]) -> None:
        sample_payload["sets"].append({"name": "No Code"})
        with pytest.raises(ValidationError):
            CatalogContent.model_validate(sample_payload)

    def test_type_classes(self) -> None:
        assert TYPE_CLASSES == (
            "Creature", "Planeswalker", "Land", "Artifact", "Enchantment", "Spells",
        )  # fmt: skip


class TestCacheEntry:
    def test_defaults_are_never_fetched(self) -> None:
        entry = CacheEntry()
        assert entry.is_empty
        assert entry.last_fetch_timestamp == 0

    def test_accepts_alias_and_field_name(self) -> None:
        assert CacheEntry(lastFetchTimestamp=5).last_fetch_timestamp == 5
        assert CacheEntry(last_fetch_timestamp=5).last_fetch_timestamp == 5

    def test_empty_object_content_is_empty(self) -> None:
        entry = CacheEntry.model_validate({"lastFetchTimestamp": 1, "content": {}})
        assert entry.is_empty

    def test_negative_timestamp_rejected(self) -> None:
        with pytest.raises(ValidationError):
            CacheEntry(last_fetch_timestamp=-1)


class TestEscapeValue:
    def test_quotes(self) -> None:
        assert escape_value("Lim-Dûl's \"Vault\"") == "Lim-Dûl&apos;s &quot;Vault&quot;"

    def test_every_occurrence_escaped(self) -> None:
        assert escape_value("a'b'c") == "a&apos;b&apos;c"

    def test_markup_characters(self) -> None:
        assert escape_value("<b>&") == "&lt;b&gt;&amp;"


class TestSuggestionCandidate:
    def test_value_with_prefix(self) -> None:
        candidate = SuggestionCandidate(raw_value="Creature", prefix="t")
        assert candidate.value == "t:Creature"
        assert candidate.display_text == "t:Creature"

    def test_value_without_prefix(self) -> None:
        candidate = SuggestionCandidate(raw_value="Jace Beleren")
        assert candidate.value == "Jace Beleren"

    def test_markup_highlights_match(self) -> None:
        candidate = SuggestionCandidate(raw_value="Jace Beleren", match_start=0, match_length=4)
        assert candidate.markup() == "<strong>Jace</strong> Beleren"
        assert candidate.matched_prefix_length == 4

    def test_markup_mid_string(self) -> None:
        candidate = SuggestionCandidate(raw_value="Jace Beleren", match_start=5, match_length=3)
        assert candidate.markup() == "Jace <strong>Bel</strong>eren"
        assert candidate.matched_prefix_length == 0

    def test_markup_escapes(self) -> None:
        candidate = SuggestionCandidate(raw_value="Lim-Dûl's Vault", match_start=0, match_length=3)
        assert candidate.markup() == "<strong>Lim</strong>-Dûl&apos;s Vault"

    def test_markup_without_match(self) -> None:
        assert SuggestionCandidate(raw_value="Saga").markup() == "Saga"

    def test_hidden_value_is_attribute_safe(self) -> None:
        candidate = SuggestionCandidate(raw_value='Kongming, "Sleeping Dragon"')
        assert '"' not in candidate.hidden_value()
        assert "'" not in SuggestionCandidate(raw_value="Urza's Saga").hidden_value()


class TestSelectionState:
    def test_starts_closed(self) -> None:
        state = SelectionState()
        assert not state.is_open
        assert state.focused_index == -1
        assert state.focused is None
        assert state.min_match_length == 3

    def test_open_resets_focus(self) -> None:
        state = SelectionState()
        state.open("q-list", [SuggestionCandidate(raw_value="a")])
        state.focused_index = 0
        state.open("q-list", [SuggestionCandidate(raw_value="b")])
        assert state.focused_index == -1

    def test_close_clears_everything_but_min_length(self) -> None:
        state = SelectionState(min_match_length=1)
        state.open("q-list", [SuggestionCandidate(raw_value="a")])
        state.focused_index = 0
        state.close()
        assert state.open_list_id is None
        assert state.candidates == []
        assert state.focused_index == -1
        assert state.min_match_length == 1
