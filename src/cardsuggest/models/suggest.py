from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict

_ENTITIES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    "'": "&apos;",
    '"': "&quot;",
}


def escape_value(value: str) -> str:
    """Escape markup characters, including both quote styles, for attribute embedding."""
    return "".join(_ENTITIES.get(ch, ch) for ch in value)


class SuggestionCandidate(BaseModel):
    """One catalog entry offered for the current query."""

    model_config = ConfigDict(frozen=True)

    raw_value: str
    prefix: str | None = None  # None for the card-name category
    match_start: int = 0
    match_length: int = 0

    @property
    def matched_prefix_length(self) -> int:
        """Length of the bold-highlighted prefix; zero when the match is mid-string."""
        return self.match_length if self.match_start == 0 else 0

    @property
    def value(self) -> str:
        """Text applied to the input when the candidate is committed."""
        if self.prefix:
            return f"{self.prefix}:{self.raw_value}"
        return self.raw_value

    @property
    def display_text(self) -> str:
        return self.value

    def markup(self) -> str:
        end = self.match_start + self.match_length
        head = escape_value(self.raw_value[: self.match_start])
        matched = escape_value(self.raw_value[self.match_start : end])
        tail = escape_value(self.raw_value[end:])
        if not matched:
            return head + tail
        return f"{head}<strong>{matched}</strong>{tail}"

    def hidden_value(self) -> str:
        return escape_value(self.value)


@dataclass
class SelectionState:
    """Selection state of one input field's suggestion list.

    Closed when ``open_list_id`` is None; otherwise Open with
    ``focused_index`` in ``[-1, len(candidates) - 1]``.
    """

    min_match_length: int = 3
    open_list_id: str | None = None
    focused_index: int = -1
    candidates: list[SuggestionCandidate] = field(default_factory=list)

    @property
    def is_open(self) -> bool:
        return self.open_list_id is not None

    @property
    def focused(self) -> SuggestionCandidate | None:
        if self.is_open and self.focused_index > -1:
            return self.candidates[self.focused_index]
        return None

    def open(self, list_id: str, candidates: list[SuggestionCandidate]) -> None:
        self.open_list_id = list_id
        self.candidates = list(candidates)
        self.focused_index = -1

    def close(self) -> None:
        self.open_list_id = None
        self.candidates = []
        self.focused_index = -1
