from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator

# Fixed order used when the type classes are flattened into one list.
TYPE_CLASSES: tuple[str, ...] = (
    "Creature",
    "Planeswalker",
    "Land",
    "Artifact",
    "Enchantment",
    "Spells",
)


class CardSet(BaseModel):
    """Set metadata as returned by the catalog provider.

    Only ``code`` is required; every other upstream field is kept so the
    persisted document round-trips unchanged.
    """

    model_config = ConfigDict(extra="allow")

    code: str


class CatalogContent(BaseModel):
    """A complete catalog payload: names, sets and type lists together."""

    names: list[str]
    sets: list[CardSet]
    types: dict[str, list[str]]

    @field_validator("types")
    @classmethod
    def validate_types(cls, v: dict[str, list[str]]) -> dict[str, list[str]]:
        missing = [name for name in TYPE_CLASSES if name not in v]
        if missing:
            raise ValueError(f"types is missing type classes: {', '.join(missing)}")
        return v

    def set_codes(self) -> list[str]:
        return [card_set.code for card_set in self.sets]

    def all_types(self) -> list[str]:
        """Flatten the six type classes in ``TYPE_CLASSES`` order."""
        flattened: list[str] = []
        for name in TYPE_CLASSES:
            flattened.extend(self.types[name])
        return flattened
