from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from cardsuggest.models.catalog import CatalogContent


class CacheEntry(BaseModel):
    """Persisted catalog cache state.

    Serialized as ``{"lastFetchTimestamp": int, "content": {...}}``; an
    empty cache stores ``{}`` as its content.
    """

    model_config = ConfigDict(populate_by_name=True)

    last_fetch_timestamp: int = Field(default=0, alias="lastFetchTimestamp", ge=0)  # ms since epoch
    content: CatalogContent | None = None

    @field_validator("content", mode="before")
    @classmethod
    def empty_content_is_none(cls, v: Any) -> Any:
        if isinstance(v, dict) and not v:
            return None
        return v

    @field_serializer("content")
    def serialize_content(self, content: CatalogContent | None) -> dict[str, Any]:
        if content is None:
            return {}
        return content.model_dump(mode="json")

    @property
    def is_empty(self) -> bool:
        return self.content is None

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
