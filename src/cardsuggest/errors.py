"""Error model shared by the cache, fetcher and suggestion engine.

Every failure that crosses a component boundary is a ``CardSuggestError``
carrying a machine-readable ``ErrorCode`` and a ``recoverable`` flag that
tells the caller whether retrying later can help.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    CATALOG_FETCH_FAILED = "CATALOG_FETCH_FAILED"
    CATALOG_INVALID = "CATALOG_INVALID"
    CACHE_STORAGE_FAILED = "CACHE_STORAGE_FAILED"


class CardSuggestError(Exception):
    """Base error for all cardsuggest failures."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        suggestion: str = "",
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.recoverable = recoverable

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "suggestion": self.suggestion,
                "recoverable": self.recoverable,
            }
        }


class CacheStorageError(CardSuggestError):
    """Raised by a cache store when the persisted document cannot be read or written."""

    def __init__(self, message: str) -> None:
        super().__init__(
            ErrorCode.CACHE_STORAGE_FAILED,
            message,
            suggestion="Check that the cache path is writable.",
            recoverable=True,
        )
