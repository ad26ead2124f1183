"""Error types shared by every layer.

A single exception class carries a machine-readable ``ErrorCode`` and a
``recoverable`` flag so the tool layer can serialize it without knowing which
component raised it.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    FETCH_FAILED = "FETCH_FAILED"
    FETCH_TIMEOUT = "FETCH_TIMEOUT"
    PAGE_NOT_FOUND = "PAGE_NOT_FOUND"
    PARSE_FAILED = "PARSE_FAILED"
    NOT_INITIALIZED = "NOT_INITIALIZED"
    INVALID_KEY = "INVALID_KEY"
    INVALID_INPUT = "INVALID_INPUT"


class WowDevError(Exception):
    """Typed failure raised by fetchers, caches and services."""

    def __init__(self, code: ErrorCode, message: str, *, recoverable: bool = False) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.recoverable = recoverable

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "recoverable": self.recoverable,
            }
        }

    def __repr__(self) -> str:
        return f"WowDevError(code={self.code.value!r}, message={self.message!r})"
