from __future__ import annotations

from typing import Any


class QuoteError(Exception):
    """Base class for quote ingestion and storage failures."""


class FetchError(QuoteError):
    def __init__(self, message: str, *, status_code: int | None = None, payload: Any | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class FormatError(QuoteError):
    def __init__(self, message: str, *, payload: Any | None = None) -> None:
        super().__init__(message)
        self.payload = payload


class QuoteValidationError(QuoteError):
    def __init__(self, message: str, *, value: Any | None = None) -> None:
        super().__init__(message)
        self.value = value


class StoreError(QuoteError):
    pass


__all__ = ["FetchError", "FormatError", "QuoteError", "QuoteValidationError", "StoreError"]
