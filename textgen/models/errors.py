"""Error types for language model backends.

Every failure is surfaced to the immediate caller; nothing here is retried.

- `MissingCredential`: no API key passed and none in the environment.
- `DependencyFailure`: the backend answered with something unusable.
- `DecodeFailure`: a streamed payload is not the expected JSON shape.
- `TransportFailure`: connection, timeout or read error from the HTTP layer.
"""

from __future__ import annotations


class LanguageModelError(Exception):
    """Base class for language model failures."""


class MissingCredential(LanguageModelError):
    """Raised at client construction when no API key can be resolved."""


class DependencyFailure(LanguageModelError):
    """Raised when a response lacks the expected content or has an error status."""


class DecodeFailure(LanguageModelError):
    """Raised mid-stream when one event payload cannot be decoded."""

    def __init__(self, message: str, raw: str | bytes | None = None) -> None:
        super().__init__(message)
        self.raw = raw


class TransportFailure(LanguageModelError):
    """Raised on connection, timeout or read errors, at setup or mid-stream."""
