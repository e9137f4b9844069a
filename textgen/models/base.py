"""Language model capability.

Backends implement `LanguageModel` structurally; no base class to inherit.
`generate_text` waits for the full reply. `stream_text` awaits stream setup
and returns a lazy, single-pass async iterator of `TextFragment`; failures
after setup are raised from the iterator at the point they occur.
"""

from __future__ import annotations

from typing import AsyncIterator, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict


class TextFragment(BaseModel):
    """A chunk of text received from a language model."""

    model_config = ConfigDict(frozen=True)

    text: str


@runtime_checkable
class LanguageModel(Protocol):
    """Protocol for text-generating models, complete or streamed."""

    async def generate_text(self, prompt: str) -> str:
        """Return the complete reply for prompt."""
        ...

    async def stream_text(self, prompt: str) -> AsyncIterator[TextFragment]:
        """Open a stream for prompt and return its fragments in arrival order."""
        ...
