"""Chat-completions wire payloads. All payloads are Pydantic models."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    role: Literal["user"] = "user"
    content: str


class CompletionRequest(BaseModel):
    """Request body for POST /chat/completions."""

    messages: list[ChatMessage]
    model: str
    stream: bool = False

    def to_body(self) -> dict[str, Any]:
        return self.model_dump()


def build_request(prompt: str, model: str, *, stream: bool) -> CompletionRequest:
    """Single user turn carrying the raw prompt; no history, no system prompt."""
    return CompletionRequest(
        messages=[ChatMessage(content=prompt)],
        model=model,
        stream=stream,
    )


class Delta(BaseModel):
    model_config = ConfigDict(extra="ignore")

    content: Optional[str] = None


class StreamChoice(BaseModel):
    model_config = ConfigDict(extra="ignore")

    delta: Delta


class StreamChunk(BaseModel):
    """One streamed event: {"choices": [{"delta": {"content": ...}}]}."""

    model_config = ConfigDict(extra="ignore")

    choices: list[StreamChoice] = Field(description="Only the first entry is used")

    def first_content(self) -> Optional[str]:
        if not self.choices:
            return None
        return self.choices[0].delta.content
