"""Streaming bridge: server-sent events of chat-completion chunks -> TextFragment.

Chat Completions stream one JSON chunk per SSE `data:` payload and finish with
a literal `[DONE]` payload. The sentinel is compared as text before any JSON
decoding. Chunks without content yield nothing. A decode error or an HTTP read
error ends the stream once, at the point it happens; fragments already yielded
stand. The backend closing the connection without `[DONE]` is a normal end.
"""

from __future__ import annotations

import logging
from typing import AsyncIterable, AsyncIterator

import httpx
from pydantic import ValidationError

from textgen.models.base import TextFragment
from textgen.models.errors import DecodeFailure, TransportFailure
from textgen.models.wire import StreamChunk

logger = logging.getLogger(__name__)

DONE_SENTINEL = "[DONE]"


async def iter_sse_data(lines: AsyncIterable[str]) -> AsyncIterator[str]:
    """Yield the data payload of each SSE event. Other fields are ignored."""
    data_lines: list[str] = []
    async for line in lines:
        if not line:
            if data_lines:
                yield "\n".join(data_lines)
                data_lines = []
            continue
        if line.startswith(":"):
            continue
        field, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if field == "data":
            data_lines.append(value)
    if data_lines:
        yield "\n".join(data_lines)


async def decode_fragments(payloads: AsyncIterable[str]) -> AsyncIterator[TextFragment]:
    """Decode SSE payloads into fragments, stopping at the sentinel."""
    count = 0
    async for payload in payloads:
        if payload == DONE_SENTINEL:
            logger.debug("stream done after %d fragments", count)
            return
        try:
            chunk = StreamChunk.model_validate_json(payload)
        except ValidationError as e:
            logger.warning("stream decode failed after %d fragments: %s", count, e)
            raise DecodeFailure(f"Could not decode stream event: {payload!r}", raw=payload) from e
        content = chunk.first_content()
        if content:
            count += 1
            yield TextFragment(text=content)
    logger.debug("stream closed by server after %d fragments", count)


class TextStream:
    """Async iterator of TextFragment over one open streaming HTTP response.

    Single-pass. The response is closed when the stream ends, fails, or is
    closed with `aclose()` / `async with`.
    """

    def __init__(self, response: httpx.Response) -> None:
        self._response = response
        self._fragments = self._iterate()

    async def _iterate(self) -> AsyncIterator[TextFragment]:
        try:
            async for fragment in decode_fragments(iter_sse_data(self._response.aiter_lines())):
                yield fragment
        except httpx.RequestError as e:
            logger.warning("stream transport failed: %s", e)
            raise TransportFailure(f"Stream interrupted: {e}") from e
        finally:
            await self._response.aclose()

    @property
    def response(self) -> httpx.Response:
        return self._response

    def __aiter__(self) -> TextStream:
        return self

    async def __anext__(self) -> TextFragment:
        return await self._fragments.__anext__()

    async def aclose(self) -> None:
        await self._fragments.aclose()
        await self._response.aclose()

    async def __aenter__(self) -> TextStream:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
