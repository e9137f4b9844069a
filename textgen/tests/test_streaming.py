"""Tests for the streaming bridge (SSE payloads -> TextFragment)."""

import json

import httpx
import pytest

from textgen.models.base import TextFragment
from textgen.models.errors import DecodeFailure, TransportFailure
from textgen.models.streaming import TextStream, decode_fragments, iter_sse_data


def chunk(content=None):
    delta = {} if content is None else {"content": content}
    return json.dumps({"choices": [{"index": 0, "delta": delta}]})


async def source(payloads, pulled):
    for p in payloads:
        pulled.append(p)
        yield p


async def collect(stream):
    return [f async for f in stream]


async def lines_of(text):
    for line in text.split("\n"):
        yield line


def sse_response(*parts, status_code=200):
    async def body():
        for part in parts:
            if isinstance(part, Exception):
                raise part
            yield part.encode()

    return httpx.Response(
        status_code,
        content=body(),
        request=httpx.Request("POST", "http://test/v1/chat/completions"),
    )


def event(payload):
    return f"data: {payload}\n\n"


@pytest.mark.asyncio
async def test_decode_fragments_in_order_then_done():
    pulled = []
    out = await collect(decode_fragments(source([chunk("Hel"), chunk("lo"), "[DONE]"], pulled)))
    assert out == [TextFragment(text="Hel"), TextFragment(text="lo")]


@pytest.mark.asyncio
async def test_decode_fragments_nothing_after_sentinel_is_touched():
    pulled = []
    payloads = [chunk("A"), "[DONE]", chunk("B"), "<malformed-json>"]
    out = await collect(decode_fragments(source(payloads, pulled)))
    assert [f.text for f in out] == ["A"]
    assert pulled == [chunk("A"), "[DONE]"]


@pytest.mark.asyncio
async def test_decode_fragments_skips_empty_deltas():
    payloads = [chunk(), chunk("Hi"), chunk(""), json.dumps({"choices": []}), "[DONE]"]
    out = await collect(decode_fragments(source(payloads, [])))
    assert out == [TextFragment(text="Hi")]


@pytest.mark.asyncio
async def test_decode_fragments_malformed_keeps_earlier_fragments():
    got = []
    with pytest.raises(DecodeFailure) as exc_info:
        async for fragment in decode_fragments(source([chunk("A"), "<malformed-json>"], [])):
            got.append(fragment.text)
    assert got == ["A"]
    assert exc_info.value.raw == "<malformed-json>"
    assert exc_info.value.__cause__ is not None


@pytest.mark.asyncio
async def test_decode_fragments_wrong_shape_is_decode_failure():
    with pytest.raises(DecodeFailure):
        await collect(decode_fragments(source(['{"error": {"message": "boom"}}'], [])))


@pytest.mark.asyncio
async def test_decode_fragments_end_without_sentinel_is_normal():
    out = await collect(decode_fragments(source([chunk("x"), chunk("y")], [])))
    assert [f.text for f in out] == ["x", "y"]


@pytest.mark.asyncio
async def test_decode_fragments_sentinel_must_match_exactly():
    with pytest.raises(DecodeFailure):
        await collect(decode_fragments(source(["[DONE] "], [])))


@pytest.mark.asyncio
async def test_iter_sse_data_framing():
    text = (
        ": keep-alive\n"
        "\n"
        "event: message\n"
        "id: 1\n"
        "data: first\n"
        "\n"
        "data:second\n"
        "data: line\n"
        "\n"
        "retry: 1000\n"
        "\n"
        "data: tail"
    )
    out = [p async for p in iter_sse_data(lines_of(text))]
    assert out == ["first", "second\nline", "tail"]


@pytest.mark.asyncio
async def test_text_stream_yields_and_closes_response():
    response = sse_response(event(chunk("Hel")), event(chunk("lo")), event("[DONE]"))
    stream = TextStream(response)
    out = await collect(stream)
    assert [f.text for f in out] == ["Hel", "lo"]
    assert response.is_closed


@pytest.mark.asyncio
async def test_text_stream_event_split_across_reads():
    payload = event(chunk("split"))
    response = sse_response(payload[:7], payload[7:20], payload[20:], event("[DONE]"))
    out = await collect(TextStream(response))
    assert [f.text for f in out] == ["split"]


@pytest.mark.asyncio
async def test_text_stream_server_close_without_done():
    response = sse_response(event(chunk("A")), event(chunk("B")))
    out = await collect(TextStream(response))
    assert [f.text for f in out] == ["A", "B"]
    assert response.is_closed


@pytest.mark.asyncio
async def test_text_stream_decode_failure_then_exhausted():
    response = sse_response(event(chunk("A")), event("<malformed-json>"), event(chunk("B")))
    stream = TextStream(response)
    got = []
    with pytest.raises(DecodeFailure):
        async for fragment in stream:
            got.append(fragment.text)
    assert got == ["A"]
    assert response.is_closed
    with pytest.raises(StopAsyncIteration):
        await stream.__anext__()


@pytest.mark.asyncio
async def test_text_stream_transport_error_mid_stream():
    response = sse_response(event(chunk("A")), httpx.ReadError("connection reset"))
    got = []
    with pytest.raises(TransportFailure) as exc_info:
        async for fragment in TextStream(response):
            got.append(fragment.text)
    assert got == ["A"]
    assert isinstance(exc_info.value.__cause__, httpx.ReadError)
    assert response.is_closed


@pytest.mark.asyncio
async def test_text_stream_aclose_releases_response_early():
    response = sse_response(event(chunk("A")), event(chunk("B")), event("[DONE]"))
    async with TextStream(response) as stream:
        async for fragment in stream:
            assert fragment.text == "A"
            break
    assert response.is_closed


@pytest.mark.asyncio
async def test_text_stream_aclose_before_iteration():
    response = sse_response(event(chunk("A")))
    stream = TextStream(response)
    await stream.aclose()
    assert response.is_closed
