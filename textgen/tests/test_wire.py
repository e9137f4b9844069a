"""Tests for request building and stream chunk models."""

import pytest
from pydantic import ValidationError

from textgen.models.openai_client import OpenAIModel
from textgen.models.wire import StreamChunk, build_request


def test_build_request_single_user_message():
    req = build_request("Explain transformers", OpenAIModel.O1_MINI.value, stream=True)
    assert req.to_body() == {
        "messages": [{"role": "user", "content": "Explain transformers"}],
        "model": "o1-mini",
        "stream": True,
    }


def test_build_request_keeps_prompt_verbatim():
    req = build_request("  spaced\n", "gpt-4o", stream=False)
    assert req.messages[0].content == "  spaced\n"
    assert req.stream is False
    assert len(req.messages) == 1


def test_stream_chunk_first_content():
    chunk = StreamChunk.model_validate_json(
        '{"id": "x", "choices": [{"index": 0, "delta": {"content": "Hi"}}, {"delta": {"content": "no"}}]}'
    )
    assert chunk.first_content() == "Hi"


def test_stream_chunk_empty_choices_and_delta():
    assert StreamChunk.model_validate_json('{"choices": []}').first_content() is None
    assert StreamChunk.model_validate_json('{"choices": [{"delta": {}}]}').first_content() is None


def test_stream_chunk_rejects_wrong_shape():
    with pytest.raises(ValidationError):
        StreamChunk.model_validate_json('{"error": {"message": "overloaded"}}')
    with pytest.raises(ValidationError):
        StreamChunk.model_validate_json("<malformed-json>")
