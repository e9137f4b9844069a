"""Language model capability and backends."""

from textgen.models.base import LanguageModel, TextFragment
from textgen.models.errors import (
    DecodeFailure,
    DependencyFailure,
    LanguageModelError,
    MissingCredential,
    TransportFailure,
)
from textgen.models.openai_client import CompletionClient, OpenAIModel
from textgen.models.streaming import TextStream

__all__ = [
    "CompletionClient",
    "DecodeFailure",
    "DependencyFailure",
    "LanguageModel",
    "LanguageModelError",
    "MissingCredential",
    "OpenAIModel",
    "TextFragment",
    "TextStream",
    "TransportFailure",
]
