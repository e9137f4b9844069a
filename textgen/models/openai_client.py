"""OpenAI chat-completions backend.

Non-streaming calls go through the OpenAI SDK; streaming reads the raw SSE
response over the same httpx client so the `[DONE]` sentinel and each payload
can be handled by textgen.models.streaming.
"""

from __future__ import annotations

import logging
import os
from enum import Enum
from typing import TYPE_CHECKING, Mapping

import httpx
import openai
from openai import AsyncOpenAI

from textgen.models.errors import DependencyFailure, MissingCredential, TransportFailure
from textgen.models.streaming import TextStream
from textgen.models.wire import build_request

if TYPE_CHECKING:
    from textgen.config.loader import ModelSettings

logger = logging.getLogger(__name__)

API_KEY_ENV = "OPENAI_API_KEY"
DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_TIMEOUT = 60.0


class OpenAIModel(str, Enum):
    """Chat models this client can target."""

    CHATGPT_4O_LATEST = "chatgpt-4o-latest"
    GPT_4O = "gpt-4o"
    O1 = "o1"
    O1_MINI = "o1-mini"
    O3_MINI = "o3-mini"


def resolve_api_key(api_key: str | None, environ: Mapping[str, str] | None = None) -> str:
    """Explicit key wins, even empty; else OPENAI_API_KEY, where empty counts as missing."""
    if api_key is not None:
        return api_key
    env = os.environ if environ is None else environ
    env_key = env.get(API_KEY_ENV, "")
    if not env_key:
        raise MissingCredential(f"Could not find API key in the environment: {API_KEY_ENV}")
    return env_key


class CompletionClient:
    """LanguageModel backed by /chat/completions. Read-only after construction."""

    def __init__(
        self,
        model: OpenAIModel,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: httpx.AsyncClient | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._api_key = resolve_api_key(api_key, environ)
        self._model = OpenAIModel(model)
        self._base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)
        self._client = AsyncOpenAI(
            api_key=self._api_key,
            base_url=self._base_url,
            http_client=self._http,
            max_retries=0,
        )

    @classmethod
    def gpt4o(cls, api_key: str | None = None) -> CompletionClient:
        return cls(OpenAIModel.CHATGPT_4O_LATEST, api_key)

    @classmethod
    def o1(cls, api_key: str | None = None) -> CompletionClient:
        return cls(OpenAIModel.O1, api_key)

    @classmethod
    def o1_mini(cls, api_key: str | None = None) -> CompletionClient:
        return cls(OpenAIModel.O1_MINI, api_key)

    @classmethod
    def o3_mini(cls, api_key: str | None = None) -> CompletionClient:
        return cls(OpenAIModel.O3_MINI, api_key)

    @classmethod
    def from_settings(
        cls, settings: ModelSettings, *, http_client: httpx.AsyncClient | None = None
    ) -> CompletionClient:
        return cls(
            settings.name,
            settings.api_key or None,
            base_url=settings.base_url,
            timeout=settings.timeout,
            http_client=http_client,
        )

    @property
    def model(self) -> OpenAIModel:
        return self._model

    @property
    def base_url(self) -> str:
        return self._base_url

    async def generate_text(self, prompt: str) -> str:
        request = build_request(prompt, self._model.value, stream=False)
        try:
            resp = await self._client.chat.completions.create(**request.to_body())
        except openai.APIConnectionError as e:
            raise TransportFailure(f"Request to {self._base_url} failed: {e}") from e
        except openai.APIStatusError as e:
            raise DependencyFailure(
                f"Completion request failed with status {e.status_code}: {e.body!r}"
            ) from e
        except (openai.APIError, ValueError) as e:
            raise DependencyFailure(f"Could not parse completion response: {e}") from e
        # A non-JSON body comes back from the SDK as a plain str
        choices = getattr(resp, "choices", None)
        message = getattr(choices[0], "message", None) if choices else None
        content = getattr(message, "content", None)
        if not isinstance(content, str):
            raise DependencyFailure(f"Could not obtain message from response: {resp!r}")
        return content

    async def stream_text(self, prompt: str) -> TextStream:
        """Open the event stream; fragments are read lazily from the returned TextStream."""
        request = build_request(prompt, self._model.value, stream=True)
        http_request = self._http.build_request(
            "POST",
            f"{self._base_url}/chat/completions",
            json=request.to_body(),
            headers={
                "Authorization": f"Bearer {self._api_key}",
                "Accept": "text/event-stream",
            },
        )
        try:
            response = await self._http.send(http_request, stream=True)
        except httpx.RequestError as e:
            raise TransportFailure(f"Could not open stream to {self._base_url}: {e}") from e
        if response.is_error:
            detail = await _read_and_close(response)
            raise DependencyFailure(
                f"Stream request failed with status {response.status_code}: {detail}"
            )
        content_type = response.headers.get("content-type", "")
        if not content_type.startswith("text/event-stream"):
            detail = await _read_and_close(response)
            raise DependencyFailure(
                f"Expected an event stream, got {content_type or 'no content type'}: {detail}"
            )
        logger.debug("stream opened model=%s", self._model.value)
        return TextStream(response)

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> CompletionClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


async def _read_and_close(response: httpx.Response) -> str:
    try:
        await response.aread()
        return response.text
    except httpx.RequestError:
        return "<unreadable body>"
    finally:
        await response.aclose()
