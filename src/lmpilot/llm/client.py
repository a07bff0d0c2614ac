"""Client for OpenAI-compatible chat completion endpoints.

Sends one conversation, returns the text of the first choice. Works with
LM Studio, Ollama's OpenAI shim, or any server exposing
POST {base_url}/chat/completions.

Typical usage example:
    from lmpilot.llm.client import ChatClient, ChatMessage, EndpointConfig

    client = ChatClient(EndpointConfig("http://localhost:1234/v1", "lm-studio"))
    reply = await client.chat(
        "qwen2.5-7b-instruct",
        [ChatMessage("system", "You are terse."), ChatMessage("user", "Hello")],
        timeout=8.0,
    )
"""

import asyncio
import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import httpx

from lmpilot.core.config import ConfigLoader
from lmpilot.core.errors import (
    ConfigurationError,
    MalformedResponseError,
    RequestCancelledError,
    TransportError,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:1234/v1"
DEFAULT_API_KEY = "lm-studio"


@dataclass(frozen=True)
class EndpointConfig:
    """Where and how to reach the chat endpoint.

    Attributes:
        base_url: API root, e.g. "http://localhost:1234/v1". Trailing
            slashes are ignored.
        api_key: Bearer credential. None or "" sends no Authorization header.
    """

    base_url: str = DEFAULT_BASE_URL
    api_key: str | None = DEFAULT_API_KEY

    @classmethod
    def from_config(cls, config: ConfigLoader) -> "EndpointConfig":
        """Build from the 'endpoint' section of a configuration.

        Args:
            config: Loaded configuration.

        Returns:
            EndpointConfig with defaults for missing keys.
        """
        return cls(
            base_url=str(config.get("endpoint.base_url", DEFAULT_BASE_URL)),
            api_key=config.get("endpoint.api_key", DEFAULT_API_KEY),
        )

    @property
    def completions_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/chat/completions"

    def headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        # Local servers accept a placeholder key, keep sending it
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers


@dataclass(frozen=True)
class ChatMessage:
    """One turn of a conversation.

    Attributes:
        role: "system", "user" or "assistant".
        content: Message text.
    """

    role: str
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


class ChatClient:
    """Sends single chat-completion requests.

    The client holds no per-request state: each call opens its own
    httpx.AsyncClient, makes exactly one POST and never retries.

    Examples:
        >>> client = ChatClient()
        >>> reply = await client.chat("my-model", [ChatMessage("user", "Hi")])
    """

    def __init__(
        self,
        endpoint: EndpointConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            endpoint: Endpoint settings (LM Studio defaults when omitted).
            transport: Optional httpx transport, e.g. httpx.MockTransport in tests.
        """
        self.endpoint = endpoint or EndpointConfig()
        self._transport = transport

    async def chat(
        self,
        model: str,
        messages: Sequence[ChatMessage],
        temperature: float = 0.7,
        max_tokens: int = 512,
        timeout: float | None = None,
    ) -> str:
        """Send a conversation and return the first choice's content.

        Cancelling the awaiting task aborts the request and propagates
        asyncio.CancelledError.

        Args:
            model: Model identifier (must not be blank).
            messages: Conversation, in order (must not be empty).
            temperature: Sampling temperature, passed through.
            max_tokens: Upper bound on reply length (must be positive).
            timeout: Seconds before the request is aborted; None waits forever.

        Returns:
            Reply text ("" when the model returned null content).

        Raises:
            ConfigurationError: If model, messages or max_tokens are invalid.
            TransportError: On network errors or a non-2xx status.
            MalformedResponseError: If the body lacks choices[0].message.
            RequestCancelledError: If the timeout expired first.
        """
        if not model or not model.strip():
            raise ConfigurationError("Model identifier is empty")
        if not messages:
            raise ConfigurationError("Conversation has no messages")
        if max_tokens <= 0:
            raise ConfigurationError(f"max_tokens must be positive, got {max_tokens}")

        payload = {
            "model": model,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "messages": [m.to_dict() for m in messages],
        }
        logger.debug(
            "POST %s (model=%s, %d messages)", self.endpoint.completions_url, model, len(messages)
        )

        try:
            response = await asyncio.wait_for(self._post(payload), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise RequestCancelledError(
                f"Chat request timed out after {timeout:.1f}s", reason="timeout"
            ) from e

        if not response.is_success:
            raise TransportError(
                f"Chat request failed: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
                body=response.text,
            )

        return self._read_content(response.text)

    async def _post(self, payload: dict[str, Any]) -> httpx.Response:
        # The deadline is enforced by the caller, so httpx gets no timeout of its own
        async with httpx.AsyncClient(transport=self._transport, timeout=None) as client:
            try:
                return await client.post(
                    self.endpoint.completions_url,
                    json=payload,
                    headers=self.endpoint.headers(),
                )
            except httpx.HTTPError as e:
                raise TransportError(f"Chat request failed: {e}", body=str(e)) from e

    @staticmethod
    def _read_content(body: str) -> str:
        try:
            data = json.loads(body)
            message = data["choices"][0]["message"]
            if not isinstance(message, dict):
                raise TypeError("message is not an object")
        except (json.JSONDecodeError, KeyError, IndexError, TypeError) as e:
            raise MalformedResponseError(f"Chat response parsing failed: {e}", body=body) from e

        content = message.get("content")
        return content if isinstance(content, str) else ""
