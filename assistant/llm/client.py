"""Model backends — OpenAI-compatible chat completions and Anthropic."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import anthropic
import httpx

from assistant.errors import BackendError, ConfigurationError

if TYPE_CHECKING:
    from assistant.config import Settings

logger = logging.getLogger(__name__)

EMPTY_COMPLETION_FALLBACK = "I apologize, but I couldn't generate a response."


@dataclass
class Completion:
    """Text produced by a model backend."""

    content: str


@runtime_checkable
class ModelBackend(Protocol):
    """Protocol that every model backend must satisfy."""

    async def complete(
        self,
        messages: list[dict[str, str]],
        *,
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> Completion:
        """Run one completion. Raises ``BackendError`` on failure."""
        ...


class ChatCompletionsBackend:
    """Client for OpenAI-compatible ``/chat/completions`` endpoints (Z.AI by default).

    Args:
        api_key: Bearer token for the endpoint.
        base_url: API root, without the ``/chat/completions`` suffix.
        timeout: Request timeout in seconds.
        transport: Custom httpx transport (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.z.ai/v1",
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._url = f"{base_url.rstrip('/')}/chat/completions"
        self._timeout = timeout
        self._transport = transport

    async def complete(
        self,
        messages: list[dict[str, str]],
        *,
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> Completion:
        payload = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        headers = {"Authorization": f"Bearer {self._api_key}"}

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(self._url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise BackendError(f"Chat completion request failed: {exc}") from exc

        if resp.status_code != 200:
            raise BackendError(
                f"Model API error: {resp.status_code} - {resp.text[:200]}",
                status=resp.status_code,
            )

        try:
            data = resp.json()
        except ValueError as exc:
            raise BackendError("Model API returned invalid JSON", status=resp.status_code) from exc

        choices = data.get("choices") or []
        content = ""
        if choices:
            content = (choices[0].get("message") or {}).get("content") or ""
        if not content:
            logger.warning("Empty completion from %s (model=%s)", self._url, model)
            content = EMPTY_COMPLETION_FALLBACK
        return Completion(content=content)


class AnthropicBackend:
    """Backend using the Anthropic Messages API.

    System messages in the list are lifted into the ``system`` parameter,
    since the Messages API does not accept them inline.
    """

    def __init__(self, api_key: str, client: anthropic.AsyncAnthropic | None = None) -> None:
        self._client = client or anthropic.AsyncAnthropic(api_key=api_key)

    @staticmethod
    def _split_system(messages: list[dict[str, str]]) -> tuple[str, list[dict[str, str]]]:
        system_parts = [m["content"] for m in messages if m["role"] == "system"]
        chat = [{"role": m["role"], "content": m["content"]} for m in messages if m["role"] != "system"]
        # The Messages API requires the conversation to open with a user turn.
        while chat and chat[0]["role"] != "user":
            chat.pop(0)
        return "\n\n".join(system_parts), chat

    async def complete(
        self,
        messages: list[dict[str, str]],
        *,
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> Completion:
        system, chat = self._split_system(messages)
        kwargs: dict[str, Any] = {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": chat,
        }
        if system:
            kwargs["system"] = system

        try:
            response = await self._client.messages.create(**kwargs)
        except anthropic.APIStatusError as exc:
            raise BackendError(
                f"Anthropic API error: {exc.status_code} - {exc.message}",
                status=exc.status_code,
            ) from exc
        except anthropic.APIError as exc:
            raise BackendError(f"Anthropic request failed: {exc}") from exc

        text = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
        if not text:
            logger.warning("Empty completion from Anthropic (model=%s)", model)
            text = EMPTY_COMPLETION_FALLBACK
        return Completion(content=text)


def create_backend(settings: Settings) -> ModelBackend:
    """Build the backend named by ``settings.llm_provider``."""
    api_key = settings.get_llm_api_key()
    if not api_key:
        msg = f"No API key configured for LLM provider '{settings.llm_provider}'"
        raise ConfigurationError(msg)

    if settings.llm_provider == "anthropic":
        logger.info("Model backend: Anthropic (%s)", settings.anthropic_model)
        return AnthropicBackend(api_key=api_key)
    if settings.llm_provider == "openai_compatible":
        logger.info("Model backend: %s (%s)", settings.zai_base_url, settings.chat_model)
        return ChatCompletionsBackend(
            api_key=api_key,
            base_url=settings.zai_base_url,
            timeout=settings.llm_timeout_seconds,
        )
    msg = f"Unknown LLM provider: {settings.llm_provider}"
    raise ConfigurationError(msg, {"llm_provider": settings.llm_provider})
