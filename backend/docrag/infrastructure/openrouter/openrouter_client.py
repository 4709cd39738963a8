"""OpenRouter chat adapter — implements the ChatProvider port.

Non-streaming completions only; usage accounting (``usage.include``) is
always requested so the usage log can record cost.
"""

import logging
from typing import Any

import httpx

from docrag.application.interfaces.chat_provider import ChatProvider
from docrag.domain.entities import ChatCompletionResult, ChatMessage, TokenUsage
from docrag.domain.exceptions import ChatProviderError
from docrag.infrastructure.openrouter.openrouter_http import OpenRouterHTTP, error_message

logger = logging.getLogger(__name__)

# Reported when the request never got an HTTP response
_UNAVAILABLE = 503
# Reported when a 200 response cannot be decoded
_BAD_GATEWAY = 502


class OpenRouterClient(OpenRouterHTTP, ChatProvider):

    @property
    def provider_name(self) -> str:
        return "openrouter"

    async def complete(
        self,
        messages: list[ChatMessage],
        model: str,
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> ChatCompletionResult:
        payload: dict[str, Any] = {
            "model": model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "usage": {"include": True},
        }
        if temperature is not None:
            payload["temperature"] = temperature
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens

        try:
            response = await self._post("/chat/completions", payload)
        except httpx.HTTPError as e:
            logger.error("Chat request failed before a response: %s", e)
            raise self._error(_UNAVAILABLE, f"{type(e).__name__}: {e}") from e

        if response.status_code != 200:
            message = error_message(response)
            logger.error("Chat API error %d: %s", response.status_code, message[:500])
            raise self._error(response.status_code, message)

        try:
            result = self._to_result(response.json())
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error("Malformed chat completion response: %s", e)
            raise self._error(
                _BAD_GATEWAY, f"Malformed response body ({type(e).__name__}: {e})"
            ) from e
        logger.debug(
            "Chat completion model=%s tokens=%d finish=%s",
            result.model,
            result.usage.total_tokens,
            result.finish_reason,
        )
        return result

    def _error(self, status_code: int, message: str) -> ChatProviderError:
        return ChatProviderError(self.provider_name, status_code, message)

    def _to_result(self, data: dict[str, Any]) -> ChatCompletionResult:
        # OpenRouter may report upstream failures inside a 200 body
        if isinstance(data.get("error"), dict):
            error = data["error"]
            raise self._error(error.get("code", 500), error.get("message", "Unknown error"))

        choices = data.get("choices") or []
        if not choices:
            raise self._error(500, "No choices in response")

        first = choices[0]
        usage = data.get("usage") or {}
        return ChatCompletionResult(
            model=data.get("model", ""),
            content=(first.get("message") or {}).get("content") or "",
            finish_reason=first.get("finish_reason") or "stop",
            usage=TokenUsage(
                prompt_tokens=usage.get("prompt_tokens", 0),
                completion_tokens=usage.get("completion_tokens", 0),
                total_tokens=usage.get("total_tokens", 0),
                cost=usage.get("cost"),
            ),
            provider=self.provider_name,
        )
