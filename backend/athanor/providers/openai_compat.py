"""Shared base class for OpenAI-compatible completion providers.

Handles parameter building, response parsing, and error translation.
OpenRouterProvider is a thin subclass that differs only in client
configuration.
"""

import logging
import time
from typing import Any

from openai import APIConnectionError, APIStatusError, AsyncOpenAI

from athanor.providers.base import (
    CompletionProvider,
    CompletionRequest,
    CompletionResult,
    ProviderError,
)

logger = logging.getLogger(__name__)

_STATUS_MESSAGES = {
    401: "Invalid API key",
    402: "Insufficient credits",
    429: "Rate limited. Please wait and try again.",
    500: "API error. Try again later.",
}


class OpenAICompatibleProvider(CompletionProvider):
    """Base provider for any API that speaks the OpenAI chat completions protocol."""

    def __init__(self, client: AsyncOpenAI) -> None:
        self._client = client

    async def complete(self, request: CompletionRequest) -> CompletionResult:
        params = self._build_params(request)
        start = time.monotonic()
        try:
            response = await self._client.chat.completions.create(**params)
        except APIStatusError as e:
            logger.warning("%s returned HTTP %s", self.name, e.status_code)
            raise ProviderError(_describe_status(e), status_code=e.status_code) from e
        except APIConnectionError as e:
            raise ProviderError(f"Could not reach {self.name}") from e
        latency_ms = int((time.monotonic() - start) * 1000)

        choice = response.choices[0]
        usage = None
        if response.usage is not None:
            usage = {
                "input_tokens": response.usage.prompt_tokens,
                "output_tokens": response.usage.completion_tokens,
            }

        return CompletionResult(
            text=choice.message.content or "",
            model=response.model or request.model,
            finish_reason=choice.finish_reason,
            usage=usage,
            latency_ms=latency_ms,
        )

    @staticmethod
    def _build_params(request: CompletionRequest) -> dict[str, Any]:
        """Build kwargs dict for client.chat.completions.create()."""
        p = request.params
        params: dict[str, Any] = {
            "model": request.model,
            "messages": [{"role": "user", "content": request.prompt}],
        }

        if p.max_tokens is not None:
            params["max_tokens"] = p.max_tokens
        if p.temperature is not None:
            params["temperature"] = p.temperature
        if p.top_p is not None:
            params["top_p"] = p.top_p
        if p.frequency_penalty is not None:
            params["frequency_penalty"] = p.frequency_penalty
        if p.presence_penalty is not None:
            params["presence_penalty"] = p.presence_penalty
        # top_k is not part of the OpenAI schema; routers accept it as an extra field
        if p.top_k is not None:
            params["extra_body"] = {"top_k": p.top_k}

        return params


def _describe_status(error: APIStatusError) -> str:
    if error.status_code in _STATUS_MESSAGES:
        return _STATUS_MESSAGES[error.status_code]
    body = error.body if isinstance(error.body, dict) else {}
    detail = body.get("error") if isinstance(body.get("error"), dict) else body
    return detail.get("message") or error.message or "Unknown error"
