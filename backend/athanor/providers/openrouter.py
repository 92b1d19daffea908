"""OpenRouter completion provider: a thin subclass of OpenAICompatibleProvider.

OpenRouter is an OpenAI-compatible API that routes to hundreds of models
(Llama, Mistral, Gemini, etc.) via a single API key.
"""

from openai import AsyncOpenAI

from athanor.providers.openai_compat import OpenAICompatibleProvider

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


class OpenRouterProvider(OpenAICompatibleProvider):
    """Completion provider backed by OpenRouter's API."""

    suggested_models = [
        "meta-llama/llama-3.1-405b",
        "meta-llama/llama-3.1-70b-instruct",
        "mistralai/mixtral-8x22b",
        "deepseek/deepseek-chat",
        "qwen/qwen3-235b-a22b",
    ]

    def __init__(self, *, client: AsyncOpenAI | None = None, api_key: str | None = None) -> None:
        if client is not None:
            super().__init__(client)
        else:
            super().__init__(
                AsyncOpenAI(
                    api_key=api_key,
                    base_url=OPENROUTER_BASE_URL,
                    default_headers={
                        "HTTP-Referer": "https://github.com/athanor-loom",
                        "X-Title": "Athanor Loom",
                    },
                )
            )

    @property
    def name(self) -> str:
        return "openrouter"
