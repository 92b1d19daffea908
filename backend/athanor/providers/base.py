"""Abstract completion provider interface and shared data types."""

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field

from athanor.models import GenerationParams


class CompletionRequest(BaseModel):
    """Everything a provider needs to continue a passage."""

    model: str
    prompt: str
    params: GenerationParams = Field(default_factory=GenerationParams)


class CompletionResult(BaseModel):
    """Full response from a provider after generation completes."""

    text: str
    model: str
    finish_reason: str | None = None
    usage: dict[str, int] | None = None
    latency_ms: int | None = None


class CompletionProvider(ABC):
    """Supplies continuation text for a prompt built from a node's full path."""

    suggested_models: list[str] = []

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier (e.g., 'openrouter')."""
        ...

    @abstractmethod
    async def complete(self, request: CompletionRequest) -> CompletionResult:
        """Send a non-streaming completion request. Returns the full result."""
        ...


class ProviderError(Exception):
    """A provider call failed; the message is safe to show to a user."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)
