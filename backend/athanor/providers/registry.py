"""Completion providers available for weaving, keyed by provider name.

main.py registers OpenRouter at startup when an API key is configured;
tests register fakes and clear them afterwards.
"""

from athanor.providers.base import CompletionProvider

_providers: dict[str, CompletionProvider] = {}


def register_provider(provider: CompletionProvider) -> None:
    """Add ``provider``; an existing provider with the same name is replaced."""
    _providers[provider.name] = provider


def get_provider(name: str) -> CompletionProvider:
    provider = _providers.get(name)
    if provider is None:
        raise ProviderNotFoundError(name, sorted(_providers))
    return provider


def get_all_providers() -> list[CompletionProvider]:
    """Providers in registration order."""
    return list(_providers.values())


def clear_providers() -> None:
    _providers.clear()


class ProviderNotFoundError(Exception):
    def __init__(self, name: str, available: list[str]) -> None:
        self.name = name
        self.available = available
        listed = ", ".join(available) or "(none)"
        super().__init__(f"Unknown provider '{name}'. Available: {listed}")
