from typing import Protocol, runtime_checkable

from ducky.conversation.models import Message


@runtime_checkable
class CompletionService(Protocol):
    async def complete(self, model: str, messages: list[Message]) -> Message:
        """Return the assistant reply to ``messages`` (oldest first).

        Raises ServiceError on any transport or service failure.
        """
        ...


def create_provider(provider_name: str, api_key: str, *, show_spinner: bool = True) -> CompletionService:
    """Factory: create a CompletionService by provider name."""
    name = provider_name.strip().lower()
    if name == "openai":
        from ducky.providers.openai_provider import OpenAIProvider
        return OpenAIProvider(api_key, show_spinner=show_spinner)
    if name == "anthropic":
        from ducky.providers.anthropic_provider import AnthropicProvider
        return AnthropicProvider(api_key, show_spinner=show_spinner)
    raise ValueError(f"Unknown provider: {provider_name!r}. Supported: 'openai', 'anthropic'")
