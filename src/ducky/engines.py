from __future__ import annotations

from dataclasses import dataclass

from ducky.errors import UnknownModelError

DEFAULT_MODEL = "gpt-3.5-turbo"
DEFAULT_ALIAS = "default"

# Display order is the order offered during interactive model selection.
_ENGINES: dict[str, str] = {
    "gpt-3.5-turbo": "openai",
    "gpt-3.5-turbo-0301": "openai",
    "gpt-4": "openai",
    "gpt-4-32k": "openai",
    "gpt-4-0314": "openai",
    "gpt-4-32k-0314": "openai",
    "gpt-4o": "openai",
    "gpt-4o-mini": "openai",
    "claude-sonnet-4-5-20250929": "anthropic",
    "claude-haiku-4-5-20251001": "anthropic",
}


@dataclass(frozen=True)
class ModelId:
    name: str
    provider: str

    def __str__(self) -> str:
        return self.name


def resolve(name: str) -> ModelId:
    provider = _ENGINES.get(name)
    if provider is None:
        raise UnknownModelError(name)
    return ModelId(name=name, provider=provider)


def supported_models() -> list[str]:
    return list(_ENGINES)
