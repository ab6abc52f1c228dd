from __future__ import annotations

from functools import lru_cache
from typing import Callable

from fitbot.config import Settings, get_settings

from .base import LLMProvider
from .openai_provider import OpenAIProvider
from .openrouter_provider import OpenRouterProvider

_PROVIDERS: dict[str, Callable[[Settings], LLMProvider]] = {
    "openrouter": OpenRouterProvider.from_settings,
    "openai": OpenAIProvider.from_settings,
}


def build_provider(settings: Settings) -> LLMProvider:
    provider_key = settings.llm_provider.lower()
    if provider_key not in _PROVIDERS:
        raise ValueError(f"Unsupported LLM provider: {provider_key}")
    return _PROVIDERS[provider_key](settings)


@lru_cache()
def get_provider() -> LLMProvider:
    return build_provider(get_settings())
