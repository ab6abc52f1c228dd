from __future__ import annotations

from .base import (
    CompletionRequestError,
    EmptyCompletionError,
    LLMError,
    LLMNotConfiguredError,
    LLMProvider,
    normalize_content,
)
from .registry import build_provider, get_provider

__all__ = [
    "CompletionRequestError",
    "EmptyCompletionError",
    "LLMError",
    "LLMNotConfiguredError",
    "LLMProvider",
    "build_provider",
    "get_provider",
    "normalize_content",
]
