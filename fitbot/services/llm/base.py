from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from fitbot.models import ImageSource, resolve_image_url

DEFAULT_SYSTEM_PROMPT = "You are a helpful WhatsApp assistant."
DEFAULT_IMAGE_INSTRUCTION = "Describe the contents of this WhatsApp image in one or two concise sentences."


class LLMError(Exception):
    """Base class for completion failures."""


class LLMNotConfiguredError(LLMError):
    """Raised when the API key or a model id is missing."""


class CompletionRequestError(LLMError):
    """Raised when the provider answers with a non-2xx status or cannot be reached."""

    def __init__(self, status: int, body: str):
        super().__init__(f"Completion request failed ({status}): {body}")
        self.status = status
        self.body = body


class EmptyCompletionError(LLMError):
    """Raised when the provider returned no usable text."""


def normalize_content(content: Any) -> str:
    """Flatten a message ``content`` (string, list of parts or part) to text."""

    if not content:
        return ""

    if isinstance(content, str):
        return content.strip()

    if isinstance(content, list):
        chunks = []
        for chunk in content:
            if isinstance(chunk, str):
                chunks.append(chunk)
            elif isinstance(chunk, dict) and isinstance(chunk.get("text"), str):
                chunks.append(chunk["text"])
        return "\n".join(c for c in chunks if c).strip()

    if isinstance(content, dict) and isinstance(content.get("text"), str):
        return content["text"].strip()

    return ""


def build_messages(system_prompt: str | None, instruction: str, image_url: str | None) -> list[dict[str, Any]]:
    messages: list[dict[str, Any]] = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    if image_url:
        messages.append(
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": instruction},
                    {"type": "image_url", "image_url": {"url": image_url}},
                ],
            }
        )
    else:
        messages.append({"role": "user", "content": instruction})
    return messages


class LLMProvider(ABC):
    """Abstract interface for a language-model provider."""

    name: str = "abstract"

    @abstractmethod
    def is_enabled(self) -> bool:
        """Whether credentials for this provider are configured."""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str | None,
        instruction: str,
        *,
        image_url: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """Run one chat completion and return its text.

        With *image_url* the user turn is multimodal and the vision model is
        used; without it the request silently degrades to text only.
        """

    async def generate_text(self, prompt: str, system_prompt: str = DEFAULT_SYSTEM_PROMPT) -> str:
        return await self.complete(system_prompt, prompt, temperature=0.7)

    async def describe_image(
        self,
        image: ImageSource,
        instruction: str | None = None,
        system: str | None = None,
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        image_url = resolve_image_url(image)
        if not image_url:
            raise ValueError("Image data is required to describe an image.")

        return await self.complete(
            system,
            instruction or DEFAULT_IMAGE_INSTRUCTION,
            image_url=image_url,
            temperature=0.2 if temperature is None else temperature,
            max_tokens=300 if max_tokens is None else max_tokens,
        )

    async def close(self) -> None:
        """Release any network client held by the provider."""
