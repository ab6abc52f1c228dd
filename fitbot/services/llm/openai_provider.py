from __future__ import annotations

import logging
from typing import Any

import openai
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from fitbot.config import Settings

from .base import (
    CompletionRequestError,
    EmptyCompletionError,
    LLMNotConfiguredError,
    LLMProvider,
    build_messages,
    normalize_content,
)

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """OpenAI-compatible provider backed by ``langchain_openai.ChatOpenAI``."""

    name = "openai"

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str = "gpt-4o",
        base_url: str | None = None,
        llm: Any | None = None,
    ) -> None:
        self._api_key = api_key
        self.model = model
        if llm is None and api_key:
            # max_retries=0: one outbound request per call
            llm = ChatOpenAI(model=model, api_key=api_key, base_url=base_url, max_retries=0)
        self._llm = llm

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenAIProvider":
        return cls(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            base_url=settings.openai_base_url,
        )

    def is_enabled(self) -> bool:
        return bool(self._api_key)

    async def complete(
        self,
        system_prompt: str | None,
        instruction: str,
        *,
        image_url: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        if self._llm is None:
            raise LLMNotConfiguredError("OpenAI API key is missing.")
        if not self.model:
            raise LLMNotConfiguredError("OpenAI model is not configured.")

        params: dict[str, Any] = {}
        if temperature is not None:
            params["temperature"] = temperature
        if max_tokens is not None:
            params["max_tokens"] = max_tokens
        chain = self._llm.bind(**params) if params else self._llm

        try:
            output = await chain.ainvoke(_to_langchain(build_messages(system_prompt, instruction, image_url)))
        except openai.APIStatusError as exc:
            raise CompletionRequestError(exc.status_code, exc.response.text) from exc
        except openai.APIConnectionError as exc:
            raise CompletionRequestError(0, str(exc)) from exc

        normalized = normalize_content(getattr(output, "content", None))
        if not normalized:
            raise EmptyCompletionError("OpenAI returned an empty response.")
        return normalized


def _to_langchain(messages: list[dict[str, Any]]) -> list[BaseMessage]:
    converted: list[BaseMessage] = []
    for m in messages:
        if m["role"] == "system":
            converted.append(SystemMessage(content=m["content"]))
        else:
            converted.append(HumanMessage(content=m["content"]))
    return converted
