"""OpenRouter chat-completions client.

One POST per call to the OpenAI-compatible endpoint; no caching and no
retries.  Non-2xx answers raise ``CompletionRequestError`` carrying the
status and raw body.
"""
from __future__ import annotations

import logging
from typing import Any, Dict

import httpx

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

OPENROUTER_API_URL = "https://openrouter.ai/api/v1/chat/completions"


class OpenRouterProvider(LLMProvider):
    name = "openrouter"

    def __init__(
        self,
        *,
        api_key: str | None = None,
        text_model: str | None = None,
        vision_model: str | None = None,
        referer: str | None = None,
        app_title: str | None = None,
        timeout: float = 60.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self.text_model = text_model or ""
        self.vision_model = vision_model or self.text_model
        self._referer = referer
        self._app_title = app_title
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenRouterProvider":
        return cls(
            api_key=settings.openrouter_api_key,
            text_model=settings.openrouter_text_model,
            vision_model=settings.openrouter_vision_model,
            referer=settings.openrouter_referer,
            app_title=settings.openrouter_app_title,
            timeout=settings.openrouter_timeout,
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
        model = self.vision_model if image_url else self.text_model
        if not model:
            kind = "vision" if image_url else "text"
            raise LLMNotConfiguredError(f"OpenRouter {kind} model is not configured.")

        payload: Dict[str, Any] = {
            "model": model,
            "messages": build_messages(system_prompt, instruction, image_url),
        }
        if temperature is not None:
            payload["temperature"] = temperature
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens

        return await self._request_completion(payload)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _request_completion(self, payload: dict[str, Any]) -> str:
        if not self._api_key:
            raise LLMNotConfiguredError("OpenRouter API key is missing.")

        logger.debug("POST %s model=%s", OPENROUTER_API_URL, payload["model"])
        try:
            resp = await self._client.post(OPENROUTER_API_URL, json=payload, headers=self._build_headers())
        except httpx.HTTPError as exc:
            raise CompletionRequestError(0, str(exc)) from exc

        if not resp.is_success:
            raise CompletionRequestError(resp.status_code, resp.text)

        try:
            data = resp.json()
        except ValueError as exc:
            raise EmptyCompletionError("OpenRouter returned a non-JSON response.") from exc

        choices = data.get("choices") if isinstance(data, dict) else None
        content = None
        if isinstance(choices, list) and choices and isinstance(choices[0], dict):
            message = choices[0].get("message")
            if isinstance(message, dict):
                content = message.get("content")

        normalized = normalize_content(content)
        if not normalized:
            raise EmptyCompletionError("OpenRouter returned an empty response.")
        return normalized

    def _build_headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }
        if self._referer:
            headers["HTTP-Referer"] = self._referer
        if self._app_title:
            headers["X-Title"] = self._app_title
        return headers

    async def close(self) -> None:
        await self._client.aclose()
