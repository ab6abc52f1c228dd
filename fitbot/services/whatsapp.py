"""WhatsApp Business Cloud API wrapper.

Provides async helper methods for replying, reacting and downloading media.
Anything that can do these three things can stand in for the client as a
``ChatTransport`` (the command handlers only depend on the protocol).
"""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Dict, Optional, Protocol

import httpx

from fitbot.config import get_settings

logger = logging.getLogger(__name__)


class ChatTransport(Protocol):
    async def send_text(self, to: str, body: str, *, reply_to: str | None = None) -> str: ...

    async def send_reaction(self, to: str, message_id: str, emoji: str) -> str: ...

    async def download_media(self, media_id: str) -> tuple[bytes, str]: ...


class WhatsAppAPIError(Exception):
    """Raised when the WhatsApp Cloud API returns an error status."""

    def __init__(self, status: int, message: str, response_json: Optional[dict[str, Any]] = None):
        super().__init__(f"WhatsApp API error {status}: {message}")
        self.status = status
        self.response_json = response_json or {}


class WhatsAppClient:
    """Minimal async client for Meta WhatsApp Business Cloud API."""

    _BASE_GRAPH_URL = "https://graph.facebook.com"

    def __init__(
        self,
        *,
        token: str,
        phone_id: str,
        version: str = "v19.0",
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._token = token
        self._phone_id = phone_id
        self._version = version
        self._base_url = f"{self._BASE_GRAPH_URL}/{self._version}"
        self._headers = {"Authorization": f"Bearer {self._token}"}
        self._client = http_client or httpx.AsyncClient(timeout=10.0)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def send_text(
        self,
        to: str,
        body: str,
        *,
        reply_to: str | None = None,
        preview_url: bool = False,
    ) -> str:
        payload: Dict[str, Any] = {
            "messaging_product": "whatsapp",
            "to": to,
            "type": "text",
            "text": {"body": body, "preview_url": preview_url},
        }
        if reply_to:
            payload["context"] = {"message_id": reply_to}
        return await self._post_message(payload)

    async def send_reaction(self, to: str, message_id: str, emoji: str) -> str:
        payload = {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": to,
            "type": "reaction",
            "reaction": {"message_id": message_id, "emoji": emoji},
        }
        return await self._post_message(payload)

    async def download_media(self, media_id: str) -> tuple[bytes, str]:
        """Download media bytes and return (bytes, content_type)."""

        # Step 1: fetch media metadata to obtain the URL
        meta_url = f"{self._base_url}/{media_id}"
        logger.debug("GET %s", meta_url)
        meta_resp = await self._client.get(meta_url, headers=self._headers)
        if meta_resp.status_code >= 400:
            raise WhatsAppAPIError(meta_resp.status_code, meta_resp.text)
        meta_json = meta_resp.json()
        download_url = meta_json.get("url")
        if not download_url:
            raise WhatsAppAPIError(meta_resp.status_code, "Missing download URL in metadata")

        # Step 2: download the binary
        logger.debug("GET media %s", download_url)
        bin_resp = await self._client.get(download_url, headers=self._headers)
        if bin_resp.status_code >= 400:
            raise WhatsAppAPIError(bin_resp.status_code, "Failed to download media")
        content_type = bin_resp.headers.get("Content-Type") or meta_json.get("mime_type") or "application/octet-stream"
        return bin_resp.content, content_type

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _post_message(self, payload: dict[str, Any]) -> str:
        url = f"{self._base_url}/{self._phone_id}/messages"
        logger.debug("POST %s -> type=%s", url, payload.get("type"))
        resp = await self._client.post(url, json=payload, headers=self._headers)
        if resp.status_code >= 400:
            try:
                err_json = resp.json()
            except ValueError:
                err_json = None
            raise WhatsAppAPIError(resp.status_code, resp.text, err_json)
        data = resp.json()
        message_id = data.get("messages", [{}])[0].get("id")
        return message_id

    async def close(self) -> None:
        await self._client.aclose()


@lru_cache()
def get_whatsapp_client() -> WhatsAppClient:
    settings = get_settings()
    return WhatsAppClient(
        token=settings.whatsapp_token,
        phone_id=settings.whatsapp_phone_id,
        version=settings.whatsapp_api_version,
    )
