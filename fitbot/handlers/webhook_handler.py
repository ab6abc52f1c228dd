"""Webhook handler for Meta WhatsApp Cloud API."""
from __future__ import annotations

import hashlib
import hmac
import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse

from fitbot.config import Settings, get_settings
from fitbot.handlers.commands import CommandRunner
from fitbot.models import InboundMessage
from fitbot.services.llm import get_provider
from fitbot.services.storage import MealLog, MediaStore
from fitbot.services.whatsapp import get_whatsapp_client

router = APIRouter()
logger = logging.getLogger(__name__)

_MEDIA_TYPES = ("image", "document", "video", "audio", "sticker")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def verify_signature(body: bytes, signature_header: str | None, app_secret: str) -> None:
    if signature_header is None:
        raise HTTPException(status_code=403, detail="Missing signature header")
    if not app_secret:
        raise HTTPException(status_code=403, detail="Webhook secret not configured")
    expected = hmac.new(
        key=app_secret.encode(),
        msg=body,
        digestmod=hashlib.sha256,
    ).hexdigest()
    try:
        algo, received = signature_header.split("=", 1)
    except ValueError as exc:
        raise HTTPException(status_code=403, detail="Bad signature header") from exc
    if algo != "sha256" or not hmac.compare_digest(expected, received):
        raise HTTPException(status_code=403, detail="Invalid signature")


def parse_inbound_message(msg: dict[str, Any]) -> InboundMessage | None:
    """Decode one Cloud API message object, or None for unsupported types."""

    msg_type = msg.get("type")
    timestamp = None
    if msg.get("timestamp"):
        timestamp = datetime.fromtimestamp(int(msg["timestamp"]), tz=timezone.utc)

    base = {"id": msg.get("id", ""), "chat_id": msg["from"], "timestamp": timestamp}

    if msg_type == "text":
        return InboundMessage(**base, body=msg.get("text", {}).get("body", ""))
    if msg_type in _MEDIA_TYPES:
        media = msg.get(msg_type, {})
        return InboundMessage(
            **base,
            body=media.get("caption", ""),
            media_id=media.get("id"),
            mime_type=media.get("mime_type"),
            filename=media.get("filename"),
        )
    return None


@lru_cache()
def get_command_runner() -> CommandRunner:
    settings = get_settings()
    return CommandRunner(
        transport=get_whatsapp_client(),
        provider=get_provider(),
        media_store=MediaStore(settings.downloads_dir),
        meal_log=MealLog(settings.data_dir),
    )


# ---------------------------------------------------------------------------
# Verification GET
# ---------------------------------------------------------------------------


@router.get("/webhook", response_class=PlainTextResponse)
async def verify_webhook(
    mode: str = Query(..., alias="hub.mode"),
    challenge: str = Query(..., alias="hub.challenge"),
    verify_token: str = Query(..., alias="hub.verify_token"),
    settings: Settings = Depends(get_settings),
):  # noqa: D401
    """Meta webhook verification endpoint."""
    if mode == "subscribe" and settings.whatsapp_verify_token and verify_token == settings.whatsapp_verify_token:
        return challenge
    raise HTTPException(status_code=403, detail="Verification failed")


# ---------------------------------------------------------------------------
# POST webhook
# ---------------------------------------------------------------------------


@router.post("/webhook")
async def receive_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    x_hub_signature_256: str | None = Header(None, alias="X-Hub-Signature-256"),
    settings: Settings = Depends(get_settings),
    runner: CommandRunner = Depends(get_command_runner),
):
    raw_body = await request.body()
    verify_signature(raw_body, x_hub_signature_256, settings.whatsapp_app_secret)

    # Extract message info
    try:
        payload = await request.json()
        logger.debug("Webhook payload: %s", payload)
        entry = payload["entry"][0]["changes"][0]["value"]
        messages = entry.get("messages", [])
        if not messages:
            return {"status": "ignored"}
        msg = messages[0]
        from_phone = msg["from"]
        if settings.primary_user_phone and from_phone != settings.primary_user_phone:
            logger.warning("Unknown sender: %s", from_phone)
            return {"status": "ignored"}
        inbound = parse_inbound_message(msg)
    except (KeyError, IndexError, TypeError, AttributeError, ValueError) as exc:
        logger.error("Malformed webhook payload: %s", exc)
        raise HTTPException(status_code=400, detail="Bad payload") from exc

    if inbound is None:
        logger.info("Unsupported message type: %s", msg.get("type"))
        return {"status": "ignored"}

    background_tasks.add_task(run_commands, runner, inbound)
    return {"status": "received"}


async def run_commands(runner: CommandRunner, message: InboundMessage) -> None:
    try:
        await runner.handle(message)
    except Exception as exc:  # pragma: no cover
        logger.exception("Command handling failed: %s", exc)
