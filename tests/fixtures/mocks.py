"""
Mock services for testing chat commands and the estimator.

These mocks provide deterministic responses for testing without API calls.
"""

import asyncio
from datetime import datetime, timezone
from typing import Dict, List, Optional

from fitbot.services.llm import LLMProvider


VALID_ESTIMATE_JSON = (
    '{"kcal_low":300,"kcal_high":450,"protein_g":25,"carbs_g":40,"fat_g":12,"notes":"x"}'
)


class MockProvider(LLMProvider):
    """
    Stub completion client.

    Returns ``reply`` for every call (or ``reply_for(instruction)`` when
    set) and records each call for assertions.

    ``delay_for(instruction)`` suspends each call for that many seconds, so
    concurrent callers really interleave; ``completed`` lists instructions
    in the order their calls returned.
    """

    name = "mock"

    def __init__(self, reply: str = VALID_ESTIMATE_JSON, enabled: bool = True):
        self.reply = reply
        self.reply_for = None
        self.delay_for = None
        self.enabled = enabled
        self.calls: List[Dict] = []
        self.completed: List[str] = []
        self.closed = False
        self._raise_error: Optional[Exception] = None

    def set_error(self, error: Exception):
        """Set an error to raise on next call."""
        self._raise_error = error

    def is_enabled(self) -> bool:
        return self.enabled

    async def complete(
        self,
        system_prompt,
        instruction,
        *,
        image_url=None,
        temperature=None,
        max_tokens=None,
    ) -> str:
        self.calls.append(
            {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "system_prompt": system_prompt,
                "instruction": instruction,
                "image_url": image_url,
                "temperature": temperature,
                "max_tokens": max_tokens,
            }
        )

        if self._raise_error:
            error = self._raise_error
            self._raise_error = None
            raise error

        await asyncio.sleep(self.delay_for(instruction) if self.delay_for is not None else 0)
        self.completed.append(instruction)

        if self.reply_for is not None:
            return self.reply_for(instruction)
        return self.reply

    async def close(self):
        self.closed = True


class FakeTransport:
    """In-memory stand-in for the WhatsApp client."""

    def __init__(self, media: bytes = b"\xff\xd8\xff fake jpeg", mime_type: str = "image/jpeg"):
        self.media = media
        self.mime_type = mime_type
        self.sent: List[Dict] = []
        self.reactions: List[Dict] = []
        self.downloads: List[str] = []
        self.download_error: Optional[Exception] = None
        self.closed = False

    async def send_text(self, to: str, body: str, *, reply_to: Optional[str] = None) -> str:
        self.sent.append({"to": to, "body": body, "reply_to": reply_to})
        return f"wamid.out.{len(self.sent)}"

    async def send_reaction(self, to: str, message_id: str, emoji: str) -> str:
        self.reactions.append({"to": to, "message_id": message_id, "emoji": emoji})
        return f"wamid.react.{len(self.reactions)}"

    async def download_media(self, media_id: str):
        self.downloads.append(media_id)
        if self.download_error:
            raise self.download_error
        return self.media, self.mime_type

    async def close(self):
        self.closed = True

    @property
    def emojis(self) -> List[str]:
        return [r["emoji"] for r in self.reactions]

    @property
    def bodies(self) -> List[str]:
        return [m["body"] for m in self.sent]
