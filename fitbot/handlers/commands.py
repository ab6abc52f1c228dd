"""Chat command dispatch: ``!calories``, ``!science``, ``!ask`` and media captions."""
from __future__ import annotations

import logging
import time

from fitbot.models import ImageSource, InboundMessage, MealLogEntry
from fitbot.services.llm import LLMNotConfiguredError, LLMProvider
from fitbot.services.science_brief import generate_science_brief
from fitbot.services.storage import MealLog, MediaStore
from fitbot.services.whatsapp import ChatTransport
from fitbot.utils.calorie_estimator import estimate_plate_calories, render_calorie_estimate

logger = logging.getLogger(__name__)

CALORIES = "!calories"
SCIENCE = "!science"
ASK = "!ask"

CALORIES_DISABLED = "AI provider API key missing. Configure it to enable calorie estimation."
SCIENCE_DISABLED = "AI provider API key missing. Configure it to enable science briefs."
ASK_DISABLED = "AI provider API key missing. Configure it to enable AI responses."


class CommandRunner:
    """Handles one inbound message end to end.

    Every failure is caught here, logged, and turned into a reaction plus a
    short reply; provider error text never reaches the chat.
    """

    def __init__(
        self,
        transport: ChatTransport,
        provider: LLMProvider,
        media_store: MediaStore,
        meal_log: MealLog,
    ) -> None:
        self.transport = transport
        self.provider = provider
        self.media_store = media_store
        self.meal_log = meal_log

    async def handle(self, message: InboundMessage) -> None:
        incoming = message.body.strip()
        normalized = incoming.lower()

        if normalized.startswith(CALORIES):
            await self.handle_calories(message, incoming[len(CALORIES):].strip())
        elif normalized.startswith(SCIENCE):
            await self.handle_science(message, incoming[len(SCIENCE):].strip())
        elif normalized.startswith(ASK):
            await self.handle_ask(message, incoming[len(ASK):].strip())
        elif message.has_media:
            await self.handle_media(message)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def handle_calories(self, message: InboundMessage, caption: str) -> None:
        if not message.has_media:
            await self._reply(message, 'Attach a plate photo with the caption "!calories <items>".')
            return

        if not self.provider.is_enabled():
            await self._reply(message, CALORIES_DISABLED)
            return

        try:
            await self._react(message, "🍽️")
            data, mime_type = await self.transport.download_media(message.media_id)
            if not mime_type.startswith("image/"):
                await self._reply(message, 'Attach a plate photo with the caption "!calories <items>".')
                return

            saved_path = self.media_store.save(
                data,
                mime_type,
                message_id=message.id,
                filename=message.filename,
                timestamp=message.timestamp,
            )
            estimate = await estimate_plate_calories(
                ImageSource(image_path=saved_path, mime_type=mime_type),
                caption,
                self.provider,
            )

            if estimate is None:
                await self._react(message, "⚠️")
                await self._reply(
                    message, "Could not estimate calories reliably from this photo. Try a clearer image and caption."
                )
                return

            await self.meal_log.append(
                message.chat_id,
                MealLogEntry(
                    ts=int(time.time() * 1000),
                    caption=caption,
                    estimate=estimate,
                    image_path=str(saved_path),
                ),
            )
            await self.transport.send_text(message.chat_id, render_calorie_estimate(estimate))
            await self._react(message, "✅")
        except LLMNotConfiguredError as exc:
            logger.warning("Calorie estimation unavailable for message %s: %s", message.id, exc)
            await self._fail(message, CALORIES_DISABLED)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Failed to estimate calories for message %s", message.id)
            await self._fail(message, "I could not estimate calories right now. Please try again soon.")

    async def handle_science(self, message: InboundMessage, topic: str) -> None:
        if not topic:
            await self._reply(message, "Usage: !science <topic>")
            return

        if not self.provider.is_enabled():
            await self._reply(message, SCIENCE_DISABLED)
            return

        try:
            await self._react(message, "🧪")
            brief = await generate_science_brief(topic, self.provider)
            await self.transport.send_text(message.chat_id, brief)
            await self._react(message, "✅")
        except LLMNotConfiguredError as exc:
            logger.warning("Science brief unavailable for message %s: %s", message.id, exc)
            await self._fail(message, SCIENCE_DISABLED)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Failed to generate science brief for message %s", message.id)
            await self._fail(message, "I could not generate a science brief right now. Please try again soon.")

    async def handle_ask(self, message: InboundMessage, prompt: str) -> None:
        if not prompt:
            await self._reply(message, "Usage: !ask <your prompt>")
            return

        if not self.provider.is_enabled():
            await self._reply(message, ASK_DISABLED)
            return

        try:
            await self._react(message, "⏳")
            response = await self.provider.generate_text(prompt)
            await self.transport.send_text(message.chat_id, response)
            await self._react(message, "✅")
        except LLMNotConfiguredError as exc:
            logger.warning("AI response unavailable for message %s: %s", message.id, exc)
            await self._fail(message, ASK_DISABLED)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Failed to generate a response for message %s", message.id)
            await self._fail(message, "I could not reach the AI provider right now. Please try again soon.")

    async def handle_media(self, message: InboundMessage) -> None:
        try:
            data, mime_type = await self.transport.download_media(message.media_id)
            saved_path = self.media_store.save(
                data,
                mime_type,
                message_id=message.id,
                filename=message.filename,
                timestamp=message.timestamp,
            )
            logger.info("Saved media from message %s to %s", message.id, saved_path)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Error handling media message %s", message.id)
            return

        if not mime_type.startswith("image/") or not self.provider.is_enabled():
            return

        try:
            caption = await self.provider.describe_image(ImageSource(image_path=saved_path, mime_type=mime_type))
            await self.transport.send_text(message.chat_id, f"🖼️ Caption: {caption}")
        except Exception:  # pylint: disable=broad-except
            logger.exception("Failed to caption image from message %s", message.id)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _reply(self, message: InboundMessage, body: str) -> None:
        await self.transport.send_text(message.chat_id, body, reply_to=message.id)

    async def _react(self, message: InboundMessage, emoji: str) -> None:
        await self.transport.send_reaction(message.chat_id, message.id, emoji)

    async def _fail(self, message: InboundMessage, body: str) -> None:
        try:
            await self._react(message, "⚠️")
            await self._reply(message, body)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Failed to report error back to chat %s", message.chat_id)
