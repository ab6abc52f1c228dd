from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .calorie_estimate import CalorieEstimate


class InboundMessage(BaseModel):
    """Represents a single chat message received from WhatsApp."""

    id: str
    chat_id: str
    timestamp: datetime | None = None
    body: str = ""  # text body, or the caption of a media message
    media_id: str | None = None
    mime_type: str | None = None
    filename: str | None = None

    @property
    def has_media(self) -> bool:
        return bool(self.media_id)


class MealLogEntry(BaseModel):
    """One logged meal, stored as ``{ts, caption, estimate, imagePath}``."""

    model_config = ConfigDict(populate_by_name=True)

    ts: int = Field(..., description="Epoch milliseconds")
    caption: str
    estimate: CalorieEstimate
    image_path: str = Field(..., alias="imagePath")

