"""Local disk storage for FitBot.

Two stores live here:

* ``MediaStore`` writes media downloaded from WhatsApp under
  ``settings.downloads_dir``.
* ``MealLog`` keeps one JSON file per chat under ``settings.data_dir``::

      {"meals": [{"ts": ..., "caption": ..., "estimate": {...}, "imagePath": ...}]}

The meal log is best effort: a missing or corrupt file reads as empty and
write failures are logged, never raised.  Writes for the same chat are
serialized in-process and land via an atomic replace, so a concurrent
reader never sees a half-written file.
"""
from __future__ import annotations

import asyncio
import json
import logging
import mimetypes
import os
import re
import tempfile
from collections import defaultdict
from datetime import datetime
from pathlib import Path
from typing import Any

from fitbot.models import MealLogEntry

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9\-_.]")


class MediaStore:  # pylint: disable=too-few-public-methods
    """Writes downloaded media bytes to disk."""

    def __init__(self, downloads_dir: Path | str) -> None:
        self.downloads_dir = Path(downloads_dir)

    def save(
        self,
        data: bytes,
        mime_type: str | None,
        *,
        message_id: str,
        filename: str | None = None,
        timestamp: datetime | None = None,
    ) -> Path:
        """Write *data* and return the path it was saved to.

        The name comes from *filename* when given, else from the message id
        and timestamp.  The MIME extension is appended unless already there.
        """

        self.downloads_dir.mkdir(parents=True, exist_ok=True)

        slug = _message_slug(message_id, timestamp)
        base_name = sanitize_filename(filename or slug) or slug
        ext = _content_type_to_extension(mime_type) if mime_type else None
        if ext and not base_name.lower().endswith(f".{ext.lower()}"):
            base_name = f"{base_name}.{ext}"

        path = self.downloads_dir / base_name
        path.write_bytes(data)
        logger.debug("Saved %d bytes of media to %s", len(data), path)
        return path


class MealLog:
    """Append-only per-chat meal log stored as JSON files."""

    def __init__(self, data_dir: Path | str) -> None:
        self.data_dir = Path(data_dir)
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def path_for(self, chat_id: str) -> Path:
        return self.data_dir / f"{sanitize_filename(chat_id)}.json"

    def read(self, chat_id: str) -> list[MealLogEntry]:
        entries = []
        for raw in self._load(self.path_for(chat_id))["meals"]:
            try:
                entries.append(MealLogEntry.model_validate(raw))
            except ValueError:
                logger.warning("Skipping malformed meal log entry for %s", chat_id)
        return entries

    async def append(self, chat_id: str, entry: MealLogEntry) -> None:
        async with self._locks[chat_id]:
            try:
                self.data_dir.mkdir(parents=True, exist_ok=True)
                path = self.path_for(chat_id)
                current = self._load(path)
                current["meals"].append(entry.model_dump(mode="json", by_alias=True))
                _atomic_write_json(path, current)
            except OSError as exc:
                logger.error("Failed to append meal log for %s: %s", chat_id, exc)

    @staticmethod
    def _load(path: Path) -> dict[str, list[Any]]:
        try:
            current = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {"meals": []}
        except (OSError, ValueError) as exc:
            logger.warning("Meal log %s unreadable, starting fresh: %s", path, exc)
            return {"meals": []}

        if not isinstance(current, dict) or not isinstance(current.get("meals"), list):
            return {"meals": []}
        return current


# ------------------------------------------------------------------
# Helper functions
# ------------------------------------------------------------------

def sanitize_filename(value: str) -> str:
    return _UNSAFE_FILENAME_CHARS.sub("_", value)


def _message_slug(message_id: str, timestamp: datetime | None) -> str:
    ts = timestamp or datetime.now()
    return f"{message_id or 'message'}-{ts.isoformat().replace(':', '-').replace('.', '-')}"


def _content_type_to_extension(content_type: str) -> str | None:
    mapping = {
        "image/jpeg": "jpg",
        "image/jpg": "jpg",
        "image/png": "png",
        "image/webp": "webp",
    }
    base_type = content_type.split(";", 1)[0].strip().lower()
    if base_type in mapping:
        return mapping[base_type]
    guessed = mimetypes.guess_extension(base_type)
    return guessed.lstrip(".") if guessed else None


def _atomic_write_json(path: Path, data: Any) -> None:
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2, ensure_ascii=False)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
