"""Image references accepted by the completion client.

A caller may hand over a file on disk, an inline base64 payload (optionally
already a ``data:`` URL) or a remote URL.  ``resolve_image_url`` turns the
first available source into the single string sent to the provider.
"""
from __future__ import annotations

import base64
import mimetypes
from pathlib import Path

from pydantic import BaseModel

DEFAULT_IMAGE_MIME = "image/jpeg"


class ImageSource(BaseModel):
    image_path: Path | None = None
    base64_data: str | None = None
    mime_type: str | None = None
    image_url: str | None = None


def build_data_url(base64_data: str, mime_type: str) -> str:
    if base64_data.startswith("data:"):
        return base64_data
    return f"data:{mime_type};base64,{base64_data}"


def guess_image_mime(path: Path | str, fallback: str | None = None) -> str:
    guessed, _ = mimetypes.guess_type(str(path))
    return guessed or fallback or DEFAULT_IMAGE_MIME


def resolve_image_url(source: ImageSource | None) -> str | None:
    """Return a ``data:`` URL or remote URL for *source*, or None when empty.

    Priority is inline base64, then remote URL, then file path.  Reading the
    file raises ``OSError`` if the path is unreadable.
    """

    if source is None:
        return None

    if source.base64_data:
        return build_data_url(source.base64_data, source.mime_type or DEFAULT_IMAGE_MIME)

    if source.image_url:
        return source.image_url

    if source.image_path:
        raw = Path(source.image_path).read_bytes()
        encoded = base64.b64encode(raw).decode("ascii")
        return build_data_url(encoded, guess_image_mime(source.image_path, source.mime_type))

    return None
