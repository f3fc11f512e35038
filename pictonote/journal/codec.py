"""Flat-text blob format shared by local entry files and remote documents.

A blob is the entry body, optionally preceded by one marker line naming the
entry's image::

    IMAGE_URI::journal_images/IMG_2025-06-02.jpg
    Beach day

The marker is not escaped. A body whose first line happens to start with
``IMAGE_URI::`` is read back as an image reference; existing data on devices
depends on this exact layout, so it is kept as is.
"""

from __future__ import annotations

IMAGE_URI_MARKER = "IMAGE_URI::"


def encode(text: str, image_path: str | None = None) -> str:
    """Build a blob from body text and an optional image path."""
    if image_path:
        return f"{IMAGE_URI_MARKER}{image_path}\n{text}"
    return text


def decode(blob: str) -> tuple[str, str | None]:
    """Split a blob into ``(text, image_path)``."""
    if not blob.startswith(IMAGE_URI_MARKER):
        return blob, None
    first, _, rest = blob.partition("\n")
    image_path = first[len(IMAGE_URI_MARKER):].rstrip()
    return rest, image_path or None


def extract_image_path(blob: str) -> str | None:
    return decode(blob)[1]
