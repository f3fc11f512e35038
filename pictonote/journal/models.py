"""Pydantic models for journal entries."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class JournalEntry(BaseModel):
    """One journal record as the local store sees it."""

    model_config = ConfigDict(frozen=True)

    entry_id: str
    text: str = ""
    image_path: str | None = None
    last_modified: int = 0
