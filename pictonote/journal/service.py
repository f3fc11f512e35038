"""JournalService: the save/load flow behind the journal screen."""

from __future__ import annotations

import asyncio
import logging
import shutil
from collections.abc import Callable
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel

from pictonote.errors import NotFound, SyncInProgressError
from pictonote.journal.codec import decode, encode
from pictonote.journal.entry_ids import (
    daily_entry_id,
    timestamped_entry_id,
    validate_entry_id,
)
from pictonote.journal.local_store import LocalEntryStore
from pictonote.journal.models import JournalEntry

if TYPE_CHECKING:
    from pictonote.sync.engine import SyncEngine

logger = logging.getLogger(__name__)


class SaveResult(BaseModel):
    entry_id: str
    path: str
    was_editing: bool
    image_path: str | None = None
    # None when auto-sync is off or no user is signed in
    synced: bool | None = None


class JournalService:
    """Creates, edits and reads journal entries, with optional auto-sync.

    New entries get a timestamped id so several entries can be saved on one
    day. Picked images are copied under the images directory and referenced
    from the entry blob by their path relative to the data root.
    """

    def __init__(
        self,
        store: LocalEntryStore,
        sync_engine: SyncEngine | None = None,
        user_id: str | None = None,
        auto_sync: bool = False,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.store = store
        self.sync_engine = sync_engine
        self.user_id = user_id
        self.auto_sync = auto_sync
        self._clock = clock

    async def save(
        self,
        text: str,
        image_source: str | Path | None = None,
        entry_id: str | None = None,
        keep_image: bool = True,
    ) -> SaveResult:
        """Save a new entry, or overwrite ``entry_id`` when editing.

        Raises ValueError for a new entry with neither text nor image.
        Editing may blank an entry out. When editing without a new image the
        entry keeps its current image unless ``keep_image`` is False.
        """
        was_editing = entry_id is not None
        if was_editing:
            entry_id = validate_entry_id(entry_id)
        elif image_source is None and not text.strip():
            raise ValueError("Nothing to save")

        now = self._clock()
        image_path: str | None = None
        if image_source is not None:
            image_path = await asyncio.to_thread(self._copy_image, Path(image_source), now)
        elif was_editing and keep_image:
            image_path = await asyncio.to_thread(self._current_image, entry_id)

        if not was_editing:
            entry_id = timestamped_entry_id(now)

        blob = encode(text, image_path)
        path = await asyncio.to_thread(
            self.store.write, entry_id, blob, int(now.timestamp() * 1000)
        )
        logger.info("Entry %s %s locally", entry_id, "updated" if was_editing else "saved")

        result = SaveResult(
            entry_id=entry_id,
            path=str(path),
            was_editing=was_editing,
            image_path=image_path,
        )
        if self.auto_sync and self.sync_engine is not None and self.user_id:
            result.synced = await self._push(entry_id)
        return result

    def load(self, entry_id: str) -> JournalEntry:
        blob = self.store.read(entry_id)
        text, image_path = decode(blob)
        return JournalEntry(
            entry_id=entry_id,
            text=text,
            image_path=image_path,
            last_modified=self.store.mtime(entry_id) or 0,
        )

    def text_for_range(self, start: date, end: date) -> str:
        """Concatenate entry bodies dated ``start``..``end`` inclusive, oldest first."""
        chunks: list[str] = []
        day = start
        while day <= end:
            for entry_id in self.store.list(day.year, day.month, day.day):
                text = decode(self.store.read(entry_id))[0].strip()
                if text:
                    chunks.append(f"--- Entry from {entry_id} ---\n{text}")
            day += timedelta(days=1)
        return "\n\n".join(chunks)

    def entries_since(self, days: int = 7) -> str:
        """Text of the last ``days`` days (today included) for the weekly summary."""
        today = self._clock().date()
        return self.text_for_range(today - timedelta(days=days - 1), today)

    def current_streak(self) -> int:
        """Consecutive days with at least one entry, ending today or yesterday."""
        today = self._clock().date()
        ids = self.store.list()
        days_with_entries = {entry_id[:10] for entry_id in ids}

        anchor = None
        for candidate in (today, today - timedelta(days=1)):
            if daily_entry_id(candidate) in days_with_entries:
                anchor = candidate
                break
        if anchor is None:
            return 0

        streak = 1
        day = anchor - timedelta(days=1)
        while daily_entry_id(day) in days_with_entries:
            streak += 1
            day -= timedelta(days=1)
        return streak

    # -- Internals -----------------------------------------------------------

    def _copy_image(self, source: Path, now: datetime) -> str | None:
        """Copy a picked image under the images dir; returns its blob path or None."""
        name = f"IMG_{timestamped_entry_id(now)}_{source.stem or 'image'}.jpg"
        relative = f"{self.store.config.images_dir}/{name}"
        dest = self.store.image_file(relative)
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, dest)
        except OSError as e:
            logger.error("Failed to copy image %s, saving text only: %s", source, e)
            dest.unlink(missing_ok=True)
            return None
        logger.debug("Image copied to %s", relative)
        return relative

    def _current_image(self, entry_id: str) -> str | None:
        try:
            return decode(self.store.read(entry_id))[1]
        except NotFound:
            return None

    async def _push(self, entry_id: str) -> bool:
        try:
            report = await self.sync_engine.push_entry(self.user_id, entry_id)
        except SyncInProgressError:
            logger.info("Sync running; %s will go out with it or the next one", entry_id)
            return False
        if report.succeeded:
            logger.info("Auto-sync: %s saved to remote", entry_id)
            return True
        logger.warning("Auto-sync: %s failed to reach remote; it remains saved locally", entry_id)
        return False
