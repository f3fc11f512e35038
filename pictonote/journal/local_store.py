"""LocalEntryStore: journal entry files and images on local disk."""

from __future__ import annotations

import logging
import os
import tempfile
import time
from collections.abc import Callable
from pathlib import Path

from PIL import Image

from pictonote.config.models import StorageConfig
from pictonote.errors import CorruptLocalImage, NotFound, ParseError
from pictonote.journal.entry_ids import (
    FILE_PREFIX,
    FILE_SUFFIX,
    date_prefix,
    entry_filename,
    entry_id_from_filename,
)

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _atomic_write(dest: Path, data: bytes) -> None:
    """Write to a temp sibling and rename over ``dest``."""
    dest.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=dest.parent, prefix=f".{dest.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, dest)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class LocalEntryStore:
    """Reads and writes ``journal_<entry_id>.txt`` files and their images.

    Layout under ``data_root``::

        journal_entries/journal_2025-06-01.txt
        journal_images/IMG_2025-06-01_09-15-00-000_photo.jpg

    Image paths stored in entry blobs are relative to ``data_root``
    (``journal_images/...``) and must resolve inside it.

    Modification times are the logical save time of an entry, in epoch
    millis. ``write`` sets them explicitly so conflict comparison never sees
    the filesystem's own write time.
    """

    def __init__(self, config: StorageConfig) -> None:
        self.config = config
        self.data_root = Path(config.data_root).expanduser()
        self.entries_dir = self.data_root / config.entries_dir
        self.images_dir = self.data_root / config.images_dir

    # -- entries ---------------------------------------------------------------

    def entry_path(self, entry_id: str) -> Path:
        return self.entries_dir / entry_filename(entry_id)

    def list(
        self,
        year: int | None = None,
        month: int | None = None,
        day: int | None = None,
        on_reject: Callable[[str, ParseError], None] | None = None,
    ) -> list[str]:
        """Entry ids matching an optional calendar filter, sorted.

        ``journal_*.txt`` files whose name is not a valid entry id are left
        out. ``on_reject`` is called with the filename and the error for each.
        """
        prefix = FILE_PREFIX + date_prefix(year, month, day)
        if not self.entries_dir.is_dir():
            return []
        ids: list[str] = []
        for path in self.entries_dir.iterdir():
            name = path.name
            if not (path.is_file() and name.startswith(prefix) and name.endswith(FILE_SUFFIX)):
                continue
            try:
                ids.append(entry_id_from_filename(name))
            except ParseError as e:
                logger.warning("Skipping malformed entry file: %s", name)
                if on_reject is not None:
                    on_reject(name, e)
        return sorted(ids)

    def exists(self, entry_id: str) -> bool:
        return self.entry_path(entry_id).is_file()

    def read(self, entry_id: str) -> str:
        path = self.entry_path(entry_id)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise NotFound("local entry", entry_id) from None

    def write(self, entry_id: str, blob: str, timestamp: int | None = None) -> Path:
        """Overwrite an entry file and stamp its mtime (epoch millis)."""
        path = self.entry_path(entry_id)
        _atomic_write(path, blob.encode("utf-8"))
        self.set_mtime(entry_id, _now_ms() if timestamp is None else timestamp)
        logger.debug("wrote %s (%d chars)", path, len(blob))
        return path

    def mtime(self, entry_id: str) -> int | None:
        """Last-modified time in epoch millis, or None if the entry is absent."""
        try:
            return self.entry_path(entry_id).stat().st_mtime_ns // 1_000_000
        except FileNotFoundError:
            return None

    def set_mtime(self, entry_id: str, timestamp: int) -> None:
        path = self.entry_path(entry_id)
        ns = timestamp * 1_000_000
        os.utime(path, ns=(ns, ns))

    # -- images ----------------------------------------------------------------

    def image_file(self, relative_path: str) -> Path:
        """Resolve an image path from a blob, refusing anything outside data_root."""
        if not relative_path or Path(relative_path).is_absolute():
            raise ParseError(f"Invalid image path: {relative_path!r}")
        candidate = self.data_root / relative_path
        if not candidate.resolve().is_relative_to(self.data_root.resolve()):
            raise ParseError(f"Image path escapes data root: {relative_path!r}")
        return candidate

    def image_exists(self, relative_path: str) -> bool:
        return self.image_file(relative_path).is_file()

    def read_image(self, relative_path: str) -> bytes:
        try:
            return self.image_file(relative_path).read_bytes()
        except FileNotFoundError:
            raise NotFound("local image", relative_path) from None

    def write_image(self, relative_path: str, data: bytes) -> Path:
        path = self.image_file(relative_path)
        _atomic_write(path, data)
        logger.debug("wrote image %s (%d bytes)", path, len(data))
        return path

    def delete_image(self, relative_path: str) -> None:
        self.image_file(relative_path).unlink(missing_ok=True)

    def check_image(self, relative_path: str) -> None:
        """Raise NotFound if the image is missing, CorruptLocalImage if it won't decode."""
        path = self.image_file(relative_path)
        if not path.is_file() or path.stat().st_size == 0:
            raise NotFound("local image", relative_path)
        try:
            with Image.open(path) as img:
                img.verify()
        except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
            raise CorruptLocalImage(f"{relative_path}: {e}") from e

    def is_valid_image(self, relative_path: str) -> bool:
        try:
            self.check_image(relative_path)
        except (NotFound, CorruptLocalImage):
            return False
        return True
