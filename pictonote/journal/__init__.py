"""Journal entries on local disk: blob codec, entry ids, store and save flow."""

from .codec import IMAGE_URI_MARKER, decode, encode, extract_image_path
from .entry_ids import daily_entry_id, parse_entry_id, timestamped_entry_id, validate_entry_id
from .local_store import LocalEntryStore
from .models import JournalEntry
from .service import JournalService, SaveResult

__all__ = [
    "IMAGE_URI_MARKER",
    "JournalEntry",
    "JournalService",
    "LocalEntryStore",
    "SaveResult",
    "daily_entry_id",
    "decode",
    "encode",
    "extract_image_path",
    "parse_entry_id",
    "timestamped_entry_id",
    "validate_entry_id",
]
