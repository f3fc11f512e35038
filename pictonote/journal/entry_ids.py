"""Entry id helpers.

Daily entries use ``yyyy-MM-dd``; entries saved several times a day use
``yyyy-MM-dd_HH-mm-ss-SSS``. Filenames are ``journal_<entry_id>.txt``.
"""

from __future__ import annotations

import re
from datetime import date, datetime

from pictonote.errors import ParseError

FILE_PREFIX = "journal_"
FILE_SUFFIX = ".txt"

_DAILY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIMESTAMP_RE = re.compile(r"^\d{4}-\d{2}-\d{2}_\d{2}-\d{2}-\d{2}-\d{3}$")


def daily_entry_id(day: date) -> str:
    return day.strftime("%Y-%m-%d")


def timestamped_entry_id(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%d_%H-%M-%S-") + f"{moment.microsecond // 1000:03d}"


def validate_entry_id(entry_id: str) -> str:
    """Return ``entry_id`` unchanged, or raise ParseError if it is malformed."""
    if not (_DAILY_RE.match(entry_id) or _TIMESTAMP_RE.match(entry_id)):
        raise ParseError(f"Malformed entry id: {entry_id!r}")
    return entry_id


def parse_entry_id(entry_id: str) -> datetime:
    """Recover the date/time an entry id encodes."""
    validate_entry_id(entry_id)
    try:
        if "_" in entry_id:
            day_part, time_part = entry_id.split("_")
            hh, mm, ss, ms = (int(p) for p in time_part.split("-"))
            day = datetime.strptime(day_part, "%Y-%m-%d")
            return day.replace(hour=hh, minute=mm, second=ss, microsecond=ms * 1000)
        return datetime.strptime(entry_id, "%Y-%m-%d")
    except ValueError as e:
        raise ParseError(f"Malformed entry id: {entry_id!r}: {e}") from e


def entry_filename(entry_id: str) -> str:
    return f"{FILE_PREFIX}{validate_entry_id(entry_id)}{FILE_SUFFIX}"


def entry_id_from_filename(filename: str) -> str:
    """``journal_2025-06-01.txt`` -> ``2025-06-01``."""
    if not (filename.startswith(FILE_PREFIX) and filename.endswith(FILE_SUFFIX)):
        raise ParseError(f"Not a journal entry file: {filename!r}")
    return validate_entry_id(filename[len(FILE_PREFIX):-len(FILE_SUFFIX)])


def date_prefix(year: int | None = None, month: int | None = None, day: int | None = None) -> str:
    """Build the id prefix for a calendar filter. Filters must be given outer to inner."""
    if year is None:
        if month is not None or day is not None:
            raise ValueError("month/day filters need a year")
        return ""
    if month is None:
        if day is not None:
            raise ValueError("day filter needs a month")
        return f"{year:04d}-"
    if day is None:
        return f"{year:04d}-{month:02d}-"
    return f"{year:04d}-{month:02d}-{day:02d}"
