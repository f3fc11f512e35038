"""Tests for pictonote.journal.codec and entry id helpers."""

from datetime import date, datetime

import pytest

from pictonote.errors import ParseError
from pictonote.journal.codec import IMAGE_URI_MARKER, decode, encode, extract_image_path
from pictonote.journal.entry_ids import (
    daily_entry_id,
    date_prefix,
    entry_filename,
    entry_id_from_filename,
    parse_entry_id,
    timestamped_entry_id,
    validate_entry_id,
)


# ── Blob codec ──────────────────────────────────────────────────────


class TestEncode:
    def test_text_only_is_unchanged(self):
        assert encode("Hello") == "Hello"

    def test_image_adds_marker_line(self):
        assert encode("Beach day", "journal_images/a.jpg") == (
            "IMAGE_URI::journal_images/a.jpg\nBeach day"
        )

    def test_empty_image_path_is_ignored(self):
        assert encode("Hi", "") == "Hi"

    def test_image_with_empty_text(self):
        assert encode("", "journal_images/a.jpg") == "IMAGE_URI::journal_images/a.jpg\n"


class TestDecode:
    def test_plain_text(self):
        assert decode("Hello\nworld") == ("Hello\nworld", None)

    def test_marker_line(self):
        blob = "IMAGE_URI::journal_images/IMG_2025-06-02.jpg\nBeach day"
        assert decode(blob) == ("Beach day", "journal_images/IMG_2025-06-02.jpg")

    def test_marker_without_body(self):
        assert decode("IMAGE_URI::journal_images/a.jpg") == ("", "journal_images/a.jpg")

    def test_trailing_whitespace_stripped_from_path(self):
        assert decode("IMAGE_URI::journal_images/a.jpg  \r\nbody")[1] == "journal_images/a.jpg"

    def test_empty_marker_path_is_none(self):
        assert decode("IMAGE_URI::\nbody") == ("body", None)

    def test_marker_only_on_first_line(self):
        blob = "Dear diary\nIMAGE_URI::journal_images/a.jpg"
        assert decode(blob) == (blob, None)

    def test_body_keeps_its_own_newlines(self):
        text, _ = decode(encode("line 1\nline 2\n", "x.jpg"))
        assert text == "line 1\nline 2\n"

    def test_text_starting_with_marker_reads_as_image(self):
        # Unescaped marker: a body whose first line looks like one is taken as an image ref.
        blob = encode(f"{IMAGE_URI_MARKER}not-really\nrest")
        assert decode(blob) == ("rest", "not-really")

    def test_extract_image_path(self):
        assert extract_image_path("IMAGE_URI::a.jpg\nx") == "a.jpg"
        assert extract_image_path("x") is None


# ── Entry ids ───────────────────────────────────────────────────────


class TestEntryIds:
    def test_daily_id(self):
        assert daily_entry_id(date(2025, 6, 1)) == "2025-06-01"

    def test_timestamped_id_has_millis(self):
        moment = datetime(2025, 6, 1, 9, 5, 7, 42_999)
        assert timestamped_entry_id(moment) == "2025-06-01_09-05-07-042"

    @pytest.mark.parametrize("entry_id", ["2025-06-01", "2025-06-01_09-05-07-042"])
    def test_valid_ids(self, entry_id):
        assert validate_entry_id(entry_id) == entry_id

    @pytest.mark.parametrize(
        "entry_id",
        ["", "2025-6-1", "2025-06-01_09-05", "../2025-06-01", "2025-06-01.txt", "notes"],
    )
    def test_malformed_ids_rejected(self, entry_id):
        with pytest.raises(ParseError):
            validate_entry_id(entry_id)

    def test_parse_daily(self):
        assert parse_entry_id("2025-06-01") == datetime(2025, 6, 1)

    def test_parse_timestamped(self):
        assert parse_entry_id("2025-06-01_09-05-07-042") == datetime(2025, 6, 1, 9, 5, 7, 42_000)

    def test_parse_impossible_date(self):
        with pytest.raises(ParseError):
            parse_entry_id("2025-02-30")

    def test_filename_round_trip(self):
        assert entry_filename("2025-06-01") == "journal_2025-06-01.txt"
        assert entry_id_from_filename("journal_2025-06-01.txt") == "2025-06-01"

    def test_filename_without_prefix_rejected(self):
        with pytest.raises(ParseError):
            entry_id_from_filename("2025-06-01.txt")


class TestDatePrefix:
    def test_no_filter(self):
        assert date_prefix() == ""

    def test_year(self):
        assert date_prefix(2025) == "2025-"

    def test_year_month(self):
        assert date_prefix(2025, 6) == "2025-06-"

    def test_full_date(self):
        assert date_prefix(2025, 6, 1) == "2025-06-01"

    def test_day_without_month_rejected(self):
        with pytest.raises(ValueError):
            date_prefix(2025, day=1)

    def test_month_without_year_rejected(self):
        with pytest.raises(ValueError):
            date_prefix(month=6)
