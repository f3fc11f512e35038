"""Tests for LocalEntryStore: entry files, mtimes, and images on disk."""

import pytest

from pictonote.errors import CorruptLocalImage, NotFound, ParseError


class TestEntries:
    def test_write_then_read(self, local_store):
        path = local_store.write("2025-06-01", "Hello", timestamp=1_000)
        assert path.name == "journal_2025-06-01.txt"
        assert path.parent == local_store.entries_dir
        assert local_store.read("2025-06-01") == "Hello"

    def test_write_sets_mtime(self, local_store):
        local_store.write("2025-06-01", "Hello", timestamp=1_717_200_000_123)
        assert local_store.mtime("2025-06-01") == 1_717_200_000_123

    def test_write_without_timestamp_uses_now(self, local_store):
        local_store.write("2025-06-01", "Hello")
        assert local_store.mtime("2025-06-01") > 1_700_000_000_000

    def test_overwrite_replaces_content(self, local_store):
        local_store.write("2025-06-01", "v1", timestamp=1_000)
        local_store.write("2025-06-01", "v2", timestamp=2_000)
        assert local_store.read("2025-06-01") == "v2"
        assert local_store.mtime("2025-06-01") == 2_000

    def test_write_leaves_no_temp_files(self, local_store):
        local_store.write("2025-06-01", "Hello", timestamp=1_000)
        assert [p.name for p in local_store.entries_dir.iterdir()] == ["journal_2025-06-01.txt"]

    def test_unicode_round_trip(self, local_store):
        local_store.write("2025-06-01", "Café ☕\nline two", timestamp=1_000)
        assert local_store.read("2025-06-01") == "Café ☕\nline two"

    def test_read_missing_raises(self, local_store):
        with pytest.raises(NotFound):
            local_store.read("2025-06-01")

    def test_mtime_missing_is_none(self, local_store):
        assert local_store.mtime("2025-06-01") is None

    def test_exists(self, local_store):
        assert not local_store.exists("2025-06-01")
        local_store.write("2025-06-01", "x", timestamp=1_000)
        assert local_store.exists("2025-06-01")

    def test_set_mtime(self, local_store):
        local_store.write("2025-06-01", "x", timestamp=1_000)
        local_store.set_mtime("2025-06-01", 5_000)
        assert local_store.mtime("2025-06-01") == 5_000

    def test_malformed_id_rejected_on_write(self, local_store):
        with pytest.raises(ParseError):
            local_store.write("../escape", "x")


class TestList:
    @pytest.fixture
    def populated(self, local_store):
        for entry_id in [
            "2025-06-02",
            "2025-06-01",
            "2025-06-01_09-15-00-000",
            "2025-07-04",
            "2024-12-31",
        ]:
            local_store.write(entry_id, entry_id, timestamp=1_000)
        return local_store

    def test_empty_when_no_dir(self, local_store):
        assert local_store.list() == []

    def test_all_sorted(self, populated):
        assert populated.list() == [
            "2024-12-31",
            "2025-06-01",
            "2025-06-01_09-15-00-000",
            "2025-06-02",
            "2025-07-04",
        ]

    def test_filter_year(self, populated):
        assert populated.list(2024) == ["2024-12-31"]

    def test_filter_month(self, populated):
        assert populated.list(2025, 6) == ["2025-06-01", "2025-06-01_09-15-00-000", "2025-06-02"]

    def test_filter_day_includes_timestamped(self, populated):
        assert populated.list(2025, 6, 1) == ["2025-06-01", "2025-06-01_09-15-00-000"]

    def test_skips_foreign_and_malformed_files(self, populated):
        (populated.entries_dir / "notes.txt").write_text("x")
        (populated.entries_dir / "journal_garbage.txt").write_text("x")
        (populated.entries_dir / "journal_2025-06-03.md").write_text("x")
        assert "garbage" not in populated.list()
        assert len(populated.list()) == 5

    def test_day_without_month_rejected(self, populated):
        with pytest.raises(ValueError):
            populated.list(2025, None, 1)

    def test_bad_filter_rejected_without_entries_dir(self, local_store):
        assert not local_store.entries_dir.exists()
        with pytest.raises(ValueError):
            local_store.list(None, 6)

    def test_malformed_files_reported(self, populated):
        (populated.entries_dir / "journal_2025-6-1.txt").write_text("x")
        (populated.entries_dir / "notes.txt").write_text("x")
        rejected = []

        ids = populated.list(on_reject=lambda name, err: rejected.append((name, type(err))))

        assert len(ids) == 5
        assert rejected == [("journal_2025-6-1.txt", ParseError)]


class TestImages:
    def test_write_and_read_image(self, local_store, jpeg):
        path = local_store.write_image("journal_images/a.jpg", jpeg)
        assert path == local_store.images_dir / "a.jpg"
        assert local_store.read_image("journal_images/a.jpg") == jpeg
        assert local_store.image_exists("journal_images/a.jpg")

    def test_read_missing_image(self, local_store):
        with pytest.raises(NotFound):
            local_store.read_image("journal_images/missing.jpg")

    @pytest.mark.parametrize("bad", ["", "/etc/passwd", "../outside.jpg", "journal_images/../../x.jpg"])
    def test_paths_outside_data_root_rejected(self, local_store, bad):
        with pytest.raises(ParseError):
            local_store.image_file(bad)

    def test_valid_image(self, local_store, jpeg):
        local_store.write_image("journal_images/a.jpg", jpeg)
        local_store.check_image("journal_images/a.jpg")
        assert local_store.is_valid_image("journal_images/a.jpg")

    def test_missing_image_invalid(self, local_store):
        with pytest.raises(NotFound):
            local_store.check_image("journal_images/none.jpg")
        assert not local_store.is_valid_image("journal_images/none.jpg")

    def test_empty_image_invalid(self, local_store):
        local_store.write_image("journal_images/empty.jpg", b"")
        with pytest.raises(NotFound):
            local_store.check_image("journal_images/empty.jpg")

    def test_corrupt_image_invalid(self, local_store):
        local_store.write_image("journal_images/bad.jpg", b"definitely not a jpeg")
        with pytest.raises(CorruptLocalImage):
            local_store.check_image("journal_images/bad.jpg")
        assert not local_store.is_valid_image("journal_images/bad.jpg")

    def test_delete_image(self, local_store, jpeg):
        local_store.write_image("journal_images/a.jpg", jpeg)
        local_store.delete_image("journal_images/a.jpg")
        local_store.delete_image("journal_images/a.jpg")
        assert not local_store.image_exists("journal_images/a.jpg")
