"""
Tests for the display helpers.
"""
from datetime import date, datetime, timedelta, timezone

import pytest

from portal.utils.formatting import clock_time, due_label, file_kind, file_size, relative_time

NOW = datetime(2025, 2, 10, 12, 0, tzinfo=timezone.utc)
TODAY = date(2025, 2, 10)


class TestRelativeTime:

    @pytest.mark.parametrize("delta, expected", [
        (timedelta(minutes=5), "Just now"),
        (timedelta(hours=3, minutes=59), "3h ago"),
        (timedelta(hours=23), "23h ago"),
        (timedelta(days=2, hours=5), "2d ago"),
        (timedelta(days=9), "2/1/2025"),
    ])
    def test_buckets(self, delta, expected):
        assert relative_time(NOW - delta, now=NOW) == expected

    def test_accepts_iso_strings(self):
        assert relative_time("2025-02-10T09:00:00.000Z", now=NOW) == "3h ago"

    def test_naive_is_utc(self):
        assert relative_time(datetime(2025, 2, 10, 10, 0), now=NOW) == "2h ago"


class TestFileSize:

    @pytest.mark.parametrize("size, expected", [
        (None, "0 B"),
        (0, "0 B"),
        (500, "500 B"),
        (1024, "1 KB"),
        (1536, "1.5 KB"),
        (1048576, "1 MB"),
        (5 * 1024 ** 3, "5 GB"),
        (2048 * 1024 ** 3, "2048 GB"),
    ])
    def test_sizes(self, size, expected):
        assert file_size(size) == expected


class TestDueLabel:

    @pytest.mark.parametrize("due, expected", [
        (None, "No due date"),
        (date(2025, 2, 7), "3 days overdue"),
        (date(2025, 2, 10), "Due today"),
        (date(2025, 2, 11), "Due tomorrow"),
        (date(2025, 2, 14), "Due in 4 days"),
        (date(2025, 3, 1), "3/1/2025"),
    ])
    def test_labels(self, due, expected):
        assert due_label(due, today=TODAY) == expected


class TestClockTime:

    @pytest.mark.parametrize("hours, minutes, expected", [
        (0, 0, "12:00 AM"),
        (9, 30, "9:30 AM"),
        (12, 0, "12:00 PM"),
        (13, 5, "1:05 PM"),
        (23, 59, "11:59 PM"),
    ])
    def test_twelve_hour_clock(self, hours, minutes, expected):
        assert clock_time(hours, minutes) == expected


class TestFileKind:

    @pytest.mark.parametrize("mime_type, expected", [
        ("application/vnd.google-apps.folder", "folder"),
        ("image/png", "image"),
        ("application/pdf", "picture_as_pdf"),
        ("application/vnd.google-apps.document", "description"),
        ("application/vnd.google-apps.spreadsheet", "table_chart"),
        ("application/vnd.google-apps.presentation", "slideshow"),
        ("text/plain", "text_snippet"),
        ("application/zip", "insert_drive_file"),
    ])
    def test_icons(self, mime_type, expected):
        assert file_kind(mime_type) == expected
