"""Tests for access/utils.py."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

from sharegate.access.utils import (
    build_share_url,
    ensure_utc,
    file_type_from_name,
    is_active,
    new_token,
)


class TestEnsureUtc:
    def test_none(self):
        assert ensure_utc(None) is None

    def test_naive_is_taken_as_utc(self):
        naive = datetime(2026, 1, 2, 3, 4, 5)
        assert ensure_utc(naive) == datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC)

    def test_aware_is_converted(self):
        plus_two = timezone(timedelta(hours=2))
        value = datetime(2026, 1, 2, 12, 0, tzinfo=plus_two)
        converted = ensure_utc(value)
        assert converted is not None
        assert converted.tzinfo == UTC
        assert converted.hour == 10


class TestIsActive:
    def test_no_expiry(self):
        assert is_active(None) is True

    def test_future(self):
        assert is_active(datetime.now(UTC) + timedelta(minutes=5)) is True

    def test_past(self):
        assert is_active(datetime.now(UTC) - timedelta(seconds=1)) is False

    def test_exactly_now_is_expired(self):
        now = datetime.now(UTC)
        assert is_active(now, now) is False

    def test_naive_past(self):
        naive_past = datetime.now(UTC).replace(tzinfo=None) - timedelta(hours=1)
        assert is_active(naive_past) is False


class TestNewToken:
    def test_length_and_uniqueness(self):
        tokens = {new_token() for _ in range(100)}
        assert len(tokens) == 100
        # 16 bytes of urlsafe base64 without padding
        assert all(len(t) == 22 for t in tokens)

    def test_custom_size(self):
        assert len(new_token(32)) == 43


class TestFileType:
    def test_lowercased_extension(self):
        assert file_type_from_name("Report.PDF") == "pdf"

    def test_last_extension_only(self):
        assert file_type_from_name("backup.tar.gz") == "gz"

    def test_no_extension(self):
        assert file_type_from_name("Makefile") == ""
        assert file_type_from_name(".bashrc") == ""


class TestBuildShareUrl:
    def test_url(self):
        assert (
            build_share_url("https://files.example.com/api/", "abc")
            == "https://files.example.com/api/files/share/abc/download"
        )
