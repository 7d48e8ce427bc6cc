"""Tests for gitissue data models."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import pytest

from gitissue.errors import InvalidFieldValue
from gitissue.models import (
    Duration,
    Field,
    IssueRecord,
    format_duedate,
    is_past,
    parse_duedate,
    parse_weight,
)

if TYPE_CHECKING:
    from pathlib import Path


class TestDuration:
    """Test time interval parsing and formatting."""

    @pytest.mark.parametrize(
        ("text", "seconds"),
        [
            ("90", 90),
            ("45s", 45),
            ("2m", 120),
            ("2h 30m", 9000),
            ("1 day", 86400),
            ("1w 1d", 691200),
            ("3 hours 5 minutes", 11100),
            ("1H", 3600),
        ],
    )
    def test_parse(self, text: str, seconds: int) -> None:
        """Terms with units add up to whole seconds."""
        assert Duration.parse(text).seconds == seconds

    @pytest.mark.parametrize("text", ["", "  ", "abc", "2 fortnights", "1h x"])
    def test_parse_invalid(self, text: str) -> None:
        """Malformed intervals are rejected."""
        with pytest.raises(InvalidFieldValue):
            Duration.parse(text)

    def test_negative_rejected(self) -> None:
        """Negative intervals are rejected, parsed or constructed."""
        with pytest.raises(InvalidFieldValue, match="Negative"):
            Duration.parse("-2h")
        with pytest.raises(InvalidFieldValue):
            Duration(-1)

    def test_add(self) -> None:
        """Durations add."""
        assert Duration(60) + Duration(30) == Duration(90)

    @pytest.mark.parametrize(
        ("seconds", "text"),
        [
            (93784, "1 days 02 hours 03 minutes 04 seconds"),
            (3600, "01 hours"),
            (90, "01 minutes 30 seconds"),
            (0, "0 seconds"),
        ],
    )
    def test_format(self, seconds: int, text: str) -> None:
        """Zero components are dropped from the breakdown."""
        assert Duration(seconds).format() == text

    def test_str_is_seconds(self) -> None:
        """The stored form is the number of seconds."""
        assert str(Duration.parse("1h")) == "3600"


class TestScalars:
    """Test weight and due date parsing."""

    def test_weight(self) -> None:
        """Weights are non-negative integers."""
        assert parse_weight(" 5 ") == 5
        for bad in ("-1", "x", "1.5", "", "\u00b2", "\u0661"):
            with pytest.raises(InvalidFieldValue):
                parse_weight(bad)

    def test_duedate_with_offset(self) -> None:
        """An explicit offset is kept."""
        due = parse_duedate("2024-05-01T17:00:00+02:00")
        assert format_duedate(due) == "2024-05-01T17:00:00+02:00"

    def test_duedate_utc_suffix(self) -> None:
        """A trailing Z means UTC."""
        due = parse_duedate("2024-05-01T17:00:00Z")
        assert due.utcoffset() == timedelta(0)

    def test_duedate_naive_gets_local_offset(self) -> None:
        """Values without an offset are taken in local time."""
        assert parse_duedate("2024-05-01").tzinfo is not None

    def test_duedate_invalid(self) -> None:
        """Non-ISO dates are rejected."""
        with pytest.raises(InvalidFieldValue, match="ISO-8601"):
            parse_duedate("next tuesday")

    def test_is_past(self) -> None:
        """Dates before now are in the past."""
        now = datetime.now(timezone.utc)
        assert is_past(now - timedelta(days=1))
        assert not is_past(now + timedelta(days=1))


class TestField:
    """Test field metadata."""

    def test_filenames(self) -> None:
        """Fields map onto their attribute files."""
        assert Field.TAG.filename == "tags"
        assert Field.WATCHER.filename == "watchers"
        assert Field.TIMESPENT.filename == "timespent"

    def test_is_set(self) -> None:
        """Only tags, assignees and watchers are entry sets."""
        assert {f for f in Field if f.is_set} == {
            Field.TAG,
            Field.ASSIGNEE,
            Field.WATCHER,
        }


class TestIssueRecord:
    """Test the materialized issue record."""

    def test_to_files_omits_unset(self) -> None:
        """Unset scalars and empty optional sets map to absent files."""
        files = IssueRecord(description="Bug\n", tags=["open"]).to_files()
        assert files["description"] == "Bug\n"
        assert files["tags"] == "open\n"
        assert files["milestone"] is None
        assert files["assignee"] is None
        assert files["watchers"] is None

    def test_load_round_trip(self, tmp_path: Path) -> None:
        """Writing the files and loading them gives an equal record."""
        record = IssueRecord(
            description="Crash\n\nDetails\n",
            tags=["bug", "open"],
            milestone="v1.0",
            weight=3,
            timespent=Duration(3600),
            assignee=["dev@example.com"],
        )
        for name, content in record.to_files().items():
            if content is not None:
                (tmp_path / name).write_text(content)
        loaded = IssueRecord.load(tmp_path)
        assert loaded == record
        assert loaded.summary == "Crash"

    def test_changed_files(self) -> None:
        """Only differing files are reported."""
        old = IssueRecord(description="A\n", tags=["open"])
        new = IssueRecord(description="A\n", tags=["closed"], milestone="v2")
        assert new.changed_files(old) == ["tags", "milestone"]
        assert old.changed_files(old) == []

    def test_load_missing_directory(self, tmp_path: Path) -> None:
        """A directory with no files loads as an empty record."""
        assert IssueRecord.load(tmp_path / "missing") == IssueRecord()
