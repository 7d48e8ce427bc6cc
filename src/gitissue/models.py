"""Data models for issues and comments using dataclasses."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING

from gitissue.constants import (
    ASSIGNEE_FILE,
    DESCRIPTION_FILE,
    DUEDATE_FILE,
    MILESTONE_FILE,
    TAGS_FILE,
    TIMEESTIMATE_FILE,
    TIMESPENT_FILE,
    WATCHERS_FILE,
    WEIGHT_FILE,
)
from gitissue.entries import read_entries
from gitissue.errors import InvalidFieldValue

if TYPE_CHECKING:
    from pathlib import Path

    from gitissue.transaction import Transaction


_DURATION_TERMS_RE = re.compile(r"\s*(\d+)\s*([A-Za-z]*)\s*")

_DURATION_UNITS: dict[str, int] = {
    "": 1,
    "s": 1,
    "sec": 1,
    "second": 1,
    "seconds": 1,
    "m": 60,
    "min": 60,
    "minute": 60,
    "minutes": 60,
    "h": 3600,
    "hour": 3600,
    "hours": 3600,
    "d": 86400,
    "day": 86400,
    "days": 86400,
    "w": 604800,
    "week": 604800,
    "weeks": 604800,
}


@dataclass(frozen=True, order=True)
class Duration:
    """A non-negative time interval in whole seconds."""

    seconds: int

    def __post_init__(self) -> None:
        if self.seconds < 0:
            msg = f"Duration must not be negative: {self.seconds}"
            raise InvalidFieldValue(msg)

    @classmethod
    def parse(cls, text: str) -> Duration:
        """Parse an interval such as ``"2h 30m"``, ``"1 day"`` or ``"90"``.

        A term is an integer optionally followed by a unit (w, d, h, m, s or
        their long forms); a bare integer counts seconds.  A leading ``-``
        makes the whole interval negative, which is rejected.

        Raises:
            InvalidFieldValue: If the text is malformed or negative
        """
        raw = text.strip()
        if raw.startswith("-"):
            msg = f"Negative time interval: {text}"
            raise InvalidFieldValue(msg)
        if not raw:
            msg = "Empty time interval"
            raise InvalidFieldValue(msg)

        total = 0
        pos = 0
        while pos < len(raw):
            match = _DURATION_TERMS_RE.match(raw, pos)
            if match is None or match.end() == pos:
                msg = f"Invalid time interval: {text}"
                raise InvalidFieldValue(msg)
            unit = match.group(2).lower()
            if unit not in _DURATION_UNITS:
                msg = f"Unknown time unit '{match.group(2)}' in: {text}"
                raise InvalidFieldValue(msg)
            total += int(match.group(1)) * _DURATION_UNITS[unit]
            pos = match.end()
        return cls(total)

    def __add__(self, other: Duration) -> Duration:
        return Duration(self.seconds + other.seconds)

    def format(self) -> str:
        """Return a days/hours/minutes/seconds breakdown.

        Zero components are dropped: ``93784`` formats as
        ``"1 days 02 hours 03 minutes 04 seconds"`` and ``3600`` as
        ``"01 hours"``.
        """
        days, rest = divmod(self.seconds, 86400)
        hours, rest = divmod(rest, 3600)
        minutes, seconds = divmod(rest, 60)
        parts: list[str] = []
        if days:
            parts.append(f"{days} days")
        if hours:
            parts.append(f"{hours:02d} hours")
        if minutes:
            parts.append(f"{minutes:02d} minutes")
        if seconds:
            parts.append(f"{seconds:02d} seconds")
        return " ".join(parts) if parts else "0 seconds"

    def __str__(self) -> str:
        return str(self.seconds)


def parse_weight(text: str) -> int:
    """Parse an issue weight, which must be a non-negative integer."""
    raw = text.strip()
    if not re.fullmatch(r"[0-9]+", raw):
        msg = f"Weight must be a non-negative integer, got '{text}'"
        raise InvalidFieldValue(msg)
    return int(raw)


def parse_duedate(text: str) -> datetime:
    """Parse a due date in ISO-8601 form.

    Date-only values mean midnight; values without a UTC offset are taken
    in the local timezone.

    Raises:
        InvalidFieldValue: If the text is not an ISO-8601 date or timestamp
    """
    raw = text.strip()
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    try:
        value = datetime.fromisoformat(raw)
    except ValueError:
        msg = f"Invalid due date '{text}'. Use ISO-8601, e.g. 2024-05-01T17:00:00"
        raise InvalidFieldValue(msg) from None
    if value.tzinfo is None:
        value = value.astimezone()
    return value


def format_duedate(value: datetime) -> str:
    """Return the stored form of a due date (ISO-8601, seconds precision)."""
    return value.isoformat(timespec="seconds")


def is_past(value: datetime) -> bool:
    """Check whether a due date lies in the past."""
    return value < datetime.now(timezone.utc)


class Field(str, Enum):
    """Issue attributes that commands can set or modify."""

    TAG = "tag"
    ASSIGNEE = "assignee"
    WATCHER = "watcher"
    MILESTONE = "milestone"
    WEIGHT = "weight"
    DUEDATE = "duedate"
    TIMESPENT = "timespent"
    TIMEESTIMATE = "timeestimate"

    @property
    def filename(self) -> str:
        """Name of the file holding this attribute in an issue directory."""
        return _FIELD_FILES[self]

    @property
    def is_set(self) -> bool:
        """True for multi-valued attributes stored as sorted entry sets."""
        return self in (Field.TAG, Field.ASSIGNEE, Field.WATCHER)


_FIELD_FILES: dict[Field, str] = {
    Field.TAG: TAGS_FILE,
    Field.ASSIGNEE: ASSIGNEE_FILE,
    Field.WATCHER: WATCHERS_FILE,
    Field.MILESTONE: MILESTONE_FILE,
    Field.WEIGHT: WEIGHT_FILE,
    Field.DUEDATE: DUEDATE_FILE,
    Field.TIMESPENT: TIMESPENT_FILE,
    Field.TIMEESTIMATE: TIMEESTIMATE_FILE,
}


def _read_scalar(path: Path) -> str | None:
    if not path.exists():
        return None
    value = path.read_text(encoding="utf-8").strip()
    return value or None


def _entries_text(entries: list[str]) -> str:
    return "".join(f"{e}\n" for e in entries)


@dataclass
class IssueRecord:
    """The materialized attributes of one issue.

    Two records compare equal exactly when every stored file would have the
    same content, which is what import reconciliation relies on.
    """

    description: str = ""
    tags: list[str] = field(default_factory=list[str])
    milestone: str | None = None
    weight: int | None = None
    duedate: str | None = None
    timespent: Duration | None = None
    timeestimate: Duration | None = None
    assignee: list[str] = field(default_factory=list[str])
    watchers: list[str] = field(default_factory=list[str])

    @property
    def summary(self) -> str:
        """First line of the description."""
        return self.description.split("\n", 1)[0]

    @classmethod
    def load(cls, issue_dir: Path) -> IssueRecord:
        """Read an issue's attribute files from its directory."""
        description_path = issue_dir / DESCRIPTION_FILE
        weight = _read_scalar(issue_dir / WEIGHT_FILE)
        timespent = _read_scalar(issue_dir / TIMESPENT_FILE)
        timeestimate = _read_scalar(issue_dir / TIMEESTIMATE_FILE)
        return cls(
            description=(
                description_path.read_text(encoding="utf-8")
                if description_path.exists()
                else ""
            ),
            tags=read_entries(issue_dir / TAGS_FILE),
            milestone=_read_scalar(issue_dir / MILESTONE_FILE),
            weight=int(weight) if weight is not None else None,
            duedate=_read_scalar(issue_dir / DUEDATE_FILE),
            timespent=Duration(int(timespent)) if timespent is not None else None,
            timeestimate=(
                Duration(int(timeestimate)) if timeestimate is not None else None
            ),
            assignee=read_entries(issue_dir / ASSIGNEE_FILE),
            watchers=read_entries(issue_dir / WATCHERS_FILE),
        )

    def to_files(self) -> dict[str, str | None]:
        """Return file name -> content; None means the file must not exist."""

        def scalar(value: object | None) -> str | None:
            return None if value is None else f"{value}\n"

        return {
            DESCRIPTION_FILE: self.description,
            TAGS_FILE: _entries_text(self.tags),
            MILESTONE_FILE: scalar(self.milestone),
            WEIGHT_FILE: scalar(self.weight),
            DUEDATE_FILE: scalar(self.duedate),
            TIMESPENT_FILE: scalar(self.timespent),
            TIMEESTIMATE_FILE: scalar(self.timeestimate),
            ASSIGNEE_FILE: _entries_text(self.assignee) if self.assignee else None,
            WATCHERS_FILE: _entries_text(self.watchers) if self.watchers else None,
        }

    def changed_files(self, other: IssueRecord) -> list[str]:
        """Return the names of files whose content differs from ``other``."""
        mine = self.to_files()
        theirs = other.to_files()
        return [name for name in mine if mine[name] != theirs[name]]

    def save(
        self,
        tx: Transaction,
        issue_path: str,
        only: list[str] | None = None,
    ) -> None:
        """Write the record's files into ``issue_path`` and stage them.

        Args:
            tx: The enclosing transaction
            issue_path: Repository-relative issue directory
            only: Restrict writing to these file names
        """
        for name, content in self.to_files().items():
            if only is not None and name not in only:
                continue
            rel = f"{issue_path}/{name}"
            if content is None:
                if tx.path(rel).exists():
                    tx.delete(rel)
            else:
                tx.write(rel, content)


@dataclass
class Comment:
    """A comment on an issue, named by the hash of its marker commit."""

    id: str
    issue_id: str
    author: str
    date: str
    text: str


@dataclass
class CommitInfo:
    """Authorship of a commit as reported by ``git show``."""

    sha: str
    author: str
    date: str
