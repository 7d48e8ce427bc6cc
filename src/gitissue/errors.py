"""Exception hierarchy for gitissue.

Every error a command can report derives from :class:`GitIssueError`, so the
CLI can turn any of them into a single ``Error: ...`` line and exit status 1.
"""

from __future__ import annotations


class GitIssueError(Exception):
    """Base class for all gitissue errors."""


class NotARepository(GitIssueError):
    """No .issues directory was found in the current directory or its parents."""


class AlreadyInitialized(GitIssueError):
    """An .issues directory is already present."""


class AmbiguousOrUnknownIdentifier(GitIssueError):
    """A (partial) identifier matched zero or several entities."""

    def __init__(self, identifier: str) -> None:
        super().__init__(f"Unknown or ambiguous issue specification {identifier}")
        self.identifier = identifier


class DuplicateEntry(GitIssueError):
    """An entry being added to an entry set is already present."""

    def __init__(self, entry: str) -> None:
        super().__init__(f"Entry {entry} already exists")
        self.entry = entry


class EntryNotFound(GitIssueError):
    """An entry being removed from an entry set is not present."""

    def __init__(self, name: str, entry: str) -> None:
        super().__init__(f"No such {name} entry: {entry}")
        self.name = name
        self.entry = entry


class FieldNotSet(GitIssueError):
    """A single-valued field being removed has no value."""

    def __init__(self, name: str) -> None:
        super().__init__(f"No {name} set")
        self.name = name


class InvalidFieldValue(GitIssueError):
    """A field value failed validation (negative duration, malformed date, ...)."""


class EditAborted(GitIssueError):
    """The editor session produced an empty or unchanged text."""


class SourceUnavailable(GitIssueError):
    """The external issue source could not be reached."""


class SourceProtocolError(GitIssueError):
    """The external issue source answered with a non-success status."""

    def __init__(
        self,
        url: str,
        *,
        status: int | None = None,
        message: str | None = None,
    ) -> None:
        text = f"API communication failure for {url}"
        if status is not None:
            text += f" (status {status})"
        if message:
            text += f": {message}"
        super().__init__(text)
        self.url = url
        self.status = status
        self.message = message


class GitError(GitIssueError):
    """A git command exited with a non-zero status."""

    def __init__(self, args: list[str], returncode: int, stderr: str = "") -> None:
        command = " ".join(["git", *args])
        text = f"'{command}' failed with status {returncode}"
        if stderr.strip():
            text += f": {stderr.strip()}"
        super().__init__(text)
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class TransactionAbort(GitIssueError):
    """A transaction step failed; the repository was rolled back."""

    def __init__(self, reason: str = "") -> None:
        super().__init__(
            f"Operation aborted: {reason}" if reason else "Operation aborted"
        )
        self.reason = reason
