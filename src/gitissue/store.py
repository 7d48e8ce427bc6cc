"""Content-addressed layout of issues inside the .issues repository.

An issue (or comment) is named by the hash of the commit that created it.
Issues live in a two-level directory structure: the first two hash
characters form a shard directory and the remaining characters name the
issue's own directory, e.g. ``issues/3f/a9c1...``.
"""

from __future__ import annotations

import re
from pathlib import Path

from gitissue.constants import COMMENTS_DIR, ISSUES_DIRNAME, ISSUES_SUBDIR
from gitissue.errors import AmbiguousOrUnknownIdentifier, NotARepository
from gitissue.git import Git

_HEX_RE = re.compile(r"^[0-9a-f]+$")
_PATH_RE = re.compile(rf"^(?:.*/)?{ISSUES_SUBDIR}/([0-9a-f]{{2}})/([0-9a-f]+)(?:/.*)?$")


def full_path(issue_id: str) -> str:
    """Return the repository-relative directory of an issue given its full id."""
    return f"{ISSUES_SUBDIR}/{issue_id[:2]}/{issue_id[2:]}"


def id_from_path(path: str | Path) -> str:
    """Return the issue id encoded in an issue path.

    Trailing components are ignored, so the path of a file or comment inside
    an issue directory yields the issue's id.

    Raises:
        ValueError: If ``path`` is not inside an issue directory.
    """
    match = _PATH_RE.match(Path(path).as_posix())
    if match is None:
        msg = f"Not an issue path: {path}"
        raise ValueError(msg)
    return match.group(1) + match.group(2)


def comment_path(issue_id: str, comment_id: str) -> str:
    """Return the repository-relative path of a comment file."""
    return f"{full_path(issue_id)}/{COMMENTS_DIR}/{comment_id}"


def find_issues_root(start_dir: str | Path | None = None) -> Path:
    """Find the .issues directory by searching upward from start_dir.

    Args:
        start_dir: Directory to start searching from (default: current directory)

    Returns:
        Absolute path to the .issues directory

    Raises:
        NotARepository: If no .issues directory exists up to the filesystem root
    """
    current = Path.cwd() if start_dir is None else Path(start_dir).resolve()

    while True:
        candidate = current / ISSUES_DIRNAME
        if candidate.is_dir():
            return candidate
        parent = current.parent
        if parent == current:
            msg = "Not an issues repository (or any of the parent directories)"
            raise NotARepository(msg)
        current = parent


class IssueStore:
    """Resolves identifiers to issue directories in one .issues repository."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        self.git = Git(self.root)

    @classmethod
    def discover(cls, start_dir: str | Path | None = None) -> IssueStore:
        """Open the store enclosing ``start_dir`` (default: current directory)."""
        return cls(find_issues_root(start_dir))

    def issue_dir(self, issue_id: str) -> Path:
        """Return the absolute directory of an issue given its full id."""
        return self.root / full_path(issue_id)

    def resolve(self, partial_id: str) -> str:
        """Expand a (possibly abbreviated) issue id to its repository path.

        The shard directory is scanned for issue directories whose name starts
        with the characters after the shard prefix.  Like abbreviated commit
        hashes, the prefix must match exactly one entry.

        Returns:
            Repository-relative path of the issue, e.g. ``issues/3f/a9c1...``

        Raises:
            AmbiguousOrUnknownIdentifier: If zero or several issues match
        """
        partial = partial_id.strip().lower()
        if len(partial) < 2 or not _HEX_RE.match(partial):
            raise AmbiguousOrUnknownIdentifier(partial_id)

        shard = self.root / ISSUES_SUBDIR / partial[:2]
        if not shard.is_dir():
            raise AmbiguousOrUnknownIdentifier(partial_id)

        rest = partial[2:]
        matches = [
            entry.name
            for entry in shard.iterdir()
            if entry.is_dir() and entry.name.startswith(rest)
        ]
        if len(matches) != 1:
            raise AmbiguousOrUnknownIdentifier(partial_id)
        return f"{ISSUES_SUBDIR}/{partial[:2]}/{matches[0]}"

    def resolve_id(self, partial_id: str) -> str:
        """Expand a (possibly abbreviated) issue id to the full id."""
        return id_from_path(self.resolve(partial_id))

    def list_issue_ids(self) -> list[str]:
        """Return the full ids of all issues present in the working tree."""
        issues = self.root / ISSUES_SUBDIR
        if not issues.is_dir():
            return []
        return sorted(
            shard.name + leaf.name
            for shard in issues.iterdir()
            if shard.is_dir()
            for leaf in shard.iterdir()
            if leaf.is_dir()
        )
