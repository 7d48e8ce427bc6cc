"""Read-only views over the issues repository."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from gitissue.constants import (
    COMMENTS_DIR,
    DEFAULT_TAG,
    DESCRIPTION_FILE,
    GRAMMAR_COMMENT_MARK,
    ISSUES_SUBDIR,
    MILESTONE_FILE,
    TAGS_FILE,
)
from gitissue.entries import collation_key, read_entries
from gitissue.models import Comment, CommitInfo, IssueRecord
from gitissue.store import full_path

if TYPE_CHECKING:
    from gitissue.git import Git
    from gitissue.store import IssueStore

# Length of issue ids in listings
SHORT_ID_LEN = 7

_INFO_FORMAT = "%an <%ae>%n%aD"


def commit_info(git: Git, sha: str) -> CommitInfo:
    """Return author and date of one commit."""
    author, _, date = git.show_format(sha, _INFO_FORMAT).strip().partition("\n")
    return CommitInfo(sha=sha, author=author, date=date)


@dataclass
class IssueView:
    """Everything ``show`` displays about one issue."""

    id: str
    created: CommitInfo
    record: IssueRecord
    history: list[CommitInfo] = field(default_factory=list[CommitInfo])
    comments: list[Comment] = field(default_factory=list[Comment])


def issue_comments(store: IssueStore, issue_id: str) -> list[Comment]:
    """Return the comments of an issue, oldest first."""
    pattern = "^" + GRAMMAR_COMMENT_MARK.format(issue=issue_id)
    comments: list[Comment] = []
    for csha in store.git.log_grep(pattern):
        path = store.issue_dir(issue_id) / COMMENTS_DIR / csha
        if not path.exists():
            continue
        info = commit_info(store.git, csha)
        comments.append(
            Comment(
                id=csha,
                issue_id=issue_id,
                author=info.author,
                date=info.date,
                text=path.read_text(encoding="utf-8"),
            ),
        )
    return comments


def issue_view(
    store: IssueStore,
    partial_id: str,
    with_comments: bool = False,
) -> IssueView:
    """Collect the details of one issue.

    Raises:
        AmbiguousOrUnknownIdentifier: If the id matches no or several issues
    """
    issue_id = store.resolve_id(partial_id)
    history = [
        CommitInfo(sha=sha, author=author, date=date)
        for sha, author, date in (
            line.split("\x00")
            for line in store.git.log_path(
                f"{full_path(issue_id)}/{DESCRIPTION_FILE}",
                "%H%x00%an <%ae>%x00%aD",
            )
        )
    ]
    return IssueView(
        id=issue_id,
        created=commit_info(store.git, issue_id),
        record=IssueRecord.load(store.issue_dir(issue_id)),
        history=history,
        comments=issue_comments(store, issue_id) if with_comments else [],
    )


def list_issues(
    store: IssueStore,
    tag: str = DEFAULT_TAG,
    include_all: bool = False,
) -> list[tuple[str, str]]:
    """Return ``(short id, summary)`` of issues carrying ``tag``.

    ``tag`` also matches the milestone.  Results are ordered by summary.
    """
    found: list[tuple[str, str]] = []
    for issue_id in store.list_issue_ids():
        directory = store.issue_dir(issue_id)
        if not include_all:
            milestone = read_entries(directory / MILESTONE_FILE)
            if tag not in read_entries(directory / TAGS_FILE) and tag not in milestone:
                continue
        description = directory / DESCRIPTION_FILE
        summary = ""
        if description.exists():
            summary = description.read_text(encoding="utf-8").split("\n", 1)[0]
        found.append((issue_id[:SHORT_ID_LEN], summary))
    return sorted(found, key=lambda item: (collation_key(item[1]), item[0]))


def tag_counts(store: IssueStore) -> dict[str, int]:
    """Return how many issues use each tag, in tag order."""
    counts: Counter[str] = Counter()
    issues = store.root / ISSUES_SUBDIR
    if issues.is_dir():
        for tags in issues.glob(f"*/*/{TAGS_FILE}"):
            counts.update(read_entries(tags))
    return {tag: counts[tag] for tag in sorted(counts, key=collation_key)}
