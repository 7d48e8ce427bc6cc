"""Idempotent import of GitHub issues and comments.

Every external issue and comment is mapped to a local entity through a
small file under ``imports/github/<org>/<project>/``.  A re-run reuses the
mapped identifiers, rewrites the materialized files from the external data
and only commits when the staged tree differs from HEAD, so importing an
unchanged project creates no commits at all.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, ClassVar

from gitissue.constants import (
    CHECKPOINT_FILE,
    COMMENTS_DIR,
    GRAMMAR_COMMENT_MARK,
    GRAMMAR_COMMENT_MESSAGE,
    GRAMMAR_IMPORT_CHECKPOINT,
    GRAMMAR_IMPORT_ISSUE,
    GRAMMAR_NEW_MARK,
    IMPORT_SHA_FILE,
    IMPORTS_SUBDIR,
)
from gitissue.entries import sorted_entries
from gitissue.errors import InvalidFieldValue, SourceProtocolError
from gitissue.models import IssueRecord
from gitissue.operations import Operation, OperationKind, OperationResult
from gitissue.store import comment_path, full_path

if TYPE_CHECKING:
    from gitissue.github import GitHubClient
    from gitissue.store import IssueStore
    from gitissue.transaction import Transaction

logger = logging.getLogger(__name__)


@dataclass
class ImportSummary:
    """What one import run changed."""

    issues_created: int = 0
    issues_updated: int = 0
    comments_created: int = 0
    comments_updated: int = 0
    checkpoint: str | None = None
    events: list[str] = field(default_factory=list[str])


def github_author(entity: dict[str, Any]) -> str:
    """Return the git author for an external issue or comment."""
    user = entity.get("user") or {}
    login = user.get("login") or "ghost"
    return f"{login} <{login}@users.noreply.github.com>"


def issue_description(issue: dict[str, Any]) -> str:
    """Build a description: the title, then a blank line and the body if any."""
    title = (issue.get("title") or "").replace("\r", "")
    body = (issue.get("body") or "").replace("\r", "")
    if body:
        return f"{title}\n\n{body}\n"
    return f"{title}\n"


def issue_record(issue: dict[str, Any], current: IssueRecord) -> IssueRecord:
    """Return ``current`` with the externally owned attributes replaced.

    Tags become the issue state plus its label names, assignees its
    assignee logins and the milestone the milestone title.  Attributes
    GitHub has no notion of (weight, due date, times, watchers) are kept.
    """
    labels = [label["name"] for label in issue.get("labels") or []]
    assignees = [user["login"] for user in issue.get("assignees") or []]
    milestone = issue.get("milestone")
    return replace(
        current,
        description=issue_description(issue),
        tags=sorted_entries([issue["state"], *labels]),
        assignee=sorted_entries(assignees),
        milestone=milestone["title"] if milestone else None,
    )


@dataclass
class ImportIssues(Operation):
    """Import all issues of one GitHub project in a single transaction."""

    kind: ClassVar[OperationKind] = OperationKind.IMPORT
    source: ClassVar[str] = "github"

    client: GitHubClient
    summary: ImportSummary = field(init=False, default_factory=ImportSummary)

    @property
    def mapping_dir(self) -> str:
        """Repository-relative directory of this project's import mappings."""
        client = self.client
        return f"{IMPORTS_SUBDIR}/{self.source}/{client.org}/{client.project}"

    def prepare(self, store: IssueStore) -> None:
        names = {"org": self.client.org, "project": self.client.project}
        for name, value in names.items():
            if not value or "/" in value or value.startswith("."):
                msg = f"Invalid GitHub {name}: {value!r}"
                raise InvalidFieldValue(msg)

    def execute(self, tx: Transaction) -> OperationResult:
        for page in self.client.issues():
            for issue in page.items:
                self._import_issue(tx, issue)

        head = tx.git.head()
        if head is not None and head != tx.start_revision:
            tx.write(f"{self.mapping_dir}/{CHECKPOINT_FILE}", f"{head}\n")
            tx.commit(
                "gi: Import issues from GitHub checkpoint",
                GRAMMAR_IMPORT_CHECKPOINT.format(
                    source=self.source,
                    org=self.client.org,
                    project=self.client.project,
                )
                + f"\nIssues URL: {self.client.project_url}",
            )
            self.summary.checkpoint = head

        s = self.summary
        message = (
            f"Imported {s.issues_created} new and {s.issues_updated} updated issues, "
            f"{s.comments_created} new and {s.comments_updated} updated comments"
        )
        return self._result(tx, message)

    def _import_issue(self, tx: Transaction, issue: dict[str, Any]) -> None:
        if not isinstance(issue.get("number"), int) or not issue.get("state"):
            raise SourceProtocolError(
                self.client.issues_url(),
                message="malformed issue object",
            )
        number: int = issue["number"]

        author = github_author(issue)
        date = issue.get("updated_at")
        mapping_rel = f"{self.mapping_dir}/{number}/{IMPORT_SHA_FILE}"
        mapping = tx.path(mapping_rel)

        created = not mapping.exists()
        if created:
            sha = tx.mark(
                "gi: Add issue",
                GRAMMAR_NEW_MARK,
                author=author,
                author_date=date,
            )
        else:
            sha = mapping.read_text(encoding="utf-8").strip()

        current = IssueRecord.load(tx.store.issue_dir(sha))
        wanted = issue_record(issue, current)
        changed = wanted.changed_files(current)
        if changed:
            wanted.save(tx, full_path(sha), only=changed)
        if created:
            tx.write(mapping_rel, f"{sha}\n")

        if not tx.git.index_matches_head():
            url = issue.get("html_url") or f"{self.client.project_url}/{number}"
            tx.commit(
                f"gi: Import issue #{number} from GitHub",
                GRAMMAR_IMPORT_ISSUE.format(number=number, source=self.source)
                + f"\nIssue URL: {url}",
                author=author,
                author_date=date,
            )
            if created:
                self.summary.issues_created += 1
            else:
                self.summary.issues_updated += 1
            event = f"Imported/updated issue #{number} as {tx.git.short(sha)}"
            self.summary.events.append(event)
            logger.info(event)

        for page in self.client.comments(number):
            for comment in page.items:
                self._import_comment(tx, number, sha, comment)

    def _import_comment(
        self,
        tx: Transaction,
        number: int,
        issue_id: str,
        comment: dict[str, Any],
    ) -> None:
        if not isinstance(comment.get("id"), int):
            raise SourceProtocolError(
                self.client.comments_url(number),
                message="malformed comment object",
            )
        comment_id: int = comment["id"]

        author = github_author(comment)
        date = comment.get("updated_at")
        mapping_rel = f"{self.mapping_dir}/{number}/{COMMENTS_DIR}/{comment_id}"
        mapping = tx.path(mapping_rel)

        created = not mapping.exists()
        if created:
            csha = tx.mark(
                "gi: Add comment",
                GRAMMAR_COMMENT_MARK.format(issue=issue_id),
                author=author,
                author_date=date,
            )
            tx.write(mapping_rel, f"{csha}\n")
        else:
            csha = mapping.read_text(encoding="utf-8").strip()

        body = (comment.get("body") or "").replace("\r", "") + "\n"
        rel = comment_path(issue_id, csha)
        target = tx.path(rel)
        if not target.exists() or target.read_text(encoding="utf-8") != body:
            tx.write(rel, body)

        if tx.git.index_matches_head():
            return
        url = comment.get("html_url") or f"{self.client.project_url}/{number}"
        tx.commit(
            "gi: Import comment message",
            GRAMMAR_COMMENT_MESSAGE.format(issue=issue_id, comment=csha)
            + f"\nComment URL: {url}",
            author=author,
            author_date=date,
        )
        if created:
            self.summary.comments_created += 1
        else:
            self.summary.comments_updated += 1
        event = (
            f"Imported/updated issue #{number} comment {comment_id} "
            f"as {tx.git.short(csha)}"
        )
        self.summary.events.append(event)
        logger.info(event)
