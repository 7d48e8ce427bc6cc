"""Mutating operations on the issues repository.

Every command that changes the repository is one :class:`Operation`.  An
operation first checks its preconditions in :meth:`Operation.prepare`
(identifier resolution, value validation) without touching history, then
performs its writes and commits in :meth:`Operation.execute` inside a
:class:`~gitissue.transaction.Transaction`.  :func:`run` ties the two
together, so a failing step always leaves the repository as it was.
"""

from __future__ import annotations

import logging
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, ClassVar

from gitissue import entries
from gitissue.config import CONFIG_FILENAME, save_config
from gitissue.constants import (
    CLOSED_TAG,
    COMMENT_TEMPLATE,
    DEFAULT_TAG,
    DESCRIPTION_FILE,
    DESCRIPTION_TEMPLATE,
    GRAMMAR_COMMENT_MARK,
    GRAMMAR_COMMENT_MESSAGE,
    GRAMMAR_EDIT_DESCRIPTION,
    GRAMMAR_FIELD,
    GRAMMAR_INIT,
    GRAMMAR_NEW_DESCRIPTION,
    GRAMMAR_NEW_MARK,
    ISSUES_DIRNAME,
    README_TEXT,
    TAGS_FILE,
    TEMPLATES_SUBDIR,
)
from gitissue.errors import (
    AlreadyInitialized,
    DuplicateEntry,
    EntryNotFound,
    FieldNotSet,
    GitError,
    InvalidFieldValue,
)
from gitissue.models import (
    Duration,
    Field,
    format_duedate,
    is_past,
    parse_duedate,
    parse_weight,
)
from gitissue.store import IssueStore, comment_path, full_path
from gitissue.transaction import Transaction

if TYPE_CHECKING:
    from collections.abc import Callable

    # Receives the initial text (a template or the current content) and
    # returns the text the user wants stored.
    TextEditor = Callable[[str], str]

logger = logging.getLogger(__name__)


class OperationKind(str, Enum):
    """The closed set of repository mutations."""

    INIT = "init"
    NEW = "new"
    COMMENT = "comment"
    EDIT = "edit"
    ENTRY_ADD = "entry-add"
    ENTRY_REMOVE = "entry-remove"
    FIELD_SET = "field-set"
    FIELD_REMOVE = "field-remove"
    CLOSE = "close"
    IMPORT = "import"


@dataclass
class OperationResult:
    """Outcome of a successfully committed operation."""

    kind: OperationKind
    message: str
    issue_id: str | None = None
    commits: list[str] = field(default_factory=list[str])
    warnings: list[str] = field(default_factory=list[str])


class Operation(ABC):
    """One logical mutation, executed inside a single transaction."""

    kind: ClassVar[OperationKind]

    def prepare(self, store: IssueStore) -> None:  # noqa: B027
        """Check preconditions before the transaction starts."""

    @abstractmethod
    def execute(self, tx: Transaction) -> OperationResult:
        """Perform the writes and commits of this operation."""

    def _result(
        self,
        tx: Transaction,
        message: str,
        issue_id: str | None = None,
    ) -> OperationResult:
        return OperationResult(
            kind=self.kind,
            message=message,
            issue_id=issue_id,
            commits=list(tx.commits),
        )


def run(operation: Operation, store: IssueStore) -> OperationResult:
    """Prepare ``operation`` and execute it in a fresh transaction.

    Raises:
        GitIssueError: Precondition failures surface unchanged;
            failures inside the transaction surface as TransactionAbort
            after the repository has been rolled back
    """
    operation.prepare(store)
    logger.debug("Running %s", operation.kind.value)
    with Transaction.begin(store) as tx:
        return operation.execute(tx)


# -- Repository creation ---------------------------------------------------


@dataclass
class InitRepository(Operation):
    """Populate a freshly created .issues repository and commit it."""

    kind: ClassVar[OperationKind] = OperationKind.INIT

    def execute(self, tx: Transaction) -> OperationResult:
        save_config(tx.store.root, {})
        tx.stage(CONFIG_FILENAME)
        tx.write(f"{TEMPLATES_SUBDIR}/description", DESCRIPTION_TEMPLATE)
        tx.write(f"{TEMPLATES_SUBDIR}/comment", COMMENT_TEMPLATE)
        tx.write("README.md", README_TEXT)
        tx.commit("gi: Initialize issues repository", GRAMMAR_INIT)
        return self._result(
            tx,
            f"Initialized empty issues repository in {tx.store.root}",
        )


def init_repository(base_dir: str | Path, existing: bool = False) -> OperationResult:
    """Create ``.issues`` under ``base_dir`` and commit its skeleton.

    Args:
        base_dir: Directory that will contain .issues
        existing: Use the enclosing project's git repository instead of
            creating a new one inside .issues

    Raises:
        AlreadyInitialized: If .issues already exists
    """
    root = Path(base_dir).resolve() / ISSUES_DIRNAME
    if root.exists():
        msg = f"An {ISSUES_DIRNAME} directory is already present"
        raise AlreadyInitialized(msg)
    root.mkdir(parents=True)
    store = IssueStore(root)
    try:
        if existing:
            store.git.run("rev-parse", "--git-dir")
        else:
            store.git.run("init", "-q")
    except GitError:
        root.rmdir()
        raise
    return run(InitRepository(), store)


# -- Issues and comments ---------------------------------------------------


def _template(store: IssueStore, name: str, fallback: str) -> str:
    path = store.root / TEMPLATES_SUBDIR / name
    return path.read_text(encoding="utf-8") if path.exists() else fallback


@dataclass
class NewIssue(Operation):
    """Open a new issue tagged ``open``.

    The issue id is minted by an empty marker commit before the description
    is written, because the description's location depends on that id.
    """

    kind: ClassVar[OperationKind] = OperationKind.NEW

    summary: str | None = None
    editor: TextEditor | None = None

    def prepare(self, store: IssueStore) -> None:
        if not self.summary and self.editor is None:
            msg = "An issue needs a summary or an editor"
            raise InvalidFieldValue(msg)

    def execute(self, tx: Transaction) -> OperationResult:
        sha = tx.mark("gi: Add issue", GRAMMAR_NEW_MARK)
        path = full_path(sha)
        tx.write(f"{path}/{TAGS_FILE}", f"{DEFAULT_TAG}\n")
        if self.summary:
            description = f"{self.summary}\n"
        else:
            assert self.editor is not None
            description = self.editor(
                _template(tx.store, "description", DESCRIPTION_TEMPLATE),
            )
        tx.write(f"{path}/{DESCRIPTION_FILE}", description)
        tx.commit(
            "gi: Add issue description",
            GRAMMAR_NEW_DESCRIPTION.format(issue=sha),
        )
        return self._result(tx, f"Added issue {tx.git.short(sha)}", issue_id=sha)


@dataclass
class AddComment(Operation):
    """Attach a comment to an issue; the comment id is its marker commit."""

    kind: ClassVar[OperationKind] = OperationKind.COMMENT

    issue: str
    text: str | None = None
    editor: TextEditor | None = None
    issue_id: str = field(init=False, default="")

    def prepare(self, store: IssueStore) -> None:
        self.issue_id = store.resolve_id(self.issue)
        if not self.text and self.editor is None:
            msg = "A comment needs a text or an editor"
            raise InvalidFieldValue(msg)

    def execute(self, tx: Transaction) -> OperationResult:
        csha = tx.mark(
            "gi: Add comment",
            GRAMMAR_COMMENT_MARK.format(issue=self.issue_id),
        )
        if self.text:
            text = self.text if self.text.endswith("\n") else f"{self.text}\n"
        else:
            assert self.editor is not None
            text = self.editor(_template(tx.store, "comment", COMMENT_TEMPLATE))
        tx.write(comment_path(self.issue_id, csha), text)
        tx.commit(
            "gi: Add comment message",
            GRAMMAR_COMMENT_MESSAGE.format(issue=self.issue_id, comment=csha),
        )
        return self._result(
            tx,
            f"Added comment {tx.git.short(csha)}",
            issue_id=self.issue_id,
        )


@dataclass
class EditDescription(Operation):
    """Replace an issue's description with edited text."""

    kind: ClassVar[OperationKind] = OperationKind.EDIT

    issue: str
    editor: TextEditor
    issue_id: str = field(init=False, default="")

    def prepare(self, store: IssueStore) -> None:
        self.issue_id = store.resolve_id(self.issue)

    def execute(self, tx: Transaction) -> OperationResult:
        rel = f"{full_path(self.issue_id)}/{DESCRIPTION_FILE}"
        current = tx.path(rel)
        text = self.editor(
            current.read_text(encoding="utf-8") if current.exists() else "",
        )
        tx.write(rel, text)
        tx.commit(
            "gi: Edit issue description",
            GRAMMAR_EDIT_DESCRIPTION.format(issue=self.issue_id),
        )
        return self._result(
            tx,
            f"Edited issue {tx.git.short(self.issue_id)}",
            issue_id=self.issue_id,
        )


# -- Entry sets: tags, assignees, watchers ----------------------------------


@dataclass
class EntryChange(Operation):
    """Add an entry to, or remove it from, one of an issue's entry sets."""

    attr: Field
    issue: str
    entry: str
    remove: bool = False
    issue_id: str = field(init=False, default="")

    @property
    def kind(self) -> OperationKind:  # type: ignore[override]
        return OperationKind.ENTRY_REMOVE if self.remove else OperationKind.ENTRY_ADD

    def prepare(self, store: IssueStore) -> None:
        if not self.attr.is_set:
            msg = f"{self.attr.value} is not a multi-valued field"
            raise InvalidFieldValue(msg)
        if not self.entry or "\n" in self.entry:
            msg = f"Invalid {self.attr.value} entry: {self.entry!r}"
            raise InvalidFieldValue(msg)
        self.issue_id = store.resolve_id(self.issue)
        present = entries.read_entries(
            store.issue_dir(self.issue_id) / self.attr.filename,
        )
        if self.remove and self.entry not in present:
            raise EntryNotFound(self.attr.value, self.entry)
        if not self.remove and self.entry in present:
            raise DuplicateEntry(self.entry)

    def execute(self, tx: Transaction) -> OperationResult:
        name = self.attr.value
        rel = f"{full_path(self.issue_id)}/{self.attr.filename}"
        if self.remove:
            entries.remove(tx.path(rel), self.entry, name)
            tx.stage(rel)
            tx.commit(
                f"gi: Remove {name}",
                GRAMMAR_FIELD.format(field=name, action="remove", value=self.entry),
            )
            return self._result(tx, f"Removed {name} {self.entry}", self.issue_id)

        entries.add(tx.path(rel), self.entry)
        tx.stage(rel)
        tx.commit(
            f"gi: Add {name}",
            GRAMMAR_FIELD.format(field=name, action="add", value=self.entry),
        )
        return self._result(tx, f"Added {name} {self.entry}", self.issue_id)


@dataclass
class CloseIssue(Operation):
    """Tag an issue ``closed`` and drop its ``open`` tag."""

    kind: ClassVar[OperationKind] = OperationKind.CLOSE

    issue: str
    issue_id: str = field(init=False, default="")
    _was_open: bool = field(init=False, default=False)

    def prepare(self, store: IssueStore) -> None:
        self.issue_id = store.resolve_id(self.issue)
        tags = entries.read_entries(store.issue_dir(self.issue_id) / TAGS_FILE)
        if CLOSED_TAG in tags:
            raise DuplicateEntry(CLOSED_TAG)
        self._was_open = DEFAULT_TAG in tags

    def execute(self, tx: Transaction) -> OperationResult:
        rel = f"{full_path(self.issue_id)}/{TAGS_FILE}"
        name = Field.TAG.value
        entries.add(tx.path(rel), CLOSED_TAG)
        tx.stage(rel)
        tx.commit(
            f"gi: Add {name}",
            GRAMMAR_FIELD.format(field=name, action="add", value=CLOSED_TAG),
        )
        if self._was_open:
            entries.remove(tx.path(rel), DEFAULT_TAG, name)
            tx.stage(rel)
            tx.commit(
                f"gi: Remove {name}",
                GRAMMAR_FIELD.format(field=name, action="remove", value=DEFAULT_TAG),
            )
        return self._result(
            tx,
            f"Closed issue {tx.git.short(self.issue_id)}",
            self.issue_id,
        )


# -- Single-valued fields --------------------------------------------------


@dataclass
class SetField(Operation):
    """Set a single-valued field (milestone, weight, due date, times)."""

    kind: ClassVar[OperationKind] = OperationKind.FIELD_SET

    attr: Field
    issue: str
    value: str
    accumulate: bool = False
    issue_id: str = field(init=False, default="")
    stored: str = field(init=False, default="")
    warnings: list[str] = field(init=False, default_factory=list[str])

    def prepare(self, store: IssueStore) -> None:
        if self.attr.is_set:
            msg = f"{self.attr.value} is a multi-valued field"
            raise InvalidFieldValue(msg)
        if self.accumulate and self.attr is not Field.TIMESPENT:
            msg = "Only time spent can be accumulated"
            raise InvalidFieldValue(msg)

        self.stored = self._normalize(self.value)
        self.issue_id = store.resolve_id(self.issue)

        if self.accumulate:
            current = store.issue_dir(self.issue_id) / self.attr.filename
            if not current.exists():
                raise FieldNotSet("time spent")
            previous = Duration(int(current.read_text(encoding="utf-8").strip()))
            self.stored = str(previous + Duration(int(self.stored)))

    def _normalize(self, value: str) -> str:
        if self.attr is Field.MILESTONE:
            if not value.strip() or "\n" in value:
                msg = f"Invalid milestone: {value!r}"
                raise InvalidFieldValue(msg)
            return value.strip()
        if self.attr is Field.WEIGHT:
            return str(parse_weight(value))
        if self.attr is Field.DUEDATE:
            due = parse_duedate(value)
            if is_past(due):
                self.warnings.append("Warning: duedate is in the past")
            return format_duedate(due)
        return str(Duration.parse(value))

    def execute(self, tx: Transaction) -> OperationResult:
        name = self.attr.value
        rel = f"{full_path(self.issue_id)}/{self.attr.filename}"
        tx.write(rel, f"{self.stored}\n")
        tx.commit(
            f"gi: Add {name}",
            GRAMMAR_FIELD.format(field=name, action="add", value=self.stored),
        )
        result = self._result(tx, f"Added {name} {self.stored}", self.issue_id)
        result.warnings.extend(self.warnings)
        return result


@dataclass
class RemoveField(Operation):
    """Remove a single-valued field from an issue."""

    kind: ClassVar[OperationKind] = OperationKind.FIELD_REMOVE

    attr: Field
    issue: str
    issue_id: str = field(init=False, default="")
    previous: str = field(init=False, default="")

    def prepare(self, store: IssueStore) -> None:
        if self.attr.is_set:
            msg = f"{self.attr.value} is a multi-valued field"
            raise InvalidFieldValue(msg)
        self.issue_id = store.resolve_id(self.issue)
        current = store.issue_dir(self.issue_id) / self.attr.filename
        if not current.exists():
            raise FieldNotSet(self.attr.value)
        self.previous = current.read_text(encoding="utf-8").strip()

    def execute(self, tx: Transaction) -> OperationResult:
        name = self.attr.value
        tx.delete(f"{full_path(self.issue_id)}/{self.attr.filename}")
        tx.commit(
            f"gi: Remove {name}",
            GRAMMAR_FIELD.format(field=name, action="remove", value=self.previous),
        )
        return self._result(tx, f"Removed {name} {self.previous}", self.issue_id)


def clone_repository(url: str, local_dir: str | Path) -> Path:
    """Clone a remote issues repository into ``<local_dir>/.issues``."""
    target = Path(local_dir)
    target.mkdir(parents=True, exist_ok=True)
    result = subprocess.run(
        ["git", "clone", "-q", url, ISSUES_DIRNAME],
        capture_output=True,
        text=True,
        check=False,
        cwd=str(target),
    )
    if result.returncode != 0:
        raise GitError(["clone", url, ISSUES_DIRNAME], result.returncode, result.stderr)
    return target / ISSUES_DIRNAME


__all__ = [
    "AddComment",
    "CloseIssue",
    "EditDescription",
    "EntryChange",
    "InitRepository",
    "NewIssue",
    "Operation",
    "OperationKind",
    "OperationResult",
    "RemoveField",
    "SetField",
    "clone_repository",
    "init_repository",
    "run",
]
