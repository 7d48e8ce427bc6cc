"""All-or-nothing mutation of the issues repository.

A :class:`Transaction` brackets a sequence of working-tree writes and git
commits.  It records HEAD when it starts; if any step fails, the working
tree, the index and the branch are reset to that revision and untracked
files created in the meantime are removed, so no later command ever observes
a half-applied change.

Typical use::

    with Transaction.begin(store) as tx:
        issue_id = tx.mark("gi: Add issue", GRAMMAR_NEW_MARK)
        tx.write(f"{full_path(issue_id)}/tags", "open\\n")
        tx.commit("gi: Add issue description", ...)

Only one transaction may run against a repository at a time; the
single-writer rule is enforced with an advisory lock inside ``.git``.
"""

from __future__ import annotations

import fcntl
import logging
from enum import Enum
from typing import IO, TYPE_CHECKING, NoReturn

from gitissue.constants import LOCK_FILENAME
from gitissue.errors import GitError, GitIssueError, TransactionAbort

if TYPE_CHECKING:
    from pathlib import Path
    from types import TracebackType

    from typing_extensions import Self

    from gitissue.store import IssueStore

logger = logging.getLogger(__name__)


class TxState(str, Enum):
    """Transaction lifecycle state."""

    IDLE = "idle"
    STARTED = "started"
    COMMITTED = "committed"
    ABORTED = "aborted"


class Transaction:
    """Explicit transaction context passed to every mutating call."""

    def __init__(self, store: IssueStore) -> None:
        self.store = store
        self.git = store.git
        self.state = TxState.IDLE
        self.start_revision: str | None = None
        self.staged: list[str] = []
        self.commits: list[str] = []
        self._lock_fd: IO[str] | None = None

    @classmethod
    def begin(cls, store: IssueStore) -> Self:
        """Create and start a transaction on ``store``."""
        tx = cls(store)
        tx.start()
        return tx

    # -- Lifecycle -------------------------------------------------------

    def start(self) -> None:
        """Record the current HEAD and enter the STARTED state.

        Raises:
            RuntimeError: If the transaction is not idle
        """
        if self.state is not TxState.IDLE:
            msg = f"Cannot start a transaction in state {self.state.value}"
            raise RuntimeError(msg)
        self._acquire_lock()
        self.start_revision = self.git.head()
        self.state = TxState.STARTED
        logger.debug("Transaction started at %s", self.start_revision)

    def finish(self) -> None:
        """Mark the transaction committed and release the repository lock."""
        self._require_started()
        self.state = TxState.COMMITTED
        self._release_lock()
        logger.debug("Transaction committed (%d commits)", len(self.commits))

    def abort(self, reason: str = "") -> NoReturn:
        """Roll the repository back to the start revision and raise.

        Raises:
            TransactionAbort: Always
        """
        self._rollback()
        raise TransactionAbort(reason)

    def __enter__(self) -> Self:
        if self.state is TxState.IDLE:
            self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        if exc is None:
            if self.state is TxState.STARTED:
                self.finish()
            return False
        if self.state is TxState.STARTED:
            self._rollback()
        if isinstance(exc, GitIssueError) or not isinstance(exc, Exception):
            return False
        raise TransactionAbort(str(exc)) from exc

    # -- Steps -----------------------------------------------------------

    def path(self, rel_path: str) -> Path:
        """Return the absolute working-tree path of ``rel_path``."""
        return self.store.root / rel_path

    def stage(self, *rel_paths: str) -> None:
        """Stage working-tree files for the next commit (``git add``)."""
        self._require_started()
        if not rel_paths:
            return
        self._step("add", "--", *rel_paths)
        self.staged.extend(rel_paths)

    def write(self, rel_path: str, text: str) -> None:
        """Write ``text`` to a working-tree file and stage it."""
        self._require_started()
        target = self.path(rel_path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(text, encoding="utf-8")
        except OSError as e:
            self.abort(f"Unable to write {rel_path}: {e}")
        self.stage(rel_path)

    def delete(self, rel_path: str) -> None:
        """Remove a file from the working tree and the index (``git rm``)."""
        self._require_started()
        self._step("rm", "-q", "-f", "--ignore-unmatch", "--", rel_path)
        self.path(rel_path).unlink(missing_ok=True)
        self.staged.append(rel_path)

    def commit(
        self,
        summary: str,
        detail: str,
        *,
        author: str | None = None,
        author_date: str | None = None,
    ) -> str:
        """Create one commit from the staged changes and return its hash.

        Empty commits are allowed: marker commits carry no content because
        the entity identifier is the hash of the commit itself.

        Args:
            summary: Subject line of the commit
            detail: Body of the commit; its first line follows the gi grammar
            author: Optional ``Name <email>`` overriding the commit author
            author_date: Optional author timestamp (e.g. ISO-8601)
        """
        self._require_started()
        args = ["commit", "--allow-empty", "-q", "-m", f"{summary}\n\n{detail}"]
        if author:
            args.append(f"--author={author}")
        env = {"GIT_AUTHOR_DATE": author_date} if author_date else None
        self._step(*args, env=env)
        sha = self.git.head()
        if sha is None:
            self.abort("commit did not produce a revision")
        self.commits.append(sha)
        self.staged.clear()
        logger.info("Committed %s: %s", sha[:7], summary)
        return sha

    def mark(
        self,
        summary: str,
        detail: str,
        *,
        author: str | None = None,
        author_date: str | None = None,
    ) -> str:
        """Create an empty marker commit and return its hash as a new identifier."""
        return self.commit(summary, detail, author=author, author_date=author_date)

    # -- Internals -------------------------------------------------------

    def _require_started(self) -> None:
        if self.state is not TxState.STARTED:
            msg = f"Transaction is {self.state.value}, not started"
            raise RuntimeError(msg)

    def _step(self, *args: str, env: dict[str, str] | None = None) -> None:
        """Run one git step, aborting the transaction if it fails."""
        try:
            self.git.run(*args, env=env)
        except GitError as e:
            self.abort(str(e))

    def _rollback(self) -> None:
        """Reset working tree, index and branch to the start revision."""
        logger.info("Rolling back to %s", self.start_revision or "empty repository")
        if self.start_revision is not None:
            steps: list[list[str]] = [
                ["reset", "-q", self.start_revision],
                ["clean", "-qfd"],
                ["checkout", "--", "."],
            ]
        else:
            steps = [
                ["rm", "-r", "-q", "--cached", "--ignore-unmatch", "."],
                ["clean", "-qfd"],
            ]
        for args in steps:
            result = self.git.run(*args, check=False)
            if result.returncode != 0:
                logger.error(
                    "Rollback step 'git %s' failed: %s",
                    " ".join(args),
                    result.stderr.strip(),
                )
        self.staged.clear()
        self.state = TxState.ABORTED
        self._release_lock()

    def _acquire_lock(self) -> None:
        lock_path = self.git.git_dir() / LOCK_FILENAME
        self._lock_fd = lock_path.open("w")
        fcntl.flock(self._lock_fd, fcntl.LOCK_EX)

    def _release_lock(self) -> None:
        if self._lock_fd is None:
            return
        fcntl.flock(self._lock_fd, fcntl.LOCK_UN)
        self._lock_fd.close()
        self._lock_fd = None
