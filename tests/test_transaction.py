"""Tests for all-or-nothing transactions."""

from __future__ import annotations

import fcntl
import threading
from typing import TYPE_CHECKING

import pytest

from gitissue.errors import DuplicateEntry, TransactionAbort
from gitissue.transaction import Transaction, TxState

if TYPE_CHECKING:
    from conftest import IssuesRepo


class TestLifecycle:
    """Test state transitions."""

    def test_commit_path(self, issues_repo: IssuesRepo) -> None:
        """A clean exit commits and records every commit made."""
        with Transaction.begin(issues_repo.store) as tx:
            assert tx.state is TxState.STARTED
            tx.write("notes", "hello\n")
            sha = tx.commit("gi: Add notes", "gi notes add hello")
        assert tx.state is TxState.COMMITTED
        assert tx.commits == [sha]
        assert issues_repo.head() == sha
        assert issues_repo.message() == "gi: Add notes\n\ngi notes add hello"
        assert issues_repo.status() == ""

    def test_start_twice_fails(self, issues_repo: IssuesRepo) -> None:
        """A transaction cannot be restarted."""
        tx = Transaction.begin(issues_repo.store)
        try:
            with pytest.raises(RuntimeError):
                tx.start()
        finally:
            tx.finish()

    def test_steps_require_started(self, issues_repo: IssuesRepo) -> None:
        """Writes outside a started transaction are refused."""
        tx = Transaction(issues_repo.store)
        with pytest.raises(RuntimeError):
            tx.write("notes", "x\n")

    def test_marker_commits_are_empty(self, issues_repo: IssuesRepo) -> None:
        """A marker commit changes no files and yields a fresh id."""
        before = issues_repo.head()
        with Transaction.begin(issues_repo.store) as tx:
            first = tx.mark("gi: Add issue", "gi new mark")
            second = tx.mark("gi: Add issue", "gi new mark")
        assert first != second
        diff = issues_repo.git("diff", "--name-only", before, second).stdout
        assert diff == ""

    def test_author_and_date_override(self, issues_repo: IssuesRepo) -> None:
        """Commits can be attributed to another author at another time."""
        with Transaction.begin(issues_repo.store) as tx:
            sha = tx.mark(
                "gi: Add issue",
                "gi new mark",
                author="octocat <octocat@users.noreply.github.com>",
                author_date="2020-02-03T04:05:06Z",
            )
        out = issues_repo.git("log", "-1", "--format=%an|%ae|%aI", sha).stdout.strip()
        assert out == (
            "octocat|octocat@users.noreply.github.com|2020-02-03T04:05:06+00:00"
        )

    def test_lock_file_lives_in_git_dir(self, issues_repo: IssuesRepo) -> None:
        """The writer lock is kept where rollback cannot remove it."""
        with Transaction.begin(issues_repo.store):
            assert (issues_repo.root / ".git" / "gi.lock").exists()
        assert issues_repo.status() == ""

    def test_second_writer_waits_for_lock(self, issues_repo: IssuesRepo) -> None:
        """Starting while another writer holds the lock blocks until release."""
        lock_path = issues_repo.root / ".git" / "gi.lock"
        tx = Transaction(issues_repo.store)
        with lock_path.open("w") as held:
            fcntl.flock(held, fcntl.LOCK_EX)
            waiter = threading.Thread(target=tx.start)
            waiter.start()
            waiter.join(timeout=0.5)
            assert waiter.is_alive()
            assert tx.state is TxState.IDLE
            fcntl.flock(held, fcntl.LOCK_UN)
        waiter.join(timeout=10)
        assert not waiter.is_alive()
        assert tx.state is TxState.STARTED
        tx.finish()


class TestRollback:
    """Test that failures leave the repository exactly as it was."""

    def test_rollback_restores_everything(self, issues_repo: IssuesRepo) -> None:
        """Commits, modified files and new files all disappear on failure."""
        start = issues_repo.head()
        before = issues_repo.snapshot()
        count = issues_repo.commit_count()

        with pytest.raises(TransactionAbort, match="boom"):
            with Transaction.begin(issues_repo.store) as tx:
                tx.mark("gi: Add issue", "gi new mark")
                tx.write("README.md", "overwritten\n")
                tx.write("issues/ab/cdef/tags", "open\n")
                (issues_repo.root / "stray").write_text("untracked\n")
                raise ValueError("boom")

        assert tx.state is TxState.ABORTED
        assert issues_repo.head() == start
        assert issues_repo.commit_count() == count
        assert issues_repo.snapshot() == before
        assert issues_repo.status() == ""

    def test_domain_errors_propagate_unchanged(self, issues_repo: IssuesRepo) -> None:
        """gitissue errors keep their type after the rollback."""
        start = issues_repo.head()
        with pytest.raises(DuplicateEntry):
            with Transaction.begin(issues_repo.store) as tx:
                tx.mark("gi: Add issue", "gi new mark")
                raise DuplicateEntry("bug")
        assert issues_repo.head() == start

    def test_failed_git_step_aborts(self, issues_repo: IssuesRepo) -> None:
        """A failing git command aborts and rolls back earlier commits."""
        start = issues_repo.head()
        with pytest.raises(TransactionAbort, match="Operation aborted"):
            with Transaction.begin(issues_repo.store) as tx:
                tx.mark("gi: Add issue", "gi new mark")
                tx.stage("does/not/exist")
        assert issues_repo.head() == start
        assert issues_repo.status() == ""

    def test_explicit_abort(self, issues_repo: IssuesRepo) -> None:
        """abort() rolls back and raises with the reason."""
        start = issues_repo.head()
        tx = Transaction.begin(issues_repo.store)
        tx.write("notes", "x\n")
        with pytest.raises(TransactionAbort, match="Operation aborted: no reason"):
            tx.abort("no reason")
        assert tx.state is TxState.ABORTED
        assert issues_repo.head() == start
        assert not (issues_repo.root / "notes").exists()

    def test_delete_is_rolled_back(self, issues_repo: IssuesRepo) -> None:
        """Deleted tracked files come back after a failure."""
        readme = issues_repo.root / "README.md"
        content = readme.read_bytes()
        with pytest.raises(TransactionAbort):
            with Transaction.begin(issues_repo.store) as tx:
                tx.delete("README.md")
                tx.commit("gi: Remove readme", "gi readme remove")
                raise OSError("disk full")
        assert readme.read_bytes() == content
