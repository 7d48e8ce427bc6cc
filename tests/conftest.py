"""Pytest configuration and shared fixtures."""

import subprocess
from dataclasses import dataclass
from pathlib import Path

import pytest

from gitissue.operations import NewIssue, init_repository, run
from gitissue.store import IssueStore

# Environment variables that give git a fixed identity and skip
# system/global config lookups, so tests never depend on the user's setup.
_GIT_TEST_ENV = {
    "GIT_CONFIG_NOSYSTEM": "1",
    "HOME": "/dev/null",
    "GIT_AUTHOR_NAME": "Test",
    "GIT_AUTHOR_EMAIL": "test@test.com",
    "GIT_COMMITTER_NAME": "Test",
    "GIT_COMMITTER_EMAIL": "test@test.com",
    "GIT_TERMINAL_PROMPT": "0",
}

# Settings the user's environment may carry that would leak into tests
_UNSET_ENV = (
    "VISUAL",
    "EDITOR",
    "PAGER",
    "GI_GITHUB_TOKEN",
    "GIT_DIR",
    "GIT_WORK_TREE",
)


@pytest.fixture(autouse=True)
def _git_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Run every test with a fixed git identity and no user configuration."""
    for key, value in _GIT_TEST_ENV.items():
        monkeypatch.setenv(key, value)
    for key in _UNSET_ENV:
        monkeypatch.delenv(key, raising=False)


@dataclass
class IssuesRepo:
    """A temporary, initialized .issues repository."""

    path: Path
    root: Path
    store: IssueStore

    def git(self, *args: str, check: bool = True) -> subprocess.CompletedProcess[str]:
        """Run a git command in the .issues repository."""
        return subprocess.run(
            ["git", *args],
            cwd=self.root,
            capture_output=True,
            text=True,
            check=check,
        )

    def head(self) -> str:
        """Return the current HEAD commit hash."""
        return self.git("rev-parse", "HEAD").stdout.strip()

    def commit_count(self) -> int:
        """Return the number of commits on the current branch."""
        return int(self.git("rev-list", "--count", "HEAD").stdout.strip())

    def message(self, rev: str = "HEAD") -> str:
        """Return the full commit message of ``rev``."""
        return self.git("log", "-1", "--format=%B", rev).stdout.strip()

    def subjects(self, count: int) -> list[str]:
        """Return the subjects of the last ``count`` commits, newest first."""
        out = self.git("log", f"-{count}", "--format=%s").stdout
        return out.splitlines()

    def status(self) -> str:
        """Return ``git status --porcelain`` output (empty when clean)."""
        return self.git("status", "--porcelain", "--untracked-files=all").stdout

    def snapshot(self) -> dict[str, bytes]:
        """Return the content of every file outside .git, keyed by relative path."""
        return {
            p.relative_to(self.root).as_posix(): p.read_bytes()
            for p in sorted(self.root.rglob("*"))
            if p.is_file() and ".git" not in p.relative_to(self.root).parts
        }

    def issue_file(self, issue_id: str, name: str) -> Path:
        """Return the path of one attribute file of an issue."""
        return self.store.issue_dir(issue_id) / name


@pytest.fixture
def issues_repo(tmp_path: Path) -> IssuesRepo:
    """Create a temporary project with an initialized .issues repository."""
    init_repository(tmp_path)
    root = tmp_path / ".issues"
    return IssuesRepo(path=tmp_path, root=root, store=IssueStore(root))


@pytest.fixture
def issue_id(issues_repo: IssuesRepo) -> str:
    """Create one open issue and return its full id."""
    result = run(NewIssue(summary="Crash on startup"), issues_repo.store)
    assert result.issue_id is not None
    return result.issue_id
