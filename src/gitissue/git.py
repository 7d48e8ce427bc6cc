"""Thin wrapper around the git command line."""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path

from gitissue.errors import GitError

logger = logging.getLogger(__name__)


class Git:
    """Run git commands inside one working tree."""

    def __init__(self, cwd: str | Path) -> None:
        self.cwd = Path(cwd)

    def run(
        self,
        *args: str,
        env: dict[str, str] | None = None,
        check: bool = True,
    ) -> subprocess.CompletedProcess[str]:
        """Run ``git <args>`` and return the completed process.

        Args:
            args: Arguments passed to git.
            env: Extra environment variables layered over ``os.environ``.
            check: If True, raise :class:`GitError` on a non-zero exit.

        Raises:
            GitError: If the command fails and ``check`` is set.
        """
        logger.debug("git %s (cwd=%s)", " ".join(args), self.cwd)
        full_env = {**os.environ, **env} if env else None
        result = subprocess.run(
            ["git", *args],
            capture_output=True,
            text=True,
            check=False,
            cwd=str(self.cwd),
            env=full_env,
        )
        if check and result.returncode != 0:
            raise GitError(list(args), result.returncode, result.stderr)
        return result

    def head(self) -> str | None:
        """Return the HEAD commit hash, or None if there are no commits yet."""
        result = self.run("rev-parse", "--verify", "--quiet", "HEAD", check=False)
        if result.returncode != 0:
            return None
        return result.stdout.strip()

    def short(self, sha: str) -> str:
        """Return the abbreviated form of ``sha``."""
        return self.run("rev-parse", "--short", sha).stdout.strip()

    def index_matches_head(self) -> bool:
        """Check whether the staged tree is identical to HEAD's tree."""
        args = ["diff", "--cached", "--quiet", "HEAD"]
        result = self.run(*args, check=False)
        if result.returncode not in (0, 1):
            raise GitError(args, result.returncode, result.stderr)
        return result.returncode == 0

    def show_format(self, sha: str, fmt: str) -> str:
        """Return ``git show --no-patch --format=<fmt> <sha>`` output."""
        return self.run("show", "--no-patch", f"--format={fmt}", sha).stdout

    def log_grep(
        self,
        pattern: str,
        fmt: str = "%H",
        *,
        reverse: bool = True,
    ) -> list[str]:
        """Return one formatted line per commit whose message matches ``pattern``."""
        args = ["log", f"--grep={pattern}", f"--format={fmt}"]
        if reverse:
            args.insert(1, "--reverse")
        output = self.run(*args).stdout
        return [line for line in output.splitlines() if line]

    def log_path(self, path: str, fmt: str) -> list[str]:
        """Return one formatted line per commit touching ``path``, oldest first."""
        output = self.run("log", "--reverse", f"--format={fmt}", "--", path).stdout
        return [line for line in output.splitlines() if line]

    def git_dir(self) -> Path:
        """Return the absolute path of the repository's .git directory."""
        raw = self.run("rev-parse", "--git-dir").stdout.strip()
        path = Path(raw)
        if not path.is_absolute():
            path = self.cwd / path
        return path.resolve()
