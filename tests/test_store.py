"""Tests for issue paths and identifier resolution."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from gitissue.errors import AmbiguousOrUnknownIdentifier, NotARepository
from gitissue.store import (
    IssueStore,
    comment_path,
    find_issues_root,
    full_path,
    id_from_path,
)

if TYPE_CHECKING:
    from pathlib import Path

    from conftest import IssuesRepo

SHA = "3fa9c1d2e4b5a6978877665544332211aabbccdd"


class TestPaths:
    """Test the two-level issue layout."""

    def test_full_path_shards_on_first_two_chars(self) -> None:
        """The first two characters form the shard directory."""
        assert full_path(SHA) == f"issues/3f/{SHA[2:]}"

    def test_id_from_path_round_trips(self) -> None:
        """The id is recovered from its own directory."""
        assert id_from_path(full_path(SHA)) == SHA

    def test_id_from_path_ignores_trailing_components(self) -> None:
        """A file inside an issue directory yields the issue id."""
        assert id_from_path(f"{full_path(SHA)}/comments/abc123") == SHA
        assert id_from_path(f"/tmp/x/.issues/{full_path(SHA)}/tags") == SHA

    def test_id_from_path_rejects_other_paths(self) -> None:
        """Paths outside issues/ are not issue paths."""
        with pytest.raises(ValueError, match="Not an issue path"):
            id_from_path("imports/github/octo/demo/1/sha")

    def test_comment_path(self) -> None:
        """Comments live in the issue's comments directory."""
        assert comment_path(SHA, "c0ffee") == f"{full_path(SHA)}/comments/c0ffee"


class TestFindIssuesRoot:
    """Test upward discovery of .issues."""

    def test_finds_in_parent(self, tmp_path: Path) -> None:
        """A nested directory finds the .issues of an ancestor."""
        (tmp_path / ".issues").mkdir()
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_issues_root(nested) == tmp_path.resolve() / ".issues"

    def test_missing_raises(self, tmp_path: Path) -> None:
        """No .issues anywhere up the tree is an error."""
        with pytest.raises(NotARepository):
            find_issues_root(tmp_path)


class TestResolve:
    """Test abbreviated identifier resolution."""

    def _make(self, store: IssueStore, issue_id: str) -> None:
        store.issue_dir(issue_id).mkdir(parents=True)

    def test_unique_prefix(self, tmp_path: Path) -> None:
        """A prefix matching one issue resolves to its path."""
        store = IssueStore(tmp_path)
        self._make(store, SHA)
        assert store.resolve("3fa9") == full_path(SHA)
        assert store.resolve_id("3fa9") == SHA

    def test_full_id_and_uppercase(self, tmp_path: Path) -> None:
        """Full ids resolve and hex case does not matter."""
        store = IssueStore(tmp_path)
        self._make(store, SHA)
        assert store.resolve_id(SHA.upper()) == SHA

    def test_ambiguous_prefix(self, tmp_path: Path) -> None:
        """A prefix shared by two issues is rejected."""
        store = IssueStore(tmp_path)
        self._make(store, SHA)
        self._make(store, "3fa9" + "0" * 36)
        with pytest.raises(AmbiguousOrUnknownIdentifier, match="3fa9"):
            store.resolve("3fa9")

    def test_two_character_prefix_with_two_issues(self, tmp_path: Path) -> None:
        """The shard alone is ambiguous when it holds several issues."""
        store = IssueStore(tmp_path)
        self._make(store, SHA)
        self._make(store, "3f" + "1" * 38)
        with pytest.raises(AmbiguousOrUnknownIdentifier):
            store.resolve("3f")

    @pytest.mark.parametrize("bad", ["", "3", "zz12", "3fa9/..", "dead"])
    def test_unknown_or_malformed(self, tmp_path: Path, bad: str) -> None:
        """Too short, non-hex or unmatched ids are rejected."""
        store = IssueStore(tmp_path)
        self._make(store, SHA)
        with pytest.raises(AmbiguousOrUnknownIdentifier):
            store.resolve(bad)

    def test_list_issue_ids(self, issues_repo: IssuesRepo, issue_id: str) -> None:
        """Listing returns the full ids of existing issues."""
        assert issues_repo.store.list_issue_ids() == [issue_id]

    def test_id_is_the_marker_commit(
        self,
        issues_repo: IssuesRepo,
        issue_id: str,
    ) -> None:
        """An issue id names the commit that created the issue."""
        body = issues_repo.git("log", "-1", "--format=%B", issue_id).stdout
        assert body.splitlines()[2] == "gi new mark"
