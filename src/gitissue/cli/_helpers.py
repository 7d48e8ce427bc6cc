"""Shared infrastructure for gitissue CLI commands."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import typer
from typer.core import TyperGroup

from gitissue.config import Settings, load_settings
from gitissue.edit import edit_text
from gitissue.operations import run
from gitissue.store import IssueStore

from ._json_state import echo_json, is_json_output

if TYPE_CHECKING:
    from collections.abc import Callable

    import click

    from gitissue.operations import Operation, OperationResult


class SortedGroup(TyperGroup):
    """Typer group that lists commands in alphabetical order."""

    def list_commands(self, ctx: click.Context) -> list[str]:
        """Return commands sorted alphabetically."""
        return sorted(super().list_commands(ctx))


def get_store() -> IssueStore:
    """Open the issues repository enclosing the current directory.

    Raises:
        NotARepository: If there is none
    """
    return IssueStore.discover()


def get_settings(store: IssueStore | None) -> Settings:
    """Return the effective settings for ``store``."""
    return load_settings(store.root if store is not None else None)


def make_editor(store: IssueStore, settings: Settings) -> Callable[[str], str]:
    """Return a text editor callback that runs the user's editor.

    The scratch file lives inside the git directory so that a rollback's
    ``git clean`` never sees it.
    """
    scratch = store.git.git_dir() / f"gi-edit-{os.getpid()}"

    def editor(initial: str) -> str:
        return edit_text(initial, settings.editor, scratch)

    return editor


def run_and_report(operation: Operation, store: IssueStore) -> OperationResult:
    """Run ``operation`` and print its outcome."""
    result = run(operation, store)
    if is_json_output():
        echo_json(
            {
                "kind": result.kind.value,
                "message": result.message,
                "issue_id": result.issue_id,
                "commits": result.commits,
                "warnings": result.warnings,
            },
        )
        return result
    for warning in result.warnings:
        typer.echo(warning, err=True)
    typer.echo(f"✓ {result.message}")
    return result
