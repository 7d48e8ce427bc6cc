"""Issue creation, commenting and editing commands for the gitissue CLI."""

from __future__ import annotations

import typer

from gitissue.operations import AddComment, EditDescription, NewIssue

from ._helpers import get_settings, get_store, make_editor, run_and_report
from ._json_state import echo_error


def register(app: typer.Typer) -> None:
    """Register new, comment and edit commands."""

    @app.command()
    def new(
        summary: str = typer.Option(
            None,
            "--summary",
            "-s",
            help="One-line summary; skips the editor",
        ),
    ) -> None:
        """Create a new open issue."""
        try:
            store = get_store()
            editor = None
            if not summary:
                editor = make_editor(store, get_settings(store))
            run_and_report(NewIssue(summary=summary, editor=editor), store)
        except typer.Exit:
            raise
        except Exception as e:
            echo_error(str(e))
            raise typer.Exit(1)

    @app.command()
    def comment(
        issue_id: str = typer.Argument(..., help="Issue ID (may be abbreviated)"),
        message: str = typer.Option(
            None,
            "--message",
            "-m",
            help="Comment text; skips the editor",
        ),
    ) -> None:
        """Add a comment to an issue."""
        try:
            store = get_store()
            editor = None
            if not message:
                editor = make_editor(store, get_settings(store))
            run_and_report(
                AddComment(issue=issue_id, text=message, editor=editor),
                store,
            )
        except typer.Exit:
            raise
        except Exception as e:
            echo_error(str(e))
            raise typer.Exit(1)

    @app.command()
    def edit(
        issue_id: str = typer.Argument(..., help="Issue ID (may be abbreviated)"),
    ) -> None:
        """Edit an issue's description."""
        try:
            store = get_store()
            editor = make_editor(store, get_settings(store))
            run_and_report(EditDescription(issue=issue_id, editor=editor), store)
        except typer.Exit:
            raise
        except Exception as e:
            echo_error(str(e))
            raise typer.Exit(1)
