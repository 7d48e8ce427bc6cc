"""Tag, assignee, watcher and close commands for the gitissue CLI."""

from __future__ import annotations

import typer

from gitissue.models import Field
from gitissue.operations import CloseIssue, EntryChange

from ._helpers import get_store, run_and_report
from ._json_state import echo_error


def _change_entries(
    attr: Field, issue_id: str, values: list[str], remove: bool
) -> None:
    """Add or remove each value in turn, one transaction per value."""
    try:
        store = get_store()
        for value in values:
            run_and_report(
                EntryChange(attr=attr, issue=issue_id, entry=value, remove=remove),
                store,
            )
    except typer.Exit:
        raise
    except Exception as e:
        echo_error(str(e))
        raise typer.Exit(1)


def register(app: typer.Typer) -> None:
    """Register entry-set commands."""

    @app.command()
    def tag(
        issue_id: str = typer.Argument(..., help="Issue ID (may be abbreviated)"),
        tags: list[str] = typer.Argument(..., help="Tags to add or remove"),
        remove: bool = typer.Option(False, "--remove", "-r", help="Remove the tags"),
    ) -> None:
        """Add or remove issue tags."""
        _change_entries(Field.TAG, issue_id, tags, remove)

    @app.command()
    def assign(
        issue_id: str = typer.Argument(..., help="Issue ID (may be abbreviated)"),
        emails: list[str] = typer.Argument(..., help="Assignees to add or remove"),
        remove: bool = typer.Option(
            False,
            "--remove",
            "-r",
            help="Remove the assignees",
        ),
    ) -> None:
        """Assign an issue to people, or remove assignees."""
        _change_entries(Field.ASSIGNEE, issue_id, emails, remove)

    @app.command()
    def watcher(
        issue_id: str = typer.Argument(..., help="Issue ID (may be abbreviated)"),
        emails: list[str] = typer.Argument(..., help="Watchers to add or remove"),
        remove: bool = typer.Option(
            False,
            "--remove",
            "-r",
            help="Remove the watchers",
        ),
    ) -> None:
        """Add or remove issue watchers."""
        _change_entries(Field.WATCHER, issue_id, emails, remove)

    @app.command()
    def close(
        issue_id: str = typer.Argument(..., help="Issue ID (may be abbreviated)"),
    ) -> None:
        """Close an issue."""
        try:
            run_and_report(CloseIssue(issue=issue_id), get_store())
        except typer.Exit:
            raise
        except Exception as e:
            echo_error(str(e))
            raise typer.Exit(1)
