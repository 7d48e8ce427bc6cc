"""Single-valued field commands (milestone, weight, dates, times)."""

from __future__ import annotations

import typer

from gitissue.models import Field
from gitissue.operations import RemoveField, SetField

from ._helpers import get_store, run_and_report
from ._json_state import echo_error

_FIELD_HELP: dict[Field, str] = {
    Field.MILESTONE: "Milestone name",
    Field.WEIGHT: "Non-negative integer weight",
    Field.DUEDATE: "Due date in ISO-8601, e.g. 2024-05-01T17:00:00",
    Field.TIMESPENT: "Time spent, e.g. '2h 30m'",
    Field.TIMEESTIMATE: "Estimated time, e.g. '3 days'",
}


def _set_or_remove(
    attr: Field,
    issue_id: str,
    value: str | None,
    remove: bool,
    accumulate: bool = False,
) -> None:
    try:
        if remove == (value is not None):
            echo_error(f"Give either a {attr.value} value or --remove")
            raise typer.Exit(1)
        store = get_store()
        if remove:
            run_and_report(RemoveField(attr=attr, issue=issue_id), store)
        else:
            assert value is not None
            run_and_report(
                SetField(attr=attr, issue=issue_id, value=value, accumulate=accumulate),
                store,
            )
    except typer.Exit:
        raise
    except Exception as e:
        echo_error(str(e))
        raise typer.Exit(1)


def register(app: typer.Typer) -> None:
    """Register single-valued field commands."""

    @app.command()
    def milestone(
        issue_id: str = typer.Argument(..., help="Issue ID (may be abbreviated)"),
        value: str = typer.Argument(None, help=_FIELD_HELP[Field.MILESTONE]),
        remove: bool = typer.Option(False, "--remove", "-r", help="Remove milestone"),
    ) -> None:
        """Set or remove an issue's milestone."""
        _set_or_remove(Field.MILESTONE, issue_id, value, remove)

    @app.command()
    def weight(
        issue_id: str = typer.Argument(..., help="Issue ID (may be abbreviated)"),
        value: str = typer.Argument(None, help=_FIELD_HELP[Field.WEIGHT]),
        remove: bool = typer.Option(False, "--remove", "-r", help="Remove weight"),
    ) -> None:
        """Set or remove an issue's weight."""
        _set_or_remove(Field.WEIGHT, issue_id, value, remove)

    @app.command()
    def duedate(
        issue_id: str = typer.Argument(..., help="Issue ID (may be abbreviated)"),
        value: str = typer.Argument(None, help=_FIELD_HELP[Field.DUEDATE]),
        remove: bool = typer.Option(False, "--remove", "-r", help="Remove due date"),
    ) -> None:
        """Set or remove an issue's due date."""
        _set_or_remove(Field.DUEDATE, issue_id, value, remove)

    @app.command()
    def timespent(
        issue_id: str = typer.Argument(..., help="Issue ID (may be abbreviated)"),
        value: str = typer.Argument(None, help=_FIELD_HELP[Field.TIMESPENT]),
        add: bool = typer.Option(
            False,
            "--add",
            "-a",
            help="Add to the time already spent",
        ),
        remove: bool = typer.Option(False, "--remove", "-r", help="Remove time spent"),
    ) -> None:
        """Set, add to or remove the time spent on an issue."""
        _set_or_remove(Field.TIMESPENT, issue_id, value, remove, accumulate=add)

    @app.command()
    def timeestimate(
        issue_id: str = typer.Argument(..., help="Issue ID (may be abbreviated)"),
        value: str = typer.Argument(None, help=_FIELD_HELP[Field.TIMEESTIMATE]),
        remove: bool = typer.Option(
            False,
            "--remove",
            "-r",
            help="Remove time estimate",
        ),
    ) -> None:
        """Set or remove an issue's time estimate."""
        _set_or_remove(Field.TIMEESTIMATE, issue_id, value, remove)
