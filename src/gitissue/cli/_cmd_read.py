"""Read commands for the gitissue CLI (show, list, tags, log)."""

from __future__ import annotations

import sys

import typer

from gitissue.constants import DEFAULT_TAG
from gitissue.edit import page
from gitissue.queries import issue_view, list_issues, tag_counts
from gitissue.store import full_path

from ._formatting import format_issue, format_issue_line, issue_to_dict, print_tag_table
from ._helpers import get_settings, get_store
from ._json_state import echo_error, echo_json, is_json_output

_PASSTHROUGH = {"allow_extra_args": True, "ignore_unknown_options": True}


def register(app: typer.Typer) -> None:
    """Register read commands."""

    @app.command()
    def show(
        issue_id: str = typer.Argument(..., help="Issue ID (may be abbreviated)"),
        comments: bool = typer.Option(
            False,
            "--comments",
            "-c",
            help="Show comments",
        ),
    ) -> None:
        """Show the details of an issue."""
        try:
            store = get_store()
            view = issue_view(store, issue_id, with_comments=comments)
            if is_json_output():
                echo_json(issue_to_dict(view))
            elif sys.stdout.isatty():
                page(format_issue(view), get_settings(store).pager)
            else:
                typer.echo(format_issue(view), nl=False)
        except typer.Exit:
            raise
        except Exception as e:
            echo_error(str(e))
            raise typer.Exit(1)

    @app.command("list")
    def list_cmd(
        tag: str = typer.Argument(DEFAULT_TAG, help="Tag or milestone to match"),
        show_all: bool = typer.Option(False, "--all", "-a", help="List all issues"),
    ) -> None:
        """List issues carrying a tag or milestone (open issues by default)."""
        try:
            found = list_issues(get_store(), tag, include_all=show_all)
            if is_json_output():
                echo_json([{"id": i, "summary": s} for i, s in found])
                return
            if not found:
                echo_error("No matching issues found")
                raise typer.Exit(1)
            for short_id, summary in found:
                typer.echo(format_issue_line(short_id, summary))
        except typer.Exit:
            raise
        except Exception as e:
            echo_error(str(e))
            raise typer.Exit(1)

    @app.command()
    def tags() -> None:
        """List all tags in use and how many issues carry each."""
        try:
            counts = tag_counts(get_store())
            if is_json_output():
                echo_json(counts)
            elif counts:
                print_tag_table(counts)
            else:
                typer.echo("No tags")
        except typer.Exit:
            raise
        except Exception as e:
            echo_error(str(e))
            raise typer.Exit(1)

    @app.command(context_settings=_PASSTHROUGH)
    def log(
        ctx: typer.Context,
        issue_id: str = typer.Option(
            None,
            "--issue",
            "-I",
            help="Only show changes to this issue",
        ),
    ) -> None:
        """Show the log of issue changes; extra arguments go to git log."""
        try:
            store = get_store()
            args = ["log", *ctx.args]
            if issue_id:
                args += ["--", full_path(store.resolve_id(issue_id))]
            typer.echo(store.git.run(*args).stdout, nl=False)
        except typer.Exit:
            raise
        except Exception as e:
            echo_error(str(e))
            raise typer.Exit(1)
