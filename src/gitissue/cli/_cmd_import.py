"""Import command for the gitissue CLI."""

from __future__ import annotations

import typer

from gitissue.github import GitHubClient
from gitissue.importer import ImportIssues
from gitissue.operations import run

from ._helpers import SortedGroup, get_settings, get_store
from ._json_state import echo_error, echo_json, is_json_output


def register(app: typer.Typer) -> None:
    """Register the import command group."""
    import_app = typer.Typer(
        help="Import issues from an external tracker",
        no_args_is_help=True,
        cls=SortedGroup,
    )
    app.add_typer(import_app, name="import")

    @import_app.command()
    def github(
        org: str = typer.Argument(..., help="GitHub user or organization"),
        project: str = typer.Argument(..., help="GitHub repository name"),
    ) -> None:
        """Import (or update) all issues and comments of a GitHub project."""
        try:
            store = get_store()
            client = GitHubClient.from_settings(org, project, get_settings(store))
            operation = ImportIssues(client=client)
            result = run(operation, store)
            summary = operation.summary
            if is_json_output():
                echo_json(
                    {
                        "message": result.message,
                        "issues_created": summary.issues_created,
                        "issues_updated": summary.issues_updated,
                        "comments_created": summary.comments_created,
                        "comments_updated": summary.comments_updated,
                        "checkpoint": summary.checkpoint,
                        "commits": result.commits,
                    },
                )
                return
            for event in summary.events:
                typer.echo(event)
            if summary.checkpoint is None:
                typer.echo("Already up to date")
            else:
                typer.echo(f"✓ {result.message}")
        except typer.Exit:
            raise
        except Exception as e:
            echo_error(str(e))
            raise typer.Exit(1)
