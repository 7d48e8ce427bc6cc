"""Repository setup commands for the gitissue CLI."""

from __future__ import annotations

import typer

from gitissue.operations import clone_repository, init_repository

from ._json_state import echo_error, echo_json, is_json_output


def register(app: typer.Typer) -> None:
    """Register init and clone commands."""

    @app.command()
    def init(
        existing: bool = typer.Option(
            False,
            "--existing",
            "-e",
            help="Use the existing project's git repository",
        ),
    ) -> None:
        """Create a new issues repository in the current directory."""
        try:
            result = init_repository(".", existing=existing)
            if is_json_output():
                echo_json({"message": result.message, "commits": result.commits})
            else:
                typer.echo(f"✓ {result.message}")
        except typer.Exit:
            raise
        except Exception as e:
            echo_error(str(e))
            raise typer.Exit(1)

    @app.command()
    def clone(
        url: str = typer.Argument(..., help="URL of the remote issues repository"),
        local_dir: str = typer.Argument(..., help="Directory to hold .issues"),
    ) -> None:
        """Clone an existing issues repository."""
        try:
            target = clone_repository(url, local_dir)
            typer.echo(f"✓ Cloned {url} into {target}")
        except typer.Exit:
            raise
        except Exception as e:
            echo_error(str(e))
            raise typer.Exit(1)
