"""Commands that hand over to git inside the issues repository."""

from __future__ import annotations

import subprocess

import typer

from ._helpers import get_store
from ._json_state import echo_error

_PASSTHROUGH = {"allow_extra_args": True, "ignore_unknown_options": True}


def _git_passthrough(*args: str) -> None:
    """Run git interactively in the issues repository and exit with its status."""
    store = get_store()
    result = subprocess.run(["git", *args], cwd=str(store.root), check=False)
    if result.returncode != 0:
        raise typer.Exit(result.returncode)


def register(app: typer.Typer) -> None:
    """Register push, pull and git commands."""

    @app.command(context_settings=_PASSTHROUGH)
    def push(ctx: typer.Context) -> None:
        """Push the issues repository to its remote."""
        try:
            _git_passthrough("push", *ctx.args)
        except typer.Exit:
            raise
        except Exception as e:
            echo_error(str(e))
            raise typer.Exit(1)

    @app.command(context_settings=_PASSTHROUGH)
    def pull(ctx: typer.Context) -> None:
        """Pull (fetch and merge) the issues repository from its remote."""
        try:
            _git_passthrough("pull", *ctx.args)
        except typer.Exit:
            raise
        except Exception as e:
            echo_error(str(e))
            raise typer.Exit(1)

    @app.command(context_settings=_PASSTHROUGH)
    def git(ctx: typer.Context) -> None:
        """Run any git command in the issues repository."""
        try:
            _git_passthrough(*ctx.args)
        except typer.Exit:
            raise
        except Exception as e:
            echo_error(str(e))
            raise typer.Exit(1)
