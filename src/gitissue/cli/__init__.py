"""gitissue CLI commands for git-based issue tracking."""

from __future__ import annotations

import logging

import typer

from ._helpers import SortedGroup

app = typer.Typer(
    help="gi - distributed issue tracking stored in a git repository",
    no_args_is_help=True,
    cls=SortedGroup,
)


@app.callback(invoke_without_command=True)
def _global_options(
    ctx: typer.Context,
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON for all commands",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log git commands and transaction steps to stderr",
    ),
) -> None:
    from rich.console import Console
    from rich.logging import RichHandler

    from ._json_state import set_json_flag

    set_json_flag(json_output)
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
            force=True,
        )
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(0)


from . import (  # noqa: E402
    _cmd_create,
    _cmd_entries,
    _cmd_fields,
    _cmd_git,
    _cmd_import,
    _cmd_init,
    _cmd_read,
)

for _mod in (
    _cmd_create,
    _cmd_entries,
    _cmd_fields,
    _cmd_git,
    _cmd_import,
    _cmd_init,
    _cmd_read,
):
    _mod.register(app)


def main() -> None:
    """Run the gitissue CLI application."""
    app()
