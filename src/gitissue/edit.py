"""Editor and pager helpers for free-text entry and long output."""

from __future__ import annotations

import shlex
import subprocess
from typing import TYPE_CHECKING

import typer

from gitissue.errors import EditAborted

if TYPE_CHECKING:
    from pathlib import Path


def strip_comments(text: str) -> str:
    """Drop template lines starting with ``#``."""
    return "".join(
        line for line in text.splitlines(keepends=True) if not line.startswith("#")
    )


def edit_text(initial: str, editor: str, scratch: Path) -> str:
    """Let the user edit ``initial`` and return the result.

    The text is written to ``scratch``, the editor is run on it, and lines
    starting with ``#`` are removed from what comes back.  ``scratch`` is
    deleted afterwards.

    Raises:
        EditAborted: If the editor fails, or the result is empty or unchanged
    """
    scratch.parent.mkdir(parents=True, exist_ok=True)
    scratch.write_text(initial, encoding="utf-8")
    typer.echo("Opening editor...")
    try:
        result = subprocess.run([*shlex.split(editor), str(scratch)], check=False)
        if result.returncode != 0:
            msg = f"Editor '{editor}' exited with status {result.returncode}"
            raise EditAborted(msg)
        edited = strip_comments(scratch.read_text(encoding="utf-8"))
    finally:
        scratch.unlink(missing_ok=True)

    if not edited.strip():
        msg = "Empty file"
        raise EditAborted(msg)
    if edited == strip_comments(initial):
        msg = "File was not changed"
        raise EditAborted(msg)
    return edited


def page(text: str, pager: str) -> None:
    """Pipe ``text`` through the user's pager, or print it if none works."""
    try:
        subprocess.run(shlex.split(pager), input=text, text=True, check=False)
    except (FileNotFoundError, OSError):
        typer.echo(text, nl=False)
