"""Sorted, line-oriented entry sets (tags, assignees, watchers).

Each set is a flat file holding one entry per line in byte order.  Entries
are merged into place rather than re-sorting the whole file, so a change
shows up in ``git diff`` as exactly the inserted or deleted line.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from gitissue.errors import DuplicateEntry, EntryNotFound

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

logger = logging.getLogger(__name__)


def collation_key(entry: str) -> bytes:
    """Return the locale-independent sort key of an entry (C/byte order)."""
    return entry.encode("utf-8")


def sorted_entries(values: Iterable[str]) -> list[str]:
    """Return ``values`` deduplicated and sorted in byte order."""
    return sorted(set(values), key=collation_key)


def read_entries(path: Path) -> list[str]:
    """Return the entries stored in ``path`` (empty if the file is missing)."""
    if not path.exists():
        return []
    # Only "\n" ends an entry; other line-break characters are entry content.
    lines = path.read_bytes().decode("utf-8").split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


def write_entries(path: Path, entries: Iterable[str]) -> None:
    """Write ``entries`` to ``path``, one per line."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("".join(f"{e}\n" for e in entries), encoding="utf-8")


def add(path: Path, entry: str) -> None:
    """Merge ``entry`` into the sorted entry file at ``path``.

    The entry goes before the first existing line that sorts after it; the
    other lines are written back unchanged.

    Raises:
        DuplicateEntry: If the exact line is already present
    """
    lines = read_entries(path)
    if entry in lines:
        raise DuplicateEntry(entry)

    key = collation_key(entry)
    position = len(lines)
    for index, line in enumerate(lines):
        if collation_key(line) > key:
            position = index
            break
    lines.insert(position, entry)
    write_entries(path, lines)
    logger.debug("Added %r to %s at line %d", entry, path, position + 1)


def remove(path: Path, entry: str, name: str = "entry") -> None:
    """Remove the exact line ``entry`` from the entry file at ``path``.

    Raises:
        EntryNotFound: If no line matches; the file is left untouched
    """
    lines = read_entries(path)
    remaining = [line for line in lines if line != entry]
    if len(remaining) == len(lines):
        raise EntryNotFound(name, entry)
    write_entries(path, remaining)
    logger.debug("Removed %r from %s", entry, path)
