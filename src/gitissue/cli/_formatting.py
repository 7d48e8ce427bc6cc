"""Display and formatting functions for the gitissue CLI."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich import box
from rich.console import Console
from rich.table import Table

from gitissue.models import parse_duedate

if TYPE_CHECKING:
    from gitissue.models import Duration
    from gitissue.queries import IssueView


def _indent(text: str, prefix: str = "    ") -> str:
    return "".join(prefix + line for line in text.splitlines(keepends=True))


def format_duedate_display(value: str) -> str:
    """Render a stored due date like ``2024-05-01 17:00:00+02:00``."""
    return parse_duedate(value).isoformat(sep=" ", timespec="seconds")


def format_times(spent: Duration | None, estimate: Duration | None) -> str | None:
    """Render the time-tracking line of an issue, or None if there is none."""
    if spent is not None and estimate is not None:
        return f"Time Spent/Time Estimated: {spent.format()}/ {estimate.format()}"
    if spent is not None:
        return f"Time Spent: {spent.format()}"
    if estimate is not None:
        return f"Time Estimate: {estimate.format()}"
    return None


def format_issue(view: IssueView) -> str:
    """Format an issue for detailed display.

    Args:
        view: The issue to format

    Returns:
        Multi-line text: header fields, indented description, edit
        history and (when collected) the comments
    """
    record = view.record
    lines = [
        f"issue {view.id}",
        f"Author:\t{view.created.author}",
        f"Date:\t{view.created.date}",
    ]
    if record.duedate:
        lines.append(f"Due Date: {format_duedate_display(record.duedate)}")
    times = format_times(record.timespent, record.timeestimate)
    if times:
        lines.append(times)
    if record.milestone:
        lines.append(f"Milestone: {record.milestone}")
    if record.weight is not None:
        lines.append(f"Weight: {record.weight}")
    if record.tags:
        lines.append("Tags:\t" + "\n\t".join(record.tags))
    if record.watchers:
        lines.append("Watchers:\t" + " ".join(record.watchers))
    if record.assignee:
        lines.append("Assigned-to:\t" + "\n\t".join(record.assignee))

    out = "\n".join(lines) + "\n\n" + _indent(record.description)
    out += "\nEdit History:\n"
    out += "".join(f"* {c.date} by {c.author}\n" for c in view.history)

    for comment in view.comments:
        out += f"\ncomment {comment.id}\n"
        out += f"Author:\t{comment.author}\nDate:\t{comment.date}\n\n"
        out += _indent(comment.text)
    return out


def issue_to_dict(view: IssueView) -> dict[str, Any]:
    """Convert an issue view to a JSON-serializable dict."""
    record = view.record
    return {
        "id": view.id,
        "author": view.created.author,
        "date": view.created.date,
        "description": record.description,
        "tags": record.tags,
        "milestone": record.milestone,
        "weight": record.weight,
        "duedate": record.duedate,
        "timespent": (
            record.timespent.seconds if record.timespent is not None else None
        ),
        "timeestimate": (
            record.timeestimate.seconds if record.timeestimate is not None else None
        ),
        "assignee": record.assignee,
        "watchers": record.watchers,
        "history": [{"author": c.author, "date": c.date} for c in view.history],
        "comments": [
            {"id": c.id, "author": c.author, "date": c.date, "text": c.text}
            for c in view.comments
        ],
    }


def format_issue_line(short_id: str, summary: str) -> str:
    """Format one line of an issue listing."""
    return f"{short_id} {summary}".rstrip()


def print_tag_table(counts: dict[str, int]) -> None:
    """Print tag usage counts as a table."""
    console = Console()
    table = Table(
        show_header=True,
        header_style="bold",
        box=box.ROUNDED,
        pad_edge=False,
    )
    table.add_column("Tag", style="bold")
    table.add_column("Issues", justify="right")
    for tag, count in counts.items():
        table.add_row(tag, str(count))
    console.print(table)
