"""Constants for gitissue."""

from __future__ import annotations

import re


def parse_entries(raw: str) -> list[str]:
    """Parse an entries string that may be comma-separated, space-separated, or both.

    Examples:
        "bug,fix"     -> ["bug", "fix"]
        "bug fix"     -> ["bug", "fix"]
        "bug, fix"    -> ["bug", "fix"]
        ""            -> []
    """
    return [entry for entry in re.split(r"[,\s]+", raw) if entry]


# Name of the issues repository directory
ISSUES_DIRNAME = ".issues"

# Top-level directories inside the issues repository
ISSUES_SUBDIR = "issues"
IMPORTS_SUBDIR = "imports"
TEMPLATES_SUBDIR = "templates"

# Lock file, kept inside .git so `git clean` never removes it
LOCK_FILENAME = "gi.lock"

# Tag every new issue starts with
DEFAULT_TAG = "open"
CLOSED_TAG = "closed"

# Per-issue attribute files
DESCRIPTION_FILE = "description"
TAGS_FILE = "tags"
MILESTONE_FILE = "milestone"
WEIGHT_FILE = "weight"
DUEDATE_FILE = "duedate"
TIMESPENT_FILE = "timespent"
TIMEESTIMATE_FILE = "timeestimate"
ASSIGNEE_FILE = "assignee"
WATCHERS_FILE = "watchers"
COMMENTS_DIR = "comments"

# Import mapping file names
IMPORT_SHA_FILE = "sha"
CHECKPOINT_FILE = "checkpoint"

# Commit body grammar (first line of the body).  The grammar is queried
# with `git log --grep`, so changing it breaks existing repositories.
GRAMMAR_INIT = "gi init"
GRAMMAR_NEW_MARK = "gi new mark"
GRAMMAR_NEW_DESCRIPTION = "gi new description {issue}"
GRAMMAR_COMMENT_MARK = "gi comment mark {issue}"
GRAMMAR_COMMENT_MESSAGE = "gi comment message {issue} {comment}"
GRAMMAR_EDIT_DESCRIPTION = "gi edit description {issue}"
GRAMMAR_FIELD = "gi {field} {action} {value}"
GRAMMAR_IMPORT_ISSUE = "gi import issue #{number} from {source}"
GRAMMAR_IMPORT_CHECKPOINT = "gi import checkpoint {source} {org}/{project}"

# User agent sent to external sources
USER_AGENT = "gitissue (+https://github.com/dspinellis/git-issue)"

# Default external source settings
GITHUB_API_URL = "https://api.github.com"
GITHUB_PER_PAGE = 100
HTTP_TIMEOUT = 30

# Templates written by `gi init`
DESCRIPTION_TEMPLATE = """
# Start with a one-line summary of the issue.  Leave a blank line and
# continue with the issue's detailed description.
#
# Remember:
# - Be precise
# - Be clear: explain how to reproduce the problem, step by step,
#   so others can reproduce the issue
# - Include only one problem per issue report
#
# Lines starting with '#' will be ignored, and an empty message aborts
# the issue addition.
"""

COMMENT_TEMPLATE = """
# Please write here a comment regarding the issue.
# Keep the conversation constructive and polite.
# Lines starting with '#' will be ignored, and an empty message aborts
# the issue addition.
"""

README_TEXT = """This is a distributed issue tracking repository based on Git.
Visit [git-issue](https://github.com/dspinellis/git-issue) for more information.
"""
