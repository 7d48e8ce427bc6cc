"""Paginated read client for the GitHub issues API."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import orjson
import requests

from gitissue.constants import GITHUB_API_URL, GITHUB_PER_PAGE, HTTP_TIMEOUT, USER_AGENT
from gitissue.errors import SourceProtocolError, SourceUnavailable

if TYPE_CHECKING:
    from collections.abc import Iterator

    from gitissue.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class Page:
    """One page of a paginated collection."""

    items: list[dict[str, Any]]
    next_url: str | None = None


def _error_message(response: requests.Response) -> str | None:
    """Extract the machine-readable ``message`` from an error response body."""
    try:
        data = orjson.loads(response.content)
    except orjson.JSONDecodeError:
        return None
    if isinstance(data, dict):
        message = data.get("message")
        if isinstance(message, str):
            return message
    return None


@dataclass
class GitHubClient:
    """Read issues and comments of one GitHub project, page by page."""

    org: str
    project: str
    base_url: str = GITHUB_API_URL
    token: str | None = None
    user_agent: str = USER_AGENT
    per_page: int = GITHUB_PER_PAGE
    timeout: float = HTTP_TIMEOUT
    session: requests.Session | None = None
    _session: requests.Session = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._session = self.session or requests.Session()
        self._session.headers.setdefault("Accept", "application/vnd.github+json")
        self._session.headers["User-Agent"] = self.user_agent
        if self.token:
            self._session.headers.setdefault("Authorization", f"Bearer {self.token}")

    @classmethod
    def from_settings(
        cls,
        org: str,
        project: str,
        settings: Settings,
        session: requests.Session | None = None,
    ) -> GitHubClient:
        """Build a client from the effective repository settings."""
        return cls(
            org=org,
            project=project,
            base_url=settings.github_api_url,
            token=settings.github_token,
            user_agent=settings.user_agent,
            per_page=settings.github_per_page,
            timeout=settings.http_timeout,
            session=session,
        )

    @property
    def project_url(self) -> str:
        """Human-facing URL of the project's issue list."""
        return f"https://github.com/{self.org}/{self.project}/issues"

    def issues_url(self) -> str:
        """API address of the first page of all issues (open and closed)."""
        return (
            f"{self.base_url.rstrip('/')}/repos/{self.org}/{self.project}/issues"
            f"?state=all&per_page={self.per_page}"
        )

    def comments_url(self, number: int) -> str:
        """API address of the first page of an issue's comments."""
        return (
            f"{self.base_url.rstrip('/')}/repos/{self.org}/{self.project}"
            f"/issues/{number}/comments?per_page={self.per_page}"
        )

    def get_page(self, url: str) -> Page:
        """Fetch one page.

        Raises:
            SourceUnavailable: On connection failures and timeouts
            SourceProtocolError: On a non-success status or a non-list body
        """
        logger.debug("GET %s", url)
        try:
            response = self._session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            msg = f"GitHub connection failed: {e}"
            raise SourceUnavailable(msg) from e

        if not response.ok:
            raise SourceProtocolError(
                url,
                status=response.status_code,
                message=_error_message(response),
            )

        try:
            data = orjson.loads(response.content)
        except orjson.JSONDecodeError as e:
            raise SourceProtocolError(url, message=f"invalid JSON: {e}") from e
        if not isinstance(data, list):
            raise SourceProtocolError(url, message="expected a JSON array")

        next_url = response.links.get("next", {}).get("url")
        return Page(items=data, next_url=next_url)

    def pages(self, url: str) -> Iterator[Page]:
        """Yield pages, following ``rel="next"`` links until there are none."""
        next_url: str | None = url
        while next_url:
            page = self.get_page(next_url)
            yield page
            next_url = page.next_url

    def issues(self) -> Iterator[Page]:
        """Yield the pages of the project's issues."""
        return self.pages(self.issues_url())

    def comments(self, number: int) -> Iterator[Page]:
        """Yield the pages of one issue's comments."""
        return self.pages(self.comments_url(number))
