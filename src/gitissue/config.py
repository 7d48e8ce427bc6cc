"""Configuration file handling for gitissue."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

import tomli_w

from gitissue.constants import GITHUB_API_URL, GITHUB_PER_PAGE, HTTP_TIMEOUT, USER_AGENT

# Config filename, stored at the root of the .issues repository
CONFIG_FILENAME = "config.toml"


def get_config_path(issues_root: str | Path) -> Path:
    """Get the path to the config file.

    Args:
        issues_root: Path to .issues directory

    Returns:
        Path to config.toml
    """
    return Path(issues_root) / CONFIG_FILENAME


def load_config(issues_root: str | Path) -> dict[str, Any]:
    """Load configuration from .issues/config.toml.

    Args:
        issues_root: Path to .issues directory

    Returns:
        Configuration dictionary, or empty dict if no config exists
    """
    config_path = get_config_path(issues_root)
    if not config_path.exists():
        return {}

    try:
        with config_path.open("rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError):
        return {}


def save_config(issues_root: str | Path, config: dict[str, Any]) -> None:
    """Save configuration to .issues/config.toml.

    Args:
        issues_root: Path to .issues directory
        config: Configuration dictionary to save
    """
    config_path = get_config_path(issues_root)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with config_path.open("wb") as f:
        tomli_w.dump(config, f)


@dataclass
class Settings:
    """Effective settings: config file values overridden by the environment."""

    editor: str = "vi"
    pager: str = "more"
    user_agent: str = USER_AGENT
    github_api_url: str = GITHUB_API_URL
    github_token: str | None = None
    github_per_page: int = GITHUB_PER_PAGE
    http_timeout: float = HTTP_TIMEOUT


def load_settings(
    issues_root: str | Path | None,
    environ: dict[str, str] | None = None,
) -> Settings:
    """Build the effective settings for a repository.

    Precedence (highest first):
    1. Environment: ``VISUAL``/``EDITOR``, ``PAGER``, ``GI_GITHUB_TOKEN``
    2. ``config.toml`` keys ``editor``, ``pager``, ``user_agent`` and the
       ``[github]`` table (``api_url``, ``token``, ``per_page``, ``timeout``)
    3. Built-in defaults

    Args:
        issues_root: Path to .issues directory, or None outside a repository
        environ: Environment mapping (default: ``os.environ``)
    """
    env = os.environ if environ is None else environ
    config = load_config(issues_root) if issues_root is not None else {}
    github: dict[str, Any] = config.get("github", {})
    settings = Settings()

    settings.editor = (
        env.get("VISUAL")
        or env.get("EDITOR")
        or config.get("editor")
        or settings.editor
    )
    settings.pager = env.get("PAGER") or config.get("pager") or settings.pager
    settings.user_agent = config.get("user_agent", settings.user_agent)
    settings.github_api_url = github.get("api_url", settings.github_api_url)
    settings.github_token = env.get("GI_GITHUB_TOKEN") or github.get("token")
    settings.github_per_page = int(github.get("per_page", settings.github_per_page))
    settings.http_timeout = float(github.get("timeout", settings.http_timeout))
    return settings
