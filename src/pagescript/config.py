"""pagescript configuration management."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from pagescript.models import (
    DEFAULT_ACTION_TIMEOUT_MS,
    DEFAULT_ARTIFACTS_DIR,
    DEFAULT_BROWSER,
    DEFAULT_COMMENT_MARKER,
    DEFAULT_INSTRUCTIONS_FILE,
    DEFAULT_NAVIGATION_TIMEOUT_MS,
    DEFAULT_NEW_PAGE_SETTLE_MS,
    DEFAULT_PROBE_TIMEOUT_MS,
    DEFAULT_SUBMIT_WAIT_MS,
    DEFAULT_VIEWPORT,
    SUPPORTED_BROWSERS,
)


class PageScriptConfigError(Exception):
    """Raised when configuration is invalid or missing."""

    pass


@dataclass
class PageScriptConfig:
    """Configuration for a pagescript run."""

    # Paths
    project_dir: Path = field(default_factory=lambda: Path(".pagescript"))
    instructions_file: Path = field(default_factory=lambda: Path(DEFAULT_INSTRUCTIONS_FILE))
    artifacts_dir: Path = field(default_factory=lambda: Path(DEFAULT_ARTIFACTS_DIR))

    # Browser
    browser: str = DEFAULT_BROWSER
    headless: bool = True
    viewport: tuple[int, int] = DEFAULT_VIEWPORT

    # Timeouts (ms)
    navigation_timeout_ms: int = DEFAULT_NAVIGATION_TIMEOUT_MS
    action_timeout_ms: int = DEFAULT_ACTION_TIMEOUT_MS
    probe_timeout_ms: int = DEFAULT_PROBE_TIMEOUT_MS
    submit_wait_ms: int = DEFAULT_SUBMIT_WAIT_MS
    new_page_settle_ms: int = DEFAULT_NEW_PAGE_SETTLE_MS

    # Instruction language
    comment_marker: str = DEFAULT_COMMENT_MARKER

    # Named secrets referenced from instructions as ``env:NAME``
    secrets: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_file(cls, config_path: Path) -> PageScriptConfig:
        """Load config from a YAML file."""
        if not config_path.exists():
            raise PageScriptConfigError(f"Config file not found: {config_path}\n\nTo fix: pagescript init")
        with open(config_path) as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise PageScriptConfigError(f"Invalid YAML in {config_path}: {exc}") from exc
        if not isinstance(data, dict):
            raise PageScriptConfigError(f"Config file must be a YAML mapping: {config_path}")
        return cls._from_dict(data, config_path.parent)

    @classmethod
    def _from_dict(cls, data: dict[str, Any], project_dir: Path) -> PageScriptConfig:
        """Create config from a dictionary."""
        config = cls()
        config.project_dir = project_dir

        # Relative paths resolve against the directory holding .pagescript/
        base_dir = project_dir.parent
        if "instructions_file" in data:
            config.instructions_file = base_dir / data["instructions_file"]
        else:
            config.instructions_file = base_dir / DEFAULT_INSTRUCTIONS_FILE

        if "artifacts_dir" in data:
            config.artifacts_dir = base_dir / data["artifacts_dir"]
        else:
            config.artifacts_dir = base_dir / DEFAULT_ARTIFACTS_DIR

        if "browser" in data:
            browser = str(data["browser"]).lower()
            if browser not in SUPPORTED_BROWSERS:
                raise PageScriptConfigError(
                    f"Unsupported browser: {browser}\n\nExpected one of: {', '.join(SUPPORTED_BROWSERS)}"
                )
            config.browser = browser
        if "headless" in data:
            config.headless = bool(data["headless"])
        if "viewport" in data:
            vp = data["viewport"]
            if isinstance(vp, dict):
                config.viewport = (vp.get("width", 1280), vp.get("height", 720))

        for key in (
            "navigation_timeout_ms",
            "action_timeout_ms",
            "probe_timeout_ms",
            "submit_wait_ms",
            "new_page_settle_ms",
        ):
            if key in data:
                try:
                    value = int(data[key])
                except (TypeError, ValueError):
                    raise PageScriptConfigError(f"{key} must be an integer, got: {data[key]!r}") from None
                if value < 0:
                    raise PageScriptConfigError(f"{key} must not be negative, got: {value}")
                setattr(config, key, value)

        if "comment_marker" in data:
            marker = str(data["comment_marker"]).strip()
            if not marker:
                raise PageScriptConfigError("comment_marker must not be empty")
            config.comment_marker = marker

        secrets = data.get("secrets") or {}
        if not isinstance(secrets, dict):
            raise PageScriptConfigError("secrets must be a mapping of NAME: value")
        config.secrets = {str(k): str(v) for k, v in secrets.items()}

        return config
