"""Runtime settings loaded from the environment."""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field

from netscore.errors import ConfigurationError

# GitHub allows 5000 authenticated requests per hour; 3600 / 5000 rounded up.
DEFAULT_MIN_INTERVAL = 0.75


class Settings(BaseModel):
    """Pipeline configuration.

    Built from environment variables by ``Settings.from_env()``. Tests construct
    it directly.
    """

    github_token: str
    log_level: int = 0
    log_file: Path | None = None
    scratch_dir: Path = Field(default_factory=lambda: Path.cwd() / ".netscore-clones")
    min_request_interval: float = DEFAULT_MIN_INTERVAL
    max_pages: int = 5

    # Analysis windows, in days
    history_window_days: int = 365
    correctness_window_days: int = 180
    responsiveness_window_days: int = 180

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> Settings:
        """Read settings from ``environ`` (defaults to ``os.environ``).

        Raises:
            ConfigurationError: If GITHUB_TOKEN is missing or a numeric value is malformed.
        """
        env = os.environ if environ is None else environ

        token = env.get("GITHUB_TOKEN", "").strip()
        if not token:
            raise ConfigurationError("GITHUB_TOKEN environment variable is not set")

        values: dict = {"github_token": token}
        values["log_level"] = _parse_number(env, "LOG_LEVEL", int, 0)
        if values["log_level"] not in (0, 1, 2):
            raise ConfigurationError(f"LOG_LEVEL must be 0, 1 or 2, got {values['log_level']}")

        if env.get("LOG_FILE"):
            values["log_file"] = Path(env["LOG_FILE"])
        if env.get("NETSCORE_SCRATCH_DIR"):
            values["scratch_dir"] = Path(env["NETSCORE_SCRATCH_DIR"])

        values["min_request_interval"] = _parse_number(
            env, "NETSCORE_MIN_INTERVAL", float, DEFAULT_MIN_INTERVAL
        )
        values["max_pages"] = _parse_number(env, "NETSCORE_MAX_PAGES", int, 5)
        if values["max_pages"] < 1:
            raise ConfigurationError("NETSCORE_MAX_PAGES must be at least 1")

        return cls(**values)


def _parse_number(env, name: str, kind: type, default):
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return kind(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a {kind.__name__}, got {raw!r}") from e
