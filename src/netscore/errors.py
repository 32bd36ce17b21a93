"""Exception hierarchy for netscore.

All exceptions inherit from NetScoreError so callers have a single catch point
when turning a failed evaluation into a per-identifier result.
"""

from __future__ import annotations

from datetime import datetime


class NetScoreError(Exception):
    """Base exception for all netscore errors."""


class ConfigurationError(NetScoreError):
    """Missing or malformed configuration (token, env values, log file)."""


class GitHubAPIError(NetScoreError):
    """Non-success response from the GitHub REST API."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        super().__init__(f"GitHub API error {status_code}: {message}")


class AuthenticationError(GitHubAPIError):
    """The bearer token was rejected (401)."""


class RateLimitExceeded(GitHubAPIError):
    """The GitHub rate limit is exhausted."""

    def __init__(self, status_code: int, reset_at: datetime | None = None) -> None:
        self.reset_at = reset_at
        when = reset_at.isoformat() if reset_at else "unknown"
        super().__init__(status_code, f"rate limit exceeded, resets at {when}")


class RepositoryNotFoundError(GitHubAPIError):
    """A required repository endpoint returned 404."""


class PackageNotFoundError(NetScoreError):
    """Raised when an npm package (or its source repository) cannot be found."""

    def __init__(self, name: str, reason: str = "not found in npm registry") -> None:
        self.name = name
        super().__init__(f"Package '{name}' {reason}")


class InvalidURLError(NetScoreError):
    """Input is not a recognised GitHub or npm URL."""


class CloneError(NetScoreError):
    """git clone failed or timed out."""


class UnsafePathError(NetScoreError):
    """A clone path failed a safety check and was not removed."""


class EvaluationError(NetScoreError):
    """Wraps the failure of a single identifier's evaluation."""

    def __init__(self, url: str, cause: Exception) -> None:
        self.url = url
        self.cause = cause
        super().__init__(f"{url}: {cause}")
