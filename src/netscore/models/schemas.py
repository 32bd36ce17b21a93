"""Pydantic models for repository data and score records."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UrlKind(str, Enum):
    """Classification of an input identifier."""

    GITHUB = "github"
    NPM = "npm"
    INVALID = "invalid"


class RepoRef(BaseModel):
    """Reference to a GitHub repository."""

    model_config = ConfigDict(frozen=True)

    owner: str
    repo: str

    @property
    def url(self) -> str:
        """Get the full repository URL."""
        return f"https://github.com/{self.owner}/{self.repo}"

    @property
    def clone_url(self) -> str:
        """Get the HTTPS clone URL."""
        return f"{self.url}.git"


# --- Repository snapshot ---


class CommitRecord(BaseModel):
    """A single commit: who authored it and when."""

    model_config = ConfigDict(frozen=True)

    author: str | None = None
    date: datetime


class IssueRecord(BaseModel):
    """A single issue (pull requests excluded)."""

    model_config = ConfigDict(frozen=True)

    created_at: datetime
    closed_at: datetime | None = None
    state: str = "open"

    @property
    def is_closed(self) -> bool:
        return self.state == "closed"


class ContributorRecord(BaseModel):
    """Aggregated commit total for one contributor."""

    model_config = ConfigDict(frozen=True)

    login: str
    total_commits: int = 0


class RepoDetails(BaseModel):
    """Immutable snapshot of a repository, shared read-only by all scorers.

    Commits and issues are ordered newest-first and truncated at the fetch
    cutoff or the page limit, whichever comes first.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    owner: str
    repo: str
    created_at: datetime | None = None
    stars: int = 0
    forks: int = 0
    open_issues: int = 0
    license: str = "No license"
    commits: tuple[CommitRecord, ...] = Field(default=(), alias="commitsData")
    issues: tuple[IssueRecord, ...] = Field(default=(), alias="issuesData")
    contributors: tuple[ContributorRecord, ...] = Field(default=(), alias="contributorsData")


# --- Score output ---


class MetricResult(BaseModel):
    """A scorer's value and how long it took to compute, in seconds."""

    value: float
    latency: float


class NetScoreRecord(BaseModel):
    """Output record for one evaluated identifier.

    Serialised with the alias keys; every float is rounded to 3 decimals.
    """

    model_config = ConfigDict(populate_by_name=True)

    url: str = Field(alias="URL")
    net_score: float = Field(alias="NetScore")
    net_score_latency: float = Field(alias="NetScore_Latency")
    ramp_up: float = Field(alias="RampUp")
    ramp_up_latency: float = Field(alias="RampUp_Latency")
    correctness: float = Field(alias="Correctness")
    correctness_latency: float = Field(alias="Correctness_Latency")
    bus_factor: float = Field(alias="BusFactor")
    bus_factor_latency: float = Field(alias="BusFactor_Latency")
    responsive_maintainer: float = Field(alias="ResponsiveMaintainer")
    responsive_maintainer_latency: float = Field(alias="ResponsiveMaintainer_Latency")
    license: float = Field(alias="License")
    license_latency: float = Field(alias="License_Latency")

    @field_validator("*", mode="after")
    @classmethod
    def _round(cls, value):
        if isinstance(value, float):
            return round(value, 3)
        return value

    def to_output(self) -> dict:
        """Return the record keyed by its output field names."""
        return self.model_dump(by_alias=True)


class EvaluationResult(BaseModel):
    """Per-identifier outcome: either a record or an error message."""

    url: str
    record: NetScoreRecord | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.record is not None
