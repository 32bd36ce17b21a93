"""Data models for netscore."""

from netscore.models.schemas import (
    CommitRecord,
    ContributorRecord,
    EvaluationResult,
    IssueRecord,
    MetricResult,
    NetScoreRecord,
    RepoDetails,
    RepoRef,
    UrlKind,
)

__all__ = [
    "CommitRecord",
    "ContributorRecord",
    "EvaluationResult",
    "IssueRecord",
    "MetricResult",
    "NetScoreRecord",
    "RepoDetails",
    "RepoRef",
    "UrlKind",
]
