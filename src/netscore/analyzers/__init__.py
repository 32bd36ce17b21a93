"""Analyzers for fetching, cloning and scoring repositories."""

from netscore.analyzers.clone import RepoCloneManager
from netscore.analyzers.github import GitHubFetcher
from netscore.analyzers.latency import measure_latency
from netscore.analyzers.pipeline import NetScorePipeline
from netscore.analyzers.rate_limiter import RateLimiter

__all__ = ["GitHubFetcher", "NetScorePipeline", "RateLimiter", "RepoCloneManager", "measure_latency"]
