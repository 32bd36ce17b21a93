"""Responsiveness: how quickly issues get closed and how often code lands."""

import logging
import math
from datetime import datetime, timedelta, timezone

from netscore.metrics._common import as_utc, clamp
from netscore.models.schemas import RepoDetails

logger = logging.getLogger(__name__)

WEEK_SECONDS = 7 * 24 * 60 * 60
# Commits per week treated as fully active
BASELINE_COMMITS_PER_WEEK = 10


def window_start(
    now: datetime,
    window_days: int,
    created_at: datetime | None,
    earliest: datetime | None,
) -> datetime:
    """Latest of ``now - window``, the repository creation date and the earliest record."""
    candidates = [now - timedelta(days=window_days)]
    if created_at is not None:
        candidates.append(as_utc(created_at))
    if earliest is not None:
        candidates.append(as_utc(earliest))
    return max(candidates)


def weeks_between(start: datetime, end: datetime) -> int:
    """Whole weeks from ``start`` to ``end``, rounded up, never less than 1."""
    seconds = (end - start).total_seconds()
    return max(1, math.ceil(seconds / WEEK_SECONDS))


def _issue_scores(details: RepoDetails, window_days: int, now: datetime) -> tuple[float, float]:
    """Return (closed_ratio, timeliness) for issues opened in the window."""
    if not details.issues:
        return 0.0, 0.0

    earliest = min(as_utc(i.created_at) for i in details.issues)
    start = window_start(now, window_days, details.created_at, earliest)
    opened = [i for i in details.issues if as_utc(i.created_at) >= start]
    closed = [i for i in opened if i.is_closed and i.closed_at is not None]
    if not opened or not closed:
        return 0.0, 0.0

    weeks = weeks_between(start, now)
    total_seconds = sum(
        (as_utc(i.closed_at) - as_utc(i.created_at)).total_seconds() for i in closed
    )
    avg_weeks_to_close = total_seconds / WEEK_SECONDS / len(closed)

    closed_ratio = len(closed) / len(opened)
    timeliness = clamp((weeks - avg_weeks_to_close) / weeks)
    return closed_ratio, timeliness


def _commit_frequency(details: RepoDetails, window_days: int, now: datetime) -> float:
    if not details.commits:
        return 0.0

    earliest = min(as_utc(c.date) for c in details.commits)
    start = window_start(now, window_days, details.created_at, earliest)
    in_window = sum(1 for c in details.commits if as_utc(c.date) >= start)
    weeks = weeks_between(start, now)
    return clamp(in_window / weeks / BASELINE_COMMITS_PER_WEEK)


def responsiveness(
    details: RepoDetails,
    window_days: int = 180,
    now: datetime | None = None,
) -> float:
    """Score maintainer responsiveness over a trailing window.

    ``0.5 * closed_ratio + 0.25 * timeliness + 0.25 * commit_frequency``, where
    the window starts at the latest of ``now - window_days``, the repository
    creation date, and the earliest record (computed separately for issues and
    commits). A repository with neither issues nor commits scores 0.
    """
    if not details.issues and not details.commits:
        logger.debug(f"Responsiveness for {details.owner}/{details.repo}: no issues or commits")
        return 0.0

    now = now or datetime.now(timezone.utc)
    closed_ratio, timeliness = _issue_scores(details, window_days, now)
    commit_frequency = _commit_frequency(details, window_days, now)

    score = clamp(0.5 * closed_ratio + 0.25 * timeliness + 0.25 * commit_frequency)
    logger.debug(
        f"Responsiveness for {details.owner}/{details.repo}: closed {closed_ratio:.3f}, "
        f"timeliness {timeliness:.3f}, commits {commit_frequency:.3f} -> {score:.3f}"
    )
    return score
