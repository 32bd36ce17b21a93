"""Bus factor: how many people the project's commit history depends on."""

import logging

from netscore.metrics._common import clamp
from netscore.models.schemas import RepoDetails

logger = logging.getLogger(__name__)

# Contributors below this share of all commits are treated as outliers
OUTLIER_SHARE = 0.005
# Core contributors are the smallest group covering this share of commits
CORE_SHARE = 0.8
# A healthy project has core contributors making up this share of everyone
TARGET_CORE_RATIO = 0.35


def bus_factor(details: RepoDetails) -> float:
    """Score the spread of commits across contributors.

    Contributors are ranked by total commits; outliers below 0.5% of commits
    are dropped, and the core is the shortest prefix of the ranking covering
    80% of the remaining commits. The score is
    ``core / (0.35 * contributors)``, clamped to [0, 1].

    A project with zero or one contributor scores 0.
    """
    contributors = [c for c in details.contributors if c.total_commits > 0]
    total_contributors = len(contributors)
    if total_contributors <= 1:
        logger.debug(f"Bus factor for {details.owner}/{details.repo}: {total_contributors} contributor(s)")
        return 0.0

    total_commits = sum(c.total_commits for c in contributors)
    ranked = sorted(contributors, key=lambda c: c.total_commits, reverse=True)
    kept = [c for c in ranked if c.total_commits >= OUTLIER_SHARE * total_commits]
    kept_commits = sum(c.total_commits for c in kept)

    core = 0
    cumulative = 0
    for contributor in kept:
        core += 1
        cumulative += contributor.total_commits
        if cumulative >= CORE_SHARE * kept_commits:
            break

    score = clamp(core / (TARGET_CORE_RATIO * total_contributors))
    logger.debug(
        f"Bus factor for {details.owner}/{details.repo}: "
        f"{core} core of {total_contributors} contributors -> {score:.3f}"
    )
    return score
