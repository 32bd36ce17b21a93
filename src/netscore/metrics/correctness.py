"""Correctness: test infrastructure in the clone plus issue close rate."""

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path

from netscore.metrics._common import as_utc, clamp
from netscore.metrics._files import count_files, find_directory, walk_files
from netscore.models.schemas import RepoDetails

logger = logging.getLogger(__name__)

SOURCE_DIR_NAMES = {"src", "source", "sources", "lib", "libs", "app", "apps", "pkg", "packages"}
TEST_DIR_NAMES = {"test", "tests", "spec", "specs", "__tests__", "testing", "e2e"}

CI_FILE_NAMES = {
    ".travis.yml",
    ".gitlab-ci.yml",
    "jenkinsfile",
    "appveyor.yml",
    ".appveyor.yml",
    "azure-pipelines.yml",
    "bitbucket-pipelines.yml",
    ".drone.yml",
    ".cirrus.yml",
    "buildkite.yml",
    "codefresh.yml",
}

FOLDER_SEARCH_DEPTH = 3
CI_BASE_SCORE = 0.8
TEST_RATIO_WEIGHT = 0.2


def _is_ci_config(path: Path) -> bool:
    name = path.name.lower()
    if name in CI_FILE_NAMES:
        return True
    parent = path.parent
    # .github/workflows/*.yml and .circleci/config.yml
    if parent.name == "workflows" and parent.parent.name == ".github":
        return path.suffix in (".yml", ".yaml")
    return parent.name == ".circleci" and name in ("config.yml", "config.yaml")


def has_ci_config(root: Path) -> bool:
    """Search the whole clone, breadth-first, for a CI configuration file."""
    return any(_is_ci_config(path) for path in walk_files(root))


def _test_layout(root: Path) -> tuple[int, int] | None:
    """Return (source_files, test_files), or None without a usable layout.

    A layout needs a source folder holding at least one file and a test folder.
    """
    source_dir = find_directory(root, SOURCE_DIR_NAMES, FOLDER_SEARCH_DEPTH)
    if source_dir is None:
        logger.debug(f"No source folder found in {root}")
        return None

    test_dir = find_directory(root, TEST_DIR_NAMES, FOLDER_SEARCH_DEPTH)
    if test_dir is None:
        logger.debug(f"No test folder found in {root}")
        return None

    source_files = count_files(source_dir)
    if source_files == 0:
        logger.debug(f"Source folder {source_dir} is empty")
        return None

    return source_files, count_files(test_dir)


def _coverage_from_layout(root: Path, layout: tuple[int, int]) -> float:
    source_files, test_files = layout
    score = CI_BASE_SCORE if has_ci_config(root) else 0.0
    score += TEST_RATIO_WEIGHT * min(test_files / source_files, 1.0)
    return clamp(score)


def coverage_score(clone_path: Path | str) -> float:
    """Score test infrastructure: 0.8 for CI plus up to 0.2 for the test/source file ratio.

    Without a source folder (or with an empty one), or without a test folder,
    the score is 0.
    """
    root = Path(clone_path)
    layout = _test_layout(root)
    if layout is None:
        return 0.0
    return _coverage_from_layout(root, layout)


def issue_close_ratio(
    details: RepoDetails,
    window_days: int = 180,
    now: datetime | None = None,
) -> float:
    """Share of issues opened in the trailing window that are now closed."""
    now = now or datetime.now(timezone.utc)
    window_start = now - timedelta(days=window_days)

    opened = [i for i in details.issues if as_utc(i.created_at) >= window_start]
    if not opened:
        return 0.0
    closed = [i for i in opened if i.is_closed]
    return len(closed) / len(opened)


def correctness(
    details: RepoDetails,
    clone_path: Path | str,
    window_days: int = 180,
    now: datetime | None = None,
) -> float:
    """Score correctness as ``0.5 * test_coverage + 0.5 * issue_close_ratio``.

    A clone with no recognisable source or test folder scores 0 outright.
    """
    root = Path(clone_path)
    layout = _test_layout(root)
    if layout is None:
        return 0.0

    coverage = _coverage_from_layout(root, layout)
    ratio = issue_close_ratio(details, window_days=window_days, now=now)
    score = clamp(0.5 * coverage + 0.5 * ratio)
    logger.debug(
        f"Correctness for {details.owner}/{details.repo}: "
        f"coverage {coverage:.3f}, close ratio {ratio:.3f} -> {score:.3f}"
    )
    return score
