"""Ramp-up time: how easy the clone looks for a newcomer to pick up."""

import logging
import re
from pathlib import Path

from netscore.metrics._common import clamp
from netscore.metrics._files import walk_files
from netscore.models.schemas import RepoDetails

logger = logging.getLogger(__name__)

README_PATTERN = re.compile(r"^README(\.md|\.txt)?$", re.IGNORECASE)
INSTALL_KEYWORDS = ("install", "test", "launch", "run")

CODE_EXTENSIONS = {
    ".js", ".ts", ".py", ".java", ".c", ".cpp", ".cs",
    ".rb", ".go", ".php", ".swift", ".kt", ".kts",
}

README_WEIGHT = 0.1
INSTALL_WEIGHT = 0.4
COMMENT_WEIGHT = 0.5
# One comment line per this many lines of code counts as fully documented
LINES_PER_COMMENT = 8

# (line comment, block start, block end) per extension
_PYTHON_SYNTAX = ("#", ('"""', "'''"), ('"""', "'''"))
_RUBY_SYNTAX = ("#", ("=begin",), ("=end",))
_C_SYNTAX = ("//", ("/*",), ("*/",))


def find_readmes(root: Path) -> list[Path]:
    """Top-level README files (README, README.md, README.txt; any case)."""
    try:
        entries = sorted(root.iterdir())
    except OSError:
        return []
    return [e for e in entries if e.is_file() and not e.is_symlink() and README_PATTERN.match(e.name)]


def readme_score(root: Path) -> float:
    return README_WEIGHT if find_readmes(root) else 0.0


def install_instructions_score(root: Path) -> float:
    """0.4 when a top-level README mentions install, test, launch or run."""
    for readme in find_readmes(root):
        try:
            content = readme.read_text(encoding="utf-8", errors="replace").lower()
        except OSError as e:
            logger.debug(f"Skipping unreadable {readme}: {e}")
            continue
        if any(keyword in content for keyword in INSTALL_KEYWORDS):
            return INSTALL_WEIGHT
    return 0.0


def _syntax_for(suffix: str) -> tuple[str, tuple[str, ...], tuple[str, ...]]:
    if suffix == ".py":
        return _PYTHON_SYNTAX
    if suffix == ".rb":
        return _RUBY_SYNTAX
    return _C_SYNTAX


def count_comment_lines(lines: list[str], suffix: str) -> int:
    """Count lines that are comments or inside a block comment.

    Python docstring delimiters open and close with the same token, so a line
    with an odd number of them toggles the block state.
    """
    line_marker, block_starts, block_ends = _syntax_for(suffix)
    symmetric = block_starts == block_ends

    in_block = False
    comments = 0
    for line in lines:
        stripped = line.strip()
        if in_block:
            comments += 1
            if symmetric:
                in_block = sum(stripped.count(t) for t in block_ends) % 2 == 0
            elif any(t in stripped for t in block_ends):
                in_block = False
        elif stripped.startswith(line_marker):
            comments += 1
        elif any(t in stripped for t in block_starts):
            comments += 1
            if symmetric:
                in_block = sum(stripped.count(t) for t in block_starts) % 2 == 1
            else:
                in_block = not any(t in stripped for t in block_ends)
    return comments


def comment_ratio_score(root: Path) -> float:
    """Up to 0.5 for ``comment_lines / (total_lines / 8)``, capped at 1, over code files."""
    total_lines = 0
    total_comments = 0
    for path in walk_files(root):
        suffix = path.suffix.lower()
        if suffix not in CODE_EXTENSIONS:
            continue
        try:
            lines = path.read_text(encoding="utf-8", errors="replace").split("\n")
        except OSError as e:
            logger.debug(f"Skipping unreadable file {path}: {e}")
            continue
        total_lines += len(lines)
        total_comments += count_comment_lines(lines, suffix)

    if total_lines == 0:
        return 0.0
    ratio = total_comments / (total_lines / LINES_PER_COMMENT)
    return COMMENT_WEIGHT * min(ratio, 1.0)


def ramp_up_time(details: RepoDetails, clone_path: Path | str) -> float:
    """Score onboarding effort from the README and the comment density of the code.

    Without a README both README terms contribute 0, whatever else the clone holds.
    """
    root = Path(clone_path)
    readme = readme_score(root)
    install = install_instructions_score(root)
    comments = comment_ratio_score(root)

    score = clamp(readme + install + comments)
    logger.debug(
        f"Ramp-up for {details.owner}/{details.repo}: readme {readme}, "
        f"install {install}, comments {comments:.3f} -> {score:.3f}"
    )
    return score
