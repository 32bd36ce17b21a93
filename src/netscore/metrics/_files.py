"""File-system walks shared by the clone-based scorers.

All walks skip symbolic links (clones can contain link cycles) and the
``.git`` directory.
"""

from collections import deque
from collections.abc import Iterator
from pathlib import Path

SKIPPED_DIRS = {".git"}


def _children(directory: Path) -> list[Path]:
    try:
        return sorted(directory.iterdir())
    except OSError:
        return []


def walk_files(root: Path) -> Iterator[Path]:
    """Yield every regular file under ``root``, breadth-first."""
    queue = deque([root])
    while queue:
        directory = queue.popleft()
        for entry in _children(directory):
            if entry.is_symlink():
                continue
            if entry.is_dir():
                if entry.name not in SKIPPED_DIRS:
                    queue.append(entry)
            elif entry.is_file():
                yield entry


def find_directory(root: Path, names: set[str], max_depth: int) -> Path | None:
    """Breadth-first search for the shallowest directory whose name is in ``names``.

    Depth 1 is the immediate children of ``root``. Names compare case-insensitively.
    """
    queue = deque([(root, 0)])
    while queue:
        directory, depth = queue.popleft()
        if depth >= max_depth:
            continue
        for entry in _children(directory):
            if entry.is_symlink() or not entry.is_dir() or entry.name in SKIPPED_DIRS:
                continue
            if entry.name.lower() in names:
                return entry
            queue.append((entry, depth + 1))
    return None


def count_files(directory: Path) -> int:
    """Count regular files under ``directory``."""
    return sum(1 for _ in walk_files(directory))
