"""Shallow repository clones in a scratch directory, and their safe removal."""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import signal
from pathlib import Path
from urllib.parse import urlparse

from netscore.errors import CloneError, InvalidURLError, UnsafePathError

logger = logging.getLogger(__name__)

_OUTPUT_LIMIT = 2000
_GITHUB_HOSTS = {"github.com", "www.github.com"}


def parse_clone_url(url: str) -> tuple[str, str]:
    """Validate a GitHub HTTPS URL and return its (owner, repo).

    Raises:
        InvalidURLError: If the host is not github.com or the path lacks owner/repo.
    """
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https") or parsed.hostname not in _GITHUB_HOSTS:
        raise InvalidURLError(f"Invalid GitHub URL: {url}")

    parts = [p for p in parsed.path.split("/") if p]
    if len(parts) < 2:
        raise InvalidURLError(f"Invalid GitHub URL: {url}")

    owner, repo = parts[0], parts[1]
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    if not owner or not repo or owner in (".", "..") or repo in (".", ".."):
        raise InvalidURLError(f"Invalid GitHub URL: {url}")
    return owner, repo


class RepoCloneManager:
    """Owns the scratch directory that clones are written into.

    Each clone lives at ``<scratch_root>/<owner>__<repo>``. Removal refuses
    any path that is not strictly inside the scratch root.
    """

    def __init__(self, scratch_root: Path | str, timeout: float = 300.0) -> None:
        self.scratch_root = Path(scratch_root).resolve()
        self.timeout = timeout

    def clone_path_for(self, owner: str, repo: str) -> Path:
        """Get the deterministic clone location for a repository."""
        return self.scratch_root / f"{owner}__{repo}"

    async def clone(self, url: str) -> Path:
        """Shallow-clone a single branch of ``url`` into the scratch root.

        Returns:
            Path to the cloned working tree.

        Raises:
            InvalidURLError: If ``url`` is not a GitHub repository URL.
            CloneError: If git fails or times out.
        """
        owner, repo = parse_clone_url(url)
        target = self.clone_path_for(owner, repo)

        self.scratch_root.mkdir(parents=True, exist_ok=True)
        if target.exists():
            logger.info(f"Removing leftover clone at {target}")
            await self.remove(target)

        cmd = ["git", "clone", "--depth", "1", "--single-branch", url, str(target)]
        logger.info(f"Cloning {url} into {target}")
        returncode, stderr = await self._run(cmd)
        if returncode != 0:
            raise CloneError(f"git clone of {url} failed: {stderr.strip()}")

        return target

    async def _run(self, cmd: list[str]) -> tuple[int, str]:
        """Run a git command, return (returncode, stderr)."""
        env = dict(os.environ, GIT_TERMINAL_PROMPT="0")
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
                start_new_session=True,
            )
        except FileNotFoundError as e:
            raise CloneError("git executable not found on PATH") from e

        try:
            _, stderr_bytes = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            try:
                os.killpg(os.getpgid(proc.pid), signal.SIGKILL)
            except (ProcessLookupError, OSError):
                proc.kill()
            await proc.wait()
            raise CloneError(f"git clone timed out after {self.timeout}s") from None

        return proc.returncode or 0, stderr_bytes.decode(errors="replace")[:_OUTPUT_LIMIT]

    def check_removable(self, path: Path | str) -> Path:
        """Run the removal safety checks and return the resolved path.

        Raises:
            UnsafePathError: If the path is outside the scratch root, is the root
                itself, or does not exist.
        """
        resolved = Path(path).resolve()

        if not resolved.is_relative_to(self.scratch_root):
            raise UnsafePathError(f"Cannot remove {resolved}: outside {self.scratch_root}")
        if resolved == self.scratch_root:
            raise UnsafePathError(f"Cannot remove the scratch root {self.scratch_root}")
        if not resolved.exists():
            raise UnsafePathError(f"Cannot remove {resolved}: path does not exist")

        return resolved

    async def remove(self, path: Path | str) -> None:
        """Delete a clone after the safety checks pass."""
        resolved = self.check_removable(path)
        logger.info(f"Removing clone at {resolved}")
        await asyncio.to_thread(shutil.rmtree, resolved)
