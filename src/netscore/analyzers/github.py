"""GitHub data fetcher for repository analysis."""

import asyncio
import base64
import json
import logging
import re
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import httpx

from netscore.analyzers.rate_limiter import RateLimiter
from netscore.config import DEFAULT_MIN_INTERVAL
from netscore.errors import (
    AuthenticationError,
    GitHubAPIError,
    RateLimitExceeded,
    RepositoryNotFoundError,
)
from netscore.models.schemas import CommitRecord, ContributorRecord, IssueRecord, RepoDetails

logger = logging.getLogger(__name__)

NO_LICENSE = "No license"

# Full names are matched before SPDX ids so "MIT License" wins over "MIT".
KNOWN_LICENSE_NAMES = [
    "GNU Affero General Public License v3.0",
    "GNU Lesser General Public License v2.1",
    "GNU Lesser General Public License v3.0",
    "GNU General Public License v2.0",
    "GNU General Public License v3.0",
    "Apache License 2.0",
    "Academic Free License v3.0",
    "Artistic License 2.0",
    "Boost Software License 1.0",
    "BSD 2-clause Simplified License",
    "BSD 3-clause Clear License",
    "BSD 3-clause New or Revised License",
    "BSD 4-clause Original or Old License",
    "BSD Zero Clause License",
    "Creative Commons Zero v1.0 Universal",
    "Creative Commons Attribution ShareAlike 4.0",
    "Creative Commons Attribution 4.0",
    "Educational Community License v2.0",
    "Eclipse Public License 1.0",
    "Eclipse Public License 2.0",
    "European Union Public License 1.1",
    "ISC License",
    "LaTeX Project Public License v1.3c",
    "Microsoft Public License",
    "MIT License",
    "Mozilla Public License 2.0",
    "Open Software License 3.0",
    "PostgreSQL License",
    "SIL Open Font License 1.1",
    "University of Illinois/NCSA Open Source License",
    "The Unlicense",
    "zLib License",
]

KNOWN_LICENSE_IDS = [
    "AGPL-3.0",
    "LGPL-2.1",
    "LGPL-3.0",
    "GPL-2.0",
    "GPL-3.0",
    "Apache-2.0",
    "AFL-3.0",
    "Artistic-2.0",
    "BSL-1.0",
    "BSD-2-Clause",
    "BSD-3-Clause-Clear",
    "BSD-3-Clause",
    "BSD-4-Clause",
    "0BSD",
    "CC0-1.0",
    "CC-BY-SA-4.0",
    "CC-BY-4.0",
    "ECL-2.0",
    "EPL-1.0",
    "EPL-2.0",
    "EUPL-1.1",
    "ISC",
    "LPPL-1.3c",
    "MS-PL",
    "MIT",
    "MPL-2.0",
    "OSL-3.0",
    "PostgreSQL",
    "OFL-1.1",
    "NCSA",
    "Unlicense",
    "Zlib",
    "WTFPL",
]

_LICENSE_PATTERNS = [
    (name, re.compile(rf"(?<![\w-]){re.escape(name)}(?!\w)", re.IGNORECASE))
    for name in KNOWN_LICENSE_NAMES + KNOWN_LICENSE_IDS
]


def match_license_text(text: str) -> str | None:
    """Find the first known license name or SPDX id mentioned in ``text``.

    Matching is case-insensitive and anchored on word boundaries, so "GPL-3.0"
    does not match inside "LGPL-3.0".

    Returns:
        The canonical spelling from the known-license table, or None.
    """
    if not text:
        return None
    for name, pattern in _LICENSE_PATTERNS:
        if pattern.search(text):
            return name
    return None


def is_newest_first(dates: list[datetime]) -> bool:
    """Check that a page of results is ordered newest-first."""
    return all(earlier >= later for earlier, later in zip(dates, dates[1:]))


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _commit_date(commit: dict) -> datetime | None:
    return _parse_datetime(commit.get("commit", {}).get("author", {}).get("date"))


def _issue_date(issue: dict) -> datetime | None:
    return _parse_datetime(issue.get("created_at"))


class GitHubFetcher:
    """Fetches repository data from the GitHub REST API.

    Every request goes through a RateLimiter, so concurrent callers never have
    more than one request in flight. Required endpoints raise on failure;
    optional ones (package.json, README) return None on 404.
    """

    BASE_URL = "https://api.github.com"
    PER_PAGE = 100

    # /stats/contributors answers 202 while GitHub computes the statistics
    STATS_POLL_ATTEMPTS = 3

    def __init__(
        self,
        token: str,
        client: httpx.AsyncClient | None = None,
        rate_limiter: RateLimiter | None = None,
        max_pages: int = 5,
        stats_poll_delay: float = 2.0,
    ) -> None:
        """Initialize the fetcher.

        Args:
            token: GitHub personal access token, sent as a bearer token.
            client: Optional httpx client. If not provided, a new client is created per call.
            rate_limiter: Limiter shared by all requests. Defaults to the hourly quota spacing.
            max_pages: Maximum number of 100-entry pages read from paginated endpoints.
            stats_poll_delay: Seconds to wait between contributor statistics polls.
        """
        self._token = token
        self._client = client
        self._limiter = rate_limiter or RateLimiter(DEFAULT_MIN_INTERVAL)
        self.max_pages = max_pages
        self.stats_poll_delay = stats_poll_delay

        # Rate limit tracking
        self.rate_limit_remaining: int = 5000
        self.rate_limit_total: int = 5000
        self.rate_limit_reset: datetime | None = None

    def _headers(self) -> dict[str, str]:
        """Get headers for GitHub API requests."""
        return {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "Authorization": f"Bearer {self._token}",
        }

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create an HTTP client."""
        if self._client is not None:
            return self._client
        return httpx.AsyncClient(timeout=30.0, headers=self._headers())

    def _update_rate_limits(self, response: httpx.Response) -> None:
        """Extract and store rate limit info from response headers."""
        remaining = response.headers.get("X-RateLimit-Remaining")
        limit = response.headers.get("X-RateLimit-Limit")
        reset = response.headers.get("X-RateLimit-Reset")

        if remaining is not None:
            self.rate_limit_remaining = int(remaining)
        if limit is not None:
            self.rate_limit_total = int(limit)
        if reset is not None:
            self.rate_limit_reset = datetime.fromtimestamp(int(reset), tz=timezone.utc)

    def _raise_for_status(self, response: httpx.Response, path: str) -> None:
        """Map an error response onto the netscore exception hierarchy."""
        status = response.status_code
        if status < 400:
            return

        message = response.reason_phrase
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("message"):
            message = body["message"]

        if status == 401:
            logger.error(f"GitHub rejected the token for {path}: {message}")
            raise AuthenticationError(status, f"invalid or missing GitHub token ({message})")
        if status in (403, 429) and response.headers.get("X-RateLimit-Remaining") == "0":
            logger.error(f"GitHub rate limit exhausted on {path}")
            raise RateLimitExceeded(status, self.rate_limit_reset)
        if status == 404:
            logger.error(f"GitHub resource not found: {path}")
            raise RepositoryNotFoundError(status, f"{path} not found")

        logger.error(f"GitHub API error {status} on {path}: {message}")
        raise GitHubAPIError(status, message)

    def _decode(self, response: httpx.Response, path: str) -> dict | list:
        """Parse a successful response body, which must be JSON."""
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"GitHub returned a non-JSON body for {path}")
            raise GitHubAPIError(response.status_code, f"invalid JSON from {path}") from e

    async def _get(
        self, client: httpx.AsyncClient, path: str, params: dict | None = None
    ) -> httpx.Response:
        """Issue one rate-limited GET."""
        url = f"{self.BASE_URL}{path}"
        request_params = dict(params) if params else None
        logger.debug(f"GET {path} {request_params or ''}")
        response = await self._limiter.schedule(
            lambda: client.get(url, params=request_params, headers=self._headers())
        )
        self._update_rate_limits(response)
        return response

    async def _fetch(
        self,
        path: str,
        params: dict | None = None,
        allow_missing: bool = False,
    ) -> dict | list | None:
        """Fetch from GitHub API.

        Returns None on 404 when ``allow_missing`` is set, raises on other errors.
        """
        client = await self._get_client()
        try:
            response = await self._get(client, path, params)
            if response.status_code == 404 and allow_missing:
                return None
            self._raise_for_status(response, path)
            return self._decode(response, path)
        finally:
            if self._client is None:
                await client.aclose()

    async def _fetch_paged(
        self,
        path: str,
        since: datetime,
        date_of: Callable[[dict], datetime | None],
        params: dict | None = None,
    ) -> list[dict]:
        """Walk a newest-first paginated endpoint back to ``since``.

        Stops on an empty page, a short page, after ``max_pages`` pages, or once
        a page's oldest entry predates ``since``. The last check only holds for
        newest-first results, so every page is verified; an out-of-order page
        disables early stopping for the rest of the walk.
        """
        client = await self._get_client()
        params = dict(params or {})
        params["per_page"] = self.PER_PAGE

        results: list[dict] = []
        early_stop = True
        page = 1

        try:
            while page <= self.max_pages:
                params["page"] = page
                response = await self._get(client, path, params)
                self._raise_for_status(response, path)

                data = self._decode(response, path)
                if not data:
                    break
                if not isinstance(data, list):
                    raise GitHubAPIError(response.status_code, f"expected a list from {path}")

                results.extend(data)

                dates = [d for d in (date_of(entry) for entry in data) if d is not None]
                if early_stop and not is_newest_first(dates):
                    logger.warning(
                        f"{path} page {page} is not ordered newest-first; "
                        "reading remaining pages without early stop"
                    )
                    early_stop = False

                # Check if there are more pages
                if len(data) < self.PER_PAGE:
                    break
                if early_stop and dates and dates[-1] < since:
                    break
                page += 1

            logger.debug(f"{path}: {len(results)} entries from {page} page(s)")
            return results
        finally:
            if self._client is None:
                await client.aclose()

    async def fetch_repo_metadata(self, owner: str, repo: str) -> dict:
        """Fetch basic repository information.

        Raises:
            GitHubAPIError: On any failure, including 404 for an unknown repository.
        """
        logger.info(f"Fetching repository metadata for {owner}/{repo}")
        data = await self._fetch(f"/repos/{owner}/{repo}")
        if not isinstance(data, dict):
            raise GitHubAPIError(200, f"unexpected metadata payload for {owner}/{repo}")
        return data

    async def resolve_license(self, metadata: dict, owner: str, repo: str) -> str:
        """Resolve a human-readable license name for the repository.

        Order: the declared license in ``metadata``; the ``license`` field of
        package.json; a known license mentioned in the README; "No license".
        A declared license of "Other" counts as absent. The declared SPDX id is
        preferred over GitHub's display name, which varies in punctuation.
        """
        license_info = metadata.get("license") or {}
        spdx_id = license_info.get("spdx_id")
        if spdx_id and spdx_id != "NOASSERTION":
            return spdx_id
        declared = license_info.get("name")
        if declared and declared != "Other":
            return declared

        logger.debug(f"No usable declared license for {owner}/{repo}, checking package.json")
        from_package = await self.fetch_package_json_license(owner, repo)
        if from_package:
            return from_package

        logger.debug(f"No package.json license for {owner}/{repo}, scanning README")
        readme = await self.fetch_readme_content(owner, repo)
        from_readme = match_license_text(readme or "")
        if from_readme:
            return from_readme

        logger.info(f"No license found for {owner}/{repo}")
        return NO_LICENSE

    async def fetch_package_json_license(self, owner: str, repo: str) -> str | None:
        """Read the ``license`` field out of the repository's package.json."""
        content = await self._fetch_file_content(f"/repos/{owner}/{repo}/contents/package.json")
        if not content:
            return None

        try:
            manifest = json.loads(content)
        except ValueError:
            logger.debug(f"package.json for {owner}/{repo} is not valid JSON")
            return None
        if not isinstance(manifest, dict):
            return None

        license_info = manifest.get("license") or manifest.get("licenses")
        if isinstance(license_info, str):
            return license_info
        elif isinstance(license_info, dict):
            return license_info.get("type") or license_info.get("name")
        elif isinstance(license_info, list) and license_info:
            first = license_info[0]
            if isinstance(first, str):
                return first
            elif isinstance(first, dict):
                return first.get("type") or first.get("name")

        return None

    async def fetch_readme_content(self, owner: str, repo: str) -> str | None:
        """Fetch the README content."""
        return await self._fetch_file_content(f"/repos/{owner}/{repo}/readme")

    async def _fetch_file_content(self, path: str) -> str | None:
        """Fetch a contents-API payload and decode its base64 body."""
        payload = await self._fetch(path, allow_missing=True)
        if not payload or not isinstance(payload, dict):
            return None

        content = payload.get("content", "")
        if not content:
            return None
        try:
            return base64.b64decode(content).decode("utf-8")
        except (ValueError, UnicodeDecodeError):
            logger.debug(f"Could not decode content from {path}")
            return None

    async def fetch_paged_commits(
        self, owner: str, repo: str, since: datetime
    ) -> tuple[CommitRecord, ...]:
        """Fetch commits newer than ``since``, newest-first."""
        raw = await self._fetch_paged(
            f"/repos/{owner}/{repo}/commits",
            since=since,
            date_of=_commit_date,
            params={"since": since.isoformat()},
        )

        commits = []
        for commit in raw:
            date = _commit_date(commit)
            if date is None or date < since:
                continue
            author = commit.get("author") or {}
            identity = author.get("login") or commit.get("commit", {}).get("author", {}).get("name")
            commits.append(CommitRecord(author=identity, date=date))
        return tuple(commits)

    async def fetch_paged_issues(
        self, owner: str, repo: str, since: datetime
    ) -> tuple[IssueRecord, ...]:
        """Fetch issues created after ``since``, newest-first, excluding pull requests."""
        raw = await self._fetch_paged(
            f"/repos/{owner}/{repo}/issues",
            since=since,
            date_of=_issue_date,
            params={"state": "all", "sort": "created", "direction": "desc"},
        )

        issues = []
        for issue in raw:
            # Pull requests are included in the issues endpoint
            if "pull_request" in issue:
                continue
            created_at = _issue_date(issue)
            if created_at is None or created_at < since:
                continue
            issues.append(
                IssueRecord(
                    created_at=created_at,
                    closed_at=_parse_datetime(issue.get("closed_at")),
                    state=issue.get("state", "open"),
                )
            )
        return tuple(issues)

    async def fetch_contributor_stats(self, owner: str, repo: str) -> tuple[ContributorRecord, ...]:
        """Fetch per-contributor commit totals."""
        path = f"/repos/{owner}/{repo}/stats/contributors"
        client = await self._get_client()

        try:
            for attempt in range(1, self.STATS_POLL_ATTEMPTS + 1):
                response = await self._get(client, path)
                self._raise_for_status(response, path)
                if response.status_code != 202:
                    break
                logger.debug(f"{path} still computing (attempt {attempt})")
                if attempt < self.STATS_POLL_ATTEMPTS:
                    await asyncio.sleep(self.stats_poll_delay)
            else:
                logger.warning(f"Contributor statistics for {owner}/{repo} not ready, using none")
                return ()

            if response.status_code == 204 or not response.content:
                return ()
            data = self._decode(response, path)
        finally:
            if self._client is None:
                await client.aclose()

        if not isinstance(data, list):
            raise GitHubAPIError(response.status_code, f"expected a list from {path}")

        contributors = []
        for entry in data:
            author = entry.get("author") or {}
            login = author.get("login")
            if not login:
                continue
            contributors.append(ContributorRecord(login=login, total_commits=entry.get("total", 0)))
        return tuple(contributors)

    async def fetch_repo_details(
        self,
        owner: str,
        repo: str,
        history_window_days: int = 365,
        now: datetime | None = None,
    ) -> RepoDetails:
        """Fetch everything the scorers need for one repository.

        Metadata is fetched first, then the license, then the commit, issue and
        contributor history.

        Raises:
            GitHubAPIError: If any required endpoint fails.
        """
        now = now or datetime.now(timezone.utc)
        since = now - timedelta(days=history_window_days)

        metadata = await self.fetch_repo_metadata(owner, repo)
        license_name = await self.resolve_license(metadata, owner, repo)
        commits = await self.fetch_paged_commits(owner, repo, since)
        issues = await self.fetch_paged_issues(owner, repo, since)
        contributors = await self.fetch_contributor_stats(owner, repo)

        logger.info(
            f"Fetched {owner}/{repo}: {len(commits)} commits, {len(issues)} issues, "
            f"{len(contributors)} contributors, license {license_name!r}"
        )

        return RepoDetails(
            owner=owner,
            repo=repo,
            created_at=_parse_datetime(metadata.get("created_at")),
            stars=metadata.get("stargazers_count", 0),
            forks=metadata.get("forks_count", 0),
            open_issues=metadata.get("open_issues_count", 0),
            license=license_name,
            commits=commits,
            issues=issues,
            contributors=contributors,
        )
