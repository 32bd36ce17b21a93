"""End-to-end scoring pipeline for repositories."""

import asyncio
import logging
import time
from datetime import datetime, timezone

import httpx

from netscore.adapters.base import classify_url, npm_package_name, parse_repo_url
from netscore.adapters.npm import NpmAdapter
from netscore.analyzers.clone import RepoCloneManager
from netscore.analyzers.github import GitHubFetcher
from netscore.analyzers.latency import measure_latency
from netscore.analyzers.rate_limiter import RateLimiter
from netscore.config import Settings
from netscore.errors import EvaluationError, InvalidURLError, NetScoreError
from netscore.metrics import (
    bus_factor,
    correctness,
    license_compatibility,
    ramp_up_time,
    responsiveness,
)
from netscore.models.schemas import EvaluationResult, NetScoreRecord, RepoRef, UrlKind

logger = logging.getLogger(__name__)

# Component weights, summing to 1
WEIGHTS = {
    "correctness": 0.2,
    "bus_factor": 0.2,
    "license": 0.1,
    "responsiveness": 0.3,
    "ramp_up": 0.2,
}


class NetScorePipeline:
    """Orchestrates the scoring of one identifier at a time.

    Pipeline stages:
    1. Resolve the identifier to a GitHub repository (npm packages via the registry)
    2. Fetch repository details from the GitHub API
    3. Shallow-clone the repository
    4. Run the five scorers concurrently, each timed
    5. Remove the clone and combine the scores

    Usage:
        async with NetScorePipeline(settings) as pipeline:
            result = await pipeline.evaluate_identifier("https://github.com/owner/repo")
    """

    def __init__(
        self,
        settings: Settings,
        client: httpx.AsyncClient | None = None,
        clone_manager: RepoCloneManager | None = None,
        fetcher: GitHubFetcher | None = None,
        npm: NpmAdapter | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            settings: Runtime settings (token, windows, scratch directory).
            client: Optional shared httpx client. Created on enter when omitted.
            clone_manager: Clone manager. Defaults to one rooted at ``settings.scratch_dir``.
            fetcher: GitHub fetcher. Defaults to one built on the shared client.
            npm: npm registry adapter. Defaults to one built on the shared client.
        """
        self.settings = settings
        self.clone_manager = clone_manager or RepoCloneManager(settings.scratch_dir)
        self._http_client = client
        self._owns_client = client is None
        self._fetcher = fetcher
        self._npm = npm

    async def __aenter__(self) -> "NetScorePipeline":
        """Set up the shared HTTP client and the collaborators that use it."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=60.0)
        if self._fetcher is None:
            self._fetcher = GitHubFetcher(
                token=self.settings.github_token,
                client=self._http_client,
                rate_limiter=RateLimiter(self.settings.min_request_interval),
                max_pages=self.settings.max_pages,
            )
        if self._npm is None:
            self._npm = NpmAdapter(client=self._http_client)
        return self

    async def __aexit__(self, *args) -> None:
        """Clean up HTTP client."""
        if self._owns_client and self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    @property
    def fetcher(self) -> GitHubFetcher:
        if self._fetcher is None:
            raise RuntimeError("NetScorePipeline must be used as an async context manager")
        return self._fetcher

    @property
    def npm(self) -> NpmAdapter:
        if self._npm is None:
            raise RuntimeError("NetScorePipeline must be used as an async context manager")
        return self._npm

    async def resolve(self, url: str) -> RepoRef:
        """Turn an input identifier into the GitHub repository it names.

        Raises:
            InvalidURLError: If the identifier is neither a GitHub nor an npm URL.
            PackageNotFoundError: If an npm package cannot be resolved to GitHub.
        """
        kind = classify_url(url)
        if kind == UrlKind.GITHUB:
            repo_ref = parse_repo_url(url)
            if repo_ref is None:
                raise InvalidURLError(f"Invalid GitHub URL: {url}")
            return repo_ref
        if kind == UrlKind.NPM:
            name = npm_package_name(url)
            if not name:
                raise InvalidURLError(f"Invalid npm URL: {url}")
            return await self.npm.resolve_repo(name)
        raise InvalidURLError(f"Unsupported URL: {url}")

    async def evaluate(
        self,
        url: str,
        repo_ref: RepoRef,
        now: datetime | None = None,
    ) -> NetScoreRecord:
        """Score one GitHub repository.

        Args:
            url: The identifier as given, echoed in the record's URL field.
            repo_ref: The repository to fetch and clone.
            now: Reference time for every window. Defaults to the current time.

        Returns:
            The NetScoreRecord. Clone-dependent latencies include fetch and
            clone time; the others include fetch time.

        Raises:
            NetScoreError: If fetching or cloning fails; no partial record is produced.
        """
        started = time.perf_counter()
        now = now or datetime.now(timezone.utc)
        settings = self.settings

        # Stage 1: Fetch repository details
        fetch_start = time.perf_counter()
        details = await self.fetcher.fetch_repo_details(
            repo_ref.owner,
            repo_ref.repo,
            history_window_days=settings.history_window_days,
            now=now,
        )
        fetch_time = time.perf_counter() - fetch_start

        # Stage 2: Clone
        clone_start = time.perf_counter()
        clone_path = await self.clone_manager.clone(repo_ref.url)
        clone_time = time.perf_counter() - clone_start

        # Stage 3: Score concurrently, then remove the clone
        try:
            ramp, correct, bus, responsive, lic = await asyncio.gather(
                measure_latency(ramp_up_time, details, clone_path),
                measure_latency(
                    correctness,
                    details,
                    clone_path,
                    window_days=settings.correctness_window_days,
                    now=now,
                ),
                measure_latency(bus_factor, details),
                measure_latency(
                    responsiveness,
                    details,
                    window_days=settings.responsiveness_window_days,
                    now=now,
                ),
                measure_latency(license_compatibility, details),
            )
        finally:
            await self.clone_manager.remove(clone_path)

        net_score = (
            WEIGHTS["correctness"] * correct.value
            + WEIGHTS["bus_factor"] * bus.value
            + WEIGHTS["license"] * lic.value
            + WEIGHTS["responsiveness"] * responsive.value
            + WEIGHTS["ramp_up"] * ramp.value
        )

        record = NetScoreRecord(
            url=url,
            net_score=net_score,
            net_score_latency=time.perf_counter() - started,
            ramp_up=ramp.value,
            ramp_up_latency=ramp.latency + fetch_time + clone_time,
            correctness=correct.value,
            correctness_latency=correct.latency + fetch_time + clone_time,
            bus_factor=bus.value,
            bus_factor_latency=bus.latency + fetch_time,
            responsive_maintainer=responsive.value,
            responsive_maintainer_latency=responsive.latency + fetch_time,
            license=lic.value,
            license_latency=lic.latency + fetch_time,
        )
        logger.info(f"Scored {url}: NetScore {record.net_score}")
        return record

    async def evaluate_identifier(self, url: str, now: datetime | None = None) -> EvaluationResult:
        """Resolve and score one identifier, turning any failure into an error result."""
        url = url.strip()
        try:
            repo_ref = await self.resolve(url)
            record = await self.evaluate(url, repo_ref, now=now)
        except (NetScoreError, httpx.HTTPError, OSError) as e:
            error = e if isinstance(e, EvaluationError) else EvaluationError(url, e)
            logger.error(f"Evaluation failed: {error}")
            return EvaluationResult(url=url, error=str(error))
        return EvaluationResult(url=url, record=record)
