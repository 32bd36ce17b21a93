"""npm registry adapter: resolves a package to its GitHub repository."""

import logging

import httpx

from netscore.adapters.base import parse_repo_url
from netscore.cache import ExpiringCache
from netscore.errors import PackageNotFoundError
from netscore.models.schemas import RepoRef

logger = logging.getLogger(__name__)


class NpmAdapter:
    """Adapter for the npm package registry.

    Data source:
    - Package metadata: https://registry.npmjs.org/{package}

    Resolved repositories are cached so a batch that names the same package
    twice only hits the registry once.
    """

    REGISTRY_URL = "https://registry.npmjs.org"

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        cache: ExpiringCache[RepoRef] | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            client: Optional httpx client for making requests.
            cache: Optional resolution cache. Defaults to 256 entries for 15 minutes.
        """
        self._client = client
        self._cache = cache if cache is not None else ExpiringCache(max_size=256, ttl=900)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create an HTTP client."""
        if self._client is not None:
            return self._client
        return httpx.AsyncClient(timeout=30.0)

    async def _fetch_json(self, url: str) -> dict:
        """Fetch JSON from a URL."""
        client = await self._get_client()
        try:
            response = await client.get(url)
            response.raise_for_status()
            return response.json()
        finally:
            if self._client is None:
                await client.aclose()

    async def resolve_repo(self, name: str) -> RepoRef:
        """Resolve an npm package name to its GitHub repository.

        Args:
            name: Package name (supports scoped packages like @org/pkg).

        Returns:
            RepoRef for the package's GitHub repository.

        Raises:
            PackageNotFoundError: If the package doesn't exist or has no GitHub repository.
        """
        cached = self._cache.get(name)
        if cached is not None:
            logger.debug(f"npm: cache hit for {name}")
            return cached

        logger.info(f"Fetching GitHub repository URL for package: {name}")

        # URL-encode scoped package names
        encoded_name = name.replace("/", "%2F")
        url = f"{self.REGISTRY_URL}/{encoded_name}"

        try:
            data = await self._fetch_json(url)
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise PackageNotFoundError(name) from e
            raise
        except ValueError as e:
            raise PackageNotFoundError(name, "registry returned invalid JSON") from e
        if not isinstance(data, dict):
            raise PackageNotFoundError(name, "registry returned unexpected metadata")

        repo_url = self._extract_repository_url(data)
        if not repo_url:
            raise PackageNotFoundError(name, "has no repository URL in its metadata")

        repo_ref = parse_repo_url(repo_url)
        if repo_ref is None:
            raise PackageNotFoundError(name, f"repository {repo_url} is not on GitHub")

        logger.info(f"GitHub repository for {name}: {repo_ref.url}")
        self._cache.set(name, repo_ref)
        return repo_ref

    def _extract_repository_url(self, data: dict) -> str | None:
        """Extract the repository URL from registry metadata."""
        repository = data.get("repository")
        if not repository:
            # Fall back to the latest version's manifest
            latest = data.get("dist-tags", {}).get("latest")
            version_data = data.get("versions", {}).get(latest, {}) if latest else {}
            repository = version_data.get("repository")

        if isinstance(repository, str):
            url = repository
        elif isinstance(repository, dict):
            url = repository.get("url", "")
        else:
            return None

        if not url:
            return None

        # Clean up common npm URL patterns
        url = url.replace("git+", "").replace("git://", "https://")
        if url.endswith(".git"):
            url = url[: -len(".git")]

        return url or None
