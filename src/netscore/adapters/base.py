"""URL classification and repository URL parsing."""

import re

from netscore.models.schemas import RepoRef, UrlKind

GITHUB_URL_PATTERN = re.compile(r"^(?:https?://)?(?:www\.)?github\.com/[^/\s]+/[^/\s]+")
NPM_URL_PATTERN = re.compile(
    r"^(?:https?://)?(?:www\.)?npmjs\.com/package/((?:@[^/\s]+/)?[^/\s?#]+)"
)


def classify_url(url: str) -> UrlKind:
    """Classify an input identifier as a GitHub URL, an npm URL, or invalid.

    Args:
        url: Raw identifier, typically one line of the input file.

    Returns:
        The UrlKind of the identifier.
    """
    url = url.strip()
    if GITHUB_URL_PATTERN.match(url):
        return UrlKind.GITHUB
    if NPM_URL_PATTERN.match(url):
        return UrlKind.NPM
    return UrlKind.INVALID


def npm_package_name(url: str) -> str | None:
    """Extract the package name from an npmjs.com package URL."""
    match = NPM_URL_PATTERN.match(url.strip())
    if not match:
        return None
    return match.group(1)


def parse_repo_url(url: str) -> RepoRef | None:
    """Parse a GitHub repository URL into a RepoRef.

    Supports the forms found in npm metadata as well as plain browser URLs.

    Args:
        url: Repository URL to parse.

    Returns:
        RepoRef if the URL points at a GitHub repository, None otherwise.
    """
    if not url:
        return None

    url = url.strip()

    # GitHub shorthand: github:owner/repo
    if url.startswith("github:"):
        parts = url[7:].split("/")
        if len(parts) >= 2 and parts[0] and parts[1]:
            return RepoRef(owner=parts[0], repo=_strip_git_suffix(parts[1]))
        return None

    # https://github.com/owner/repo
    # https://github.com/owner/repo.git
    # https://github.com/owner/repo/tree/main/subpath
    # git+https://github.com/owner/repo.git
    # git://github.com/owner/repo.git
    # git@github.com:owner/repo.git
    github_patterns = [
        r"(?:git\+)?(?:https?://|ssh://git@)?(?:www\.)?github\.com/([^/\s]+)/([^/\s#?]+)",
        r"git@github\.com:([^/\s]+)/([^/\s#?]+)",
        r"(?:git\+)?git://github\.com/([^/\s]+)/([^/\s#?]+)",
    ]

    for pattern in github_patterns:
        match = re.match(pattern, url)
        if match:
            repo = _strip_git_suffix(match.group(2))
            if not repo:
                return None
            return RepoRef(owner=match.group(1), repo=repo)

    return None


def _strip_git_suffix(name: str) -> str:
    name = name.rstrip("/")
    if name.endswith(".git"):
        name = name[: -len(".git")]
    return name
