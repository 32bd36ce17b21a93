"""Input identifier handling: URL classification and npm resolution."""

from netscore.adapters.base import classify_url, npm_package_name, parse_repo_url
from netscore.adapters.npm import NpmAdapter

__all__ = ["NpmAdapter", "classify_url", "npm_package_name", "parse_repo_url"]
