"""Tests for URL classification and parsing (adapters/base.py)."""

from __future__ import annotations

import pytest

from netscore.adapters.base import classify_url, npm_package_name, parse_repo_url
from netscore.models.schemas import RepoRef, UrlKind


class TestClassifyUrl:
    @pytest.mark.parametrize(
        "url",
        [
            "https://github.com/cloudinary/cloudinary_npm",
            "http://www.github.com/nullivex/nodist",
            "github.com/lodash/lodash  ",
        ],
    )
    def test_github(self, url):
        assert classify_url(url) == UrlKind.GITHUB

    @pytest.mark.parametrize(
        "url",
        [
            "https://www.npmjs.com/package/express",
            "https://npmjs.com/package/@babel/core",
        ],
    )
    def test_npm(self, url):
        assert classify_url(url) == UrlKind.NPM

    @pytest.mark.parametrize(
        "url",
        [
            "https://gitlab.com/owner/repo",
            "https://github.com/only-owner",
            "https://www.npmjs.com/search?q=express",
            "not a url",
            "",
        ],
    )
    def test_invalid(self, url):
        assert classify_url(url) == UrlKind.INVALID


class TestNpmPackageName:
    def test_plain(self):
        assert npm_package_name("https://www.npmjs.com/package/browserify") == "browserify"

    def test_scoped(self):
        assert npm_package_name("https://www.npmjs.com/package/@types/node") == "@types/node"

    def test_query_is_dropped(self):
        assert npm_package_name("https://www.npmjs.com/package/express?activeTab=readme") == "express"

    def test_not_npm(self):
        assert npm_package_name("https://github.com/a/b") is None


class TestParseRepoUrl:
    @pytest.mark.parametrize(
        "url",
        [
            "https://github.com/owner/repo",
            "https://github.com/owner/repo.git",
            "https://github.com/owner/repo/tree/main/packages/x",
            "git+https://github.com/owner/repo.git",
            "git://github.com/owner/repo.git",
            "git+ssh://git@github.com/owner/repo.git",
            "git@github.com:owner/repo.git",
            "github:owner/repo",
        ],
    )
    def test_github_forms(self, url):
        assert parse_repo_url(url) == RepoRef(owner="owner", repo="repo")

    @pytest.mark.parametrize("url", ["", "https://gitlab.com/owner/repo", "github:owner"])
    def test_rejected(self, url):
        assert parse_repo_url(url) is None

    def test_ref_urls(self):
        ref = RepoRef(owner="owner", repo="repo")
        assert ref.url == "https://github.com/owner/repo"
        assert ref.clone_url == "https://github.com/owner/repo.git"
