"""Tests for NetScorePipeline (analyzers/pipeline.py)."""

from __future__ import annotations

import asyncio
from datetime import timedelta
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from netscore.adapters.npm import NpmAdapter
from netscore.analyzers.clone import RepoCloneManager
from netscore.analyzers.github import GitHubFetcher
from netscore.analyzers.pipeline import WEIGHTS, NetScorePipeline
from netscore.config import Settings
from netscore.errors import CloneError, PackageNotFoundError, RepositoryNotFoundError
from netscore.models.schemas import CommitRecord, ContributorRecord, IssueRecord, RepoRef

OUTPUT_KEYS = {
    "URL",
    "NetScore",
    "NetScore_Latency",
    "RampUp",
    "RampUp_Latency",
    "Correctness",
    "Correctness_Latency",
    "BusFactor",
    "BusFactor_Latency",
    "ResponsiveMaintainer",
    "ResponsiveMaintainer_Latency",
    "License",
    "License_Latency",
}


@pytest.fixture()
def clone_dir(make_tree) -> Path:
    return make_tree({
        "README.md": "Run `npm install` to get started.",
        "src/index.js": "// entry point\nmodule.exports = 1;",
        "src/util.js": "module.exports = 2;",
        "test/index.test.js": "// smoke\ntest('x', () => {});",
        ".github/workflows/ci.yml": "on: push",
    })


@pytest.fixture()
def details(make_details, now):
    yesterday = now - timedelta(days=1)
    return make_details(
        license="MIT",
        commits=tuple(CommitRecord(author="a", date=yesterday) for _ in range(5)),
        issues=(
            IssueRecord(created_at=yesterday, closed_at=yesterday, state="closed"),
            IssueRecord(created_at=yesterday),
        ),
        contributors=(
            ContributorRecord(login="a", total_commits=60),
            ContributorRecord(login="b", total_commits=30),
            ContributorRecord(login="c", total_commits=10),
        ),
    )


@pytest.fixture()
def fetcher(details) -> MagicMock:
    mock = MagicMock(spec=GitHubFetcher)
    mock.fetch_repo_details = AsyncMock(return_value=details)
    return mock


@pytest.fixture()
def clone_manager(clone_dir: Path) -> MagicMock:
    mock = MagicMock(spec=RepoCloneManager)
    mock.clone = AsyncMock(return_value=clone_dir)
    mock.remove = AsyncMock()
    return mock


@pytest.fixture()
def npm() -> MagicMock:
    mock = MagicMock(spec=NpmAdapter)
    mock.resolve_repo = AsyncMock(return_value=RepoRef(owner="lodash", repo="lodash"))
    return mock


@pytest.fixture()
def pipeline(tmp_path, fetcher, clone_manager, npm) -> NetScorePipeline:
    settings = Settings(github_token="ghp_test", scratch_dir=tmp_path / "scratch")
    return NetScorePipeline(
        settings,
        client=MagicMock(spec=httpx.AsyncClient),
        clone_manager=clone_manager,
        fetcher=fetcher,
        npm=npm,
    )


def _scores(output: dict) -> dict:
    return {k: v for k, v in output.items() if not k.endswith("_Latency")}


class TestEvaluate:
    async def test_record_shape_and_weighting(self, pipeline, now):
        async with pipeline:
            record = await pipeline.evaluate(
                "https://github.com/octo/widgets", RepoRef(owner="octo", repo="widgets"), now=now
            )

        output = record.to_output()
        assert set(output) == OUTPUT_KEYS
        assert output["URL"] == "https://github.com/octo/widgets"
        expected = (
            WEIGHTS["correctness"] * output["Correctness"]
            + WEIGHTS["bus_factor"] * output["BusFactor"]
            + WEIGHTS["license"] * output["License"]
            + WEIGHTS["responsiveness"] * output["ResponsiveMaintainer"]
            + WEIGHTS["ramp_up"] * output["RampUp"]
        )
        assert output["NetScore"] == pytest.approx(expected, abs=0.002)
        assert output["License"] == 1.0
        for key, value in output.items():
            if key != "URL":
                assert value == round(value, 3)
                if not key.endswith("_Latency"):
                    assert 0.0 <= value <= 1.0

    async def test_clone_is_removed(self, pipeline, clone_manager, clone_dir, now):
        async with pipeline:
            await pipeline.evaluate("u", RepoRef(owner="octo", repo="widgets"), now=now)

        clone_manager.clone.assert_awaited_once_with("https://github.com/octo/widgets")
        clone_manager.remove.assert_awaited_once_with(clone_dir)

    async def test_clone_is_removed_when_a_scorer_fails(self, pipeline, clone_manager, clone_dir, now):
        def broken(details):
            raise RuntimeError("boom")

        with patch("netscore.analyzers.pipeline.bus_factor", new=broken):
            async with pipeline:
                with pytest.raises(RuntimeError, match="boom"):
                    await pipeline.evaluate("u", RepoRef(owner="octo", repo="widgets"), now=now)

        clone_manager.remove.assert_awaited_once_with(clone_dir)

    async def test_fetch_time_is_folded_into_latencies(self, pipeline, fetcher, details, now):
        async def slow_fetch(*args, **kwargs):
            await asyncio.sleep(0.05)
            return details

        fetcher.fetch_repo_details = AsyncMock(side_effect=slow_fetch)
        async with pipeline:
            record = await pipeline.evaluate("u", RepoRef(owner="octo", repo="widgets"), now=now)

        for latency in (
            record.ramp_up_latency,
            record.correctness_latency,
            record.bus_factor_latency,
            record.responsive_maintainer_latency,
            record.license_latency,
        ):
            assert latency >= 0.045
        assert record.net_score_latency >= record.ramp_up_latency - 0.001

    async def test_idempotent_with_fixed_data(self, pipeline, now):
        ref = RepoRef(owner="octo", repo="widgets")
        async with pipeline:
            first = await pipeline.evaluate("u", ref, now=now)
            second = await pipeline.evaluate("u", ref, now=now)

        assert _scores(first.to_output()) == _scores(second.to_output())


class TestEvaluateIdentifier:
    async def test_github_url(self, pipeline, fetcher, now):
        async with pipeline:
            result = await pipeline.evaluate_identifier("https://github.com/octo/widgets\n", now=now)

        assert result.ok
        assert result.error is None
        assert result.record.url == "https://github.com/octo/widgets"
        fetcher.fetch_repo_details.assert_awaited_once()
        assert fetcher.fetch_repo_details.await_args.args[:2] == ("octo", "widgets")

    async def test_npm_url_is_resolved(self, pipeline, npm, clone_manager, now):
        async with pipeline:
            result = await pipeline.evaluate_identifier("https://www.npmjs.com/package/lodash", now=now)

        assert result.ok
        assert result.record.url == "https://www.npmjs.com/package/lodash"
        npm.resolve_repo.assert_awaited_once_with("lodash")
        clone_manager.clone.assert_awaited_once_with("https://github.com/lodash/lodash")

    async def test_invalid_url_is_an_error_result(self, pipeline, fetcher):
        async with pipeline:
            result = await pipeline.evaluate_identifier("https://gitlab.com/a/b")

        assert not result.ok
        assert "Unsupported URL" in result.error
        fetcher.fetch_repo_details.assert_not_awaited()

    async def test_fetch_failure_skips_clone(self, pipeline, fetcher, clone_manager):
        fetcher.fetch_repo_details = AsyncMock(side_effect=RepositoryNotFoundError(404, "/repos/o/r not found"))
        async with pipeline:
            result = await pipeline.evaluate_identifier("https://github.com/o/r")

        assert not result.ok
        assert "404" in result.error
        clone_manager.clone.assert_not_awaited()

    async def test_clone_failure(self, pipeline, clone_manager):
        clone_manager.clone = AsyncMock(side_effect=CloneError("git clone failed"))
        async with pipeline:
            result = await pipeline.evaluate_identifier("https://github.com/o/r")

        assert not result.ok
        assert "git clone failed" in result.error
        clone_manager.remove.assert_not_awaited()

    async def test_unresolvable_package(self, pipeline, npm):
        npm.resolve_repo = AsyncMock(side_effect=PackageNotFoundError("ghost"))
        async with pipeline:
            result = await pipeline.evaluate_identifier("https://www.npmjs.com/package/ghost")

        assert not result.ok
        assert "ghost" in result.error

    async def test_batch_continues_past_failure(self, pipeline, fetcher, details, now):
        fetcher.fetch_repo_details = AsyncMock(
            side_effect=[httpx.ConnectError("connection refused"), details]
        )
        async with pipeline:
            first = await pipeline.evaluate_identifier("https://github.com/o/down", now=now)
            second = await pipeline.evaluate_identifier("https://github.com/octo/widgets", now=now)

        assert not first.ok
        assert second.ok

    async def test_non_json_api_body_is_an_error_result(self, tmp_path, clone_manager):
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda r: httpx.Response(200, text="<html>maintenance</html>"))
        )
        settings = Settings(
            github_token="ghp_test", scratch_dir=tmp_path / "scratch", min_request_interval=0
        )
        async with NetScorePipeline(settings, client=client, clone_manager=clone_manager) as pipeline:
            result = await pipeline.evaluate_identifier("https://github.com/o/r")

        assert not result.ok
        assert "invalid JSON" in result.error
        clone_manager.clone.assert_not_awaited()

    async def test_unreadable_clone_is_an_error_result(self, pipeline, clone_manager, clone_dir, now):
        def unreadable(details, clone_path):
            raise PermissionError(13, "Permission denied", str(clone_path))

        with patch("netscore.analyzers.pipeline.ramp_up_time", new=unreadable):
            async with pipeline:
                result = await pipeline.evaluate_identifier("https://github.com/octo/widgets", now=now)

        assert not result.ok
        assert "Permission denied" in result.error
        clone_manager.remove.assert_awaited_once_with(clone_dir)


class TestLifecycle:
    async def test_requires_context_manager(self, tmp_path):
        pipeline = NetScorePipeline(Settings(github_token="t", scratch_dir=tmp_path))
        with pytest.raises(RuntimeError):
            await pipeline.evaluate("u", RepoRef(owner="o", repo="r"))

    async def test_owned_client_is_closed(self, tmp_path):
        pipeline = NetScorePipeline(Settings(github_token="t", scratch_dir=tmp_path))
        async with pipeline:
            client = pipeline._http_client
            assert isinstance(client, httpx.AsyncClient)
            assert isinstance(pipeline.fetcher, GitHubFetcher)
        assert client.is_closed
