"""Unit tests for peerkeeper.core.registry.

Covers URL construction for plain and scoped names, metadata caching
(successes and failures), request de-duplication and concurrent
prefetching.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict
from unittest.mock import AsyncMock, MagicMock

import pytest

from peerkeeper.core.registry import RegistryClient, package_url
from peerkeeper.exceptions import NetworkError, RegistryUnavailable
from peerkeeper.models.package import PackageMetadata
from peerkeeper.utils.http import HTTPClient


REGISTRY = "https://registry.npmjs.org"


@pytest.fixture
def documents() -> Dict[str, Dict[str, Any]]:
    return {
        f"{REGISTRY}/react": {
            "name": "react",
            "versions": {"18.2.0": {}, "19.1.0": {}},
        },
        f"{REGISTRY}/react-dom": {
            "name": "react-dom",
            "versions": {"19.1.0": {"peerDependencies": {"react": "^19.1.0"}}},
        },
    }


@pytest.fixture
def mock_http_client(documents: Dict[str, Dict[str, Any]]) -> MagicMock:
    """HTTPClient whose get_json serves ``documents`` and 404s otherwise."""
    client = MagicMock(spec=HTTPClient)

    async def get_json(url: str) -> Dict[str, Any]:
        await asyncio.sleep(0)
        if url not in documents:
            raise NetworkError(f"Resource not found: {url}", url=url, status_code=404)
        return documents[url]

    client.get_json = AsyncMock(side_effect=get_json)
    return client


@pytest.mark.unit
class TestPackageUrl:
    """Tests for package_url."""

    def test_plain_name(self) -> None:
        assert package_url(REGISTRY, "react") == f"{REGISTRY}/react"

    def test_scoped_name(self) -> None:
        assert package_url(REGISTRY, "@types/react") == f"{REGISTRY}/@types%2Freact"

    def test_trailing_slash(self) -> None:
        assert package_url(f"{REGISTRY}/", "react") == f"{REGISTRY}/react"

    def test_custom_registry(self) -> None:
        assert package_url("https://npm.example.com/repo", "lodash") == (
            "https://npm.example.com/repo/lodash"
        )


@pytest.mark.unit
class TestFetchMetadata:
    """Tests for RegistryClient.fetch_metadata."""

    @pytest.mark.asyncio
    async def test_returns_metadata(self, mock_http_client: MagicMock) -> None:
        registry = RegistryClient(mock_http_client, REGISTRY)

        metadata = await registry.fetch_metadata("react-dom")

        assert isinstance(metadata, PackageMetadata)
        assert metadata.peer_range("19.1.0", "react") == "^19.1.0"

    @pytest.mark.asyncio
    async def test_cached_after_first_fetch(self, mock_http_client: MagicMock) -> None:
        registry = RegistryClient(mock_http_client, REGISTRY)

        first = await registry.fetch_metadata("react")
        second = await registry.fetch_metadata("react")

        assert first is second
        assert mock_http_client.get_json.await_count == 1

    @pytest.mark.asyncio
    async def test_concurrent_requests_share_one_fetch(self, mock_http_client: MagicMock) -> None:
        registry = RegistryClient(mock_http_client, REGISTRY)

        results = await asyncio.gather(
            registry.fetch_metadata("react"),
            registry.fetch_metadata("react"),
            registry.fetch_metadata("react"),
        )

        assert results[0] is results[1] is results[2]
        assert mock_http_client.get_json.await_count == 1

    @pytest.mark.asyncio
    async def test_failure_raises_registry_unavailable(self, mock_http_client: MagicMock) -> None:
        registry = RegistryClient(mock_http_client, REGISTRY)

        with pytest.raises(RegistryUnavailable) as exc_info:
            await registry.fetch_metadata("ghost")

        assert exc_info.value.package_name == "ghost"
        assert exc_info.value.status_code == 404
        assert "ghost" in exc_info.value.message
        assert isinstance(exc_info.value.__cause__, NetworkError)

    @pytest.mark.asyncio
    async def test_failure_is_cached(self, mock_http_client: MagicMock) -> None:
        registry = RegistryClient(mock_http_client, REGISTRY)

        for _ in range(2):
            with pytest.raises(RegistryUnavailable):
                await registry.fetch_metadata("ghost")

        assert mock_http_client.get_json.await_count == 1

    @pytest.mark.asyncio
    async def test_uses_registry_url(self, mock_http_client: MagicMock) -> None:
        registry = RegistryClient(mock_http_client, "https://npm.example.com")

        with pytest.raises(RegistryUnavailable):
            await registry.fetch_metadata("react")

        mock_http_client.get_json.assert_awaited_once_with("https://npm.example.com/react")


@pytest.mark.unit
class TestPrefetch:
    """Tests for RegistryClient.prefetch."""

    @pytest.mark.asyncio
    async def test_warms_cache(self, mock_http_client: MagicMock) -> None:
        registry = RegistryClient(mock_http_client, REGISTRY)

        await registry.prefetch(["react", "react-dom"])
        await registry.fetch_metadata("react")
        await registry.fetch_metadata("react-dom")

        assert mock_http_client.get_json.await_count == 2

    @pytest.mark.asyncio
    async def test_failures_do_not_propagate(self, mock_http_client: MagicMock) -> None:
        registry = RegistryClient(mock_http_client, REGISTRY)

        await registry.prefetch(["ghost", "react"])

        assert isinstance(await registry.fetch_metadata("react"), PackageMetadata)
        with pytest.raises(RegistryUnavailable):
            await registry.fetch_metadata("ghost")
        assert mock_http_client.get_json.await_count == 2

    @pytest.mark.asyncio
    async def test_empty(self, mock_http_client: MagicMock) -> None:
        await RegistryClient(mock_http_client, REGISTRY).prefetch([])

        mock_http_client.get_json.assert_not_awaited()
