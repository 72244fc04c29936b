"""npm registry client for peerkeeper.

Fetches package documents (``GET {registry}/{name}``) and turns them into
:class:`~peerkeeper.models.package.PackageMetadata`. Each distinct package
name is requested at most once per :class:`RegistryClient`; failures are
remembered as well, so a package that could not be fetched is not asked
for again during the same run.

Typical usage::

    from peerkeeper.utils.http import HTTPClient
    from peerkeeper.core.registry import RegistryClient

    async with HTTPClient() as http:
        registry = RegistryClient(http)
        meta = await registry.fetch_metadata("react")
        print(len(meta.versions))
"""

from __future__ import annotations

import asyncio
from typing import Dict, Iterable, Union
from urllib.parse import quote

from peerkeeper.constants import DEFAULT_REGISTRY_URL
from peerkeeper.exceptions import NetworkError, RegistryUnavailable
from peerkeeper.models.package import PackageMetadata
from peerkeeper.utils.http import HTTPClient
from peerkeeper.utils.logger import get_logger

logger = get_logger("registry")

__all__ = ["RegistryClient", "package_url"]

_CacheEntry = Union[PackageMetadata, RegistryUnavailable]


def package_url(registry_url: str, name: str) -> str:
    """Return the metadata URL of ``name``.

    Scoped names keep their ``@`` and encode the slash, as the registry
    expects.

    Example::

        >>> package_url("https://registry.npmjs.org", "@types/react")
        'https://registry.npmjs.org/@types%2Freact'
    """
    return f"{registry_url.rstrip('/')}/{quote(name, safe='@')}"


class RegistryClient:
    """Per-run, cached access to npm registry metadata.

    Args:
        http_client: Open :class:`HTTPClient` (owns the connection pool).
        registry_url: Base URL of the registry.
    """

    def __init__(
        self,
        http_client: HTTPClient,
        registry_url: str = DEFAULT_REGISTRY_URL,
    ) -> None:
        self.http_client = http_client
        self.registry_url = registry_url
        self._cache: Dict[str, _CacheEntry] = {}
        self._inflight: Dict[str, "asyncio.Task[PackageMetadata]"] = {}

    async def fetch_metadata(self, name: str) -> PackageMetadata:
        """Return metadata for ``name``, fetching it on first use.

        Concurrent callers asking for the same name share one request.

        Raises:
            RegistryUnavailable: Network failure, error status, or a body
                that is not a JSON object.
        """
        cached = self._cache.get(name)
        if isinstance(cached, PackageMetadata):
            return cached
        if cached is not None:
            raise cached

        task = self._inflight.get(name)
        if task is None:
            task = asyncio.ensure_future(self._fetch(name))
            self._inflight[name] = task
        try:
            return await task
        finally:
            self._inflight.pop(name, None)

    async def _fetch(self, name: str) -> PackageMetadata:
        url = package_url(self.registry_url, name)
        logger.debug("Fetching %s", url)

        try:
            document = await self.http_client.get_json(url)
        except NetworkError as exc:
            error = RegistryUnavailable(
                f"Failed to fetch '{name}' from registry: {exc.message}",
                package_name=name,
                url=url,
                status_code=exc.status_code,
            )
            self._cache[name] = error
            raise error from exc

        metadata = PackageMetadata.from_registry(name, document)
        self._cache[name] = metadata
        logger.debug("%s: %d version(s) listed", name, len(metadata.versions))
        return metadata

    async def prefetch(self, names: Iterable[str]) -> None:
        """Warm the cache for several packages concurrently.

        Failures are cached and re-raised by the matching
        :meth:`fetch_metadata` call, so one bad package does not stop
        the others.
        """
        await asyncio.gather(
            *(self.fetch_metadata(name) for name in names),
            return_exceptions=True,
        )
