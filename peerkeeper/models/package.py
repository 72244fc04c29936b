"""
Registry package metadata model for peerkeeper.

:class:`PackageMetadata` is the slice of an npm registry document that
resolution needs: which versions exist and what each version declares in
``peerDependencies``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from peerkeeper.utils.logger import get_logger

logger = get_logger("models.package")

PeerMap = Mapping[str, str]


def _clean_peers(raw: Any) -> PeerMap:
    """Keep only ``name → range`` string pairs from a peer declaration."""
    if not isinstance(raw, dict):
        return MappingProxyType({})
    return MappingProxyType(
        {
            name: spec
            for name, spec in raw.items()
            if isinstance(name, str) and isinstance(spec, str)
        }
    )


@dataclass(frozen=True)
class PackageMetadata:
    """Registry record for one package.

    Attributes:
        name: Package name as requested from the registry.
        versions: Version string → peer-dependency mapping, in the order
            the registry listed them (publication order for npm).
    """

    name: str
    versions: Mapping[str, PeerMap] = field(default_factory=dict)

    @classmethod
    def from_registry(cls, name: str, document: Dict[str, Any]) -> "PackageMetadata":
        """Build metadata from a raw registry JSON document.

        Version entries that are not objects are kept with no peers; a
        missing ``versions`` mapping yields an empty record.
        """
        raw_versions = document.get("versions")
        if not isinstance(raw_versions, dict):
            logger.debug("Registry document for %s has no versions mapping", name)
            raw_versions = {}

        versions: Dict[str, PeerMap] = {}
        for version, descriptor in raw_versions.items():
            peers = descriptor.get("peerDependencies") if isinstance(descriptor, dict) else None
            versions[version] = _clean_peers(peers)

        return cls(name=name, versions=MappingProxyType(versions))

    def peer_range(self, version: str, peer_name: str) -> Optional[str]:
        """Return the range ``version`` declares for ``peer_name``, if any.

        An empty string counts as no declaration.
        """
        peers = self.versions.get(version)
        if not peers:
            return None
        return peers.get(peer_name) or None
