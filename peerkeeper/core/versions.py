"""Version classification and npm range matching for peerkeeper.

Two pure helpers sit under every resolution decision:

- :func:`stable_versions` turns the raw version keys of a registry record
  into the ordered list resolution works with: valid SemVer, no
  prerelease tag, newest first.
- :func:`satisfies` answers "does this version match this npm range"
  with npm semantics (``^``, ``~``, x-ranges, hyphen ranges, ``||``).

Range parsing is delegated to :class:`semantic_version.NpmSpec`. Ranges
it cannot parse (``latest``, ``workspace:*``, git URLs, ...) never match,
which is also how npm's own ``semver.satisfies`` behaves.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable, List, Optional, Tuple

import semantic_version

from peerkeeper.models.package import PackageMetadata
from peerkeeper.utils.logger import get_logger
from peerkeeper.utils.version_utils import parse_semver

logger = get_logger("versions")

__all__ = ["parse_version", "stable_versions", "satisfies"]

# npm accepts ">= 16.8.0"; NpmSpec wants the operator glued to the version
_OPERATOR_GAP = re.compile(r"(<=|>=|<|>|=|~|\^)\s+")


def parse_version(value: str) -> Optional[semantic_version.Version]:
    """Parse a registry version key, or return ``None`` if it is invalid."""
    return parse_semver(value)


def _stable_sorted(versions: Iterable[str]) -> List[str]:
    parsed: List[Tuple[semantic_version.Version, str]] = []
    for raw in versions:
        version = parse_version(raw)
        if version is None:
            logger.debug("Skipping invalid version %r", raw)
            continue
        if version.prerelease:
            continue
        parsed.append((version, raw))

    parsed.sort(key=lambda pair: pair[0], reverse=True)
    return [raw for _, raw in parsed]


def stable_versions(metadata: PackageMetadata) -> List[str]:
    """Return the stable versions of ``metadata``, newest first.

    An empty list means the package has no usable release; callers treat
    that as :class:`~peerkeeper.exceptions.NoStableVersionError`.

    Example::

        >>> meta = PackageMetadata("react", {"18.2.0": {}, "19.0.0-rc.1": {},
        ...                                  "19.1.0": {}, "latest": {}})
        >>> stable_versions(meta)
        ['19.1.0', '18.2.0']
    """
    return _stable_sorted(metadata.versions.keys())


@lru_cache(maxsize=1024)
def _parse_range(spec: str) -> Optional[semantic_version.NpmSpec]:
    text = _OPERATOR_GAP.sub(r"\1", spec.strip())
    if not text:
        text = "*"
    try:
        return semantic_version.NpmSpec(text)
    except ValueError:
        logger.debug("Unsupported version range %r", spec)
        return None


def satisfies(version: str, spec: str) -> bool:
    """Return True if ``version`` matches the npm range ``spec``.

    Examples::

        >>> satisfies("19.1.0", "^19.0.0")
        True
        >>> satisfies("19.1.0", "^17.0.0 || ^18.0.0")
        False
        >>> satisfies("18.2.0", "workspace:*")
        False
    """
    parsed_spec = _parse_range(spec)
    if parsed_spec is None:
        return False
    parsed_version = parse_version(version)
    if parsed_version is None:
        return False
    return parsed_spec.match(parsed_version)
