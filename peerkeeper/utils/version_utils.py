"""
Version comparison utilities for peerkeeper.

This module provides helpers for classifying version changes between two
npm (SemVer 2.0) versions using :mod:`semantic_version`.
"""

from __future__ import annotations

from typing import Optional

import semantic_version


def parse_semver(value: Optional[str]) -> Optional[semantic_version.Version]:
    """Parse a SemVer string, returning ``None`` when invalid.

    Surrounding whitespace and a single leading ``v`` are accepted, as
    npm accepts them.

    Examples:
        >>> parse_semver("1.2.3")
        Version('1.2.3')
        >>> parse_semver("1.2") is None
        True
    """
    if not value:
        return None
    text = value.strip()
    if text[:1] in ("v", "V"):
        text = text[1:]
    try:
        return semantic_version.Version(text)
    except ValueError:
        return None


def major_distance(current_version: str, target_version: str) -> Optional[int]:
    """Return ``target.major - current.major`` or ``None`` if unparseable."""
    current = parse_semver(current_version)
    target = parse_semver(target_version)
    if current is None or target is None:
        return None
    return target.major - current.major


def get_update_type(
    current_version: Optional[str],
    target_version: Optional[str],
) -> str:
    """Determine the semantic update type between two versions.

    Args:
        current_version: Version in use, or ``None`` if not installed.
        target_version: Version to compare against.

    Returns:
        One of:
            - ``"new"``       : No current version exists
            - ``"same"``      : Versions are identical
            - ``"downgrade"`` : Target version is lower than current
            - ``"major"``     : Major version change
            - ``"minor"``     : Minor version change
            - ``"patch"``     : Patch-level change
            - ``"update"``    : Prerelease or build-only change
            - ``"unknown"``   : Invalid or missing version

    Examples:
        >>> get_update_type("1.0.0", "2.0.0")
        'major'
        >>> get_update_type(None, "1.0.0")
        'new'
        >>> get_update_type("1.2.3", "1.2.3")
        'same'
    """
    if current_version is None and target_version is None:
        return "unknown"

    if current_version is None:
        return "new"

    current = parse_semver(current_version)
    target = parse_semver(target_version)
    if current is None or target is None:
        return "unknown"

    if target == current:
        return "same"

    if target < current:
        return "downgrade"

    if current.major != target.major:
        return "major"

    if current.minor != target.minor:
        return "minor"

    if current.patch != target.patch:
        return "patch"

    # Prerelease → release
    return "update"
