"""Outdated dependency report for peerkeeper.

Compares every declared dependency with the newest stable release on the
registry and groups the outdated ones by how many major versions behind
they are:

- ``critical`` : 5 or more majors behind
- ``major``    : 2 to 4 majors behind
- ``one-major``: exactly 1 major behind
- ``other``    : same major, newer minor/patch

The version in use is read from ``node_modules/<name>/package.json`` when
the package is installed; otherwise the newest stable version matching
the declared range stands in for it (what a fresh install would pick).
The report is read-only and never touches the manifest.
"""

from __future__ import annotations

import json
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from peerkeeper.constants import NODE_MODULES_DIR, OUTDATED_GROUP_THRESHOLDS
from peerkeeper.core.registry import RegistryClient
from peerkeeper.core.versions import parse_version, satisfies, stable_versions
from peerkeeper.exceptions import RegistryUnavailable
from peerkeeper.models.manifest import Manifest
from peerkeeper.utils.logger import get_logger
from peerkeeper.utils.version_utils import get_update_type, major_distance

logger = get_logger("outdated")

__all__ = ["OutdatedEntry", "OutdatedReport", "find_outdated", "group_for_distance"]


def group_for_distance(distance: int) -> str:
    """Return the report group for a major-version distance.

    Example::

        >>> group_for_distance(6), group_for_distance(3), group_for_distance(0)
        ('critical', 'major', 'other')
    """
    for group, lower_bound in OUTDATED_GROUP_THRESHOLDS.items():
        if distance >= lower_bound:
            return group
    return "other"


@dataclass
class OutdatedEntry:
    """One dependency with a newer stable release available."""

    name: str
    declared_range: str
    current_version: str
    latest_version: str
    installed: bool

    @property
    def major_distance(self) -> int:
        return major_distance(self.current_version, self.latest_version) or 0

    @property
    def group(self) -> str:
        return group_for_distance(self.major_distance)

    @property
    def update_type(self) -> str:
        return get_update_type(self.current_version, self.latest_version)

    def to_json(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "declared_range": self.declared_range,
            "current_version": self.current_version,
            "latest_version": self.latest_version,
            "installed": self.installed,
            "major_distance": self.major_distance,
            "group": self.group,
            "update_type": self.update_type,
        }


@dataclass
class OutdatedReport:
    """Result of :func:`find_outdated`.

    Attributes:
        entries: Outdated dependencies in manifest order.
        errors: Dependency name → reason it could not be checked.
        checked: Number of dependencies looked at.
    """

    entries: List[OutdatedEntry] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)
    checked: int = 0

    def groups(self) -> Dict[str, List[OutdatedEntry]]:
        """Entries per group, most urgent group first, largest gap first."""
        grouped: Dict[str, List[OutdatedEntry]] = {
            group: [] for group in OUTDATED_GROUP_THRESHOLDS
        }
        for entry in self.entries:
            grouped[entry.group].append(entry)
        for entries in grouped.values():
            entries.sort(key=lambda e: e.major_distance, reverse=True)
        return grouped

    def to_json(self) -> Dict[str, Any]:
        return {
            "checked": self.checked,
            "groups": {
                group: [entry.to_json() for entry in entries]
                for group, entries in self.groups().items()
            },
            "errors": dict(self.errors),
        }


def installed_version(project_root: Path, name: str) -> Optional[str]:
    """Return the version installed in ``node_modules``, if readable.

    Scoped names map to nested directories (``@scope/name``).
    """
    package_json = project_root / NODE_MODULES_DIR / Path(*name.split("/")) / "package.json"
    if not package_json.is_file():
        return None
    try:
        data = json.loads(package_json.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.debug("Unreadable %s: %s", package_json, exc)
        return None
    version = data.get("version") if isinstance(data, dict) else None
    return version if isinstance(version, str) and parse_version(version) else None


async def find_outdated(
    manifest: Manifest,
    registry: RegistryClient,
    project_root: Path,
) -> OutdatedReport:
    """Build the outdated report for every declared dependency."""
    dependencies = list(manifest.iter_dependencies())
    report = OutdatedReport(checked=len(dependencies))

    await registry.prefetch(name for name, _ in dependencies)

    for name, declared_range in dependencies:
        try:
            metadata = await registry.fetch_metadata(name)
        except RegistryUnavailable as exc:
            report.errors[name] = exc.message
            continue

        versions = stable_versions(metadata)
        if not versions:
            report.errors[name] = "no stable versions published"
            continue

        latest = versions[0]
        current = installed_version(project_root, name)
        installed = current is not None
        if current is None:
            current = next((v for v in versions if satisfies(v, declared_range)), None)
        if current is None:
            report.errors[name] = f"no published version matches '{declared_range}'"
            continue

        parsed_current = parse_version(current)
        parsed_latest = parse_version(latest)
        if parsed_current is None or parsed_latest is None or parsed_latest <= parsed_current:
            continue

        report.entries.append(
            OutdatedEntry(
                name=name,
                declared_range=declared_range,
                current_version=current,
                latest_version=latest,
                installed=installed,
            )
        )

    logger.info(
        "%d of %d dependencies outdated (%d errors)",
        len(report.entries),
        report.checked,
        len(report.errors),
    )
    return report
