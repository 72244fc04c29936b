"""Unit tests for peerkeeper.core.versions.

Covers stable-version filtering and ordering and npm range matching,
including range forms npm accepts that are not plain SemVer comparisons.
"""

from __future__ import annotations

import pytest

from peerkeeper.core.versions import parse_version, satisfies, stable_versions
from peerkeeper.models.package import PackageMetadata


def _metadata(*versions: str) -> PackageMetadata:
    return PackageMetadata("pkg", {v: {} for v in versions})


@pytest.mark.unit
class TestParseVersion:
    """Tests for parse_version."""

    @pytest.mark.parametrize("value", ["1.0.0", "19.1.0", "1.0.0-beta.1", "1.0.0+build.5"])
    def test_valid(self, value: str) -> None:
        assert parse_version(value) is not None

    @pytest.mark.parametrize("value", ["next", "latest", "1.0", ""])
    def test_invalid(self, value: str) -> None:
        assert parse_version(value) is None


@pytest.mark.unit
class TestStableVersions:
    """Tests for stable_versions."""

    def test_filters_and_sorts_descending(self) -> None:
        metadata = _metadata("18.2.0", "19.0.0-rc.1", "19.1.0", "17.0.2", "latest", "19.0.0")

        assert stable_versions(metadata) == ["19.1.0", "19.0.0", "18.2.0", "17.0.2"]

    def test_sorts_by_precedence_not_string(self) -> None:
        metadata = _metadata("1.9.0", "1.10.0", "1.2.0")

        assert stable_versions(metadata) == ["1.10.0", "1.9.0", "1.2.0"]

    def test_ignores_registry_order(self) -> None:
        # Backport releases are often published after newer majors
        metadata = _metadata("2.0.0", "1.5.1", "3.0.0", "2.4.3")

        assert stable_versions(metadata) == ["3.0.0", "2.4.3", "2.0.0", "1.5.1"]

    def test_only_prereleases(self) -> None:
        assert stable_versions(_metadata("1.0.0-alpha", "2.0.0-beta")) == []

    def test_empty(self) -> None:
        assert stable_versions(_metadata()) == []

    def test_keeps_original_strings(self) -> None:
        assert stable_versions(_metadata("v1.0.0")) == ["v1.0.0"]


@pytest.mark.unit
class TestSatisfies:
    """Tests for satisfies (npm range semantics)."""

    @pytest.mark.parametrize(
        "version, spec",
        [
            ("19.1.0", "^19.0.0"),
            ("18.2.0", "18.2.0"),
            ("18.3.1", "~18.3.0"),
            ("18.2.0", ">=16.8.0"),
            ("19.1.0", ">= 16.8.0"),
            ("18.2.0", ">= 16.8.0 < 19.0.0"),
            ("18.3.1", "~ 18.3.0"),
            ("18.2.0", "^16.8.0 || ^17.0.0 || ^18.0.0"),
            ("18.2.0", "18.x"),
            ("18.2.0", "*"),
            ("18.2.0", ""),
            ("1.5.0", "1.0.0 - 2.0.0"),
            ("0.2.5", "^0.2.3"),
        ],
    )
    def test_matches(self, version: str, spec: str) -> None:
        assert satisfies(version, spec) is True

    @pytest.mark.parametrize(
        "version, spec",
        [
            ("19.1.0", "^18.2.0"),
            ("18.2.0", "19.1.0"),
            ("19.1.0", "^17.0.0 || ^18.0.0"),
            ("18.4.0", "~18.3.0"),
            ("0.3.0", "^0.2.3"),
            ("19.1.0", ">= 16.8.0 < 19.0.0"),
        ],
    )
    def test_does_not_match(self, version: str, spec: str) -> None:
        assert satisfies(version, spec) is False

    @pytest.mark.parametrize("spec", ["latest", "workspace:*", "github:facebook/react", "file:../lib"])
    def test_unparseable_range_never_matches(self, spec: str) -> None:
        assert satisfies("18.2.0", spec) is False

    def test_unparseable_version_never_matches(self) -> None:
        assert satisfies("not-a-version", "*") is False
