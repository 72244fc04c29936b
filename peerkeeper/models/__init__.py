"""
Unified data model exports for peerkeeper.

Example:
    >>> from peerkeeper.models import Manifest, PackageMetadata, RunMode
"""

from __future__ import annotations

from peerkeeper.models.manifest import DependencyClass, Manifest
from peerkeeper.models.package import PackageMetadata
from peerkeeper.models.resolution import (
    DecisionKind,
    Evaluation,
    ResolutionDecision,
    ResolutionReport,
    RunMode,
)

__all__ = [
    "DependencyClass",
    "Manifest",
    "PackageMetadata",
    "DecisionKind",
    "Evaluation",
    "ResolutionDecision",
    "ResolutionReport",
    "RunMode",
]
