"""
Resolution data models for peerkeeper.

These types describe one run of the resolver: the immutable
:class:`RunMode` built from CLI flags, the evaluator's verdict for a
dependency, the per-dependency :class:`ResolutionDecision`, and the
:class:`ResolutionReport` handed back to the command layer.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class RunMode:
    """How version choices are made during a run.

    Attributes:
        use_latest_target: Take the newest stable target version and write
            it as a caret range instead of asking the operator.
        auto_update_dependents: Replace every incompatible dependency with
            its newest compatible version instead of asking.
        report_incompatible_only: Surface dependencies for which no
            compatible version exists at all.
    """

    use_latest_target: bool = False
    auto_update_dependents: bool = False
    report_incompatible_only: bool = False

    @property
    def is_unattended(self) -> bool:
        """True when no operator prompt can ever be reached."""
        return self.use_latest_target and self.auto_update_dependents


@dataclass(frozen=True)
class Evaluation:
    """Verdict of the compatibility evaluator for one dependency.

    ``compatible_versions`` is only populated when ``compatible`` is
    ``False``; it lists candidates newest first.
    """

    compatible: bool
    compatible_versions: List[str] = field(default_factory=list)


class DecisionKind(str, Enum):
    """Outcome of resolving one dependency."""

    ALREADY_COMPATIBLE = "already-compatible"
    UPDATED = "updated"
    NO_COMPATIBLE_VERSION = "no-compatible-version"
    FAILED = "failed"


@dataclass
class ResolutionDecision:
    """What happened to one dependency.

    Attributes:
        name: Dependency name.
        installed_range: Range declared before the run.
        kind: Decision outcome.
        new_version: Version written for :attr:`DecisionKind.UPDATED`.
        reason: Failure explanation for :attr:`DecisionKind.FAILED`.
    """

    name: str
    installed_range: str
    kind: DecisionKind
    new_version: Optional[str] = None
    reason: Optional[str] = None

    @property
    def changed(self) -> bool:
        return self.kind is DecisionKind.UPDATED

    def to_json(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "installed_range": self.installed_range,
            "decision": self.kind.value,
        }
        if self.new_version is not None:
            data["new_version"] = self.new_version
        if self.reason is not None:
            data["reason"] = self.reason
        return data


@dataclass
class ResolutionReport:
    """Summary of a completed run.

    Attributes:
        target_name: Package whose version was changed.
        target_version: Chosen stable version.
        target_range: Exact string written to the manifest.
        decisions: One entry per other dependency, in manifest order.
        manifest_path: File that was (or would have been) written.
        written: Whether the manifest was persisted.
        backup_path: Backup created before writing, if any.
    """

    target_name: str
    target_version: str
    target_range: str
    decisions: List[ResolutionDecision] = field(default_factory=list)
    manifest_path: Optional[Path] = None
    written: bool = False
    backup_path: Optional[Path] = None

    def by_kind(self, kind: DecisionKind) -> List[ResolutionDecision]:
        return [d for d in self.decisions if d.kind is kind]

    @property
    def updated(self) -> List[ResolutionDecision]:
        return self.by_kind(DecisionKind.UPDATED)

    @property
    def failed(self) -> List[ResolutionDecision]:
        return self.by_kind(DecisionKind.FAILED)

    def to_json(self) -> Dict[str, Any]:
        return {
            "target": {
                "name": self.target_name,
                "version": self.target_version,
                "range": self.target_range,
            },
            "decisions": [d.to_json() for d in self.decisions],
            "manifest": str(self.manifest_path) if self.manifest_path else None,
            "written": self.written,
        }
