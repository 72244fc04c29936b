"""Resolution orchestrator for peerkeeper.

Drives one run through four states::

    SelectTarget → ApplyTargetVersion → IterateDeps → Finalize

1. **SelectTarget**: fetch the target package, list its stable versions
   and take the newest (``use_latest_target``) or ask the operator.
2. **ApplyTargetVersion**: write the chosen version into the manifest
   (``^x.y.z`` with ``use_latest_target``, exact otherwise).
3. **IterateDeps**: evaluate every other declared dependency against
   the chosen version and replace incompatible ones, automatically or by
   operator choice.
4. **Finalize**: persist the manifest once.

Registry documents of all dependencies are fetched concurrently before
the decision loop; decisions, prompts and manifest edits then happen one
dependency at a time in manifest order. Failures of a single dependency
are recorded and never stop the run; failures of the target always do,
before anything is written.

Typical usage::

    report = await resolve(
        "react",
        RunMode(use_latest_target=True, auto_update_dependents=True),
        project_root=Path("."),
    )
    print(report.target_range)          # "^19.1.0"
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from peerkeeper.constants import (
    CARET_PREFIX,
    DEFAULT_DEPENDENT_CHOICE_LIMIT,
    DEFAULT_MAX_RETRIES,
    DEFAULT_REGISTRY_URL,
    DEFAULT_TARGET_CHOICE_LIMIT,
    DEFAULT_TIMEOUT,
)
from peerkeeper.core.evaluator import CompatibilityEvaluator
from peerkeeper.core.manifest_store import load_manifest, manifest_path, save_manifest
from peerkeeper.core.registry import RegistryClient
from peerkeeper.core.versions import stable_versions
from peerkeeper.exceptions import (
    ConfigurationError,
    DependencyResolutionError,
    NoStableVersionError,
    OperatorUnavailable,
    RegistryUnavailable,
    TargetResolutionError,
)
from peerkeeper.models.manifest import Manifest
from peerkeeper.models.resolution import (
    DecisionKind,
    ResolutionDecision,
    ResolutionReport,
    RunMode,
)
from peerkeeper.utils.http import HTTPClient
from peerkeeper.utils.logger import get_logger

logger = get_logger("resolver")

__all__ = ["Prompter", "DependencyResolver", "resolve"]

#: Blocking operator choice: ``(message, choices) -> selected value``.
Prompter = Callable[[str, Sequence[str]], str]

#: Called once per dependency, right after its decision is taken.
DecisionListener = Callable[[ResolutionDecision], None]

#: Called once with ``(name, version, manifest_value)`` after SelectTarget.
TargetListener = Callable[[str, str, str], None]


class DependencyResolver:
    """Resolve a target version change against one manifest.

    The resolver only mutates the in-memory :class:`Manifest`; persisting
    it is left to the caller (see :func:`resolve`).

    Args:
        registry: Registry client shared for the whole run.
        mode: Immutable run configuration.
        prompter: Operator channel. Only called on interactive branches;
            ``None`` makes those branches raise
            :class:`~peerkeeper.exceptions.OperatorUnavailable`.
        target_choice_limit: Number of target versions offered.
        dependent_choice_limit: Number of candidates offered per
            incompatible dependency.
        on_target: Optional listener told about the chosen target version.
        on_decision: Optional listener for live reporting.
    """

    def __init__(
        self,
        registry: RegistryClient,
        mode: RunMode,
        *,
        prompter: Optional[Prompter] = None,
        target_choice_limit: int = DEFAULT_TARGET_CHOICE_LIMIT,
        dependent_choice_limit: int = DEFAULT_DEPENDENT_CHOICE_LIMIT,
        on_target: Optional[TargetListener] = None,
        on_decision: Optional[DecisionListener] = None,
    ) -> None:
        self.registry = registry
        self.mode = mode
        self.prompter = prompter
        self.target_choice_limit = target_choice_limit
        self.dependent_choice_limit = dependent_choice_limit
        self.on_target = on_target
        self.on_decision = on_decision

    # ------------------------------------------------------------------
    # Operator channel
    # ------------------------------------------------------------------

    def _ask(self, message: str, choices: Sequence[str]) -> str:
        if self.prompter is None:
            raise OperatorUnavailable(f"Operator input required: {message}")
        selected = self.prompter(message, list(choices))
        if selected not in choices:
            raise OperatorUnavailable(
                f"Selection {selected!r} is not one of the offered versions",
            )
        return selected

    # ------------------------------------------------------------------
    # SelectTarget
    # ------------------------------------------------------------------

    async def select_target(self, target_name: str) -> Tuple[str, str]:
        """Pick the target version.

        Returns:
            ``(version, manifest_value)``, where ``manifest_value`` is
            caret-prefixed when the newest version was taken automatically.

        Raises:
            TargetResolutionError: Registry unreachable for the target or
                no stable version published.
            OperatorUnavailable: A choice was needed and none was given.
        """
        try:
            metadata = await self.registry.fetch_metadata(target_name)
        except RegistryUnavailable as exc:
            raise TargetResolutionError(
                f"Cannot fetch versions for target '{target_name}': {exc.message}",
                package_name=target_name,
            ) from exc

        versions = stable_versions(metadata)
        if not versions:
            raise TargetResolutionError(
                f"No stable versions found for target '{target_name}'",
                package_name=target_name,
            ) from NoStableVersionError(target_name)

        if self.mode.use_latest_target:
            version = versions[0]
            logger.info("Using latest stable %s@%s", target_name, version)
            return version, f"{CARET_PREFIX}{version}"

        version = self._ask(
            f"Select a stable version for {target_name}:",
            versions[: self.target_choice_limit],
        )
        logger.info("Operator selected %s@%s", target_name, version)
        return version, version

    # ------------------------------------------------------------------
    # IterateDeps
    # ------------------------------------------------------------------

    async def _decide(
        self,
        evaluator: CompatibilityEvaluator,
        manifest: Manifest,
        name: str,
        installed_range: str,
    ) -> ResolutionDecision:
        try:
            metadata = await self.registry.fetch_metadata(name)
        except RegistryUnavailable as exc:
            raise DependencyResolutionError(
                f"Failed to check {name}: {exc.message}",
                package_name=name,
            ) from exc

        if not stable_versions(metadata):
            raise DependencyResolutionError(
                f"Failed to check {name}: no stable versions published",
                package_name=name,
            ) from NoStableVersionError(name)

        evaluation = evaluator.evaluate(name, installed_range, metadata)

        if evaluation.compatible:
            return ResolutionDecision(name, installed_range, DecisionKind.ALREADY_COMPATIBLE)

        candidates = evaluation.compatible_versions
        if not candidates:
            return ResolutionDecision(name, installed_range, DecisionKind.NO_COMPATIBLE_VERSION)

        if self.mode.auto_update_dependents:
            selected = candidates[0]
        else:
            selected = self._ask(
                f"{name} ({installed_range}) is not compatible with "
                f"{evaluator.target_name}@{evaluator.target_version}. "
                "Select a compatible stable version:",
                candidates[: self.dependent_choice_limit],
            )

        manifest.set_dependency_version(name, selected)
        return ResolutionDecision(
            name,
            installed_range,
            DecisionKind.UPDATED,
            new_version=selected,
        )

    async def resolve_dependencies(
        self,
        manifest: Manifest,
        target_name: str,
        target_version: str,
    ) -> List[ResolutionDecision]:
        """Evaluate every dependency except the target, in manifest order."""
        dependencies = [
            (name, spec)
            for name, spec in manifest.iter_dependencies()
            if name != target_name
        ]
        if not dependencies:
            return []

        await self.registry.prefetch(name for name, _ in dependencies)

        evaluator = CompatibilityEvaluator(target_name, target_version)
        decisions: List[ResolutionDecision] = []

        for name, installed_range in dependencies:
            try:
                decision = await self._decide(evaluator, manifest, name, installed_range)
            except DependencyResolutionError as exc:
                logger.warning("%s", exc.message)
                decision = ResolutionDecision(
                    name,
                    installed_range,
                    DecisionKind.FAILED,
                    reason=exc.message,
                )

            logger.debug("%s: %s", name, decision.kind.value)
            decisions.append(decision)
            if self.on_decision is not None:
                self.on_decision(decision)

        return decisions

    # ------------------------------------------------------------------
    # Whole run (without persistence)
    # ------------------------------------------------------------------

    async def resolve(self, manifest: Manifest, target_name: str) -> ResolutionReport:
        """Run SelectTarget, ApplyTargetVersion and IterateDeps."""
        target_version, target_range = await self.select_target(target_name)

        written_to = manifest.set_target_version(target_name, target_range)
        logger.info("Set %s to %s in %s", target_name, target_range, written_to.value)
        if self.on_target is not None:
            self.on_target(target_name, target_version, target_range)

        decisions = await self.resolve_dependencies(manifest, target_name, target_version)

        return ResolutionReport(
            target_name=target_name,
            target_version=target_version,
            target_range=target_range,
            decisions=decisions,
        )


async def resolve(
    target_name: str,
    mode: RunMode,
    *,
    project_root: Path = Path("."),
    manifest_file: Optional[Path] = None,
    registry_url: str = DEFAULT_REGISTRY_URL,
    timeout: int = DEFAULT_TIMEOUT,
    max_retries: int = DEFAULT_MAX_RETRIES,
    prompter: Optional[Prompter] = None,
    target_choice_limit: int = DEFAULT_TARGET_CHOICE_LIMIT,
    dependent_choice_limit: int = DEFAULT_DEPENDENT_CHOICE_LIMIT,
    on_target: Optional[TargetListener] = None,
    on_decision: Optional[DecisionListener] = None,
    dry_run: bool = False,
    backup: bool = False,
) -> ResolutionReport:
    """Resolve ``target_name`` for a project and persist the manifest once.

    The manifest is loaded before any network activity and written only
    after every decision has been taken.

    Raises:
        ConfigurationError: Empty package name, missing or malformed
            manifest.
        TargetResolutionError: The target cannot be resolved.
        OperatorUnavailable: An interactive choice could not be obtained.
        PersistenceError: The manifest could not be written.
    """
    if not target_name or not target_name.strip():
        raise ConfigurationError("A package name is required, e.g. 'react'")
    target_name = target_name.strip()

    path = manifest_file or manifest_path(project_root)
    manifest = load_manifest(path)

    async with HTTPClient(timeout=timeout, max_retries=max_retries) as http:
        resolver = DependencyResolver(
            RegistryClient(http, registry_url),
            mode,
            prompter=None if mode.is_unattended else prompter,
            target_choice_limit=target_choice_limit,
            dependent_choice_limit=dependent_choice_limit,
            on_target=on_target,
            on_decision=on_decision,
        )
        report = await resolver.resolve(manifest, target_name)

    report.manifest_path = path
    if dry_run:
        logger.info("Dry run: %s left untouched", path)
        return report

    report.backup_path = save_manifest(path, manifest, backup=backup)
    report.written = True
    return report
