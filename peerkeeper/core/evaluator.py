"""Peer-dependency compatibility evaluation for peerkeeper.

Given the new version of the target package, the evaluator decides for
one dependency whether its declared range can stay as it is, and if not,
which of its versions would work.

The only signal used is the ``peerDependencies`` each release of the
dependency publishes; no code is executed and the dependency's own
peers are not followed.

Fast path
---------
Stable versions are scanned newest first. The first version whose peer
constraint on the target is absent or satisfied decides alone: if it
also satisfies the installed range, the dependency is already
compatible. Otherwise the evaluator falls through to the full candidate
list, even if an older peer-compatible version would have matched the
installed range.
"""

from __future__ import annotations

from typing import List, Optional

from peerkeeper.core.versions import satisfies, stable_versions
from peerkeeper.models.package import PackageMetadata
from peerkeeper.models.resolution import Evaluation
from peerkeeper.utils.logger import get_logger

logger = get_logger("evaluator")

__all__ = ["CompatibilityEvaluator", "evaluate"]


class CompatibilityEvaluator:
    """Check dependencies against one chosen target version.

    Args:
        target_name: Package whose version is changing.
        target_version: Chosen stable version of that package.

    Example::

        >>> evaluator = CompatibilityEvaluator("react", "19.1.0")
        >>> evaluator.evaluate("react-dom", "18.2.0", react_dom_metadata)
        Evaluation(compatible=False, compatible_versions=['19.1.0', '19.0.0'])
    """

    def __init__(self, target_name: str, target_version: str) -> None:
        self.target_name = target_name
        self.target_version = target_version

    def accepts_target(self, metadata: PackageMetadata, version: str) -> bool:
        """True if ``version`` of the dependency accepts the target version.

        A release that declares no peer constraint on the target accepts
        any version of it.
        """
        peer = metadata.peer_range(version, self.target_name)
        if peer is None:
            return True
        return satisfies(self.target_version, peer)

    def _first_accepting(
        self,
        metadata: PackageMetadata,
        versions: List[str],
    ) -> Optional[str]:
        for version in versions:
            if self.accepts_target(metadata, version):
                return version
        return None

    def evaluate(
        self,
        dep_name: str,
        installed_range: str,
        metadata: PackageMetadata,
    ) -> Evaluation:
        """Evaluate one dependency.

        Args:
            dep_name: Dependency name, for logging.
            installed_range: Range currently declared in the manifest.
            metadata: Registry metadata of the dependency.

        Returns:
            ``Evaluation(compatible=True)`` on the fast path, otherwise
            ``Evaluation(compatible=False, compatible_versions=[...])``
            with every accepting stable version, newest first (possibly
            empty).
        """
        versions = stable_versions(metadata)

        first = self._first_accepting(metadata, versions)
        if first is not None and satisfies(first, installed_range):
            logger.debug(
                "%s: %s accepts %s@%s and matches %s",
                dep_name,
                first,
                self.target_name,
                self.target_version,
                installed_range,
            )
            return Evaluation(compatible=True)

        candidates = [v for v in versions if self.accepts_target(metadata, v)]
        logger.debug(
            "%s (%s): %d version(s) accept %s@%s",
            dep_name,
            installed_range,
            len(candidates),
            self.target_name,
            self.target_version,
        )
        return Evaluation(compatible=False, compatible_versions=candidates)


def evaluate(
    target_name: str,
    target_version: str,
    dep_name: str,
    dep_installed_range: str,
    dep_metadata: PackageMetadata,
) -> Evaluation:
    """Functional shortcut for :meth:`CompatibilityEvaluator.evaluate`."""
    return CompatibilityEvaluator(target_name, target_version).evaluate(
        dep_name, dep_installed_range, dep_metadata
    )
