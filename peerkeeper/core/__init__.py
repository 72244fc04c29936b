"""
Core functionality exports for peerkeeper.

    from peerkeeper.core import DependencyResolver, RegistryClient
"""

from __future__ import annotations

from peerkeeper.core.versions import satisfies, stable_versions
from peerkeeper.core.evaluator import CompatibilityEvaluator, evaluate
from peerkeeper.core.registry import RegistryClient
from peerkeeper.core.manifest_store import load_manifest, manifest_path, save_manifest
from peerkeeper.core.resolver import DependencyResolver, Prompter, resolve
from peerkeeper.core.outdated import OutdatedEntry, OutdatedReport, find_outdated

__all__ = [
    "satisfies",
    "stable_versions",
    "CompatibilityEvaluator",
    "evaluate",
    "RegistryClient",
    "load_manifest",
    "manifest_path",
    "save_manifest",
    "DependencyResolver",
    "Prompter",
    "resolve",
    "OutdatedEntry",
    "OutdatedReport",
    "find_outdated",
]
