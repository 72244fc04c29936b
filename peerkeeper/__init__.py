"""
peerkeeper: peer-dependency aware version bumps for npm manifests

peerkeeper changes the version of one package in a ``package.json`` and
then walks every other declared dependency to find out whether it still
works with the new version, based on the ``peerDependencies`` each
release publishes to the npm registry.

Features include:
    • Stable-version selection for the target package (latest or chosen)
    • Peer-dependency compatibility checks for every other dependency
    • Automatic or interactive replacement of incompatible dependencies
    • Single, atomic write-back of the manifest
    • Outdated report grouped by major-version distance
"""

from __future__ import annotations

from peerkeeper.__version__ import __version__

# ---------------------------------------------------------------------------
# Package Metadata
# ---------------------------------------------------------------------------

__author__ = "peerkeeper Contributors"
__license__ = "Apache-2.0"
__description__ = "Peer-dependency aware version bumps for package.json manifests."

__all__ = [
    "__version__",
]
