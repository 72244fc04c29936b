"""
Centralized constants for peerkeeper.

This module defines immutable configuration values used across peerkeeper,
including registry endpoints, manifest layout, prompt limits, and logging
formats. All values are intended to be treated as read-only.
"""

from typing import Final, Mapping

# ---------------------------------------------------------------------------
# Project metadata
# ---------------------------------------------------------------------------

#: HTTP User-Agent template used for outbound requests.
USER_AGENT_TEMPLATE: Final[str] = "peerkeeper/{version}"

# ---------------------------------------------------------------------------
# npm registry
# ---------------------------------------------------------------------------

#: Base URL of the public npm registry.
DEFAULT_REGISTRY_URL: Final[str] = "https://registry.npmjs.org"

# ---------------------------------------------------------------------------
# HTTP configuration
# ---------------------------------------------------------------------------

#: Default network timeout in seconds.
DEFAULT_TIMEOUT: Final[int] = 30

#: Registry lookups are single round trips unless configured otherwise.
DEFAULT_MAX_RETRIES: Final[int] = 0

#: Maximum number of registry requests in flight at once.
DEFAULT_MAX_CONCURRENCY: Final[int] = 10

# ---------------------------------------------------------------------------
# Manifest layout
# ---------------------------------------------------------------------------

#: Manifest file name looked up in the project root.
MANIFEST_FILENAME: Final[str] = "package.json"

#: Directory holding installed packages.
NODE_MODULES_DIR: Final[str] = "node_modules"

#: Indentation used when writing the manifest back.
MANIFEST_INDENT: Final[int] = 2

#: Prefix written in front of the target version with ``--latest``.
CARET_PREFIX: Final[str] = "^"

# ---------------------------------------------------------------------------
# Operator prompts
# ---------------------------------------------------------------------------

#: Number of target versions offered to the operator.
DEFAULT_TARGET_CHOICE_LIMIT: Final[int] = 50

#: Number of compatible versions offered per incompatible dependency.
DEFAULT_DEPENDENT_CHOICE_LIMIT: Final[int] = 20

#: Whether a backup of the manifest is written before saving.
DEFAULT_CREATE_BACKUP: Final[bool] = False

# ---------------------------------------------------------------------------
# Outdated report
# ---------------------------------------------------------------------------

#: Lower bound (inclusive) of the major-version distance for each group.
OUTDATED_GROUP_THRESHOLDS: Final[Mapping[str, int]] = {
    "critical": 5,
    "major": 2,
    "one-major": 1,
    "other": 0,
}

# ---------------------------------------------------------------------------
# Configuration files
# ---------------------------------------------------------------------------

#: Dedicated configuration file name.
CONFIG_FILENAME: Final[str] = "peerkeeper.toml"

#: Key holding peerkeeper settings inside ``package.json``.
MANIFEST_CONFIG_KEY: Final[str] = "peerkeeper"

# ---------------------------------------------------------------------------
# Security constraints
# ---------------------------------------------------------------------------

#: Maximum allowed manifest size (in bytes).
MAX_FILE_SIZE: Final[int] = 10 * 1024 * 1024  # 10 MB

# ---------------------------------------------------------------------------
# Logging configuration
# ---------------------------------------------------------------------------

#: Timestamp format for verbose logging.
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

#: Default log format (non-verbose).
LOG_DEFAULT_FORMAT: Final[str] = "%(levelname)s: %(message)s"

#: Verbose log format including timestamp and logger name.
LOG_VERBOSE_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
