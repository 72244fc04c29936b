"""
Utility helpers for peerkeeper.

This package provides reusable utilities used across peerkeeper, including:

- Console output and operator prompts (Rich-based)
- Logging configuration and retrieval
- Atomic manifest writes and backups
- Async HTTP client utilities
- Version comparison helpers

Only symbols listed in ``__all__`` are considered part of the public API.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Filesystem utilities
# ---------------------------------------------------------------------------

from peerkeeper.utils.filesystem import (
    create_timestamped_backup,
    safe_read_file,
    safe_write_file,
)

# ---------------------------------------------------------------------------
# Logging utilities
# ---------------------------------------------------------------------------

from peerkeeper.utils.logger import (
    get_logger,
    is_logging_configured,
    level_for_verbosity,
    setup_logging,
)

# ---------------------------------------------------------------------------
# Console utilities
# ---------------------------------------------------------------------------

from peerkeeper.utils.console import (
    choose,
    colorize_update_type,
    get_raw_console,
    print_error,
    print_info,
    print_success,
    print_table,
    print_warning,
    reconfigure_console,
)

# ---------------------------------------------------------------------------
# HTTP utilities
# ---------------------------------------------------------------------------

from peerkeeper.utils.http import HTTPClient

# ---------------------------------------------------------------------------
# Version utilities
# ---------------------------------------------------------------------------

from peerkeeper.utils.version_utils import (
    get_update_type,
    major_distance,
    parse_semver,
)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

__all__ = [
    # Console
    "choose",
    "print_error",
    "print_info",
    "print_table",
    "print_success",
    "print_warning",
    "get_raw_console",
    "reconfigure_console",
    "colorize_update_type",
    # Logging
    "get_logger",
    "setup_logging",
    "level_for_verbosity",
    "is_logging_configured",
    # Filesystem
    "safe_read_file",
    "safe_write_file",
    "create_timestamped_backup",
    # HTTP
    "HTTPClient",
    # Version utilities
    "get_update_type",
    "major_distance",
    "parse_semver",
]
