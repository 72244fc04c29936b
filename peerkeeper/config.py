"""Configuration file loader for peerkeeper.

Handles discovery, loading, parsing, and validation of configuration.
Supports two sources:

- ``peerkeeper.toml``: settings under a ``[peerkeeper]`` table
- ``package.json``: settings under a top-level ``"peerkeeper"`` object

Discovery order:

1. Explicit path from ``--config`` or ``PEERKEEPER_CONFIG``
2. ``peerkeeper.toml`` in the project directory
3. ``package.json`` with a ``"peerkeeper"`` object

Configuration precedence: defaults < config file < CLI args.

Example (``peerkeeper.toml``)::

    [peerkeeper]
    registry_url = "https://registry.npmjs.org"
    timeout = 15
    dependent_choice_limit = 10
"""

from __future__ import annotations

import json
import tomli as tomllib
from pathlib import Path
from typing import Any, Dict, Optional
from dataclasses import dataclass, field, fields

from peerkeeper.exceptions import ConfigurationError
from peerkeeper.utils.logger import get_logger
from peerkeeper.constants import (
    CONFIG_FILENAME,
    DEFAULT_CREATE_BACKUP,
    DEFAULT_DEPENDENT_CHOICE_LIMIT,
    DEFAULT_MAX_RETRIES,
    DEFAULT_REGISTRY_URL,
    DEFAULT_TARGET_CHOICE_LIMIT,
    DEFAULT_TIMEOUT,
    MANIFEST_CONFIG_KEY,
    MANIFEST_FILENAME,
)

logger = get_logger("config")


@dataclass
class PeerKeeperConfig:
    """Parsed and validated peerkeeper configuration.

    All fields have defaults, so an empty section is valid.

    Attributes:
        registry_url: Base URL of the npm registry.
        timeout: Network timeout per request, in seconds.
        max_retries: Retries after a failed registry request.
        target_choice_limit: Target versions offered in the prompt.
        dependent_choice_limit: Compatible versions offered per dependency.
        backup: Write a timestamped backup of the manifest before saving.
        source_path: Path to loaded config file, or ``None`` if using defaults.
    """

    registry_url: str = DEFAULT_REGISTRY_URL
    timeout: int = DEFAULT_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    target_choice_limit: int = DEFAULT_TARGET_CHOICE_LIMIT
    dependent_choice_limit: int = DEFAULT_DEPENDENT_CHOICE_LIMIT
    backup: bool = DEFAULT_CREATE_BACKUP

    # Metadata (not a user-facing option)
    source_path: Optional[Path] = field(default=None, repr=False)

    def to_log_dict(self) -> Dict[str, Any]:
        """Return configuration options (without metadata) for debug logging."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != "source_path"
        }


#: Option name → (expected type, minimum value for integers).
_OPTIONS: Dict[str, Any] = {
    "registry_url": (str, None),
    "timeout": (int, 1),
    "max_retries": (int, 0),
    "target_choice_limit": (int, 1),
    "dependent_choice_limit": (int, 1),
    "backup": (bool, None),
}


def discover_config_file(
    explicit_path: Optional[Path] = None,
    project_root: Optional[Path] = None,
) -> Optional[Path]:
    """Find the configuration file to load.

    Args:
        explicit_path: Explicit config path. If provided, must exist.
        project_root: Directory searched for ``peerkeeper.toml`` and
            ``package.json``; defaults to the current directory.

    Returns:
        Resolved path to config file, or ``None`` if not found.

    Raises:
        ConfigurationError: Explicit path provided but does not exist.
    """
    if explicit_path is not None:
        resolved = explicit_path.resolve()
        if not resolved.is_file():
            raise ConfigurationError(
                f"Configuration file not found: {explicit_path}",
                config_path=str(explicit_path),
            )
        logger.debug("Using explicit config: %s", resolved)
        return resolved

    root = project_root or Path.cwd()

    config_toml = root / CONFIG_FILENAME
    if config_toml.is_file():
        logger.debug("Found %s: %s", CONFIG_FILENAME, config_toml)
        return config_toml

    package_json = root / MANIFEST_FILENAME
    if package_json.is_file() and _manifest_has_section(package_json):
        logger.debug("Found \"%s\" in %s", MANIFEST_CONFIG_KEY, package_json)
        return package_json

    logger.debug("No configuration file found")
    return None


def _manifest_has_section(path: Path) -> bool:
    """True if ``package.json`` carries a ``"peerkeeper"`` object.

    An unreadable manifest is reported later by the manifest store, so
    it simply does not count as a config source here.
    """
    try:
        raw = _read_json(path)
    except ConfigurationError:
        return False
    return isinstance(raw.get(MANIFEST_CONFIG_KEY), dict)


def load_config(
    config_path: Optional[Path] = None,
    project_root: Optional[Path] = None,
) -> PeerKeeperConfig:
    """Load and validate peerkeeper configuration.

    Returns defaults when no configuration source is found.

    Raises:
        ConfigurationError: File cannot be parsed, has unknown keys, or
            invalid values.
    """
    resolved = discover_config_file(config_path, project_root)

    if resolved is None:
        logger.debug("No config file found, using defaults")
        return PeerKeeperConfig()

    logger.info("Loading configuration from %s", resolved)

    if resolved.suffix == ".json":
        section = _read_json(resolved).get(MANIFEST_CONFIG_KEY, {})
    else:
        section = _read_toml(resolved).get("peerkeeper", {})

    if not section:
        logger.debug("Config file found but no peerkeeper section, using defaults")
        return PeerKeeperConfig(source_path=resolved)

    if not isinstance(section, dict):
        raise ConfigurationError(
            "peerkeeper settings must be a table/object",
            config_path=str(resolved),
        )

    config = _parse_section(section, config_path=str(resolved))
    config.source_path = resolved
    return config


def _read_toml(path: Path) -> Dict[str, Any]:
    """Read and parse a TOML file.

    Raises:
        ConfigurationError: File cannot be read or is not valid TOML.
    """
    try:
        with open(path, "rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(
            f"Invalid TOML in {path.name}: {exc}",
            config_path=str(path),
        ) from exc
    except OSError as exc:
        raise ConfigurationError(
            f"Cannot read configuration file {path}: {exc}",
            config_path=str(path),
        ) from exc


def _read_json(path: Path) -> Dict[str, Any]:
    """Read a JSON object from ``path``.

    Raises:
        ConfigurationError: File cannot be read or is not a JSON object.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except ValueError as exc:
        raise ConfigurationError(
            f"Invalid JSON in {path.name}: {exc}",
            config_path=str(path),
        ) from exc
    except OSError as exc:
        raise ConfigurationError(
            f"Cannot read configuration file {path}: {exc}",
            config_path=str(path),
        ) from exc

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"{path.name} must contain a JSON object",
            config_path=str(path),
        )
    return data


def _parse_section(
    section: Dict[str, Any],
    *,
    config_path: str,
) -> PeerKeeperConfig:
    """Validate a peerkeeper settings table.

    Rejects unknown keys, type mismatches and out-of-range integers.
    Booleans are not accepted where integers are expected.
    """
    unknown = set(section) - set(_OPTIONS)
    if unknown:
        raise ConfigurationError(
            f"Unknown configuration keys: {', '.join(sorted(unknown))}",
            config_path=config_path,
        )

    config = PeerKeeperConfig()

    for option, value in section.items():
        expected, minimum = _OPTIONS[option]

        if expected is int and isinstance(value, bool) or not isinstance(value, expected):
            raise ConfigurationError(
                f"{option} must be a {expected.__name__}, got {type(value).__name__}",
                config_path=config_path,
                option=option,
            )

        if minimum is not None and value < minimum:
            raise ConfigurationError(
                f"{option} must be at least {minimum}, got {value}",
                config_path=config_path,
                option=option,
            )

        if option == "registry_url" and not value.startswith(("http://", "https://")):
            raise ConfigurationError(
                f"registry_url must be an http(s) URL, got {value!r}",
                config_path=config_path,
                option=option,
            )

        setattr(config, option, value)

    return config
