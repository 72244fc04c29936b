"""Loading and persisting ``package.json`` for peerkeeper.

The manifest is read once at the start of a run and written back once at
the end as a full rewrite (2-space indentation, trailing newline). The
write is atomic: a temporary file in the same directory replaces the
manifest in a single step.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional, Union

from peerkeeper.constants import MANIFEST_FILENAME, MANIFEST_INDENT
from peerkeeper.exceptions import (
    FileOperationError,
    ManifestNotFoundError,
    ManifestParseError,
    PersistenceError,
)
from peerkeeper.models.manifest import DependencyClass, Manifest
from peerkeeper.utils.filesystem import (
    create_timestamped_backup,
    safe_read_file,
    safe_write_file,
)
from peerkeeper.utils.logger import get_logger

logger = get_logger("manifest")

__all__ = ["manifest_path", "load_manifest", "save_manifest", "dump_manifest"]

PathLike = Union[str, Path]


def manifest_path(project_root: PathLike) -> Path:
    """Return the ``package.json`` path inside ``project_root``."""
    return Path(project_root) / MANIFEST_FILENAME


def _validate_section(document: dict, dep_class: DependencyClass, path: Path) -> None:
    section: Any = document.get(dep_class.value)
    if section is None:
        return
    if not isinstance(section, dict):
        raise ManifestParseError(
            f"'{dep_class.value}' must be an object, got {type(section).__name__}",
            config_path=str(path),
        )
    for name, spec in section.items():
        if not isinstance(spec, str):
            raise ManifestParseError(
                f"Version range of '{name}' in '{dep_class.value}' must be a string",
                config_path=str(path),
            )


def load_manifest(path: PathLike) -> Manifest:
    """Read and validate a manifest.

    Raises:
        ManifestNotFoundError: ``path`` does not exist or is not a file.
        ManifestParseError: Invalid JSON, a non-object document, or a
            dependency section that is not a name → string mapping.
    """
    path = Path(path)
    if not path.is_file():
        raise ManifestNotFoundError(
            f"{path.name} not found in {path.parent.resolve()}",
            config_path=str(path),
        )

    try:
        text = safe_read_file(path)
    except FileOperationError as exc:
        raise ManifestParseError(
            f"Cannot read {path.name}: {exc.message}",
            config_path=str(path),
        ) from exc

    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ManifestParseError(
            f"Invalid JSON in {path.name}: {exc.msg}",
            config_path=str(path),
            line_number=exc.lineno,
        ) from exc

    if not isinstance(document, dict):
        raise ManifestParseError(
            f"{path.name} must contain a JSON object",
            config_path=str(path),
        )

    for dep_class in DependencyClass:
        _validate_section(document, dep_class, path)

    manifest = Manifest(document)
    logger.debug(
        "Loaded %s: %d dependencies, %d devDependencies",
        path,
        len(manifest.dependencies),
        len(manifest.dev_dependencies),
    )
    return manifest


def dump_manifest(manifest: Manifest) -> str:
    """Serialize a manifest the way npm writes ``package.json``."""
    return json.dumps(manifest.to_dict(), indent=MANIFEST_INDENT, ensure_ascii=False) + "\n"


def save_manifest(
    path: PathLike,
    manifest: Manifest,
    *,
    backup: bool = False,
) -> Optional[Path]:
    """Write ``manifest`` to ``path`` as one atomic replacement.

    Args:
        path: Manifest location.
        manifest: Manifest to persist.
        backup: Copy the current file to a timestamped backup first.

    Returns:
        The backup path when one was created.

    Raises:
        PersistenceError: Backup or write failed. The error carries
            ``manifest`` so the write can be retried.
    """
    path = Path(path)
    content = dump_manifest(manifest)
    backup_path: Optional[Path] = None

    try:
        if backup and path.is_file():
            backup_path = create_timestamped_backup(path)
            logger.info("Created backup: %s", backup_path)
        safe_write_file(path, content)
    except FileOperationError as exc:
        raise PersistenceError(
            f"Cannot write {path.name}: {exc.message}",
            manifest=manifest,
            file_path=str(path),
            original_error=exc,
        ) from exc

    logger.debug("Wrote %s (%d bytes)", path, len(content.encode("utf-8")))
    return backup_path
