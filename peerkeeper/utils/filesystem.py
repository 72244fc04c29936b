"""
Manifest file I/O for peerkeeper.

``package.json`` is read with a size cap and replaced atomically: the new
text goes to a sibling temporary file which is then renamed over the
target, so the manifest on disk is always either the old or the new
document. Any ``OSError`` surfaces as
:class:`~peerkeeper.exceptions.FileOperationError` tagged with the
operation (``read``, ``write`` or ``backup``).
"""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path
from datetime import datetime
from typing import Optional, Union

from peerkeeper.utils.logger import get_logger
from peerkeeper.exceptions import FileOperationError
from peerkeeper.constants import MAX_FILE_SIZE

logger = get_logger("filesystem")

PathLike = Union[str, Path]


def _require_file(path: Path, operation: str) -> Path:
    if not path.exists():
        message = f"File not found: {path}"
    elif not path.is_file():
        message = f"Not a file: {path}"
    else:
        return path
    raise FileOperationError(message, file_path=str(path), operation=operation)


def safe_read_file(
    file_path: PathLike,
    *,
    max_size: Optional[int] = MAX_FILE_SIZE,
    encoding: str = "utf-8",
) -> str:
    """Return the text of ``file_path``.

    Args:
        file_path: File to read.
        max_size: Refuse files larger than this many bytes; ``None``
            disables the check.
        encoding: Text encoding.
    """
    path = _require_file(Path(file_path), "read")

    try:
        size = path.stat().st_size
        if max_size is not None and size > max_size:
            raise FileOperationError(
                f"File too large: {size} bytes (max {max_size})",
                file_path=str(path),
                operation="read",
            )
        return path.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as exc:
        raise FileOperationError(
            f"Failed to read file: {exc}",
            file_path=str(path),
            operation="read",
            original_error=exc,
        ) from exc


def safe_write_file(file_path: PathLike, content: str) -> None:
    """Atomically replace ``file_path`` with ``content`` (UTF-8).

    The parent directory must exist. An existing file keeps its
    permission bits.
    """
    target = Path(file_path)
    if not target.parent.is_dir():
        raise FileOperationError(
            f"Directory does not exist: {target.parent}",
            file_path=str(target),
            operation="write",
        )

    fd, tmp_name = tempfile.mkstemp(
        dir=str(target.parent), prefix=f".{target.name}.", suffix=".tmp"
    )
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        if target.exists():
            shutil.copymode(target, tmp_path)
        tmp_path.replace(target)
    except OSError as exc:
        _discard(tmp_path)
        raise FileOperationError(
            f"Atomic write failed: {exc}",
            file_path=str(target),
            operation="write",
            original_error=exc,
        ) from exc

    logger.debug("Wrote %d characters to %s", len(content), target)


def _discard(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Could not remove temporary file %s: %s", path, exc)


def create_timestamped_backup(file_path: PathLike) -> Path:
    """Copy ``file_path`` to ``{stem}.{YYYYmmdd_HHMMSS}.backup{suffix}``.

    Example:
        ``package.json`` → ``package.20260118_101500.backup.json``
    """
    path = _require_file(Path(file_path), "backup")
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    backup_path = path.with_name(f"{path.stem}.{stamp}.backup{path.suffix}")

    try:
        shutil.copy2(path, backup_path)
    except OSError as exc:
        raise FileOperationError(
            f"Failed to create backup: {exc}",
            file_path=str(path),
            operation="backup",
            original_error=exc,
        ) from exc

    logger.info("Backed up %s to %s", path.name, backup_path.name)
    return backup_path
