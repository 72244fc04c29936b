"""Unit tests for peerkeeper.utils.filesystem.

Covers size-limited reads, atomic writes (including temp-file cleanup on
failure) and timestamped backups of the manifest.
"""

from __future__ import annotations

import os
import re
import stat
import pytest
from pathlib import Path
from unittest.mock import patch

from peerkeeper.exceptions import FileOperationError
from peerkeeper.utils.filesystem import (
    create_timestamped_backup,
    safe_read_file,
    safe_write_file,
)


@pytest.fixture
def manifest_file(tmp_path: Path) -> Path:
    path = tmp_path / "package.json"
    path.write_text('{\n  "name": "demo"\n}\n', encoding="utf-8")
    return path


@pytest.mark.unit
class TestSafeReadFile:
    """Tests for safe_read_file."""

    def test_reads_content(self, manifest_file: Path) -> None:
        assert safe_read_file(manifest_file) == '{\n  "name": "demo"\n}\n'

    def test_accepts_string_path(self, manifest_file: Path) -> None:
        assert "demo" in safe_read_file(str(manifest_file))

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileOperationError) as exc_info:
            safe_read_file(tmp_path / "missing.json")

        assert exc_info.value.operation == "read"
        assert "not found" in exc_info.value.message.lower()

    def test_directory_is_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(FileOperationError, match="Not a file"):
            safe_read_file(tmp_path)

    def test_size_limit(self, manifest_file: Path) -> None:
        with pytest.raises(FileOperationError, match="File too large"):
            safe_read_file(manifest_file, max_size=5)

    def test_size_limit_disabled(self, manifest_file: Path) -> None:
        assert safe_read_file(manifest_file, max_size=None)

    def test_decode_error(self, tmp_path: Path) -> None:
        path = tmp_path / "binary.json"
        path.write_bytes(b"\xff\xfe\x00\x00")

        with pytest.raises(FileOperationError) as exc_info:
            safe_read_file(path)

        assert isinstance(exc_info.value.original_error, UnicodeDecodeError)


@pytest.mark.unit
class TestSafeWriteFile:
    """Tests for safe_write_file."""

    def test_replaces_content(self, manifest_file: Path) -> None:
        safe_write_file(manifest_file, '{"name": "changed"}\n')

        assert manifest_file.read_text(encoding="utf-8") == '{"name": "changed"}\n'

    def test_creates_new_file(self, tmp_path: Path) -> None:
        target = tmp_path / "package.json"
        safe_write_file(target, "{}\n")

        assert target.read_text(encoding="utf-8") == "{}\n"

    def test_preserves_unicode(self, tmp_path: Path) -> None:
        target = tmp_path / "package.json"
        safe_write_file(target, '{"author": "Zoë"}\n')

        assert "Zoë" in target.read_text(encoding="utf-8")

    def test_missing_parent_directory(self, tmp_path: Path) -> None:
        with pytest.raises(FileOperationError) as exc_info:
            safe_write_file(tmp_path / "nope" / "package.json", "{}")

        assert exc_info.value.operation == "write"

    def test_no_temp_files_left_behind(self, manifest_file: Path) -> None:
        safe_write_file(manifest_file, "{}\n")

        assert [p.name for p in manifest_file.parent.iterdir()] == ["package.json"]

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
    def test_keeps_permission_bits(self, manifest_file: Path) -> None:
        manifest_file.chmod(0o644)

        safe_write_file(manifest_file, "{}\n")

        assert stat.S_IMODE(manifest_file.stat().st_mode) == 0o644

    def test_replace_failure_cleans_up(self, manifest_file: Path) -> None:
        with patch.object(Path, "replace", side_effect=OSError("disk full")):
            with pytest.raises(FileOperationError, match="Atomic write failed") as exc_info:
                safe_write_file(manifest_file, '{"name": "changed"}\n')

        assert isinstance(exc_info.value.original_error, OSError)
        assert manifest_file.read_text(encoding="utf-8") == '{\n  "name": "demo"\n}\n'
        assert [p.name for p in manifest_file.parent.iterdir()] == ["package.json"]


@pytest.mark.unit
class TestCreateTimestampedBackup:
    """Tests for create_timestamped_backup."""

    def test_backup_name_and_content(self, manifest_file: Path) -> None:
        backup = create_timestamped_backup(manifest_file)

        assert backup.parent == manifest_file.parent
        assert re.fullmatch(r"package\.\d{8}_\d{6}\.backup\.json", backup.name)
        assert backup.read_text(encoding="utf-8") == manifest_file.read_text(encoding="utf-8")

    def test_original_untouched(self, manifest_file: Path) -> None:
        before = manifest_file.read_text(encoding="utf-8")
        create_timestamped_backup(manifest_file)

        assert manifest_file.read_text(encoding="utf-8") == before

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileOperationError) as exc_info:
            create_timestamped_backup(tmp_path / "package.json")

        assert exc_info.value.operation == "backup"

    def test_copy_failure(self, manifest_file: Path) -> None:
        with patch("peerkeeper.utils.filesystem.shutil.copy2", side_effect=OSError("denied")):
            with pytest.raises(FileOperationError, match="Failed to create backup"):
                create_timestamped_backup(manifest_file)
