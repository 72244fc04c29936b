"""
Exception hierarchy for peerkeeper.

Every error raised on purpose derives from :class:`PeerKeeperError` and
carries a ``details`` mapping that is appended to ``str(exc)`` and logged
at debug level by the CLI.

How far an error reaches depends on where it is raised:

- :class:`ConfigurationError` stops the run before any network activity.
- :class:`TargetResolutionError` stops the run before the manifest is
  touched.
- :class:`DependencyResolutionError` is recorded against one dependency
  and the run continues.
- :class:`PersistenceError` stops the run at the final write and keeps
  the computed manifest.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

if TYPE_CHECKING:
    from peerkeeper.models.manifest import Manifest

#: Longest response body kept in ``details``.
MAX_DETAIL_LENGTH = 200


def _compact(**values: Any) -> Dict[str, Any]:
    """Keyword arguments whose value is not ``None``."""
    return {key: value for key, value in values.items() if value is not None}


def _shorten(text: Optional[str]) -> Optional[str]:
    if text is None or len(text) <= MAX_DETAIL_LENGTH:
        return text
    return text[:MAX_DETAIL_LENGTH] + "..."


class PeerKeeperError(Exception):
    """Base class for peerkeeper errors.

    Args:
        message: Human-readable error message.
        details: Optional structured context (paths, URLs, package names).
    """

    def __init__(self, message: str, details: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = dict(details or {})

    def __str__(self) -> str:
        if not self.details:
            return self.message
        context = ", ".join(f"{key}={value}" for key, value in self.details.items())
        return f"{self.message} ({context})"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, details={self.details!r})"


# ---------------------------------------------------------------------------
# Before any network activity
# ---------------------------------------------------------------------------


class ConfigurationError(PeerKeeperError):
    """Invalid settings, arguments or project layout."""

    __slots__ = ("config_path", "option")

    def __init__(
        self,
        message: str,
        *,
        config_path: Optional[str] = None,
        option: Optional[str] = None,
    ) -> None:
        super().__init__(message, _compact(path=config_path, option=option))
        self.config_path = config_path
        self.option = option


class ManifestNotFoundError(ConfigurationError):
    """``package.json`` does not exist."""


class ManifestParseError(ConfigurationError):
    """``package.json`` is not a JSON object; ``line_number`` is 1-based."""

    __slots__ = ("line_number",)

    def __init__(
        self,
        message: str,
        *,
        config_path: Optional[str] = None,
        line_number: Optional[int] = None,
    ) -> None:
        super().__init__(message, config_path=config_path)
        self.line_number = line_number
        self.details.update(_compact(line=line_number))


# ---------------------------------------------------------------------------
# Registry access
# ---------------------------------------------------------------------------


class NetworkError(PeerKeeperError):
    """An HTTP request failed.

    ``response_body`` keeps the full body; ``details`` only a prefix.
    """

    __slots__ = ("url", "status_code", "response_body")

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            _compact(url=url, status_code=status_code, response=_shorten(response_body)),
        )
        self.url = url
        self.status_code = status_code
        self.response_body = response_body


class RegistryUnavailable(NetworkError):
    """Registry metadata for ``package_name`` could not be obtained."""

    __slots__ = ("package_name",)

    def __init__(
        self,
        message: str,
        *,
        package_name: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.package_name = package_name
        self.details.update(_compact(package=package_name))


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


class NoStableVersionError(PeerKeeperError):
    """The package publishes no valid, non-prerelease version."""

    __slots__ = ("package_name",)

    def __init__(self, package_name: str) -> None:
        super().__init__(
            f"No stable versions found for '{package_name}'",
            {"package": package_name},
        )
        self.package_name = package_name


class TargetResolutionError(PeerKeeperError):
    """The target package cannot be resolved. Fatal."""

    __slots__ = ("package_name",)

    def __init__(self, message: str, *, package_name: str) -> None:
        super().__init__(message, {"package": package_name})
        self.package_name = package_name


class DependencyResolutionError(PeerKeeperError):
    """One dependency cannot be checked. Never aborts a run."""

    __slots__ = ("package_name",)

    def __init__(self, message: str, *, package_name: str) -> None:
        super().__init__(message, {"package": package_name})
        self.package_name = package_name


class OperatorUnavailable(PeerKeeperError):
    """An interactive choice is required but no answer can be read."""


# ---------------------------------------------------------------------------
# Filesystem
# ---------------------------------------------------------------------------


class FileOperationError(PeerKeeperError):
    """Reading, writing or backing up a file failed.

    Args:
        message: Error description.
        file_path: File involved.
        operation: ``read``, ``write`` or ``backup``.
        original_error: Underlying exception, if any.
    """

    __slots__ = ("file_path", "operation", "original_error")

    def __init__(
        self,
        message: str,
        *,
        file_path: Optional[str] = None,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(
            message,
            _compact(
                path=file_path,
                operation=operation,
                original_error=str(original_error) if original_error else None,
            ),
        )
        self.file_path = file_path
        self.operation = operation
        self.original_error = original_error


class PersistenceError(FileOperationError):
    """The resolved manifest cannot be written.

    The fully computed manifest is kept on :attr:`manifest` so the caller
    can retry the write without resolving again.
    """

    __slots__ = ("manifest",)

    def __init__(
        self,
        message: str,
        *,
        manifest: "Manifest",
        file_path: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(
            message,
            file_path=file_path,
            operation="write",
            original_error=original_error,
        )
        self.manifest = manifest
