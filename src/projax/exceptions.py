"""Projax exceptions."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


class ProjaxError(Exception):
    """Base exception for projax errors."""


class ConfigError(ProjaxError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when configuration cannot be loaded or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: "Path | None" = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column


class ConfigValidationError(ConfigError):
    """Raised when configuration fails validation."""

    def __init__(
        self,
        message: str,
        *,
        key: str,
        value: object,
        expected: str,
        source: str | None = None,
    ) -> None:
        """Initialize with error message and validation context."""
        super().__init__(message)
        self.key: str = key
        self.value: object = value
        self.expected: str = expected
        self.source: str | None = source


# =============================================================================
# Registry Exceptions
# =============================================================================


class RegistryError(ProjaxError):
    """Base exception for registry store errors."""


class RegistryIOError(RegistryError):
    """Raised when the registry document cannot be read or written.

    Attributes:
        path: Path to the file that caused the error.
        operation: The operation that failed ("read", "write").
        cause: The underlying exception that caused this error.
    """

    def __init__(
        self,
        message: str,
        *,
        path: "Path",
        operation: str,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and I/O context.

        Args:
            message: Human-readable error message.
            path: Path to the file that caused the error.
            operation: The operation that failed ("read", "write").
            cause: The underlying exception that caused this error.
        """
        super().__init__(message)
        self.path: Path = path
        self.operation: str = operation
        self.cause: Exception | None = cause


class RegistryParseError(RegistryError):
    """Raised when the registry document bytes are not valid JSON.

    Attributes:
        path: Path to the file that failed to parse.
        cause: The underlying decode error.
    """

    def __init__(
        self,
        message: str,
        *,
        path: "Path",
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and parse context."""
        super().__init__(message)
        self.path: Path = path
        self.cause: Exception | None = cause


class DuplicatePathError(RegistryError, ValueError):
    """Raised when a project with the same path is already registered.

    Attributes:
        path: The conflicting project path.
        existing_id: ID of the project that already owns the path.
    """

    def __init__(
        self, message: str, *, path: str, existing_id: int | None = None
    ) -> None:
        """Initialize with error message and conflict context.

        Args:
            message: Human-readable error message.
            path: The conflicting project path.
            existing_id: ID of the project that already owns the path.
        """
        super().__init__(message)
        self.path: str = path
        self.existing_id: int | None = existing_id


class ProjectNotFoundError(RegistryError, KeyError):
    """Raised when a project cannot be found.

    Attributes:
        project_id: The ID of the project that was not found.
    """

    def __init__(self, message: str, *, project_id: int | None = None) -> None:
        """Initialize with error message and project context.

        Args:
            message: Human-readable error message.
            project_id: The ID of the project that was not found.
        """
        super().__init__(message)
        self.project_id: int | None = project_id

    def __str__(self) -> str:
        # KeyError.__str__ quotes the message
        return str(self.args[0]) if self.args else ""


class RemoteRegistryError(RegistryError):
    """Raised when the registry API returns an unexpected response.

    Attributes:
        status_code: HTTP status code, or None if no response was received.
        url: The request URL.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str | None = None,
    ) -> None:
        """Initialize with error message and response context."""
        super().__init__(message)
        self.status_code: int | None = status_code
        self.url: str | None = url


class LegacyImportError(RegistryError):
    """Raised when a legacy SQLite registry cannot be imported.

    Attributes:
        path: Path to the legacy database.
    """

    def __init__(self, message: str, *, path: "Path") -> None:
        """Initialize with error message and database path."""
        super().__init__(message)
        self.path: Path = path


# =============================================================================
# Scan Exceptions
# =============================================================================


class ScanError(ProjaxError):
    """Raised when a project cannot be scanned.

    Attributes:
        project_id: The ID of the project being scanned.
        path: The project path, if known.
    """

    def __init__(
        self,
        message: str,
        *,
        project_id: int | None = None,
        path: str | None = None,
    ) -> None:
        """Initialize with error message and scan context."""
        super().__init__(message)
        self.project_id: int | None = project_id
        self.path: str | None = path


class PathMissingError(ScanError):
    """Raised when a project's stored path no longer exists on disk."""
