# pyright: reportUnusedCallResult=false
"""CLI context for global state management.

The CLIContext is set once at CLI startup, after the global options are
parsed and configuration is loaded, and read by every command through a
context variable.
"""

import contextvars
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from projax.config import Config
from projax.registry import LocalRegistryStore, RemoteRegistryStore
from projax.scanner import Scanner
from projax.utils import get_default_data_dir, get_registry_file

if TYPE_CHECKING:
    from pathlib import Path

    from structlog.typing import FilteringBoundLogger

    from projax.registry import RegistryStore, ScanService


class OutputFormat(StrEnum):
    """Supported output formats for commands."""

    TABLE = "table"
    JSON = "json"


_current_cli_context: contextvars.ContextVar["CLIContext | None"] = (
    contextvars.ContextVar("cli_context", default=None)
)


@dataclass(frozen=True, slots=True)
class CLIContext:
    """Global CLI context with configuration and options.

    Attributes:
        config: Loaded configuration object.
        output_format: Format for command output.
        remote: Talk to a running projax API instead of the registry file.
        config_error: Error message if config loading failed.
        logger: Structured logger for CLI commands (writes to file only).
    """

    config: Config = field(repr=False)
    output_format: OutputFormat = OutputFormat.TABLE
    remote: bool = False
    config_error: str | None = None
    logger: "FilteringBoundLogger | None" = field(default=None, repr=False)

    @property
    def data_dir(self) -> "Path":
        """Registry data directory from configuration."""
        return self.config.registry.data_dir or get_default_data_dir()

    @property
    def is_json(self) -> bool:
        return self.output_format is OutputFormat.JSON

    @contextmanager
    def open_store(self) -> "Iterator[RegistryStore]":
        """Open the registry store selected by the global options.

        The remote store's HTTP client is closed on exit.
        """
        if not self.remote:
            registry = self.config.registry
            yield LocalRegistryStore(
                get_registry_file(registry.data_dir, registry.file_name),
                logger=self.logger,
            )
            return

        api = self.config.api
        with RemoteRegistryStore(
            api.base_url,
            data_dir=self.config.registry.data_dir,
            timeout=api.timeout,
            retries=api.retries,
        ) as store:
            yield store

    def scan_service(self, store: "RegistryStore") -> "ScanService":
        """Return the scanner for a store opened with open_store().

        A remote store scans on the server; a local store is scanned in
        process.
        """
        if isinstance(store, RemoteRegistryStore):
            return store
        return Scanner(store, config=self.config.scan, logger=self.logger)

    @classmethod
    def get_current(cls) -> "CLIContext":
        """Get current active CLIContext, or a default one if none is set."""
        ctx = _current_cli_context.get()
        if ctx is not None:
            return ctx
        return cls(config=Config.from_dict({}))

    @classmethod
    def set_current(cls, ctx: "CLIContext") -> None:
        """Set the current active CLIContext."""
        _current_cli_context.set(ctx)

    @classmethod
    def reset(cls) -> None:
        """Reset to default context. Used by tests between runs."""
        _current_cli_context.set(None)
