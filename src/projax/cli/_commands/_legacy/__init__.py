# pyright: reportUnusedCallResult=false
# ruff: noqa: D415, TC003  # Path needed at runtime for cyclopts parameter parsing
"""projax import-legacy command - copies a SQLite registry into the JSON one."""

from pathlib import Path

from cyclopts import App

from projax.cli._commands._context import CLIContext
from projax.cli._commands._shared import format_json, handle_errors
from projax.registry import LEGACY_DATABASE_NAME, import_legacy_database

__all__ = ["app"]

app = App(
    name="import-legacy",
    help="Import projects from a legacy SQLite registry",
    help_on_error=True,
)


@app.default
def import_legacy(path: Path | None = None, /) -> None:
    """Import a legacy SQLite registry

    The import only runs when the registry has no projects. The database is
    backed up next to itself once read.

    Args:
        path: Legacy database. Defaults to dashboard.db in the data directory
    """
    ctx = CLIContext.get_current()
    source = path if path is not None else ctx.data_dir / LEGACY_DATABASE_NAME

    with handle_errors(), ctx.open_store() as store:
        report = import_legacy_database(source, store, logger=ctx.logger)

    if ctx.is_json:
        print(
            format_json(
                {
                    "source": str(report.source),
                    "performed": report.performed,
                    "imported": report.imported,
                    "failed": report.failed,
                    "missing_tables": list(report.missing_tables),
                    "backup": str(report.backup) if report.backup else None,
                }
            )
        )
        return

    if not report.performed:
        print("Registry already has projects; nothing imported")
        return
    for table, count in report.imported.items():
        print(f"{table}: {count} imported")
    if report.failed:
        print(f"{report.failed} rows failed to import")
    if report.backup is not None:
        print(f"Backup written to {report.backup}")
