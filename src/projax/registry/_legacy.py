"""One-shot import of a legacy SQLite registry.

Releases before the JSON document kept the registry in a SQLite database,
``dashboard.db`` in the data directory. This module copies its rows into a
registry store through the store's own operations, so every record gets a
fresh ID and the usual upsert rules apply. Legacy project IDs are remapped
to the new ones when child rows are imported.

The import only runs against a store with no projects, and the database is
copied to ``<name>.backup`` once it has been read.
"""

import shutil
import sqlite3
from contextlib import closing, contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, ClassVar, Final, cast

import structlog
from pydantic import BaseModel, ConfigDict, ValidationError

from projax.exceptions import DuplicatePathError, LegacyImportError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from structlog.typing import FilteringBoundLogger

    from projax.registry._protocol import RegistryStore

__all__ = ["LEGACY_DATABASE_NAME", "LegacyImportReport", "import_legacy_database"]

LEGACY_DATABASE_NAME: Final = "dashboard.db"

_TABLES: Final = ("projects", "tests", "jenkins_jobs", "project_ports", "settings")


class _LegacyRow(BaseModel):
    model_config: ClassVar[ConfigDict] = ConfigDict(extra="ignore")


class _LegacyProject(_LegacyRow):
    id: int
    name: str
    path: str
    last_scanned: int | None = None


class _LegacyTest(_LegacyRow):
    id: int
    project_id: int
    file_path: str
    framework: str | None = None


class _LegacyJenkinsJob(_LegacyRow):
    id: int
    project_id: int
    job_name: str
    job_url: str


class _LegacyProjectPort(_LegacyRow):
    id: int
    project_id: int
    port: int
    config_source: str
    script_name: str | None = None


class _LegacySetting(_LegacyRow):
    key: str
    value: str | int | float


@dataclass(frozen=True, slots=True)
class LegacyImportReport:
    """Summary of a legacy import.

    Attributes:
        source: Path to the legacy database.
        performed: False when the import was skipped because the store
            already had projects.
        imported: Number of rows imported per table.
        failed: Number of rows that could not be imported.
        missing_tables: Tables the database did not have.
        backup: Path to the backup copy, if one was written.
    """

    source: Path
    performed: bool
    imported: dict[str, int] = field(default_factory=dict)
    failed: int = 0
    missing_tables: tuple[str, ...] = ()
    backup: Path | None = None


@contextmanager
def _connect_read_only(path: Path) -> "Iterator[sqlite3.Connection]":
    """Open a SQLite database read-only with ``sqlite3.Row`` rows."""
    conn = sqlite3.connect(f"{path.resolve().as_uri()}?mode=ro", uri=True)
    conn.row_factory = sqlite3.Row
    with closing(conn):
        yield conn


def _read_tables(
    conn: sqlite3.Connection,
) -> tuple[dict[str, list[dict[str, object]]], tuple[str, ...]]:
    existing = {
        cast("str", row[0])
        for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
    }
    tables: dict[str, list[dict[str, object]]] = {}
    missing: list[str] = []
    for table in _TABLES:
        if table not in existing:
            missing.append(table)
            tables[table] = []
            continue
        # Table names come from _TABLES, never from input
        query = f'SELECT * FROM "{table}" ORDER BY rowid'  # noqa: S608
        rows = cast("list[sqlite3.Row]", conn.execute(query).fetchall())
        tables[table] = [dict(row) for row in rows]
    return tables, tuple(missing)


class _Importer:
    """Feeds legacy rows into a store and counts outcomes."""

    __slots__ = ("_failed", "_id_map", "_imported", "_logger", "_store")

    def __init__(self, store: "RegistryStore", logger: "FilteringBoundLogger") -> None:
        self._store = store
        self._logger = logger
        self._id_map: dict[int, int] = {}
        self._imported: dict[str, int] = dict.fromkeys(_TABLES, 0)
        self._failed = 0

    @property
    def imported(self) -> dict[str, int]:
        return self._imported

    @property
    def failed(self) -> int:
        return self._failed

    def run(self, tables: dict[str, list[dict[str, object]]]) -> None:
        for row in tables["projects"]:
            self._import("projects", row, self._project)
        for row in tables["tests"]:
            self._import("tests", row, self._test)
        for row in tables["jenkins_jobs"]:
            self._import("jenkins_jobs", row, self._jenkins_job)
        for row in tables["project_ports"]:
            self._import("project_ports", row, self._project_port)
        for row in tables["settings"]:
            self._import("settings", row, self._setting)

    def _import(
        self,
        table: str,
        row: dict[str, object],
        handler: "Callable[[dict[str, object]], None]",
    ) -> None:
        try:
            handler(row)
        except (ValidationError, DuplicatePathError, KeyError) as e:
            self._failed += 1
            self._logger.warning(
                "legacy_import_row_failed",
                table=table,
                row_id=row.get("id", row.get("key")),
                error=str(e),
            )
            return
        self._imported[table] += 1

    def _project_id(self, legacy_id: int) -> int:
        try:
            return self._id_map[legacy_id]
        except KeyError:
            msg = f"Unknown legacy project id: {legacy_id}"
            raise KeyError(msg) from None

    def _project(self, row: dict[str, object]) -> None:
        legacy = _LegacyProject.model_validate(row)
        project = self._store.add_project(legacy.name, legacy.path)
        self._id_map[legacy.id] = project.id
        if legacy.last_scanned is not None:
            _ = self._store.update_project(
                project.id, last_scanned=legacy.last_scanned
            )

    def _test(self, row: dict[str, object]) -> None:
        legacy = _LegacyTest.model_validate(row)
        _ = self._store.add_test(
            self._project_id(legacy.project_id), legacy.file_path, legacy.framework
        )

    def _jenkins_job(self, row: dict[str, object]) -> None:
        legacy = _LegacyJenkinsJob.model_validate(row)
        _ = self._store.add_jenkins_job(
            self._project_id(legacy.project_id), legacy.job_name, legacy.job_url
        )

    def _project_port(self, row: dict[str, object]) -> None:
        legacy = _LegacyProjectPort.model_validate(row)
        _ = self._store.add_project_port(
            self._project_id(legacy.project_id),
            legacy.port,
            legacy.config_source,
            legacy.script_name,
        )

    def _setting(self, row: dict[str, object]) -> None:
        legacy = _LegacySetting.model_validate(row)
        self._store.set_setting(legacy.key, legacy.value)


def import_legacy_database(
    sqlite_path: Path,
    store: "RegistryStore",
    *,
    logger: "FilteringBoundLogger | None" = None,
) -> LegacyImportReport:
    """Import a legacy SQLite registry into a store.

    Args:
        sqlite_path: Path to the legacy database.
        store: Store to import into.
        logger: Logger to use. Defaults to a structlog logger named
            ``projax.registry``.

    Returns:
        A report of what was imported. ``performed`` is False when the
        store already had projects and nothing was done.

    Raises:
        LegacyImportError: If the database is missing or cannot be read,
            or the backup copy cannot be written.
    """
    log = (
        logger
        if logger is not None
        else cast("FilteringBoundLogger", structlog.get_logger("projax.registry"))
    ).bind(source=str(sqlite_path))

    if not sqlite_path.is_file():
        msg = f"Legacy database not found: {sqlite_path}"
        raise LegacyImportError(msg, path=sqlite_path)

    if store.get_all_projects():
        log.info("legacy_import_skipped", reason="registry has projects")
        return LegacyImportReport(source=sqlite_path, performed=False)

    log.info("legacy_import_started")
    try:
        with _connect_read_only(sqlite_path) as conn:
            tables, missing = _read_tables(conn)
    except sqlite3.Error as e:
        msg = f"Failed to read legacy database: {e}"
        raise LegacyImportError(msg, path=sqlite_path) from e

    for table in missing:
        log.warning("legacy_import_table_missing", table=table)

    importer = _Importer(store, log)
    importer.run(tables)

    backup = sqlite_path.with_name(f"{sqlite_path.name}.backup")
    try:
        _ = shutil.copy2(sqlite_path, backup)
    except OSError as e:
        msg = f"Failed to back up legacy database: {e}"
        raise LegacyImportError(msg, path=sqlite_path) from e

    log.info(
        "legacy_import_completed",
        imported=importer.imported,
        failed=importer.failed,
        backup=str(backup),
    )
    return LegacyImportReport(
        source=sqlite_path,
        performed=True,
        imported=importer.imported,
        failed=importer.failed,
        missing_tables=missing,
        backup=backup,
    )
