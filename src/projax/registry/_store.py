# pyright: reportAny=false
"""File-backed registry store.

This module provides LocalRegistryStore, which keeps the whole registry
document in memory and rewrites it to disk after every mutation. There is
one writer per file and no locking; ``reload()`` is the way to pick up
changes made by another process.
"""

from dataclasses import replace
from typing import TYPE_CHECKING, Final, cast

import pendulum
import structlog

from projax.exceptions import (
    DuplicatePathError,
    ProjectNotFoundError,
    RegistryIOError,
    RegistryParseError,
)
from projax.registry._io import read_json, write_json_atomic
from projax.registry._migrate import normalize
from projax.registry._models import (
    UNSET,
    Document,
    JenkinsJob,
    Project,
    ProjectPort,
    Setting,
    Test,
    TestResult,
    Unset,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from structlog.typing import FilteringBoundLogger

__all__ = ["LocalRegistryStore"]


def _now() -> int:
    """Current time in epoch seconds."""
    return pendulum.now("UTC").int_timestamp


def _next_id(
    rows: "Sequence[Project | Test | JenkinsJob | ProjectPort | TestResult]",
) -> int:
    return max((row.id for row in rows), default=0) + 1


class LocalRegistryStore:
    """Registry store persisted as a single JSON document.

    The document is loaded when the store is created. A missing file is
    created empty; a file that is not valid JSON is logged and replaced by
    an empty document; a document from an older schema is migrated and
    written back once.

    Every mutating method rewrites the whole file before returning. If the
    write fails, the error is logged and raised as RegistryIOError, and the
    in-memory change is kept.

    Records returned by the store are frozen, so a caller's snapshot never
    changes under it.

    Attributes:
        _path: Path to the registry document.
        _logger: Logger for load, migration and write events.
        _document: The in-memory document.
    """

    __slots__: Final = ("_document", "_logger", "_path")

    _document: Document
    _logger: "FilteringBoundLogger"
    _path: "Path"

    def __init__(
        self,
        path: "Path",
        *,
        logger: "FilteringBoundLogger | None" = None,
    ) -> None:
        """Initialize the store and load the document.

        Args:
            path: Path to the registry JSON file.
            logger: Logger to use. Defaults to a structlog logger named
                ``projax.registry``.

        Raises:
            RegistryIOError: If the file exists but cannot be read, or the
                initial write fails.
        """
        self._path = path
        self._logger = (
            logger
            if logger is not None
            else cast("FilteringBoundLogger", structlog.get_logger("projax.registry"))
        )
        self._document = Document()
        self._load()

    @property
    def path(self) -> "Path":
        """Path to the registry document."""
        return self._path

    @property
    def document(self) -> Document:
        """The current in-memory document."""
        return self._document

    def reload(self) -> None:
        """Discard in-memory state and read the document from disk again."""
        self._load()

    # -------------------------------------------------------------------------
    # Projects
    # -------------------------------------------------------------------------

    def add_project(self, name: str, path: str) -> Project:
        """Register a new project.

        Args:
            name: Display name.
            path: Absolute path to the project root.

        Returns:
            The new project.

        Raises:
            DuplicatePathError: If a project with the same path exists.
        """
        existing = self.get_project_by_path(path)
        if existing is not None:
            msg = f"Project with path already exists: {path}"
            raise DuplicatePathError(msg, path=path, existing_id=existing.id)

        project = Project(
            id=_next_id(self._document.projects),
            name=name,
            path=path,
            created_at=_now(),
        )
        self._document.projects.append(project)
        self._save()
        return project

    def get_project(self, project_id: int) -> Project | None:
        return next((p for p in self._document.projects if p.id == project_id), None)

    def get_project_by_path(self, path: str) -> Project | None:
        return next((p for p in self._document.projects if p.path == path), None)

    def get_all_projects(self) -> list[Project]:
        return sorted(self._document.projects, key=lambda p: p.id)

    def update_project(
        self,
        project_id: int,
        *,
        name: str | Unset = UNSET,
        path: str | Unset = UNSET,
        description: str | None | Unset = UNSET,
        framework: str | None | Unset = UNSET,
        tags: "Sequence[str] | Unset" = UNSET,
        last_scanned: int | None | Unset = UNSET,
    ) -> Project:
        """Overwrite the supplied fields of a project.

        Only keyword arguments that are passed are applied. Passing None
        clears an optional field; omitting it leaves the field unchanged.

        Args:
            project_id: ID of the project to update.
            name: New display name.
            path: New project path.
            description: New description, or None to clear it.
            framework: New framework, or None to clear it.
            tags: Replacement tag list.
            last_scanned: New last scan time, or None to clear it.

        Returns:
            The updated project.

        Raises:
            ProjectNotFoundError: If no project has the ID.
            DuplicatePathError: If the new path belongs to another project.
        """
        index = self._project_index(project_id)

        if not isinstance(path, Unset):
            owner = self.get_project_by_path(path)
            if owner is not None and owner.id != project_id:
                msg = f"Project with path already exists: {path}"
                raise DuplicatePathError(msg, path=path, existing_id=owner.id)

        changes: dict[str, object] = {
            "name": name,
            "path": path,
            "description": description,
            "framework": framework,
            "tags": tags if isinstance(tags, Unset) else tuple(tags),
            "last_scanned": last_scanned,
        }
        project = replace(
            self._document.projects[index],
            **{key: value for key, value in changes.items() if value is not UNSET},
        )
        self._document.projects[index] = project
        self._save()
        return project

    def rename_project(self, project_id: int, name: str) -> Project:
        """Change a project's name.

        Raises:
            ProjectNotFoundError: If no project has the ID.
        """
        return self.update_project(project_id, name=name)

    def update_project_last_scanned(self, project_id: int) -> None:
        """Set a project's last scan time to now. No-op if absent."""
        if self.get_project(project_id) is None:
            return
        _ = self.update_project(project_id, last_scanned=_now())

    def remove_project(self, project_id: int) -> None:
        """Remove a project and its tests, jobs, ports and results.

        Everything is removed in a single rewrite. No-op if absent.
        """
        doc = self._document
        if all(p.id != project_id for p in doc.projects):
            return

        doc.projects = [p for p in doc.projects if p.id != project_id]
        doc.tests = [t for t in doc.tests if t.project_id != project_id]
        doc.jenkins_jobs = [j for j in doc.jenkins_jobs if j.project_id != project_id]
        doc.project_ports = [
            p for p in doc.project_ports if p.project_id != project_id
        ]
        doc.test_results = [
            r for r in doc.test_results if r.project_id != project_id
        ]
        self._save()

    def get_all_tags(self) -> list[str]:
        return sorted({tag for p in self._document.projects for tag in p.tags})

    # -------------------------------------------------------------------------
    # Tests
    # -------------------------------------------------------------------------

    def add_test(
        self, project_id: int, file_path: str, framework: str | None = None
    ) -> Test:
        """Insert or update the test at ``(project_id, file_path)``.

        An existing test keeps its ID and has its framework overwritten.
        """
        tests = self._document.tests
        for index, existing in enumerate(tests):
            if existing.project_id == project_id and existing.file_path == file_path:
                test = replace(existing, framework=framework)
                tests[index] = test
                self._save()
                return test

        test = Test(
            id=_next_id(tests),
            project_id=project_id,
            file_path=file_path,
            framework=framework,
            created_at=_now(),
        )
        tests.append(test)
        self._save()
        return test

    def get_test(self, test_id: int) -> Test | None:
        return next((t for t in self._document.tests if t.id == test_id), None)

    def get_tests_by_project(self, project_id: int) -> list[Test]:
        return sorted(
            (t for t in self._document.tests if t.project_id == project_id),
            key=lambda t: t.file_path,
        )

    def remove_tests_by_project(self, project_id: int) -> None:
        self._document.tests = [
            t for t in self._document.tests if t.project_id != project_id
        ]
        self._save()

    # -------------------------------------------------------------------------
    # Test Results
    # -------------------------------------------------------------------------

    def add_test_result(  # noqa: PLR0913
        self,
        project_id: int,
        script_name: str,
        passed: int,
        failed: int,
        skipped: int = 0,
        *,
        total: int | None = None,
        duration: float | None = None,
        coverage: float | None = None,
        framework: str | None = None,
        raw_output: str | None = None,
    ) -> TestResult:
        """Append a test run result.

        Args:
            project_id: ID of the project the run belongs to.
            script_name: Name of the script that ran the tests.
            passed: Number of passing tests.
            failed: Number of failing tests.
            skipped: Number of skipped tests.
            total: Total test count. Defaults to the sum of the other counts.
            duration: Run time in milliseconds.
            coverage: Coverage percentage.
            framework: Test framework that produced the run.
            raw_output: Captured runner output.

        Returns:
            The new test result.
        """
        result = TestResult(
            id=_next_id(self._document.test_results),
            project_id=project_id,
            script_name=script_name,
            passed=passed,
            failed=failed,
            skipped=skipped,
            total=total if total is not None else passed + failed + skipped,
            timestamp=_now(),
            framework=framework,
            duration=duration,
            coverage=coverage,
            raw_output=raw_output,
        )
        self._document.test_results.append(result)
        self._save()
        return result

    def get_test_result(self, result_id: int) -> TestResult | None:
        return next(
            (r for r in self._document.test_results if r.id == result_id), None
        )

    def get_latest_test_result(self, project_id: int) -> TestResult | None:
        results = self.get_test_results_by_project(project_id, limit=1)
        return results[0] if results else None

    def get_test_results_by_project(
        self, project_id: int, limit: int = 10
    ) -> list[TestResult]:
        """Get a project's test results, newest first.

        Results recorded in the same second are ordered by descending ID.
        """
        results = sorted(
            (r for r in self._document.test_results if r.project_id == project_id),
            key=lambda r: (r.timestamp, r.id),
            reverse=True,
        )
        return results[: max(limit, 0)]

    def remove_test_results_by_project(self, project_id: int) -> None:
        self._document.test_results = [
            r for r in self._document.test_results if r.project_id != project_id
        ]
        self._save()

    # -------------------------------------------------------------------------
    # Jenkins Jobs
    # -------------------------------------------------------------------------

    def add_jenkins_job(
        self, project_id: int, job_name: str, job_url: str
    ) -> JenkinsJob:
        """Insert or update the job at ``(project_id, job_name)``.

        An existing job keeps its ID and has its URL overwritten.
        """
        jobs = self._document.jenkins_jobs
        for index, existing in enumerate(jobs):
            if existing.project_id == project_id and existing.job_name == job_name:
                job = replace(existing, job_url=job_url)
                jobs[index] = job
                self._save()
                return job

        job = JenkinsJob(
            id=_next_id(jobs),
            project_id=project_id,
            job_name=job_name,
            job_url=job_url,
            created_at=_now(),
        )
        jobs.append(job)
        self._save()
        return job

    def get_jenkins_job(self, job_id: int) -> JenkinsJob | None:
        return next((j for j in self._document.jenkins_jobs if j.id == job_id), None)

    def get_jenkins_jobs_by_project(self, project_id: int) -> list[JenkinsJob]:
        return sorted(
            (j for j in self._document.jenkins_jobs if j.project_id == project_id),
            key=lambda j: j.job_name,
        )

    # -------------------------------------------------------------------------
    # Ports
    # -------------------------------------------------------------------------

    def add_project_port(
        self,
        project_id: int,
        port: int,
        config_source: str,
        script_name: str | None = None,
    ) -> ProjectPort:
        """Insert or update the port at ``(project_id, port, script_name)``.

        A None script name is a slot of its own. An existing row keeps its ID
        and has its config source and detection time refreshed.
        """
        ports = self._document.project_ports
        now = _now()
        index = self._port_index(project_id, port, script_name)
        if index is not None:
            row = replace(ports[index], config_source=config_source, last_detected=now)
            ports[index] = row
            self._save()
            return row

        row = ProjectPort(
            id=_next_id(ports),
            project_id=project_id,
            port=port,
            script_name=script_name,
            config_source=config_source,
            last_detected=now,
            created_at=now,
        )
        ports.append(row)
        self._save()
        return row

    def get_project_port(self, port_id: int) -> ProjectPort | None:
        return next(
            (p for p in self._document.project_ports if p.id == port_id), None
        )

    def get_project_ports(self, project_id: int) -> list[ProjectPort]:
        return sorted(
            (p for p in self._document.project_ports if p.project_id == project_id),
            key=lambda p: p.port,
        )

    def get_project_ports_by_script(
        self, project_id: int, script_name: str
    ) -> list[ProjectPort]:
        ports = self.get_project_ports(project_id)
        return [p for p in ports if p.script_name == script_name]

    def update_project_port_last_detected(
        self, project_id: int, port: int, script_name: str | None = None
    ) -> None:
        """Refresh the detection time of a port row. No-op if absent."""
        index = self._port_index(project_id, port, script_name)
        if index is None:
            return
        ports = self._document.project_ports
        ports[index] = replace(ports[index], last_detected=_now())
        self._save()

    def remove_project_ports(self, project_id: int) -> None:
        self._document.project_ports = [
            p for p in self._document.project_ports if p.project_id != project_id
        ]
        self._save()

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    def get_setting(self, key: str) -> str | None:
        setting = next((s for s in self._document.settings if s.key == key), None)
        return setting.value if setting is not None else None

    def set_setting(self, key: str, value: object) -> None:
        """Set a setting, refreshing its update time.

        Non-string values are stored as their string form.
        """
        setting = Setting(
            key=key,
            value=value if isinstance(value, str) else str(value),
            updated_at=_now(),
        )
        settings = self._document.settings
        for index, existing in enumerate(settings):
            if existing.key == key:
                settings[index] = setting
                break
        else:
            settings.append(setting)
        self._save()

    def get_all_settings(self) -> dict[str, str]:
        return {s.key: s.value for s in self._document.settings}

    # -------------------------------------------------------------------------
    # Internal Methods
    # -------------------------------------------------------------------------

    def _project_index(self, project_id: int) -> int:
        for index, project in enumerate(self._document.projects):
            if project.id == project_id:
                return index
        msg = f"Project not found: {project_id}"
        raise ProjectNotFoundError(msg, project_id=project_id)

    def _port_index(
        self, project_id: int, port: int, script_name: str | None
    ) -> int | None:
        for index, row in enumerate(self._document.project_ports):
            if (
                row.project_id == project_id
                and row.port == port
                and row.script_name == script_name
            ):
                return index
        return None

    def _load(self) -> None:
        """Read, normalize and, if needed, rewrite the document.

        Raises:
            RegistryIOError: If the file cannot be read or written.
        """
        log = self._logger.bind(path=str(self._path))
        try:
            raw = read_json(self._path)
        except FileNotFoundError:
            self._document = Document()
            log.info("registry_created")
            self._save()
            return
        except RegistryParseError as e:
            self._document = Document()
            log.warning("registry_corrupt", error=str(e))
            self._save()
            return

        result = normalize(raw)
        self._document = result.document
        if result.changed:
            log.info(
                "registry_migrated",
                from_version=result.from_version,
                dropped_rows=result.dropped_rows,
            )
            self._save()

        log.debug("registry_loaded", projects=len(self._document.projects))

    def _save(self) -> None:
        """Rewrite the whole document.

        Raises:
            RegistryIOError: If the write fails.
        """
        try:
            write_json_atomic(self._path, self._document.to_dict())
        except RegistryIOError as e:
            self._logger.error(  # noqa: TRY400
                "registry_write_failed",
                path=str(self._path),
                error=str(e),
            )
            raise
