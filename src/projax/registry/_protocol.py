"""Registry store protocol for type-safe dependency injection.

This module defines a runtime-checkable Protocol that both
LocalRegistryStore and RemoteRegistryStore satisfy, so the scanner and the
CLI can work against either without knowing which one they hold.
"""

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from projax.registry._models import UNSET, Unset

if TYPE_CHECKING:
    from collections.abc import Sequence

    from projax.registry._models import (
        JenkinsJob,
        Project,
        ProjectPort,
        ScanResult,
        Test,
        TestResult,
    )


@runtime_checkable
class RegistryStore(Protocol):
    """Protocol for project registry operations.

    Example:
        >>> def tag_summary(store: RegistryStore) -> str:
        ...     return ", ".join(store.get_all_tags())
        >>> tag_summary(LocalRegistryStore(path))
        >>> tag_summary(RemoteRegistryStore())
    """

    # ----- Projects -----

    def add_project(self, name: str, path: str) -> "Project":
        """Register a new project.

        Raises:
            DuplicatePathError: If a project with the same path exists.
        """
        ...

    def get_project(self, project_id: int) -> "Project | None":
        """Get a project by ID, or None if absent."""
        ...

    def get_project_by_path(self, path: str) -> "Project | None":
        """Get a project by its path, or None if absent."""
        ...

    def get_all_projects(self) -> "list[Project]":
        """Get every project in ascending ID order."""
        ...

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
    ) -> "Project":
        """Overwrite the supplied fields of a project.

        Omitted fields are left unchanged; an explicit None clears a field.

        Raises:
            ProjectNotFoundError: If no project has the ID.
            DuplicatePathError: If the new path belongs to another project.
        """
        ...

    def rename_project(self, project_id: int, name: str) -> "Project":
        """Change a project's name."""
        ...

    def update_project_last_scanned(self, project_id: int) -> None:
        """Set a project's last scan time to now. No-op if absent."""
        ...

    def remove_project(self, project_id: int) -> None:
        """Remove a project and everything that belongs to it."""
        ...

    def get_all_tags(self) -> list[str]:
        """Get the sorted union of all project tags."""
        ...

    # ----- Tests -----

    def add_test(
        self, project_id: int, file_path: str, framework: str | None = None
    ) -> "Test":
        """Insert or update the test at ``(project_id, file_path)``."""
        ...

    def get_test(self, test_id: int) -> "Test | None":
        """Get a test by ID, or None if absent."""
        ...

    def get_tests_by_project(self, project_id: int) -> "list[Test]":
        """Get a project's tests sorted by file path."""
        ...

    def remove_tests_by_project(self, project_id: int) -> None:
        """Remove every test belonging to a project."""
        ...

    # ----- Test results -----

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
    ) -> "TestResult":
        """Append a test run result."""
        ...

    def get_test_result(self, result_id: int) -> "TestResult | None":
        """Get a test result by ID, or None if absent."""
        ...

    def get_latest_test_result(self, project_id: int) -> "TestResult | None":
        """Get a project's most recent test result."""
        ...

    def get_test_results_by_project(
        self, project_id: int, limit: int = 10
    ) -> "list[TestResult]":
        """Get a project's test results, newest first."""
        ...

    def remove_test_results_by_project(self, project_id: int) -> None:
        """Remove every test result belonging to a project."""
        ...

    # ----- Jenkins jobs -----

    def add_jenkins_job(
        self, project_id: int, job_name: str, job_url: str
    ) -> "JenkinsJob":
        """Insert or update the job at ``(project_id, job_name)``."""
        ...

    def get_jenkins_job(self, job_id: int) -> "JenkinsJob | None":
        """Get a Jenkins job by ID, or None if absent."""
        ...

    def get_jenkins_jobs_by_project(self, project_id: int) -> "list[JenkinsJob]":
        """Get a project's Jenkins jobs sorted by name."""
        ...

    # ----- Ports -----

    def add_project_port(
        self,
        project_id: int,
        port: int,
        config_source: str,
        script_name: str | None = None,
    ) -> "ProjectPort":
        """Insert or update the port at ``(project_id, port, script_name)``."""
        ...

    def get_project_port(self, port_id: int) -> "ProjectPort | None":
        """Get a port row by ID, or None if absent."""
        ...

    def get_project_ports(self, project_id: int) -> "list[ProjectPort]":
        """Get a project's ports sorted by port number."""
        ...

    def get_project_ports_by_script(
        self, project_id: int, script_name: str
    ) -> "list[ProjectPort]":
        """Get a project's ports for one script, sorted by port number."""
        ...

    def update_project_port_last_detected(
        self, project_id: int, port: int, script_name: str | None = None
    ) -> None:
        """Refresh the detection time of a port row. No-op if absent."""
        ...

    def remove_project_ports(self, project_id: int) -> None:
        """Remove every port row belonging to a project."""
        ...

    # ----- Settings -----

    def get_setting(self, key: str) -> str | None:
        """Get a setting value, or None if unset."""
        ...

    def set_setting(self, key: str, value: object) -> None:
        """Set a setting. Non-string values are stored as strings."""
        ...

    def get_all_settings(self) -> dict[str, str]:
        """Get every setting as a mapping."""
        ...


@runtime_checkable
class ScanService(Protocol):
    """Protocol for triggering scans, locally or through the API."""

    def scan_project(self, project_id: int) -> "ScanResult":
        """Scan one project for tests."""
        ...

    def scan_all_projects(self) -> "list[ScanResult]":
        """Scan every project, skipping the ones that fail."""
        ...
