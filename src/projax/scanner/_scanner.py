"""Project scanning.

A scan reconciles a project's Test rows with the files on disk. It is a
full replace: every existing row is removed and one row is written per
test file found, so a deleted file never survives a re-scan. Test IDs
change across scans.
"""

from pathlib import Path
from typing import TYPE_CHECKING, Final, cast

import structlog

from projax.config import ScanConfig
from projax.exceptions import PathMissingError, ProjectNotFoundError, ScanError
from projax.registry import ScanResult
from projax.scanner._detector import (
    detect_project_framework,
    detect_test_framework,
    is_test_file,
)
from projax.scanner._ports import extract_ports
from projax.scanner._walker import iter_project_files
from projax.utils import IgnoreConfig, create_pathspec

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from projax.registry import Project, ProjectPort, RegistryStore

__all__ = ["Scanner"]


class Scanner:
    """Scans registered projects and writes what it finds to a store.

    Attributes:
        _store: Registry store read from and written to.
        _config: Walk settings.
        _logger: Logger for scan events.
    """

    __slots__: Final = ("_config", "_logger", "_store")

    _config: ScanConfig
    _logger: "FilteringBoundLogger"
    _store: "RegistryStore"

    def __init__(
        self,
        store: "RegistryStore",
        *,
        config: ScanConfig | None = None,
        logger: "FilteringBoundLogger | None" = None,
    ) -> None:
        """Initialize the scanner.

        Args:
            store: Registry store holding the projects to scan.
            config: Walk settings. Defaults to ScanConfig().
            logger: Logger to use. Defaults to a structlog logger named
                ``projax.scanner``.
        """
        self._store = store
        self._config = config if config is not None else ScanConfig()
        self._logger = (
            logger
            if logger is not None
            else cast("FilteringBoundLogger", structlog.get_logger("projax.scanner"))
        )

    def scan_project(self, project_id: int) -> ScanResult:
        """Scan one project and replace its Test rows.

        The test framework is detected first and recorded on every Test row.
        The project framework is stored on the project when detection finds
        one that differs from the stored value.

        Args:
            project_id: ID of the project to scan.

        Returns:
            The project after the scan, with the tests written.

        Raises:
            ProjectNotFoundError: If no project has this ID.
            PathMissingError: If the project path is not an existing
                directory.
            ScanError: If the project directory cannot be read.
        """
        project = self._require_project(project_id)
        root = Path(project.path)
        framework = detect_test_framework(root)
        project_framework = detect_project_framework(root)

        # Walk before touching the store so a failed walk changes nothing
        test_paths = [
            relative
            for relative in self._collect_files(root, project_id)
            if is_test_file(relative, framework)
        ]

        if project_framework is not None and project_framework != project.framework:
            _ = self._store.update_project(project_id, framework=project_framework)
        self._store.remove_tests_by_project(project_id)
        tests = tuple(
            self._store.add_test(project_id, relative, framework)
            for relative in test_paths
        )
        self._store.update_project_last_scanned(project_id)

        refreshed = self._store.get_project(project_id)
        if refreshed is None:
            msg = f"Project {project_id} disappeared during scan"
            raise ProjectNotFoundError(msg, project_id=project_id)

        self._logger.info(
            "scan_completed",
            project_id=project_id,
            framework=framework,
            tests_found=len(tests),
        )
        return ScanResult(project=refreshed, tests_found=len(tests), tests=tests)

    def scan_all_projects(self) -> list[ScanResult]:
        """Scan every project in ascending ID order.

        A project that fails to scan is logged and left out of the result;
        the remaining projects are still scanned.
        """
        results: list[ScanResult] = []
        for project in sorted(self._store.get_all_projects(), key=lambda p: p.id):
            try:
                results.append(self.scan_project(project.id))
            except (ScanError, OSError) as e:
                self._logger.warning(
                    "scan_failed",
                    project_id=project.id,
                    project=project.name,
                    error=str(e),
                )
        return results

    def scan_project_ports(self, project_id: int) -> "list[ProjectPort]":
        """Replace a project's ports with those found in its config files.

        Args:
            project_id: ID of the project to scan.

        Returns:
            The project's ports after the scan.

        Raises:
            ProjectNotFoundError: If no project has this ID.
            PathMissingError: If the project path is not an existing
                directory.
        """
        project = self._require_project(project_id)
        found = extract_ports(Path(project.path))

        self._store.remove_project_ports(project_id)
        for info in found:
            _ = self._store.add_project_port(
                project_id, info.port, info.source, info.script
            )

        self._logger.info("ports_scanned", project_id=project_id, ports=len(found))
        return self._store.get_project_ports(project_id)

    def _require_project(self, project_id: int) -> "Project":
        project = self._store.get_project(project_id)
        if project is None:
            msg = f"Project not found: {project_id}"
            raise ProjectNotFoundError(msg, project_id=project_id)
        if not Path(project.path).is_dir():
            msg = f"Project path does not exist: {project.path}"
            raise PathMissingError(msg, project_id=project_id, path=project.path)
        return project

    def _collect_files(self, root: Path, project_id: int) -> list[str]:
        config = self._config
        spec = create_pathspec(
            root,
            config=IgnoreConfig(
                project_gitignore=config.respect_gitignore,
                extra_patterns=config.ignore_patterns,
            ),
        )
        try:
            return list(
                iter_project_files(
                    root,
                    max_depth=config.max_depth,
                    ignore_dirs=config.ignore_dirs,
                    ignore_spec=spec,
                    follow_symlinks=config.follow_symlinks,
                    logger=self._logger.bind(project_id=project_id),
                )
            )
        except ScanError as e:
            e.project_id = project_id
            raise
