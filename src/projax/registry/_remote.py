# pyright: reportAny=false, reportExplicitAny=false
"""HTTP-backed registry store.

RemoteRegistryStore speaks to a running projax API process instead of
touching the registry file. The API writes the port it listens on to
``<data_dir>/api-port.txt``; when no base URL is given the store reads
that file to find it.

Responses are decoded into the same frozen records the local store
returns, and error statuses are mapped to the same exceptions:

- 404 on a lookup returns None; 404 on an update raises
  ProjectNotFoundError.
- 409 raises DuplicatePathError.
- Anything else outside 2xx raises RemoteRegistryError.

Routes served by the dashboard API, relative to ``/api``:

- ``GET|POST /projects``, ``GET /projects/tags``
- ``GET|PUT|DELETE /projects/{id}``
- ``GET /projects/{id}/tests``, ``GET /projects/{id}/ports``
- ``POST /projects/{id}/scan`` returning ``{project, testsFound, tests}``
- ``POST /projects/scan/all``
- ``GET /settings``, and ``PUT /settings`` with a ``{key: value}`` object

The remaining operations assume routes the dashboard API does not serve
yet: ``POST|DELETE /projects/{id}/tests`` and ``/projects/{id}/ports``,
every route under ``/projects/{id}/test-results`` and
``/projects/{id}/jenkins-jobs``, ``PUT /projects/{id}/ports/last-detected``,
and the single-row lookups ``/tests/{id}``, ``/test-results/{id}``,
``/jenkins-jobs/{id}`` and ``/ports/{id}``. That API answers them with 404.
"""

from typing import TYPE_CHECKING, Any, ClassVar, Final, Self

import httpx
import pendulum
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
)
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from projax.exceptions import (
    DuplicatePathError,
    ProjectNotFoundError,
    RemoteRegistryError,
)
from projax.registry._models import (
    UNSET,
    JenkinsJob,
    Project,
    ProjectPort,
    ScanResult,
    Test,
    TestResult,
    Unset,
)
from projax.utils import get_api_port_file

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path
    from types import TracebackType

__all__ = [
    "DEFAULT_API_PORT",
    "RemoteRegistryStore",
    "read_api_port",
    "write_api_port",
]

DEFAULT_API_PORT: Final = 38124

_MAX_PORT: Final = 65535

_PROJECT: Final = TypeAdapter(Project)
_PROJECTS: Final = TypeAdapter(list[Project])
_TEST: Final = TypeAdapter(Test)
_TESTS: Final = TypeAdapter(list[Test])
_RESULT: Final = TypeAdapter(TestResult)
_RESULTS: Final = TypeAdapter(list[TestResult])
_JOB: Final = TypeAdapter(JenkinsJob)
_JOBS: Final = TypeAdapter(list[JenkinsJob])
_PORT: Final = TypeAdapter(ProjectPort)
_PORTS: Final = TypeAdapter(list[ProjectPort])
_TAGS: Final = TypeAdapter(list[str])
_SETTINGS: Final = TypeAdapter(dict[str, str])


class _ScanBody(BaseModel):
    """Scan response body. The API spells the count ``testsFound``."""

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="ignore")

    project: Project
    tests_found: int = Field(
        validation_alias=AliasChoices("tests_found", "testsFound")
    )
    tests: tuple[Test, ...] = ()

    def to_result(self) -> ScanResult:
        return ScanResult(
            project=self.project, tests_found=self.tests_found, tests=self.tests
        )


_SCAN: Final = TypeAdapter(_ScanBody)
_SCANS: Final = TypeAdapter(list[_ScanBody])


def read_api_port(data_dir: "Path | None" = None) -> int:
    """Read the API port from the port-discovery file.

    Args:
        data_dir: Registry data directory. Defaults to ``~/.projax``.

    Returns:
        The port from the file, or DEFAULT_API_PORT if the file is missing
        or does not hold a valid port.
    """
    try:
        text = get_api_port_file(data_dir).read_text(encoding="utf-8")
    except OSError:
        return DEFAULT_API_PORT

    try:
        port = int(text.strip())
    except ValueError:
        return DEFAULT_API_PORT
    return port if 0 < port <= _MAX_PORT else DEFAULT_API_PORT


def write_api_port(port: int, data_dir: "Path | None" = None) -> "Path":
    """Write the API port to the port-discovery file.

    Args:
        port: Port the API listens on.
        data_dir: Registry data directory. Defaults to ``~/.projax``.

    Returns:
        Path to the written file.

    Raises:
        ValueError: If the port is out of range.
    """
    if not 0 < port <= _MAX_PORT:
        msg = f"Port out of range: {port}"
        raise ValueError(msg)

    path = get_api_port_file(data_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    _ = path.write_text(str(port), encoding="utf-8")
    return path


class RemoteRegistryStore:
    """Registry store backed by the projax HTTP API.

    Implements the same operations as LocalRegistryStore, plus the scan
    operations, which run inside the API process.

    Connection errors and timeouts are retried with exponential backoff
    before being raised as RemoteRegistryError.
    """

    __slots__: Final = ("_client", "_owns_client", "_retrying")

    _client: httpx.Client
    _owns_client: bool
    _retrying: Retrying

    def __init__(
        self,
        base_url: str | None = None,
        *,
        client: httpx.Client | None = None,
        data_dir: "Path | None" = None,
        timeout: float = 10.0,
        retries: int = 3,
    ) -> None:
        """Initialize the store.

        Args:
            base_url: API base URL, e.g. ``http://localhost:38124/api``.
                Defaults to localhost on the port from the discovery file.
            client: Preconfigured client. Its base URL is used as-is.
            data_dir: Data directory holding the port-discovery file.
            timeout: Request timeout in seconds.
            retries: Attempts per request on connection errors.
        """
        if client is not None:
            self._client = client
            self._owns_client = False
        else:
            if base_url is None:
                base_url = f"http://localhost:{read_api_port(data_dir)}/api"
            self._client = httpx.Client(base_url=base_url, timeout=timeout)
            self._owns_client = True

        self._retrying = Retrying(
            retry=retry_if_exception_type(
                (httpx.ConnectError, httpx.TimeoutException)
            ),
            stop=stop_after_attempt(max(retries, 1)),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=2),
            reraise=True,
        )

    @property
    def base_url(self) -> str:
        return str(self._client.base_url)

    def close(self) -> None:
        """Close the underlying client if this store created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: "TracebackType | None",
    ) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Projects
    # -------------------------------------------------------------------------

    def add_project(self, name: str, path: str) -> Project:
        response = self._request(
            "POST", "/projects", json={"name": name, "path": path}, conflict_path=path
        )
        return self._decode(_PROJECT, response)

    def get_project(self, project_id: int) -> Project | None:
        response = self._get_optional(f"/projects/{project_id}")
        return self._decode(_PROJECT, response) if response is not None else None

    def get_project_by_path(self, path: str) -> Project | None:
        return next((p for p in self.get_all_projects() if p.path == path), None)

    def get_all_projects(self) -> list[Project]:
        projects = self._decode(_PROJECTS, self._request("GET", "/projects"))
        return sorted(projects, key=lambda p: p.id)

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
        """Send the supplied fields as a partial update.

        Raises:
            ProjectNotFoundError: If the API has no project with the ID.
            DuplicatePathError: If the new path belongs to another project.
        """
        fields: dict[str, Any] = {
            "name": name,
            "path": path,
            "description": description,
            "framework": framework,
            "tags": tags if isinstance(tags, Unset) else list(tags),
            "last_scanned": last_scanned,
        }
        body = {key: value for key, value in fields.items() if value is not UNSET}
        response = self._request(
            "PUT",
            f"/projects/{project_id}",
            json=body,
            project_id=project_id,
            conflict_path=path if isinstance(path, str) else None,
        )
        return self._decode(_PROJECT, response)

    def rename_project(self, project_id: int, name: str) -> Project:
        return self.update_project(project_id, name=name)

    def update_project_last_scanned(self, project_id: int) -> None:
        try:
            _ = self.update_project(
                project_id, last_scanned=pendulum.now("UTC").int_timestamp
            )
        except ProjectNotFoundError:
            return

    def remove_project(self, project_id: int) -> None:
        _ = self._delete_optional(f"/projects/{project_id}")

    def get_all_tags(self) -> list[str]:
        return sorted(self._decode(_TAGS, self._request("GET", "/projects/tags")))

    # -------------------------------------------------------------------------
    # Tests
    # -------------------------------------------------------------------------

    def add_test(
        self, project_id: int, file_path: str, framework: str | None = None
    ) -> Test:
        response = self._request(
            "POST",
            f"/projects/{project_id}/tests",
            json={"file_path": file_path, "framework": framework},
            project_id=project_id,
        )
        return self._decode(_TEST, response)

    def get_test(self, test_id: int) -> Test | None:
        response = self._get_optional(f"/tests/{test_id}")
        return self._decode(_TEST, response) if response is not None else None

    def get_tests_by_project(self, project_id: int) -> list[Test]:
        response = self._get_optional(f"/projects/{project_id}/tests")
        if response is None:
            return []
        return sorted(self._decode(_TESTS, response), key=lambda t: t.file_path)

    def remove_tests_by_project(self, project_id: int) -> None:
        _ = self._delete_optional(f"/projects/{project_id}/tests")

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
        body = {
            "script_name": script_name,
            "passed": passed,
            "failed": failed,
            "skipped": skipped,
            "total": total if total is not None else passed + failed + skipped,
            "duration": duration,
            "coverage": coverage,
            "framework": framework,
            "raw_output": raw_output,
        }
        response = self._request(
            "POST",
            f"/projects/{project_id}/test-results",
            json=body,
            project_id=project_id,
        )
        return self._decode(_RESULT, response)

    def get_test_result(self, result_id: int) -> TestResult | None:
        response = self._get_optional(f"/test-results/{result_id}")
        return self._decode(_RESULT, response) if response is not None else None

    def get_latest_test_result(self, project_id: int) -> TestResult | None:
        response = self._get_optional(f"/projects/{project_id}/test-results/latest")
        return self._decode(_RESULT, response) if response is not None else None

    def get_test_results_by_project(
        self, project_id: int, limit: int = 10
    ) -> list[TestResult]:
        response = self._get_optional(
            f"/projects/{project_id}/test-results", params={"limit": limit}
        )
        return self._decode(_RESULTS, response) if response is not None else []

    def remove_test_results_by_project(self, project_id: int) -> None:
        _ = self._delete_optional(f"/projects/{project_id}/test-results")

    # -------------------------------------------------------------------------
    # Jenkins Jobs
    # -------------------------------------------------------------------------

    def add_jenkins_job(
        self, project_id: int, job_name: str, job_url: str
    ) -> JenkinsJob:
        response = self._request(
            "POST",
            f"/projects/{project_id}/jenkins-jobs",
            json={"job_name": job_name, "job_url": job_url},
            project_id=project_id,
        )
        return self._decode(_JOB, response)

    def get_jenkins_job(self, job_id: int) -> JenkinsJob | None:
        response = self._get_optional(f"/jenkins-jobs/{job_id}")
        return self._decode(_JOB, response) if response is not None else None

    def get_jenkins_jobs_by_project(self, project_id: int) -> list[JenkinsJob]:
        response = self._get_optional(f"/projects/{project_id}/jenkins-jobs")
        if response is None:
            return []
        return sorted(self._decode(_JOBS, response), key=lambda j: j.job_name)

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
        response = self._request(
            "POST",
            f"/projects/{project_id}/ports",
            json={
                "port": port,
                "config_source": config_source,
                "script_name": script_name,
            },
            project_id=project_id,
        )
        return self._decode(_PORT, response)

    def get_project_port(self, port_id: int) -> ProjectPort | None:
        response = self._get_optional(f"/ports/{port_id}")
        return self._decode(_PORT, response) if response is not None else None

    def get_project_ports(self, project_id: int) -> list[ProjectPort]:
        response = self._get_optional(f"/projects/{project_id}/ports")
        if response is None:
            return []
        return sorted(self._decode(_PORTS, response), key=lambda p: p.port)

    def get_project_ports_by_script(
        self, project_id: int, script_name: str
    ) -> list[ProjectPort]:
        response = self._get_optional(
            f"/projects/{project_id}/ports", params={"script": script_name}
        )
        if response is None:
            return []
        return sorted(
            (p for p in self._decode(_PORTS, response) if p.script_name == script_name),
            key=lambda p: p.port,
        )

    def update_project_port_last_detected(
        self, project_id: int, port: int, script_name: str | None = None
    ) -> None:
        _ = self._request_optional(
            "PUT",
            f"/projects/{project_id}/ports/last-detected",
            json={"port": port, "script_name": script_name},
        )

    def remove_project_ports(self, project_id: int) -> None:
        _ = self._delete_optional(f"/projects/{project_id}/ports")

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    def get_setting(self, key: str) -> str | None:
        return self.get_all_settings().get(key)

    def set_setting(self, key: str, value: object) -> None:
        _ = self._request(
            "PUT",
            "/settings",
            json={key: value if isinstance(value, str) else str(value)},
        )

    def get_all_settings(self) -> dict[str, str]:
        return self._decode(_SETTINGS, self._request("GET", "/settings"))

    # -------------------------------------------------------------------------
    # Scans
    # -------------------------------------------------------------------------

    def scan_project(self, project_id: int) -> ScanResult:
        """Ask the API to scan a project.

        Raises:
            ProjectNotFoundError: If the API has no project with the ID.
        """
        response = self._request(
            "POST", f"/projects/{project_id}/scan", project_id=project_id
        )
        return self._decode(_SCAN, response).to_result()

    def scan_all_projects(self) -> list[ScanResult]:
        bodies = self._decode(_SCANS, self._request("POST", "/projects/scan/all"))
        return [body.to_result() for body in bodies]

    # -------------------------------------------------------------------------
    # Internal Methods
    # -------------------------------------------------------------------------

    def _get_optional(
        self, url: str, *, params: dict[str, Any] | None = None
    ) -> httpx.Response | None:
        return self._request_optional("GET", url, params=params)

    def _delete_optional(self, url: str) -> httpx.Response | None:
        return self._request_optional("DELETE", url)

    def _request_optional(
        self,
        method: str,
        url: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response | None:
        """Send a request, returning None when the API answers 404."""
        response = self._send(method, url, json=json, params=params)
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        return self._check(response)

    def _request(  # noqa: PLR0913
        self,
        method: str,
        url: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        project_id: int | None = None,
        conflict_path: str | None = None,
    ) -> httpx.Response:
        """Send a request and map error statuses to exceptions.

        Args:
            method: HTTP method.
            url: Path relative to the base URL.
            json: JSON request body.
            params: Query parameters.
            project_id: Project the request is about; a 404 raises
                ProjectNotFoundError carrying it.
            conflict_path: Path reported by DuplicatePathError on 409.

        Returns:
            The successful response.

        Raises:
            ProjectNotFoundError: On 404 when project_id is given.
            DuplicatePathError: On 409.
            RemoteRegistryError: On any other failure.
        """
        response = self._send(method, url, json=json, params=params)
        if response.status_code == httpx.codes.NOT_FOUND and project_id is not None:
            msg = f"Project not found: {project_id}"
            raise ProjectNotFoundError(msg, project_id=project_id)
        return self._check(response, conflict_path=conflict_path)

    def _send(
        self,
        method: str,
        url: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        request = self._client.build_request(method, url, json=json, params=params)
        try:
            for attempt in self._retrying:
                with attempt:
                    return self._client.send(request)
        except httpx.HTTPError as e:
            msg = f"Request to registry API failed: {e}"
            raise RemoteRegistryError(msg, url=str(request.url)) from e
        msg = f"No response from registry API for {method} {url}"
        raise RemoteRegistryError(msg, url=str(request.url))

    def _check(
        self, response: httpx.Response, *, conflict_path: str | None = None
    ) -> httpx.Response:
        status = response.status_code
        if status == httpx.codes.CONFLICT:
            path = conflict_path or ""
            msg = f"Project with path already exists: {path}"
            raise DuplicatePathError(msg, path=path)
        if response.is_error:
            request = response.request
            msg = f"Registry API returned {status} for {request.method} {request.url}"
            raise RemoteRegistryError(msg, status_code=status, url=str(request.url))
        return response

    def _decode[T](self, adapter: TypeAdapter[T], response: httpx.Response) -> T:
        try:
            return adapter.validate_json(response.content)
        except ValidationError as e:
            msg = f"Unexpected response body from registry API: {e}"
            raise RemoteRegistryError(
                msg, status_code=response.status_code, url=str(response.request.url)
            ) from e
