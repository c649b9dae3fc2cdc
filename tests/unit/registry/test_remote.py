# pyright: reportAny=false, reportUnknownVariableType=false
import re
from collections.abc import Iterator
from pathlib import Path

import httpx
import orjson
import pytest
from pytest_mock import MockerFixture

from projax.exceptions import (
    DuplicatePathError,
    ProjectNotFoundError,
    RemoteRegistryError,
)
from projax.registry import (
    DEFAULT_API_PORT,
    LocalRegistryStore,
    RemoteRegistryStore,
    read_api_port,
    record_to_dict,
    write_api_port,
)

_PROJECT_URL = re.compile(r"^/api/projects/(\d+)$")
_SCAN_URL = re.compile(r"^/api/projects/(\d+)/scan$")


class FakeApi:
    """A minimal registry API backed by a LocalRegistryStore."""

    def __init__(self, store: LocalRegistryStore) -> None:
        self.store = store
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:  # noqa: PLR0911
        self.requests.append(request)
        path = request.url.path
        method = request.method
        body = orjson.loads(request.content) if request.content else None

        if path == "/api/projects" and method == "GET":
            return httpx.Response(
                200, json=[record_to_dict(p) for p in self.store.get_all_projects()]
            )
        if path == "/api/projects" and method == "POST":
            if self.store.get_project_by_path(body["path"]) is not None:
                return httpx.Response(409, json={"detail": "duplicate"})
            project = self.store.add_project(body["name"], body["path"])
            return httpx.Response(201, json=record_to_dict(project))
        if path == "/api/projects/tags":
            return httpx.Response(200, json=self.store.get_all_tags())
        if path == "/api/settings":
            if method == "PUT":
                for key, value in body.items():
                    if isinstance(value, str):
                        self.store.set_setting(key, value)
            return httpx.Response(200, json=self.store.get_all_settings())
        if match := _SCAN_URL.match(path):
            return self._scan(int(match.group(1)))
        if match := _PROJECT_URL.match(path):
            return self._project(int(match.group(1)), method, body)
        return httpx.Response(500, json={"detail": "unexpected"})

    def _scan(self, project_id: int) -> httpx.Response:
        project = self.store.get_project(project_id)
        if project is None:
            return httpx.Response(404, json={"detail": "not found"})
        tests = self.store.get_tests_by_project(project_id)
        return httpx.Response(
            200,
            json={
                "project": record_to_dict(project),
                "testsFound": len(tests),
                "tests": [record_to_dict(t) for t in tests],
            },
        )

    def _project(
        self, project_id: int, method: str, body: dict[str, object] | None
    ) -> httpx.Response:
        project = self.store.get_project(project_id)
        if project is None:
            return httpx.Response(404, json={"detail": "not found"})
        if method == "DELETE":
            self.store.remove_project(project_id)
            return httpx.Response(204)
        if method == "PUT" and body is not None:
            path = body.get("path")
            owner = self.store.get_project_by_path(path) if path else None
            if owner is not None and owner.id != project_id:
                return httpx.Response(409, json={"detail": "duplicate"})
            project = self.store.update_project(project_id, **body)  # pyright: ignore[reportArgumentType]
        return httpx.Response(200, json=record_to_dict(project))


@pytest.fixture
def api(tmp_path: Path) -> FakeApi:
    return FakeApi(LocalRegistryStore(tmp_path / "server" / "data.json"))


@pytest.fixture
def remote(api: FakeApi) -> Iterator[RemoteRegistryStore]:
    client = httpx.Client(
        base_url="http://testserver/api", transport=httpx.MockTransport(api)
    )
    with client, RemoteRegistryStore(client=client) as store:
        yield store


class TestApiPortFile:
    def test_missing_file_uses_default_port(self, tmp_path: Path) -> None:
        assert read_api_port(tmp_path) == DEFAULT_API_PORT

    def test_round_trip(self, tmp_path: Path) -> None:
        path = write_api_port(4321, tmp_path)

        assert path == tmp_path / "api-port.txt"
        assert read_api_port(tmp_path) == 4321

    @pytest.mark.parametrize("content", ["not a port", "0", "70000", ""])
    def test_invalid_content_uses_default_port(
        self, tmp_path: Path, content: str
    ) -> None:
        _ = (tmp_path / "api-port.txt").write_text(content)

        assert read_api_port(tmp_path) == DEFAULT_API_PORT

    def test_write_rejects_out_of_range_port(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="out of range"):
            _ = write_api_port(0, tmp_path)

    def test_store_reads_port_file_for_base_url(self, tmp_path: Path) -> None:
        _ = write_api_port(4321, tmp_path)

        with RemoteRegistryStore(data_dir=tmp_path) as store:
            assert store.base_url.startswith("http://localhost:4321/api")


class TestRemoteProjects:
    def test_add_and_get(self, remote: RemoteRegistryStore) -> None:
        project = remote.add_project("web", "/work/web")

        assert project.id == 1
        assert project.tags == ()
        assert remote.get_project(project.id) == project

    def test_get_missing_returns_none(self, remote: RemoteRegistryStore) -> None:
        assert remote.get_project(99) is None

    def test_conflict_raises_duplicate_path(
        self, remote: RemoteRegistryStore
    ) -> None:
        _ = remote.add_project("web", "/work/web")

        with pytest.raises(DuplicatePathError) as exc_info:
            _ = remote.add_project("again", "/work/web")

        assert exc_info.value.path == "/work/web"

    def test_get_by_path_filters_all_projects(
        self, remote: RemoteRegistryStore
    ) -> None:
        _ = remote.add_project("a", "/a")
        b = remote.add_project("b", "/b")

        assert remote.get_project_by_path("/b") == b
        assert remote.get_project_by_path("/c") is None

    def test_update_sends_only_given_fields(
        self, remote: RemoteRegistryStore, api: FakeApi
    ) -> None:
        project = remote.add_project("web", "/work/web")

        updated = remote.update_project(project.id, description=None, tags=["x"])

        assert updated.tags == ("x",)
        assert orjson.loads(api.requests[-1].content) == {
            "description": None,
            "tags": ["x"],
        }

    def test_update_missing_project_raises_not_found(
        self, remote: RemoteRegistryStore
    ) -> None:
        with pytest.raises(ProjectNotFoundError) as exc_info:
            _ = remote.update_project(5, name="x")

        assert exc_info.value.project_id == 5

    def test_update_to_taken_path_raises_duplicate(
        self, remote: RemoteRegistryStore
    ) -> None:
        _ = remote.add_project("a", "/a")
        b = remote.add_project("b", "/b")

        with pytest.raises(DuplicatePathError):
            _ = remote.update_project(b.id, path="/a")

    def test_update_last_scanned_of_missing_project_is_noop(
        self, remote: RemoteRegistryStore
    ) -> None:
        remote.update_project_last_scanned(12)

    def test_remove_missing_project_is_noop(
        self, remote: RemoteRegistryStore
    ) -> None:
        remote.remove_project(12)

    def test_remove_project(self, remote: RemoteRegistryStore) -> None:
        project = remote.add_project("web", "/work/web")

        remote.remove_project(project.id)

        assert remote.get_all_projects() == []

    def test_tags(self, remote: RemoteRegistryStore) -> None:
        project = remote.add_project("web", "/work/web")
        _ = remote.update_project(project.id, tags=["b", "a"])

        assert remote.get_all_tags() == ["a", "b"]


class TestRemoteSettings:
    def test_set_stringifies_values(self, remote: RemoteRegistryStore) -> None:
        remote.set_setting("refresh", 30)

        assert remote.get_setting("refresh") == "30"
        assert remote.get_all_settings() == {"refresh": "30"}

    def test_set_sends_key_value_object(
        self, api: FakeApi, remote: RemoteRegistryStore
    ) -> None:
        remote.set_setting("theme", "dark")

        request = api.requests[-1]
        assert (request.method, request.url.path) == ("PUT", "/api/settings")
        assert orjson.loads(request.content) == {"theme": "dark"}


class TestRemoteScans:
    def test_scan_decodes_camel_case_count(
        self, api: FakeApi, remote: RemoteRegistryStore
    ) -> None:
        project = api.store.add_project("web", "/work/web")
        _ = api.store.add_test(project.id, "a.test.js", "jest")

        result = remote.scan_project(project.id)

        assert result.project == project
        assert result.tests_found == 1
        assert [t.file_path for t in result.tests] == ["a.test.js"]

    def test_scan_all_accepts_snake_case_count(self) -> None:
        project = {
            "id": 1,
            "name": "web",
            "path": "/work/web",
            "created_at": 1,
        }

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[{"project": project, "tests_found": 0}])

        client = httpx.Client(
            base_url="http://testserver/api", transport=httpx.MockTransport(handler)
        )
        with client, RemoteRegistryStore(client=client) as store:
            (result,) = store.scan_all_projects()

        assert (result.project.id, result.tests_found, result.tests) == (1, 0, ())


class TestRemoteErrors:
    def test_scan_of_missing_project_raises_not_found(
        self, remote: RemoteRegistryStore
    ) -> None:
        with pytest.raises(ProjectNotFoundError):
            _ = remote.scan_project(3)

    def test_server_error_raises_remote_error(
        self, remote: RemoteRegistryStore
    ) -> None:
        with pytest.raises(RemoteRegistryError) as exc_info:
            _ = remote.add_jenkins_job(1, "build", "http://ci")

        assert exc_info.value.status_code == 500

    def test_malformed_body_raises_remote_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"unexpected": True})

        client = httpx.Client(
            base_url="http://testserver/api", transport=httpx.MockTransport(handler)
        )
        with client, RemoteRegistryStore(client=client) as store:
            with pytest.raises(RemoteRegistryError, match="Unexpected response"):
                _ = store.get_all_projects()

    def test_connection_errors_are_retried_then_raised(
        self, mocker: MockerFixture
    ) -> None:
        _ = mocker.patch("tenacity.nap.time.sleep")
        attempts: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            msg = "connection refused"
            raise httpx.ConnectError(msg, request=request)

        client = httpx.Client(
            base_url="http://testserver/api", transport=httpx.MockTransport(handler)
        )
        with client, RemoteRegistryStore(client=client, retries=3) as store:
            with pytest.raises(RemoteRegistryError, match="failed"):
                _ = store.get_all_settings()

        assert len(attempts) == 3

    def test_close_leaves_caller_client_open(self) -> None:
        client = httpx.Client(base_url="http://testserver/api")

        RemoteRegistryStore(client=client).close()

        assert not client.is_closed
        client.close()
