# pyright: reportAny=false
from typing import Any

import pytest

from projax.registry import (
    SCHEMA_VERSION,
    Document,
    Project,
    Setting,
    normalize,
)


def current_document(**collections: list[dict[str, Any]]) -> dict[str, Any]:
    data: dict[str, Any] = {
        "schema_version": SCHEMA_VERSION,
        "projects": [],
        "tests": [],
        "jenkins_jobs": [],
        "project_ports": [],
        "test_results": [],
        "settings": [],
    }
    data.update(collections)
    return data


def project_row(**overrides: Any) -> dict[str, Any]:
    row: dict[str, Any] = {
        "id": 1,
        "name": "web",
        "path": "/work/web",
        "created_at": 1_700_000_000,
        "description": None,
        "framework": None,
        "tags": [],
        "last_scanned": None,
    }
    row.update(overrides)
    return row


class TestNormalizeCurrentDocuments:
    def test_current_document_is_unchanged(self) -> None:
        result = normalize(current_document(projects=[project_row()]))

        assert result.changed is False
        assert result.from_version == SCHEMA_VERSION
        assert result.dropped_rows == 0
        assert result.document.projects == [
            Project(
                id=1, name="web", path="/work/web", created_at=1_700_000_000
            )
        ]

    def test_round_trip_through_to_dict_is_stable(self) -> None:
        data = current_document(projects=[project_row(tags=["a", "b"])])

        first = normalize(data)
        second = normalize(first.document.to_dict())

        assert second.changed is False
        assert second.document == first.document

    def test_unknown_top_level_keys_are_preserved(self) -> None:
        data = current_document()
        data["dashboard_layout"] = {"columns": 3}

        result = normalize(data)

        assert result.changed is False
        assert result.document.extra == {"dashboard_layout": {"columns": 3}}
        assert result.document.to_dict()["dashboard_layout"] == {"columns": 3}


class TestNormalizeMigrations:
    @pytest.mark.parametrize("raw", [None, [], "text", 42])
    def test_non_object_becomes_empty_document(self, raw: object) -> None:
        result = normalize(raw)

        assert result.changed is True
        assert result.document == Document()

    def test_missing_schema_version_is_version_one(self) -> None:
        data = current_document()
        del data["schema_version"]

        result = normalize(data)

        assert result.from_version == 1
        assert result.changed is True

    def test_missing_collections_become_empty(self) -> None:
        result = normalize({"schema_version": SCHEMA_VERSION})

        assert result.changed is True
        assert result.document == Document()

    def test_project_gains_missing_fields(self) -> None:
        legacy = {"id": 3, "name": "api", "path": "/work/api", "created_at": 10}

        result = normalize(current_document(projects=[legacy]))

        assert result.changed is True
        project = result.document.projects[0]
        assert project.framework is None
        assert project.description is None
        assert project.tags == ()

    def test_project_without_name_takes_path_basename(self) -> None:
        row = project_row(name=None, path="/work/billing")

        result = normalize(current_document(projects=[row]))

        assert result.document.projects[0].name == "billing"
        assert result.changed is True

    def test_non_string_tags_are_coerced(self) -> None:
        row = project_row(tags=["ui", 3, None])

        result = normalize(current_document(projects=[row]))

        assert result.document.projects[0].tags == ("ui", "3")
        assert result.changed is True

    def test_settings_object_shape_is_converted(self) -> None:
        data = current_document()
        data["settings"] = {"theme": "dark", "refresh": 30}

        result = normalize(data)

        assert result.changed is True
        assert [(s.key, s.value) for s in result.document.settings] == [
            ("theme", "dark"),
            ("refresh", "30"),
        ]
        assert all(isinstance(s, Setting) for s in result.document.settings)

    def test_port_without_last_detected_uses_created_at(self) -> None:
        port = {
            "id": 1,
            "project_id": 1,
            "port": 3000,
            "config_source": "package.json",
            "created_at": 50,
        }

        result = normalize(current_document(project_ports=[port]))

        assert result.document.project_ports[0].last_detected == 50
        assert result.document.project_ports[0].script_name is None

    def test_test_result_total_defaults_to_sum(self) -> None:
        row = {
            "id": 1,
            "project_id": 1,
            "script_name": "test",
            "passed": 4,
            "failed": 1,
            "skipped": 2,
            "timestamp": 100,
        }

        result = normalize(current_document(test_results=[row]))

        assert result.document.test_results[0].total == 7


class TestNormalizeDroppedRows:
    def test_rows_without_identity_are_dropped(self) -> None:
        rows = [
            project_row(),
            {"name": "no id", "path": "/x"},
            project_row(id=2, path=""),
        ]

        result = normalize(current_document(projects=rows))

        assert [p.id for p in result.document.projects] == [1]
        assert result.dropped_rows == 2
        assert result.changed is True

    def test_non_mapping_rows_are_dropped(self) -> None:
        result = normalize(current_document(tests=["tests/a.test.js", 5]))

        assert result.document.tests == []
        assert result.dropped_rows == 2

    def test_rows_with_unusable_ids_are_dropped(self) -> None:
        rows = [project_row(), project_row(id="two", path="/work/other")]

        result = normalize(current_document(projects=rows))

        assert [p.id for p in result.document.projects] == [1]
        assert result.dropped_rows == 1

    def test_duplicate_ids_keep_first_row(self) -> None:
        rows = [project_row(name="first"), project_row(name="second", path="/b")]

        result = normalize(current_document(projects=rows))

        assert [p.name for p in result.document.projects] == ["first"]
        assert result.dropped_rows == 1

    def test_duplicate_setting_keys_keep_first_row(self) -> None:
        settings = [
            {"key": "theme", "value": "dark", "updated_at": 1},
            {"key": "theme", "value": "light", "updated_at": 2},
        ]

        result = normalize(current_document(settings=settings))

        assert [s.value for s in result.document.settings] == ["dark"]


class TestNormalizeLenientFields:
    def test_bad_optional_fields_keep_the_row(self) -> None:
        rows = [
            project_row(last_scanned=1_700_000_000.5),
            project_row(id=2, path="/work/api", description=42, framework=["x"]),
        ]
        tests = [
            {"id": 1, "project_id": 1, "file_path": "a.test.js", "created_at": 1},
        ]

        result = normalize(current_document(projects=rows, tests=tests))

        web, api = result.document.projects
        assert web.last_scanned == 1_700_000_000
        assert (api.description, api.framework) == (None, None)
        assert result.dropped_rows == 0
        assert result.changed is True
        assert [t.project_id for t in result.document.tests] == [1]

    def test_numeric_strings_are_coerced(self) -> None:
        port = {
            "id": "3",
            "project_id": 1,
            "port": "5173",
            "config_source": "package.json",
            "last_detected": 5,
            "created_at": 5,
        }

        result = normalize(current_document(project_ports=[port]))

        assert [(p.id, p.port) for p in result.document.project_ports] == [
            (3, 5173)
        ]
        assert result.changed is True

    def test_bad_result_metrics_decode_as_none(self) -> None:
        row = {
            "id": 1,
            "project_id": 1,
            "script_name": "test",
            "passed": 2,
            "failed": 0,
            "skipped": 0,
            "total": 2,
            "duration": "fast",
            "coverage": True,
            "timestamp": 10,
        }

        result = normalize(current_document(test_results=[row]))

        (decoded,) = result.document.test_results
        assert (decoded.duration, decoded.coverage) == (None, None)
        assert result.dropped_rows == 0
