# pyright: reportAny=false, reportUnknownArgumentType=false
from pathlib import Path

import pytest
from pyfakefs.fake_filesystem import FakeFilesystem

from projax.config import (
    DEFAULT_CONFIG,
    deep_merge,
    parse_env_vars,
    parse_string_value,
    read_toml_file,
    set_nested_key,
)
from projax.exceptions import ConfigLoadError


class TestReadTomlFile:
    def test_parses_valid_toml(self, fs: FakeFilesystem) -> None:
        content = """
[scan]
max_depth = 5
ignore_dirs = ["vendor"]
"""
        path = Path("/test/config.toml")
        _ = fs.create_file(path, contents=content)

        assert read_toml_file(path) == {
            "scan": {"max_depth": 5, "ignore_dirs": ["vendor"]}
        }

    def test_raises_file_not_found_for_missing_file(self, fs: FakeFilesystem) -> None:
        with pytest.raises(FileNotFoundError):
            _ = read_toml_file(Path("/test/missing.toml"))

    def test_config_load_error_includes_location(self, fs: FakeFilesystem) -> None:
        content = """[registry]
file_name = "data.json"

[broken section
"""
        path = Path("/test/syntax_error.toml")
        _ = fs.create_file(path, contents=content)

        with pytest.raises(ConfigLoadError) as exc_info:
            _ = read_toml_file(path)

        error = exc_info.value
        assert error.path == path
        assert error.line == 4
        assert error.column is not None
        assert error.__cause__ is not None

    def test_error_at_end_of_document_has_no_position(
        self, fs: FakeFilesystem
    ) -> None:
        path = Path("/test/truncated.toml")
        _ = fs.create_file(path, contents="key = ")

        with pytest.raises(ConfigLoadError) as exc_info:
            _ = read_toml_file(path)

        assert (exc_info.value.line, exc_info.value.column) == (None, None)


class TestDeepMerge:
    def test_nested_tables_merge_key_by_key(self) -> None:
        base = {"scan": {"max_depth": 20, "follow_symlinks": False}}
        override = {"scan": {"max_depth": 3}}

        assert deep_merge(base, override) == {
            "scan": {"max_depth": 3, "follow_symlinks": False}
        }

    def test_lists_are_replaced_not_concatenated(self) -> None:
        base = {"scan": {"ignore_dirs": ["a", "b"]}}
        override = {"scan": {"ignore_dirs": ["c"]}}

        assert deep_merge(base, override)["scan"]["ignore_dirs"] == ["c"]

    def test_scalar_replaces_table(self) -> None:
        assert deep_merge({"api": {"timeout": 1.0}}, {"api": "off"}) == {"api": "off"}

    def test_inputs_are_not_modified(self) -> None:
        base = {"scan": {"ignore_dirs": ["a"]}}
        override = {"scan": {"max_depth": 1}}

        merged = deep_merge(base, override)
        merged["scan"]["ignore_dirs"].append("b")

        assert base == {"scan": {"ignore_dirs": ["a"]}}
        assert override == {"scan": {"max_depth": 1}}

    def test_defaults_are_copied(self) -> None:
        merged = deep_merge(DEFAULT_CONFIG, {})
        merged["scan"]["ignore_dirs"].append("vendor")

        assert DEFAULT_CONFIG["scan"]["ignore_dirs"] == []


class TestParseStringValue:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("true", True),
            ("FALSE", False),
            ("42", 42),
            ("-7", -7),
            ("2.5", 2.5),
            ('["dist", "tmp"]', ["dist", "tmp"]),
            ('{"a": 1}', {"a": 1}),
            ("[not json", "[not json"),
            ("1e3", "1e3"),
            ("hello", "hello"),
            ("", ""),
        ],
    )
    def test_type_inference(self, raw: str, expected: object) -> None:
        assert parse_string_value(raw) == expected


class TestSetNestedKey:
    def test_creates_intermediate_tables(self) -> None:
        d: dict[str, object] = {}

        set_nested_key(d, "scan.ignore.extra", 1)

        assert d == {"scan": {"ignore": {"extra": 1}}}

    def test_replaces_non_table_in_the_way(self) -> None:
        d: dict[str, object] = {"scan": 5}

        set_nested_key(d, "scan.max_depth", 2)

        assert d == {"scan": {"max_depth": 2}}

    def test_keeps_sibling_keys(self) -> None:
        d: dict[str, object] = {"logging": {"format": "json"}}

        set_nested_key(d, "logging.level", "debug")

        assert d == {"logging": {"format": "json", "level": "debug"}}


class TestParseEnvVars:
    def test_double_underscore_nests(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PROJAX_SCAN__MAX_DEPTH", "5")
        monkeypatch.setenv("PROJAX_LOGGING__LEVEL", "debug")

        assert parse_env_vars() == {
            "scan": {"max_depth": 5},
            "logging": {"level": "debug"},
        }

    def test_reserved_variables_are_skipped(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PROJAX_DEBUG", "1")
        monkeypatch.setenv("PROJAX_LOG_LEVEL", "debug")
        monkeypatch.setenv("PROJAX_STRICT_CONFIG", "1")

        assert parse_env_vars() == {}

    def test_other_prefixes_are_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OTHER_SCAN__MAX_DEPTH", "5")
        monkeypatch.setenv("PROJAXSCAN", "x")

        assert parse_env_vars() == {}

    def test_custom_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PJXTEST_API__BASE_URL", "http://localhost:9/api")

        assert parse_env_vars("PJXTEST_") == {
            "api": {"base_url": "http://localhost:9/api"}
        }
