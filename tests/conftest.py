"""Shared test fixtures for projax tests."""

import os
from collections.abc import Callable
from pathlib import Path

import orjson
import pytest
from rich.console import Console

TreeFactory = Callable[[Path, dict[str, str | dict[str, object]]], Path]


@pytest.fixture(autouse=True)
def isolated_user_config(
    tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
) -> Path:
    """Hide the real user config file and any PROJAX_* variables."""
    for key in list(os.environ):
        if key.startswith("PROJAX_"):
            monkeypatch.delenv(key)

    config_file = tmp_path_factory.mktemp("user_config") / "config.toml"
    monkeypatch.setattr(
        "projax.config._discovery.get_user_config_file",
        lambda: config_file,
    )
    return config_file


@pytest.fixture
def make_tree() -> TreeFactory:
    """Return a function that writes a file tree below a root directory.

    Values that are dicts are written as JSON; strings are written as-is.
    """

    def _make(root: Path, files: dict[str, str | dict[str, object]]) -> Path:
        root.mkdir(parents=True, exist_ok=True)
        for relative, content in files.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, dict):
                _ = path.write_bytes(orjson.dumps(content))
            else:
                _ = path.write_text(content)
        return root

    return _make


@pytest.fixture
def console() -> Console:
    return Console(
        width=70,
        force_terminal=True,
        highlight=False,
        color_system=None,
        legacy_windows=False,
    )
