import os
from collections.abc import Callable
from pathlib import Path

import pytest
from pathspec import PathSpec
from pathspec.patterns.gitwildmatch import GitWildMatchPattern
from structlog.testing import capture_logs

from projax.exceptions import ScanError
from projax.scanner import DEFAULT_IGNORE_DIRS, iter_project_files

TreeFactory = Callable[..., Path]


class TestIterProjectFiles:
    def test_yields_relative_posix_paths_in_name_order(
        self, tmp_path: Path, make_tree: TreeFactory
    ) -> None:
        root = make_tree(
            tmp_path / "app",
            {"b.js": "", "a.js": "", "src/z.js": "", "src/lib/y.js": ""},
        )

        assert list(iter_project_files(root)) == [
            "a.js",
            "b.js",
            "src/lib/y.js",
            "src/z.js",
        ]

    @pytest.mark.parametrize("name", sorted(DEFAULT_IGNORE_DIRS))
    def test_skips_default_ignore_dirs(
        self, tmp_path: Path, make_tree: TreeFactory, name: str
    ) -> None:
        root = make_tree(tmp_path / "app", {f"{name}/x.test.js": "", "a.js": ""})

        assert list(iter_project_files(root)) == ["a.js"]

    def test_skips_hidden_directories_but_not_hidden_files(
        self, tmp_path: Path, make_tree: TreeFactory
    ) -> None:
        root = make_tree(
            tmp_path / "app", {".cache/x.js": "", ".env": "", "a.js": ""}
        )

        assert list(iter_project_files(root)) == [".env", "a.js"]

    def test_skips_extra_ignore_dirs(
        self, tmp_path: Path, make_tree: TreeFactory
    ) -> None:
        root = make_tree(tmp_path / "app", {"vendor/x.js": "", "a.js": ""})

        files = list(iter_project_files(root, ignore_dirs=["vendor"]))

        assert files == ["a.js"]

    def test_respects_max_depth(
        self, tmp_path: Path, make_tree: TreeFactory
    ) -> None:
        root = make_tree(
            tmp_path / "app",
            {"top.js": "", "one/a.js": "", "one/two/b.js": ""},
        )

        assert list(iter_project_files(root, max_depth=0)) == ["top.js"]
        assert list(iter_project_files(root, max_depth=1)) == ["one/a.js", "top.js"]

    def test_applies_ignore_spec_to_files_and_dirs(
        self, tmp_path: Path, make_tree: TreeFactory
    ) -> None:
        root = make_tree(
            tmp_path / "app",
            {"fixtures/data.js": "", "src/a.js": "", "src/gen.js": ""},
        )
        spec = PathSpec.from_lines(GitWildMatchPattern, ["fixtures/", "gen.js"])

        assert list(iter_project_files(root, ignore_spec=spec)) == ["src/a.js"]

    def test_symlinked_dirs_are_not_followed_by_default(
        self, tmp_path: Path, make_tree: TreeFactory
    ) -> None:
        root = make_tree(tmp_path / "app", {"a.js": ""})
        other = make_tree(tmp_path / "other", {"b.js": ""})
        (root / "linked").symlink_to(other, target_is_directory=True)

        assert list(iter_project_files(root)) == ["a.js"]

    def test_followed_symlinks_are_walked(
        self, tmp_path: Path, make_tree: TreeFactory
    ) -> None:
        root = make_tree(tmp_path / "app", {"a.js": ""})
        other = make_tree(tmp_path / "other", {"b.js": ""})
        (root / "linked").symlink_to(other, target_is_directory=True)

        files = list(iter_project_files(root, follow_symlinks=True))

        assert files == ["a.js", "linked/b.js"]

    def test_symlink_cycle_terminates(
        self, tmp_path: Path, make_tree: TreeFactory
    ) -> None:
        root = make_tree(tmp_path / "app", {"src/a.js": ""})
        (root / "src" / "loop").symlink_to(root, target_is_directory=True)

        with capture_logs() as logs:
            files = list(iter_project_files(root, follow_symlinks=True))

        assert files == ["src/a.js"]
        assert any(e["event"] == "symlink_cycle_skipped" for e in logs)

    def test_missing_root_raises_scan_error(self, tmp_path: Path) -> None:
        with pytest.raises(ScanError) as exc_info:
            _ = list(iter_project_files(tmp_path / "missing"))

        assert exc_info.value.path == str(tmp_path / "missing")

    @pytest.mark.skipif(
        not hasattr(os, "geteuid") or os.geteuid() == 0,
        reason="permissions are not enforced for root",
    )
    def test_unreadable_subdirectory_is_skipped(
        self, tmp_path: Path, make_tree: TreeFactory
    ) -> None:
        root = make_tree(tmp_path / "app", {"a.js": "", "locked/b.js": ""})
        locked = root / "locked"
        locked.chmod(0)
        try:
            with capture_logs() as logs:
                files = list(iter_project_files(root))
        finally:
            locked.chmod(0o755)

        assert files == ["a.js"]
        assert any(e["event"] == "directory_unreadable" for e in logs)
