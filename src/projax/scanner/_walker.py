"""Bounded directory walk over a project tree.

The walk skips dependency caches, version control metadata, build output
and hidden directories without looking inside them. It is bounded by a
maximum depth and never enters the same real directory twice, so symlink
cycles terminate.
"""

import os
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Final, cast

import structlog

from projax.exceptions import ScanError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from pathspec import PathSpec
    from structlog.typing import FilteringBoundLogger

__all__ = ["DEFAULT_IGNORE_DIRS", "DEFAULT_MAX_DEPTH", "iter_project_files"]

DEFAULT_IGNORE_DIRS: Final = frozenset(
    {
        "node_modules",
        ".git",
        "dist",
        "build",
        ".next",
        ".nuxt",
        "coverage",
        "__pycache__",
        ".venv",
        "venv",
        "target",
        "out",
    }
)
"""Directory names that are never entered. Hidden directories are also skipped."""

DEFAULT_MAX_DEPTH: Final = 20


def _list_dir(path: Path) -> list[os.DirEntry[str]]:
    with os.scandir(path) as entries:
        return sorted(entries, key=lambda entry: entry.name)


class _Walk:
    """State for a single walk: settings plus the set of visited directories."""

    __slots__ = (
        "_deny",
        "_follow_symlinks",
        "_ignore_spec",
        "_logger",
        "_max_depth",
        "_visited",
    )

    def __init__(
        self,
        *,
        max_depth: int,
        deny: frozenset[str],
        ignore_spec: "PathSpec | None",
        follow_symlinks: bool,
        logger: "FilteringBoundLogger",
    ) -> None:
        self._max_depth = max_depth
        self._deny = deny
        self._ignore_spec = ignore_spec
        self._follow_symlinks = follow_symlinks
        self._logger = logger
        self._visited: set[Path] = set()

    def run(self, root: Path) -> "Iterator[str]":
        try:
            self._visited.add(root.resolve(strict=True))
            entries = _list_dir(root)
        except OSError as e:
            msg = f"Cannot read project directory: {root}: {e}"
            raise ScanError(msg, path=str(root)) from e
        yield from self._walk(entries, PurePosixPath(), depth=0)

    def _skip_dir(self, name: str, relative: PurePosixPath) -> bool:
        if name in self._deny or name.startswith("."):
            return True
        return self._ignore_spec is not None and self._ignore_spec.match_file(
            f"{relative}/"
        )

    def _walk(
        self,
        entries: "list[os.DirEntry[str]]",
        parent: PurePosixPath,
        *,
        depth: int,
    ) -> "Iterator[str]":
        for entry in entries:
            relative = parent / entry.name
            try:
                is_dir = entry.is_dir(follow_symlinks=self._follow_symlinks)
                is_file = not is_dir and entry.is_file(
                    follow_symlinks=self._follow_symlinks
                )
            except OSError:
                continue

            if is_file:
                if self._ignore_spec is None or not self._ignore_spec.match_file(
                    str(relative)
                ):
                    yield str(relative)
                continue

            if not is_dir or self._skip_dir(entry.name, relative):
                continue

            if depth + 1 > self._max_depth:
                self._logger.debug("max_depth_reached", directory=str(relative))
                continue

            real = Path(entry.path).resolve()
            if real in self._visited:
                self._logger.warning(
                    "symlink_cycle_skipped", directory=str(relative), target=str(real)
                )
                continue
            self._visited.add(real)

            try:
                children = _list_dir(Path(entry.path))
            except OSError as e:
                self._logger.warning(
                    "directory_unreadable", directory=str(relative), error=str(e)
                )
                continue
            yield from self._walk(children, relative, depth=depth + 1)


def iter_project_files(
    root: Path,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
    ignore_dirs: "Iterable[str]" = (),
    ignore_spec: "PathSpec | None" = None,
    follow_symlinks: bool = False,
    logger: "FilteringBoundLogger | None" = None,
) -> "Iterator[str]":
    """Yield the files under a project root as relative POSIX paths.

    Entries are visited in name order, depth first, so the output order is
    stable across runs.

    Args:
        root: Project root directory.
        max_depth: Deepest directory level to enter; files directly in the
            root are at level 0.
        ignore_dirs: Directory names to skip in addition to
            DEFAULT_IGNORE_DIRS.
        ignore_spec: Gitignore-style patterns matched against relative
            paths; matching files and directories are skipped.
        follow_symlinks: Whether to follow symlinked files and directories.
        logger: Logger for skipped directories. Defaults to a structlog
            logger named ``projax.scanner``.

    Yields:
        File paths relative to the root, with forward slashes.

    Raises:
        ScanError: If the root itself cannot be read. Unreadable
            subdirectories are logged and skipped.
    """
    walk = _Walk(
        max_depth=max_depth,
        deny=DEFAULT_IGNORE_DIRS | frozenset(ignore_dirs),
        ignore_spec=ignore_spec,
        follow_symlinks=follow_symlinks,
        logger=(
            logger
            if logger is not None
            else cast("FilteringBoundLogger", structlog.get_logger("projax.scanner"))
        ),
    )
    return walk.run(root)
