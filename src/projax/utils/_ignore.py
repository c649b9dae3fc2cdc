"""Gitignore-style pattern matching using pathspec.

This module provides utilities for loading and matching gitignore patterns
from a project's own ``.gitignore`` and from configured extra patterns.
"""

from dataclasses import dataclass, field
from pathlib import Path  # noqa: TC003 - Used at runtime in function parameters
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from pathspec import PathSpec


@dataclass(frozen=True, slots=True)
class IgnoreConfig:
    """Configuration for ignore pattern loading.

    Attributes:
        project_gitignore: Whether to load patterns from the project's
            root ``.gitignore``.
        extra_patterns: Additional patterns to include.
    """

    project_gitignore: bool = False
    extra_patterns: tuple[str, ...] = field(default_factory=tuple)


def load_gitignore_patterns(path: Path) -> list[str]:
    """Load patterns from a gitignore file.

    Reads a gitignore-format file and returns the patterns. Comments (lines
    starting with #) and empty lines are filtered out.

    Args:
        path: Path to the gitignore file.

    Returns:
        List of patterns from the file. Returns empty list if the file
        doesn't exist or can't be read.
    """
    if not path.is_file():
        return []

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return []

    patterns: list[str] = []
    for line in content.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        patterns.append(stripped)

    return patterns


def collect_patterns(
    project_root: Path,
    *,
    config: IgnoreConfig | None = None,
) -> list[str]:
    """Collect ignore patterns from all configured sources.

    Gathers patterns from:
    1. The project's .gitignore (if project_gitignore is True)
    2. Extra patterns from config

    Args:
        project_root: Root directory of the project being scanned.
        config: Configuration for pattern sources. Uses defaults if None.

    Returns:
        List of all collected patterns, deduplicated while preserving order.
    """
    if config is None:
        config = IgnoreConfig()

    patterns: list[str] = []
    seen: set[str] = set()

    def add_patterns(new_patterns: "Iterable[str]") -> None:
        for pattern in new_patterns:
            if pattern not in seen:
                seen.add(pattern)
                patterns.append(pattern)

    if config.project_gitignore:
        add_patterns(load_gitignore_patterns(project_root / ".gitignore"))

    if config.extra_patterns:
        add_patterns(config.extra_patterns)

    return patterns


def create_pathspec(
    project_root: Path,
    *,
    config: IgnoreConfig | None = None,
) -> "PathSpec | None":
    """Create a PathSpec from collected ignore patterns.

    Args:
        project_root: Root directory of the project being scanned.
        config: Configuration for pattern sources. Uses defaults if None.

    Returns:
        A PathSpec with gitignore-style matching, or None when there are no
        patterns to match.
    """
    from pathspec import PathSpec as PathSpecClass  # noqa: PLC0415
    from pathspec.patterns.gitwildmatch import GitWildMatchPattern  # noqa: PLC0415

    patterns = collect_patterns(project_root, config=config)
    if not patterns:
        return None
    return PathSpecClass.from_lines(GitWildMatchPattern, patterns)
