"""Data models for the registry document.

This module provides the record types held in the registry document, the
Document aggregate itself, and the scan result returned by the scanner.
All records are frozen; the store swaps in updated copies rather than
mutating records in place.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Final

__all__ = [
    "COLLECTION_KEYS",
    "SCHEMA_VERSION",
    "UNSET",
    "Document",
    "JenkinsJob",
    "Project",
    "ProjectPort",
    "ScanResult",
    "Setting",
    "Test",
    "TestResult",
    "Unset",
    "record_to_dict",
]

SCHEMA_VERSION: Final = 2

COLLECTION_KEYS: Final = (
    "projects",
    "tests",
    "jenkins_jobs",
    "project_ports",
    "test_results",
    "settings",
)
"""Top-level document keys owned by the registry, in on-disk order."""


class Unset(Enum):
    """Sentinel type distinguishing an omitted argument from an explicit None."""

    UNSET = "UNSET"

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Final = Unset.UNSET


@dataclass(frozen=True, slots=True)
class Project:
    """A registered project directory.

    Attributes:
        id: Monotonic identifier within the document.
        name: Display name.
        path: Absolute path to the project root. Unique across the document.
        created_at: Creation time in epoch seconds.
        description: Optional free-form description.
        framework: Project framework detected by the last scan.
        tags: Freeform tags for filtering.
        last_scanned: Time of the last scan in epoch seconds.
    """

    id: int
    name: str
    path: str
    created_at: int
    description: str | None = None
    framework: str | None = None
    tags: tuple[str, ...] = field(default_factory=tuple)
    last_scanned: int | None = None


@dataclass(frozen=True, slots=True)
class Test:
    """A test file discovered inside a project.

    ``file_path`` is relative to the project root and, together with
    ``project_id``, forms the natural key.
    """

    id: int
    project_id: int
    file_path: str
    created_at: int
    framework: str | None = None
    status: str | None = None
    last_run: int | None = None


@dataclass(frozen=True, slots=True)
class ProjectPort:
    """A port a project listens on, as found in its configuration.

    The natural key is ``(project_id, port, script_name)``; a ``None``
    script name is its own slot.
    """

    id: int
    project_id: int
    port: int
    config_source: str
    last_detected: int
    created_at: int
    script_name: str | None = None


@dataclass(frozen=True, slots=True)
class JenkinsJob:
    """A Jenkins job linked to a project, keyed by ``(project_id, job_name)``."""

    id: int
    project_id: int
    job_name: str
    job_url: str
    created_at: int
    last_build_status: str | None = None
    last_build_number: int | None = None
    last_updated: int | None = None


@dataclass(frozen=True, slots=True)
class TestResult:
    """One recorded test run. Append-only.

    Attributes:
        duration: Run time in milliseconds.
        coverage: Coverage percentage.
    """

    id: int
    project_id: int
    script_name: str
    passed: int
    failed: int
    skipped: int
    total: int
    timestamp: int
    framework: str | None = None
    duration: float | None = None
    coverage: float | None = None
    raw_output: str | None = None


@dataclass(frozen=True, slots=True)
class Setting:
    """A key-value setting. Values are always stored as strings."""

    key: str
    value: str
    updated_at: int


@dataclass(slots=True)
class Document:
    """The whole registry: every collection plus settings.

    Attributes:
        extra: Top-level keys owned by other tools, preserved verbatim.
    """

    projects: list[Project] = field(default_factory=list)
    tests: list[Test] = field(default_factory=list)
    jenkins_jobs: list[JenkinsJob] = field(default_factory=list)
    project_ports: list[ProjectPort] = field(default_factory=list)
    test_results: list[TestResult] = field(default_factory=list)
    settings: list[Setting] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)  # pyright: ignore[reportExplicitAny]

    def to_dict(self) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
        """Convert the document to its on-disk JSON shape."""
        data: dict[str, Any] = {"schema_version": SCHEMA_VERSION}  # pyright: ignore[reportExplicitAny]
        for key in COLLECTION_KEYS:
            data[key] = [record_to_dict(row) for row in getattr(self, key)]
        for key, value in self.extra.items():
            if key not in data:
                data[key] = value
        return data


def record_to_dict(record: object) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Convert a record to a JSON-ready dictionary.

    Tuples become lists so the result is also valid for the stdlib encoder.
    """
    return {
        key: list(value) if isinstance(value, tuple) else value
        for key, value in asdict(record).items()  # pyright: ignore[reportArgumentType]
    }


@dataclass(frozen=True, slots=True)
class ScanResult:
    """Outcome of scanning one project.

    Attributes:
        project: The project record after the scan.
        tests_found: Number of test files found.
        tests: The Test rows written by the scan.
    """

    project: Project
    tests_found: int
    tests: tuple[Test, ...] = field(default_factory=tuple)
