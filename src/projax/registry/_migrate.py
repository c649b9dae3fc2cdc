# pyright: reportAny=false, reportExplicitAny=false
"""Schema migration for loaded registry documents.

Documents on disk may have been written by older releases, by other tools,
or edited by hand, so nothing about their shape is guaranteed. Decoding
happens in two steps:

1. Each row is validated against a permissive pydantic model in which every
   field is optional, numbers are coerced where they can be, any other
   unusable value becomes None, and unknown fields are ignored. A row is
   only dropped when its identity fields are unusable.
2. Explicit default-filling turns the permissive row into the canonical
   frozen record, noting whenever a value had to be invented.

The result tells the caller whether anything changed, so the file can be
rewritten once instead of being re-migrated on every load.
"""

import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import PurePath
from typing import Annotated, Any, ClassVar, Final

from pydantic import BaseModel, BeforeValidator, ConfigDict

from projax.registry._models import (
    COLLECTION_KEYS,
    SCHEMA_VERSION,
    Document,
    JenkinsJob,
    Project,
    ProjectPort,
    Setting,
    Test,
    TestResult,
)

__all__ = ["MigrationResult", "normalize"]

_UNKNOWN_SOURCE: Final = "unknown"


def _as_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _as_float(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, str):
        try:
            return _as_float(float(value))
        except ValueError:
            return None
    return None


def _as_str(value: object) -> str | None:
    return value if isinstance(value, str) else None


# Unusable values decode as None instead of failing the whole row
_Int = Annotated[int | None, BeforeValidator(_as_int)]
_Float = Annotated[float | None, BeforeValidator(_as_float)]
_Str = Annotated[str | None, BeforeValidator(_as_str)]


class _RawRow(BaseModel):
    model_config: ClassVar[ConfigDict] = ConfigDict(extra="ignore")


class _RawProject(_RawRow):
    id: _Int = None
    name: _Str = None
    path: _Str = None
    description: _Str = None
    framework: _Str = None
    tags: Any = None
    last_scanned: _Int = None
    created_at: _Int = None


class _RawTest(_RawRow):
    id: _Int = None
    project_id: _Int = None
    file_path: _Str = None
    framework: _Str = None
    status: _Str = None
    last_run: _Int = None
    created_at: _Int = None


class _RawProjectPort(_RawRow):
    id: _Int = None
    project_id: _Int = None
    port: _Int = None
    script_name: _Str = None
    config_source: _Str = None
    last_detected: _Int = None
    created_at: _Int = None


class _RawJenkinsJob(_RawRow):
    id: _Int = None
    project_id: _Int = None
    job_name: _Str = None
    job_url: _Str = None
    last_build_status: _Str = None
    last_build_number: _Int = None
    last_updated: _Int = None
    created_at: _Int = None


class _RawTestResult(_RawRow):
    id: _Int = None
    project_id: _Int = None
    script_name: _Str = None
    framework: _Str = None
    passed: _Int = None
    failed: _Int = None
    skipped: _Int = None
    total: _Int = None
    duration: _Float = None
    coverage: _Float = None
    timestamp: _Int = None
    raw_output: _Str = None


class _RawSetting(_RawRow):
    key: _Str = None
    value: Any = None
    updated_at: _Int = None


@dataclass(frozen=True, slots=True)
class MigrationResult:
    """Outcome of normalizing a raw document.

    Attributes:
        document: The canonical document.
        changed: Whether the document differs from what was decoded.
        from_version: Schema version found in the raw document (1 if absent).
        dropped_rows: Number of rows discarded as unusable.
    """

    document: Document
    changed: bool
    from_version: int
    dropped_rows: int = 0


class _Tracker:
    """Accumulates whether any default had to be filled in."""

    __slots__ = ("changed", "dropped")

    def __init__(self) -> None:
        self.changed = False
        self.dropped = 0

    def drop(self) -> None:
        self.changed = True
        self.dropped += 1

    def fill[T](self, present: bool, value: T, default: T) -> T:  # noqa: FBT001
        if present:
            return value
        self.changed = True
        return default


def _tags(value: object, track: _Tracker) -> tuple[str, ...]:
    if isinstance(value, list) and all(isinstance(tag, str) for tag in value):
        return tuple(value)
    track.changed = True
    if isinstance(value, list):
        return tuple(str(tag) for tag in value if tag is not None)
    return ()


def _project(raw: _RawProject, track: _Tracker) -> Project | None:
    if raw.id is None or not raw.path:
        return None
    fields = raw.model_fields_set
    name = raw.name
    if not name:
        track.changed = True
        name = PurePath(raw.path).name
    return Project(
        id=raw.id,
        name=name,
        path=raw.path,
        created_at=track.fill(raw.created_at is not None, raw.created_at or 0, 0),
        description=track.fill("description" in fields, raw.description, None),
        framework=track.fill("framework" in fields, raw.framework, None),
        tags=_tags(raw.tags, track),
        last_scanned=raw.last_scanned,
    )


def _test(raw: _RawTest, track: _Tracker) -> Test | None:
    if raw.id is None or raw.project_id is None or not raw.file_path:
        return None
    return Test(
        id=raw.id,
        project_id=raw.project_id,
        file_path=raw.file_path,
        created_at=track.fill(raw.created_at is not None, raw.created_at or 0, 0),
        framework=raw.framework,
        status=raw.status,
        last_run=raw.last_run,
    )


def _project_port(raw: _RawProjectPort, track: _Tracker) -> ProjectPort | None:
    if raw.id is None or raw.project_id is None or raw.port is None:
        return None
    created_at = track.fill(raw.created_at is not None, raw.created_at or 0, 0)
    return ProjectPort(
        id=raw.id,
        project_id=raw.project_id,
        port=raw.port,
        script_name=raw.script_name,
        config_source=track.fill(
            raw.config_source is not None, raw.config_source or "", _UNKNOWN_SOURCE
        ),
        last_detected=track.fill(
            raw.last_detected is not None, raw.last_detected or 0, created_at
        ),
        created_at=created_at,
    )


def _jenkins_job(raw: _RawJenkinsJob, track: _Tracker) -> JenkinsJob | None:
    if raw.id is None or raw.project_id is None or not raw.job_name:
        return None
    return JenkinsJob(
        id=raw.id,
        project_id=raw.project_id,
        job_name=raw.job_name,
        job_url=track.fill(raw.job_url is not None, raw.job_url or "", ""),
        created_at=track.fill(raw.created_at is not None, raw.created_at or 0, 0),
        last_build_status=raw.last_build_status,
        last_build_number=raw.last_build_number,
        last_updated=raw.last_updated,
    )


def _test_result(raw: _RawTestResult, track: _Tracker) -> TestResult | None:
    if raw.id is None or raw.project_id is None:
        return None
    passed = track.fill(raw.passed is not None, raw.passed or 0, 0)
    failed = track.fill(raw.failed is not None, raw.failed or 0, 0)
    skipped = track.fill(raw.skipped is not None, raw.skipped or 0, 0)
    return TestResult(
        id=raw.id,
        project_id=raw.project_id,
        script_name=track.fill(raw.script_name is not None, raw.script_name or "", ""),
        framework=raw.framework,
        passed=passed,
        failed=failed,
        skipped=skipped,
        total=track.fill(
            raw.total is not None, raw.total or 0, passed + failed + skipped
        ),
        duration=raw.duration,
        coverage=raw.coverage,
        timestamp=track.fill(raw.timestamp is not None, raw.timestamp or 0, 0),
        raw_output=raw.raw_output,
    )


def _setting(raw: _RawSetting, track: _Tracker) -> Setting | None:
    if not raw.key:
        return None
    value = raw.value
    if not isinstance(value, str):
        track.changed = True
        value = "" if value is None else str(value)
    return Setting(
        key=raw.key,
        value=value,
        updated_at=track.fill(raw.updated_at is not None, raw.updated_at or 0, 0),
    )


def _decode_rows[R: _RawRow, T](
    rows: object,
    raw_type: type[R],
    build: Callable[[R, _Tracker], T | None],
    identity: Callable[[T], object],
    track: _Tracker,
) -> list[T]:
    if not isinstance(rows, list):
        track.changed = True
        return []

    records: list[T] = []
    seen: set[object] = set()
    for row in rows:
        if not isinstance(row, Mapping):
            track.drop()
            continue
        raw = raw_type.model_validate(row)
        if any(row[name] != getattr(raw, name) for name in raw.model_fields_set):
            track.changed = True
        record = build(raw, track)
        if record is None or identity(record) in seen:
            track.drop()
            continue
        seen.add(identity(record))
        records.append(record)
    return records


def _settings_rows(value: object, track: _Tracker) -> object:
    """Accept a plain ``{key: value}`` object as an older settings shape."""
    if isinstance(value, Mapping):
        track.changed = True
        return [{"key": key, "value": item} for key, item in value.items()]
    return value


def _schema_version(data: Mapping[str, Any]) -> int:
    version = data.get("schema_version")
    if isinstance(version, int) and not isinstance(version, bool):
        return version
    return 1


def normalize(raw: object) -> MigrationResult:
    """Normalize a decoded JSON value into a current-schema Document.

    Missing collections become empty, projects gain ``framework``,
    ``description`` and ``tags`` when absent, and unusable rows are dropped.
    Top-level keys not owned by the registry are carried over unchanged.

    Args:
        raw: The value decoded from the registry file.

    Returns:
        MigrationResult with the document and whether anything changed.
    """
    if not isinstance(raw, Mapping):
        return MigrationResult(document=Document(), changed=True, from_version=1)

    track = _Tracker()
    from_version = _schema_version(raw)
    if from_version < SCHEMA_VERSION:
        track.changed = True

    document = Document(
        projects=_decode_rows(
            raw.get("projects"), _RawProject, _project, lambda r: r.id, track
        ),
        tests=_decode_rows(raw.get("tests"), _RawTest, _test, lambda r: r.id, track),
        jenkins_jobs=_decode_rows(
            raw.get("jenkins_jobs"),
            _RawJenkinsJob,
            _jenkins_job,
            lambda r: r.id,
            track,
        ),
        project_ports=_decode_rows(
            raw.get("project_ports"),
            _RawProjectPort,
            _project_port,
            lambda r: r.id,
            track,
        ),
        test_results=_decode_rows(
            raw.get("test_results"),
            _RawTestResult,
            _test_result,
            lambda r: r.id,
            track,
        ),
        settings=_decode_rows(
            _settings_rows(raw.get("settings"), track),
            _RawSetting,
            _setting,
            lambda r: r.key,
            track,
        ),
        extra={
            key: value
            for key, value in raw.items()
            if key not in COLLECTION_KEYS and key != "schema_version"
        },
    )

    return MigrationResult(
        document=document,
        changed=track.changed,
        from_version=from_version,
        dropped_rows=track.dropped,
    )
