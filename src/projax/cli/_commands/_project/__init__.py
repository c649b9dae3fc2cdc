# pyright: reportUnusedCallResult=false, reportUnusedFunction=false
# ruff: noqa: D415, FBT002
"""Commands for registering and managing projects."""

from pathlib import Path
from typing import TYPE_CHECKING, Annotated

from cyclopts import Parameter

from projax.cli._commands._context import CLIContext
from projax.cli._commands._shared import (
    ExitCode,
    exit_with_error,
    format_json,
    format_table,
    format_timestamp,
    handle_errors,
)
from projax.registry import UNSET, Unset, record_to_dict

from ._app import app

if TYPE_CHECKING:
    from projax.registry import Project, RegistryStore

__all__ = ["app"]

_PROJECT_HEADERS = ["ID", "Name", "Path", "Framework", "Tags", "Last scanned"]


def _project_row(project: "Project") -> list[str]:
    return [
        str(project.id),
        project.name,
        project.path,
        project.framework or "-",
        ", ".join(project.tags) or "-",
        format_timestamp(project.last_scanned),
    ]


def _require_project(store: "RegistryStore", project_id: int) -> "Project":
    project = store.get_project(project_id)
    if project is None:
        exit_with_error(f"Project not found: {project_id}", ExitCode.NOT_FOUND)
    return project


def _normalize_path(path: str) -> str:
    """Make a user-supplied project path absolute."""
    return str(Path(path).expanduser().resolve())


@app.command(name="add")
def _add(
    name: str,
    path: str,
    /,
    description: Annotated[
        str | None, Parameter(name=["--description", "-d"], help="Description")
    ] = None,
    tag: Annotated[
        list[str] | None, Parameter(name=["--tag", "-t"], help="Tag (repeatable)")
    ] = None,
) -> None:
    """Register a project directory

    Args:
        name: Display name for the project
        path: Path to the project root
        description: Optional description
        tag: Tags to attach to the project
    """
    ctx = CLIContext.get_current()
    with handle_errors(), ctx.open_store() as store:
        project = store.add_project(name, _normalize_path(path))
        if description is not None or tag:
            project = store.update_project(
                project.id,
                description=description if description is not None else UNSET,
                tags=tag if tag else UNSET,
            )

    if ctx.is_json:
        print(format_json(record_to_dict(project)))
    else:
        print(f"Added project {project.id}: {project.name} ({project.path})")


@app.command(name="list")
def _list(
    tag: Annotated[
        str | None, Parameter(name=["--tag", "-t"], help="Only projects with tag")
    ] = None,
) -> None:
    """List registered projects

    Args:
        tag: Only list projects carrying this tag
    """
    ctx = CLIContext.get_current()
    with handle_errors(), ctx.open_store() as store:
        projects = store.get_all_projects()

    if tag is not None:
        projects = [p for p in projects if tag in p.tags]

    if ctx.is_json:
        print(format_json([record_to_dict(p) for p in projects]))
        return
    if not projects:
        print("No projects registered")
        return
    print(format_table(_PROJECT_HEADERS, [_project_row(p) for p in projects]))


@app.command(name="show")
def _show(project_id: int, /) -> None:
    """Show a project with its tests, ports and Jenkins jobs

    Args:
        project_id: ID of the project
    """
    ctx = CLIContext.get_current()
    with handle_errors(), ctx.open_store() as store:
        project = _require_project(store, project_id)
        tests = store.get_tests_by_project(project_id)
        ports = store.get_project_ports(project_id)
        jobs = store.get_jenkins_jobs_by_project(project_id)
        latest = store.get_latest_test_result(project_id)

    if ctx.is_json:
        print(
            format_json(
                {
                    "project": record_to_dict(project),
                    "tests": [record_to_dict(t) for t in tests],
                    "ports": [record_to_dict(p) for p in ports],
                    "jenkins_jobs": [record_to_dict(j) for j in jobs],
                    "latest_test_result": (
                        record_to_dict(latest) if latest is not None else None
                    ),
                }
            )
        )
        return

    print(f"{project.name} (#{project.id})")
    print(f"  path:         {project.path}")
    print(f"  description:  {project.description or '-'}")
    print(f"  framework:    {project.framework or '-'}")
    print(f"  tags:         {', '.join(project.tags) or '-'}")
    print(f"  created:      {format_timestamp(project.created_at)}")
    print(f"  last scanned: {format_timestamp(project.last_scanned)}")

    if latest is not None:
        print(
            f"  last run:     {latest.script_name}: {latest.passed} passed, "
            f"{latest.failed} failed, {latest.skipped} skipped "
            f"({format_timestamp(latest.timestamp)})"
        )

    if tests:
        print()
        print(
            format_table(
                ["Test", "Framework"],
                [[t.file_path, t.framework or "-"] for t in tests],
            )
        )
    if ports:
        print()
        print(
            format_table(
                ["Port", "Script", "Source"],
                [[str(p.port), p.script_name or "-", p.config_source] for p in ports],
            )
        )
    if jobs:
        print()
        print(
            format_table(
                ["Jenkins job", "URL", "Last build"],
                [
                    [j.job_name, j.job_url, j.last_build_status or "-"]
                    for j in jobs
                ],
            )
        )


@app.command(name="update")
def _update(  # noqa: PLR0913
    project_id: int,
    /,
    name: Annotated[str | None, Parameter(help="New display name")] = None,
    path: Annotated[str | None, Parameter(help="New project root")] = None,
    description: Annotated[
        str | None, Parameter(name=["--description", "-d"], help="New description")
    ] = None,
    clear_description: Annotated[
        bool, Parameter(help="Remove the description")
    ] = False,
    framework: Annotated[str | None, Parameter(help="Override framework")] = None,
    tag: Annotated[
        list[str] | None,
        Parameter(name=["--tag", "-t"], help="Replace tags (repeatable)"),
    ] = None,
    clear_tags: Annotated[bool, Parameter(help="Remove all tags")] = False,
) -> None:
    """Update fields of a project

    Options that are not given leave the field unchanged.

    Args:
        project_id: ID of the project
        name: New display name
        path: New project root
        description: New description
        clear_description: Remove the description
        framework: Override the detected framework
        tag: Replacement tags
        clear_tags: Remove all tags
    """
    if description is not None and clear_description:
        exit_with_error(
            "--description and --clear-description are mutually exclusive",
            ExitCode.VALIDATION_ERROR,
        )
    if tag and clear_tags:
        exit_with_error(
            "--tag and --clear-tags are mutually exclusive",
            ExitCode.VALIDATION_ERROR,
        )

    new_description: str | None | Unset = UNSET
    if clear_description:
        new_description = None
    elif description is not None:
        new_description = description

    new_tags: list[str] | Unset = UNSET
    if clear_tags:
        new_tags = []
    elif tag:
        new_tags = tag

    ctx = CLIContext.get_current()
    with handle_errors(), ctx.open_store() as store:
        project = store.update_project(
            project_id,
            name=name if name is not None else UNSET,
            path=_normalize_path(path) if path is not None else UNSET,
            description=new_description,
            framework=framework if framework is not None else UNSET,
            tags=new_tags,
        )

    if ctx.is_json:
        print(format_json(record_to_dict(project)))
    else:
        print(f"Updated project {project.id}: {project.name}")


@app.command(name="remove")
def _remove(project_id: int, /) -> None:
    """Remove a project and everything recorded for it

    Args:
        project_id: ID of the project
    """
    ctx = CLIContext.get_current()
    with handle_errors(), ctx.open_store() as store:
        project = _require_project(store, project_id)
        store.remove_project(project_id)
    print(f"Removed project {project_id}: {project.name}")


@app.command(name="tags")
def _tags() -> None:
    """List every tag in use"""
    ctx = CLIContext.get_current()
    with handle_errors(), ctx.open_store() as store:
        tags = store.get_all_tags()

    if ctx.is_json:
        print(format_json(tags))
        return
    for tag in tags:
        print(tag)
