# pyright: reportUnusedCallResult=false
# ruff: noqa: D415, FBT002
"""projax scan command - reconciles tests and ports with the filesystem."""

from typing import TYPE_CHECKING, Annotated

from cyclopts import App, Parameter

from projax.cli._commands._context import CLIContext
from projax.cli._commands._shared import (
    ExitCode,
    exit_with_error,
    format_json,
    format_table,
    format_timestamp,
    handle_errors,
)
from projax.registry import record_to_dict
from projax.scanner import Scanner

if TYPE_CHECKING:
    from projax.registry import ProjectPort, ScanResult

__all__ = ["app"]

app = App(
    name="scan",
    help="Scan projects for test files and ports",
    help_on_error=True,
)


def _result_dict(
    result: "ScanResult", ports: "list[ProjectPort] | None"
) -> dict[str, object]:
    data: dict[str, object] = {
        "project": record_to_dict(result.project),
        "tests_found": result.tests_found,
        "tests": [record_to_dict(t) for t in result.tests],
    }
    if ports is not None:
        data["ports"] = [record_to_dict(p) for p in ports]
    return data


def _print_results(
    ctx: CLIContext,
    results: "list[ScanResult]",
    ports: "dict[int, list[ProjectPort]] | None",
) -> None:
    if ctx.is_json:
        print(
            format_json(
                [
                    _result_dict(r, ports.get(r.project.id) if ports else None)
                    for r in results
                ]
            )
        )
        return
    if not results:
        print("No projects scanned")
        return
    print(
        format_table(
            ["ID", "Name", "Framework", "Tests", "Scanned"],
            [
                [
                    str(r.project.id),
                    r.project.name,
                    r.project.framework or "-",
                    str(r.tests_found),
                    format_timestamp(r.project.last_scanned),
                ]
                for r in results
            ],
        )
    )


@app.default
def scan(
    project_id: int | None = None,
    /,
    *,
    all_projects: Annotated[
        bool, Parameter(name=["--all", "-a"], help="Scan every project")
    ] = False,
    ports: Annotated[
        bool, Parameter(help="Also extract ports from configuration files")
    ] = False,
) -> None:
    """Scan one project, or all of them, for test files

    Args:
        project_id: ID of the project to scan
        all_projects: Scan every registered project
        ports: Also extract ports from configuration files
    """
    if (project_id is None) == (not all_projects):
        exit_with_error(
            "Give a project ID or --all, but not both", ExitCode.VALIDATION_ERROR
        )

    ctx = CLIContext.get_current()
    with handle_errors(), ctx.open_store() as store:
        service = ctx.scan_service(store)
        if ports and not isinstance(service, Scanner):
            exit_with_error(
                "--ports needs the local registry", ExitCode.VALIDATION_ERROR
            )

        if project_id is not None:
            results = [service.scan_project(project_id)]
        else:
            results = service.scan_all_projects()

        found_ports: dict[int, list[ProjectPort]] | None = None
        if isinstance(service, Scanner) and ports:
            found_ports = {
                r.project.id: service.scan_project_ports(r.project.id)
                for r in results
            }

    _print_results(ctx, results, found_ports)
    if found_ports and not ctx.is_json:
        rows = [
            [str(owner), str(p.port), p.script_name or "-", p.config_source]
            for owner, project_ports in found_ports.items()
            for p in project_ports
        ]
        if rows:
            print()
            print(format_table(["ID", "Port", "Script", "Source"], rows))
