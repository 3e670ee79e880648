from __future__ import annotations

import json
import logging
from collections import Counter
from datetime import date
from typing import Any, NoReturn, cast

import typer
from rich.console import Console
from rich.table import Table

from roadmap_engine.core.errors import RoadmapError, RoadmapLoadError, RoadmapValidationError
from roadmap_engine.core.filters import filter_assigned_to, filter_by_status, sort_by_start_date
from roadmap_engine.core.io.load_roadmap import load_roadmap
from roadmap_engine.core.labels import dependency_type_label, priority_label, status_label
from roadmap_engine.core.layout.layout_config import (
    LayoutConfig,
    LayoutConfigError,
    config_as_dict,
    load_and_merge,
)
from roadmap_engine.core.layout.timeline import TimelineLayout
from roadmap_engine.core.layout.timeline import layout as layout_timeline
from roadmap_engine.core.lint.lint_roadmap import lint_roadmap
from roadmap_engine.core.model import DependencyEdge, DependencyType, Roadmap
from roadmap_engine.core.progress.progress import compute_progress
from roadmap_engine.core.progress.schedule import is_overdue
from roadmap_engine.core.validate.validate_dependency import validate_dependency_in_roadmap
from roadmap_engine.core.validate.validate_roadmap import summarize_roadmap, validate_roadmap

app = typer.Typer(add_completion=False, no_args_is_help=True)
console = Console()

LAYOUT_CONFIG_ENV = "ROADMAP_LAYOUT_CONFIG"


@app.callback()
def _callback(
    log_level: str = typer.Option(
        "WARNING", "--log-level", envvar="ROADMAP_LOG_LEVEL", help="Logging level"
    ),
) -> None:
    """Roadmap CLI: milestone dependency validation, progress and timeline layout."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command("validate")
def validate(
    path: str = typer.Argument(..., help="Path to a roadmap snapshot (.yaml/.yml/.json)"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Validate a roadmap snapshot."""
    _check_format(format, ("text", "json"), "E_VALIDATE_UNKNOWN_FORMAT")
    roadmap = _load_valid(path, "validate", format)

    if format == "text":
        typer.echo(summarize_roadmap(roadmap))
        return

    counts = Counter([m.status for m in roadmap.milestones_by_id.values()])
    summary = {
        "milestone_count": len(roadmap.milestones_by_id),
        "status_counts": {k: int(v) for k, v in counts.items()},
        "dependency_count": len(roadmap.edges),
        "task_link_count": len(roadmap.task_links),
        "organization_id": roadmap.organization_id,
    }
    _emit_json("validate", True, [], 0, summary=summary)


@app.command("lint")
def lint(
    path: str = typer.Argument(..., help="Path to a roadmap snapshot (.yaml/.yml/.json)"),
    today: str | None = typer.Option(None, "--today", help="Reference date (YYYY-MM-DD); defaults to today"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Lint a roadmap snapshot (schedule health beyond validation)."""
    _check_format(format, ("text", "json"), "E_LINT_UNKNOWN_FORMAT")
    ref = _parse_today(today)

    try:
        raw = load_roadmap(path)
    except RoadmapLoadError as e:
        _fail("lint", format, [e], 1)

    lint_errors = lint_roadmap(raw, ref)
    _, validation_errors = validate_roadmap(raw)
    errors: list[RoadmapError] = lint_errors + validation_errors

    if format == "json":
        _emit_json("lint", not errors, errors, 2 if errors else 0, today=ref.isoformat())
    if errors:
        _print_errors(errors)
        raise typer.Exit(code=2)
    typer.echo("OK: lint passed")


@app.command("check-dependency")
def check_dependency(
    path: str = typer.Argument(..., help="Path to a roadmap snapshot (.yaml/.yml/.json)"),
    milestone_id: str = typer.Argument(..., help="Dependent milestone id"),
    depends_on: str = typer.Argument(..., help="Prerequisite milestone id"),
    dependency_type: str = typer.Option("finish_to_start", "--type", help="Dependency type"),
    lag_days: int = typer.Option(0, "--lag-days", help="Signed lag in days"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Check whether MILESTONE_ID may depend on DEPENDS_ON without breaking the roadmap."""
    _check_format(format, ("text", "json"), "E_CHECK_UNKNOWN_FORMAT")
    roadmap = _load_valid(path, "check-dependency", format)

    edge = DependencyEdge(
        milestone_id=milestone_id,
        depends_on_milestone_id=depends_on,
        dependency_type=cast(DependencyType, dependency_type),
        lag_days=lag_days,
    )
    decision = validate_dependency_in_roadmap(roadmap, edge)

    if format == "json":
        accepted = None
        if decision.edge is not None:
            accepted = {
                "milestone_id": decision.edge.milestone_id,
                "depends_on_milestone_id": decision.edge.depends_on_milestone_id,
                "dependency_type": decision.edge.dependency_type,
                "lag_days": decision.edge.lag_days,
            }
        errors = [decision.error] if decision.error is not None else []
        _emit_json("check-dependency", decision.accepted, errors, 0 if decision.accepted else 2, edge=accepted)

    if decision.error is not None:
        _print_errors([decision.error])
        raise typer.Exit(code=2)
    typer.echo(
        f"OK: {milestone_id} may depend on {depends_on} "
        f"({dependency_type_label(dependency_type)}, lag {lag_days}d)"
    )


@app.command("progress")
def progress(
    path: str = typer.Argument(..., help="Path to a roadmap snapshot (.yaml/.yml/.json)"),
    milestone: str | None = typer.Option(None, "--milestone", help="Only this milestone id"),
    status: list[str] | None = typer.Option(None, "--status", help="Only milestones with this status (repeatable)"),
    today: str | None = typer.Option(None, "--today", help="Reference date (YYYY-MM-DD); defaults to today"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Print effective progress per milestone."""
    _check_format(format, ("text", "json"), "E_PROGRESS_UNKNOWN_FORMAT")
    ref = _parse_today(today)
    roadmap = _load_valid(path, "progress", format)

    milestones = sort_by_start_date(roadmap.milestones_by_id.values())
    if milestone is not None:
        if milestone not in roadmap.milestones_by_id:
            _fail(
                "progress",
                format,
                [
                    RoadmapValidationError(
                        code="E_UNKNOWN_MILESTONE",
                        message=f"--milestone references unknown id: {milestone}",
                        path="milestone",
                    )
                ],
                2,
            )
        milestones = [roadmap.milestones_by_id[milestone]]
    if status:
        milestones = filter_by_status(milestones, status)

    rows: list[dict[str, Any]] = []
    for m in milestones:
        result = compute_progress(m, roadmap.tasks_for(m.id))
        for w in result.warnings:
            typer.echo(str(w), err=True)
        rows.append(
            {
                "milestone_id": m.id,
                "name": m.name,
                "status": m.status,
                "progress_mode": result.mode,
                "progress": result.value,
                "completed_tasks": result.completed_tasks,
                "total_tasks": result.total_tasks,
                "overdue": is_overdue(m, ref),
            }
        )

    if format == "json":
        _emit_json("progress", True, [], 0, milestones=rows, today=ref.isoformat())

    for r in rows:
        flag = " OVERDUE" if r["overdue"] else ""
        typer.echo(
            f"{r['milestone_id']}: {r['progress']}% ({r['progress_mode']}, "
            f"{r['completed_tasks']}/{r['total_tasks']} tasks) {status_label(r['status'])}{flag}"
        )


@app.command("layout")
def layout(
    path: str = typer.Argument(..., help="Path to a roadmap snapshot (.yaml/.yml/.json)"),
    layout_config: str | None = typer.Option(
        None,
        "--layout-config",
        envvar=LAYOUT_CONFIG_ENV,
        help="Optional YAML file overriding layout settings",
    ),
    assigned_to: str | None = typer.Option(None, "--assigned-to", help="Only milestones assigned to this user"),
    format: str = typer.Option("text", "--format", help="Output format: text|json|table"),
) -> None:
    """Lay milestones out on non-overlapping timeline rows."""
    _check_format(format, ("text", "json", "table"), "E_LAYOUT_UNKNOWN_FORMAT")
    cfg = _load_layout_config(layout_config)
    roadmap = _load_valid(path, "layout", "json" if format == "json" else "text")

    milestones = list(roadmap.milestones_by_id.values())
    if assigned_to is not None:
        milestones = filter_assigned_to(milestones, roadmap.assignments, assigned_to)
    result = layout_timeline(milestones, cfg)

    if format == "json":
        _emit_json(
            "layout",
            True,
            [],
            0,
            row_count=result.row_count,
            window_start=result.window_start.isoformat() if result.window_start else None,
            window_end=result.window_end.isoformat() if result.window_end else None,
            assignments=[
                {
                    "milestone_id": a.milestone_id,
                    "row": a.row,
                    "start_fraction": round(a.start_fraction, 6),
                    "end_fraction": round(a.end_fraction, 6),
                }
                for a in result.assignments
            ],
            month_markers=[
                {"date": mk.date.isoformat(), "fraction": round(mk.fraction, 6), "label": mk.label}
                for mk in result.month_markers
            ],
            dependencies=_arrows(roadmap, result),
        )

    if format == "table":
        table = Table(title=f"Roadmap layout ({result.row_count} rows)")
        table.add_column("Row", justify="right")
        table.add_column("Milestone")
        table.add_column("Status")
        table.add_column("Priority")
        table.add_column("Start", justify="right")
        table.add_column("End", justify="right")
        for a in result.assignments:
            m = roadmap.milestones_by_id[a.milestone_id]
            table.add_row(
                str(a.row),
                f"{m.name} ({m.id})",
                status_label(m.status),
                priority_label(m.priority),
                f"{a.start_fraction:.3f}",
                f"{a.end_fraction:.3f}",
            )
        console.print(table)
        return

    typer.echo(f"Rows: {result.row_count}")
    for a in result.assignments:
        typer.echo(f"{a.milestone_id}: row={a.row} start={a.start_fraction:.3f} end={a.end_fraction:.3f}")


@app.command("layout-config")
def layout_config_cmd(
    layout_config: str | None = typer.Option(
        None,
        "--layout-config",
        envvar=LAYOUT_CONFIG_ENV,
        help="Optional YAML file overriding layout settings",
    ),
) -> None:
    """Show the effective layout settings."""
    cfg = _load_layout_config(layout_config)
    typer.echo("Layout settings:")
    for k, v in sorted(config_as_dict(cfg).items()):
        typer.echo(f"- {k}: {v}")


def _arrows(roadmap: Roadmap, result: TimelineLayout) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for e in roadmap.edges:
        src = result.position_of(e.milestone_id)
        dst = result.position_of(e.depends_on_milestone_id)
        if src is None or dst is None:
            continue
        out.append(
            {
                "from": e.depends_on_milestone_id,
                "to": e.milestone_id,
                "from_row": dst.row,
                "from_fraction": round(dst.end_fraction, 6),
                "to_row": src.row,
                "to_fraction": round(src.start_fraction, 6),
                "dependency_type": e.dependency_type,
            }
        )
    return out


def _load_layout_config(config_file: str | None) -> LayoutConfig:
    try:
        return load_and_merge(config_file)
    except FileNotFoundError:
        _print_errors(
            [
                RoadmapLoadError(
                    code="E_LAYOUT_CONFIG_NOT_FOUND",
                    message=f"layout config file not found: {config_file}",
                    path="layout_config",
                )
            ]
        )
        raise typer.Exit(code=1)
    except LayoutConfigError as e:
        _print_errors(
            [
                RoadmapValidationError(
                    code="E_LAYOUT_CONFIG_INVALID",
                    message=str(e),
                    file=config_file,
                    path="layout_config",
                )
            ]
        )
        raise typer.Exit(code=2)


def _load_valid(path: str, command: str, format: str) -> Roadmap:
    try:
        raw = load_roadmap(path)
    except RoadmapLoadError as e:
        _fail(command, format, [e], 1)

    roadmap, errors = validate_roadmap(raw)
    if errors or roadmap is None:
        _fail(command, format, list(errors), 2)
    assert roadmap is not None
    return roadmap


def _check_format(format: str, allowed: tuple[str, ...], code: str) -> None:
    if format not in allowed:
        err = RoadmapValidationError(
            code=code,
            message=f"unknown format: {format} (choose one of: {', '.join(allowed)})",
            file=None,
            path="format",
        )
        _print_errors([err])
        raise typer.Exit(code=2)


def _parse_today(value: str | None) -> date:
    if value is None:
        return date.today()
    try:
        return date.fromisoformat(value)
    except ValueError:
        _print_errors(
            [
                RoadmapValidationError(
                    code="E_INVALID_DATE",
                    message=f"--today must be an ISO date (YYYY-MM-DD), got: {value}",
                    path="today",
                )
            ]
        )
        raise typer.Exit(code=2)


def _to_item(e: RoadmapError) -> dict:
    if isinstance(e, RoadmapLoadError):
        source = "load"
    elif e.code.startswith("L_"):
        source = "lint"
    else:
        source = "validate"
    return {
        "code": e.code,
        "message": e.message,
        "file": e.file,
        "path": e.path,
        "severity": "error",
        "source": source,
    }


def _emit_json(command: str, ok: bool, errors: list[RoadmapError], exit_code: int, **extra: Any) -> NoReturn:
    payload: dict[str, Any] = {
        "tool": "roadmap",
        "command": command,
        "ok": ok,
        "error_count": len(errors),
        "errors": [_to_item(e) for e in errors],
    }
    payload.update(extra)
    typer.echo(json.dumps(payload, indent=2, sort_keys=True))
    raise typer.Exit(code=exit_code)


def _fail(command: str, format: str, errors: list[RoadmapError], exit_code: int) -> NoReturn:
    if format == "json":
        _emit_json(command, False, errors, exit_code)
    _print_errors(errors)
    raise typer.Exit(code=exit_code)


def _print_errors(errors: list[RoadmapError]) -> None:
    errors_sorted = sorted(errors, key=lambda e: (e.file or "", e.path or "", e.code))
    for e in errors_sorted:
        typer.echo(str(e), err=True)


def main() -> None:
    app(prog_name="roadmap")


cli = typer.main.get_command(app)

if __name__ == "__main__":
    main()
