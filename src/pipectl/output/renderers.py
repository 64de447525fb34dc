"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO).  The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from pipectl.output.console import create_console, get_output, style_for_status
from pipectl.services._helpers import format_duration

if TYPE_CHECKING:
    from rich.console import Console

    from pipectl.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    if result.op == "run":
        return f"{result.data.get('number')} {result.data.get('status')}"
    if result.op == "list_runs":
        return "\n".join(str(item["number"]) for item in result.data.get("items", []))
    if result.op == "list_stages":
        return "\n".join(
            item["name"] for item in result.data.get("items", []) if item.get("enabled")
        )
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK/ERROR status line."""
    label = Text("OK", style="pipe.ok")
    op = Text(f"  {result.op}", style="pipe.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="pipe.key")
    if key in ("number", "run"):
        v = Text(str(value), style="pipe.number")
    elif key in ("path", "config", "directory", "log"):
        v = Text(str(value), style="pipe.path")
    elif key == "status":
        v = Text(str(value), style=style_for_status(str(value)))
    elif isinstance(value, (dict, list)):
        v = Text(json.dumps(value, separators=(",", ":")))
    else:
        v = Text(str(value))
    console.print(k, v, end="")
    console.print()


def _status_text(status: str) -> Text:
    return Text(status, style=style_for_status(status))


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including telemetry span tree (verbose only)."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))

    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(
    console: Console,
    span_data: dict[str, Any],
    indent: int = 4,
) -> None:
    """Render a hierarchical span tree with color-coded timing."""
    prefix = " " * indent
    name = span_data.get("name", "?")
    duration = span_data.get("duration_ms", 0.0)

    if duration > 60_000:
        style = "bold red"
    elif duration > 5_000:
        style = "yellow"
    else:
        style = "dim"

    line = f"{prefix}[{style}]{format_duration(duration):>10}[/{style}]  {name}"
    annotations = span_data.get("annotations") or {}
    if annotations:
        line += "  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")"
    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


def _stage_table(stages: list[dict[str, Any]], *, verbose: bool = False) -> Table:
    """Build a Rich Table of stage outcomes in execution order."""
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Stage", style="pipe.stage", no_wrap=True)
    table.add_column("Status", no_wrap=True)
    table.add_column("Policy", style="dim")
    table.add_column("Time", justify="right")
    table.add_column("Message")
    if verbose:
        table.add_column("Log", style="pipe.path")

    for stage in stages:
        status = str(stage.get("status", ""))
        duration = stage.get("duration_ms")
        row: list[Any] = [
            str(stage.get("position", "")),
            str(stage.get("name", "")),
            _status_text(status),
            str(stage.get("policy", "")),
            format_duration(duration) if status not in ("skipped", "not_run") else "",
            Text(str(stage.get("message") or "")),
        ]
        if verbose:
            row.append(str(stage.get("log") or stage.get("log_path") or ""))
        table.add_row(*row)
    return table


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="pipe.error")
    op = Text(f"  {result.op}", style="pipe.op")
    sep = Text(" — ")
    console.print(label, op, sep, Text(msg))

    stages = result.data.get("stages")
    if stages:
        number = result.data.get("number")
        status = str(result.data.get("status", ""))
        console.print(Text(f"  run #{number}: ", style="pipe.key"), _status_text(status))
        console.print(_stage_table(stages, verbose=verbose))

    if err and err.detail:
        tail = err.detail.get("output_tail")
        if tail:
            console.print(Text("  output (last lines):", style="dim"))
            for line in str(tail).splitlines():
                console.print(Text(f"    {line}"))
        if verbose:
            console.print(Text("  detail:", style="dim"))
            for k, v in err.detail.items():
                if k != "output_tail":
                    console.print(f"    {k}: {v}")


# ── Run renderers ─────────────────────────────────────────────────────


def _render_run(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    data = result.data
    status = str(data.get("status", ""))
    if status == "success":
        label = Text("OK", style="pipe.ok")
    else:
        label = Text("UNSTABLE", style="pipe.warning")
    console.print(
        label,
        Text(f"  run #{data.get('number')}", style="pipe.number"),
        Text(f"  {format_duration(data.get('duration_ms'))}", style="dim"),
    )
    if data.get("commit"):
        _field(console, "commit", data["commit"])
    console.print(_stage_table(data.get("stages", []), verbose=verbose))

    tests = data.get("tests")
    if tests:
        _field(
            console,
            "tests",
            f"{tests.get('passed', 0)}/{tests.get('tests', 0)} passed, "
            f"{tests.get('failures', 0)} failed, {tests.get('errors', 0)} errors, "
            f"{tests.get('skipped', 0)} skipped",
        )
    artifacts = data.get("artifacts")
    if artifacts:
        _field(console, "artifacts", f"{artifacts['files']} files in {artifacts['directory']}")
    for image in data.get("images", []):
        _field(console, "image", image)
    if verbose:
        for tool, version in (data.get("tools") or {}).items():
            _field(console, tool, version)
        _render_meta(console, result)


def _render_stages(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Stage", style="pipe.stage", no_wrap=True)
    table.add_column("Policy")
    table.add_column("Enabled")
    table.add_column("Description")
    for item in result.data.get("items", []):
        if item["enabled"]:
            enabled = Text("yes", style="pipe.ok")
        else:
            enabled = Text(f"no ({item.get('reason', '').lower()})", style="dim")
        table.add_row(
            str(item["position"]), item["name"], item["policy"], enabled, item["description"]
        )
    console.print(table)
    if verbose:
        _render_meta(console, result)


# ── History renderers ─────────────────────────────────────────────────


def _render_runs(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    if not items:
        _status_line(console, result)
        console.print(Text("  No runs recorded yet.", style="dim"))
        return

    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Run", style="pipe.number", justify="right")
    table.add_column("Status", no_wrap=True)
    table.add_column("Started")
    table.add_column("Time", justify="right")
    table.add_column("Commit", style="dim")
    for item in items:
        table.add_row(
            str(item["number"]),
            _status_text(str(item["status"])),
            str(item.get("started") or ""),
            format_duration(item.get("duration_ms")),
            str(item.get("commit_sha") or ""),
        )
    console.print(table)
    if verbose:
        _render_meta(console, result)


def _render_run_detail(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    data = result.data
    _status_line(console, result)
    for key in ("number", "status", "started", "finished", "commit_sha", "error"):
        if data.get(key) is not None:
            _field(console, key, data[key])
    _field(console, "duration", format_duration(data.get("duration_ms")))
    if verbose and data.get("options"):
        _field(console, "options", data["options"])
    console.print(_stage_table(data.get("stages", []), verbose=True))

    artifacts = data.get("artifacts") or []
    if artifacts:
        console.print(Text(f"  artifacts ({len(artifacts)}):", style="pipe.key"))
        shown = artifacts if verbose else artifacts[:10]
        for entry in shown:
            suffix = f"  {entry['sha256'][:12]}" if verbose else ""
            console.print(Text(f"    {entry['path']}{suffix}", style="pipe.path"))
        if len(shown) < len(artifacts):
            console.print(Text(f"    … {len(artifacts) - len(shown)} more", style="dim"))
    if verbose:
        _render_meta(console, result)


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    "run": _render_run,
    "list_stages": _render_stages,
    "list_runs": _render_runs,
    "show_run": _render_run_detail,
    "init": _render_generic,
}
