"""Rich renderables for issues and the dependency graph."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .records import STATUS_MARKERS


def status_style(status: str) -> str:
    return {
        "not_started": "yellow",
        "in_progress": "cyan",
        "blocked": "red",
        "done": "green",
        "closed": "green",
    }.get(status, "dim")


def priority_style(priority: str) -> str:
    return {
        "critical": "bold red",
        "high": "red",
        "medium": "yellow",
        "low": "dim",
    }.get(priority, "dim")


def bug(issue_id: int) -> str:
    return f"BUG-{issue_id}"


def issue_table(issues: list[dict[str, Any]], *, title: str | None = None) -> Table:
    table = Table(title=title, expand=False, show_edge=False, pad_edge=False)
    table.add_column("ID", style="bold")
    table.add_column("Status")
    table.add_column("Priority")
    table.add_column("Deps", justify="right", style="dim")
    table.add_column("Title")
    for issue in issues:
        status = issue["status"]
        table.add_row(
            bug(issue["id"]),
            Text(f"{STATUS_MARKERS.get(status, '')} {status}", style=status_style(status)),
            Text(issue["priority"], style=priority_style(issue["priority"])),
            str(len(issue.get("depends_on") or [])),
            Text(issue["title"]),
        )
    return table


def issue_detail(issue: dict[str, Any]) -> Panel:
    meta = Table(show_header=False, box=None, pad_edge=False)
    meta.add_column("Field", style="bold")
    meta.add_column("Value")
    meta.add_row("Status", Text(issue["status"], style=status_style(issue["status"])))
    meta.add_row("Priority", Text(issue["priority"], style=priority_style(issue["priority"])))
    if issue.get("effort"):
        meta.add_row("Effort", str(issue["effort"]))
    if issue.get("files"):
        meta.add_row("Files", ", ".join(issue["files"]))
    if issue.get("blocked_reason"):
        meta.add_row("Blocked", str(issue["blocked_reason"]))
    if issue.get("depends_on"):
        meta.add_row("Depends on", ", ".join(bug(i) for i in issue["depends_on"]))
    if issue.get("blocks"):
        meta.add_row("Blocks", ", ".join(bug(i) for i in issue["blocks"]))

    body = (issue.get("body") or "").strip()
    parts: list[Any] = [meta]
    if body:
        parts.extend([Text(""), Text(body)])
    return Panel(
        Group(*parts),
        title=Text(f"{bug(issue['id'])}: {issue['title']}", style="bold"),
        border_style="cyan",
        expand=False,
    )


def dependencies_view(data: dict[str, Any]) -> Group:
    issue = data["issue"]
    lines: list[Any] = [Text(f"{bug(issue['id'])}: {issue['title']}", style="bold")]

    for label, key in (("Depends on", "depends_on"), ("Blocks", "blocks")):
        rows = data[key]
        lines.append(Text(f"{label} ({len(rows)})", style="bold cyan"))
        if not rows:
            lines.append(Text("  (none)", style="dim"))
        for row in rows:
            line = Text("  ")
            line.append(bug(row["id"]), style="bold")
            line.append(f" {row['title']} ")
            line.append(row["status"], style=status_style(row["status"]))
            lines.append(line)
    return Group(*lines)


def chain_view(data: dict[str, Any]) -> Group | Text:
    chain = data["chain"]
    if not chain:
        return Text("No dependency chains.", style="dim")

    lines: list[Any] = [Text(f"Critical path ({data['length']} issues)", style="bold")]
    for position, row in enumerate(chain):
        line = Text("  " if position == 0 else "  └─> ", style="dim")
        line.append(bug(row["id"]), style="bold")
        line.append(f" {row['title']} ")
        line.append(row["priority"], style=priority_style(row["priority"]))
        lines.append(line)
    return Group(*lines)


def graph_view(data: dict[str, Any]) -> Group | Text:
    """Draw each layer as a panel of node boxes with arrows to prerequisites."""
    layers = data["layers"]
    if not layers:
        return Text("No dependencies to display", style="dim")

    focus = data.get("focus")
    panels: list[Any] = []
    for depth, layer in enumerate(layers):
        lines: list[Text] = []
        for node in layer:
            style = "reverse bold" if node["id"] == focus else status_style(node["status"])
            line = Text("  ┌─", style="dim")
            line.append(f" {bug(node['id'])} ", style=style)
            line.append("─┐ ", style="dim")
            line.append(node["title"])
            lines.append(line)

            deps = node["depends_on"]
            for idx, dep in enumerate(deps):
                connector = "  └──>" if idx == len(deps) - 1 else "  ├──>"
                dep_line = Text(connector, style="dim")
                dep_line.append(f" {bug(dep)}", style="bold")
                lines.append(dep_line)
        panels.append(
            Panel(
                Group(*lines),
                title=f"Layer {depth}",
                title_align="left",
                border_style="dim",
                expand=False,
            )
        )

    title = f"Dependency Graph - {bug(focus)}" if focus is not None else "Dependency Graph"
    return Group(Text(title, style="bold cyan"), *panels)


def cycles_view(cycles: list[list[int]]) -> Text:
    if not cycles:
        return Text("No dependency cycles.", style="green")
    text = Text(f"{len(cycles)} dependency cycle(s):\n", style="bold red")
    for component in cycles:
        text.append("  " + " ⇄ ".join(bug(i) for i in component) + "\n")
    return text


def events_view(events: list[dict[str, Any]]) -> Table | Text:
    if not events:
        return Text("No events recorded.", style="dim")

    table = Table(expand=False, show_edge=False, pad_edge=False)
    table.add_column("When", style="dim")
    table.add_column("Event")
    table.add_column("Issue", style="bold")
    table.add_column("Details")
    for event in events:
        payload = event.get("payload") or {}
        event_type = event["type"]
        if event_type == "blocks.repaired":
            details = f"blocks {payload.get('before')} -> {payload.get('after')}"
        elif event_type == "dep.rejected":
            details = payload.get("message", "")
        else:
            parts = [f"+{bug(i)}" for i in payload.get("add") or []]
            parts += [f"-{bug(i)}" for i in payload.get("remove") or []]
            details = " ".join(parts)
        style = "red" if event_type in ("dep.rejected", "dep.partial_write") else "cyan"
        when = datetime.fromtimestamp(event["ts_ms"] / 1000).strftime("%Y-%m-%d %H:%M:%S")
        table.add_row(
            when,
            Text(event_type, style=style),
            bug(event["issue_id"]),
            Text(str(details)),
        )
    return table
