"""CLI entry point for bugledger."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Callable

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from . import __version__, render
from .config import CONFIG_FILENAME, BugledgerConfig, load_config
from .graph.errors import GraphError, PartialWriteFailure
from .records import ISSUE_PRIORITIES, ISSUE_STATUSES, priority_rank
from .service import DependencyService
from .storage import IssueRepository, UnknownReference


class CommandError(Exception):
    def __init__(self, message: str, *, recovery: list[str] | None = None) -> None:
        super().__init__(message)
        self.recovery = recovery or []


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------


def _output(data: object, *, pretty: bool = True) -> None:
    indent = 2 if pretty else None
    json.dump(data, sys.stdout, indent=indent)
    sys.stdout.write("\n")


def _format_recovery(recovery: list[str] | None) -> str:
    if not recovery:
        return ""
    return " Recovery: " + " | ".join(recovery)


def _print_next_steps(console: Console, steps: list[str], *, title: str = "Next Steps") -> None:
    if not steps:
        return
    table = Table(title=title, show_header=False, box=None, pad_edge=False)
    table.add_column("Step", style="bold")
    table.add_column("Command", style="bold cyan")
    for idx, command in enumerate(steps, start=1):
        table.add_row(str(idx), command)
    console.print(table)


def _fail(
    console: Console,
    msg: str,
    *,
    recovery: list[str] | None = None,
    json_mode: bool = False,
) -> int:
    if json_mode:
        _output({"error": f"{msg}{_format_recovery(recovery)}"}, pretty=False)
        return 1
    console.print(Text(msg, style="red"))
    if recovery:
        _print_next_steps(console, recovery, title="Recovery")
    return 1


def _print_command_help(
    console: Console,
    *,
    title: str,
    usage: str,
    about: str,
    options: list[tuple[str, str]],
    examples: list[str],
) -> int:
    console.print(Panel.fit(about, title=title, border_style="cyan"))
    console.print(Text(f"Usage: {usage}", style="bold"))
    if options:
        table = Table(show_header=False, box=None, pad_edge=False)
        table.add_column("Option", style="bold")
        table.add_column("Description", style="dim")
        for opt, desc in options:
            table.add_row(opt, desc)
        console.print(table)
    if examples:
        console.print(Text("Examples:", style="bold"))
        for example in examples:
            console.print(f"  {example}")
    return 0


def _wants_help(argv: list[str]) -> bool:
    return bool(argv) and argv[0] in ("-h", "--help")


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------


def _config() -> BugledgerConfig:
    config = load_config()
    if config.error:
        Console(stderr=True).print(
            Text(f"warning: {config.error}; using defaults", style="yellow"),
            soft_wrap=True,
        )
    return config


def _repository(config: BugledgerConfig) -> IssueRepository:
    return IssueRepository(config.issues_root)


def _service(config: BugledgerConfig, *, include_closed: bool = False) -> DependencyService:
    return DependencyService.for_repo(
        _repository(config),
        include_closed=include_closed or config.include_closed,
    )


def _resolve(repo: IssueRepository, ref: str) -> int:
    try:
        issue_id = repo.resolve_ref(ref)
    except UnknownReference as exc:
        raise CommandError(str(exc), recovery=["bugledger alias list", "bugledger list"]) from exc
    return issue_id


def _require(repo: IssueRepository, ref: str) -> dict:
    issue_id = _resolve(repo, ref)
    issue = repo.get(issue_id)
    if issue is None:
        raise CommandError(f"BUG-{issue_id} not found", recovery=["bugledger list --all"])
    return issue


# ---------------------------------------------------------------------------
# Issue commands
# ---------------------------------------------------------------------------


def cmd_init(argv: list[str], console: Console) -> int:
    if _wants_help(argv):
        return _print_command_help(
            console,
            title="bugledger init",
            usage="bugledger init",
            about=f"Create issues/open, issues/closed and a {CONFIG_FILENAME} in the current directory.",
            options=[],
            examples=["bugledger init"],
        )

    root = Path.cwd()
    repo = IssueRepository(root)
    repo.open_dir.mkdir(parents=True, exist_ok=True)
    repo.closed_dir.mkdir(parents=True, exist_ok=True)
    config_path = root / CONFIG_FILENAME
    if not config_path.exists():
        config_path.write_text(
            "[issues]\n"
            'root = "."\n'
            'default_priority = "medium"\n'
            "\n"
            "[graph]\n"
            "include_closed = false\n",
            encoding="utf-8",
        )
    console.print(
        Panel(
            f"Initialized [bold]issues/[/bold] in {root}",
            style="green",
            expand=False,
        )
    )
    _print_next_steps(
        console,
        [
            'bugledger create "First issue"',
            "bugledger depend 2 --on 1",
            "bugledger deps-graph",
        ],
    )
    return 0


def cmd_create(argv: list[str], console: Console) -> int:
    if _wants_help(argv):
        return _print_command_help(
            console,
            title="bugledger create",
            usage=(
                "bugledger create <title> [--priority P] [--issue TEXT] [--impact TEXT] "
                "[--acceptance TEXT] [--effort E] [--context TEXT] [--file PATH] [--json]"
            ),
            about="Create a new issue in issues/open.",
            options=[
                ("--priority, -p", " | ".join(ISSUE_PRIORITIES)),
                ("--issue/--impact/--acceptance", "Body sections"),
                ("--effort", "Effort estimate, e.g. 2h"),
                ("--file, -f", "Related file; repeatable"),
                ("--json", "Emit JSON"),
            ],
            examples=['bugledger create "Parser drops comments" -p high -f src/parser.py'],
        )

    config = _config()
    p = argparse.ArgumentParser(prog="bugledger create", add_help=False)
    p.add_argument("title", nargs="?", default=None)
    p.add_argument("--priority", "-p", default=config.default_priority)
    p.add_argument("--issue", default="")
    p.add_argument("--impact", default="")
    p.add_argument("--acceptance", default="")
    p.add_argument("--effort", default=None)
    p.add_argument("--context", default=None)
    p.add_argument("--file", "-f", action="append", default=[])
    p.add_argument("--json", action="store_true")
    args = p.parse_args(argv)

    if not args.title:
        raise CommandError("missing title", recovery=['bugledger create "Title"'])

    issue = _repository(config).create(
        args.title,
        priority=args.priority,
        files=args.file,
        issue=args.issue,
        impact=args.impact,
        acceptance=args.acceptance,
        effort=args.effort,
        context=args.context,
    )
    if args.json:
        _output(issue)
    else:
        line = Text("Created ", style="green")
        line.append(f"BUG-{issue['id']}", style="bold")
        line.append(f" {issue['title']}")
        console.print(line)
    return 0


def cmd_list(argv: list[str], console: Console) -> int:
    if _wants_help(argv):
        return _print_command_help(
            console,
            title="bugledger list",
            usage="bugledger list [--status STATUS] [--all] [--sort id|priority] [--json]",
            about="List issues, by id or by priority.",
            options=[
                ("--status", " | ".join(ISSUE_STATUSES)),
                ("--all", "Include closed issues"),
                ("--sort", "id (default) or priority"),
                ("--json", "Emit JSON"),
            ],
            examples=["bugledger list", "bugledger list --status blocked"],
        )

    p = argparse.ArgumentParser(prog="bugledger list", add_help=False)
    p.add_argument("--status", choices=ISSUE_STATUSES, default=None)
    p.add_argument("--all", action="store_true")
    p.add_argument("--sort", choices=("id", "priority"), default="id")
    p.add_argument("--json", action="store_true")
    args = p.parse_args(argv)

    issues = _repository(_config()).list(include_closed=args.all)
    if args.status:
        issues = [issue for issue in issues if issue["status"] == args.status]
    if args.sort == "priority":
        issues.sort(key=lambda issue: (priority_rank(issue["priority"]), issue["id"]))

    if args.json:
        _output(issues)
    elif not issues:
        console.print(Text("(no issues)", style="dim"))
    else:
        console.print(render.issue_table(issues))
    return 0


def cmd_show(argv: list[str], console: Console) -> int:
    if not argv or _wants_help(argv):
        return _print_command_help(
            console,
            title="bugledger show",
            usage="bugledger show <ref> [--json]",
            about="Show one issue. <ref> is 12, BUG-12 or an alias.",
            options=[("--json", "Emit JSON")],
            examples=["bugledger show 12", "bugledger show parser-bug"],
        )

    p = argparse.ArgumentParser(prog="bugledger show", add_help=False)
    p.add_argument("ref")
    p.add_argument("--json", action="store_true")
    args = p.parse_args(argv)

    issue = _require(_repository(_config()), args.ref)
    if args.json:
        _output(issue)
    else:
        console.print(render.issue_detail(issue))
    return 0


def _move_command(name: str, about: str) -> Callable[[list[str], Console], int]:
    def handler(argv: list[str], console: Console) -> int:
        if not argv or _wants_help(argv):
            return _print_command_help(
                console,
                title=f"bugledger {name}",
                usage=f"bugledger {name} <ref> [--json]",
                about=about,
                options=[("--json", "Emit JSON")],
                examples=[f"bugledger {name} 12"],
            )

        p = argparse.ArgumentParser(prog=f"bugledger {name}", add_help=False)
        p.add_argument("ref")
        p.add_argument("--json", action="store_true")
        args = p.parse_args(argv)

        repo = _repository(_config())
        issue_id = _require(repo, args.ref)["id"]
        issue = repo.close(issue_id) if name == "close" else repo.reopen(issue_id)
        if args.json:
            _output(issue)
        else:
            console.print(f"BUG-{issue_id} -> [bold]{issue['status']}[/bold]")
        return 0

    return handler


cmd_close = _move_command("close", "Close an issue. Its dependency edges are kept.")
cmd_open = _move_command("open", "Reopen a closed issue. Its dependency edges are kept.")


def _print_status_change(console: Console, issue: dict) -> None:
    line = Text(f"BUG-{issue['id']} -> ")
    line.append(issue["status"], style=f"bold {render.status_style(issue['status'])}")
    if issue.get("blocked_reason"):
        line.append(f": {issue['blocked_reason']}")
    console.print(line)


def cmd_start(argv: list[str], console: Console) -> int:
    if not argv or _wants_help(argv):
        return _print_command_help(
            console,
            title="bugledger start",
            usage="bugledger start <ref> [--json]",
            about="Mark an issue as in progress and record when work started.",
            options=[("--json", "Emit JSON")],
            examples=["bugledger start 12"],
        )

    p = argparse.ArgumentParser(prog="bugledger start", add_help=False)
    p.add_argument("ref")
    p.add_argument("--json", action="store_true")
    args = p.parse_args(argv)

    repo = _repository(_config())
    issue = repo.start(_require(repo, args.ref)["id"])
    if args.json:
        _output(issue)
    else:
        _print_status_change(console, issue)
    return 0


def cmd_block(argv: list[str], console: Console) -> int:
    if not argv or _wants_help(argv):
        return _print_command_help(
            console,
            title="bugledger block",
            usage="bugledger block <ref> --reason TEXT [--json]",
            about=(
                "Mark an issue as blocked on something outside the tracker. "
                "Use `bugledger depend` for blockers that are issues."
            ),
            options=[("--reason", "Why the issue is blocked (required)"), ("--json", "Emit JSON")],
            examples=['bugledger block 12 --reason "waiting on vendor fix"'],
        )

    p = argparse.ArgumentParser(prog="bugledger block", add_help=False)
    p.add_argument("ref")
    p.add_argument("--reason", default="")
    p.add_argument("--json", action="store_true")
    args = p.parse_args(argv)

    if not args.reason.strip():
        raise CommandError(
            "missing --reason", recovery=[f'bugledger block {args.ref} --reason "..."']
        )

    repo = _repository(_config())
    issue = repo.block(_require(repo, args.ref)["id"], args.reason)
    if args.json:
        _output(issue)
    else:
        _print_status_change(console, issue)
    return 0


def cmd_done(argv: list[str], console: Console) -> int:
    if not argv or _wants_help(argv):
        return _print_command_help(
            console,
            title="bugledger done",
            usage="bugledger done <ref> [--json]",
            about="Mark an issue as done. It stays in issues/open until closed.",
            options=[("--json", "Emit JSON")],
            examples=["bugledger done 12", "bugledger close 12"],
        )

    p = argparse.ArgumentParser(prog="bugledger done", add_help=False)
    p.add_argument("ref")
    p.add_argument("--json", action="store_true")
    args = p.parse_args(argv)

    repo = _repository(_config())
    issue = repo.finish(_require(repo, args.ref)["id"])
    if args.json:
        _output(issue)
    else:
        _print_status_change(console, issue)
    return 0


def cmd_alias(argv: list[str], console: Console) -> int:
    if not argv or _wants_help(argv):
        return _print_command_help(
            console,
            title="bugledger alias",
            usage="bugledger alias list | add <ref> <name> | remove <name> [--json]",
            about="Manage human-friendly names for issue ids.",
            options=[("--json", "Emit JSON")],
            examples=["bugledger alias add 12 parser-bug", "bugledger alias remove parser-bug"],
        )

    json_mode = "--json" in argv
    argv = [arg for arg in argv if arg != "--json"]
    if not argv:
        raise CommandError(
            "missing alias action",
            recovery=["bugledger alias list | add <ref> <name> | remove <name> [--json]"],
        )
    repo = _repository(_config())
    action, rest = argv[0], argv[1:]

    if action == "list":
        aliases = repo.load_aliases()
        if json_mode:
            _output(aliases)
        elif not aliases:
            console.print(Text("(no aliases)", style="dim"))
        else:
            table = Table(show_header=True, expand=False, show_edge=False, pad_edge=False)
            table.add_column("Alias", style="bold cyan")
            table.add_column("Issue")
            for name, issue_id in aliases.items():
                table.add_row(name, f"BUG-{issue_id}")
            console.print(table)
        return 0

    if action == "add" and len(rest) == 2:
        issue_id = _resolve(repo, rest[0])
        repo.add_alias(issue_id, rest[1])
        result = {"alias": rest[1], "id": issue_id}
    elif action == "remove" and len(rest) == 1:
        result = {"alias": rest[0], "removed": repo.remove_alias(rest[0])}
    else:
        raise CommandError(
            f"invalid alias command: {' '.join(argv)}",
            recovery=["bugledger alias add <ref> <name>", "bugledger alias remove <name>"],
        )

    if json_mode:
        _output(result)
    else:
        console.print(Text.assemble(("ok ", "green"), json.dumps(result)))
    return 0


# ---------------------------------------------------------------------------
# Dependency commands
# ---------------------------------------------------------------------------


def cmd_depend(argv: list[str], console: Console) -> int:
    if not argv or _wants_help(argv):
        return _print_command_help(
            console,
            title="bugledger depend",
            usage="bugledger depend <ref> [--on REF]... [--remove REF]... [--json]",
            about=(
                "Add or remove prerequisites of an issue. The whole request is "
                "rejected if any new edge would create a cycle."
            ),
            options=[
                ("--on", "Issue that <ref> depends on; repeatable"),
                ("--remove", "Prerequisite to drop; repeatable"),
                ("--json", "Emit JSON"),
            ],
            examples=["bugledger depend 5 --on 3 --on 4", "bugledger depend 5 --remove 3"],
        )

    p = argparse.ArgumentParser(prog="bugledger depend", add_help=False)
    p.add_argument("ref")
    p.add_argument("--on", action="append", default=[])
    p.add_argument("--remove", action="append", default=[])
    p.add_argument("--json", action="store_true")
    args = p.parse_args(argv)

    service = _service(_config())
    subject = _resolve(service.repo, args.ref)
    add = [_resolve(service.repo, ref) for ref in args.on]
    remove = [_resolve(service.repo, ref) for ref in args.remove]

    result = service.depend(subject, add, remove)
    if args.json:
        _output(result)
    else:
        deps = ", ".join(f"BUG-{i}" for i in result["depends_on"]) or "(none)"
        console.print(f"[green]Updated[/green] BUG-{subject} depends on: {deps}")
    return 0


def cmd_deps(argv: list[str], console: Console) -> int:
    if not argv or _wants_help(argv):
        return _print_command_help(
            console,
            title="bugledger deps",
            usage="bugledger deps <ref> [--all] [--json]",
            about="Show what an issue depends on and what it blocks.",
            options=[("--all", "Count closed dependents too"), ("--json", "Emit JSON")],
            examples=["bugledger deps 5"],
        )

    p = argparse.ArgumentParser(prog="bugledger deps", add_help=False)
    p.add_argument("ref")
    p.add_argument("--all", action="store_true")
    p.add_argument("--json", action="store_true")
    args = p.parse_args(argv)

    service = _service(_config(), include_closed=args.all)
    data = service.dependencies(_resolve(service.repo, args.ref))
    if args.json:
        _output(data)
    else:
        console.print(render.dependencies_view(data))
    return 0


def _graph_parser(prog: str, *, with_focus: bool = False) -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog=prog, add_help=False)
    if with_focus:
        p.add_argument("ref", nargs="?", default=None)
    p.add_argument("--all", action="store_true")
    p.add_argument("--json", action="store_true")
    return p


def cmd_critical_path(argv: list[str], console: Console) -> int:
    if _wants_help(argv):
        return _print_command_help(
            console,
            title="bugledger critical-path",
            usage="bugledger critical-path [--all] [--json]",
            about="Show the longest chain of dependent issues.",
            options=[("--all", "Include closed issues"), ("--json", "Emit JSON")],
            examples=["bugledger critical-path"],
        )

    args = _graph_parser("bugledger critical-path").parse_args(argv)
    data = _service(_config(), include_closed=args.all).critical_path()
    if args.json:
        _output(data)
    else:
        console.print(render.chain_view(data))
    return 0


def cmd_deps_graph(argv: list[str], console: Console) -> int:
    if _wants_help(argv):
        return _print_command_help(
            console,
            title="bugledger deps-graph",
            usage="bugledger deps-graph [ref] [--all] [--json]",
            about=(
                "Draw the dependency graph in layers. With <ref>, only that issue "
                "and everything connected to it."
            ),
            options=[("--all", "Include closed issues"), ("--json", "Emit JSON")],
            examples=["bugledger deps-graph", "bugledger deps-graph 5"],
        )

    args = _graph_parser("bugledger deps-graph", with_focus=True).parse_args(argv)
    service = _service(_config(), include_closed=args.all)
    focus = _resolve(service.repo, args.ref) if args.ref else None
    data = service.deps_graph(focus)
    if args.json:
        _output(data)
    else:
        console.print(render.graph_view(data))
    return 0


def cmd_cycles(argv: list[str], console: Console) -> int:
    if _wants_help(argv):
        return _print_command_help(
            console,
            title="bugledger cycles",
            usage="bugledger cycles [--all] [--json]",
            about="Report groups of issues whose dependencies form a loop.",
            options=[("--all", "Include closed issues"), ("--json", "Emit JSON")],
            examples=["bugledger cycles"],
        )

    args = _graph_parser("bugledger cycles").parse_args(argv)
    data = _service(_config(), include_closed=args.all).cycles()
    if args.json:
        _output(data)
    else:
        console.print(render.cycles_view(data["cycles"]))
    return 1 if data["cycles"] else 0


def cmd_doctor(argv: list[str], console: Console) -> int:
    if _wants_help(argv):
        return _print_command_help(
            console,
            title="bugledger doctor",
            usage="bugledger doctor [--fix] [--json]",
            about=(
                "Check that every depends_on edge has its matching blocks entry. "
                "--fix rewrites blocks lists from depends_on."
            ),
            options=[("--fix", "Repair blocks lists"), ("--json", "Emit JSON")],
            examples=["bugledger doctor", "bugledger doctor --fix"],
        )

    p = argparse.ArgumentParser(prog="bugledger doctor", add_help=False)
    p.add_argument("--fix", action="store_true")
    p.add_argument("--json", action="store_true")
    args = p.parse_args(argv)

    report = _service(_config()).doctor(fix=args.fix)
    broken = report["asymmetries"] or report["self_loops"] or report["dangling_blocks"]
    healthy = not broken or bool(report["repaired"])
    if args.json:
        _output(report)
        return 0 if healthy else 1

    for issue_id in report["self_loops"]:
        console.print(f"[yellow]BUG-{issue_id}[/yellow] lists itself as a dependency")
    for item in report["asymmetries"]:
        console.print(
            f"[yellow]BUG-{item['id']}[/yellow] {item['field']} lists "
            f"BUG-{item['other']} without the reverse link"
        )
    for item in report["dangling"]:
        console.print(
            f"[dim]BUG-{item['id']} depends on missing BUG-{item['depends_on']}[/dim]"
        )
    for item in report["dangling_blocks"]:
        console.print(
            f"[yellow]BUG-{item['id']}[/yellow] blocks missing BUG-{item['blocks']}"
        )
    console.print(render.cycles_view(report["cycles"]))
    if report["repaired"]:
        console.print(
            "[green]Repaired[/green] "
            + ", ".join(f"BUG-{issue_id}" for issue_id in report["repaired"])
        )
    elif not broken:
        console.print("[green]depends_on and blocks are consistent.[/green]")
    else:
        _print_next_steps(console, ["bugledger doctor --fix"], title="Recovery")
    return 0 if healthy else 1


def cmd_log(argv: list[str], console: Console) -> int:
    if _wants_help(argv):
        return _print_command_help(
            console,
            title="bugledger log",
            usage="bugledger log [ref] [--type TYPE] [--limit N] [--json]",
            about=(
                "Show the dependency audit trail. With <ref>, only events about "
                "that issue or naming it as a prerequisite."
            ),
            options=[
                ("--type", "dep.changed | dep.rejected | dep.partial_write | blocks.repaired"),
                ("--limit", "Most recent N events (default: 20)"),
                ("--json", "Emit JSON"),
            ],
            examples=["bugledger log", "bugledger log 12 --type dep.rejected"],
        )

    p = argparse.ArgumentParser(prog="bugledger log", add_help=False)
    p.add_argument("ref", nargs="?", default=None)
    p.add_argument("--type", dest="event_type", default=None)
    p.add_argument("--limit", type=int, default=20)
    p.add_argument("--json", action="store_true")
    args = p.parse_args(argv)

    service = _service(_config())
    issue_id = _resolve(service.repo, args.ref) if args.ref else None
    events = service.history(issue_id, event_type=args.event_type, limit=args.limit)
    if args.json:
        _output(events)
    else:
        console.print(render.events_view(events))
    return 0


def cmd_serve(argv: list[str], console: Console) -> int:
    if _wants_help(argv):
        return _print_command_help(
            console,
            title="bugledger serve",
            usage="bugledger serve [--host HOST] [--port PORT] [--reload]",
            about="Start the JSON API.",
            options=[
                ("--host", "Bind address (default: 127.0.0.1)"),
                ("--port", "Bind port (default: 8420)"),
                ("--reload", "Enable auto-reload for development"),
            ],
            examples=["bugledger serve", "bugledger serve --port 9000"],
        )

    p = argparse.ArgumentParser(prog="bugledger serve", add_help=False)
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8420)
    p.add_argument("--reload", action="store_true")
    args = p.parse_args(argv)

    try:
        import uvicorn
    except ImportError:
        console.print(
            "[red]Missing web dependencies.[/red] "
            "Install with: [bold]pip install bugledger\\[web][/bold]"
        )
        return 1

    console.print(
        Panel(
            f"Starting API server at [bold]http://{args.host}:{args.port}[/bold]",
            title="bugledger serve",
            style="cyan",
            expand=False,
        )
    )
    uvicorn.run(
        "bugledger.web:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
    )
    return 0


# ---------------------------------------------------------------------------
# Top-level help and dispatch
# ---------------------------------------------------------------------------


_COMMANDS: dict[str, tuple[Callable[[list[str], Console], int], str]] = {
    "init": (cmd_init, "Create the issues/ layout and a config file"),
    "create": (cmd_create, "Create an issue"),
    "list": (cmd_list, "List issues"),
    "show": (cmd_show, "Show one issue"),
    "close": (cmd_close, "Close an issue"),
    "open": (cmd_open, "Reopen an issue"),
    "start": (cmd_start, "Mark an issue in progress"),
    "block": (cmd_block, "Mark an issue blocked, with a reason"),
    "done": (cmd_done, "Mark an issue done"),
    "alias": (cmd_alias, "Manage issue aliases"),
    "depend": (cmd_depend, "Add/remove prerequisites (cycle-checked)"),
    "deps": (cmd_deps, "Show prerequisites and dependents"),
    "critical-path": (cmd_critical_path, "Longest dependency chain"),
    "deps-graph": (cmd_deps_graph, "Layered dependency graph"),
    "cycles": (cmd_cycles, "Detect dependency cycles"),
    "doctor": (cmd_doctor, "Check/repair depends_on vs blocks"),
    "log": (cmd_log, "Dependency audit trail"),
    "serve": (cmd_serve, "Start the JSON API"),
}


def _print_help(console: Console) -> None:
    help_text = Text()
    help_text.append("bugledger", style="bold")
    help_text.append(f" {__version__}", style="dim")
    help_text.append(" - file-backed issue tracker with a dependency graph")
    console.print(help_text)
    console.print()

    cmds = Table(show_header=False, expand=False, show_edge=False, pad_edge=False, box=None)
    cmds.add_column("Command", style="bold cyan")
    cmds.add_column("Description")
    for name, (_, description) in _COMMANDS.items():
        cmds.add_row(f"bugledger {name}", description)
    console.print(cmds)
    console.print()
    console.print(Text("Run `bugledger <command> --help` for command-specific details.", style="dim"))


def run(argv: list[str], console: Console | None = None) -> int:
    console = console or Console()

    if not argv or argv[0] in ("-h", "--help"):
        _print_help(console)
        return 0
    if argv[0] == "--version":
        console.print(Text(f"bugledger {__version__}", style="bold"))
        return 0

    command, rest = argv[0], argv[1:]
    entry = _COMMANDS.get(command)
    if entry is None:
        return _fail(console, f"unknown command: {command}", recovery=["bugledger --help"])

    handler, _ = entry
    json_mode = "--json" in rest
    try:
        return handler(rest, console)
    except CommandError as exc:
        return _fail(console, str(exc), recovery=exc.recovery, json_mode=json_mode)
    except PartialWriteFailure as exc:
        return _fail(
            console,
            str(exc),
            recovery=[f"bugledger {' '.join(argv)}", "bugledger doctor --fix"],
            json_mode=json_mode,
        )
    except (GraphError, UnknownReference, ValueError) as exc:
        return _fail(console, str(exc), json_mode=json_mode)


def main(argv: list[str] | None = None) -> None:
    raw = argv if argv is not None else sys.argv[1:]
    sys.exit(run(raw))


if __name__ == "__main__":
    main()
