"""CLI entry point for gitwrap."""

from __future__ import annotations

import argparse
import json
import os
import sys
from datetime import datetime, timezone

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from gitwrap import __version__
from gitwrap.config import GitwrapSettings
from gitwrap.errors import GitwrapError
from gitwrap.git import (
    Commit,
    GitEnvironment,
    clone,
    current_branch,
    get_commit,
    get_log,
    is_bare_repo,
    list_branches,
)
from gitwrap.log import LOG_LEVELS, configure_logging
from gitwrap.scanner import find_repos

CYAN = "#58a6ff"
GREEN = "#39d353"
YELLOW = "#e3b341"
RED = "#f85149"
MUTED = "#8b949e"


def _format_ts(ts: int) -> str:
    """Epoch seconds as a UTC date string."""
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")


def _dump(data: object) -> None:
    print(json.dumps(data, indent=2))


def cmd_find(args: argparse.Namespace, env: GitEnvironment, console: Console) -> None:
    repos = find_repos(
        args.path,
        env=env,
        workers=args.workers,
        exclude=args.exclude or (),
        max_depth=args.max_depth,
    )
    if args.json_output:
        _dump([{"path": p, "bare": is_bare_repo(p, env=env)} for p in repos])
        return
    if not repos:
        console.print(f"[{RED}]No git repos found.[/{RED}]")
        return

    table = Table(show_edge=True, pad_edge=True)
    table.add_column("Repo", style=f"bold {CYAN}")
    table.add_column("Path", style=MUTED)
    table.add_column("Kind", style=YELLOW)
    for path in repos:
        kind = "bare" if is_bare_repo(path, env=env) else "worktree"
        table.add_row(os.path.basename(path), path, kind)
    console.print(table)
    console.print(f"  Found {len(repos)} repos.")


def _commit_table(commits: list[Commit]) -> Table:
    table = Table(show_edge=True, pad_edge=True)
    table.add_column("Hash", style=f"bold {CYAN}", no_wrap=True)
    table.add_column("Date", style=MUTED, no_wrap=True)
    table.add_column("Author", style=YELLOW)
    table.add_column("Subject")
    for c in commits:
        table.add_row(c.hash[:10], _format_ts(c.timestamp), c.author, c.subject)
    return table


def cmd_log(args: argparse.Namespace, env: GitEnvironment, console: Console) -> None:
    commits = get_log(
        args.path,
        args.revision,
        env=env,
        max_count=args.max_count,
        author=args.author,
        since=args.since,
        until=args.until,
    )
    if args.json_output:
        _dump([c.to_dict() for c in commits])
        return
    console.print(_commit_table(commits))


def cmd_show(args: argparse.Namespace, env: GitEnvironment, console: Console) -> None:
    commit = get_commit(args.path, args.revision, env=env)
    if args.json_output:
        _dump(commit.to_dict())
        return
    console.print(str(commit), markup=False, highlight=False)


def cmd_branches(args: argparse.Namespace, env: GitEnvironment, console: Console) -> None:
    refs = list_branches(args.path, local=not args.remote, env=env)
    if args.json_output:
        _dump({"current": current_branch(args.path, env=env), "refs": refs})
        return
    current = current_branch(args.path, env=env)
    for ref in refs:
        short = ref.split("/", 2)[-1]
        if short == current:
            console.print(f"[bold {GREEN}]* {escape(ref)}[/bold {GREEN}]")
        else:
            console.print(f"  {escape(ref)}")


def cmd_clone(args: argparse.Namespace, env: GitEnvironment, console: Console) -> None:
    if clone(args.source, args.dest, bare=args.bare, env=env):
        console.print(f"[{GREEN}]Cloned[/{GREEN}] {escape(args.source)} -> {escape(args.dest)}")
    else:
        console.print(f"[{MUTED}]{escape(args.dest)} already exists, nothing to do[/{MUTED}]")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gitwrap",
        description="Discover, clone and inspect git repositories.",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        metavar="LEVEL",
        help="Level for stderr diagnostics, one of %(choices)s (default: GITWRAP_LOG_LEVEL or WARNING)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"gitwrap {__version__}",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    def _json_flag(p: argparse.ArgumentParser) -> None:
        p.add_argument("--json", action="store_true", dest="json_output", help="Output as JSON")

    p = sub.add_parser("find", help="Find git repositories under a directory")
    p.add_argument("path", nargs="?", default=".", help="Directory to scan (default: current directory)")
    p.add_argument("--workers", type=int, metavar="N", help="Parallel repository probes")
    p.add_argument("--exclude", action="append", metavar="NAME", help="Directory name to skip (repeatable)")
    p.add_argument("--max-depth", type=int, metavar="N", help="Levels below PATH to search")
    _json_flag(p)
    p.set_defaults(func=cmd_find)

    p = sub.add_parser("log", help="Show commit history, newest first")
    p.add_argument("path", nargs="?", default=".", help="Repository path")
    p.add_argument("revision", nargs="?", default="", help="Starting revision (default: HEAD)")
    p.add_argument("-n", "--max-count", type=int, metavar="N", help="Limit the number of commits")
    p.add_argument("--author", metavar="NAME", help="Filter by author name or email")
    p.add_argument("--since", metavar="DATE", help="Commits after this date")
    p.add_argument("--until", metavar="DATE", help="Commits before this date")
    _json_flag(p)
    p.set_defaults(func=cmd_log)

    p = sub.add_parser("show", help="Show a single commit")
    p.add_argument("path", nargs="?", default=".", help="Repository path")
    p.add_argument("revision", nargs="?", default="HEAD", help="Revision (default: HEAD)")
    _json_flag(p)
    p.set_defaults(func=cmd_show)

    p = sub.add_parser("branches", help="List local or remote-tracking branches")
    p.add_argument("path", nargs="?", default=".", help="Repository path")
    p.add_argument("-r", "--remote", action="store_true", help="List remote-tracking branches")
    _json_flag(p)
    p.set_defaults(func=cmd_branches)

    p = sub.add_parser("clone", help="Clone a repository unless the destination exists")
    p.add_argument("source", help="Path or URL to clone from")
    p.add_argument("dest", help="Destination path")
    p.add_argument("--bare", action="store_true", help="Create a bare repository")
    p.set_defaults(func=cmd_clone)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point for the gitwrap CLI."""
    args = build_parser().parse_args(argv)
    settings = GitwrapSettings()
    configure_logging(args.log_level or settings.log_level)

    console = Console()
    err_console = Console(stderr=True)
    try:
        env = GitEnvironment.detect(settings)
        args.func(args, env, console)
    except GitwrapError as e:
        err_console.print(f"[{RED}]error:[/{RED}] {escape(e.message)}", highlight=False)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
