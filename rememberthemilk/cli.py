"""Command-line client for Remember The Milk.

Usage:
    rtm auth-app KEY SECRET [--perm write]   # Save API key/secret and authorise
    rtm tasks [--filter F | --extid ID]      # Show matching tasks (default filter from config.json)
    rtm lists                                # Show all lists
    rtm add-tag TAG --filter F               # Tag every matching task
    rtm add-task NAME [--external-id ID]     # Add a task (-s for smart add)
    rtm logout                               # Forget the saved user token
"""

from __future__ import annotations

import argparse
import logging
import sys

from rich.console import Console
from rich.logging import RichHandler
from rich.text import Text

from rememberthemilk.client import RTMClient
from rememberthemilk.config import load_config, load_settings, save_config
from rememberthemilk.exceptions import ConfigError, ProtocolError, RTMError
from rememberthemilk.models import TaskSeries, TimeLeftKind
from rememberthemilk.session import Perms

MINUTE = 60
HOUR = 60 * MINUTE
DAY = 24 * HOUR


def format_human_time(secs: int) -> str:
    """Render a duration as its largest whole unit, e.g. "3 days"."""
    if secs > DAY:
        value, unit = secs // DAY, "day"
    elif secs > HOUR:
        value, unit = secs // HOUR, "hour"
    elif secs > MINUTE:
        value, unit = secs // MINUTE, "minute"
    else:
        value, unit = secs, "sec"
    return f"{value} {unit}{'s' if value > 1 else ''}"


def make_console(colour: str) -> Console:
    if colour == "always":
        return Console(force_terminal=True, highlight=False)
    if colour == "never":
        return Console(color_system=None, highlight=False)
    return Console(highlight=False)


# ── Authorisation ─────────────────────────────────────────────────────


def auth_user(client: RTMClient, perms: Perms, console: Console) -> None:
    """Walk the user through authorising this app, then save the token."""
    attempt = client.auth.start_auth(perms)
    console.print(f"auth_url: {attempt.url}", markup=False, soft_wrap=True)
    console.print(f"Open the URL above, sign in and allow '{perms.value}' access.")
    console.print("Press enter when authorised...")
    input()
    while not client.auth.check_auth(attempt):
        console.print(
            "Not authorised yet. Finish the steps at the URL above, then press "
            "enter to check again (Ctrl-C to give up)."
        )
        input()
    save_config(client.to_config())
    user = client.auth.user
    console.print(f"Authorised as {user.username if user else 'unknown user'}.")


def get_client(perms: Perms, console: Console) -> RTMClient:
    """Load the saved client and make sure its token covers ``perms``."""
    try:
        client = RTMClient.from_config(load_config())
    except ConfigError:
        console.print("Error, no API key saved.  Use `rtm auth-app` to supply them.", markup=False)
        raise

    try:
        ok = client.auth.has_token(perms)
    except ProtocolError as e:
        console.print(f"The saved token was rejected ({e.code}: {e.msg}).", markup=False)
        ok = False
    if not ok:
        console.print(f"We don't have '{perms.value}' permission - trying to authenticate.")
        auth_user(client, perms, console)
    return client


# ── Commands ──────────────────────────────────────────────────────────


def _print_series_details(console: Console, ts: TaskSeries) -> None:
    console.print(f"   id: {ts.id}", markup=False)
    console.print(f"   created: {ts.created}", markup=False)
    console.print(f"   modified: {ts.modified}", markup=False)
    console.print(f"   tags: {', '.join(ts.tags)}", markup=False)
    if ts.repeat:
        kind = "every" if ts.repeat.every else "after"
        console.print(f"   repeat: {kind} {ts.repeat.rule}", markup=False)
    if not ts.task:
        return
    task = ts.task[0]
    console.print(f"    id: {task.id}", markup=False)
    if task.due:
        due = task.due if task.has_due_time else task.due.date()
        console.print(f"    due: {due}", markup=False)
    for label in ("added", "completed", "deleted"):
        value = getattr(task, label)
        if value:
            console.print(f"    {label}: {value}", markup=False)


def cmd_tasks(args: argparse.Namespace, console: Console) -> int:
    if args.filter and args.extid:
        console.print("Supplying both --filter and --extid is not supported.")
        return 2
    client = get_client(Perms.READ, console)
    if args.extid:
        query = client.tasks.extid_filter(args.extid)
    else:
        query = args.filter or load_settings().filter

    tasks = client.tasks.get_filtered(query)
    if not tasks.lists:
        return 1
    names = {lst.id: lst.name for lst in client.lists.get_all()}

    for lst in tasks.lists:
        console.print(Text(f"#{names.get(lst.id, lst.id)}", style="magenta"))
        for ts in lst.taskseries:
            line = Text()
            for task in ts.task:
                left = task.time_left()
                if left.kind is TimeLeftKind.REMAINING:
                    style = "red" if left.seconds < HOUR else "yellow"
                    line.append(format_human_time(left.seconds), style=style)
                elif left.kind is TimeLeftKind.OVERDUE:
                    line.append(f"{format_human_time(left.seconds)} ago", style="on red")
            line.append(f"  {ts.name}")
            console.print(line)
            if args.verbose:
                _print_series_details(console, ts)
    return 0


def cmd_lists(args: argparse.Namespace, console: Console) -> int:
    client = get_client(Perms.READ, console)
    for lst in client.lists.get_all():
        console.print(lst.name, markup=False)
    return 0


def cmd_add_tag(args: argparse.Namespace, console: Console) -> int:
    client = get_client(Perms.WRITE, console)
    timeline = client.timelines.create()
    tasks = client.tasks.get_filtered(args.filter)
    for lst, ts in tasks.iter_series():
        if args.tag in ts.tags or not ts.task:
            continue
        console.print(f"  Adding tag to {ts.name}...", markup=False)
        client.tasks.tag(timeline, lst, ts, ts.task[0], [args.tag])
    return 0


def cmd_add_task(args: argparse.Namespace, console: Console) -> int:
    client = get_client(Perms.WRITE, console)
    timeline = client.timelines.create()
    change = client.tasks.add(timeline, args.name, external_id=args.external_id, smart=args.smart)
    series = change.series
    if series is None:
        console.print("Successful result, but no task series returned.")
        return 0
    console.print(f"Added task id {series.id}", markup=False)
    console.print(f"Name: {series.name}", markup=False)
    console.print(f"Tags: {', '.join(series.tags)}", markup=False)
    for task in series.task:
        if task.completed is None:
            console.print(f"  Due: {task.due or 'never'}", markup=False)
    return 0


def cmd_auth_app(args: argparse.Namespace, console: Console) -> int:
    client = RTMClient(args.key, args.secret)
    auth_user(client, Perms.parse(args.perm), console)
    console.print("Successfully authenticated.")
    return 0


def cmd_logout(args: argparse.Namespace, console: Console) -> int:
    config = load_config()
    config.clear_user_data()
    save_config(config)
    console.print("Logged out.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="rtm", description="Remember The Milk command-line client")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show details and debug logging")
    parser.add_argument("-s", "--smart", action="store_true", help="Use smart add for new tasks")
    parser.add_argument("--colour", choices=["auto", "always", "never"], default="auto")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("tasks", help="Show tasks")
    p.add_argument("--filter", help="Filter string in RTM search format")
    p.add_argument("--extid", help="Look only for the task with this external id")
    p.set_defaults(func=cmd_tasks)

    p = sub.add_parser("lists", help="Show all lists")
    p.set_defaults(func=cmd_lists)

    p = sub.add_parser("add-tag", help="Add a tag to every task matching a filter")
    p.add_argument("tag")
    p.add_argument("--filter", required=True)
    p.set_defaults(func=cmd_add_tag)

    p = sub.add_parser("add-task", help="Add a new task")
    p.add_argument("name")
    p.add_argument("--external-id")
    p.set_defaults(func=cmd_add_task)

    p = sub.add_parser("auth-app", help="Save the API key and secret and authorise")
    p.add_argument("key")
    p.add_argument("secret")
    p.add_argument("--perm", choices=[perm.value for perm in Perms], default="read")
    p.set_defaults(func=cmd_auth_app)

    p = sub.add_parser("logout", help="Remove the saved user token")
    p.set_defaults(func=cmd_logout)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    console = make_console(args.colour)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True))],
    )
    err_console = Console(stderr=True, highlight=False)
    try:
        return args.func(args, console)
    except (KeyboardInterrupt, EOFError):
        err_console.print("Aborted.")
        return 130
    except RTMError as e:
        err_console.print(f"Error: {e}", markup=False)
        return 1


if __name__ == "__main__":
    sys.exit(main())
