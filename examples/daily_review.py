"""Daily review script for the rememberthemilk client.

Prints what needs attention today:
  1. Overdue tasks, most overdue first.
  2. Tasks due later today.

Run `rtm auth-app KEY SECRET` once first; this script reuses the saved
session from ~/.config/rtm/rtm_auth.json.

Expected output:
    === Daily Review: 2026-02-18 ===

    Overdue (2):
      [Work]     Update project roadmap      3 days ago
      [Personal] Call accountant             5 hours ago

    Due today (1):
      [Personal] Pay electricity bill        in 6 hours
"""

import sys
from datetime import date

from rememberthemilk import Perms, RTMClient, TimeLeftKind
from rememberthemilk.cli import format_human_time
from rememberthemilk.config import load_config

FILTER = "status:incomplete AND (dueBefore:today OR due:today)"


def main() -> None:
    config = load_config()
    if not config.token:
        print("No saved session. Run `rtm auth-app KEY SECRET` first.")
        sys.exit(1)

    client = RTMClient.from_config(config)
    if not client.auth.has_token(Perms.READ):
        print("Saved session has expired. Run `rtm auth-app KEY SECRET` again.")
        sys.exit(1)

    print(f"\n=== Daily Review: {date.today():%Y-%m-%d} ===")

    names = {lst.id: lst.name for lst in client.lists.get_all()}
    overdue, due_today = [], []
    for lst, series in client.tasks.get_filtered(FILTER).iter_series():
        for task in series.task:
            left = task.time_left()
            row = (left.seconds, names.get(lst.id, "?"), series.name)
            if left.kind is TimeLeftKind.OVERDUE:
                overdue.append(row)
            elif left.kind is TimeLeftKind.REMAINING:
                due_today.append(row)

    print(f"\nOverdue ({len(overdue)}):")
    for secs, list_name, name in sorted(overdue, reverse=True):
        print(f"  [{list_name}]{'':<{max(0, 9 - len(list_name))}}{name:<28}{format_human_time(secs)} ago")

    print(f"\nDue today ({len(due_today)}):")
    for secs, list_name, name in sorted(due_today):
        print(f"  [{list_name}]{'':<{max(0, 9 - len(list_name))}}{name:<28}in {format_human_time(secs)}")


if __name__ == "__main__":
    main()
