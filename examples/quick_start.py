"""Quick-start example for the rememberthemilk client.

Demonstrates the most common workflow:
  1. Restore a saved session, or authorise the app from scratch.
  2. Save the session so the next run skips authorisation.
  3. List every task with its list name.

Pass your API key and secret on the first run; they are saved together with
the user token in ~/.config/rtm/rtm_auth.json.  Keys can be requested at
https://www.rememberthemilk.com/services/api/.

Expected output:
    auth_url: https://www.rememberthemilk.com/services/auth/?api_key=...
    Press enter when authorised...

    Inbox (2):
      - Buy milk
      - Call the plumber
    Work (1):
      - Prepare weekly report
"""

import sys

from rememberthemilk import Perms, RTMClient, RTMConfig
from rememberthemilk.config import load_config, save_config


def main() -> None:
    config = load_config()
    if len(sys.argv) == 3:
        config = RTMConfig(api_key=sys.argv[1], api_secret=sys.argv[2])
    elif not (config.api_key and config.api_secret):
        print("Usage: python quick_start.py API_KEY API_SECRET")
        sys.exit(1)

    client = RTMClient.from_config(config)

    # 1. Authorise if there is no usable token
    if not client.auth.has_token(Perms.READ):
        attempt = client.auth.start_auth(Perms.READ)
        print(f"auth_url: {attempt.url}")
        print("Press enter when authorised...")
        input()
        if not client.auth.check_auth(attempt):
            print("Not authorised - open the URL, allow access and run again.")
            sys.exit(1)
        # 2. Persist the token
        save_config(client.to_config())

    # 3. Every task, grouped by list
    names = client.lists.by_id()
    tasks = client.tasks.get_all()
    for lst in tasks.lists:
        name = names[lst.id].name if lst.id in names else lst.id
        print(f"{name} ({len(lst.taskseries)}):")
        for series in lst.taskseries:
            print(f"  - {series.name}")


if __name__ == "__main__":
    main()
