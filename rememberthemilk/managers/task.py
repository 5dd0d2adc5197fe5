"""Task management - query, add, and tag task series."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from rememberthemilk.models import RTMLists, RTMTasks, Task, TaskChange, TaskSeries, Timeline
from rememberthemilk.session import Perms
from rememberthemilk.wire import require

if TYPE_CHECKING:
    from rememberthemilk.client import RTMClient

logger = logging.getLogger(__name__)


class TaskManager:
    """Fetch tasks with the provider's search syntax and make simple edits."""

    def __init__(self, client: RTMClient):
        self._c = client

    # ── Read ──────────────────────────────────────────────────────────

    def get_all(self) -> RTMTasks:
        """Get every task in every list.

        This can be large for a long-standing account and is rarely needed
        outside of exports or backups.
        """
        return self.get_filtered("")

    def get_filtered(self, filter: str) -> RTMTasks:
        """Get tasks matching a search filter.

        Args:
            filter: Query in the provider's search language, e.g.
                "status:incomplete AND (dueBefore:today OR due:today)".
                An empty string returns everything.
        """
        rsp = self._c.call("rtm.tasks.getList", Perms.READ, filter=filter or None)
        return RTMTasks.from_dict(require(rsp, "tasks"))

    def get_in_list(self, list_id: str, filter: str = "") -> RTMTasks:
        """Get tasks of a single list, optionally filtered."""
        rsp = self._c.call("rtm.tasks.getList", Perms.READ, list_id=list_id, filter=filter or None)
        return RTMTasks.from_dict(require(rsp, "tasks"))

    @staticmethod
    def extid_filter(external_id: str) -> str:
        """Filter string matching the task created with ``external_id``."""
        return f'externalId:"{external_id}"'

    # ── Write ─────────────────────────────────────────────────────────

    def add_tags(
        self,
        timeline: Timeline,
        list_id: str,
        taskseries_id: str,
        task_id: str,
        tags: Iterable[str],
    ) -> TaskChange:
        """Add tags to one task.

        Args:
            timeline: From ``client.timelines.create()``.
            list_id, taskseries_id, task_id: Identify the task.
            tags: Tag names to add.
        """
        rsp = self._c.call(
            "rtm.tasks.addTags",
            Perms.WRITE,
            timeline=timeline.id,
            list_id=list_id,
            taskseries_id=taskseries_id,
            task_id=task_id,
            tags=",".join(tags),
        )
        change = TaskChange.from_dict(rsp)
        logger.debug("addTags transaction %s", change.transaction and change.transaction.id)
        return change

    def tag(self, timeline: Timeline, lst: RTMLists, series: TaskSeries, task: Task, tags: Iterable[str]) -> TaskChange:
        """:meth:`add_tags` taking the objects returned by a query."""
        return self.add_tags(timeline, lst.id, series.id, task.id, tags)

    def add(
        self,
        timeline: Timeline,
        name: str,
        *,
        list_id: str | None = None,
        parent_task_id: str | None = None,
        external_id: str | None = None,
        smart: bool = False,
    ) -> TaskChange:
        """Create a task.

        Args:
            timeline: From ``client.timelines.create()``.
            name: Task name.
            list_id: Target list.  Defaults to the user's inbox.
            parent_task_id: Make it a sub-task of this task.
            external_id: Caller-supplied id, searchable via :meth:`extid_filter`.
            smart: Let the server parse due dates, tags, etc. out of ``name``.

        Returns:
            The change; ``change.series`` is the new task series when the
            server returned it.
        """
        rsp = self._c.call(
            "rtm.tasks.add",
            Perms.WRITE,
            timeline=timeline.id,
            name=name,
            list_id=list_id,
            parent_task_id=parent_task_id,
            external_id=external_id,
            parse="1" if smart else None,
        )
        return TaskChange.from_dict(rsp)
