"""Data models for Remember The Milk API objects."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

from rememberthemilk.wire import (
    decode_collection,
    decode_string_list,
    encode_collection,
    format_bool,
    format_dt,
    normalize_collection,
    parse_bool,
    parse_dt,
    parse_int,
    require,
    require_object,
    require_str,
)


def _as_list(value: Any) -> list:
    """Objects that may repeat are sent bare when there is only one."""
    if value is None or value == "":
        return []
    if isinstance(value, list):
        return value
    return [value]


@dataclass
class Note:
    id: str
    created: datetime | None = None
    modified: datetime | None = None
    title: str = ""
    text: str = ""

    @classmethod
    def from_dict(cls, d: dict) -> Note:
        return cls(
            id=require_str(d, "id", "note"),
            created=parse_dt(d.get("created"), "note.created"),
            modified=parse_dt(d.get("modified"), "note.modified"),
            title=d.get("title", "") or "",
            text=d.get("$t", "") or "",
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "created": format_dt(self.created),
            "modified": format_dt(self.modified),
            "title": self.title,
            "$t": self.text,
        }


@dataclass
class RRule:
    """Recurrence rule.  ``every`` repeats on a schedule, otherwise after completion."""

    every: bool
    rule: str  # RFC 2445 style, e.g. "FREQ=WEEKLY;INTERVAL=1;WKST=MO"

    @classmethod
    def from_dict(cls, d: dict) -> RRule:
        return cls(
            every=parse_bool(require(d, "every", "rrule"), "rrule.every"),
            rule=require_str(d, "$t", "rrule"),
        )

    def to_dict(self) -> dict:
        return {"every": format_bool(self.every), "$t": self.rule}


class TimeLeftKind(Enum):
    REMAINING = "remaining"
    OVERDUE = "overdue"
    COMPLETED = "completed"
    NO_DUE = "no_due"


@dataclass(frozen=True)
class TimeLeft:
    kind: TimeLeftKind
    seconds: int = 0  # only meaningful for REMAINING / OVERDUE


@dataclass
class Task:
    """One occurrence of a (possibly repeating) task series."""

    id: str
    due: datetime | None = None
    has_due_time: bool = False
    added: datetime | None = None
    completed: datetime | None = None
    deleted: datetime | None = None
    priority: str = "N"  # "N" (none) or "1".."3"
    postponed: int = 0
    estimate: str = ""

    @classmethod
    def from_dict(cls, d: dict) -> Task:
        require_object(d, "task")
        has_due_time = d.get("has_due_time")
        return cls(
            id=require_str(d, "id", "task"),
            due=parse_dt(d.get("due"), "task.due"),
            has_due_time=parse_bool(has_due_time, "task.has_due_time") if has_due_time is not None else False,
            added=parse_dt(d.get("added"), "task.added"),
            completed=parse_dt(d.get("completed"), "task.completed"),
            deleted=parse_dt(d.get("deleted"), "task.deleted"),
            priority=d.get("priority", "N") or "N",
            postponed=parse_int(d.get("postponed"), "task.postponed"),
            estimate=d.get("estimate", "") or "",
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "due": format_dt(self.due),
            "has_due_time": format_bool(self.has_due_time),
            "added": format_dt(self.added),
            "completed": format_dt(self.completed),
            "deleted": format_dt(self.deleted),
            "priority": self.priority,
            "postponed": str(self.postponed),
            "estimate": self.estimate,
        }

    @property
    def deadline(self) -> datetime | None:
        """When the task becomes overdue.  Date-only tasks last the whole day."""
        if self.due is None:
            return None
        if self.has_due_time:
            return self.due
        return self.due + timedelta(days=1)

    def time_left(self, now: datetime | None = None) -> TimeLeft:
        if self.completed is not None:
            return TimeLeft(TimeLeftKind.COMPLETED)
        deadline = self.deadline
        if deadline is None:
            return TimeLeft(TimeLeftKind.NO_DUE)
        now = now or datetime.now(timezone.utc)
        secs = int((deadline - now).total_seconds())
        if secs > 0:
            return TimeLeft(TimeLeftKind.REMAINING, secs)
        return TimeLeft(TimeLeftKind.OVERDUE, -secs)


@dataclass
class TaskSeries:
    """A to-do item: name, tags and notes shared by its task occurrences."""

    id: str
    name: str
    created: datetime | None = None
    modified: datetime | None = None
    tags: list[str] = field(default_factory=list)
    repeat: RRule | None = None
    task: list[Task] = field(default_factory=list)
    notes: list[Note] = field(default_factory=list)
    parent_task_id: str | None = None
    source: str = ""
    url: str = ""
    location_id: str = ""

    @classmethod
    def from_dict(cls, d: dict) -> TaskSeries:
        require_object(d, "taskseries")
        rrule = d.get("rrule")
        notes = normalize_collection(decode_collection(d.get("notes"), "note", "taskseries.notes"))
        return cls(
            id=require_str(d, "id", "taskseries"),
            name=require_str(d, "name", "taskseries"),
            created=parse_dt(d.get("created"), "taskseries.created"),
            modified=parse_dt(d.get("modified"), "taskseries.modified"),
            tags=decode_string_list(d.get("tags"), "tag", "taskseries.tags"),
            repeat=RRule.from_dict(rrule) if rrule else None,
            task=[Task.from_dict(t) for t in _as_list(d.get("task"))],
            notes=[Note.from_dict(n) for n in notes],
            parent_task_id=d.get("parent_task_id") or None,
            source=d.get("source", "") or "",
            url=d.get("url", "") or "",
            location_id=d.get("location_id", "") or "",
        )

    def to_dict(self) -> dict:
        d: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "created": format_dt(self.created),
            "modified": format_dt(self.modified),
            "tags": encode_collection(self.tags, "tag"),
            "notes": encode_collection([n.to_dict() for n in self.notes], "note"),
            "task": [t.to_dict() for t in self.task],
            "parent_task_id": self.parent_task_id or "",
            "source": self.source,
            "url": self.url,
            "location_id": self.location_id,
        }
        if self.repeat:
            d["rrule"] = self.repeat.to_dict()
        return d


@dataclass
class RTMLists:
    """Task series grouped by the list they belong to."""

    id: str
    taskseries: list[TaskSeries] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: dict) -> RTMLists:
        require_object(d, "list")
        return cls(
            id=require_str(d, "id", "list"),
            taskseries=[TaskSeries.from_dict(ts) for ts in _as_list(d.get("taskseries"))],
        )

    def to_dict(self) -> dict:
        d: dict[str, Any] = {"id": self.id}
        if self.taskseries:
            d["taskseries"] = [ts.to_dict() for ts in self.taskseries]
        return d


@dataclass
class RTMTasks:
    """Result of a ``tasks.getList`` query."""

    rev: str = ""
    lists: list[RTMLists] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: dict) -> RTMTasks:
        require_object(d, "tasks")
        return cls(
            rev=d.get("rev", "") or "",
            lists=[RTMLists.from_dict(lst) for lst in _as_list(d.get("list"))],
        )

    def to_dict(self) -> dict:
        d: dict[str, Any] = {"rev": self.rev}
        if self.lists:
            d["list"] = [lst.to_dict() for lst in self.lists]
        return d

    def iter_series(self) -> Iterator[tuple[RTMLists, TaskSeries]]:
        """Yield every (list, task series) pair in response order."""
        for lst in self.lists:
            for ts in lst.taskseries:
                yield lst, ts

    def is_empty(self) -> bool:
        return not any(lst.taskseries for lst in self.lists)


@dataclass
class RTMList:
    """Metadata of a to-do list."""

    id: str
    name: str
    deleted: bool = False
    locked: bool = False
    archived: bool = False
    smart: bool = False
    position: int = 0
    sort_order: int = 0
    filter: str = ""  # only set for smart lists

    @classmethod
    def from_dict(cls, d: dict) -> RTMList:
        require_object(d, "list")
        def flag(key: str) -> bool:
            return parse_bool(d[key], f"list.{key}") if key in d else False

        return cls(
            id=require_str(d, "id", "list"),
            name=require_str(d, "name", "list"),
            deleted=flag("deleted"),
            locked=flag("locked"),
            archived=flag("archived"),
            smart=flag("smart"),
            position=parse_int(d.get("position"), "list.position"),
            sort_order=parse_int(d.get("sort_order"), "list.sort_order"),
            filter=d.get("filter", "") or "",
        )

    def to_dict(self) -> dict:
        d = {
            "id": self.id,
            "name": self.name,
            "deleted": format_bool(self.deleted),
            "locked": format_bool(self.locked),
            "archived": format_bool(self.archived),
            "smart": format_bool(self.smart),
            "position": str(self.position),
            "sort_order": str(self.sort_order),
        }
        if self.filter:
            d["filter"] = self.filter
        return d


@dataclass(frozen=True)
class Timeline:
    """Server handle scoping a batch of changes.  Required by every write call."""

    id: str


@dataclass
class Transaction:
    id: str
    undoable: bool = False

    @classmethod
    def from_dict(cls, d: dict) -> Transaction:
        require_object(d, "transaction")
        undoable = d.get("undoable")
        return cls(
            id=require_str(d, "id", "transaction"),
            undoable=parse_bool(undoable, "transaction.undoable") if undoable is not None else False,
        )

    def to_dict(self) -> dict:
        return {"id": self.id, "undoable": format_bool(self.undoable)}


@dataclass
class TaskChange:
    """Outcome of a write call: its transaction and the affected list."""

    transaction: Transaction | None = None
    list: RTMLists | None = None

    @classmethod
    def from_dict(cls, d: dict) -> TaskChange:
        require_object(d, "change")
        txn = d.get("transaction")
        lst = d.get("list")
        return cls(
            transaction=Transaction.from_dict(txn) if txn else None,
            list=RTMLists.from_dict(lst) if lst else None,
        )

    @property
    def series(self) -> TaskSeries | None:
        """The first affected task series, if the server returned one."""
        if self.list and self.list.taskseries:
            return self.list.taskseries[0]
        return None
