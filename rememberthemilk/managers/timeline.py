"""Timelines - handles required by every call that changes data."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rememberthemilk.models import Timeline
from rememberthemilk.session import Perms
from rememberthemilk.wire import require_str

if TYPE_CHECKING:
    from rememberthemilk.client import RTMClient


class TimelineManager:
    def __init__(self, client: RTMClient):
        self._c = client

    def create(self) -> Timeline:
        """Request a fresh timeline.  Create one per editing session."""
        rsp = self._c.call("rtm.timelines.create", Perms.READ)
        return Timeline(require_str(rsp, "timeline"))
