"""List management - enumerate the user's lists."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rememberthemilk.models import RTMList
from rememberthemilk.session import Perms
from rememberthemilk.wire import decode_collection, normalize_collection, require

if TYPE_CHECKING:
    from rememberthemilk.client import RTMClient


class ListManager:
    def __init__(self, client: RTMClient):
        self._c = client

    def get_all(self) -> list[RTMList]:
        """Get all lists, including smart and archived ones."""
        rsp = self._c.call("rtm.lists.getList", Perms.READ)
        raw = normalize_collection(decode_collection(require(rsp, "lists"), "list", "lists"))
        return [RTMList.from_dict(lst) for lst in raw]

    def by_id(self) -> dict[str, RTMList]:
        return {lst.id: lst for lst in self.get_all()}
