"""Permission levels and the user-authorisation state machine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from rememberthemilk.wire import require, require_object


class Perms(Enum):
    """Access level of a user token.  Higher levels include lower ones."""

    READ = "read"
    WRITE = "write"
    DELETE = "delete"

    @property
    def rank(self) -> int:
        return _RANK[self]

    def includes(self, other: Perms) -> bool:
        """True if a token with this level may do what ``other`` allows."""
        return self.rank >= other.rank

    @classmethod
    def parse(cls, value: str) -> Perms:
        return cls(value.lower())


_RANK = {Perms.READ: 0, Perms.WRITE: 1, Perms.DELETE: 2}


@dataclass(frozen=True)
class User:
    id: str
    username: str
    fullname: str = ""

    @classmethod
    def from_dict(cls, d: dict) -> User:
        require_object(d, "user")
        return cls(
            id=str(require(d, "id", "user")),
            username=d.get("username", "") or "",
            fullname=d.get("fullname", "") or "",
        )

    def to_dict(self) -> dict:
        return {"id": self.id, "username": self.username, "fullname": self.fullname}


@dataclass(frozen=True)
class AuthorizationAttempt:
    """A pending authorisation: the frob and the URL the user must visit."""

    frob: str
    url: str
    perms: Perms


@dataclass(frozen=True)
class Unauthenticated:
    pass


@dataclass(frozen=True)
class Authenticated:
    token: str
    user: User | None = None
    perms: Perms | None = None  # None until the server has echoed it


@dataclass(frozen=True)
class FrobIssued:
    attempt: AuthorizationAttempt
    previous: Authenticated | None = None  # still usable until the exchange


SessionState = Union[Unauthenticated, FrobIssued, Authenticated]


def current_auth(state: SessionState) -> Authenticated | None:
    """The usable token-holding state, if any."""
    if isinstance(state, Authenticated):
        return state
    if isinstance(state, FrobIssued):
        return state.previous
    return None


def issue_frob(state: SessionState, attempt: AuthorizationAttempt) -> FrobIssued:
    return FrobIssued(attempt=attempt, previous=current_auth(state))


def authenticate(token: str, user: User | None, perms: Perms | None) -> Authenticated:
    return Authenticated(token=token, user=user, perms=perms)


def logout() -> Unauthenticated:
    return Unauthenticated()
