"""User authorisation - frob, auth URL, token exchange and permission checks."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rememberthemilk import session
from rememberthemilk.exceptions import AuthFlowError, DecodeError, NotYetAuthorizedError
from rememberthemilk.session import AuthorizationAttempt, FrobIssued, Perms, User
from rememberthemilk.wire import require, require_str

if TYPE_CHECKING:
    from rememberthemilk.client import RTMClient

logger = logging.getLogger(__name__)


def _granted_perms(auth: dict) -> Perms:
    value = require_str(auth, "perms", "auth")
    try:
        return Perms.parse(value)
    except ValueError:
        raise DecodeError("Unknown permission level", field="auth.perms", fragment=value) from None


class AuthManager:
    """Drive the desktop authorisation flow.

    Unauthenticated --start_auth--> FrobIssued --check_auth--> Authenticated
    and back to Unauthenticated on logout().  A token held before
    start_auth() stays usable until check_auth() replaces it.
    """

    def __init__(self, client: RTMClient):
        self._c = client

    # ── Handshake ─────────────────────────────────────────────────────

    def get_frob(self) -> str:
        rsp = self._c.call("rtm.auth.getFrob")
        return require_str(rsp, "frob")

    def start_auth(self, perms: Perms = Perms.READ) -> AuthorizationAttempt:
        """Begin authorising a user.

        Returns an attempt whose ``url`` the user must open and approve
        before :meth:`check_auth` can succeed.

        Raises:
            ProtocolError: the server refused to issue a frob.
        """
        frob = self.get_frob()
        url = self._c.signed_url(
            self._c.endpoints.auth_url,
            {"api_key": self._c.api_key, "perms": perms.value, "frob": frob},
        )
        attempt = AuthorizationAttempt(frob=frob, url=url, perms=perms)
        self._c.state = session.issue_frob(self._c.state, attempt)
        logger.info("Issued frob for '%s' permission", perms.value)
        return attempt

    def check_auth(self, attempt: AuthorizationAttempt) -> bool:
        """Exchange the attempt's frob for a user token.

        Returns False while the user has not yet approved the request, so
        this can be polled.  Other server failures raise ProtocolError and
        need a fresh start_auth().
        """
        state = self._c.state
        if not isinstance(state, FrobIssued) or state.attempt.frob != attempt.frob:
            raise AuthFlowError("check_auth() called without a matching start_auth()")
        try:
            rsp = self._c.call("rtm.auth.getToken", frob=attempt.frob)
        except NotYetAuthorizedError:
            logger.info("Frob not authorised yet")
            return False

        auth = require(rsp, "auth")
        token = require_str(auth, "token", "auth")
        user = User.from_dict(require(auth, "user", "auth"))
        perms = _granted_perms(auth)
        self._c.state = session.authenticate(token, user, perms)
        logger.info("Authorised as %s with '%s' permission", user.username, perms.value)
        return True

    # ── Token checks ──────────────────────────────────────────────────

    def has_token(self, perms: Perms = Perms.READ) -> bool:
        """Check the stored token with the server and compare permissions.

        Returns False without any request if there is no token.  A token the
        server rejects (e.g. error 98, invalid auth token) raises
        ProtocolError so the caller can tell "rejected" from "never had one".
        """
        token = self._c.token
        if token is None:
            return False
        rsp = self._c.call("rtm.auth.checkToken", auth_token=token)
        auth = require(rsp, "auth")
        granted = _granted_perms(auth)
        if auth.get("user"):
            user = User.from_dict(auth["user"])
        else:
            current = session.current_auth(self._c.state)
            user = current.user if current else None
        refreshed = session.authenticate(token, user, granted)
        if isinstance(self._c.state, FrobIssued):
            self._c.state = FrobIssued(attempt=self._c.state.attempt, previous=refreshed)
        else:
            self._c.state = refreshed
        if not granted.includes(perms):
            logger.info("Token grants '%s', need '%s'", granted.value, perms.value)
            return False
        return True

    @property
    def user(self) -> User | None:
        current = session.current_auth(self._c.state)
        return current.user if current else None

    def logout(self) -> None:
        """Forget the user token locally.  The token is not revoked server-side."""
        self._c.state = session.logout()
        logger.info("Logged out")
