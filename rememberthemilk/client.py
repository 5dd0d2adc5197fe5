"""Remember The Milk REST API client."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

import requests

from rememberthemilk.config import RTMConfig
from rememberthemilk.exceptions import AuthRequiredError, ConfigError, TransportError
from rememberthemilk.session import Authenticated, Perms, SessionState, Unauthenticated, current_auth
from rememberthemilk.signing import build_signed_url
from rememberthemilk.wire import decode_response

from rememberthemilk.managers.auth import AuthManager
from rememberthemilk.managers.list import ListManager
from rememberthemilk.managers.task import TaskManager
from rememberthemilk.managers.timeline import TimelineManager

logger = logging.getLogger(__name__)

REST_URL = "https://api.rememberthemilk.com/services/rest/"
AUTH_URL = "https://www.rememberthemilk.com/services/auth/"
API_VERSION = "2"

# Responses to these carry the user's token.
_SENSITIVE_METHODS = frozenset({"rtm.auth.getToken", "rtm.auth.checkToken"})

_MASK_RE = re.compile(r"((?:api_sig|auth_token)=)[^&]+")


def _mask(url: str) -> str:
    return _MASK_RE.sub(r"\1***", url)


@dataclass(frozen=True)
class Endpoints:
    """Where requests go.  Swap in a local server for testing."""

    rest_url: str = REST_URL
    auth_url: str = AUTH_URL


class RTMClient:
    """Main Remember The Milk API client.

    Holds the application credentials and the user session.  A user token
    is obtained through ``client.auth`` (or restored with
    :meth:`from_config`), after which the domain managers can be used:

        client.auth       - frob / token handshake and permission checks
        client.tasks      - query, add and tag tasks
        client.lists      - enumerate lists
        client.timelines  - create timelines for write calls
    """

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        *,
        endpoints: Endpoints | None = None,
        session: requests.Session | None = None,
        token: str | None = None,
    ):
        self.api_key = api_key
        self.api_secret = api_secret
        self.endpoints = endpoints or Endpoints()
        self.session = session or requests.Session()
        self.state: SessionState = Authenticated(token=token) if token else Unauthenticated()

        # Wire up managers
        self.auth = AuthManager(self)
        self.tasks = TaskManager(self)
        self.lists = ListManager(self)
        self.timelines = TimelineManager(self)

    # ── Configuration ─────────────────────────────────────────────────

    @classmethod
    def from_config(cls, config: RTMConfig, **kwargs) -> RTMClient:
        """Build a client from a persisted record, restoring any user session."""
        if not config.api_key or not config.api_secret:
            raise ConfigError("No API key and secret saved")
        client = cls(config.api_key, config.api_secret, **kwargs)
        if config.token:
            client.state = Authenticated(token=config.token, user=config.user, perms=config.perms)
        return client

    def to_config(self) -> RTMConfig:
        """Snapshot the credentials and session for persisting.

        Contains both app and user secrets: store it somewhere private.
        """
        auth = current_auth(self.state)
        return RTMConfig(
            api_key=self.api_key,
            api_secret=self.api_secret,
            token=auth.token if auth else None,
            user=auth.user if auth else None,
            perms=auth.perms if auth else None,
        )

    # ── Session ───────────────────────────────────────────────────────

    @property
    def token(self) -> str | None:
        auth = current_auth(self.state)
        return auth.token if auth else None

    def require_token(self, perms: Perms) -> str:
        """Return the user token, or raise if it cannot cover ``perms``.

        A token restored without a known permission level is trusted; the
        server rejects it if it is insufficient.
        """
        auth = current_auth(self.state)
        if auth is None:
            raise AuthRequiredError(perms)
        if auth.perms is not None and not auth.perms.includes(perms):
            raise AuthRequiredError(perms, granted=auth.perms)
        return auth.token

    # ── HTTP layer ────────────────────────────────────────────────────

    def base_params(self, method: str) -> dict[str, str]:
        return {
            "method": method,
            "format": "json",
            "api_key": self.api_key,
            "v": API_VERSION,
        }

    def signed_url(self, base_url: str, params: dict[str, str]) -> str:
        return build_signed_url(base_url, params, self.api_secret)

    def request(self, params: dict[str, str]) -> str:
        """Send a signed GET to the REST endpoint and return the body text."""
        method = params.get("method", "")
        url = self.signed_url(self.endpoints.rest_url, params)
        logger.debug("GET %s", _mask(url))
        try:
            resp = self.session.request("GET", url)
        except requests.RequestException as e:
            logger.error("%s -> %s", method, e)
            raise TransportError(f"{method}: {e}") from e

        if not resp.ok:
            status = resp.status_code
            if method in _SENSITIVE_METHODS:
                logger.error("HTTP GET %s -> %s: <redacted>", method, status)
            else:
                logger.error("HTTP GET %s -> %s: %s", method, status, resp.text[:500])
            raise TransportError(f"{method}: HTTP {status}", status_code=status)
        return resp.text

    def call(self, method: str, perms: Perms | None = None, **params: str | None) -> dict:
        """Invoke an API method and return the payload of its ok envelope.

        Args:
            method: Full method name, e.g. "rtm.tasks.getList".
            perms: Required permission; when given the user token is sent.
            **params: Extra parameters.  None values are left out.
        """
        query = self.base_params(method)
        if perms is not None:
            query["auth_token"] = self.require_token(perms)
        query.update({k: v for k, v in params.items() if v is not None})
        return decode_response(self.request(query), method=method)
