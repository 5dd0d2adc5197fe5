"""Custom exceptions for the Remember The Milk client."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rememberthemilk.session import Perms


class RTMError(Exception):
    """Base exception for all rememberthemilk errors."""


class TransportError(RTMError):
    """The HTTP request failed or returned a non-success status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class DecodeError(RTMError):
    """A response body was not JSON or did not have the expected shape."""

    def __init__(self, message: str, field: str = "", fragment: str = ""):
        self.field = field
        self.fragment = fragment[:200]
        detail = message
        if field:
            detail = f"{detail} (field {field!r})"
        if fragment:
            detail = f"{detail}: {self.fragment}"
        super().__init__(detail)


class ProtocolError(RTMError):
    """The server answered with a well-formed ``fail`` envelope."""

    def __init__(self, code: int, msg: str, method: str = ""):
        self.code = code
        self.msg = msg
        self.method = method
        prefix = f"{method}: " if method else ""
        super().__init__(f"{prefix}error {code} - {msg}")


class NotYetAuthorizedError(RTMError):
    """The user has not (yet) authorised the frob being exchanged.

    Recoverable: poll ``check_auth`` again after the user visits the URL.
    """

    def __init__(self, code: int, msg: str):
        self.code = code
        self.msg = msg
        super().__init__(f"Not yet authorised ({code} - {msg})")


class AuthRequiredError(RTMError):
    """An operation needs a user token with at least the given permission."""

    def __init__(self, required: Perms, granted: Perms | None = None):
        self.required = required
        self.granted = granted
        if granted is None:
            message = f"No user token; '{required.value}' permission is required"
        else:
            message = (
                f"Token only grants '{granted.value}' permission; "
                f"'{required.value}' is required"
            )
        super().__init__(message)


class AuthFlowError(RTMError):
    """An authorisation step was attempted from the wrong state."""


class ConfigError(RTMError):
    """The persisted configuration is missing or unreadable."""
