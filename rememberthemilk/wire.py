"""Decoding rules for the provider's JSON wire format.

Every response is wrapped as ``{"rsp": {"stat": "ok"|"fail", ...}}``.  Inside
the payload the provider is loose about types:

* dates are ISO-8601 UTC strings, with ``""`` meaning "not set";
* booleans are the strings ``"0"`` and ``"1"``;
* collections such as tags and notes are sent as ``[]`` when empty but as
  ``{"tag": [...]}`` / ``{"note": [...]}`` otherwise.

The helpers here normalise those quirks and raise :class:`DecodeError` for
anything they do not recognise.  Unknown keys are always ignored.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Union

from rememberthemilk.exceptions import DecodeError, NotYetAuthorizedError, ProtocolError

logger = logging.getLogger(__name__)

# auth.getToken: "Invalid frob - did you authenticate?"
NOT_YET_AUTHORIZED_CODE = 101


def _fragment(value: Any) -> str:
    try:
        return json.dumps(value)
    except (TypeError, ValueError):
        return repr(value)


# ── Envelope ──────────────────────────────────────────────────────────


def decode_response(text: str, method: str = "") -> dict:
    """Parse a response body and return the ``rsp`` payload of an ok envelope.

    Raises:
        DecodeError: the body is not JSON or not an envelope.
        NotYetAuthorizedError: ``auth.getToken`` reported an unauthorised frob.
        ProtocolError: any other ``fail`` envelope.
    """
    try:
        data = json.loads(text)
    except ValueError as e:
        raise DecodeError(f"Response is not valid JSON ({e})", fragment=text) from e

    rsp = data.get("rsp") if isinstance(data, dict) else None
    if not isinstance(rsp, dict):
        raise DecodeError("Response has no 'rsp' envelope", field="rsp", fragment=text)

    stat = rsp.get("stat")
    if stat == "ok":
        return rsp
    if stat == "fail":
        code, msg = decode_error(rsp.get("err"))
        if method == "rtm.auth.getToken" and code == NOT_YET_AUTHORIZED_CODE:
            logger.debug("%s: %s - %s", method, code, msg)
            raise NotYetAuthorizedError(code, msg)
        logger.warning("%s failed: %s - %s", method or "request", code, msg)
        raise ProtocolError(code, msg, method=method)
    raise DecodeError("Unknown response status", field="stat", fragment=_fragment(stat))


def decode_error(err: Any) -> tuple[int, str]:
    if not isinstance(err, dict):
        raise DecodeError("Failure envelope without 'err'", field="err", fragment=_fragment(err))
    try:
        code = int(err["code"])
    except (KeyError, TypeError, ValueError) as e:
        raise DecodeError("Bad error code", field="err.code", fragment=_fragment(err)) from e
    return code, str(err.get("msg", ""))


def require_object(d: Any, context: str) -> dict:
    """Raise DecodeError unless ``d`` is a JSON object."""
    if not isinstance(d, dict):
        raise DecodeError("Expected an object", field=context, fragment=_fragment(d))
    return d


def require(d: dict, key: str, context: str = "") -> Any:
    """Fetch a mandatory key or raise DecodeError naming it."""
    if not isinstance(d, dict):
        raise DecodeError("Expected an object", field=context or key, fragment=_fragment(d))
    try:
        return d[key]
    except KeyError:
        name = f"{context}.{key}" if context else key
        raise DecodeError("Missing field", field=name, fragment=_fragment(d)) from None


def require_str(d: dict, key: str, context: str = "") -> str:
    value = require(d, key, context)
    if not isinstance(value, str):
        raise DecodeError("Expected a string", field=key, fragment=_fragment(value))
    return value


# ── Scalars ───────────────────────────────────────────────────────────


def parse_dt(value: Any, field_name: str = "") -> datetime | None:
    """Decode a date field.  ``""`` and ``None`` mean absent; result is UTC."""
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise DecodeError("Expected a date string", field=field_name, fragment=_fragment(value))
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        dt = datetime.fromisoformat(text)
    except ValueError as e:
        raise DecodeError("Invalid date", field=field_name, fragment=value) from e
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_dt(dt: datetime | None) -> str:
    """Encode a date field the way the provider sends it (``""`` if absent)."""
    if dt is None:
        return ""
    utc = dt.astimezone(timezone.utc) if dt.tzinfo else dt
    return utc.strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_bool(value: Any, field_name: str = "") -> bool:
    """Decode a ``"0"``/``"1"`` string."""
    if value == "1":
        return True
    if value == "0":
        return False
    raise DecodeError("Expected '0' or '1'", field=field_name, fragment=_fragment(value))


def format_bool(value: bool) -> str:
    return "1" if value else "0"


def parse_int(value: Any, field_name: str = "", default: int = 0) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise DecodeError("Expected an integer", field=field_name, fragment=_fragment(value)) from e


# ── Dual-shape collections ────────────────────────────────────────────


@dataclass(frozen=True)
class EmptyCollection:
    """The ``[]`` sentinel."""


@dataclass(frozen=True)
class WrappedCollection:
    """The ``{"<item>": [...]}`` form."""

    items: list = field(default_factory=list)


Collection = Union[EmptyCollection, WrappedCollection]


def decode_collection(value: Any, item_key: str, field_name: str = "") -> Collection:
    """Classify a tags/notes style container as one of its two wire shapes."""
    if value is None or value == []:
        return EmptyCollection()
    if isinstance(value, dict) and item_key in value:
        items = value[item_key]
        # A lone item is occasionally sent bare rather than in a list.
        if not isinstance(items, list):
            items = [items]
        return WrappedCollection(items=items)
    raise DecodeError(
        f"Expected [] or an object with '{item_key}'",
        field=field_name,
        fragment=_fragment(value),
    )


def normalize_collection(shape: Collection) -> list:
    if isinstance(shape, WrappedCollection):
        return list(shape.items)
    return []


def decode_string_list(value: Any, item_key: str, field_name: str = "") -> list[str]:
    items = normalize_collection(decode_collection(value, item_key, field_name))
    for item in items:
        if not isinstance(item, str):
            raise DecodeError("Expected a string item", field=field_name, fragment=_fragment(item))
    return items


def encode_collection(items: list, item_key: str) -> Any:
    """Inverse of :func:`decode_collection` + :func:`normalize_collection`."""
    if not items:
        return []
    return {item_key: list(items)}
