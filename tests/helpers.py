"""Helpers for faking RTM responses through a mock requests.Session."""

from __future__ import annotations

import json
from unittest.mock import MagicMock
from urllib.parse import parse_qs, urlsplit

import requests


def make_response(status_code: int = 200, text: str = ""):
    """Build a mock requests.Response."""
    resp = MagicMock(spec=requests.Response)
    resp.status_code = status_code
    resp.ok = status_code < 400
    resp.text = text
    return resp


def ok_body(**payload) -> str:
    return json.dumps({"rsp": {"stat": "ok", **payload}})


def fail_body(code: int | str, msg: str) -> str:
    return json.dumps({"rsp": {"stat": "fail", "err": {"code": str(code), "msg": msg}}})


def serve(mock_session, *bodies: str) -> None:
    """Answer successive requests with the given bodies (HTTP 200)."""
    mock_session.request.side_effect = [make_response(200, b) for b in bodies]


def sent_params(mock_session, index: int = -1) -> dict[str, str]:
    """Decoded query parameters of a request made through the mock session."""
    url = mock_session.request.call_args_list[index][0][1]
    return {k: v[0] for k, v in parse_qs(urlsplit(url).query).items()}
