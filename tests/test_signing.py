"""Unit tests for request signing."""

from __future__ import annotations

import hashlib
from urllib.parse import parse_qs, urlsplit

from rememberthemilk.signing import build_signed_url, sign_params


def test_sign_sorts_keys_and_prefixes_secret():
    # Example from the provider's authentication documentation.
    params = {"yxz": "foo", "feg": "bar", "abc": "baz"}
    expected = hashlib.md5(b"BANANASabcbazfegbaryxzfoo").hexdigest()
    assert sign_params(params, "BANANAS") == expected


def test_sign_is_deterministic():
    params = {"method": "rtm.tasks.getList", "api_key": "k", "filter": "due:today"}
    assert sign_params(params, "s") == sign_params(params, "s")


def test_sign_ignores_input_order():
    pairs = [("b", "2"), ("a", "1"), ("c", "3")]
    assert sign_params(pairs, "s") == sign_params(dict(sorted(pairs)), "s")


def test_sign_changes_with_any_value():
    base = {"a": "1", "b": "2"}
    sig = sign_params(base, "s")
    assert sign_params({"a": "1", "b": "3"}, "s") != sig
    assert sign_params({"a": "1", "c": "2"}, "s") != sig
    assert sign_params(base, "t") != sig


def test_sign_is_lowercase_hex_md5():
    sig = sign_params({"a": "1"}, "s")
    assert len(sig) == 32
    assert sig == sig.lower()
    int(sig, 16)


def test_sign_uses_raw_values_not_encoded():
    params = {"filter": "status:incomplete AND (due:today)"}
    expected = hashlib.md5(b"sfilterstatus:incomplete AND (due:today)").hexdigest()
    assert sign_params(params, "s") == expected


def test_signed_url_appends_signature_last():
    url = build_signed_url("https://example.com/rest/", {"a": "1", "b": "2"}, "s")
    assert url.startswith("https://example.com/rest/?a=1&b=2&api_sig=")
    assert url.endswith(sign_params({"a": "1", "b": "2"}, "s"))


def test_signed_url_percent_encodes_values():
    params = {"filter": "tag:a&b = c", "name": "café"}
    url = build_signed_url("https://example.com/", params, "s")
    query = parse_qs(urlsplit(url).query)
    assert query["filter"] == ["tag:a&b = c"]
    assert query["name"] == ["café"]
    assert query["api_sig"] == [sign_params(params, "s")]
    assert " " not in url
