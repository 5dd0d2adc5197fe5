"""Request signing and signed-URL assembly."""

from __future__ import annotations

import hashlib
from collections.abc import Iterable, Mapping
from urllib.parse import quote, urlencode


def sign_params(params: Mapping[str, str] | Iterable[tuple[str, str]], secret: str) -> str:
    """Compute ``api_sig`` for a set of request parameters.

    The pairs are sorted by key, concatenated as ``secret + k1 + v1 + k2 + v2 ...``
    and hashed with MD5 (mandated by the provider).  Values are signed raw,
    before any URL encoding.
    """
    pairs = params.items() if isinstance(params, Mapping) else params
    to_sign = secret + "".join(k + v for k, v in sorted(pairs))
    return hashlib.md5(to_sign.encode("utf-8")).hexdigest()


def build_signed_url(base_url: str, params: Mapping[str, str], secret: str) -> str:
    """Return ``base_url?k=v&...&api_sig=<sig>`` with percent-encoded values."""
    query = list(params.items())
    query.append(("api_sig", sign_params(params, secret)))
    return f"{base_url}?{urlencode(query, quote_via=quote)}"
