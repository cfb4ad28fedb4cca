"""Measurement protocol request construction.

Pure functions: endpoint selection, cache buster, and the form/query
encoding of a queued :class:`~pyanalytics.models.hit.Hit`.
"""

from __future__ import annotations

import secrets
from collections.abc import Mapping
from dataclasses import dataclass, field
from urllib.parse import quote, urlencode

from pyanalytics._constants import (
    CACHE_BUSTER_DIGITS,
    ENDPOINT_INSECURE,
    ENDPOINT_INSECURE_DEBUG,
    ENDPOINT_SECURE,
    ENDPOINT_SECURE_DEBUG,
    FORM_CONTENT_TYPE,
)
from pyanalytics.models.hit import Hit

# Computed per send; never taken from the hit itself.
_SEND_TIME_KEYS = frozenset({"qt", "z"})


@dataclass(frozen=True)
class HitRequest:
    """One network exchange, ready for a transport."""

    method: str
    url: str
    body: bytes | None = None
    headers: dict[str, str] = field(default_factory=dict)


def select_endpoint(*, debug: bool, secure: bool) -> str:
    if debug:
        return ENDPOINT_SECURE_DEBUG if secure else ENDPOINT_INSECURE_DEBUG
    return ENDPOINT_SECURE if secure else ENDPOINT_INSECURE


def cache_buster() -> str:
    """Random decimal number, zero padded to a fixed width."""
    return f"{secrets.randbelow(10**CACHE_BUSTER_DIGITS):0{CACHE_BUSTER_DIGITS}d}"


def encode_payload(
    parameters: Mapping[str, str],
    *,
    queue_time_ms: int,
    cache_buster_value: str | None = None,
) -> str:
    """Percent-encode ``qt``, optional ``z``, then the parameters sorted by key."""
    pairs: list[tuple[str, str]] = [("qt", str(queue_time_ms))]
    if cache_buster_value is not None:
        pairs.append(("z", cache_buster_value))
    pairs.extend((key, parameters[key]) for key in sorted(parameters) if key not in _SEND_TIME_KEYS)
    return urlencode(pairs, quote_via=quote)


def build_hit_request(
    hit: Hit,
    *,
    now: float,
    debug: bool,
    secure: bool,
    post_data: bool,
    bust_cache: bool,
    user_agent: str,
) -> HitRequest:
    """Build the POST or GET exchange for *hit* as of monotonic time *now*."""
    endpoint = select_endpoint(debug=debug, secure=secure)
    payload = encode_payload(
        hit.parameters,
        queue_time_ms=hit.queue_time_ms(now),
        cache_buster_value=cache_buster() if bust_cache else None,
    )

    headers: dict[str, str] = {}
    if user_agent:
        headers["User-Agent"] = user_agent

    if post_data:
        body = payload.encode("utf-8")
        headers["Content-Type"] = FORM_CONTENT_TYPE
        headers["Content-Length"] = str(len(body))
        return HitRequest(method="POST", url=endpoint, body=body, headers=headers)

    return HitRequest(method="GET", url=f"{endpoint}?{payload}", headers=headers)
