"""Delivery notifications emitted by the analytics manager.

Every exchange for the head hit ends in exactly one of these events.
"""

from __future__ import annotations

from dataclasses import dataclass

from pyanalytics.models.hit import Hit


@dataclass(frozen=True)
class HitSent:
    """The collection endpoint accepted the hit (2xx)."""

    hit: Hit
    status_code: int
    response: str


@dataclass(frozen=True)
class HitFailed:
    """Network failure, timeout or server error (5xx).  The hit stays queued."""

    hit: Hit
    error_message: str
    status_code: int | None = None


@dataclass(frozen=True)
class HitMalformed:
    """The endpoint rejected the request (4xx).  The hit stays queued.

    ``response`` is the reply body sent with the rejection.
    """

    hit: Hit
    status_code: int
    response: str = ""
