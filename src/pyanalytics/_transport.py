"""HTTP transport for hit delivery."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol

import aiohttp

from pyanalytics.exceptions import AnalyticsTransportError

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransportResponse:
    """Successful (2xx) reply from the collection endpoint."""

    status: int
    text: str


class Transport(Protocol):
    """Structural transport interface used by the analytics manager.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`AiohttpTransport`) concrete.
    Implementations return only for 2xx replies and raise
    :class:`AnalyticsTransportError` for everything else, carrying the
    status code and reply body when the server answered.
    """

    async def send(
        self,
        method: str,
        url: str,
        *,
        body: bytes | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> TransportResponse:
        ...


def _strip_query(url: str) -> str:
    # GET URLs carry the whole hit, including the client id.
    return url.split("?", 1)[0]


class AiohttpTransport:
    """Transport backed by an :class:`aiohttp.ClientSession`."""

    def __init__(self, http_session: aiohttp.ClientSession, *, timeout: float = 10.0) -> None:
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def send(
        self,
        method: str,
        url: str,
        *,
        body: bytes | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> TransportResponse:
        endpoint = _strip_query(url)
        _logger.debug("%s %s", method, endpoint)

        try:
            async with self._http.request(
                method,
                url,
                data=body,
                headers=dict(headers or {}),
                timeout=self._timeout,
            ) as resp:
                text = await resp.text(errors="replace")
                status = resp.status
        except aiohttp.ClientError as exc:
            raise AnalyticsTransportError(
                f"Request to {endpoint} failed: {exc}",
                url=endpoint,
            ) from exc
        except TimeoutError as exc:
            raise AnalyticsTransportError(
                f"Request to {endpoint} timed out after {self._timeout.total}s",
                url=endpoint,
            ) from exc

        if not 200 <= status <= 299:
            raise AnalyticsTransportError(
                f"HTTP {status} from {endpoint}: {text[:200]}",
                status_code=status,
                url=endpoint,
                response_text=text,
            )
        return TransportResponse(status=status, text=text)
