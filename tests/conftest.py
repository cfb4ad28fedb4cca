from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from urllib.parse import parse_qsl, urlsplit

import pytest

from pyanalytics._transport import TransportResponse
from pyanalytics.exceptions import AnalyticsTransportError


@dataclass
class SentRequest:
    method: str
    url: str
    body: bytes | None
    headers: dict[str, str]

    @property
    def params(self) -> dict[str, str]:
        if self.body is not None:
            return dict(parse_qsl(self.body.decode("utf-8")))
        return dict(parse_qsl(urlsplit(self.url).query))


@dataclass
class FakeTransport:
    """Records exchanges; replies with queued statuses (200 once exhausted)."""

    statuses: list[int] = field(default_factory=list)
    errors: list[Exception] = field(default_factory=list)
    requests: list[SentRequest] = field(default_factory=list)
    in_flight: int = 0
    max_in_flight: int = 0

    async def send(
        self,
        method: str,
        url: str,
        *,
        body: bytes | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> TransportResponse:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            self.requests.append(SentRequest(method, url, body, dict(headers or {})))
            if self.errors:
                raise self.errors.pop(0)
            status = self.statuses.pop(0) if self.statuses else 200
            if not 200 <= status <= 299:
                raise AnalyticsTransportError(
                    f"HTTP {status}",
                    status_code=status,
                    url=url,
                    response_text=f"rejected with {status}",
                )
            return TransportResponse(status=status, text="")
        finally:
            self.in_flight -= 1

    @property
    def sent_params(self) -> list[dict[str, str]]:
        return [request.params for request in self.requests]


@dataclass
class FakeClock:
    now: float = 100.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
