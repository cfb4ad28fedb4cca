from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from pathlib import Path
from urllib.parse import parse_qsl

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from pyanalytics import AnalyticsConfig, AnalyticsManager, HitBuilder
from pyanalytics.models.events import HitMalformed, HitSent


class FakeCollector:
    """Collection endpoint double; replies with queued statuses (200 once exhausted)."""

    def __init__(self) -> None:
        self.hits: list[dict[str, str]] = []
        self.statuses: list[int] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def collect(self, request: web.Request) -> web.Response:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0.01)
            raw = (await request.read()).decode("utf-8") if request.method == "POST" else request.query_string
            self.hits.append(dict(parse_qsl(raw)))
            status = self.statuses.pop(0) if self.statuses else 200
            return web.Response(status=status, text='{"hitParsingResult": []}')
        finally:
            self.in_flight -= 1

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_route("*", "/collect", self.collect)
        return app


@pytest.fixture
def collector() -> FakeCollector:
    return FakeCollector()


@pytest_asyncio.fixture
async def collector_url(collector: FakeCollector, monkeypatch: pytest.MonkeyPatch) -> AsyncIterator[str]:
    async with TestServer(collector.app()) as server:
        url = str(server.make_url("/collect"))
        monkeypatch.setattr("pyanalytics._wire.select_endpoint", lambda *, debug, secure: url)
        yield url


@pytest.mark.e2e
@pytest.mark.asyncio
async def test_e2e_tracker_to_collector(collector: FakeCollector, collector_url: str, tmp_path: Path) -> None:
    sent: list[HitSent] = []
    config = AnalyticsConfig(
        app_name="Demo",
        app_version="1.2",
        preferences_path=str(tmp_path / "prefs.json"),
    )

    async with AnalyticsManager(config, on_hit_sent=sent.append) as manager:
        tracker = manager.create_tracker("UA-12345-1")
        tracker.screen_name = "Main"
        tracker.set_value("cd1", "beta")

        tracker.send_screen_view("Home")
        tracker.send_event("ui", "click", "ok", 3)
        tracker.send(HitBuilder.create_timing("net", "load", 120).set_custom_metric(2, 7))

        assert await manager.flush() == 0
        client_id = tracker.client_id

    assert collector.max_in_flight == 1
    assert [hit["t"] for hit in collector.hits] == ["screenview", "event", "timing"]
    assert [event.status_code for event in sent] == [200, 200, 200]

    home, click, timing = collector.hits
    assert home["cd"] == "Home"
    assert home["tid"] == "UA-12345-1"
    assert home["cid"] == client_id
    assert home["an"] == "Demo"
    assert home["av"] == "1.2"
    assert home["cd1"] == "beta"
    assert click["cd"] == "Main"
    assert click["ev"] == "3"
    assert timing["utt"] == "120"
    assert timing["cm2"] == "7"

    # The client id survives a new manager backed by the same file.
    async with AnalyticsManager(config) as second:
        assert second.create_tracker("UA-12345-1").client_id == client_id


@pytest.mark.e2e
@pytest.mark.asyncio
async def test_e2e_rejected_hit_blocks_queue_until_discarded(
    collector: FakeCollector,
    collector_url: str,
) -> None:
    collector.statuses = [400, 400]
    malformed: list[HitMalformed] = []

    async with AnalyticsManager(
        AnalyticsConfig(app_name="Demo", max_retries=0, post_data=False),
        on_hit_malformed=malformed.append,
    ) as manager:
        tracker = manager.create_tracker("UA-12345-1")
        tracker.send_exception("boom", is_fatal=False)
        tracker.send_screen_view("After")

        assert await manager.flush() == 2
        assert await manager.flush() == 2

        discarded = manager.discard_pending_hit()
        assert discarded is not None and discarded.hit_type == "exception"
        assert await manager.flush() == 0

    assert [hit["t"] for hit in collector.hits] == ["exception", "exception", "screenview"]
    assert collector.hits[0]["exd"] == "boom"
    assert collector.hits[0]["exf"] == "0"
    assert [event.status_code for event in malformed] == [400, 400]
    assert malformed[0].response == '{"hitParsingResult": []}'
