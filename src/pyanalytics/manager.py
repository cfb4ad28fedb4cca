"""Hit dispatch queue and process-wide entry point.

:class:`AnalyticsManager` owns the pending-hit queue, the HTTP transport,
the opt-out gate and the tracker registry.  Hits are delivered strictly in
FIFO order with at most one network exchange in flight.  A failed exchange
leaves the head hit queued; see :meth:`AnalyticsManager.flush` and
:meth:`AnalyticsManager.discard_pending_hit`.

All queue state lives on the event loop the manager was entered on.
:meth:`AnalyticsManager.enqueue_hit` may be called from any thread and
hands the hit over to that loop.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections import deque
from collections.abc import Callable, Mapping
from functools import lru_cache
from typing import Any, TypeVar

import aiohttp

from pyanalytics._constants import KEY_APP_OPT_OUT
from pyanalytics._redact import redact_for_log
from pyanalytics._signals import Subscription
from pyanalytics._transport import AiohttpTransport, Transport
from pyanalytics._wire import build_hit_request
from pyanalytics.config import AnalyticsConfig
from pyanalytics.connectivity import ConnectivityMonitor
from pyanalytics.exceptions import AnalyticsConfigError, AnalyticsError, AnalyticsTransportError
from pyanalytics.models.events import HitFailed, HitMalformed, HitSent
from pyanalytics.models.hit import Hit
from pyanalytics.models.requests import PropertyRequest
from pyanalytics.platform_info import DefaultPlatformInfo, PlatformInfo
from pyanalytics.preferences import JsonFilePreferenceStore, MemoryPreferenceStore, PreferenceStore
from pyanalytics.tracker import Tracker

_logger = logging.getLogger(__name__)

E = TypeVar("E")


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class AnalyticsManager:
    """Async hit dispatcher.

    Usage::

        async with AnalyticsManager(AnalyticsConfig(app_name="demo")) as manager:
            tracker = manager.create_tracker("UA-12345-1")
            tracker.send_screen_view("Home")
            await manager.flush()

    Hits enqueued before the manager is entered are kept and sent once it
    is.  Leaving the context cancels an in-flight exchange; call
    :meth:`flush` first to wait for delivery.

    Parameters
    ----------
    config : AnalyticsConfig or None
        Initial switches, app identity and retry policy.
    platform_info : PlatformInfo or None
        Source of client id, geometry, language and user agent.
        Defaults to :class:`~pyanalytics.platform_info.DefaultPlatformInfo`.
    preferences : PreferenceStore or None
        Store for the opt-out flag.  Defaults to a JSON file when
        ``config.preferences_path`` is set, memory otherwise.
    transport : Transport or None
        Hit transport.  Defaults to :class:`AiohttpTransport` over
        *session*.
    session : aiohttp.ClientSession or None
        Externally owned HTTP session; not closed on exit.
    connectivity : ConnectivityMonitor or None
        Required for ``auto_track_network_connectivity``.
    on_hit_sent, on_hit_failed, on_hit_malformed : callable or None
        Delivery notifications, called on the event loop.
    clock : callable
        Monotonic clock used for hit creation and queue time.
    """

    def __init__(
        self,
        config: AnalyticsConfig | None = None,
        *,
        platform_info: PlatformInfo | None = None,
        preferences: PreferenceStore | None = None,
        transport: Transport | None = None,
        session: aiohttp.ClientSession | None = None,
        connectivity: ConnectivityMonitor | None = None,
        on_hit_sent: Callable[[HitSent], None] | None = None,
        on_hit_failed: Callable[[HitFailed], None] | None = None,
        on_hit_malformed: Callable[[HitMalformed], None] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config if config is not None else AnalyticsConfig()
        if preferences is None:
            if self._config.preferences_path:
                preferences = JsonFilePreferenceStore(self._config.preferences_path)
            else:
                preferences = MemoryPreferenceStore()
        self._preferences = preferences
        if platform_info is None:
            platform_info = DefaultPlatformInfo(
                preferences,
                app_name=self._config.app_name,
                app_version=self._config.app_version,
            )
        self._platform_info = platform_info

        self._external_session = session is not None
        self._http_session = session
        self._transport = transport
        self._owns_transport = transport is None
        self._clock = clock

        self._on_hit_sent = on_hit_sent
        self._on_hit_failed = on_hit_failed
        self._on_hit_malformed = on_hit_malformed

        self._is_enabled = self._config.enabled
        self.is_secure: bool = self._config.secure
        self.is_debug: bool = self._config.debug
        self.post_data: bool = self._config.post_data
        self.bust_cache: bool = self._config.bust_cache

        self._connectivity = connectivity
        self._auto_track = False
        self._connectivity_subscription: Subscription | None = None

        self._app_opt_out: bool | None = None

        self._queue: deque[Hit] = deque()
        self._is_sending = False
        self._consecutive_failures = 0
        self._loop: asyncio.AbstractEventLoop | None = None
        self._drain_task: asyncio.Task[None] | None = None
        self._retry_handle: asyncio.TimerHandle | None = None

        self._trackers: dict[str, Tracker] = {}
        self._default_tracker: Tracker | None = None

        if self._config.auto_track_network_connectivity:
            self.auto_track_network_connectivity = True

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> AnalyticsManager:
        self._loop = asyncio.get_running_loop()
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = AiohttpTransport(self._http_session, timeout=self._config.request_timeout)
        self._kick()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self._cancel_retry()
        task = self._drain_task
        self._drain_task = None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        if self._owns_transport:
            self._transport = None
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._loop = None

    # ------------------------------------------------------------------
    # Configuration switches
    # ------------------------------------------------------------------

    @property
    def config(self) -> AnalyticsConfig:
        return self._config

    @property
    def is_enabled(self) -> bool:
        """Whether queued hits are delivered.  Disabled managers still queue."""
        return self._is_enabled

    @is_enabled.setter
    def is_enabled(self, value: bool) -> None:
        self._is_enabled = value
        if value:
            self._request_send()

    @property
    def auto_track_network_connectivity(self) -> bool:
        return self._auto_track

    @auto_track_network_connectivity.setter
    def auto_track_network_connectivity(self, value: bool) -> None:
        if value == self._auto_track:
            return
        if value:
            monitor = self._connectivity
            if monitor is None:
                raise AnalyticsConfigError("auto_track_network_connectivity requires a connectivity monitor")
            self._auto_track = True
            self.is_enabled = monitor.is_online()
            self._connectivity_subscription = monitor.subscribe(self._on_online_state_changed)
        else:
            self._auto_track = False
            subscription = self._connectivity_subscription
            self._connectivity_subscription = None
            if subscription is not None:
                subscription.unsubscribe()
            self.is_enabled = True

    def _on_online_state_changed(self, online: bool) -> None:
        _logger.debug("Network connectivity changed online=%s", online)
        self.is_enabled = online

    @property
    def app_opt_out(self) -> bool:
        """User opt-out; loaded from the preference store on first access."""
        if self._app_opt_out is None:
            self._app_opt_out = bool(self._preferences.load(KEY_APP_OPT_OUT, False))
        return self._app_opt_out

    @app_opt_out.setter
    def app_opt_out(self, value: bool) -> None:
        self._app_opt_out = value
        self._preferences.save(KEY_APP_OPT_OUT, value)

    # ------------------------------------------------------------------
    # Trackers
    # ------------------------------------------------------------------

    @property
    def platform_info(self) -> PlatformInfo:
        return self._platform_info

    @property
    def default_tracker(self) -> Tracker | None:
        return self._default_tracker

    @property
    def trackers(self) -> dict[str, Tracker]:
        return dict(self._trackers)

    def create_tracker(self, property_id: str) -> Tracker:
        """Return the tracker for *property_id*, creating it on first use.

        The first tracker created becomes :attr:`default_tracker`.
        """
        request = PropertyRequest(property_id=property_id)
        tracker = self._trackers.get(request.property_id)
        if tracker is not None:
            return tracker

        tracker = Tracker(request.property_id, self._platform_info, self)
        tracker.app_name = self._config.app_name
        tracker.app_version = self._config.app_version

        self._trackers[request.property_id] = tracker
        if self._default_tracker is None:
            self._default_tracker = tracker
        return tracker

    def close_tracker(self, tracker: Tracker) -> None:
        self._trackers.pop(tracker.property_id, None)
        if self._default_tracker is tracker:
            self._default_tracker = None
        tracker.close()

    # ------------------------------------------------------------------
    # Queue
    # ------------------------------------------------------------------

    @property
    def pending_hits(self) -> int:
        return len(self._queue)

    @property
    def is_sending(self) -> bool:
        return self._is_sending

    def enqueue_hit(self, params: Mapping[str, str]) -> None:
        """Queue a hit for delivery.  Never blocks and never raises.

        Dropped silently when the user opted out.
        """
        if self.app_opt_out:
            _logger.debug("App opt-out set; dropping hit")
            return

        parameters = {str(key): str(value) for key, value in params.items() if value is not None}
        hit = Hit(parameters=parameters, created_at=self._clock())

        loop = self._loop
        if loop is None or _running_loop() is loop:
            self._append_hit(hit)
            return
        try:
            loop.call_soon_threadsafe(self._append_hit, hit)
        except RuntimeError:
            # Loop already closed; keep the hit for a later session.
            _logger.debug("Event loop closed; hit queued without dispatch")
            self._queue.append(hit)

    def discard_pending_hit(self) -> Hit | None:
        """Remove and return the head hit, e.g. one the endpoint keeps rejecting.

        The next hit (if any) is sent right away.
        """
        if self._is_sending:
            raise AnalyticsError("Cannot discard the head hit while it is being sent")
        if not self._queue:
            return None
        hit = self._queue.popleft()
        _logger.warning("Discarded pending %s hit", hit.hit_type)
        self._consecutive_failures = 0
        self._cancel_retry()
        self._kick()
        return hit

    async def flush(self) -> int:
        """Start a send attempt if idle and wait for the drain to stop.

        Also serves as a manual retry after failures.  Returns the number
        of hits still queued (non-zero after a failed exchange or while
        disabled).
        """
        if self._loop is None:
            raise AnalyticsError("Manager not started. Use 'async with AnalyticsManager(...) as manager:'")
        self._kick()
        task = self._drain_task
        if task is not None and not task.done():
            await asyncio.shield(task)
        return len(self._queue)

    def _append_hit(self, hit: Hit) -> None:
        self._queue.append(hit)
        _logger.debug("Queued %s hit (%d pending)", hit.hit_type, len(self._queue))
        self._kick()

    def _request_send(self) -> None:
        loop = self._loop
        if loop is None:
            return
        if _running_loop() is loop:
            self._kick()
        else:
            loop.call_soon_threadsafe(self._kick)

    def _kick(self) -> None:
        """Idle -> Sending transition.  Must run on the owning loop."""
        if self._is_sending or not self._queue or not self._is_enabled:
            return
        loop = self._loop
        transport = self._transport
        if loop is None or transport is None:
            return
        self._cancel_retry()
        self._is_sending = True
        self._drain_task = loop.create_task(self._drain(transport))

    async def _drain(self, transport: Transport) -> None:
        try:
            while self._queue and self._is_enabled:
                hit = self._queue[0]
                if not await self._send_hit(transport, hit):
                    self._schedule_retry()
                    return
                self._consecutive_failures = 0
                if self._queue and self._queue[0] is hit:
                    self._queue.popleft()
        finally:
            self._is_sending = False

    async def _send_hit(self, transport: Transport, hit: Hit) -> bool:
        try:
            request = build_hit_request(
                hit,
                now=self._clock(),
                debug=self.is_debug,
                secure=self.is_secure,
                post_data=self.post_data,
                bust_cache=self.bust_cache,
                user_agent=self._platform_info.get_user_agent(),
            )
            _logger.debug("%s hit %s", request.method, redact_for_log(hit.parameters))
            response = await transport.send(
                request.method,
                request.url,
                body=request.body,
                headers=request.headers,
            )
        except AnalyticsTransportError as exc:
            _logger.warning("Error sending hit: %s", exc)
            status = exc.status_code
            if status is not None and 400 <= status <= 499:
                malformed = HitMalformed(hit=hit, status_code=status, response=exc.response_text)
                self._notify(self._on_hit_malformed, malformed)
            else:
                self._notify(self._on_hit_failed, HitFailed(hit=hit, error_message=str(exc), status_code=status))
            return False
        except Exception as exc:
            _logger.warning("Unexpected failure sending hit", exc_info=True)
            self._notify(self._on_hit_failed, HitFailed(hit=hit, error_message=repr(exc)))
            return False

        _logger.debug("Hit sent status=%d", response.status)
        self._notify(self._on_hit_sent, HitSent(hit=hit, status_code=response.status, response=response.text))
        return True

    # ------------------------------------------------------------------
    # Retry policy
    # ------------------------------------------------------------------

    def _schedule_retry(self) -> None:
        self._consecutive_failures += 1
        failures = self._consecutive_failures
        if failures > self._config.max_retries:
            level = logging.WARNING if failures == self._config.max_retries + 1 else logging.DEBUG
            _logger.log(
                level,
                "No timed retry after %d consecutive failures; %d hits wait for the next enqueue or flush",
                failures,
                len(self._queue),
            )
            return
        loop = self._loop
        if loop is None:
            return
        delay = min(self._config.retry_backoff * 2 ** (failures - 1), self._config.retry_backoff_max)
        _logger.debug("Retrying head hit in %.2fs (failure %d)", delay, failures)
        self._retry_handle = loop.call_later(delay, self._on_retry_timer)

    def _on_retry_timer(self) -> None:
        self._retry_handle = None
        self._kick()

    def _cancel_retry(self) -> None:
        handle = self._retry_handle
        self._retry_handle = None
        if handle is not None:
            handle.cancel()

    @staticmethod
    def _notify(callback: Callable[[E], None] | None, event: E) -> None:
        if callback is None:
            return
        try:
            callback(event)
        except Exception:
            _logger.debug("Delivery callback failed", exc_info=True)


@lru_cache(maxsize=1)
def current() -> AnalyticsManager:
    """Process-wide manager, created on first use from :meth:`AnalyticsConfig.from_env`.

    Applications that want isolation (tests, several configurations)
    construct :class:`AnalyticsManager` directly instead.
    """
    return AnalyticsManager(AnalyticsConfig.from_env())
