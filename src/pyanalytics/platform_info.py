"""Platform/device facts consumed by trackers.

Trackers read client id, geometry, color depth, language and user agent
through the :class:`PlatformInfo` protocol.  :class:`DefaultPlatformInfo`
derives what it can from the Python process; screen and viewport geometry
are supplied by the host (e.g. a GUI toolkit's resize handler).
"""

from __future__ import annotations

import locale
import logging
import platform
import secrets
import time
from collections.abc import Callable
from enum import StrEnum
from typing import Protocol

from pyanalytics._constants import KEY_ANONYMOUS_CLIENT_ID
from pyanalytics._signals import Signal, Subscription
from pyanalytics.exceptions import AnalyticsPreferenceError
from pyanalytics.models.dimensions import Dimensions
from pyanalytics.preferences import MemoryPreferenceStore, PreferenceStore

_logger = logging.getLogger(__name__)


class GeometryChange(StrEnum):
    SCREEN = "screen"
    VIEWPORT = "viewport"


class PlatformInfo(Protocol):
    """Structural interface for platform facts."""

    def get_anonymous_client_id(self) -> str:
        ...

    def get_screen_resolution(self) -> Dimensions:
        ...

    def get_viewport_resolution(self) -> Dimensions:
        ...

    def get_screen_color_depth(self) -> int:
        ...

    def get_user_language(self) -> str:
        ...

    def get_user_agent(self) -> str:
        ...

    def subscribe_geometry_changed(self, callback: Callable[[GeometryChange], None]) -> Subscription:
        ...


def generate_client_id(now: float | None = None) -> str:
    """Anonymous id in the ``<epoch seconds>.<random>`` format used by analytics.js."""
    if now is None:
        now = time.time()
    return f"{int(now) % 10**10:010d}.{secrets.randbits(32):010d}"


def _system_info() -> str:
    system = platform.system() or "Unknown OS"
    release = platform.release()
    return f"{system} {release}".strip()


def _process_language() -> str:
    language, _encoding = locale.getlocale()
    return language or ""


class DefaultPlatformInfo:
    """Platform facts for a plain Python process.

    Parameters
    ----------
    preferences : PreferenceStore or None
        Store used to persist the anonymous client id.  Defaults to an
        in-memory store (a fresh id per process).
    app_name, app_version : str
        Used in the generated user agent.
    screen_colors : int
        Screen color depth in bits, ``0`` when unknown.
    """

    def __init__(
        self,
        preferences: PreferenceStore | None = None,
        *,
        app_name: str = "",
        app_version: str = "",
        screen_colors: int = 0,
    ) -> None:
        self._preferences = preferences if preferences is not None else MemoryPreferenceStore()
        self._app_name = app_name
        self._app_version = app_version
        self._screen_colors = screen_colors
        self._client_id: str | None = None
        self._screen_resolution = Dimensions()
        self._viewport_resolution = Dimensions()
        self._geometry_changed: Signal[GeometryChange] = Signal()

    def get_anonymous_client_id(self) -> str:
        if self._client_id:
            return self._client_id

        stored = self._preferences.load(KEY_ANONYMOUS_CLIENT_ID, None)
        if isinstance(stored, str) and stored:
            self._client_id = stored
            return stored

        client_id = generate_client_id()
        self._client_id = client_id
        try:
            self._preferences.save(KEY_ANONYMOUS_CLIENT_ID, client_id)
        except AnalyticsPreferenceError as exc:
            _logger.warning("Client id not persisted, using it for this process only: %s", exc)
        return client_id

    def get_screen_resolution(self) -> Dimensions:
        return self._screen_resolution

    def get_viewport_resolution(self) -> Dimensions:
        return self._viewport_resolution

    def get_screen_color_depth(self) -> int:
        return self._screen_colors

    def get_user_language(self) -> str:
        return _process_language()

    def get_user_agent(self) -> str:
        from pyanalytics import __version__

        app = f"{self._app_name or 'python'}/{self._app_version or '0'}"
        return (
            f"{app} ({_system_info()}; {self.get_user_language() or 'unknown'}) "
            f"pyanalytics/{__version__} (Python/{platform.python_version()})"
        )

    def set_screen_resolution(self, value: Dimensions) -> None:
        if value == self._screen_resolution:
            return
        self._screen_resolution = value
        self._geometry_changed.emit(GeometryChange.SCREEN)

    def set_viewport_resolution(self, value: Dimensions) -> None:
        if value == self._viewport_resolution:
            return
        self._viewport_resolution = value
        self._geometry_changed.emit(GeometryChange.VIEWPORT)

    def subscribe_geometry_changed(self, callback: Callable[[GeometryChange], None]) -> Subscription:
        return self._geometry_changed.subscribe(callback)
