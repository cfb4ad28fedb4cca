"""Per-property hit defaults.

A :class:`Tracker` holds the values that go out with every hit for one
tracking property (client id, app identity, geometry, overrides) and an
ad-hoc key/value store.  :meth:`Tracker.send` merges them with the call
parameters and hands the result to the analytics manager.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Protocol

from pyanalytics._constants import PROTOCOL_VERSION
from pyanalytics._signals import Subscription
from pyanalytics.hit_builder import HitBuilder
from pyanalytics.models.dimensions import Dimensions
from pyanalytics.platform_info import GeometryChange, PlatformInfo

_logger = logging.getLogger(__name__)


class HitSink(Protocol):
    """Anything that accepts send-ready hit parameters."""

    def enqueue_hit(self, params: Mapping[str, str]) -> None:
        ...


class Tracker:
    """Hit factory bound to one tracking property id.

    Trackers are normally obtained through
    :meth:`pyanalytics.manager.AnalyticsManager.create_tracker`.

    Merge precedence in :meth:`send`, lowest to highest:

    1. protocol fields (``v``, ``tid``, ``cid``, ``an``, ``av``)
    2. populated typed attributes (``aid``, ``cd``, ``sr``, ``ul``, ...)
    3. values stored with :meth:`set_value`
    4. the parameters passed to :meth:`send`
    """

    def __init__(
        self,
        property_id: str,
        platform_info: PlatformInfo | None,
        sink: HitSink,
    ) -> None:
        self._property_id = property_id
        self._platform_info = platform_info
        self._sink = sink
        self._data: dict[str, str] = {}
        self._subscription: Subscription | None = None
        self._closed = False

        self.anonymize_ip: bool = False
        self.client_id: str = ""
        self.ip_override: str = ""
        self.user_agent_override: str = ""
        self.location_override: str = ""
        self.screen_resolution: Dimensions = Dimensions()
        self.viewport_size: Dimensions = Dimensions()
        self.encoding: str = ""
        self.screen_colors: int = 0
        self.language: str = ""
        self.screen_name: str = ""
        self.app_name: str = ""
        self.app_id: str = ""
        self.app_version: str = ""
        self.app_installer_id: str = ""

        if platform_info is not None:
            self.client_id = platform_info.get_anonymous_client_id()
            self.screen_colors = platform_info.get_screen_color_depth()
            self.screen_resolution = platform_info.get_screen_resolution()
            self.viewport_size = platform_info.get_viewport_resolution()
            self.language = platform_info.get_user_language()
            self._subscription = platform_info.subscribe_geometry_changed(self._on_geometry_changed)

    @property
    def property_id(self) -> str:
        """Tracking / web property id (``tid``)."""
        return self._property_id

    @property
    def is_closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Ad-hoc values
    # ------------------------------------------------------------------

    def get_value(self, key: str) -> str | None:
        return self._data.get(key)

    def set_value(self, key: str, value: str | None) -> None:
        """Store *value* under *key* for all subsequent hits.

        ``None`` removes the key so it is no longer sent.
        """
        if value is None:
            self._data.pop(key, None)
            return
        self._data[key] = value

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    def send(self, params: Mapping[str, str] | HitBuilder) -> None:
        """Merge stored values with *params* and enqueue the hit.

        Never blocks on network I/O; delivery happens on the manager's
        event loop.
        """
        call_params = params.flatten() if isinstance(params, HitBuilder) else params
        self._sink.enqueue_hit(self.build_parameters(call_params))

    def send_screen_view(self, screen_name: str = "") -> None:
        self.send(HitBuilder.create_screen_view(screen_name))

    def send_event(self, category: str, action: str, label: str = "", value: int = 0) -> None:
        self.send(HitBuilder.create_custom_event(category, action, label, value))

    def send_exception(self, description: str = "", is_fatal: bool = True) -> None:
        self.send(HitBuilder.create_exception(description, is_fatal))

    def send_timing(self, category: str = "", variable: str = "", time_ms: int = 0, label: str = "") -> None:
        self.send(HitBuilder.create_timing(category, variable, time_ms, label))

    def build_parameters(self, params: Mapping[str, str]) -> dict[str, str]:
        """Flat parameter mapping for one hit (see class docstring for precedence)."""
        result: dict[str, str] = {
            "v": PROTOCOL_VERSION,
            "tid": self._property_id,
            "cid": self.client_id,
            "an": self.app_name,
            "av": self.app_version,
        }

        optional: dict[str, str] = {
            "aid": self.app_id,
            "aiid": self.app_installer_id,
            "cd": self.screen_name,
            "aip": "1" if self.anonymize_ip else "",
            "sr": "" if self.screen_resolution.is_empty else self.screen_resolution.to_param(),
            "vp": "" if self.viewport_size.is_empty else self.viewport_size.to_param(),
            "sd": f"{self.screen_colors}-bits" if self.screen_colors else "",
            "ul": self.language,
            "de": self.encoding,
            "uip": self.ip_override,
            "ua": self.user_agent_override,
            "geoid": self.location_override,
        }
        result.update({key: value for key, value in optional.items() if value})

        result.update(self._data)
        result.update(params)
        return result

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Detach from platform geometry notifications."""
        self._closed = True
        subscription = self._subscription
        self._subscription = None
        if subscription is not None:
            subscription.unsubscribe()

    def _on_geometry_changed(self, change: GeometryChange) -> None:
        platform_info = self._platform_info
        if platform_info is None:
            return
        if change == GeometryChange.SCREEN:
            self.screen_resolution = platform_info.get_screen_resolution()
        else:
            self.viewport_size = platform_info.get_viewport_resolution()
        _logger.debug("Tracker %s geometry refreshed (%s)", self._property_id, change)

    def __repr__(self) -> str:
        return f"Tracker(property_id={self._property_id!r})"
