"""Network connectivity sources for ``auto_track_network_connectivity``."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from pyanalytics._signals import Signal, Subscription


class ConnectivityMonitor(Protocol):
    """Structural interface for an online/offline state source."""

    def is_online(self) -> bool:
        ...

    def subscribe(self, callback: Callable[[bool], None]) -> Subscription:
        ...


class StaticConnectivityMonitor:
    """Connectivity state pushed by the host application.

    Hosts that already observe the network (a GUI toolkit, a health
    check loop) call :meth:`set_online`; subscribers are notified only
    on actual transitions.
    """

    def __init__(self, online: bool = True) -> None:
        self._online = online
        self._changed: Signal[bool] = Signal()

    def is_online(self) -> bool:
        return self._online

    def set_online(self, online: bool) -> None:
        if online == self._online:
            return
        self._online = online
        self._changed.emit(online)

    def subscribe(self, callback: Callable[[bool], None]) -> Subscription:
        return self._changed.subscribe(callback)
