from __future__ import annotations

from pyanalytics._signals import Signal
from pyanalytics.connectivity import StaticConnectivityMonitor


def test_monitor_notifies_only_on_transitions() -> None:
    monitor = StaticConnectivityMonitor(online=True)
    seen: list[bool] = []
    monitor.subscribe(seen.append)

    monitor.set_online(True)
    monitor.set_online(False)
    monitor.set_online(False)
    monitor.set_online(True)

    assert seen == [False, True]
    assert monitor.is_online() is True


def test_signal_listener_failure_does_not_stop_others() -> None:
    signal: Signal[int] = Signal()
    seen: list[int] = []

    def _broken(_value: int) -> None:
        raise RuntimeError("listener failure")

    signal.subscribe(_broken)
    subscription = signal.subscribe(seen.append)
    signal.emit(1)
    subscription.unsubscribe()
    subscription.unsubscribe()
    signal.emit(2)

    assert seen == [1]
    assert len(signal) == 1
