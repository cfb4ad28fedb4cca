"""Minimal callback registry used for change notifications."""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Callable
from typing import Generic, TypeVar

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class Subscription:
    """Handle returned by ``subscribe``; call :meth:`unsubscribe` to detach."""

    def __init__(self, detach: Callable[[], None]) -> None:
        self._detach: Callable[[], None] | None = detach

    @property
    def active(self) -> bool:
        return self._detach is not None

    def unsubscribe(self) -> None:
        detach = self._detach
        self._detach = None
        if detach is not None:
            detach()


class Signal(Generic[T]):
    """Ordered list of listeners receiving one argument."""

    def __init__(self) -> None:
        self._listeners: list[Callable[[T], None]] = []

    def __len__(self) -> int:
        return len(self._listeners)

    def subscribe(self, callback: Callable[[T], None]) -> Subscription:
        self._listeners.append(callback)

        def _detach() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(callback)

        return Subscription(_detach)

    def emit(self, value: T) -> None:
        # Listener failures must not break the emitter.
        for callback in list(self._listeners):
            try:
                callback(value)
            except Exception:
                _logger.debug("Signal listener %r failed", callback, exc_info=True)
