"""Immutable layered builder for hit parameters.

A :class:`HitBuilder` is a persistent overlay: every ``with_*`` / ``set_*``
call returns a *new* builder whose layers are the parent's layers plus
one more.  Builders are linked to their parent rather than copying the
ancestry, so branching several hits off a common prefix shares all
ancestor layers::

    base = HitBuilder.create_custom_event("video", "play")
    a = base.with_value("el", "intro")
    b = base.set_non_interaction()

:meth:`HitBuilder.flatten` applies the layers oldest → newest; on key
collision the most recent layer wins.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType

from pyanalytics._constants import (
    HIT_TYPE_EVENT,
    HIT_TYPE_EXCEPTION,
    HIT_TYPE_SCREENVIEW,
    HIT_TYPE_TIMING,
)
from pyanalytics.models.requests import CustomIndexRequest


class HitBuilder:
    """Persistent, copy-on-write overlay of string parameters."""

    __slots__ = ("_depth", "_layer", "_parent")

    def __init__(
        self,
        layer: Mapping[str, str] | None = None,
        *,
        _parent: HitBuilder | None = None,
    ) -> None:
        self._parent = _parent
        # Private copy; callers may keep mutating the mapping they passed in.
        self._layer: Mapping[str, str] = MappingProxyType(dict(layer or {}))
        self._depth: int = 1 if _parent is None else _parent._depth + 1

    # ------------------------------------------------------------------
    # Core overlay operations
    # ------------------------------------------------------------------

    @classmethod
    def create(cls, initial_layer: Mapping[str, str] | None = None) -> HitBuilder:
        """Start a new lineage with a single layer."""
        return cls(initial_layer)

    def with_value(self, key: str, value: str) -> HitBuilder:
        """Return a new builder with ``{key: value}`` layered on top."""
        return HitBuilder({key: value}, _parent=self)

    def with_all(self, layer: Mapping[str, str]) -> HitBuilder:
        """Return a new builder with *layer* layered on top."""
        return HitBuilder(layer, _parent=self)

    def get_value(self, key: str) -> str | None:
        """Most recent value for *key*, or ``None`` when no layer sets it."""
        node: HitBuilder | None = self
        while node is not None:
            if key in node._layer:
                return node._layer[key]
            node = node._parent
        return None

    def flatten(self) -> dict[str, str]:
        """Collapse all layers into a new dict; later layers win."""
        result: dict[str, str] = {}
        for layer in self._iter_layers():
            result.update(layer)
        return result

    build = flatten

    @property
    def layers(self) -> tuple[Mapping[str, str], ...]:
        """Read-only views of every layer, oldest first."""
        return tuple(self._iter_layers())

    def __len__(self) -> int:
        return self._depth

    def __repr__(self) -> str:
        return f"HitBuilder(layers={self._depth}, params={self.flatten()!r})"

    def _iter_layers(self) -> Iterator[Mapping[str, str]]:
        chain: list[Mapping[str, str]] = []
        node: HitBuilder | None = self
        while node is not None:
            chain.append(node._layer)
            node = node._parent
        return reversed(chain)

    # ------------------------------------------------------------------
    # Hit type factories
    # ------------------------------------------------------------------

    @classmethod
    def create_screen_view(cls, screen_name: str = "") -> HitBuilder:
        data = {"t": HIT_TYPE_SCREENVIEW}
        if screen_name:
            data["cd"] = screen_name
        return cls(data)

    @classmethod
    def create_custom_event(
        cls,
        category: str,
        action: str,
        label: str = "",
        value: int = 0,
    ) -> HitBuilder:
        """Event hit.  ``el`` and ``ev`` are omitted when empty / zero."""
        data = {"t": HIT_TYPE_EVENT, "ec": category, "ea": action}
        if label:
            data["el"] = label
        if value:
            data["ev"] = str(value)
        return cls(data)

    @classmethod
    def create_exception(cls, description: str = "", is_fatal: bool = True) -> HitBuilder:
        """Exception hit.  ``exf=0`` is only sent for non-fatal exceptions."""
        data = {"t": HIT_TYPE_EXCEPTION}
        if description:
            data["exd"] = description
        if not is_fatal:
            data["exf"] = "0"
        return cls(data)

    @classmethod
    def create_timing(
        cls,
        category: str = "",
        variable: str = "",
        time_ms: int = 0,
        label: str = "",
    ) -> HitBuilder:
        data = {"t": HIT_TYPE_TIMING}
        if category:
            data["utc"] = category
        if variable:
            data["utv"] = variable
        if time_ms:
            data["utt"] = str(time_ms)
        if label:
            data["utl"] = label
        return cls(data)

    # ------------------------------------------------------------------
    # Convenience layers
    # ------------------------------------------------------------------

    def set_custom_dimension(self, index: int, dimension: str) -> HitBuilder:
        slot = CustomIndexRequest(index=index).index
        return self.with_all({f"cd{slot}": dimension})

    def set_custom_metric(self, index: int, metric: int) -> HitBuilder:
        slot = CustomIndexRequest(index=index).index
        return self.with_all({f"cm{slot}": str(metric)})

    def set_new_session(self) -> HitBuilder:
        return self.with_all({"sc": "start"})

    def set_non_interaction(self) -> HitBuilder:
        return self.with_all({"ni": "1"})
