"""Queued hit value object."""

from __future__ import annotations

import time
from collections.abc import Mapping
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Hit(BaseModel):
    """A flattened, send-ready hit.

    Parameters
    ----------
    parameters : Mapping[str, str]
        Final wire parameters (``v``, ``tid``, ``cid``, ``t``, ...).
        Stored as a read-only view over a private copy.
    created_at : float
        Monotonic timestamp (``time.monotonic()``) when the hit was
        created.  Used to compute the ``qt`` queue time at send.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
    )

    parameters: Mapping[str, str] = Field(default_factory=dict)
    created_at: float = Field(default_factory=time.monotonic)

    @field_validator("parameters")
    @classmethod
    def _read_only_parameters(cls, value: Mapping[str, str]) -> Mapping[str, str]:
        # A failed head hit is re-sent as-is; callbacks must not alter it.
        return MappingProxyType(dict(value))

    @property
    def hit_type(self) -> str | None:
        """The ``t`` discriminator, if present."""
        return self.parameters.get("t")

    def queue_time_ms(self, now: float | None = None) -> int:
        """Milliseconds between creation and *now* (never negative)."""
        if now is None:
            now = time.monotonic()
        return max(0, int((now - self.created_at) * 1000))
