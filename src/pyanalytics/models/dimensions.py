"""Screen and viewport geometry."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Dimensions:
    """Width/height pair in pixels."""

    width: int = 0
    height: int = 0

    @property
    def is_empty(self) -> bool:
        """Whether either dimension is zero."""
        return self.width == 0 or self.height == 0

    def to_param(self) -> str:
        """Wire format ``"WxH"``."""
        return f"{self.width}x{self.height}"
