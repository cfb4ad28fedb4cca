"""Pydantic request models for public entrypoints.

These models provide a consistent "validate → normalize → execute" flow.
They are used internally by :class:`pyanalytics.manager.AnalyticsManager`
and :class:`pyanalytics.hit_builder.HitBuilder`.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PropertyRequest(BaseModel):
    """Request containing a tracking property id (``UA-XXXX-Y``)."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
        str_strip_whitespace=True,
    )

    property_id: str

    @field_validator("property_id")
    @classmethod
    def _property_id_non_empty(cls, value: str) -> str:
        property_id = value.strip()
        if not property_id:
            raise ValueError("property_id must be non-empty")
        return property_id


class CustomIndexRequest(BaseModel):
    """Custom dimension / metric slot."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    index: int = Field(ge=1)
