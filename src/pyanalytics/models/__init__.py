"""Value objects used across pyanalytics."""

from pyanalytics.models.dimensions import Dimensions
from pyanalytics.models.events import HitFailed, HitMalformed, HitSent
from pyanalytics.models.hit import Hit
from pyanalytics.models.requests import CustomIndexRequest, PropertyRequest

__all__ = [
    "CustomIndexRequest",
    "Dimensions",
    "Hit",
    "HitFailed",
    "HitMalformed",
    "HitSent",
    "PropertyRequest",
]
