"""pyanalytics - Async measurement protocol client with an ordered hit queue."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyanalytics")
except PackageNotFoundError:
    __version__ = "0+local"
from pyanalytics._transport import AiohttpTransport, Transport, TransportResponse
from pyanalytics.config import AnalyticsConfig
from pyanalytics.connectivity import ConnectivityMonitor, StaticConnectivityMonitor
from pyanalytics.exceptions import (
    AnalyticsConfigError,
    AnalyticsError,
    AnalyticsPreferenceError,
    AnalyticsTransportError,
)
from pyanalytics.hit_builder import HitBuilder
from pyanalytics.manager import AnalyticsManager, current
from pyanalytics.models import Dimensions, Hit, HitFailed, HitMalformed, HitSent
from pyanalytics.platform_info import DefaultPlatformInfo, GeometryChange, PlatformInfo
from pyanalytics.preferences import JsonFilePreferenceStore, MemoryPreferenceStore, PreferenceStore
from pyanalytics.tracker import Tracker

__all__ = [
    "__version__",
    "AiohttpTransport",
    "AnalyticsConfig",
    "AnalyticsConfigError",
    "AnalyticsError",
    "AnalyticsManager",
    "AnalyticsPreferenceError",
    "AnalyticsTransportError",
    "ConnectivityMonitor",
    "DefaultPlatformInfo",
    "Dimensions",
    "GeometryChange",
    "Hit",
    "HitBuilder",
    "HitFailed",
    "HitMalformed",
    "HitSent",
    "JsonFilePreferenceStore",
    "MemoryPreferenceStore",
    "PlatformInfo",
    "PreferenceStore",
    "StaticConnectivityMonitor",
    "Tracker",
    "Transport",
    "TransportResponse",
    "current",
]
