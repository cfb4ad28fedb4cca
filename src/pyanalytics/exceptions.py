"""Custom exception hierarchy for pyanalytics."""

from __future__ import annotations


class AnalyticsError(Exception):
    """Base exception for all pyanalytics errors."""


class AnalyticsConfigError(AnalyticsError):
    """Invalid or missing configuration."""


class AnalyticsPreferenceError(AnalyticsError):
    """Persisting a preference value failed."""


class AnalyticsTransportError(AnalyticsError):
    """HTTP-level failure (network error, timeout, non-2xx status)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
        response_text: str = "",
    ) -> None:
        self.status_code = status_code
        self.url = url
        self.response_text = response_text
        super().__init__(message)
