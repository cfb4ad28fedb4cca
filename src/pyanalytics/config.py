"""Client configuration for pyanalytics."""

from __future__ import annotations

import dataclasses
import os
from typing import Any


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class AnalyticsConfig:
    """Client configuration.

    These values seed the runtime switches of
    :class:`pyanalytics.manager.AnalyticsManager`; the switches themselves
    stay mutable on the manager after construction.

    Parameters
    ----------
    app_name : str
        Application name sent as ``an`` with every hit.
    app_version : str
        Application version sent as ``av`` with every hit.
    enabled : bool
        Whether queued hits are delivered.  Disabled managers keep
        queueing hits and resume delivery when re-enabled.
    secure : bool
        Use the HTTPS collection endpoints.
    debug : bool
        Use the validation (``/debug/collect``) endpoints.
    post_data : bool
        Send hits as a form-encoded POST body.  ``False`` sends a GET
        request with the payload in the query string.
    bust_cache : bool
        Add a random ``z`` parameter to every request.
    auto_track_network_connectivity : bool
        Mirror the connectivity monitor's online state into ``enabled``.
    request_timeout : float
        Total timeout in seconds for a single network exchange.
    max_retries : int
        Number of timed retries scheduled after consecutive failures.
        After that the head hit is only retried on the next enqueue or an
        explicit flush.
    retry_backoff : float
        Delay in seconds before the first timed retry.  Doubles with every
        consecutive failure.
    retry_backoff_max : float
        Upper bound for the retry delay in seconds.
    preferences_path : str or None
        JSON file used to persist the opt-out flag and client id.  ``None``
        keeps preferences in memory only.
    """

    app_name: str = ""
    app_version: str = ""
    enabled: bool = True
    secure: bool = True
    debug: bool = False
    post_data: bool = True
    bust_cache: bool = False
    auto_track_network_connectivity: bool = False
    request_timeout: float = 10.0
    max_retries: int = 5
    retry_backoff: float = 1.0
    retry_backoff_max: float = 60.0
    preferences_path: str | None = None

    @classmethod
    def from_env(cls, **overrides: Any) -> AnalyticsConfig:
        """Create configuration from environment variables.

        Reads optional ``ANALYTICS_*`` variables.  Explicit keyword
        arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        AnalyticsConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_STR_MAP = {
            "ANALYTICS_APP_NAME": "app_name",
            "ANALYTICS_APP_VERSION": "app_version",
            "ANALYTICS_PREFERENCES_PATH": "preferences_path",
        }
        _ENV_BOOL_MAP = {
            "ANALYTICS_ENABLED": ("enabled", True),
            "ANALYTICS_SECURE": ("secure", True),
            "ANALYTICS_DEBUG": ("debug", False),
            "ANALYTICS_POST_DATA": ("post_data", True),
            "ANALYTICS_BUST_CACHE": ("bust_cache", False),
            "ANALYTICS_AUTO_TRACK_NETWORK": ("auto_track_network_connectivity", False),
        }

        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        for env_key, (field_name, default) in _ENV_BOOL_MAP.items():
            if field_name not in overrides:
                config_kwargs[field_name] = _env_bool(env.get(env_key), default)

        # numeric fields, handle separately
        timeout_env = env.get("ANALYTICS_REQUEST_TIMEOUT")
        if timeout_env is not None and "request_timeout" not in overrides:
            config_kwargs["request_timeout"] = float(timeout_env)

        retries_env = env.get("ANALYTICS_MAX_RETRIES")
        if retries_env is not None and "max_retries" not in overrides:
            config_kwargs["max_retries"] = int(retries_env)

        backoff_env = env.get("ANALYTICS_RETRY_BACKOFF")
        if backoff_env is not None and "retry_backoff" not in overrides:
            config_kwargs["retry_backoff"] = float(backoff_env)

        backoff_max_env = env.get("ANALYTICS_RETRY_BACKOFF_MAX")
        if backoff_max_env is not None and "retry_backoff_max" not in overrides:
            config_kwargs["retry_backoff_max"] = float(backoff_max_env)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
