"""Masking of identifying hit parameters for debug logs."""

from __future__ import annotations

from collections.abc import Mapping

_IDENTIFYING_KEYS: frozenset[str] = frozenset({"cid", "uid", "uip", "ua", "geoid"})


def redact_for_log(parameters: Mapping[str, str], *, max_string: int = 256) -> dict[str, str]:
    """Copy of *parameters* with identifying values masked and long values truncated."""
    redacted: dict[str, str] = {}
    for key, value in parameters.items():
        if key in _IDENTIFYING_KEYS:
            redacted[key] = "<redacted>"
        elif len(value) > max_string:
            redacted[key] = f"{value[:max_string]}…<truncated>"
        else:
            redacted[key] = value
    return redacted
