"""Key/value preference stores.

The manager persists the opt-out flag and the platform layer persists the
anonymous client id through the :class:`PreferenceStore` protocol.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Protocol

from pyanalytics._constants import PREFERENCES_GROUP
from pyanalytics.exceptions import AnalyticsPreferenceError

_logger = logging.getLogger(__name__)


class PreferenceStore(Protocol):
    """Structural interface for persisted preferences."""

    def load(self, key: str, default: Any = None) -> Any:
        ...

    def save(self, key: str, value: Any) -> None:
        ...


class MemoryPreferenceStore:
    """Process-lifetime store; nothing survives a restart."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = dict(initial or {})

    def load(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def save(self, key: str, value: Any) -> None:
        self._values[key] = value


class JsonFilePreferenceStore:
    """Preferences kept in a JSON file, grouped under a single object key.

    File layout::

        {"GoogleAnalytics": {"AppOptOut": false, "AnonymousClientId": "..."}}

    Other top-level groups in the file are preserved on save.
    """

    def __init__(self, path: str | Path, *, group: str = PREFERENCES_GROUP) -> None:
        self._path = Path(path).expanduser()
        self._group = group

    @property
    def path(self) -> Path:
        return self._path

    def _read_document(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            document = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            _logger.warning("Ignoring unreadable preferences file %s: %s", self._path, exc)
            return {}
        if not isinstance(document, dict):
            _logger.warning("Ignoring preferences file %s: top level is not an object", self._path)
            return {}
        return document

    def load(self, key: str, default: Any = None) -> Any:
        group = self._read_document().get(self._group)
        if not isinstance(group, dict):
            return default
        return group.get(key, default)

    def save(self, key: str, value: Any) -> None:
        document = self._read_document()
        group = document.get(self._group)
        if not isinstance(group, dict):
            group = {}
        group[key] = value
        document[self._group] = group
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(document, indent=2, sort_keys=True), encoding="utf-8")
        except OSError as exc:
            raise AnalyticsPreferenceError(f"Failed to persist {key!r} to {self._path}: {exc}") from exc
