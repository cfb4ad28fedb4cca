from __future__ import annotations

import re
from pathlib import Path

import pytest

from pyanalytics import __version__
from pyanalytics.models.dimensions import Dimensions
from pyanalytics.platform_info import DefaultPlatformInfo, GeometryChange, generate_client_id
from pyanalytics.preferences import JsonFilePreferenceStore, MemoryPreferenceStore


def test_generate_client_id_format() -> None:
    assert generate_client_id(now=1_700_000_000.5).startswith("1700000000.")
    assert re.fullmatch(r"\d{10}\.\d{10}", generate_client_id())


def test_client_id_is_persisted_and_reused() -> None:
    store = MemoryPreferenceStore()

    first = DefaultPlatformInfo(store).get_anonymous_client_id()
    second = DefaultPlatformInfo(store).get_anonymous_client_id()

    assert first == second
    assert store.load("AnonymousClientId") == first


def test_client_id_survives_unwritable_store(tmp_path: Path) -> None:
    info = DefaultPlatformInfo(JsonFilePreferenceStore(tmp_path))

    client_id = info.get_anonymous_client_id()

    assert client_id
    assert info.get_anonymous_client_id() == client_id


def test_user_agent_mentions_app_and_library() -> None:
    info = DefaultPlatformInfo(app_name="Demo", app_version="2.1")

    user_agent = info.get_user_agent()

    assert user_agent.startswith("Demo/2.1 (")
    assert f"pyanalytics/{__version__}" in user_agent
    assert "Python/" in user_agent


def test_geometry_change_notifications() -> None:
    info = DefaultPlatformInfo(screen_colors=24)
    changes: list[GeometryChange] = []
    subscription = info.subscribe_geometry_changed(changes.append)

    info.set_screen_resolution(Dimensions(1920, 1080))
    info.set_screen_resolution(Dimensions(1920, 1080))
    info.set_viewport_resolution(Dimensions(800, 600))
    subscription.unsubscribe()
    info.set_viewport_resolution(Dimensions(1024, 768))

    assert changes == [GeometryChange.SCREEN, GeometryChange.VIEWPORT]
    assert info.get_screen_resolution() == Dimensions(1920, 1080)
    assert info.get_viewport_resolution() == Dimensions(1024, 768)
    assert info.get_screen_color_depth() == 24
    assert subscription.active is False


def test_user_language_comes_from_process_locale(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("pyanalytics.platform_info.locale.getlocale", lambda: ("de_DE", "UTF-8"))

    assert DefaultPlatformInfo().get_user_language() == "de_DE"
