from __future__ import annotations

import pytest

from pyanalytics.hit_builder import HitBuilder


def test_with_all_applies_extra_layer_last() -> None:
    prefix = HitBuilder.create({"a": "1", "b": "2"}).with_value("c", "3")
    extra = {"b": "20", "d": "4"}

    extended = prefix.with_all(extra)

    assert extended.flatten() == {**prefix.flatten(), **extra}
    assert extended.flatten()["b"] == "20"


def test_flatten_single_layer_returns_equal_fresh_mapping() -> None:
    layer = {"t": "event", "ec": "video"}
    builder = HitBuilder.create(layer)

    flat = builder.flatten()
    assert flat == layer
    assert flat is not layer
    assert HitBuilder.create(flat).flatten() == flat

    flat["ec"] = "changed"
    assert builder.get_value("ec") == "video"


def test_set_operations_do_not_mutate_parent() -> None:
    base = HitBuilder.create_screen_view("Home")

    child = base.with_value("cd", "Detail")

    assert base.get_value("cd") == "Home"
    assert child.get_value("cd") == "Detail"
    assert len(base) == 1
    assert len(child) == 2


def test_branches_share_common_prefix_layers() -> None:
    base = HitBuilder.create_custom_event("video", "play")
    a = base.with_value("el", "intro")
    b = base.set_non_interaction()

    assert a.layers[0] is b.layers[0]
    assert a.flatten() == {"t": "event", "ec": "video", "ea": "play", "el": "intro"}
    assert b.flatten() == {"t": "event", "ec": "video", "ea": "play", "ni": "1"}
    assert "el" not in base.flatten()


def test_get_value_prefers_most_recent_layer() -> None:
    builder = HitBuilder.create({"k": "old"}).with_value("other", "x").with_value("k", "new")

    assert builder.get_value("k") == "new"
    assert builder.get_value("missing") is None


def test_caller_mutation_of_layer_does_not_leak() -> None:
    layer = {"k": "v"}
    builder = HitBuilder.create(layer)
    layer["k"] = "mutated"

    assert builder.get_value("k") == "v"


def test_layers_are_read_only() -> None:
    builder = HitBuilder.create({"k": "v"})

    with pytest.raises(TypeError):
        builder.layers[0]["k"] = "x"  # type: ignore[index]


def test_custom_event_omits_empty_label_and_zero_value() -> None:
    flat = HitBuilder.create_custom_event("cat", "action", label="", value=0).flatten()

    assert flat == {"t": "event", "ec": "cat", "ea": "action"}
    assert "el" not in flat
    assert "ev" not in flat


def test_custom_event_with_label_and_value() -> None:
    flat = HitBuilder.create_custom_event("cat", "action", "L", 5).flatten()

    assert flat["el"] == "L"
    assert flat["ev"] == "5"


def test_screen_view_name_is_optional() -> None:
    assert HitBuilder.create_screen_view().flatten() == {"t": "screenview"}
    assert HitBuilder.create_screen_view("Home").flatten() == {"t": "screenview", "cd": "Home"}


def test_exception_non_fatal_flag_only_for_non_fatal() -> None:
    fatal = HitBuilder.create_exception("boom", is_fatal=True).flatten()
    non_fatal = HitBuilder.create_exception("boom", is_fatal=False).flatten()
    anonymous = HitBuilder.create_exception("", is_fatal=True).flatten()

    assert fatal == {"t": "exception", "exd": "boom"}
    assert non_fatal == {"t": "exception", "exd": "boom", "exf": "0"}
    assert anonymous == {"t": "exception"}


def test_timing_omits_empty_fields() -> None:
    assert HitBuilder.create_timing().flatten() == {"t": "timing"}
    assert HitBuilder.create_timing("db", "query", 120, "users").flatten() == {
        "t": "timing",
        "utc": "db",
        "utv": "query",
        "utt": "120",
        "utl": "users",
    }


def test_custom_dimension_and_metric_slots() -> None:
    flat = HitBuilder.create_screen_view().set_custom_dimension(3, "premium").set_custom_metric(2, 42).flatten()

    assert flat["cd3"] == "premium"
    assert flat["cm2"] == "42"


@pytest.mark.parametrize("index", [0, -1])
def test_custom_dimension_rejects_invalid_index(index: int) -> None:
    with pytest.raises(ValueError):
        HitBuilder.create_screen_view().set_custom_dimension(index, "x")


def test_new_session_layer() -> None:
    flat = HitBuilder.create_screen_view("Home").set_new_session().flatten()

    assert flat["sc"] == "start"
