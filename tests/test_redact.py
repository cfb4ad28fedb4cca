from __future__ import annotations

from pyanalytics._redact import redact_for_log


def test_redact_for_log_masks_identifying_parameters() -> None:
    params = {
        "v": "1",
        "tid": "UA-1-1",
        "cid": "1234567890.0987654321",
        "uid": "user-7",
        "uip": "10.0.0.1",
        "ua": "Agent/1.0",
        "geoid": "21137",
    }

    redacted = redact_for_log(params)

    assert redacted == {
        "v": "1",
        "tid": "UA-1-1",
        "cid": "<redacted>",
        "uid": "<redacted>",
        "uip": "<redacted>",
        "ua": "<redacted>",
        "geoid": "<redacted>",
    }
    assert params["cid"] == "1234567890.0987654321"


def test_redact_for_log_truncates_long_values() -> None:
    redacted = redact_for_log({"exd": "x" * 600, "cd": "Home"}, max_string=10)

    assert redacted["exd"] == "x" * 10 + "…<truncated>"
    assert redacted["cd"] == "Home"
