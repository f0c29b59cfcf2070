from __future__ import annotations

from pyfleet._redact import redact_for_log


def test_redact_for_log_redacts_sensitive_keys() -> None:
    payload = {
        "name": "Truck 7",
        "deviceId": "dev-9",
        "Authorization": "Bearer abc",
        "userId": {"_id": "u1", "phone": "+254700000000", "deviceId": "phone-1"},
        "lastSeen": {"lat": 1.0, "lng": 2.0},
    }

    redacted = redact_for_log(payload)
    assert redacted["name"] == "Truck 7"
    assert redacted["deviceId"] == "<redacted>"
    assert redacted["Authorization"] == "<redacted>"
    assert redacted["userId"]["phone"] == "<redacted>"
    assert redacted["userId"]["deviceId"] == "<redacted>"
    assert redacted["userId"]["_id"] == "u1"
    assert redacted["lastSeen"] == {"lat": 1.0, "lng": 2.0}


def test_redact_for_log_truncates_long_strings() -> None:
    long_value = "x" * 600
    redacted = redact_for_log({"value": long_value}, max_string=10)
    assert redacted["value"].startswith("x" * 10)
    assert "<truncated>" in redacted["value"]


def test_redact_for_log_truncates_long_lists() -> None:
    pings = [{"lat": i, "lng": i} for i in range(25)]
    redacted = redact_for_log(pings, max_items=3)
    assert len(redacted) == 4
    assert redacted[-1] == "<+22 more>"
