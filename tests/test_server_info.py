from __future__ import annotations

from typing import Any

from acexporter.models import ServerInfo, SessionType


def _build_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "ip": "",
        "port": 9600,
        "tport": 9600,
        "cport": 8081,
        "name": "Sunday Cup",
        "clients": 4,
        "maxclients": 24,
        "track": "ks_nordschleife",
        "cars": ["ks_mazda_mx5_cup", "ks_toyota_gt86"],
        "timeofday": 12,
        "session": 3,
        "sessiontypes": [1, 2, 3],
        "durations": [600, 600, 10],
        "timeleft": 540,
        "country": ["DE", "Germany"],
        "pass": True,
        "timestamp": 1700000000,
        "json": None,
        "l": False,
        "pickup": True,
        "timed": False,
        "extra": False,
        "pit": False,
        "inverted": 0,
        "poweredBy": "AssettoServer 0.0.54",
    }
    payload.update(overrides)
    return payload


def test_parses_server_keys() -> None:
    info = ServerInfo.model_validate(_build_payload())

    assert info.name == "Sunday Cup"
    assert info.clients == 4
    assert info.max_clients == 24
    assert info.cars == ["ks_mazda_mx5_cup", "ks_toyota_gt86"]
    assert info.session == 3
    assert info.session_type is SessionType.RACE
    assert info.session_types == [1, 2, 3]
    assert info.password_protected is True
    assert info.pickup_mode is True
    assert info.time_left == 540
    assert info.time_of_day == 12
    assert info.powered_by == "AssettoServer 0.0.54"
    assert info.raw["tport"] == 9600


def test_missing_fields_fall_back_to_defaults() -> None:
    info = ServerInfo.model_validate({"name": "Bare"})

    assert info.name == "Bare"
    assert info.clients == 0
    assert info.max_clients == 0
    assert info.cars == []
    assert info.password_protected is False
    assert info.powered_by == ""
    assert info.session_type is SessionType.BOOKING


def test_loosely_typed_values_are_coerced() -> None:
    info = ServerInfo.model_validate(
        _build_payload(clients="7", maxclients=None, cars=["a", None, ""], session="x")
    )

    assert info.clients == 7
    assert info.max_clients == 0
    assert info.cars == ["a"]
    assert info.session == 0


def test_alternate_pickup_key_is_accepted() -> None:
    payload = _build_payload()
    del payload["pickup"]
    payload["pickup_mode_enabled"] = True

    assert ServerInfo.model_validate(payload).pickup_mode is True


def test_unknown_session_ordinal_has_unknown_label() -> None:
    info = ServerInfo.model_validate(_build_payload(session=7))
    assert info.session_type is SessionType.UNKNOWN
    assert info.session_type.label == "Unknown"


def test_track_display_appends_layout() -> None:
    assert ServerInfo(track="spa").track_display == "spa"
    assert ServerInfo(track="ks_nordschleife", track_config="endurance").track_display == (
        "ks_nordschleife (endurance)"
    )


def test_non_finite_numbers_fall_back_to_zero() -> None:
    info = ServerInfo.model_validate(
        _build_payload(timeleft=float("inf"), clients=float("-inf"), session=float("nan"), sessiontypes=[1, float("inf")])
    )

    assert info.time_left == 0
    assert info.clients == 0
    assert info.session == 0
    assert info.session_types == [1]
