"""
Tests for gbfs_validator.feeds.coerce: lenient-mode normalization.
"""

from __future__ import annotations

import json

import pytest

from gbfs_validator.core.errors import ParseError
from gbfs_validator.feeds.coerce import (
    _UNCHANGED,
    Coercer,
    to_bool,
    to_coordinate,
    to_int,
    to_number,
    to_timestamp,
)
from gbfs_validator.feeds.options import CoerceOptions
from tests._support.feeds import VALID_V23_DOCUMENTS, feed_doc, to_bytes


def _coerce(document: dict, document_type: str, **toggles):
    result = Coercer(CoerceOptions(**toggles)).coerce(to_bytes(document), document_type)
    return json.loads(result.data), list(result.log)


# ── Converters ───────────────────────────────────────────────────────────


class TestConverters:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [("1", True), ("0", False), ("true", True), ("FALSE", False), ("yes", True), (1, True), (0, False)],
    )
    def test_to_bool(self, value, expected):
        assert to_bool(value) is expected

    @pytest.mark.parametrize("value", [True, False, "maybe", None, [1]])
    def test_to_bool_leaves_value(self, value):
        assert to_bool(value) is _UNCHANGED

    def test_to_int(self):
        assert to_int("42") == 42
        assert to_int(" -7 ") == -7
        assert to_int("3.0") == 3

    def test_to_int_leaves_non_numeric(self):
        assert to_int("abc") is _UNCHANGED
        assert to_int("nan") is _UNCHANGED
        assert to_int(5) is _UNCHANGED

    def test_to_number_keeps_ints_integral(self):
        assert to_number("12") == 12 and isinstance(to_number("12"), int)
        assert to_number("12.5") == 12.5

    def test_to_coordinate(self):
        assert to_coordinate(45) == 45.0 and isinstance(to_coordinate(45), float)
        assert to_coordinate("-73.5") == -73.5
        assert to_coordinate(True) is _UNCHANGED

    def test_to_timestamp(self):
        assert to_timestamp("1700000000") == 1700000000
        assert to_timestamp("2023-11-14 22:13:20") == 1700000000
        assert to_timestamp("2023-11-14") == 1699920000

    def test_to_timestamp_keeps_rfc3339(self):
        assert to_timestamp("2023-11-14T22:13:20Z") is _UNCHANGED
        assert to_timestamp("2023-11-14T22:13:20+01:00") is _UNCHANGED

    def test_out_of_range_numbers_left_alone(self):
        assert to_coordinate(10**400) is _UNCHANGED
        assert to_coordinate(float("inf")) is _UNCHANGED
        assert to_timestamp(float("inf")) is _UNCHANGED
        assert to_timestamp(float("-inf")) is _UNCHANGED
        assert to_timestamp(float("nan")) is _UNCHANGED


# ── Coercer ──────────────────────────────────────────────────────────────


class TestCoercer:
    def test_station_status_flag_and_counts(self):
        doc = feed_doc(
            {"stations": [{"station_id": "s1", "is_installed": "1", "is_renting": 0, "num_bikes_available": "4"}]}
        )
        data, log = _coerce(doc, "station_status")

        station = data["data"]["stations"][0]
        assert station["is_installed"] is True
        assert station["is_renting"] is False
        assert station["num_bikes_available"] == 4

        assert [(r.path, r.field) for r in log] == [
            ("/data/stations/0", "is_installed"),
            ("/data/stations/0", "is_renting"),
            ("/data/stations/0", "num_bikes_available"),
        ]
        assert log[0].from_type == "str" and log[0].to_type == "bool"

    def test_envelope_fields_first(self):
        doc = feed_doc({"stations": [{"station_id": "s1", "is_installed": "true"}]}, ttl="60", last_updated="1700000000")
        data, log = _coerce(doc, "station_status")

        assert data["ttl"] == 60
        assert data["last_updated"] == 1700000000
        assert [r.field for r in log][:2] == ["ttl", "last_updated"]
        assert log[0].path == ""

    def test_toggles_disable_rules(self):
        doc = feed_doc({"stations": [{"station_id": "s1", "is_installed": "1", "num_bikes_available": "4"}]})
        data, log = _coerce(doc, "station_status", coerce_booleans=False)

        assert data["data"]["stations"][0]["is_installed"] == "1"
        assert [r.field for r in log] == ["num_bikes_available"]

    def test_null_as_absent(self):
        doc = feed_doc({"stations": [{"station_id": "s1", "capacity": None, "lat": 45, "lon": -73}]})
        data, _ = _coerce(doc, "station_information")
        assert "capacity" not in data["data"]["stations"][0]

        data, _ = _coerce(doc, "station_information", treat_null_as_absent=False)
        assert data["data"]["stations"][0]["capacity"] is None

    def test_integer_coordinates_become_floats(self):
        doc = feed_doc({"stations": [{"station_id": "s1", "lat": 45, "lon": "-73.5"}]})
        data, log = _coerce(doc, "station_information")
        station = data["data"]["stations"][0]
        assert station["lat"] == 45.0 and isinstance(station["lat"], float)
        assert station["lon"] == -73.5
        assert len(log) == 2

    def test_legacy_bikes_path(self):
        doc = feed_doc({"bikes": [{"bike_id": "b1", "is_reserved": "0", "is_disabled": "1", "lat": "45.5"}]})
        data, log = _coerce(doc, "free_bike_status")
        bike = data["data"]["bikes"][0]
        assert bike["is_reserved"] is False
        assert bike["is_disabled"] is True
        assert bike["lat"] == 45.5
        assert {r.path for r in log} == {"/data/bikes/0"}

    def test_geofencing_rules(self):
        rule = {"ride_through_allowed": "false", "maximum_speed_kph": "15"}
        doc = feed_doc({"geofencing_zones": {"type": "FeatureCollection", "features": [{"properties": {"rules": [rule]}}]}})
        data, log = _coerce(doc, "geofencing_zones")
        coerced = data["data"]["geofencing_zones"]["features"][0]["properties"]["rules"][0]
        assert coerced == {"ride_through_allowed": False, "maximum_speed_kph": 15}
        assert log[0].path == "/data/geofencing_zones/features/0/properties/rules/0"

    def test_unknown_type_only_touches_envelope(self):
        doc = feed_doc({"alerts": [{"alert_id": "1", "last_updated": "5"}]}, ttl="0")
        data, log = _coerce(doc, "system_alerts")
        assert data["ttl"] == 0
        assert data["data"]["alerts"][0]["last_updated"] == "5"
        assert len(log) == 1

    @pytest.mark.parametrize("name", sorted(VALID_V23_DOCUMENTS))
    def test_canonical_documents_unchanged(self, name):
        _, log = _coerce(VALID_V23_DOCUMENTS[name], name)
        assert log == []

    @pytest.mark.parametrize(
        ("document_type", "document"),
        [
            (
                "station_status",
                feed_doc(
                    {"stations": [{"station_id": "s1", "is_installed": "1", "num_docks_available": "2", "x": None}]},
                    ttl="10",
                ),
            ),
            (
                "station_information",
                feed_doc({"stations": [{"station_id": "s1", "lat": 45, "lon": "-73.5", "capacity": "3.0"}]}),
            ),
            (
                "free_bike_status",
                feed_doc({"bikes": [{"bike_id": "b1", "is_reserved": "no", "lat": "45.5", "last_reported": 1.7e9}]}),
            ),
            (
                "vehicle_status",
                feed_doc(
                    {
                        "vehicles": [
                            {"vehicle_id": "v1", "is_disabled": 1, "current_fuel_percent": "0.5", "lon": 12},
                            {"vehicle_id": "v2", "current_range_meters": None},
                        ]
                    }
                ),
            ),
            (
                "geofencing_zones",
                feed_doc(
                    {
                        "geofencing_zones": {
                            "type": "FeatureCollection",
                            "features": [
                                {"properties": {"rules": [{"station_parking": "true", "maximum_speed_kph": "9"}]}}
                            ],
                        }
                    }
                ),
            ),
            (
                "system_information",
                feed_doc(
                    {"system_id": "x", "start_date": "2023-11-14", "end_date": None},
                    last_updated="2023-11-14 22:13:20",
                ),
            ),
            ("vehicle_types", feed_doc({"vehicle_types": [{"vehicle_type_id": "a", "max_range_meters": "1000"}]})),
        ],
    )
    @pytest.mark.parametrize(
        "toggles",
        [
            {},
            {"treat_null_as_absent": False},
            {"coerce_booleans": False, "coerce_coordinates": False},
            {"coerce_numeric_strings": False, "coerce_timestamps": False},
        ],
    )
    def test_idempotent(self, document_type, document, toggles):
        coercer = Coercer(CoerceOptions(**toggles))
        first = coercer.coerce(to_bytes(document), document_type)
        second = coercer.coerce(first.data, document_type)
        assert second.data == first.data
        assert len(second.log) == 0

    def test_output_is_compact_and_keeps_key_order(self):
        doc = {"last_updated": 1, "ttl": 0, "data": {"b": 1, "a": "é"}}
        result = Coercer().coerce(to_bytes(doc), "system_information")
        assert result.data == '{"last_updated":1,"ttl":0,"data":{"b":1,"a":"é"}}'.encode()

    def test_summary(self):
        doc = feed_doc({"stations": [{"station_id": "s1", "is_installed": "1", "is_renting": "0"}]}, ttl="5")
        result = Coercer().coerce(to_bytes(doc), "station_status")
        summary = result.log.summarize()
        assert summary.total_coercions == 3
        assert summary.by_field == {"ttl": 1, "is_installed": 1, "is_renting": 1}
        assert summary.by_type == {"str->int": 1, "str->bool": 2}

    @pytest.mark.parametrize("raw", [b"not json", b"[1, 2]", b'{"ttl": NaN}'])
    def test_unparsable_raises(self, raw):
        with pytest.raises(ParseError):
            Coercer().coerce(raw, "station_status")


# ── Numbers outside the float range ──────────────────────────────────────


class TestOverflowingNumbers:
    def test_huge_integer_coordinate_kept(self):
        raw = b'{"last_updated":1,"ttl":0,"data":{"stations":[{"station_id":"s1","lat":1' + b"0" * 400 + b',"lon":2}]}}'
        result = Coercer().coerce(raw, "station_information")

        station = json.loads(result.data)["data"]["stations"][0]
        assert station["lat"] == 10**400
        assert [r.field for r in result.log] == ["lon"]

    def test_infinite_timestamp_returns_input(self):
        raw = b'{"last_updated":1e400,"ttl":"5","data":{"system_id":"x"}}'
        result = Coercer().coerce(raw, "system_information")

        assert result.data == raw
        assert len(result.log) == 0

    def test_infinite_coordinate_returns_input(self):
        raw = b'{"last_updated":1,"ttl":0,"data":{"stations":[{"station_id":"s1","lat":1e400,"lon":"2"}]}}'
        result = Coercer().coerce(raw, "station_information")

        assert result.data == raw
        assert len(result.log) == 0
