"""
Structural rules per document type.

Each ``check_*`` function takes a parsed document (a ``dict``) and returns
the issues it finds. Rules are a fixed, hand-written set: required keys,
required arrays and a handful of type checks. They are wired to document
types by :mod:`gbfs_validator.feeds.registry`.
"""

from __future__ import annotations

import json
from typing import Any

from gbfs_validator.core.errors import ParseError
from gbfs_validator.feeds.report import Severity, ValidationIssue

MOTORIZED_PROPULSION = frozenset(
    {
        "electric",
        "electric_assist",
        "combustion",
        "combustion_diesel",
        "hybrid",
        "plug_in_hybrid",
        "hydrogen_fuel_cell",
    }
)


def is_motorized(propulsion_type: str | None) -> bool:
    return propulsion_type in MOTORIZED_PROPULSION


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON constant {name}")


def load_document(raw: bytes | str) -> dict[str, Any]:
    """Parse a feed document; raise :class:`ParseError` unless it is a JSON object."""
    try:
        document = json.loads(raw, parse_constant=_reject_constant)
    except ValueError as e:
        raise ParseError(str(e), cause=e) from e
    if not isinstance(document, dict):
        raise ParseError(f"top-level value must be an object, not {type(document).__name__}")
    return document


def error(message: str, path: str | None = None) -> ValidationIssue:
    return ValidationIssue(severity=Severity.ERROR, message=message, instance_path=path)


def warning(message: str, path: str | None = None) -> ValidationIssue:
    return ValidationIssue(severity=Severity.WARNING, message=message, instance_path=path)


def is_integer(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, int) or (isinstance(value, float) and value.is_integer())


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_identifier(value: Any) -> bool:
    """A string id, or a bare integer one."""
    return isinstance(value, str) or (isinstance(value, int) and not isinstance(value, bool))


def _data(document: dict[str, Any]) -> dict[str, Any] | None:
    data = document.get("data")
    return data if isinstance(data, dict) else None


def _require_keys(obj: dict[str, Any], keys: tuple[str, ...], path: str) -> list[ValidationIssue]:
    return [error(f"{key} is required", f"{path}/{key}") for key in keys if key not in obj]


def _require_array(data: dict[str, Any], key: str) -> tuple[list[Any] | None, list[ValidationIssue]]:
    value = data.get(key)
    if isinstance(value, list):
        return value, []
    return None, [error(f"{key} array is required", f"/data/{key}")]


def _objects(items: list[Any]):
    for i, item in enumerate(items):
        if isinstance(item, dict):
            yield i, item


# =============================================================================
# COMMON
# =============================================================================


def check_common(document: dict[str, Any]) -> list[ValidationIssue]:
    """Envelope fields every document carries."""
    issues = []
    if "last_updated" not in document:
        issues.append(error("last_updated is required", "/last_updated"))
    if "ttl" not in document:
        issues.append(warning("ttl is recommended", "/ttl"))
    if "data" not in document:
        issues.append(error("data object is required", "/data"))
    elif not isinstance(document["data"], dict):
        issues.append(error("data must be an object", "/data"))
    return issues


# =============================================================================
# MANIFEST
# =============================================================================


def find_feed_list(document: dict[str, Any]) -> tuple[str, list[Any]] | None:
    """
    Locate the manifest feed list and its JSON pointer.

    Flat ``data.feeds`` (v3) wins; otherwise the first language group
    ``data.<lang>.feeds`` (v1/v2) is used.
    """
    data = _data(document)
    if data is None:
        return None
    if isinstance(data.get("feeds"), list):
        return "/data/feeds", data["feeds"]
    for language, group in data.items():
        if isinstance(group, dict) and isinstance(group.get("feeds"), list):
            return f"/data/{language}/feeds", group["feeds"]
    return None


def check_manifest(document: dict[str, Any]) -> list[ValidationIssue]:
    issues = []
    ttl = document.get("ttl")
    if is_integer(ttl) and ttl < 0:
        issues.append(error("ttl must be non-negative", "/ttl"))

    if _data(document) is None:
        return issues

    found = find_feed_list(document)
    if found is None or not found[1]:
        path = found[0] if found else "/data/feeds"
        issues.append(error("data.feeds array is required and must not be empty", path))
        return issues

    path, feeds = found
    for i, feed in enumerate(feeds):
        if not isinstance(feed, dict):
            issues.append(error("feed must be an object", f"{path}/{i}"))
            continue
        if not feed.get("name"):
            issues.append(error("feed name is required", f"{path}/{i}/name"))
        if not feed.get("url"):
            issues.append(error("feed url is required", f"{path}/{i}/url"))
    return issues


def check_gbfs_versions(document: dict[str, Any]) -> list[ValidationIssue]:
    data = _data(document)
    if data is None:
        return []
    versions, issues = _require_array(data, "versions")
    for i, entry in _objects(versions or []):
        issues.extend(_require_keys(entry, ("version", "url"), f"/data/versions/{i}"))
    return issues


# =============================================================================
# SYSTEM / STATIONS
# =============================================================================


def check_system_information(document: dict[str, Any]) -> list[ValidationIssue]:
    data = _data(document)
    if data is None:
        return []
    return _require_keys(data, ("system_id", "timezone", "name"), "/data")


def check_station_information(document: dict[str, Any]) -> list[ValidationIssue]:
    data = _data(document)
    if data is None:
        return []
    stations, issues = _require_array(data, "stations")
    for i, station in _objects(stations or []):
        path = f"/data/stations/{i}"
        issues.extend(_require_keys(station, ("station_id", "lat", "lon"), path))
        for key in ("lat", "lon"):
            if key in station and not is_number(station[key]):
                issues.append(error(f"{key} must be a number", f"{path}/{key}"))
    return issues


_STATION_FLAGS = ("is_installed", "is_renting", "is_returning")
_STATION_COUNTS = ("num_bikes_available", "num_vehicles_available", "num_docks_available")


def check_station_status(document: dict[str, Any]) -> list[ValidationIssue]:
    data = _data(document)
    if data is None:
        return []
    stations, issues = _require_array(data, "stations")
    for i, station in _objects(stations or []):
        path = f"/data/stations/{i}"
        issues.extend(_require_keys(station, ("station_id",), path))
        for key in _STATION_FLAGS:
            if key in station and not isinstance(station[key], bool):
                issues.append(error(f"{key} must be a boolean", f"{path}/{key}"))
        for key in _STATION_COUNTS:
            if key in station and not is_integer(station[key]):
                issues.append(error(f"{key} must be an integer", f"{path}/{key}"))
    return issues


# =============================================================================
# VEHICLES
# =============================================================================


def vehicle_list(data: dict[str, Any]) -> tuple[str, list[Any]] | None:
    """The vehicle array and its key: ``vehicles`` (v2.1+ / v3) or legacy ``bikes``."""
    for key in ("vehicles", "bikes"):
        if isinstance(data.get(key), list):
            return key, data[key]
    return None


def check_vehicle_status(document: dict[str, Any]) -> list[ValidationIssue]:
    data = _data(document)
    if data is None:
        return []
    found = vehicle_list(data)
    if found is None:
        return [error("vehicles or bikes array is required", "/data/vehicles")]

    key, vehicles = found
    id_field = "vehicle_id" if key == "vehicles" else "bike_id"
    issues = []
    for i, vehicle in _objects(vehicles):
        path = f"/data/{key}/{i}"
        if "vehicle_id" not in vehicle and "bike_id" not in vehicle:
            issues.append(error("vehicle_id or bike_id is required", f"{path}/{id_field}"))
        for flag in ("is_reserved", "is_disabled"):
            if flag in vehicle and not isinstance(vehicle[flag], bool):
                issues.append(error(f"{flag} must be a boolean", f"{path}/{flag}"))
        for ref in ("vehicle_type_id", "pricing_plan_id"):
            if ref in vehicle and vehicle[ref] is not None and not is_identifier(vehicle[ref]):
                issues.append(error(f"{ref} must be a string", f"{path}/{ref}"))
    return issues


def check_vehicle_types(document: dict[str, Any]) -> list[ValidationIssue]:
    data = _data(document)
    if data is None:
        return []
    vehicle_types, issues = _require_array(data, "vehicle_types")
    for i, vehicle_type in _objects(vehicle_types or []):
        path = f"/data/vehicle_types/{i}"
        issues.extend(_require_keys(vehicle_type, ("vehicle_type_id", "form_factor", "propulsion_type"), path))
        propulsion = vehicle_type.get("propulsion_type")
        if isinstance(propulsion, str) and is_motorized(propulsion) and "max_range_meters" not in vehicle_type:
            issues.append(
                warning("max_range_meters is required for motorized vehicles", f"{path}/max_range_meters")
            )
    return issues


# =============================================================================
# PRICING / GEOFENCING
# =============================================================================


def check_pricing_plans(document: dict[str, Any]) -> list[ValidationIssue]:
    data = _data(document)
    if data is None:
        return []
    plans, issues = _require_array(data, "plans")
    for i, plan in _objects(plans or []):
        issues.extend(_require_keys(plan, ("plan_id", "currency", "price"), f"/data/plans/{i}"))
    return issues


def check_geofencing_zones(document: dict[str, Any]) -> list[ValidationIssue]:
    data = _data(document)
    if data is None:
        return []
    zones = data.get("geofencing_zones")
    if not isinstance(zones, dict) or not isinstance(zones.get("features"), list):
        return [error("geofencing_zones object with a features array is required", "/data/geofencing_zones")]

    issues = []
    for i, feature in _objects(zones["features"]):
        properties = feature.get("properties")
        if not isinstance(properties, dict) or not isinstance(properties.get("rules"), list):
            continue
        for j, rule in _objects(properties["rules"]):
            value = rule.get("ride_through_allowed")
            if "ride_through_allowed" in rule and not isinstance(value, bool):
                path = f"/data/geofencing_zones/features/{i}/properties/rules/{j}/ride_through_allowed"
                issues.append(error("ride_through_allowed must be a boolean", path))
    return issues
