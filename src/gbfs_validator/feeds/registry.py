"""
Document-type dispatch table.

Every document type the validator knows is one :class:`DocumentKind`: its
coercion field map (which fields lenient mode may normalize, and where they
live) and its structural rule function. Types that are not in the table
fall back to :data:`DEFAULT_KIND`, which only runs the envelope checks.

Field groups address their targets with pointer-like paths where ``*``
iterates an array::

    "/data/stations/*"                                   each station
    "/data"                                              the data object
    "/data/geofencing_zones/features/*/properties/rules/*"

A group may list alternative paths (``vehicles`` or legacy ``bikes``); the
first whose container exists is used.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any

from gbfs_validator.feeds import rules
from gbfs_validator.feeds.report import ValidationIssue

RuleFunction = Callable[[dict[str, Any]], list[ValidationIssue]]


@dataclass(frozen=True)
class FieldGroup:
    """Fields normalized within one collection, by coercion kind."""

    paths: tuple[str, ...]
    booleans: tuple[str, ...] = ()
    integers: tuple[str, ...] = ()
    numbers: tuple[str, ...] = ()
    coordinates: tuple[str, ...] = ()
    timestamps: tuple[str, ...] = ()

    def targets(self, document: dict[str, Any]) -> Iterator[tuple[str, dict[str, Any]]]:
        """Yield ``(pointer, object)`` for every object this group applies to."""
        for path in self.paths:
            segments = [s for s in path.split("/") if s]
            if _container_exists(document, segments):
                yield from _walk(document, segments, "")
                return


def _container_exists(document: Any, segments: list[str]) -> bool:
    node = document
    for segment in segments:
        if segment == "*":
            return isinstance(node, list)
        if not isinstance(node, dict) or segment not in node:
            return False
        node = node[segment]
    return isinstance(node, dict)


def _walk(node: Any, segments: list[str], pointer: str) -> Iterator[tuple[str, dict[str, Any]]]:
    if not segments:
        if isinstance(node, dict):
            yield pointer, node
        return
    head, rest = segments[0], segments[1:]
    if head == "*":
        if isinstance(node, list):
            for i, item in enumerate(node):
                yield from _walk(item, rest, f"{pointer}/{i}")
    elif isinstance(node, dict) and head in node:
        yield from _walk(node[head], rest, f"{pointer}/{head}")


@dataclass(frozen=True)
class DocumentKind:
    name: str
    field_groups: tuple[FieldGroup, ...] = ()
    check: RuleFunction | None = None


COMMON_FIELDS = FieldGroup(paths=("",), integers=("ttl",), timestamps=("last_updated",))

_VEHICLE_FIELDS = FieldGroup(
    paths=("/data/vehicles/*", "/data/bikes/*"),
    booleans=("is_reserved", "is_disabled"),
    integers=("current_range_meters", "last_reported"),
    numbers=("current_fuel_percent",),
    coordinates=("lat", "lon"),
    timestamps=("last_reported",),
)

_KINDS = (
    DocumentKind("gbfs", check=rules.check_manifest),
    DocumentKind("gbfs_versions", check=rules.check_gbfs_versions),
    DocumentKind(
        "system_information",
        (FieldGroup(paths=("/data",), timestamps=("start_date", "end_date")),),
        rules.check_system_information,
    ),
    DocumentKind(
        "station_information",
        (
            FieldGroup(
                paths=("/data/stations/*",),
                booleans=("is_valet_station", "is_virtual_station", "is_charging_station"),
                integers=("capacity",),
                coordinates=("lat", "lon"),
            ),
        ),
        rules.check_station_information,
    ),
    DocumentKind(
        "station_status",
        (
            FieldGroup(
                paths=("/data/stations/*",),
                booleans=("is_installed", "is_renting", "is_returning", "is_charging_station"),
                integers=(
                    "num_bikes_available",
                    "num_bikes_disabled",
                    "num_docks_available",
                    "num_docks_disabled",
                    "num_vehicles_available",
                    "num_vehicles_disabled",
                    "last_reported",
                ),
                timestamps=("last_reported",),
            ),
        ),
        rules.check_station_status,
    ),
    DocumentKind("vehicle_status", (_VEHICLE_FIELDS,), rules.check_vehicle_status),
    DocumentKind("free_bike_status", (_VEHICLE_FIELDS,), rules.check_vehicle_status),
    DocumentKind(
        "vehicle_types",
        (
            FieldGroup(
                paths=("/data/vehicle_types/*",),
                numbers=(
                    "max_range_meters",
                    "wheel_count",
                    "max_permitted_speed",
                    "rated_power",
                    "default_reserve_time",
                    "cargo_volume_capacity",
                    "cargo_load_capacity",
                ),
            ),
        ),
        rules.check_vehicle_types,
    ),
    DocumentKind("system_pricing_plans", check=rules.check_pricing_plans),
    DocumentKind(
        "geofencing_zones",
        (
            FieldGroup(
                paths=("/data/geofencing_zones/features/*/properties/rules/*",),
                booleans=("ride_through_allowed", "station_parking"),
                numbers=("maximum_speed_kph",),
            ),
        ),
        rules.check_geofencing_zones,
    ),
)

DOCUMENT_KINDS: dict[str, DocumentKind] = {kind.name: kind for kind in _KINDS}

DEFAULT_KIND = DocumentKind("default")


def document_kind(name: str) -> DocumentKind:
    """Dispatch entry for ``name``; unknown types get envelope checks only."""
    return DOCUMENT_KINDS.get(name, DEFAULT_KIND)
