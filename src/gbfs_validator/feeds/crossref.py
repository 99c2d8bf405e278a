"""
Cross-document reference validation.

Runs after every document has been fetched and structurally validated, on
the bytes that were validated (coerced bytes in lenient mode):

1. collect the known vehicle types, pricing plan ids and station ids
2. vehicles must reference known vehicle types
3. vehicle types must reference known pricing plans
4. station statuses must reference known stations
5. a vehicle using ``vehicle_type_id`` / ``pricing_plan_id`` makes
   ``vehicle_types`` / ``system_pricing_plans`` required

Passes 2-4 run only when the target document was fetched and decoded; an
empty target still counts, so every reference into it is an error. A
missing or unreadable target is already reported on its own result, and
pass 5 covers the case where it is absent altogether. Entries that do not
decode are skipped one by one; their type problems are structural issues.

The function is pure. It returns a new mapping and never mutates results.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Mapping

from gbfs_validator.feeds.models import (
    PricingPlansDocument,
    StationInformationDocument,
    StationStatusDocument,
    VehicleStatusDocument,
    VehicleType,
    VehicleTypesDocument,
    decode,
)
from gbfs_validator.feeds.report import FileValidationResult, ValidationIssue
from gbfs_validator.feeds.rules import error, is_motorized, warning
from gbfs_validator.feeds.versions import status_document_name
from gbfs_validator.framework.logging import get_logger

log = get_logger(__name__)


def _body(results: Mapping[str, FileValidationResult], name: str) -> bytes | None:
    result = results.get(name)
    if result is None or not result.exists:
        return None
    return result.body


def cross_validate(
    results: Mapping[str, FileValidationResult],
    version: str | None,
) -> dict[str, FileValidationResult]:
    """Return ``results`` with referential-integrity issues added."""
    status_name = status_document_name(version)

    vehicle_types_doc = decode(VehicleTypesDocument, _body(results, "vehicle_types"))
    plans_doc = decode(PricingPlansDocument, _body(results, "system_pricing_plans"))
    stations_doc = decode(StationInformationDocument, _body(results, "station_information"))
    status_doc = decode(StationStatusDocument, _body(results, "station_status"))
    vehicles_doc = decode(VehicleStatusDocument, _body(results, status_name))

    known_types: dict[str, VehicleType] = {}
    if vehicle_types_doc is not None:
        known_types = {
            vt.vehicle_type_id: vt
            for vt in vehicle_types_doc.data.vehicle_types
            if vt is not None and vt.vehicle_type_id
        }
    known_plans: set[str] = set()
    if plans_doc is not None:
        known_plans = {p.plan_id for p in plans_doc.data.plans if p is not None and p.plan_id}
    known_stations: set[str] = set()
    if stations_doc is not None:
        known_stations = {s.station_id for s in stations_doc.data.stations if s is not None and s.station_id}

    added: dict[str, list[ValidationIssue]] = defaultdict(list)

    # Vehicles -> vehicle types
    if vehicles_doc is not None and vehicle_types_doc is not None:
        key, vehicles = vehicles_doc.data.vehicle_list()
        for i, vehicle in enumerate(vehicles):
            if vehicle is None or not vehicle.vehicle_type_id:
                continue
            type_id = vehicle.vehicle_type_id
            path = f"/data/{key}/{i}"
            vehicle_type = known_types.get(type_id)
            if vehicle_type is None:
                added[status_name].append(
                    error(
                        f"vehicle_type_id '{type_id}' not found in vehicle_types.json",
                        f"{path}/vehicle_type_id",
                    )
                )
            elif is_motorized(vehicle_type.propulsion_type) and vehicle.current_range_meters is None:
                added[status_name].append(
                    warning(
                        "current_range_meters is recommended for motorized vehicles",
                        f"{path}/current_range_meters",
                    )
                )

    # Vehicle types -> pricing plans
    if vehicle_types_doc is not None and plans_doc is not None:
        for i, vehicle_type in enumerate(vehicle_types_doc.data.vehicle_types):
            if vehicle_type is None:
                continue
            path = f"/data/vehicle_types/{i}"
            default_plan = vehicle_type.default_pricing_plan_id
            if default_plan and default_plan not in known_plans:
                added["vehicle_types"].append(
                    error(
                        f"default_pricing_plan_id '{default_plan}' not found in system_pricing_plans.json",
                        f"{path}/default_pricing_plan_id",
                    )
                )
            for j, plan_id in enumerate(vehicle_type.pricing_plan_ids or []):
                if plan_id not in known_plans:
                    added["vehicle_types"].append(
                        error(
                            f"pricing_plan_id '{plan_id}' not found in system_pricing_plans.json",
                            f"{path}/pricing_plan_ids/{j}",
                        )
                    )

    # Station status -> station information
    if status_doc is not None and stations_doc is not None:
        for i, station in enumerate(status_doc.data.stations):
            if station is not None and station.station_id and station.station_id not in known_stations:
                added["station_status"].append(
                    error(
                        f"station_id '{station.station_id}' not found in station_information.json",
                        f"/data/stations/{i}/station_id",
                    )
                )

    updated = dict(results)
    for name, issues in added.items():
        updated[name] = updated[name].with_issues(*issues)

    # Conditional requirements
    if vehicles_doc is not None:
        _, vehicles = vehicles_doc.data.vehicle_list()
        if any(v is not None and v.vehicle_type_id for v in vehicles):
            _escalate(updated, "vehicle_types", f"vehicle_type_id is used in {status_name}.json")
        if any(v is not None and v.pricing_plan_id for v in vehicles):
            _escalate(updated, "system_pricing_plans", f"pricing_plan_id is used in {status_name}.json")

    issue_count = sum(len(v) for v in added.values())
    if issue_count:
        log.debug("crossref.issues", count=issue_count, documents=sorted(added))
    return updated


def _escalate(results: dict[str, FileValidationResult], name: str, reason: str) -> None:
    current = results.get(name)
    if current is not None and current.exists:
        return
    issue = error(f"{name}.json is required when {reason}")
    if current is None:
        current = FileValidationResult(name=name, required=True, exists=False)
    results[name] = current.with_issues(issue, required=True)
    log.debug("crossref.escalated", document=name)
