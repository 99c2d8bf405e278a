"""
Version policy: which documents a GBFS version expects.

The table is static. Each version lists its documents in publication order
with a requirement rule: always, never, or gated on a deployment flag
(``docked`` gates the station documents, ``freefloating`` gates the vehicle
status document). ``vehicle_types`` and ``system_pricing_plans`` are never
required by the table itself; they are marked *conditionally required* and
escalated by cross-reference validation when another document uses them.

Usage:
    from gbfs_validator.feeds.versions import DeploymentFlags, requirements

    for doc in requirements("2.3", DeploymentFlags(docked=True)):
        print(doc.name, doc.required)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

DEFAULT_VERSION = "1.0"


class Requirement(str, Enum):
    ALWAYS = "always"
    OPTIONAL = "optional"
    DOCKED = "docked"
    FREEFLOATING = "freefloating"


@dataclass(frozen=True)
class DeploymentFlags:
    """Which deployment styles the validated system claims to support."""

    docked: bool = False
    freefloating: bool = False


@dataclass(frozen=True)
class DocumentDescriptor:
    """One expected document of a version, resolved against deployment flags."""

    name: str
    required: bool
    conditionally_required: bool = False

    @property
    def file(self) -> str:
        return f"{self.name}.json"


CONDITIONALLY_REQUIRED = frozenset({"vehicle_types", "system_pricing_plans"})

_R = Requirement

_V1_0 = (
    ("system_information", _R.ALWAYS),
    ("station_information", _R.DOCKED),
    ("station_status", _R.DOCKED),
    ("free_bike_status", _R.FREEFLOATING),
    ("system_hours", _R.OPTIONAL),
    ("system_calendar", _R.OPTIONAL),
    ("system_regions", _R.OPTIONAL),
    ("system_pricing_plans", _R.OPTIONAL),
    ("system_alerts", _R.OPTIONAL),
)

_V1_1 = (("gbfs_versions", _R.OPTIONAL), *_V1_0)

_V2_1 = (
    ("gbfs_versions", _R.OPTIONAL),
    ("system_information", _R.ALWAYS),
    ("vehicle_types", _R.OPTIONAL),
    ("station_information", _R.DOCKED),
    ("station_status", _R.DOCKED),
    ("free_bike_status", _R.FREEFLOATING),
    ("system_hours", _R.OPTIONAL),
    ("system_calendar", _R.OPTIONAL),
    ("system_regions", _R.OPTIONAL),
    ("system_pricing_plans", _R.OPTIONAL),
    ("system_alerts", _R.OPTIONAL),
    ("geofencing_zones", _R.OPTIONAL),
)

_V3_0 = (
    ("manifest", _R.OPTIONAL),
    ("gbfs_versions", _R.OPTIONAL),
    ("system_information", _R.ALWAYS),
    ("vehicle_types", _R.OPTIONAL),
    ("station_information", _R.DOCKED),
    ("station_status", _R.DOCKED),
    ("vehicle_status", _R.FREEFLOATING),
    ("system_regions", _R.OPTIONAL),
    ("system_pricing_plans", _R.OPTIONAL),
    ("system_alerts", _R.OPTIONAL),
    ("geofencing_zones", _R.OPTIONAL),
)

_V3_1_RC2 = (*_V3_0[:7], ("vehicle_availability", _R.OPTIONAL), *_V3_0[7:])


@dataclass(frozen=True)
class VersionPolicy:
    version: str
    manifest_required: bool
    documents: tuple[tuple[str, Requirement], ...]


VERSION_TABLE: dict[str, VersionPolicy] = {
    p.version: p
    for p in (
        VersionPolicy("1.0", False, _V1_0),
        VersionPolicy("1.1", False, _V1_1),
        VersionPolicy("2.0", True, _V1_1),
        VersionPolicy("2.1", True, _V2_1),
        VersionPolicy("2.2", True, _V2_1),
        VersionPolicy("2.3", True, _V2_1),
        VersionPolicy("3.0", True, _V3_0),
        VersionPolicy("3.1-RC2", True, _V3_1_RC2),
    )
}

LATEST_VERSION = "3.1-RC2"

_V3_NAMES = frozenset({"3.0", "3.1-RC2", "3.1"})


def supported_versions() -> list[str]:
    """Supported versions, oldest first."""
    return list(VERSION_TABLE)


def resolve_version(version: str | None) -> VersionPolicy:
    """Policy for ``version``; unknown or empty versions use the newest entry."""
    return VERSION_TABLE.get(version or "", VERSION_TABLE[LATEST_VERSION])


def _is_required(rule: Requirement, flags: DeploymentFlags) -> bool:
    match rule:
        case Requirement.ALWAYS:
            return True
        case Requirement.DOCKED:
            return flags.docked
        case Requirement.FREEFLOATING:
            return flags.freefloating
    return False


def requirements(version: str | None, flags: DeploymentFlags | None = None) -> tuple[DocumentDescriptor, ...]:
    """Expected documents for ``version`` under ``flags``, in table order."""
    flags = flags or DeploymentFlags()
    return tuple(
        DocumentDescriptor(
            name=name,
            required=_is_required(rule, flags),
            conditionally_required=name in CONDITIONALLY_REQUIRED,
        )
        for name, rule in resolve_version(version).documents
    )


def is_manifest_required(version: str | None) -> bool:
    """Whether ``gbfs.json`` is mandatory; true for unknown versions."""
    policy = VERSION_TABLE.get(version or "")
    return True if policy is None else policy.manifest_required


def is_v3_or_later(version: str | None) -> bool:
    return version in _V3_NAMES


def status_document_name(version: str | None) -> str:
    """``vehicle_status`` from 3.0 on, ``free_bike_status`` before."""
    known = (version or "") in VERSION_TABLE
    # Unknown versions are validated against the newest table entry
    if not known or is_v3_or_later(version):
        return "vehicle_status"
    return "free_bike_status"
