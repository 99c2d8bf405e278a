"""
Typed containers for the feed documents cross-reference validation reads.

These models are deliberately forgiving: they exist to *extract* identifiers
and a few attributes, not to validate (that is the structural rules' job).
Numeric identifiers are read as strings, unknown keys are ignored and
display names may be a legacy plain string or a v3 list of localized
strings. Inside the collections (stations, vehicles, vehicle types, plans)
an entry that does not fit is read as ``None`` and the rest of the
document is kept, so list indices still match the JSON.

Usage:
    doc = decode(VehicleTypesDocument, body)
    if doc is not None:
        known = {vt.vehicle_type_id for vt in doc.data.vehicle_types}
"""

from __future__ import annotations

from typing import Annotated, Any, TypeVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError


class _FeedModel(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True, frozen=True)


ModelT = TypeVar("ModelT", bound=_FeedModel)


def _entries(model: type[ModelT]) -> Any:
    """List of ``model`` where an entry that fails validation becomes ``None``."""

    def validate(value: Any) -> Any:
        if not isinstance(value, list):
            return value
        entries = []
        for item in value:
            try:
                model.model_validate(item)
            except ValidationError:
                item = None
            entries.append(item)
        return entries

    return Annotated[list[model | None], BeforeValidator(validate)]


class LocalizedString(_FeedModel):
    text: str
    language: str | None = None


LocalizedText = str | list[LocalizedString]


def localized_text(value: LocalizedText | None, language: str | None = None) -> str | None:
    """
    Plain text of a name field.

    A list picks the entry for ``language`` when given, else the first one.
    """
    if value is None or isinstance(value, str):
        return value
    if not value:
        return None
    if language is not None:
        for entry in value:
            if entry.language == language:
                return entry.text
    return value[0].text


class FeedDocument(_FeedModel):
    """Envelope shared by every document."""

    last_updated: Any = None
    ttl: Any = None
    version: str | None = None


# ── Manifest ──────────────────────────────────────────────────────────────


class FeedLink(_FeedModel):
    name: str | None = None
    url: str | None = None


class ManifestDocument(FeedDocument):
    """``gbfs.json``: flat ``data.feeds`` (v3) or ``data.<language>.feeds`` (v1/v2)."""

    data: dict[str, Any] = Field(default_factory=dict)

    def feeds(self) -> list[FeedLink]:
        raw = self.data.get("feeds")
        if not isinstance(raw, list):
            raw = next(
                (g["feeds"] for g in self.data.values() if isinstance(g, dict) and isinstance(g.get("feeds"), list)),
                [],
            )
        links = []
        for item in raw:
            try:
                links.append(FeedLink.model_validate(item))
            except ValidationError:
                continue  # malformed entry, reported by the manifest rules
        return links

    def feed_urls(self) -> dict[str, str]:
        """Feed name to URL; entries without both are skipped, the first listing wins."""
        urls: dict[str, str] = {}
        for link in self.feeds():
            if link.name and link.url and link.name not in urls:
                urls[link.name] = link.url
        return urls


# ── Stations ──────────────────────────────────────────────────────────────


class StationInformation(_FeedModel):
    station_id: str | None = None
    name: LocalizedText | None = None
    lat: Any = None
    lon: Any = None


StationInformationEntries = _entries(StationInformation)


class StationInformationData(_FeedModel):
    stations: StationInformationEntries = Field(default_factory=list)


class StationInformationDocument(FeedDocument):
    data: StationInformationData = Field(default_factory=StationInformationData)


class StationStatus(_FeedModel):
    station_id: str | None = None


StationStatusEntries = _entries(StationStatus)


class StationStatusData(_FeedModel):
    stations: StationStatusEntries = Field(default_factory=list)


class StationStatusDocument(FeedDocument):
    data: StationStatusData = Field(default_factory=StationStatusData)


# ── Vehicles ──────────────────────────────────────────────────────────────


class Vehicle(_FeedModel):
    vehicle_id: str | None = None
    bike_id: str | None = None
    vehicle_type_id: str | None = None
    pricing_plan_id: str | None = None
    current_range_meters: Any = None


VehicleEntries = _entries(Vehicle)


class VehicleStatusData(_FeedModel):
    vehicles: VehicleEntries | None = None
    bikes: VehicleEntries | None = None

    def vehicle_list(self) -> tuple[str, list[Vehicle | None]]:
        """The vehicle array and the key it was published under."""
        if self.vehicles is not None:
            return "vehicles", self.vehicles
        return "bikes", self.bikes or []


class VehicleStatusDocument(FeedDocument):
    data: VehicleStatusData = Field(default_factory=VehicleStatusData)


class VehicleType(_FeedModel):
    vehicle_type_id: str | None = None
    form_factor: str | None = None
    propulsion_type: str | None = None
    name: LocalizedText | None = None
    max_range_meters: Any = None
    default_pricing_plan_id: str | None = None
    pricing_plan_ids: list[str] | None = None

    @property
    def display_name(self) -> str | None:
        return localized_text(self.name)


VehicleTypeEntries = _entries(VehicleType)


class VehicleTypesData(_FeedModel):
    vehicle_types: VehicleTypeEntries = Field(default_factory=list)


class VehicleTypesDocument(FeedDocument):
    data: VehicleTypesData = Field(default_factory=VehicleTypesData)


# ── Pricing ───────────────────────────────────────────────────────────────


class PricingPlan(_FeedModel):
    plan_id: str | None = None
    name: LocalizedText | None = None
    currency: str | None = None
    price: Any = None


PricingPlanEntries = _entries(PricingPlan)


class PricingPlansData(_FeedModel):
    plans: PricingPlanEntries = Field(default_factory=list)


class PricingPlansDocument(FeedDocument):
    data: PricingPlansData = Field(default_factory=PricingPlansData)


DocumentT = TypeVar("DocumentT", bound=FeedDocument)


def decode(model: type[DocumentT], body: bytes | None) -> DocumentT | None:
    """Parse ``body`` as ``model``; ``None`` when absent or undecodable."""
    if body is None:
        return None
    try:
        return model.model_validate_json(body)
    except ValidationError:
        return None

