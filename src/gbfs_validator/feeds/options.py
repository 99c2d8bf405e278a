"""Run options accepted by the validator, the CLI and the HTTP API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from gbfs_validator.feeds.versions import DeploymentFlags
from gbfs_validator.framework.sources.auth import AuthConfig


class _OptionsModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True, extra="ignore")


class CoerceOptions(_OptionsModel):
    """Lenient-mode toggles. Toggles left out of a request default to on."""

    coerce_booleans: bool = True
    coerce_timestamps: bool = True
    coerce_numeric_strings: bool = True
    coerce_coordinates: bool = True
    treat_null_as_absent: bool = True


class ValidationOptions(_OptionsModel):
    version: str | None = None
    docked: bool = False
    freefloating: bool = False
    lenient_mode: bool = False
    coerce_options: CoerceOptions | None = None
    auth: AuthConfig | None = None

    @field_validator("version", mode="before")
    @classmethod
    def _blank_version(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def flags(self) -> DeploymentFlags:
        return DeploymentFlags(docked=self.docked, freefloating=self.freefloating)

    def effective_coerce_options(self) -> CoerceOptions | None:
        """Coercion toggles for this run, or ``None`` outside lenient mode."""
        if not self.lenient_mode:
            return None
        return self.coerce_options or CoerceOptions()
