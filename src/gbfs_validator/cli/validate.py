"""
CLI: ``gbfs-validator validate`` and ``gbfs-validator versions``.
"""

from __future__ import annotations

import typer
from rich.table import Table

from gbfs_validator.cli.utils import console, err_console, render_report
from gbfs_validator.core.errors import ConfigError
from gbfs_validator.core.settings import get_settings
from gbfs_validator.feeds.options import CoerceOptions, ValidationOptions
from gbfs_validator.feeds.versions import VERSION_TABLE, DeploymentFlags, requirements, resolve_version
from gbfs_validator.framework.sources.auth import (
    AuthConfig,
    BasicAuth,
    BasicCredentials,
    BearerToken,
    BearerTokenAuth,
    ClientCredentials,
    HeaderEntry,
    HeadersAuth,
    OAuthClientCredentialsGrant,
)
from gbfs_validator.validator import FeedValidator


def _auth_from_options(
    bearer_token: str | None,
    basic_auth: str | None,
    headers: list[str] | None,
    oauth_token_url: str | None,
    oauth_client_id: str | None,
    oauth_client_secret: str | None,
) -> AuthConfig | None:
    chosen = [
        name
        for name, value in (
            ("--bearer-token", bearer_token),
            ("--basic-auth", basic_auth),
            ("--header", headers),
            ("--oauth-token-url", oauth_token_url),
        )
        if value
    ]
    if len(chosen) > 1:
        raise ConfigError(f"choose one authentication method, got {', '.join(chosen)}")

    if bearer_token:
        return BearerTokenAuth(bearer_token=BearerToken(token=bearer_token))
    if basic_auth:
        user, sep, password = basic_auth.partition(":")
        if not sep:
            raise ConfigError("--basic-auth expects USER:PASSWORD")
        return BasicAuth(basic_auth=BasicCredentials(user=user, password=password))
    if headers:
        entries = []
        for header in headers:
            key, sep, value = header.partition("=")
            if not sep:
                raise ConfigError(f"--header expects KEY=VALUE, got {header!r}")
            entries.append(HeaderEntry(key=key.strip(), value=value.strip()))
        return HeadersAuth(headers=entries)
    if oauth_token_url:
        if not oauth_client_id or not oauth_client_secret:
            raise ConfigError("--oauth-token-url needs --oauth-client-id and --oauth-client-secret")
        return OAuthClientCredentialsGrant(
            oauth_client_credentials_grant=ClientCredentials(
                user=oauth_client_id,
                password=oauth_client_secret,
                token_url=oauth_token_url,
            )
        )
    return None


def validate(
    url: str = typer.Argument(..., help="Manifest (gbfs.json) or feed base URL"),
    version: str | None = typer.Option(None, "--version", "-v", help="Validate against this GBFS version"),
    docked: bool = typer.Option(False, "--docked", help="Require station-based files"),
    freefloating: bool = typer.Option(False, "--freefloating", help="Require free-floating vehicle files"),
    lenient: bool = typer.Option(False, "--lenient", help="Normalize common type mistakes before validating"),
    coerce_booleans: bool = typer.Option(True, "--coerce-booleans/--no-coerce-booleans"),
    coerce_timestamps: bool = typer.Option(True, "--coerce-timestamps/--no-coerce-timestamps"),
    coerce_numeric_strings: bool = typer.Option(True, "--coerce-numeric-strings/--no-coerce-numeric-strings"),
    coerce_coordinates: bool = typer.Option(True, "--coerce-coordinates/--no-coerce-coordinates"),
    null_as_absent: bool = typer.Option(True, "--null-as-absent/--no-null-as-absent"),
    bearer_token: str | None = typer.Option(None, "--bearer-token", help="Bearer token"),
    basic_auth: str | None = typer.Option(None, "--basic-auth", help="USER:PASSWORD"),
    header: list[str] | None = typer.Option(None, "--header", "-H", help="Extra header KEY=VALUE (repeatable)"),
    oauth_token_url: str | None = typer.Option(None, "--oauth-token-url", help="OAuth client-credentials token URL"),
    oauth_client_id: str | None = typer.Option(None, "--oauth-client-id"),
    oauth_client_secret: str | None = typer.Option(None, "--oauth-client-secret"),
    timeout: float | None = typer.Option(None, "--timeout", help="Run deadline in seconds"),
    json_out: bool = typer.Option(False, "--json", help="Print the report as JSON"),
) -> None:
    """Validate a GBFS feed. Exits 1 when the report has errors."""
    try:
        auth = _auth_from_options(
            bearer_token, basic_auth, header, oauth_token_url, oauth_client_id, oauth_client_secret
        )
    except ConfigError as e:
        err_console.print(f"[bold red]Error[/bold red]: {e.message}")
        raise typer.Exit(code=2) from e

    options = ValidationOptions(
        version=version,
        docked=docked,
        freefloating=freefloating,
        lenient_mode=lenient,
        coerce_options=CoerceOptions(
            coerce_booleans=coerce_booleans,
            coerce_timestamps=coerce_timestamps,
            coerce_numeric_strings=coerce_numeric_strings,
            coerce_coordinates=coerce_coordinates,
            treat_null_as_absent=null_as_absent,
        ),
        auth=auth,
    )
    settings = get_settings()
    if timeout is not None:
        settings = settings.model_copy(update={"run_timeout": timeout})

    report = FeedValidator(options, settings=settings).validate_sync(url)

    if json_out:
        typer.echo(report.to_json())
    else:
        render_report(report, url, lenient=lenient)

    if report.has_errors:
        raise typer.Exit(code=1)


def versions(
    docked: bool = typer.Option(True, "--docked/--no-docked"),
    freefloating: bool = typer.Option(True, "--freefloating/--no-freefloating"),
) -> None:
    """List supported GBFS versions and the documents each expects."""
    flags = DeploymentFlags(docked=docked, freefloating=freefloating)
    table = Table(title="Supported GBFS versions", show_lines=True, pad_edge=False)
    table.add_column("version")
    table.add_column("gbfs.json")
    table.add_column("required")
    table.add_column("optional", overflow="fold")

    for name in VERSION_TABLE:
        policy = resolve_version(name)
        docs = requirements(name, flags)
        required = ", ".join(d.name for d in docs if d.required)
        optional = ", ".join(f"{d.name}*" if d.conditionally_required else d.name for d in docs if not d.required)
        table.add_row(name, "required" if policy.manifest_required else "optional", required, optional)

    console.print(table)
    console.print("[dim]* conditionally required when referenced by another file[/dim]")
