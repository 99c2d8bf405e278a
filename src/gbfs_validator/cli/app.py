"""
Root Typer application for the gbfs-validator CLI.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version

import typer
from typer import Typer

from gbfs_validator._version import __version__
from gbfs_validator.framework.logging import configure_logging

app = Typer(
    name="gbfs-validator",
    help="gbfs-validator: check GBFS feeds for completeness, structure and references.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        try:
            v = pkg_version("gbfs-validator")
        except PackageNotFoundError:
            v = __version__
        typer.echo(f"gbfs-validator {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING or ERROR"),
    log_format: str | None = typer.Option(None, "--log-format", help="console or json"),
) -> None:
    """gbfs-validator CLI: validate feeds, list versions, run the API."""
    configure_logging(level=log_level, format=log_format, force=True)


# ── Sub-command registration ─────────────────────────────────────────────

from gbfs_validator.cli.serve import serve  # noqa: E402
from gbfs_validator.cli.validate import validate, versions  # noqa: E402

app.command("validate")(validate)
app.command("versions")(versions)
app.command("serve")(serve)
