"""
CLI: ``gbfs-validator serve``: start the API server.
"""

from __future__ import annotations

import typer
import uvicorn

from gbfs_validator.cli.utils import console
from gbfs_validator.core.settings import get_settings


def serve(
    host: str | None = typer.Option(None, "--host", "-h", help="Bind address"),
    port: int | None = typer.Option(None, "--port", "-p", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on changes"),
    log_level: str = typer.Option("info", "--uvicorn-log-level"),
) -> None:
    """Start the validator REST API server."""
    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port

    console.print(f"[bold green]Starting gbfs-validator API[/bold green] on {host}:{port}")
    uvicorn.run(
        "gbfs_validator.api:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
    )
