"""
CLI layer for gbfs-validator.

Provides a Typer application whose commands delegate to
:class:`gbfs_validator.FeedValidator`. This package handles only terminal
transport: argument parsing, coloured output and table formatting.

Entry point::

    gbfs-validator --help
"""

from gbfs_validator.cli.app import app

__all__ = ["app"]
