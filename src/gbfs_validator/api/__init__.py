"""
REST API layer for gbfs-validator.

Quick start::

    from gbfs_validator.api import create_app

    app = create_app()  # ready for uvicorn
"""

from gbfs_validator.api.app import create_app

__all__ = ["create_app"]
