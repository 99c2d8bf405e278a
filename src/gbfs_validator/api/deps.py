"""
FastAPI dependency injection.

Usage in routers::

    from gbfs_validator.api.deps import Settings, Transport

    @router.post("/validator")
    async def validate(body: ValidateRequest, settings: Settings, transport: Transport):
        ...
"""

from __future__ import annotations

from typing import Annotated

import httpx
from fastapi import Depends

from gbfs_validator.core.settings import ValidatorSettings, get_settings


def get_transport() -> httpx.AsyncBaseTransport | None:
    """Transport for outbound feed requests; ``None`` means the httpx default.

    ``create_app(transport=...)`` overrides this, which is how tests route
    fetches to an ``httpx.MockTransport``.
    """
    return None


# ── Convenience type aliases ─────────────────────────────────────────────

Settings = Annotated[ValidatorSettings, Depends(get_settings)]
Transport = Annotated[httpx.AsyncBaseTransport | None, Depends(get_transport)]
