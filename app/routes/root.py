"""
Root endpoint with service metadata.
"""

from __future__ import annotations

from fastapi import APIRouter

import placegate
import placegate.config as config


router = APIRouter()


@router.get("/")
async def root():
    """Root endpoint with service info."""
    prefix = config.PUBLIC_API_PREFIX
    return {
        "service": "PlaceGate",
        "version": placegate.__version__,
        "description": "Canonical site key and slug resolution for public URLs",
        "languages": list(config.SUPPORTED_LANGS),
        "fallback_languages": list(config.FALLBACK_LANGS),
        "endpoints": {
            "health": "/health",
            "resolve": f"{prefix}/{{lang}}/{{site_key}}/resolve/{{slug}}",
            "entity": f"{prefix}/{{lang}}/{{site_key}}/{{places|events|towns|static-pages}}/{{slug}}",
        },
    }
