"""
Public resolve and canonical-redirect endpoints.
"""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import RedirectResponse

import placegate.config as config
from placegate.errors import SlugUnresolved
from placegate.services.resolve_service import (
    ENTITY_PATHS,
    ENTITY_SEGMENTS,
    ResolveResult,
    resolve_public_url,
)


router = APIRouter(prefix=config.PUBLIC_API_PREFIX)


async def _resolve(lang: str, site_key: str, slug: str, request: Request) -> ResolveResult:
    host = request.headers.get("host")
    try:
        return await asyncio.wait_for(
            asyncio.to_thread(resolve_public_url, lang, site_key, slug, host),
            timeout=config.RESOLVE_TIMEOUT_SECONDS,
        )
    except asyncio.TimeoutError as exc:
        config.logger.warning(
            "resolve_timeout",
            extra={"lang": lang, "site_key": site_key, "slug": slug, "host": host},
        )
        raise HTTPException(status_code=504, detail={"error": "resolve_timeout"}) from exc


@router.get("/{lang}/{site_key}/resolve/{slug}")
async def resolve(lang: str, site_key: str, slug: str, request: Request):
    """Resolve a site key and slug to an entity plus its canonical URL."""
    result = await _resolve(lang, site_key, slug, request)
    return {"status": "ok", **result.to_dict()}


@router.get("/{lang}/{site_key}/{entity_segment}/{slug}")
async def entity_by_slug(lang: str, site_key: str, entity_segment: str, slug: str, request: Request):
    """Redirect stale URLs to their canonical location, else return the entity identity."""
    expected_type = ENTITY_SEGMENTS.get(entity_segment)
    if expected_type is None:
        raise HTTPException(status_code=404, detail={"error": "not_found"})

    result = await _resolve(lang, site_key, slug, request)

    # Entities without a public collection path have no URL to serve or redirect to
    if result.entity_type not in ENTITY_PATHS:
        raise SlugUnresolved(
            f"Slug not found: {slug}",
            data={"site_id": result.site_id, "lang": result.lang, "slug": slug},
        )

    if result.needs_redirect:
        location = result.canonical.path(result.entity_type)
        if request.url.query:
            location = f"{location}?{request.url.query}"
        config.logger.info(
            "canonical_redirect",
            extra={
                "from_path": request.url.path,
                "location": location,
                "status_code": config.CANONICAL_REDIRECT_STATUS,
            },
        )
        return RedirectResponse(location, status_code=config.CANONICAL_REDIRECT_STATUS)

    if result.entity_type != expected_type:
        raise SlugUnresolved(
            f"Slug not found: {slug}",
            data={"site_id": result.site_id, "lang": result.lang, "slug": slug},
        )

    return {"status": "ok", **result.to_dict()}
