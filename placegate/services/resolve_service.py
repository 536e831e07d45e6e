"""
Combined site + slug resolution for public URLs.

Resolves the site first (by request host when it names a site domain,
else by site key; the site scopes the slug namespace and is the
authority on language), then the slug, and merges both redirect signals
into a single canonical URL decision.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Optional
from urllib.parse import quote

import placegate.config as config
from placegate.db import DB
from placegate.models import SlugEntityType
from placegate.services.identity_store import IdentityStore
from placegate.services.site_resolver import SiteResolver
from placegate.services.slug_resolver import SlugResolver

logger = config.logger

ENTITY_PATHS = {
    SlugEntityType.place: "/places",
    SlugEntityType.event: "/events",
    SlugEntityType.town: "/towns",
    SlugEntityType.page: "/static-pages",
}

ENTITY_SEGMENTS = {path.lstrip("/"): entity_type for entity_type, path in ENTITY_PATHS.items()}


@dataclass(frozen=True)
class CanonicalUrl:
    lang: str
    site_key: str
    slug: str

    def path(self, entity_type: Optional[SlugEntityType] = None, prefix: Optional[str] = None) -> str:
        """Build the public path for this canonical triple."""
        base = config.PUBLIC_API_PREFIX if prefix is None else prefix.rstrip("/")
        entity_path = ENTITY_PATHS.get(entity_type, "") if entity_type is not None else ""
        return (
            f"{base}/{quote(self.lang, safe='')}/{quote(self.site_key, safe='')}"
            f"{entity_path}/{quote(self.slug, safe='')}"
        )


@dataclass(frozen=True)
class ResolveResult:
    site_id: str
    lang: str
    entity_type: SlugEntityType
    entity_id: str
    canonical: CanonicalUrl
    needs_redirect: bool

    def to_dict(self) -> dict:
        payload = asdict(self)
        payload["entity_type"] = self.entity_type.value
        return payload


class ResolveService:
    def __init__(self, site_resolver: SiteResolver, slug_resolver: SlugResolver):
        self.site_resolver = site_resolver
        self.slug_resolver = slug_resolver

    @classmethod
    def for_session(cls, db, **site_options) -> "ResolveService":
        store = IdentityStore(db)
        site_resolver = SiteResolver(store, **site_options)
        slug_resolver = SlugResolver(
            store,
            supported_langs=site_resolver.supported_langs,
            fallback_langs=site_resolver.fallback_langs,
        )
        return cls(site_resolver, slug_resolver)

    def resolve(
        self,
        lang: Optional[str],
        site_key: Optional[str],
        slug: Optional[str],
        host: Optional[str] = None,
    ) -> ResolveResult:
        site = self.site_resolver.resolve_host(host, lang) if host else None
        if site is None:
            site = self.site_resolver.resolve(lang, site_key)
        resolved = self.slug_resolver.resolve(site.site_id, site.lang, slug)

        canonical_site_key = site.canonical_site_key or (site_key or "").strip()
        needs_redirect = bool(site.redirected or resolved.redirected)
        if needs_redirect:
            logger.debug(
                "canonical_redirect_required",
                extra={
                    "site_redirected": site.redirected,
                    "slug_redirected": resolved.redirected,
                    "canonical_site_key": canonical_site_key,
                    "canonical_slug": resolved.canonical_slug,
                },
            )

        return ResolveResult(
            site_id=site.site_id,
            lang=site.lang,
            entity_type=resolved.entity_type,
            entity_id=resolved.entity_id,
            canonical=CanonicalUrl(
                lang=site.lang,
                site_key=canonical_site_key,
                slug=resolved.canonical_slug,
            ),
            needs_redirect=needs_redirect,
        )


def resolve_public_url(
    lang: Optional[str],
    site_key: Optional[str],
    slug: Optional[str],
    host: Optional[str] = None,
) -> ResolveResult:
    """Resolve a public URL triple in a short-lived session."""
    if DB.SessionLocal is None:
        raise RuntimeError("Database not initialized - SessionLocal is None")
    db = DB.SessionLocal()
    try:
        return ResolveService.for_session(db).resolve(lang, site_key, slug, host=host)
    finally:
        db.close()


__all__ = [
    "CanonicalUrl",
    "ResolveResult",
    "ResolveService",
    "ENTITY_PATHS",
    "ENTITY_SEGMENTS",
    "resolve_public_url",
]
