from placegate.services.identity_store import IdentityStore
from placegate.services.resolve_service import (
    CanonicalUrl,
    ResolveResult,
    ResolveService,
    resolve_public_url,
)
from placegate.services.site_resolver import ResolvedSite, SiteResolver
from placegate.services.slug_resolver import ResolvedSlug, SlugResolver

__all__ = [
    "IdentityStore",
    "CanonicalUrl",
    "ResolveResult",
    "ResolveService",
    "resolve_public_url",
    "ResolvedSite",
    "SiteResolver",
    "ResolvedSlug",
    "SlugResolver",
]
