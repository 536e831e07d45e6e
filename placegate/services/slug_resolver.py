"""
Slug resolution.

Maps a (site id, lang, slug) triple to the entity it names and the
entity's canonical slug. Rules, in order:

1. explicit redirect to an active slug: the target is trusted as
   canonical and never chased further
2. non-primary slug: the entity's active primary slug is canonical
3. primary slug with no redirect: canonical as-is
4. non-primary slug whose entity has no primary: the caller's slug is
   returned unchanged so the request still succeeds
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import placegate.config as config
from placegate.errors import SlugUnresolved
from placegate.models import SlugEntityType
from placegate.services.identity_store import IdentityStore
from placegate.validators import normalize_key, normalize_lang

logger = config.logger


@dataclass(frozen=True)
class ResolvedSlug:
    site_id: str
    lang: str
    entity_type: SlugEntityType
    entity_id: str
    canonical_slug: str
    redirected: bool


class SlugResolver:
    def __init__(
        self,
        store: IdentityStore,
        *,
        supported_langs: Optional[Sequence[str]] = None,
        fallback_langs: Optional[Sequence[str]] = None,
    ):
        self.store = store
        self.supported_langs = supported_langs
        self.fallback_langs = fallback_langs

    def resolve(self, site_id: str, lang: Optional[str], slug: Optional[str]) -> ResolvedSlug:
        lang = normalize_lang(lang, supported=self.supported_langs, fallbacks=self.fallback_langs)
        slug = normalize_key(slug, "slug")
        lookup = {"site_id": site_id, "lang": lang, "slug": slug}

        hit = self.store.get_slug(site_id, lang, slug) if slug else None
        if hit is None or not hit.is_active:
            logger.debug("slug_unresolved", extra={**lookup, "slug_found": hit is not None})
            raise SlugUnresolved(f"Slug not found: {slug}", data=lookup)

        target = hit.redirect_to if hit.redirect_to_id else None
        if target is not None and target.is_active:
            logger.debug("slug_redirect", extra={**lookup, "canonical_slug": target.slug})
            return ResolvedSlug(
                site_id=target.site_id,
                lang=target.lang,
                entity_type=target.entity_type,
                entity_id=target.entity_id,
                canonical_slug=target.slug,
                redirected=True,
            )

        if not hit.is_primary:
            primary = self.store.find_primary_slug(site_id, lang, hit.entity_type, hit.entity_id)
            if primary is not None and primary.id != hit.id:
                logger.debug("slug_non_primary", extra={**lookup, "canonical_slug": primary.slug})
                return self._result(hit, primary.slug, redirected=True)

            logger.warning(
                "slug_without_primary",
                extra={
                    **lookup,
                    "entity_type": hit.entity_type.value,
                    "entity_id": hit.entity_id,
                },
            )

        return self._result(hit, slug, redirected=False)

    @staticmethod
    def _result(hit, canonical_slug: str, *, redirected: bool) -> ResolvedSlug:
        return ResolvedSlug(
            site_id=hit.site_id,
            lang=hit.lang,
            entity_type=hit.entity_type,
            entity_id=hit.entity_id,
            canonical_slug=canonical_slug,
            redirected=redirected,
        )


__all__ = ["ResolvedSlug", "SlugResolver"]
