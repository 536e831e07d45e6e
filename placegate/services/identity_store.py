"""
Identity store lookups used by the resolvers.

Point lookups by composite key plus the primary-record scans. All reads go
through the caller's SQLAlchemy session, so one resolution sees one
snapshot of the store.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import joinedload

from placegate.models import Site, SiteAlias, SiteDomain, Slug, SlugEntityType


class IdentityStore:
    """Read-only access to sites, site domains, site aliases and slugs."""

    def __init__(self, db):
        self.db = db

    def get_site(self, site_id: str) -> Optional[Site]:
        return self.db.get(Site, site_id)

    def get_site_by_slug(self, internal_slug: str) -> Optional[Site]:
        return (
            self.db.query(Site)
            .filter(Site.slug == internal_slug)
            .first()
        )

    def get_site_domain(self, host: str) -> Optional[SiteDomain]:
        return (
            self.db.query(SiteDomain)
            .options(joinedload(SiteDomain.site))
            .filter(SiteDomain.domain == host)
            .first()
        )

    def get_site_alias(self, lang: str, key: str) -> Optional[SiteAlias]:
        """Find the alias for (lang, key), preferring active, then primary, then oldest."""
        return (
            self.db.query(SiteAlias)
            .options(joinedload(SiteAlias.redirect_to))
            .filter(SiteAlias.lang == lang)
            .filter(SiteAlias.key == key)
            .order_by(
                SiteAlias.is_active.desc(),
                SiteAlias.is_primary.desc(),
                SiteAlias.created_at.asc(),
            )
            .first()
        )

    def find_primary_alias(self, site_id: str, lang: str) -> Optional[SiteAlias]:
        return (
            self.db.query(SiteAlias)
            .filter(SiteAlias.site_id == site_id)
            .filter(SiteAlias.lang == lang)
            .filter(SiteAlias.is_primary.is_(True))
            .filter(SiteAlias.is_active.is_(True))
            .filter(SiteAlias.redirect_to_id.is_(None))
            .order_by(SiteAlias.created_at.asc())
            .first()
        )

    def list_primary_aliases(self, site_id: str) -> list[SiteAlias]:
        return (
            self.db.query(SiteAlias)
            .filter(SiteAlias.site_id == site_id)
            .filter(SiteAlias.is_primary.is_(True))
            .filter(SiteAlias.is_active.is_(True))
            .filter(SiteAlias.redirect_to_id.is_(None))
            .order_by(SiteAlias.created_at.asc())
            .all()
        )

    def get_slug(self, site_id: str, lang: str, slug: str) -> Optional[Slug]:
        """Point lookup on (site_id, lang, slug) with the redirect target joined."""
        return (
            self.db.query(Slug)
            .options(joinedload(Slug.redirect_to))
            .filter(Slug.site_id == site_id)
            .filter(Slug.lang == lang)
            .filter(Slug.slug == slug)
            .first()
        )

    def find_primary_slug(
        self,
        site_id: str,
        lang: str,
        entity_type: SlugEntityType,
        entity_id: str,
    ) -> Optional[Slug]:
        return (
            self.db.query(Slug)
            .filter(Slug.site_id == site_id)
            .filter(Slug.lang == lang)
            .filter(Slug.entity_type == entity_type)
            .filter(Slug.entity_id == entity_id)
            .filter(Slug.is_primary.is_(True))
            .filter(Slug.is_active.is_(True))
            .filter(Slug.redirect_to_id.is_(None))
            .order_by(Slug.created_at.desc())
            .first()
        )


__all__ = ["IdentityStore"]
