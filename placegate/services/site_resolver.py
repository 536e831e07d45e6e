"""
Site key resolution.

Maps a (lang, site key) pair from a public URL to a site id and the
canonical public key for that language, following at most one alias
redirect. A request host registered as a site domain takes priority.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import placegate.config as config
from placegate.errors import SiteUnresolved
from placegate.models import Site
from placegate.services.identity_store import IdentityStore
from placegate.translations import pick_translation
from placegate.validators import is_local_host, normalize_host, normalize_key, normalize_lang

logger = config.logger


@dataclass(frozen=True)
class ResolvedSite:
    site_id: str
    site_internal_slug: str
    lang: str
    canonical_site_key: Optional[str]
    redirected: bool
    domain: Optional[str] = None


class SiteResolver:
    def __init__(
        self,
        store: IdentityStore,
        *,
        default_site_slug: Optional[str] = None,
        supported_langs: Optional[Sequence[str]] = None,
        fallback_langs: Optional[Sequence[str]] = None,
        site_slug_fallback: Optional[bool] = None,
        domain_resolution: Optional[bool] = None,
    ):
        self.store = store
        self.default_site_slug = (
            default_site_slug if default_site_slug is not None else config.DEFAULT_SITE_SLUG
        )
        self.supported_langs = tuple(
            supported_langs if supported_langs is not None else config.SUPPORTED_LANGS
        )
        self.fallback_langs = tuple(
            fallback_langs if fallback_langs is not None else config.FALLBACK_LANGS
        )
        self.site_slug_fallback = (
            site_slug_fallback if site_slug_fallback is not None else config.SITE_SLUG_FALLBACK_ENABLED
        )
        self.domain_resolution = (
            domain_resolution if domain_resolution is not None else config.SITE_DOMAIN_RESOLUTION_ENABLED
        )

    def normalize_lang(self, lang: Optional[str]) -> str:
        return normalize_lang(lang, supported=self.supported_langs, fallbacks=self.fallback_langs)

    def resolve(self, lang: Optional[str], site_key: Optional[str]) -> ResolvedSite:
        lang = self.normalize_lang(lang)
        site_key = normalize_key(site_key, "site_key")

        if not site_key:
            return self._resolve_default(lang)

        alias = self.store.get_site_alias(lang, site_key)
        if alias is None or not alias.is_active:
            fallback = self._resolve_by_internal_slug(lang, site_key)
            if fallback is not None:
                return fallback
            logger.debug(
                "site_unresolved",
                extra={"lang": lang, "site_key": site_key, "alias_found": alias is not None},
            )
            raise SiteUnresolved(
                f"Site key not found: {site_key} for lang: {lang}",
                data={"lang": lang, "site_key": site_key},
            )

        # Explicit redirect to another active alias
        target = alias.redirect_to if alias.redirect_to_id else None
        if target is not None and target.is_active:
            site = self._require_site(target.site_id, lang, site_key)
            logger.debug(
                "site_key_redirect",
                extra={"lang": lang, "site_key": site_key, "canonical_site_key": target.key},
            )
            return self._result(site, lang, target.key, redirected=True)

        if alias.is_primary:
            site = self._require_site(alias.site_id, lang, site_key)
            return self._result(site, lang, alias.key, redirected=False)

        primary = self.store.find_primary_alias(alias.site_id, lang)
        if primary is not None and primary.id != alias.id:
            site = self._require_site(alias.site_id, lang, site_key)
            logger.debug(
                "site_key_non_primary",
                extra={"lang": lang, "site_key": site_key, "canonical_site_key": primary.key},
            )
            return self._result(site, lang, primary.key, redirected=True)

        site = self._require_site(alias.site_id, lang, site_key)
        logger.warning(
            "site_key_without_canonical",
            extra={"lang": lang, "site_key": site_key, "site_id": alias.site_id},
        )
        return self._result(site, lang, site_key, redirected=False)

    def resolve_host(self, host: Optional[str], lang: Optional[str] = None) -> Optional[ResolvedSite]:
        """Resolve the site from a request host.

        An active domain of an active site wins over any site key in the
        path; the domain itself is canonical, so there is no canonical key
        and never a redirect. A blank lang takes the domain's default
        language, then the site's. Returns None when the host does not
        name a site, so the caller falls back to site key resolution.
        """
        if not self.domain_resolution:
            return None
        host = normalize_host(host)
        if host is None or is_local_host(host):
            return None

        domain = self.store.get_site_domain(host)
        site = domain.site if domain is not None else None
        if domain is None or not domain.is_active or site is None or not site.is_active:
            logger.debug("site_domain_unmatched", extra={"host": host, "domain_found": domain is not None})
            return None

        if lang is None or (isinstance(lang, str) and not lang.strip()):
            defaults = [candidate for candidate in (domain.default_lang, site.default_lang) if candidate]
            lang = next((candidate for candidate in defaults if candidate in self.supported_langs), None)
        lang = self.normalize_lang(lang)

        logger.debug(
            "site_domain_resolved",
            extra={"host": host, "site_id": site.id, "lang": lang},
        )
        return ResolvedSite(
            site_id=site.id,
            site_internal_slug=site.slug,
            lang=lang,
            canonical_site_key=None,
            redirected=False,
            domain=host,
        )

    def _resolve_default(self, lang: str) -> ResolvedSite:
        site = None
        if self.default_site_slug:
            site = self.store.get_site_by_slug(self.default_site_slug)
        if site is None or not site.is_active:
            raise SiteUnresolved(
                "Site not found (default)",
                data={"lang": lang, "site_key": ""},
            )
        aliases = self.store.list_primary_aliases(site.id)
        picked = pick_translation(aliases, lang, fallbacks=self.fallback_langs)
        canonical_key = picked.key if picked is not None else None
        return self._result(site, lang, canonical_key, redirected=False)

    def _resolve_by_internal_slug(self, lang: str, site_key: str) -> Optional[ResolvedSite]:
        if not self.site_slug_fallback:
            return None
        site = self.store.get_site_by_slug(site_key)
        if site is None or not site.is_active:
            return None
        logger.debug(
            "site_key_internal_slug_fallback",
            extra={"lang": lang, "site_key": site_key, "site_id": site.id},
        )
        return self._result(site, lang, site_key, redirected=False)

    def _require_site(self, site_id: str, lang: str, site_key: str) -> Site:
        site = self.store.get_site(site_id)
        if site is None or not site.is_active:
            raise SiteUnresolved(
                f"Site not found or inactive for key: {site_key}",
                data={"lang": lang, "site_key": site_key},
            )
        return site

    @staticmethod
    def _result(site: Site, lang: str, canonical_key: Optional[str], *, redirected: bool) -> ResolvedSite:
        return ResolvedSite(
            site_id=site.id,
            site_internal_slug=site.slug,
            lang=lang,
            canonical_site_key=canonical_key,
            redirected=redirected,
        )


__all__ = ["ResolvedSite", "SiteResolver"]
