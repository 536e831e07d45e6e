"""
PlaceGate Database Models
Sites, public site aliases and entity slugs
"""

from datetime import datetime
from enum import Enum as PyEnum
import uuid
from sqlalchemy import (
    Column, String, Boolean, DateTime, ForeignKey, Index, UniqueConstraint, Enum
)
from sqlalchemy.orm import relationship, declarative_base

import placegate.config as config

DEFAULT_LANG = config.FALLBACK_LANGS[0] if config.FALLBACK_LANGS else "hu"

# Identifiers are stored as text so they match the platform's string ids
ID_TYPE = String(36)
LANG_TYPE = String(8)


def _uuid_default() -> str:
    return str(uuid.uuid4())

Base = declarative_base()

# =============================================================================
# Enums
# =============================================================================

class SlugEntityType(str, PyEnum):
    place = "place"
    place_type = "place_type"
    town = "town"
    page = "page"
    region = "region"
    event = "event"


# =============================================================================
# Sites
# =============================================================================

class Site(Base):
    __tablename__ = "sites"

    id = Column(ID_TYPE, primary_key=True, default=_uuid_default)
    slug = Column(String(255), nullable=False)  # internal key, never public
    default_lang = Column(LANG_TYPE, nullable=False, default=DEFAULT_LANG)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    aliases = relationship("SiteAlias", back_populates="site", cascade="all, delete-orphan")
    slugs = relationship("Slug", back_populates="site", cascade="all, delete-orphan")
    domains = relationship("SiteDomain", back_populates="site", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint("slug", name="uq_sites_slug"),
    )


class SiteAlias(Base):
    __tablename__ = "site_aliases"

    id = Column(ID_TYPE, primary_key=True, default=_uuid_default)
    site_id = Column(ID_TYPE, ForeignKey("sites.id", ondelete="CASCADE"), nullable=False)
    lang = Column(LANG_TYPE, nullable=False)
    key = Column(String(255), nullable=False)  # public site key used in URLs
    is_primary = Column(Boolean, default=True, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    redirect_to_id = Column(ID_TYPE, ForeignKey("site_aliases.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    site = relationship("Site", back_populates="aliases")
    redirect_to = relationship("SiteAlias", remote_side=[id], foreign_keys=[redirect_to_id])

    __table_args__ = (
        UniqueConstraint("site_id", "lang", "key", name="uq_site_aliases_site_lang_key"),
        Index("ix_site_aliases_lang_key", "lang", "key"),
        Index("ix_site_aliases_site_lang", "site_id", "lang"),
    )


class SiteDomain(Base):
    __tablename__ = "site_domains"

    id = Column(ID_TYPE, primary_key=True, default=_uuid_default)
    site_id = Column(ID_TYPE, ForeignKey("sites.id", ondelete="CASCADE"), nullable=False)
    domain = Column(String(255), nullable=False)  # lowercase host, no port
    default_lang = Column(LANG_TYPE, nullable=False, default=DEFAULT_LANG)
    is_primary = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    site = relationship("Site", back_populates="domains")

    __table_args__ = (
        UniqueConstraint("domain", name="uq_site_domains_domain"),
        Index("ix_site_domains_site", "site_id"),
    )


# =============================================================================
# Slugs
# =============================================================================

class Slug(Base):
    __tablename__ = "slugs"

    id = Column(ID_TYPE, primary_key=True, default=_uuid_default)
    site_id = Column(ID_TYPE, ForeignKey("sites.id", ondelete="CASCADE"), nullable=False)
    lang = Column(LANG_TYPE, nullable=False)
    slug = Column(String(255), nullable=False)
    entity_type = Column(
        Enum(SlugEntityType, name="slug_entity_type", native_enum=False, length=32),
        nullable=False,
    )
    entity_id = Column(ID_TYPE, nullable=False)
    is_primary = Column(Boolean, default=True, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    redirect_to_id = Column(ID_TYPE, ForeignKey("slugs.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    site = relationship("Site", back_populates="slugs")
    redirect_to = relationship("Slug", remote_side=[id], foreign_keys=[redirect_to_id])

    __table_args__ = (
        UniqueConstraint("site_id", "lang", "slug", name="uq_slugs_site_lang_slug"),
        Index("ix_slugs_site_entity", "site_id", "entity_type", "entity_id"),
    )


__all__ = [
    "Base",
    "SlugEntityType",
    "Site",
    "SiteAlias",
    "SiteDomain",
    "Slug",
    "DEFAULT_LANG",
]
