import os
from datetime import datetime, timedelta

os.environ.setdefault("DB_BACKEND", "sqlite")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from placegate.db import DB
from placegate.models import Base, Site, SiteAlias, SiteDomain, Slug, SlugEntityType


@pytest.fixture
def server_db(tmp_path):
    db_path = tmp_path / "placegate.sqlite"
    engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    previous_engine = DB.engine
    previous_session = DB.SessionLocal
    DB.engine = engine
    DB.SessionLocal = SessionLocal
    try:
        yield engine
    finally:
        DB.engine = previous_engine
        DB.SessionLocal = previous_session
        engine.dispose()


@pytest.fixture
def db_session(server_db):
    db = DB.SessionLocal()
    try:
        yield db
    finally:
        db.close()


class Records:
    """Small factory for identity records; every call commits."""

    def __init__(self, db):
        self.db = db
        self._clock = datetime(2026, 1, 1, 12, 0, 0)

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def _save(self, record):
        self.db.add(record)
        self.db.commit()
        return record

    def site(self, slug="etyek-budai", is_active=True, default_lang="hu") -> Site:
        now = self._tick()
        return self._save(
            Site(slug=slug, is_active=is_active, default_lang=default_lang, created_at=now, updated_at=now)
        )

    def alias(self, site, key, lang="hu", is_primary=True, is_active=True, redirect_to=None) -> SiteAlias:
        now = self._tick()
        return self._save(
            SiteAlias(
                site_id=site.id,
                lang=lang,
                key=key,
                is_primary=is_primary,
                is_active=is_active,
                redirect_to_id=redirect_to.id if redirect_to is not None else None,
                created_at=now,
                updated_at=now,
            )
        )

    def domain(self, site, domain, default_lang="hu", is_active=True, is_primary=True) -> SiteDomain:
        now = self._tick()
        return self._save(
            SiteDomain(
                site_id=site.id,
                domain=domain,
                default_lang=default_lang,
                is_active=is_active,
                is_primary=is_primary,
                created_at=now,
                updated_at=now,
            )
        )

    def slug(
        self,
        site,
        slug,
        entity_id,
        entity_type=SlugEntityType.place,
        lang="hu",
        is_primary=True,
        is_active=True,
        redirect_to=None,
    ) -> Slug:
        now = self._tick()
        return self._save(
            Slug(
                site_id=site.id,
                lang=lang,
                slug=slug,
                entity_type=entity_type,
                entity_id=entity_id,
                is_primary=is_primary,
                is_active=is_active,
                redirect_to_id=redirect_to.id if redirect_to is not None else None,
                created_at=now,
                updated_at=now,
            )
        )


@pytest.fixture
def records(db_session):
    return Records(db_session)
