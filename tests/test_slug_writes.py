import os

os.environ.setdefault("DB_BACKEND", "sqlite")

import pytest
from sqlalchemy.exc import IntegrityError

from placegate.errors import SlugUnresolved, ValidationIssue
from placegate.models import Slug, SlugEntityType
from placegate.services.identity_store import IdentityStore
from placegate.services.slug_resolver import SlugResolver
from placegate.services.slug_writes import (
    assign_primary_slug,
    create_slug_redirect,
    find_duplicate_primary_slugs,
    generate_unique_slug,
    repair_duplicate_primary_slugs,
    slugify,
)


@pytest.fixture
def site(records):
    return records.site()


def _slugs_for(db, entity_id):
    return {
        row.slug: row
        for row in db.query(Slug).filter(Slug.entity_id == entity_id).all()
    }


def test_slugify():
    assert slugify("Kávé Ház") == "kave-haz"
    assert slugify("  Etyek -- Budai Borvidék! ") == "etyek-budai-borvidek"
    assert slugify("") == ""
    assert slugify("***") == ""


def test_rename_demotes_previous_primary(records, site, db_session):
    records.slug(site, "cafe-central", "E")

    primary = assign_primary_slug(db_session, site.id, "hu", "place", "E", "central-cafe")

    slugs = _slugs_for(db_session, "E")
    assert primary.slug == "central-cafe"
    assert slugs["central-cafe"].is_primary is True
    assert slugs["cafe-central"].is_primary is False
    assert slugs["cafe-central"].is_active is True
    assert slugs["cafe-central"].redirect_to_id is None

    resolver = SlugResolver(IdentityStore(db_session))
    old = resolver.resolve(site.id, "hu", "cafe-central")
    new = resolver.resolve(site.id, "hu", "central-cafe")
    assert old.redirected is True
    assert old.canonical_slug == "central-cafe"
    assert new.redirected is False
    assert new.entity_id == "E"


def test_reassigning_old_slug_promotes_it_again(records, site, db_session):
    records.slug(site, "central-cafe", "E")
    records.slug(site, "cafe-central", "E", is_primary=False)

    assign_primary_slug(db_session, site.id, "hu", SlugEntityType.place, "E", "cafe-central")

    slugs = _slugs_for(db_session, "E")
    assert len(slugs) == 2
    assert slugs["cafe-central"].is_primary is True
    assert slugs["central-cafe"].is_primary is False


def test_rename_repoints_inbound_redirects(records, site, db_session):
    current = records.slug(site, "cafe-central", "E")
    stale = records.slug(site, "old-cafe", "E", is_primary=False, redirect_to=current)

    primary = assign_primary_slug(db_session, site.id, "hu", "place", "E", "central-cafe")

    db_session.refresh(stale)
    assert stale.redirect_to_id == primary.id
    result = SlugResolver(IdentityStore(db_session)).resolve(site.id, "hu", "old-cafe")
    assert result.canonical_slug == "central-cafe"


def test_assign_rejects_slug_owned_by_another_entity(records, site, db_session):
    records.slug(site, "shared-name", "other-entity")

    with pytest.raises(ValidationIssue) as excinfo:
        assign_primary_slug(db_session, site.id, "hu", "place", "E", "shared-name")

    assert excinfo.value.error_type == "conflict"
    assert excinfo.value.data == {"entity_type": "place", "entity_id": "other-entity"}
    assert _slugs_for(db_session, "E") == {}


def test_assign_rejects_unknown_entity_type(site, db_session):
    with pytest.raises(ValidationIssue) as excinfo:
        assign_primary_slug(db_session, site.id, "hu", "castle", "E", "some-slug")

    assert excinfo.value.field == "entity_type"


def test_assign_requires_slug_text(site, db_session):
    with pytest.raises(ValidationIssue) as excinfo:
        assign_primary_slug(db_session, site.id, "hu", "place", "E", "   ")

    assert excinfo.value.error_type == "required"


def test_generate_unique_slug_appends_counter(records, site, db_session):
    records.slug(site, "kave-haz", "place-1")
    records.slug(site, "kave-haz-2", "place-2")

    assert generate_unique_slug(db_session, site.id, "hu", "Kávé Ház") == "kave-haz-3"
    assert generate_unique_slug(db_session, site.id, "en", "Kávé Ház") == "kave-haz"


def test_generate_unique_slug_keeps_own_slug(records, site, db_session):
    records.slug(site, "kave-haz", "place-1")

    slug = generate_unique_slug(db_session, site.id, "hu", "Kávé Ház", entity_type="place", entity_id="place-1")

    assert slug == "kave-haz"


def test_generate_unique_slug_rejects_empty_base(site, db_session):
    with pytest.raises(ValidationIssue):
        generate_unique_slug(db_session, site.id, "hu", "!!!")


def test_create_slug_redirect(records, site, db_session):
    records.slug(site, "wine-tours", "event-2", entity_type=SlugEntityType.event)
    records.slug(site, "wine-tour", "event-1", entity_type=SlugEntityType.event, is_primary=False)

    source = create_slug_redirect(db_session, site.id, "hu", "wine-tour", "wine-tours")

    assert source.is_primary is False
    result = SlugResolver(IdentityStore(db_session)).resolve(site.id, "hu", "wine-tour")
    assert result.redirected is True
    assert result.canonical_slug == "wine-tours"
    assert result.entity_id == "event-2"


def test_create_slug_redirect_rejects_primary_source(records, site, db_session):
    records.slug(site, "cafe-central", "E")
    assign_primary_slug(db_session, site.id, "hu", "place", "E", "central-cafe")
    records.slug(site, "grand-cafe", "F")

    with pytest.raises(ValidationIssue) as excinfo:
        create_slug_redirect(db_session, site.id, "hu", "central-cafe", "grand-cafe")

    assert excinfo.value.error_type == "primary_source"
    assert excinfo.value.data == {"entity_type": "place", "entity_id": "E"}
    assert _slugs_for(db_session, "E")["central-cafe"].redirect_to_id is None

    # the slug demoted by the rename still leads to the entity's canonical slug
    result = SlugResolver(IdentityStore(db_session)).resolve(site.id, "hu", "cafe-central")
    assert result.redirected is True
    assert result.canonical_slug == "central-cafe"


def test_create_slug_redirect_rolls_back_failed_commit(records, site, db_session, monkeypatch):
    records.slug(site, "wine-tours", "event-2", entity_type=SlugEntityType.event)
    records.slug(site, "wine-tour", "event-1", entity_type=SlugEntityType.event, is_primary=False)

    def failing_commit():
        raise IntegrityError("UPDATE slugs", {}, Exception("constraint failed"))

    monkeypatch.setattr(db_session, "commit", failing_commit)

    with pytest.raises(ValidationIssue) as excinfo:
        create_slug_redirect(db_session, site.id, "hu", "wine-tour", "wine-tours")

    assert excinfo.value.error_type == "conflict"
    assert excinfo.value.field == "source"
    assert _slugs_for(db_session, "event-1")["wine-tour"].redirect_to_id is None


def test_create_slug_redirect_rejects_self(records, site, db_session):
    records.slug(site, "loop", "place-1")

    with pytest.raises(ValidationIssue) as excinfo:
        create_slug_redirect(db_session, site.id, "hu", "loop", "loop")

    assert excinfo.value.error_type == "redirect_loop"


def test_create_slug_redirect_unknown_source(records, site, db_session):
    records.slug(site, "target", "place-1")

    with pytest.raises(SlugUnresolved):
        create_slug_redirect(db_session, site.id, "hu", "missing", "target")


def test_create_slug_redirect_rejects_inactive_target(records, site, db_session):
    records.slug(site, "source", "place-1")
    records.slug(site, "target", "place-2", is_active=False)

    with pytest.raises(ValidationIssue) as excinfo:
        create_slug_redirect(db_session, site.id, "hu", "source", "target")

    assert excinfo.value.error_type == "invalid_target"


def test_create_slug_redirect_prevents_chains(records, site, db_session):
    c = records.slug(site, "c-slug", "place-3")
    b = records.slug(site, "b-slug", "place-2", is_primary=False, redirect_to=c)
    records.slug(site, "a-slug", "place-1")
    records.slug(site, "d-slug", "place-4")
    records.slug(site, "e-slug", "place-5", is_primary=False, redirect_to=b)

    with pytest.raises(ValidationIssue) as into_redirect:
        create_slug_redirect(db_session, site.id, "hu", "a-slug", "b-slug")
    # b-slug already has e-slug pointing at it
    with pytest.raises(ValidationIssue) as from_target:
        create_slug_redirect(db_session, site.id, "hu", "b-slug", "d-slug")

    assert into_redirect.value.error_type == "redirect_chain"
    assert from_target.value.error_type == "redirect_chain"
    assert from_target.value.field == "source"


def test_duplicate_primary_repair_keeps_newest(records, site, db_session):
    records.slug(site, "older", "E")
    records.slug(site, "newer", "E")
    records.slug(site, "single", "F")

    duplicates = find_duplicate_primary_slugs(db_session)
    assert len(duplicates) == 1
    assert [row.slug for row in duplicates[0]["slugs"]] == ["newer", "older"]

    preview = repair_duplicate_primary_slugs(db_session)
    assert preview == {"status": "dry_run", "groups": 1, "demoted_count": 1, "demoted": ["older"]}
    assert _slugs_for(db_session, "E")["older"].is_primary is True

    report = repair_duplicate_primary_slugs(db_session, dry_run=False)
    assert report["status"] == "repaired"
    assert report["demoted"] == ["older"]
    slugs = _slugs_for(db_session, "E")
    assert slugs["newer"].is_primary is True
    assert slugs["older"].is_primary is False
    assert find_duplicate_primary_slugs(db_session) == []
