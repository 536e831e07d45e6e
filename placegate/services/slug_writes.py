"""
Slug write workflow.

Keeps the resolver's invariants true at write time:
- renames demote the previous primary in the same transaction that
  promotes the new one, so an entity never has two primaries
- explicit redirects point at an active, non-redirecting slug, so every
  chain is a single hop
- a primary slug is never redirected away, so an entity keeps its
  canonical slug and its older slugs keep resolving to it
"""

from __future__ import annotations

import re
import unicodedata
from collections import defaultdict
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError

import placegate.config as config
from placegate.errors import SlugUnresolved, ValidationIssue
from placegate.models import Slug, SlugEntityType
from placegate.validators import normalize_lang, validate_required_text

logger = config.logger


def slugify(text: str) -> str:
    """Lowercase ASCII slug: runs of anything outside [a-z0-9] collapse to one hyphen."""
    if not text:
        return ""
    text = unicodedata.normalize("NFKD", text.lower())
    text = text.encode("ascii", "ignore").decode("ascii")
    text = re.sub(r"[^a-z0-9]+", "-", text)
    return text.strip("-")


def _coerce_entity_type(entity_type) -> SlugEntityType:
    try:
        return SlugEntityType(entity_type)
    except ValueError as exc:
        raise ValidationIssue(
            f"Unsupported entity_type: {entity_type!r}",
            field="entity_type",
            error_type="invalid_value",
        ) from exc


def _slug_query(db, site_id: str, lang: str):
    return db.query(Slug).filter(Slug.site_id == site_id).filter(Slug.lang == lang)


def generate_unique_slug(
    db,
    site_id: str,
    lang: str,
    base: str,
    entity_type=None,
    entity_id: Optional[str] = None,
) -> str:
    """Return base, base-2, base-3, ... whichever is free in (site_id, lang).

    A slug already owned by the given entity counts as free.
    """
    lang = normalize_lang(lang)
    base = slugify(base)
    if not base:
        raise ValidationIssue("Cannot derive a slug from empty text", field="slug", error_type="required")
    owner_type = _coerce_entity_type(entity_type) if entity_type is not None else None

    candidate = base
    for counter in range(2, config.MAX_SLUG_SUFFIX_ATTEMPTS + 2):
        existing = _slug_query(db, site_id, lang).filter(Slug.slug == candidate).first()
        if existing is None:
            return candidate
        if owner_type is not None and existing.entity_type == owner_type and existing.entity_id == entity_id:
            return candidate
        candidate = f"{base}-{counter}"

    raise ValidationIssue(
        f"No free slug found for {base!r}",
        field="slug",
        error_type="exhausted",
    )


def assign_primary_slug(
    db,
    site_id: str,
    lang: str,
    entity_type,
    entity_id: str,
    slug: str,
    *,
    commit: bool = True,
) -> Slug:
    """Make `slug` the primary slug of an entity, demoting its previous primaries.

    Old slugs stay active without a redirect pointer; the resolver sends
    them to the new primary. Runs as one transaction.
    """
    lang = normalize_lang(lang)
    entity_type = _coerce_entity_type(entity_type)
    validate_required_text(slug, "slug", config.MAX_KEY_LENGTH)
    slug = slug.strip()

    try:
        existing = _slug_query(db, site_id, lang).filter(Slug.slug == slug).first()
        if existing is not None and (
            existing.entity_type != entity_type or existing.entity_id != entity_id
        ):
            raise ValidationIssue(
                f"Slug {slug!r} already belongs to another entity",
                field="slug",
                error_type="conflict",
                data={"entity_type": existing.entity_type.value, "entity_id": existing.entity_id},
            )

        now = datetime.utcnow()
        previous = (
            _slug_query(db, site_id, lang)
            .filter(Slug.entity_type == entity_type)
            .filter(Slug.entity_id == entity_id)
            .filter(Slug.is_primary.is_(True))
            .all()
        )
        for record in previous:
            if existing is not None and record.id == existing.id:
                continue
            record.is_primary = False
            record.updated_at = now

        if existing is not None:
            existing.is_primary = True
            existing.is_active = True
            existing.redirect_to_id = None
            existing.updated_at = now
            primary = existing
        else:
            primary = Slug(
                site_id=site_id,
                lang=lang,
                slug=slug,
                entity_type=entity_type,
                entity_id=entity_id,
                is_primary=True,
                is_active=True,
                created_at=now,
                updated_at=now,
            )
            db.add(primary)

        db.flush()

        # Redirects into a demoted record move to the new primary so they stay one hop
        demoted_ids = [record.id for record in previous if record is not primary]
        if demoted_ids:
            (
                db.query(Slug)
                .filter(Slug.redirect_to_id.in_(demoted_ids))
                .update({Slug.redirect_to_id: primary.id, Slug.updated_at: now}, synchronize_session="fetch")
            )

        if commit:
            db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ValidationIssue(
            f"Slug {slug!r} could not be assigned",
            field="slug",
            error_type="conflict",
        ) from exc
    except Exception:
        db.rollback()
        raise

    logger.info(
        "slug_assigned",
        extra={
            "site_id": site_id,
            "lang": lang,
            "entity_type": entity_type.value,
            "entity_id": entity_id,
            "slug": slug,
            "demoted": len(demoted_ids),
        },
    )
    return primary


def create_slug_redirect(
    db,
    site_id: str,
    lang: str,
    source: str,
    target: str,
    *,
    commit: bool = True,
) -> Slug:
    """Point `source` at `target`, keeping every redirect a single hop."""
    lang = normalize_lang(lang)
    validate_required_text(source, "source", config.MAX_KEY_LENGTH)
    validate_required_text(target, "target", config.MAX_KEY_LENGTH)
    source = source.strip()
    target = target.strip()

    if source == target:
        raise ValidationIssue("Slug cannot redirect to itself", field="target", error_type="redirect_loop")

    source_record = _slug_query(db, site_id, lang).filter(Slug.slug == source).first()
    if source_record is None:
        raise SlugUnresolved(f"Slug not found: {source}", data={"site_id": site_id, "lang": lang, "slug": source})

    target_record = _slug_query(db, site_id, lang).filter(Slug.slug == target).first()
    if target_record is None or not target_record.is_active:
        raise ValidationIssue(
            "Redirect target must be an active slug",
            field="target",
            error_type="invalid_target",
        )
    if target_record.redirect_to_id is not None:
        raise ValidationIssue(
            "Redirect target already redirects; point at its target instead",
            field="target",
            error_type="redirect_chain",
        )

    inbound = db.query(Slug).filter(Slug.redirect_to_id == source_record.id).count()
    if inbound:
        raise ValidationIssue(
            "Source slug is the target of other redirects",
            field="source",
            error_type="redirect_chain",
            data={"inbound_redirects": inbound},
        )

    if source_record.is_primary and source_record.is_active:
        raise ValidationIssue(
            "Source slug is its entity's primary slug; assign a new primary slug first",
            field="source",
            error_type="primary_source",
            data={
                "entity_type": source_record.entity_type.value,
                "entity_id": source_record.entity_id,
            },
        )

    try:
        source_record.redirect_to_id = target_record.id
        source_record.is_primary = False
        source_record.updated_at = datetime.utcnow()
        if commit:
            db.commit()
        else:
            db.flush()
    except IntegrityError as exc:
        db.rollback()
        raise ValidationIssue(
            f"Redirect from {source!r} could not be saved",
            field="source",
            error_type="conflict",
        ) from exc
    except Exception:
        db.rollback()
        raise

    logger.info(
        "slug_redirect_created",
        extra={"site_id": site_id, "lang": lang, "source": source, "target": target},
    )
    return source_record


def find_duplicate_primary_slugs(db) -> list[dict]:
    """Group active primary slugs that share one (site, lang, entity)."""
    rows = (
        db.query(Slug)
        .filter(Slug.is_primary.is_(True))
        .filter(Slug.is_active.is_(True))
        .order_by(Slug.created_at.desc(), Slug.id.desc())
        .all()
    )
    grouped: dict[tuple, list[Slug]] = defaultdict(list)
    for row in rows:
        grouped[(row.site_id, row.lang, row.entity_type, row.entity_id)].append(row)

    duplicates = []
    for (site_id, lang, entity_type, entity_id), records in grouped.items():
        if len(records) < 2:
            continue
        duplicates.append(
            {
                "site_id": site_id,
                "lang": lang,
                "entity_type": entity_type,
                "entity_id": entity_id,
                "slugs": records,
            }
        )
    return duplicates


def repair_duplicate_primary_slugs(db, dry_run: bool = True) -> dict:
    """Keep the newest primary of each duplicate group and demote the others."""
    duplicates = find_duplicate_primary_slugs(db)
    demoted: list[str] = []
    now = datetime.utcnow()
    for group in duplicates:
        keep, *rest = group["slugs"]
        for record in rest:
            demoted.append(record.slug)
            if not dry_run:
                record.is_primary = False
                record.updated_at = now
        logger.warning(
            "duplicate_primary_slugs",
            extra={
                "site_id": group["site_id"],
                "lang": group["lang"],
                "entity_type": group["entity_type"].value,
                "entity_id": group["entity_id"],
                "kept": keep.slug,
                "dry_run": dry_run,
            },
        )

    if not dry_run and demoted:
        db.commit()

    return {
        "status": "dry_run" if dry_run else "repaired",
        "groups": len(duplicates),
        "demoted_count": len(demoted),
        "demoted": demoted,
    }


__all__ = [
    "slugify",
    "generate_unique_slug",
    "assign_primary_slug",
    "create_slug_redirect",
    "find_duplicate_primary_slugs",
    "repair_duplicate_primary_slugs",
]
