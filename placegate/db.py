"""
Engine/session setup and schema checks for the identity tables.

The schema is owned by Alembic. On startup the database is brought to
the head revision (or refused when auto-migration is off), then the
tables the resolvers read are checked to exist.
"""

from __future__ import annotations

import os
from typing import Optional

from sqlalchemy import create_engine, inspect
from sqlalchemy.orm import sessionmaker

import placegate.config as config
import placegate.models as models

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


class DB:
    """Database state holder (avoids global scoping issues)."""

    engine = None
    SessionLocal = None


def engine_options() -> dict:
    """Keyword arguments for create_engine on the configured backend."""
    options = {"pool_pre_ping": True}
    if config.DB_BACKEND == "sqlite":
        options["connect_args"] = {"check_same_thread": False}
    elif config.STATEMENT_TIMEOUT_MS:
        # Abandoned resolver reads are cancelled server side
        options["connect_args"] = {"options": f"-c statement_timeout={config.STATEMENT_TIMEOUT_MS}"}
    return options


def _alembic_config():
    try:
        from alembic.config import Config
    except ImportError as exc:
        raise RuntimeError("Alembic is required for migrations") from exc

    alembic_cfg = Config(os.path.join(BASE_DIR, "alembic.ini"))
    alembic_cfg.set_main_option("script_location", os.path.join(BASE_DIR, "alembic"))
    if config.DATABASE_URL:
        alembic_cfg.set_main_option("sqlalchemy.url", config.DATABASE_URL)
    return alembic_cfg


def get_schema_revisions(engine) -> tuple[Optional[str], Optional[str]]:
    """Return (current, head) Alembic revisions for the engine's database."""
    from alembic.runtime.migration import MigrationContext
    from alembic.script import ScriptDirectory

    head = ScriptDirectory.from_config(_alembic_config()).get_current_head()
    with engine.connect() as conn:
        current = MigrationContext.configure(conn).get_current_revision()
    return current, head


def missing_identity_tables(engine) -> list[str]:
    """Identity tables declared on the models but absent from the database."""
    present = set(inspect(engine).get_table_names())
    return sorted(name for name in models.Base.metadata.tables if name not in present)


def _migrate(engine) -> None:
    from alembic import command

    current, head = get_schema_revisions(engine)
    if current == head:
        return

    if not config.AUTO_MIGRATE_ON_STARTUP:
        raise RuntimeError(
            f"Database schema out of date (current={current}, expected={head}). "
            "Run 'alembic upgrade head' or set AUTO_MIGRATE_ON_STARTUP=true for dev."
        )

    config.logger.info("schema_upgrade", extra={"from_revision": current, "to_revision": head})
    command.upgrade(_alembic_config(), "head")
    upgraded, _ = get_schema_revisions(engine)
    if upgraded != head:
        raise RuntimeError("Database migration did not reach expected revision")


def init_db() -> None:
    """Connect, bring the schema to head and verify the identity tables."""
    config.validate_and_prepare_config()

    config.logger.info("Connecting to database...")
    DB.engine = create_engine(config.DATABASE_URL, **engine_options())
    DB.SessionLocal = sessionmaker(bind=DB.engine)

    _migrate(DB.engine)

    missing = missing_identity_tables(DB.engine)
    if missing:
        raise RuntimeError(f"Identity tables missing after migration: {', '.join(missing)}")

    config.logger.info("Database initialized", extra={"tables": sorted(models.Base.metadata.tables)})
