"""
Health and dependency endpoints.
"""

from __future__ import annotations

import os

from fastapi import APIRouter, HTTPException
from sqlalchemy import text

import placegate
import placegate.config as config
from placegate.db import DB, get_schema_revisions, missing_identity_tables


router = APIRouter()


def _check_db_health() -> dict:
    if DB.engine is None:
        return {"ok": False, "error": "db_not_initialized"}

    try:
        with DB.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as exc:
        return {"ok": False, "error": str(exc)}

    current_rev, head_rev = get_schema_revisions(DB.engine)
    schema_ok = head_rev is None or current_rev == head_rev
    missing = missing_identity_tables(DB.engine)
    return {
        "ok": schema_ok and not missing,
        "backend": config.DB_BACKEND,
        "schema_revision": current_rev,
        "schema_expected": head_rev,
        "schema_up_to_date": schema_ok,
        "missing_tables": missing,
    }


@router.get("/health")
async def health():
    """Health check endpoint."""
    db_health = _check_db_health()
    if not db_health.get("ok"):
        raise HTTPException(status_code=503, detail={"database": db_health})

    return {
        "status": "healthy",
        "service": "PlaceGate",
        "version": placegate.__version__,
        "instance_id": os.environ.get("PLACEGATE_INSTANCE_ID", "placegate-1"),
        "database": db_health,
    }
