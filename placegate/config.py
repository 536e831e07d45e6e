"""
Shared configuration for PlaceGate.
"""

from __future__ import annotations

import logging
import os

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("placegate")


def _get_bool(env_name: str, default: bool) -> bool:
    value = os.environ.get(env_name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int(env_name: str, default: int) -> int:
    value = os.environ.get(env_name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float(env_name: str, default: float) -> float:
    value = os.environ.get(env_name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_list(env_name: str, default: str) -> tuple[str, ...]:
    raw = os.environ.get(env_name, default)
    return tuple(item.strip().lower() for item in raw.split(",") if item.strip())


# Database settings
DB_BACKEND = os.environ.get("DB_BACKEND", "postgres").strip().lower()
SQLITE_PATH = os.environ.get("SQLITE_PATH", "/data/placegate.db")
DATABASE_URL = os.environ.get("DATABASE_URL")

# Database initialization controls
AUTO_MIGRATE_ON_STARTUP = _get_bool("AUTO_MIGRATE_ON_STARTUP", True)

# Languages
SUPPORTED_LANGS = _get_list("PLACEGATE_SUPPORTED_LANGS", "hu,en,de")
FALLBACK_LANGS = _get_list("PLACEGATE_FALLBACK_LANGS", "hu")

# Site resolution
DEFAULT_SITE_SLUG = os.environ.get("DEFAULT_SITE_SLUG", "etyek-budai").strip()
SITE_SLUG_FALLBACK_ENABLED = _get_bool("SITE_SLUG_FALLBACK_ENABLED", False)
SITE_DOMAIN_RESOLUTION_ENABLED = _get_bool("SITE_DOMAIN_RESOLUTION_ENABLED", True)

# Canonical redirects issued by the public API
CANONICAL_REDIRECT_STATUS = _get_int("CANONICAL_REDIRECT_STATUS", 301)
RESOLVE_TIMEOUT_SECONDS = _get_float("RESOLVE_TIMEOUT_SECONDS", 5.0)
# Postgres statement timeout for resolver reads; 0 disables it
STATEMENT_TIMEOUT_MS = _get_int("PLACEGATE_STATEMENT_TIMEOUT_MS", int(RESOLVE_TIMEOUT_SECONDS * 1000))
PUBLIC_API_PREFIX = os.environ.get("PLACEGATE_PUBLIC_API_PREFIX", "/api/public").rstrip("/")

# Request/input limits
MAX_KEY_LENGTH = _get_int("PLACEGATE_MAX_KEY_LENGTH", 255)
MAX_SLUG_SUFFIX_ATTEMPTS = _get_int("PLACEGATE_MAX_SLUG_SUFFIX_ATTEMPTS", 1000)


def validate_and_prepare_config() -> None:
    """Validate configuration and apply derived settings at startup."""
    global DATABASE_URL

    errors = []
    if DB_BACKEND not in {"postgres", "sqlite"}:
        errors.append("DB_BACKEND must be 'postgres' or 'sqlite'")

    if not SUPPORTED_LANGS:
        errors.append("PLACEGATE_SUPPORTED_LANGS must list at least one language")
    unknown_fallbacks = [lang for lang in FALLBACK_LANGS if lang not in SUPPORTED_LANGS]
    if unknown_fallbacks:
        errors.append(
            f"PLACEGATE_FALLBACK_LANGS contains unsupported languages: {', '.join(unknown_fallbacks)}"
        )

    if CANONICAL_REDIRECT_STATUS not in {301, 302, 307, 308}:
        errors.append("CANONICAL_REDIRECT_STATUS must be one of 301, 302, 307, 308")

    if RESOLVE_TIMEOUT_SECONDS <= 0:
        errors.append("RESOLVE_TIMEOUT_SECONDS must be positive")

    if STATEMENT_TIMEOUT_MS < 0:
        errors.append("PLACEGATE_STATEMENT_TIMEOUT_MS must not be negative")

    if not DEFAULT_SITE_SLUG:
        logger.warning("DEFAULT_SITE_SLUG is empty; requests without a site key will not resolve.")

    if not DATABASE_URL:
        if DB_BACKEND == "sqlite":
            if not SQLITE_PATH:
                errors.append("SQLITE_PATH environment variable is required for sqlite")
            else:
                DATABASE_URL = f"sqlite:///{SQLITE_PATH}"
        else:
            errors.append("DATABASE_URL environment variable is required")
    else:
        url_lower = DATABASE_URL.lower()
        is_sqlite_url = url_lower.startswith("sqlite")
        if DB_BACKEND == "sqlite" and not is_sqlite_url:
            errors.append("DATABASE_URL must be a sqlite URL when DB_BACKEND=sqlite")
        if DB_BACKEND == "postgres" and is_sqlite_url:
            errors.append("DATABASE_URL must be a postgres URL when DB_BACKEND=postgres")

    if errors:
        raise RuntimeError("Configuration invalid: " + "; ".join(errors))
