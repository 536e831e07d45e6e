"""
Shared validation helpers for PlaceGate services.
"""

from __future__ import annotations

import ipaddress
from typing import Optional, Sequence

import placegate.config as config
from placegate.errors import ValidationIssue


def validate_required_text(value: str, field: str, max_len: int) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValidationIssue(f"{field} must be a non-empty string", field=field, error_type="required")
    if len(value) > max_len:
        raise ValidationIssue(f"{field} exceeds max length {max_len}", field=field, error_type="max_length")


def validate_optional_text(value: Optional[str], field: str, max_len: int) -> None:
    if value is None:
        return
    if not isinstance(value, str):
        raise ValidationIssue(f"{field} must be a string", field=field, error_type="invalid_type")
    if len(value) > max_len:
        raise ValidationIssue(f"{field} exceeds max length {max_len}", field=field, error_type="max_length")


def normalize_lang(
    lang: Optional[str],
    supported: Optional[Sequence[str]] = None,
    fallbacks: Optional[Sequence[str]] = None,
) -> str:
    """Return a supported language code; blank input takes the first fallback language."""
    supported = tuple(supported if supported is not None else config.SUPPORTED_LANGS)
    fallbacks = tuple(fallbacks if fallbacks is not None else config.FALLBACK_LANGS)
    if lang is None or (isinstance(lang, str) and not lang.strip()):
        for candidate in fallbacks:
            if candidate in supported:
                return candidate
        if supported:
            return supported[0]
        raise ValidationIssue("No supported languages configured", field="lang", error_type="required")
    if not isinstance(lang, str):
        raise ValidationIssue("lang must be a string", field="lang", error_type="invalid_type")
    normalized = lang.strip().lower()
    if normalized not in supported:
        raise ValidationIssue(
            f"Unsupported lang: {lang!r}. Use {'|'.join(supported)}.",
            field="lang",
            error_type="unsupported",
            data={"supported": list(supported)},
        )
    return normalized


def normalize_key(value: Optional[str], field: str) -> str:
    """Strip a caller-supplied site key or slug; None becomes the empty string."""
    if value is None:
        return ""
    validate_optional_text(value, field, config.MAX_KEY_LENGTH)
    return value.strip()


def normalize_host(host: Optional[str]) -> Optional[str]:
    """Lowercase host without port; the first entry wins in proxy lists."""
    if not host or not isinstance(host, str):
        return None
    host = host.split(",")[0].strip().lower()
    if host.startswith("["):
        host = host[1:].split("]")[0]
    elif host.count(":") == 1:
        host = host.split(":")[0]
    return host or None


def is_local_host(host: str) -> bool:
    """localhost variants and bare IP addresses never map to a site domain."""
    if host == "localhost" or host.startswith("localhost."):
        return True
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True
