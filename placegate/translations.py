"""
Translation fallback helpers shared by every entity type.

Pick the requested language, else the first configured fallback language
that is present, else the first available translation.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Optional, Sequence, TypeVar

import placegate.config as config

T = TypeVar("T")


def _default_lang_of(item: Any) -> Optional[str]:
    if isinstance(item, dict):
        return item.get("lang")
    return getattr(item, "lang", None)


def pick_translation(
    items: Iterable[T],
    lang: Optional[str],
    fallbacks: Optional[Sequence[str]] = None,
    lang_of: Callable[[T], Optional[str]] = _default_lang_of,
) -> Optional[T]:
    candidates = list(items)
    if not candidates:
        return None

    by_lang: dict[str, T] = {}
    for item in candidates:
        item_lang = lang_of(item)
        if item_lang and item_lang not in by_lang:
            by_lang[item_lang] = item

    if lang and lang in by_lang:
        return by_lang[lang]

    order = fallbacks if fallbacks is not None else config.FALLBACK_LANGS
    for fallback_lang in order:
        if fallback_lang in by_lang:
            return by_lang[fallback_lang]

    return candidates[0]


def translated_field(
    items: Iterable[Any],
    field: str,
    lang: Optional[str],
    fallbacks: Optional[Sequence[str]] = None,
    default: Any = None,
) -> Any:
    """Read one field from the translation picked by pick_translation."""
    picked = pick_translation(items, lang, fallbacks=fallbacks)
    if picked is None:
        return default
    if isinstance(picked, dict):
        value = picked.get(field)
    else:
        value = getattr(picked, field, None)
    return default if value is None else value


__all__ = ["pick_translation", "translated_field"]
