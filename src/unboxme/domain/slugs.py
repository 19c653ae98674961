"""URL-safe slugs for purchased gift boxes."""

import re
import unicodedata
from collections.abc import Iterable

DEFAULT_SLUG = "gift-box"
MAX_SLUG_LENGTH = 48

_NON_SLUG = re.compile(r"[^a-z0-9]+")


def slugify(title: str) -> str:
    """Derive a lowercase, hyphenated slug from a title."""
    normalized = unicodedata.normalize("NFKD", title)
    ascii_title = normalized.encode("ascii", "ignore").decode("ascii").lower()
    slug = _NON_SLUG.sub("-", ascii_title).strip("-")
    slug = slug[:MAX_SLUG_LENGTH].rstrip("-")
    return slug or DEFAULT_SLUG


def resolve_unique_slug(base: str, taken: Iterable[str]) -> str:
    """Return ``base`` or the first ``base-N`` (N >= 2) not already taken."""
    existing = set(taken)
    if base not in existing:
        return base
    suffix = 2
    while f"{base}-{suffix}" in existing:
        suffix += 1
    return f"{base}-{suffix}"
