"""URL-safe slugs for school scoping."""

import re
import unicodedata

MAX_SLUG_LENGTH = 120

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_VALID_SLUG = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


def slugify(value: str) -> str:
    """
    Derive a slug from a display name.

    >>> slugify("Angels Surf")
    'angels-surf'
    >>> slugify("  Ondas Açores!! ")
    'ondas-acores'
    """
    text = unicodedata.normalize("NFKD", str(value or "").lower())
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = _NON_ALNUM.sub("-", text).strip("-")
    return text[:MAX_SLUG_LENGTH].rstrip("-")


def is_valid_slug(value: str) -> bool:
    return bool(value) and len(value) <= MAX_SLUG_LENGTH and bool(_VALID_SLUG.match(value))
