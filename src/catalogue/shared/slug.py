"""URL slug helpers for product pages."""

import re

_DISALLOWED = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-+")


def slugify(value: str) -> str:
    """Lowercase, drop punctuation and join words with single hyphens.

    >>> slugify("  Classic  Tee! (Black) ")
    'classic-tee-black'
    """
    slug = _DISALLOWED.sub("", value.strip().lower())
    slug = _WHITESPACE.sub("-", slug)
    slug = _HYPHENS.sub("-", slug)
    return slug.strip("-")
