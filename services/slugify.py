"""Course title to URL slug conversion."""
from __future__ import annotations

import re

# Generic marketing words providers leave out of their course slugs
MARKETING_SUFFIXES = (
    "specialization",
    "course",
    "masterclass",
    "bootcamp",
    "training",
    "guide",
    "fundamentals",
)

_WHITESPACE_RE = re.compile(r"\s+")
_INVALID_CHARS_RE = re.compile(r"[^a-z0-9_-]+")
_REPEATED_HYPHENS_RE = re.compile(r"-{2,}")
_SUFFIX_RE = re.compile(r"-(?:%s)$" % "|".join(MARKETING_SUFFIXES), re.IGNORECASE)


def slugify(title: str) -> str:
    """Turn a free-text course title into a lowercase, hyphenated slug.

    Trailing marketing suffixes ("-course", "-bootcamp", ...) are removed. An empty
    return value means the title has no usable slug.
    """
    slug = str(title or "").lower()
    slug = _WHITESPACE_RE.sub("-", slug)
    slug = _INVALID_CHARS_RE.sub("", slug)
    slug = _REPEATED_HYPHENS_RE.sub("-", slug)
    slug = slug.strip("-")

    # Repeat until stable so slugify(slugify(x)) == slugify(x)
    while True:
        stripped = _SUFFIX_RE.sub("", slug, count=1)
        if stripped == slug:
            break
        slug = stripped.rstrip("-")
    return slug
