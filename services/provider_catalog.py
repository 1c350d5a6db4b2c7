"""
Static provider tables used to turn a course suggestion into a URL and an image.

Design choices:
- Tables are keyed by the lower-cased provider name and never mutated at runtime, so
  concurrent resolutions can share them.
- Pattern prefixes are listed most-common first; the validator stops at the first hit.
- Every provider has a search template even when it has no direct-course patterns.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Tuple
from urllib.parse import quote, urlparse

logger = logging.getLogger("provider_catalog")

PROVIDER_URL_PATTERNS: Dict[str, Tuple[str, ...]] = {
    "coursera": (
        "https://www.coursera.org/learn/",
        "https://www.coursera.org/specializations/",
        "https://www.coursera.org/professional-certificates/",
    ),
    "udemy": (
        "https://www.udemy.com/course/",
    ),
    "edx": (
        "https://www.edx.org/course/",
        "https://www.edx.org/professional-certificate/",
        "https://www.edx.org/learn/",
    ),
    "linkedin learning": (
        "https://www.linkedin.com/learning/",
    ),
    "skillshare": (
        "https://www.skillshare.com/en/classes/",
    ),
    "futurelearn": (
        "https://www.futurelearn.com/courses/",
        "https://www.futurelearn.com/degrees/",
    ),
    "youtube": (),
}

PROVIDER_SEARCH_URLS: Dict[str, str] = {
    "coursera": "https://www.coursera.org/search?query=",
    "udemy": "https://www.udemy.com/courses/search/?q=",
    "edx": "https://www.edx.org/search?q=",
    "linkedin learning": "https://www.linkedin.com/learning/search?keywords=",
    "skillshare": "https://www.skillshare.com/search?query=",
    "futurelearn": "https://www.futurelearn.com/search?q=",
    "youtube": "https://www.youtube.com/results?search_query=",
}

DEFAULT_PLACEHOLDER = "https://via.placeholder.com/150"

# Domain substring -> logo. Checked in insertion order; "default" always last.
PLATFORM_PLACEHOLDERS: Dict[str, str] = {
    "udemy.com": "https://cdn.brandfetch.io/idTqV2BNgX/theme/dark/logo.svg?c=1dxbfHSJFAPEGdCLU4o5B",
    "coursera.org": "https://cdn.brandfetch.io/idTHfL51P-/theme/dark/logo.svg?c=1dxbfHSJFAPEGdCLU4o5B",
    "edx.org": "https://cdn.brandfetch.io/idSP67A-c2/theme/dark/logo.svg?c=1dxbfHSJFAPEGdCLU4o5B",
    "linkedin.com": "https://cdn.brandfetch.io/idJFz6sAsl/theme/dark/logo.svg?c=1dxbfHSJFAPEGdCLU4o5B",
    "skillshare.com": "https://cdn.brandfetch.io/idPmqWnmuh/theme/dark/logo.svg?c=1dxbfHSJFAPEGdCLU4o5B",
    "futurelearn.com": "https://cdn.brandfetch.io/idEhEPzARD/theme/dark/logo.svg?c=1dxbfHSJFAPEGdCLU4o5B",
    "youtube.com": "https://www.youtube.com/img/desktop/yt_1200.png",
    "default": DEFAULT_PLACEHOLDER,
}


def normalize_provider(provider: str) -> str:
    return (provider or "").strip().lower()


def is_known_provider(provider: str) -> bool:
    key = normalize_provider(provider)
    return key in PROVIDER_URL_PATTERNS or key in PROVIDER_SEARCH_URLS


def build_candidates(provider: str, slug: str) -> List[str]:
    """Return direct-course URL guesses for `slug`, in the provider's priority order.

    Empty when the slug is empty or the provider has no registered patterns.
    """
    if not slug:
        return []
    patterns = PROVIDER_URL_PATTERNS.get(normalize_provider(provider), ())
    return [f"{prefix}{slug}" for prefix in patterns]


def search_fallback(provider: str, title: str) -> str:
    """Provider search page pre-filled with the title, or the generic placeholder."""
    template = PROVIDER_SEARCH_URLS.get(normalize_provider(provider))
    if not template:
        logger.warning("no search template for provider", extra={"provider": provider, "course_title": title})
        return DEFAULT_PLACEHOLDER
    return f"{template}{quote((title or '').strip(), safe='')}"


def placeholder_image(url: str) -> str:
    """Logo for the platform hosting `url`; the default placeholder when none matches."""
    host = (urlparse(url or "").netloc or "").lower()
    if host:
        for domain, image in PLATFORM_PLACEHOLDERS.items():
            if domain != "default" and domain in host:
                return image
    return PLATFORM_PLACEHOLDERS["default"]
