"""
Course resolution: turn a model-suggested course into a usable URL and image.

Design choices:
- Resolution is a chain of pluggable strategies. The slug/pattern fast path runs first;
  search-page scraping only runs when the fast path exhausts its candidates.
- The provider search page is the terminal fallback, so every course ends up with a URL.
- Nothing in here raises to the caller: strategy errors, timeouts and network failures
  are logged and the chain moves on.
- Courses in a batch are independent and resolved with bounded fan-out; candidates of a
  single course are validated one at a time so the first hit wins.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Sequence

from bs4 import BeautifulSoup

from core.config import Settings, get_settings
from schemas.course import CourseSuggestion, ResolvedCourse
from services.http_client import HttpClient
from services.provider_catalog import (
    DEFAULT_PLACEHOLDER,
    PLATFORM_PLACEHOLDERS,
    build_candidates,
    is_known_provider,
    placeholder_image,
    search_fallback,
)
from services.slugify import slugify
from services.url_validator import UrlValidator
from services.web_scraper import CourseDiscoveryStrategy, get_discovery_strategy

logger = logging.getLogger("course_resolver")


class ResolutionStrategy:
    """A way of finding a direct course URL. Returns None when it has no answer."""

    name: str = "strategy"

    async def find_url(self, course: CourseSuggestion) -> Optional[str]:
        raise NotImplementedError


class PatternResolutionStrategy(ResolutionStrategy):
    """Slug + provider path patterns, confirmed by live validation."""

    name = "pattern"

    def __init__(self, validator: UrlValidator):
        self.validator = validator

    async def find_url(self, course: CourseSuggestion) -> Optional[str]:
        slug = slugify(course.course_title)
        for candidate in build_candidates(course.provider, slug):
            if await self.validator.validate(candidate):
                return candidate
        return None


class ScrapeResolutionStrategy(ResolutionStrategy):
    """Provider search-page scraping, one CourseDiscoveryStrategy per provider."""

    name = "scrape"

    def __init__(self, client: HttpClient, limit: int = 5,
                 strategies: Optional[Dict[str, CourseDiscoveryStrategy]] = None):
        self.client = client
        self.limit = limit
        # Overrides keyed by lower-cased provider name
        self.strategies = {k.lower(): v for k, v in (strategies or {}).items()}

    def strategy_for(self, provider: str) -> Optional[CourseDiscoveryStrategy]:
        key = (provider or "").strip().lower()
        if key in self.strategies:
            return self.strategies[key]
        return get_discovery_strategy(key, limit=self.limit)

    async def find_url(self, course: CourseSuggestion) -> Optional[str]:
        strategy = self.strategy_for(course.provider)
        if strategy is None:
            return None
        return await strategy.discover(course.course_title, self.client)


class CourseResolver:
    def __init__(
        self,
        strategies: Sequence[ResolutionStrategy],
        client: Optional[HttpClient] = None,
        settings: Optional[Settings] = None,
    ):
        self.strategies = list(strategies)
        self.client = client
        self.settings = settings or get_settings()

    @classmethod
    def from_settings(cls, client: HttpClient, settings: Optional[Settings] = None) -> "CourseResolver":
        """Default chain: pattern validation, then search-page scraping when enabled."""
        settings = settings or client.settings
        strategies: List[ResolutionStrategy] = [PatternResolutionStrategy(UrlValidator(client))]
        if settings.enable_scrape_discovery:
            strategies.append(ScrapeResolutionStrategy(client, limit=settings.scrape_result_limit))
        return cls(strategies, client=client, settings=settings)

    async def resolve(self, course: CourseSuggestion) -> ResolvedCourse:
        if not is_known_provider(course.provider):
            logger.warning("unrecognized provider in recommendation",
                           extra={"provider": course.provider, "course_title": course.course_title})

        for strategy in self.strategies:
            try:
                url = await strategy.find_url(course)
            except Exception as e:
                logger.warning(f"{strategy.name} strategy failed: {e}",
                               extra={"provider": course.provider, "course_title": course.course_title,
                                      "strategy": strategy.name})
                continue
            if url:
                logger.info("course url resolved",
                            extra={"provider": course.provider, "course_title": course.course_title,
                                   "url": url, "strategy": strategy.name})
                image = await self._image_for(url)
                return self._build(course, url, image, strategy.name)

        return self.fallback(course)

    def fallback(self, course: CourseSuggestion) -> ResolvedCourse:
        """Search-page (or placeholder) result; used when no strategy produced a URL."""
        url = search_fallback(course.provider, course.course_title)
        source = "placeholder" if url == DEFAULT_PLACEHOLDER else "search"
        logger.warning("using search url for course",
                       extra={"provider": course.provider, "course_title": course.course_title, "url": url})
        return self._build(course, url, placeholder_image(url), source)

    async def resolve_all(self, courses: Sequence[CourseSuggestion]) -> List[ResolvedCourse]:
        """Resolve a batch with bounded concurrency; output order follows input order."""
        semaphore = asyncio.Semaphore(max(1, self.settings.resolution_concurrency))

        async def _one(course: CourseSuggestion) -> ResolvedCourse:
            async with semaphore:
                try:
                    return await asyncio.wait_for(self.resolve(course), timeout=self.settings.course_resolution_timeout)
                except asyncio.TimeoutError:
                    logger.warning("course resolution timed out",
                                   extra={"provider": course.provider, "course_title": course.course_title})
                    return self.fallback(course)

        return list(await asyncio.gather(*(_one(c) for c in courses)))

    async def _image_for(self, url: str) -> str:
        image = placeholder_image(url)
        if image != PLATFORM_PLACEHOLDERS["default"]:
            return image
        if not self.settings.fetch_og_images or self.client is None:
            return image
        return await self._og_image(url) or image

    async def _og_image(self, url: str) -> Optional[str]:
        try:
            html = await self.client.fetch_page(url)
        except Exception as e:
            logger.debug(f"Could not fetch {url} for og:image: {e}")
            return None
        if not html:
            return None
        tag = BeautifulSoup(html, 'html.parser').find('meta', attrs={'property': 'og:image'})
        content = tag.get('content') if tag else None
        return content.strip() if content and content.strip() else None

    @staticmethod
    def _build(course: CourseSuggestion, url: str, image: str, source: str) -> ResolvedCourse:
        return ResolvedCourse(
            course_title=course.course_title,
            provider=course.provider,
            url=url,
            image=image,
            resolution=source,
        )
