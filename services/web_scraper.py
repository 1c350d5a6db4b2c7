"""
Search-page scraping for course discovery.

When none of the guessed slug URLs validates, the resolver can ask the provider's own
search page instead: fetch the results HTML, take the first few result links, keep the
ones that live on the provider's domain and look like a course page, and accept the
first one that actually answers.

Each provider gets its own CourseDiscoveryStrategy subclass so a markup change on one
site only touches that class. Selectors reflect each site's current server-rendered
markup and may need updating over time.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Pattern
from urllib.parse import quote, urljoin, urlparse

from bs4 import BeautifulSoup

from services.http_client import HttpClient
from services.provider_catalog import PROVIDER_SEARCH_URLS, normalize_provider

logger = logging.getLogger(__name__)

COURSE_PATH_RE = re.compile(r"course|learn|training|tutorial", re.IGNORECASE)


class CourseDiscoveryStrategy(ABC):
    """Finds a direct course URL for a title on one provider."""

    provider: str = ""

    @abstractmethod
    async def discover(self, title: str, client: HttpClient) -> Optional[str]:
        """Return a confirmed course URL or None"""
        pass


class SearchPageScraper(CourseDiscoveryStrategy):
    """Base implementation driven by a search URL, a CSS selector and a domain."""

    base_url: str = ""
    domain: str = ""
    result_selector: str = "a[href]"
    course_path_re: Pattern = COURSE_PATH_RE

    def __init__(self, limit: int = 5):
        self.limit = limit

    def search_url(self, title: str) -> str:
        return f"{PROVIDER_SEARCH_URLS[self.provider]}{quote(title.strip(), safe='')}"

    def extract_links(self, html: str) -> List[str]:
        """First `limit` result links, absolutized, in page order and without duplicates."""
        soup = BeautifulSoup(html, 'html.parser')
        links: List[str] = []
        for anchor in soup.select(self.result_selector):
            href = (anchor.get('href') or '').strip()
            if not href or href.startswith('#') or href.startswith('javascript:'):
                continue
            absolute = urljoin(self.base_url, href)
            if absolute not in links:
                links.append(absolute)
            if len(links) >= self.limit:
                break
        return links

    def is_course_link(self, url: str) -> bool:
        parsed = urlparse(url)
        host = parsed.netloc.lower()
        if parsed.scheme not in ('http', 'https'):
            return False
        if not (host == self.domain or host.endswith('.' + self.domain)):
            return False
        return bool(self.course_path_re.search(parsed.path))

    async def discover(self, title: str, client: HttpClient) -> Optional[str]:
        search_url = self.search_url(title)
        try:
            html = await client.fetch_page(search_url)
        except Exception as e:
            logger.warning(f"Error fetching {self.provider} search page: {e}",
                           extra={"provider": self.provider, "course_title": title})
            return None
        if not html:
            return None

        for link in self.extract_links(html):
            if not self.is_course_link(link):
                continue
            if await client.exists(link):
                logger.info("course discovered from search page",
                            extra={"provider": self.provider, "course_title": title, "url": link})
                return link
        return None


class CourseraScraper(SearchPageScraper):
    provider = "coursera"
    base_url = "https://www.coursera.org"
    domain = "coursera.org"
    result_selector = "div.cds-ProductCard-header a[href], li.cds-9 a[href]"


class UdemyScraper(SearchPageScraper):
    provider = "udemy"
    base_url = "https://www.udemy.com"
    domain = "udemy.com"
    result_selector = "h3[data-purpose='course-title-url'] a[href]"


class EdXScraper(SearchPageScraper):
    provider = "edx"
    base_url = "https://www.edx.org"
    domain = "edx.org"
    result_selector = "div.discovery-card a[href]"


class LinkedInLearningScraper(SearchPageScraper):
    provider = "linkedin learning"
    base_url = "https://www.linkedin.com"
    domain = "linkedin.com"
    result_selector = "a.base-card__full-link[href]"


class SkillshareScraper(SearchPageScraper):
    provider = "skillshare"
    base_url = "https://www.skillshare.com"
    domain = "skillshare.com"
    result_selector = "a[href*='/classes/']"
    # Skillshare calls its courses "classes"
    course_path_re = re.compile(r"course|learn|training|tutorial|classes", re.IGNORECASE)


class FutureLearnScraper(SearchPageScraper):
    provider = "futurelearn"
    base_url = "https://www.futurelearn.com"
    domain = "futurelearn.com"
    result_selector = "a[href^='/courses/'], a[href^='https://www.futurelearn.com/courses/']"


DISCOVERY_STRATEGIES: Dict[str, type] = {
    scraper.provider: scraper
    for scraper in (
        CourseraScraper,
        UdemyScraper,
        EdXScraper,
        LinkedInLearningScraper,
        SkillshareScraper,
        FutureLearnScraper,
    )
}


def get_discovery_strategy(provider: str, limit: int = 5) -> Optional[CourseDiscoveryStrategy]:
    """Scraper for `provider`, or None when the provider has none (e.g. YouTube)."""
    scraper_class = DISCOVERY_STRATEGIES.get(normalize_provider(provider))
    return scraper_class(limit=limit) if scraper_class else None
