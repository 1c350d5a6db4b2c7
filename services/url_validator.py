"""
Live validation of guessed course URLs.

A provider that does not know a slug rarely answers 404: it usually redirects to its
homepage or catalog and serves that with a 200. A candidate therefore only counts when
the response is 2xx/3xx AND the final URL still has the requested path.
"""
from __future__ import annotations

import logging
from urllib.parse import urlparse

from services.http_client import HttpClient

logger = logging.getLogger("url_validator")


def _normalized_path(url: str) -> str:
    path = urlparse(url).path or ""
    return path.rstrip("/").lower()


def same_path(requested_url: str, final_url: str) -> bool:
    """True when both URLs share a path, ignoring case and a trailing slash."""
    return _normalized_path(requested_url) == _normalized_path(final_url)


class UrlValidator:
    def __init__(self, client: HttpClient):
        self.client = client

    async def validate(self, url: str) -> bool:
        """GET `url` and report whether it is a real course page. Never raises."""
        settings = self.client.settings
        try:
            async with self.client.session.get(
                url,
                headers=self.client.get_headers(),
                timeout=self.client.timeout,
                allow_redirects=True,
                max_redirects=settings.max_redirects,
            ) as response:
                status = response.status
                final_url = str(response.url)
        except Exception as e:
            logger.debug(f"Validation request failed for {url}: {e}", extra={"candidate": url})
            return False

        valid_status = 200 <= status < 400
        if not valid_status:
            logger.debug(f"Rejected {url}: HTTP {status}", extra={"candidate": url})
            return False
        if not same_path(url, final_url):
            logger.debug(f"Rejected {url}: redirected to {final_url}", extra={"candidate": url})
            return False
        return True
