"""
Shared outbound HTTP client for course URL resolution.

One aiohttp session is opened per resolution batch and closed when the batch ends,
whatever the outcome. Callers that already own a session (tests, long-lived workers)
can inject it; an injected session is never closed here.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional

import aiohttp
from fake_useragent import UserAgent
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from core.config import Settings, get_settings

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)

# Servers that refuse HEAD but serve GET
_HEAD_UNSUPPORTED = {403, 405, 501}


class HttpClient:
    """Async context manager wrapping an aiohttp session with browser-like defaults."""

    def __init__(self, settings: Optional[Settings] = None, session: Optional[aiohttp.ClientSession] = None):
        self.settings = settings or get_settings()
        self.session = session
        self._owns_session = session is None
        self.user_agent = UserAgent() if self.settings.user_agent_rotation else None
        self.timeout = aiohttp.ClientTimeout(total=self.settings.validation_timeout)

    async def __aenter__(self) -> "HttpClient":
        if self.session is None:
            connector = aiohttp.TCPConnector(limit=max(1, self.settings.resolution_concurrency * 2))
            self.session = aiohttp.ClientSession(connector=connector, timeout=self.timeout)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._owns_session and self.session is not None:
            await self.session.close()
            self.session = None

    def get_headers(self) -> Dict[str, str]:
        """Get headers for HTTP requests"""
        headers = {
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
            'Accept-Language': 'en-US,en;q=0.5',
        }

        if self.user_agent:
            headers['User-Agent'] = self.user_agent.random
        else:
            headers['User-Agent'] = DEFAULT_USER_AGENT

        return headers

    @retry(
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=2),
        retry=retry_if_exception_type((aiohttp.ClientError, asyncio.TimeoutError)),
        reraise=True,
    )
    async def fetch_page(self, url: str) -> Optional[str]:
        """Fetch a page body; None on any non-200 status. Network errors propagate after retries."""
        async with self.session.get(
            url,
            headers=self.get_headers(),
            timeout=self.timeout,
            max_redirects=self.settings.max_redirects,
        ) as response:
            if response.status != 200:
                logger.debug(f"HTTP {response.status} for {url}")
                return None
            return await response.text()

    async def exists(self, url: str) -> bool:
        """Lightweight existence check: HEAD first, GET when the server refuses HEAD."""
        try:
            async with self.session.head(
                url,
                headers=self.get_headers(),
                timeout=self.timeout,
                allow_redirects=True,
                max_redirects=self.settings.max_redirects,
            ) as response:
                status = response.status
            if status in _HEAD_UNSUPPORTED:
                async with self.session.get(
                    url,
                    headers=self.get_headers(),
                    timeout=self.timeout,
                    max_redirects=self.settings.max_redirects,
                ) as response:
                    status = response.status
            return 200 <= status < 400
        except Exception as e:
            logger.debug(f"Existence check failed for {url}: {e}")
            return False
