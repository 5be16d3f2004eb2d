from __future__ import annotations

from typing import List, Optional
from urllib.parse import quote

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from coverscraper.catalog import CatalogEntry
from coverscraper.logging_config import get_logger

logger = get_logger(__name__)

NAV_TIMEOUT_MS = 30000
WAIT_TIMEOUT_MS = 5000


def is_absolute(url: Optional[str]) -> bool:
    return bool(url) and url.startswith("http")


def dedupe(urls: List[str]) -> List[str]:
    seen = set()
    out = []
    for url in urls:
        if url not in seen:
            seen.add(url)
            out.append(url)
    return out


class CoverProvider:                              # Base class for every search source in the fallback chain
    name: str = "base"                            # Human-readable provider name (override per provider)
    SEARCH_URL: str = ""                          # Format string with a {query} placeholder
    QUERY_SUFFIX: str = ""                        # Appended to "title author"
    READY_SELECTOR: str = "body"                  # Waited for after navigation (best-effort)

    def __init__(self, nav_timeout_ms: int = NAV_TIMEOUT_MS, wait_timeout_ms: int = WAIT_TIMEOUT_MS):
        self.nav_timeout_ms = nav_timeout_ms
        self.wait_timeout_ms = wait_timeout_ms

    def build_query(self, entry: CatalogEntry) -> str:
        parts = [entry.title, entry.author, self.QUERY_SUFFIX]
        return " ".join(p for p in parts if p)

    def search_url(self, entry: CatalogEntry) -> str:
        return self.SEARCH_URL.format(query=quote(self.build_query(entry), safe=""))

    async def open_results(self, page, url: str) -> None:
        """Navigate and wait for results. Timeouts are logged, never raised."""
        try:
            await page.goto(url, wait_until="domcontentloaded", timeout=self.nav_timeout_ms)
        except PlaywrightTimeoutError:
            logger.info("[%s] Navigation timed out, continuing with what loaded", self.name)

        try:
            await page.wait_for_selector(self.READY_SELECTOR, timeout=self.wait_timeout_ms)
        except PlaywrightTimeoutError:
            logger.info("[%s] Timed out waiting for %s, continuing anyway", self.name, self.READY_SELECTOR)

    async def extract(self, page) -> List[str]:
        """Implement in concrete providers: read ranked candidate URLs off the results page."""
        raise NotImplementedError

    async def find_candidates(self, page, entry: CatalogEntry) -> List[str]:
        url = self.search_url(entry)
        logger.info("[%s] Searching: %s", self.name, url)
        await self.open_results(page, url)
        return dedupe(await self.extract(page))

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class FirstThumbnailProvider(CoverProvider):
    """Providers whose answer is the `src` of the first element matching THUMBNAIL."""

    THUMBNAIL: str = "img"

    def normalize(self, src: str) -> Optional[str]:
        return src if is_absolute(src) else None

    async def extract(self, page) -> List[str]:
        el = await page.query_selector(self.THUMBNAIL)
        if not el:
            return []
        src = await el.get_attribute("src")
        url = self.normalize(src) if src else None
        return [url] if url else []
