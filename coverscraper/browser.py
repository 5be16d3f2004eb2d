from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict

from playwright.async_api import async_playwright

from coverscraper.errors import SessionStartError
from coverscraper.logging_config import get_logger

logger = get_logger(__name__)


CHROME_ARGS = [
    "--no-sandbox",               # batch hosts and containers often lack the sandbox
    "--disable-dev-shm-usage",    # small /dev/shm crashes Chromium on long runs
]


@dataclass(frozen=True)
class SessionIdentity:                            # What one browsing session looks like from the outside
    name: str
    user_agent: str
    viewport: Dict[str, int] = field(default_factory=lambda: {"width": 1280, "height": 800})


PRIMARY_IDENTITY = SessionIdentity(
    name="primary",
    user_agent=(
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    ),
    viewport={"width": 1280, "height": 800},
)

# The retry pass looks like a different client so blocks on the first pass don't carry over.
RETRY_IDENTITY = SessionIdentity(
    name="retry",
    user_agent=(
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/99.0.4844.51 Safari/537.36"
    ),
    viewport={"width": 1366, "height": 768},
)


class BrowserSessions:
    """
    Owns one Chromium process for the whole run and hands out independent
    sessions (browser context + page) with a given identity.

    Usage:
        async with BrowserSessions(headless=True) as sessions:
            async with sessions.session(PRIMARY_IDENTITY) as page:
                ...
    """

    def __init__(self, headless: bool = True, storage_state: str | None = None):
        self.headless = headless
        self.storage_state = storage_state
        self._pw = None
        self._browser = None

    async def __aenter__(self) -> "BrowserSessions":
        try:
            self._pw = await async_playwright().start()
            self._browser = await self._pw.chromium.launch(headless=self.headless, args=CHROME_ARGS)
        except Exception as exc:
            await self.close()
            raise SessionStartError(f"Unable to start browser session: {exc}") from exc

        logger.info("Launched Chromium (headless=%s)", self.headless)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @asynccontextmanager
    async def session(self, identity: SessionIdentity) -> AsyncIterator:
        if self._browser is None:
            raise SessionStartError("Browser is not running.")

        try:
            context = await self._browser.new_context(
                storage_state=self.storage_state if self.storage_state else None,
                user_agent=identity.user_agent,
                viewport=identity.viewport,
            )
        except Exception as exc:
            raise SessionStartError(f"Unable to open {identity.name} session: {exc}") from exc

        try:
            page = await context.new_page()
        except Exception as exc:
            await context.close()
            raise SessionStartError(f"Unable to open {identity.name} session: {exc}") from exc

        logger.info(
            "Opened %s session (%dx%d)",
            identity.name, identity.viewport["width"], identity.viewport["height"],
        )
        try:
            yield page
        finally:
            # One context per pass; its cookies never leak into the next pass
            await context.close()

    async def close(self) -> None:
        """Stop Chromium and the Playwright driver; safe to call twice."""
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._pw is not None:
            await self._pw.stop()
            self._pw = None
