"""Acquisition orchestration.

Composes the direct HTTP fetcher and the browser session driver into one
"scrape once" operation and wraps it in a bounded retry loop with linear
backoff (10s, 20s, 30s, ... between failed attempts).
"""

import asyncio
import logging
from typing import Protocol

from ..exceptions import AcquisitionError
from ..models import Listing
from .timing import Sleep

logger = logging.getLogger(__name__)


class DirectFetcherProtocol(Protocol):
    """Cheap HTTP path, attempted first."""

    async def fetch(self, query: str) -> list[Listing]:
        ...


class BrowserDriverProtocol(Protocol):
    """Expensive browser path, used when the direct path yields nothing."""

    async def scrape_with_browser(self, query: str, headless: bool = True) -> list[Listing]:
        ...


class AcquisitionOrchestrator:
    """Acquires the current result set with fallbacks and retries.

    Responsibilities:
    - Try the direct fetcher first
    - Fall through to the browser driver on error or empty result
    - Retry whole cycles with linear backoff
    """

    def __init__(
        self,
        direct_fetcher: DirectFetcherProtocol,
        browser_driver: BrowserDriverProtocol,
        max_attempts: int = 4,
        backoff_seconds: float = 10.0,
        sleep: Sleep = asyncio.sleep,
    ):
        """Initialize the orchestrator.

        Args:
            direct_fetcher: Plain HTTP search.
            browser_driver: Browser-driven search.
            max_attempts: Default number of full cycles.
            backoff_seconds: Backoff step; attempt i sleeps i * step seconds.
            sleep: Awaitable sleep function.
        """
        self.direct_fetcher = direct_fetcher
        self.browser_driver = browser_driver
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep

    async def scrape_once(self, query: str, headless: bool = True) -> list[Listing]:
        """One full cycle: direct fetch, then browser if that yields nothing.

        Raises:
            ScrapeError: Or any error of the browser path, if it fails too.
        """
        try:
            direct = await self.direct_fetcher.fetch(query)
        except Exception as e:
            logger.warning(f"Direct fetch path failed: {e}")
            direct = []

        if direct:
            logger.info("Direct fetch succeeded, using those results")
            return direct

        return await self.browser_driver.scrape_with_browser(query, headless)

    async def acquire(self, query: str, headless: bool = True, max_attempts: int | None = None) -> list[Listing]:
        """Acquire listings, retrying whole cycles with linear backoff.

        Args:
            query: Search query.
            headless: Run the browser without a window.
            max_attempts: Override of the configured attempt budget.

        Returns:
            Listings from the first successful cycle.

        Raises:
            Exception: The last observed error once all attempts failed, or
                AcquisitionError if none was recorded.
        """
        attempts = max_attempts if max_attempts is not None else self.max_attempts
        last_error: Exception | None = None

        for attempt in range(1, attempts + 1):
            try:
                return await self.scrape_once(query, headless)
            except Exception as e:
                last_error = e
                if attempt == attempts:
                    logger.warning(f"Attempt {attempt}/{attempts} failed: {e}")
                    break
                backoff = attempt * self.backoff_seconds
                logger.warning(f"Attempt {attempt}/{attempts} failed: {e}. Sleeping {backoff:g}s")
                await self._sleep(backoff)

        if last_error is not None:
            raise last_error
        raise AcquisitionError("scraping failed after retries")
