"""Browser-driven room search.

Drives a full Playwright session through the site's navigation chain, consent
banner, CAPTCHA readiness wait, humanized typing and a multi-attempt form
submission, then extracts listings from the rendered results list. Used only
when the direct HTTP path yields nothing.

Every stage has a cheaper fallback beneath it (click, page script call,
direct navigation, direct HTTP fetch). The CAPTCHA readiness wait is the one
stage that aborts the attempt: nothing downstream works without the script.
"""

import asyncio
import html
import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Any

from ..config import SiteConfig
from ..exceptions import FetchError, ScrapeError
from ..models import Listing
from ..services.fallback import Strategy, run_chain, run_each
from ..services.timing import InteractionDelay, Sleep, poll_until, random_offset
from .browser import BrowserSession
from .direct import DirectFetcher
from .normalizer import normalize_all
from .site import (
    CONSENT_BUTTON,
    HOME_LOGO,
    HOME_URL,
    QUERY_INPUT,
    RECAPTCHA_READY_JS,
    RESULT_ANCHORS,
    RESULTS_LIST,
    RESULTS_PATH_MARKER,
    SEARCH_BUTTON,
    SEARCH_FORM_PATH,
    SEARCH_TILE,
    SEARCH_URL,
    SUBMIT_FORM_JS,
    build_search_url,
)

logger = logging.getLogger(__name__)

EXTRACT_ANCHORS_JS = """
    (anchors) => anchors
        .map((a) => ({ href: a.href, text: a.innerText || "" }))
        .filter((x) => x.href)
"""

SessionFactory = Callable[..., AbstractAsyncContextManager[Any]]


@dataclass(frozen=True)
class DriverTimings:
    """Bounded waits used by the driver. Playwright timeouts are in ms."""

    navigation_timeout_ms: int = 60_000
    selector_timeout_ms: int = 15_000
    consent_timeout_ms: int = 5_000
    captcha_poll_interval: float = 0.5
    captcha_timeout: float = 30.0
    typing_delay_ms: int = 80
    submit_attempts: int = 5
    click_timeout_ms: int = 5_000
    submit_navigation_timeout_ms: int = 20_000
    submit_results_timeout_ms: int = 5_000
    results_timeout_ms: int = 75_000
    fallback_results_timeout_ms: int = 45_000


def render_listings_html(listings: list[Listing]) -> str:
    """Render a minimal results list so extraction works the same for every path."""
    items = "".join(
        f'<li class="search-mate-entry"><a href="{html.escape(listing.href)}">'
        f"{html.escape(listing.summary)}</a></li>"
        for listing in listings
    )
    return f'<ul id="search-result-list">{items}</ul>'


class BrowserSessionDriver:
    """Runs the room search inside a simulated browser."""

    def __init__(
        self,
        direct_fetcher: DirectFetcher,
        site: SiteConfig | None = None,
        user_data_dir: str | None = None,
        delay: InteractionDelay | None = None,
        timings: DriverTimings | None = None,
        session_factory: SessionFactory = BrowserSession,
        sleep: Sleep = asyncio.sleep,
    ):
        """Initialize the driver.

        Args:
            direct_fetcher: Last-resort fetcher when the results list never renders.
            site: Search filter defaults for the canonical results URL.
            user_data_dir: Persistent browser profile directory.
            delay: Pause policy between interactive steps.
            timings: Bounded waits for each stage.
            session_factory: Builds the scoped browser session.
            sleep: Awaitable sleep used by polling.
        """
        self.direct_fetcher = direct_fetcher
        self.site = site or SiteConfig()
        self.user_data_dir = user_data_dir
        self.delay = delay or InteractionDelay()
        self.timings = timings or DriverTimings()
        self._session_factory = session_factory
        self._sleep = sleep

    async def scrape_with_browser(self, query: str, headless: bool = True) -> list[Listing]:
        """Run the full browser flow for a query.

        The browser session is released on every exit path.

        Args:
            query: Search query typed into the form.
            headless: Run the browser without a window.

        Returns:
            At least one normalized listing.

        Raises:
            ScrapeError: If CAPTCHA never became ready, the form was unreachable,
                or no listings could be extracted after the full fallback chain.
        """
        async with self._session_factory(headless=headless, user_data_dir=self.user_data_dir) as session:
            page = await session.new_page()

            await self.navigate_to_search_form(page)
            await self.wait_for_captcha(page)
            await self.delay.pause()
            await self.humanize(page)

            if await self.fill_query(page, query):
                await self.submit_search(page)
            else:
                logger.warning("Query input unavailable, relying on results URL fallback")

            await self.await_results(page, query)
            return await self.extract_listings(page)

    async def dismiss_consent(self, page: Any) -> bool:
        """Click the consent banner if it shows up; a missing banner is fine."""
        try:
            button = await page.wait_for_selector(CONSENT_BUTTON, timeout=self.timings.consent_timeout_ms)
        except Exception:
            return False
        if button is None:
            return False

        await self.delay.pause()
        try:
            await button.click()
            logger.debug("Consent banner dismissed")
            return True
        except Exception as e:
            logger.debug(f"Consent banner click failed: {e}")
            return False

    async def navigate_to_search_form(self, page: Any) -> None:
        """Reach the search form via the home page, falling back to direct navigation.

        Raises:
            ScrapeError: If neither route lands on the form.
        """
        result = await run_chain(
            "search form",
            [
                Strategy("home page tiles", lambda: self._via_home_page(page)),
                Strategy("direct navigation", lambda: self._goto_search_form(page)),
            ],
        )
        if not result.ok:
            raise ScrapeError("search form not reachable") from result.first_error
        logger.info(f"On search form via {result.succeeded}")

    async def _via_home_page(self, page: Any) -> bool:
        await page.goto(HOME_URL, wait_until="domcontentloaded", timeout=self.timings.navigation_timeout_ms)
        await self.dismiss_consent(page)

        if not await self._click_and_settle(page, HOME_LOGO, wait=True):
            logger.debug("Home logo not found")

        if not await self._click_and_settle(page, SEARCH_TILE):
            logger.warning("Search tile not found, navigating directly to search page")

        return self._on_search_form(page)

    async def _goto_search_form(self, page: Any) -> bool:
        await page.goto(SEARCH_URL, wait_until="domcontentloaded", timeout=self.timings.navigation_timeout_ms)
        await self.dismiss_consent(page)
        return self._on_search_form(page)

    async def _click_and_settle(self, page: Any, selector: str, wait: bool = False) -> bool:
        """Click an element and wait for the resulting load; False if it is absent."""
        try:
            if wait:
                handle = await page.wait_for_selector(selector, timeout=self.timings.selector_timeout_ms)
            else:
                handle = await page.query_selector(selector)
        except Exception:
            return False
        if handle is None:
            return False

        await self.delay.pause()
        await asyncio.gather(
            handle.click(),
            page.wait_for_load_state("domcontentloaded"),
            return_exceptions=True,
        )
        await self.dismiss_consent(page)
        return True

    @staticmethod
    def _on_search_form(page: Any) -> bool:
        return SEARCH_FORM_PATH in page.url

    async def wait_for_captcha(self, page: Any) -> None:
        """Wait until the page's reCAPTCHA client is loaded and callable.

        Raises:
            ScrapeError: If the client is not ready before the deadline.
        """

        async def ready() -> bool:
            return bool(await page.evaluate(RECAPTCHA_READY_JS))

        if not await poll_until(
            ready,
            interval=self.timings.captcha_poll_interval,
            timeout=self.timings.captcha_timeout,
            sleep=self._sleep,
        ):
            raise ScrapeError("captcha not ready")
        logger.debug("reCAPTCHA client ready")

    async def humanize(self, page: Any) -> None:
        """Small pointer movements and a scroll; best-effort."""
        try:
            await page.mouse.move(random_offset(50, 250), random_offset(50, 250))
            await self.delay.pause()
            await page.mouse.move(random_offset(300, 500), random_offset(300, 500))
            await page.mouse.wheel(0, random_offset(200, 500))
            await self.delay.pause()
        except Exception as e:
            logger.debug(f"Humanize step skipped: {e}")

    async def fill_query(self, page: Any, query: str) -> bool:
        """Clear the query field and type the query character by character."""
        field = page.locator(QUERY_INPUT)
        try:
            await field.wait_for(timeout=self.timings.selector_timeout_ms)
            await field.fill("")
            await field.press_sequentially(query, delay=self.timings.typing_delay_ms)
            return True
        except Exception as e:
            logger.warning(f"Could not fill query input: {e}")
            return False

    async def submit_search(self, page: Any) -> bool:
        """Submit the form until the page navigates or results render.

        Returns:
            True if a submission signal was seen within the attempt budget.
        """
        form_url = page.url
        attempts = self.timings.submit_attempts

        for attempt in range(1, attempts + 1):
            await self.delay.pause()
            triggered = await run_each(
                f"submit {attempt}/{attempts}",
                [
                    Strategy("search button", lambda: self._click_search_button(page)),
                    Strategy("submitForm()", lambda: self._call_submit_form(page)),
                ],
            )
            logger.debug(f"Submit attempt {attempt}/{attempts} triggered: {triggered or 'nothing'}")

            if await self._submission_landed(page, form_url):
                logger.info(f"Search submitted on attempt {attempt}/{attempts}")
                return True

        logger.warning(f"No submission signal after {attempts} attempts")
        return False

    async def _click_search_button(self, page: Any) -> bool:
        await page.locator(SEARCH_BUTTON).click(timeout=self.timings.click_timeout_ms, force=True)
        return True

    @staticmethod
    async def _call_submit_form(page: Any) -> bool:
        return bool(await page.evaluate(SUBMIT_FORM_JS))

    async def _submission_landed(self, page: Any, form_url: str) -> bool:
        def left_form(url: str) -> bool:
            return url != form_url and RESULTS_PATH_MARKER in url

        try:
            await page.wait_for_url(left_form, timeout=self.timings.submit_navigation_timeout_ms)
            return True
        except Exception:
            pass

        try:
            await page.wait_for_selector(RESULTS_LIST, timeout=self.timings.submit_results_timeout_ms)
            return True
        except Exception:
            return False

    async def await_results(self, page: Any, query: str) -> None:
        """Wait for the results list, falling back to the results URL and direct fetch.

        Raises:
            ScrapeError: Chained to the first wait failure if all fallbacks fail.
        """
        result = await run_chain(
            "results",
            [
                Strategy("submitted form", lambda: self._wait_for_results(page, self.timings.results_timeout_ms)),
                Strategy("canonical results URL", lambda: self._open_results_url(page, query)),
                Strategy("direct fetch", lambda: self._inject_direct_results(page, query)),
            ],
        )
        if not result.ok:
            raise ScrapeError("results list did not appear") from result.first_error
        logger.info(f"Results available via {result.succeeded}")

    @staticmethod
    async def _wait_for_results(page: Any, timeout_ms: int) -> bool:
        await page.wait_for_selector(RESULTS_LIST, timeout=timeout_ms)
        return True

    async def _open_results_url(self, page: Any, query: str) -> bool:
        logger.warning("No results after form submit, trying direct navigation fallback")
        await page.goto(
            build_search_url(query, self.site),
            wait_until="domcontentloaded",
            timeout=self.timings.navigation_timeout_ms,
        )
        await self.dismiss_consent(page)
        return await self._wait_for_results(page, self.timings.fallback_results_timeout_ms)

    async def _inject_direct_results(self, page: Any, query: str) -> bool:
        try:
            listings = await self.direct_fetcher.fetch(query)
        except FetchError as e:
            logger.warning(f"Last-resort direct fetch failed: {e}")
            return False

        await page.set_content(render_listings_html(listings))
        return True

    async def extract_listings(self, page: Any) -> list[Listing]:
        """Read result anchors from the page and normalize them.

        Raises:
            ScrapeError: If no valid listing could be extracted.
        """
        anchors = await page.eval_on_selector_all(RESULT_ANCHORS, EXTRACT_ANCHORS_JS)
        listings = normalize_all([(item.get("href"), item.get("text")) for item in anchors or []])
        if not listings:
            raise ScrapeError("no listings found after search")

        logger.info(f"Extracted {len(listings)} listing(s) from browser session")
        return listings
