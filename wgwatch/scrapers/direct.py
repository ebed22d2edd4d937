"""Direct HTTP fetcher for the room search.

The site sometimes serves results to a plain request when the CAPTCHA bypass
marker is accepted. This path avoids browser automation entirely and is tried
first: a GET against the canonical search URL, then a POST of the same form.
"""

import logging

import aiohttp
from bs4 import BeautifulSoup

from ..config import SiteConfig
from ..exceptions import FetchError
from ..models import Listing
from .normalizer import normalize_all
from .site import LISTING_HREF_RE, SEARCH_URL, build_search_params, build_search_url, request_headers

logger = logging.getLogger(__name__)


def parse_listings_html(html: str) -> list[Listing]:
    """Parse listing anchors out of a search results HTML body.

    Args:
        html: Raw HTML of a results page or fragment.

    Returns:
        Normalized listings in page order; malformed anchors are dropped.
    """
    soup = BeautifulSoup(html, "html.parser")
    pairs = [
        (anchor.get("href"), anchor.get_text(" "))
        for anchor in soup.find_all("a", href=LISTING_HREF_RE)
    ]
    return normalize_all(pairs)


def _is_success(status: int) -> bool:
    return 200 <= status < 300


class DirectFetcher:
    """Fetches search results with plain HTTP requests."""

    def __init__(self, site: SiteConfig | None = None, timeout: float = 30.0):
        """Initialize the fetcher.

        Args:
            site: Search filter defaults.
            timeout: Total timeout per request in seconds.
        """
        self.site = site or SiteConfig()
        self.timeout = timeout

    async def fetch(self, query: str, session: aiohttp.ClientSession | None = None) -> list[Listing]:
        """Run the search via GET, falling back to a form POST.

        Args:
            query: Search query.
            session: HTTP session to use; a short-lived one is created if omitted.

        Returns:
            At least one listing.

        Raises:
            FetchError: If neither request produced listings.
        """
        if session is None:
            client_timeout = aiohttp.ClientTimeout(total=self.timeout)
            async with aiohttp.ClientSession(timeout=client_timeout) as own_session:
                return await self._fetch(query, own_session)
        return await self._fetch(query, session)

    async def _fetch(self, query: str, session: aiohttp.ClientSession) -> list[Listing]:
        headers = request_headers()

        try:
            listings = await self._get(query, session, headers)
        except (aiohttp.ClientError, TimeoutError) as e:
            logger.debug(f"Direct GET failed: {e}")
            listings = []
        if listings:
            logger.info(f"Direct GET returned {len(listings)} listing(s)")
            return listings

        try:
            listings = await self._post(query, session, headers)
        except (aiohttp.ClientError, TimeoutError) as e:
            raise FetchError(f"direct POST failed: {e}") from e
        if not listings:
            raise FetchError("no listings")

        logger.info(f"Direct POST returned {len(listings)} listing(s)")
        return listings

    async def _get(
        self, query: str, session: aiohttp.ClientSession, headers: dict[str, str]
    ) -> list[Listing]:
        url = build_search_url(query, self.site)
        async with session.get(url, headers=headers) as response:
            if not _is_success(response.status):
                logger.debug(f"Direct GET status {response.status}")
                return []
            return parse_listings_html(await response.text())

    async def _post(
        self, query: str, session: aiohttp.ClientSession, headers: dict[str, str]
    ) -> list[Listing]:
        form = build_search_params(query, self.site).as_form()
        post_headers = {**headers, "Content-Type": "application/x-www-form-urlencoded"}
        async with session.post(SEARCH_URL, data=form, headers=post_headers) as response:
            if not _is_success(response.status):
                raise FetchError(f"direct fetch status {response.status}")
            return parse_listings_html(await response.text())
