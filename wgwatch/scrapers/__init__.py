"""Web scrapers package.

Contains the wgzimmer.ch-specific acquisition paths:
- normalizer: raw anchor pairs to Listing objects
- direct: plain HTTP search (GET, then POST)
- browser: scoped Playwright session
- session_driver: browser-driven search flow with fallbacks
"""

from .direct import DirectFetcher, parse_listings_html
from .normalizer import normalize_listing
from .session_driver import BrowserSessionDriver, DriverTimings

__all__ = [
    "BrowserSessionDriver",
    "DirectFetcher",
    "DriverTimings",
    "normalize_listing",
    "parse_listings_html",
]
