"""wgzimmer.ch layout: endpoints, selectors and the canonical search URL.

Everything that ties the scrapers to the target site's markup lives here so
the direct fetcher and the browser driver agree on one view of the site.
"""

import re
from urllib.parse import urlencode

from ..config import SiteConfig
from ..models import SearchParams

HOME_URL = "https://www.wgzimmer.ch"
SEARCH_LANDING_URL = "https://www.wgzimmer.ch/wgzimmer/search/room.html"
SEARCH_FORM_PATH = "/wgzimmer/search/mate.html"
SEARCH_URL = f"{HOME_URL}{SEARCH_FORM_PATH}"
RESULTS_PATH_MARKER = "search/mate"
LISTING_PATH_PREFIX = "/wglink/"

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
ACCEPT_LANGUAGE = "de-DE,de;q=0.9,en;q=0.8"

# Anchors pointing at a listing detail page
LISTING_HREF_RE = re.compile(r"/wglink/")

# Selectors
CONSENT_BUTTON = "p.fc-button-label"
HOME_LOGO = 'a[title="wgzimmer.ch"]'
SEARCH_TILE = f'a[href="{SEARCH_FORM_PATH}"]'
QUERY_INPUT = 'input[name="query"]'
SEARCH_BUTTON = 'input[type="button"][value="Suchen"]'
RESULTS_LIST = "#search-result-list li.search-mate-entry"
RESULT_ANCHORS = "li.search-mate-entry a"

# Page script probes
RECAPTCHA_READY_JS = "typeof grecaptcha !== 'undefined' && typeof grecaptcha.execute === 'function'"
SUBMIT_FORM_JS = "typeof submitForm === 'function' ? (submitForm(), true) : false"


def build_search_params(query: str, site: SiteConfig | None = None) -> SearchParams:
    """Build the fixed search parameter set for a query.

    Args:
        query: Search query, used verbatim.
        site: Filter defaults, built-in defaults when omitted.

    Returns:
        SearchParams with an empty CAPTCHA token and the bypass marker set.
    """
    site = site or SiteConfig()
    return SearchParams(
        query=query,
        price_min=str(site.price_min),
        price_max=str(site.price_max),
        wg_state=site.wg_state,
        permanent=site.permanent,
        studio="true" if site.studio else "false",
        student=site.student,
        typeofwg=site.typeofwg,
    )


def build_search_url(query: str, site: SiteConfig | None = None) -> str:
    """Build the canonical results URL for a query."""
    params = build_search_params(query, site)
    return f"{SEARCH_URL}?{urlencode(params.as_form())}"


def request_headers() -> dict[str, str]:
    """Browser-like headers for direct requests against the search endpoint."""
    return {
        "User-Agent": USER_AGENT,
        "Accept-Language": ACCEPT_LANGUAGE,
        "Referer": SEARCH_LANDING_URL,
    }
