"""Global test configuration and fixtures.

Provides shared fixtures for all test levels: environment setup, sample
search HTML, listings, and an in-memory stand-in for a Playwright page so the
browser flow can be exercised stage by stage without a real browser.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from bs4 import BeautifulSoup

from wgwatch.models import Listing
from wgwatch.scrapers import site

TEST_BOT_TOKEN = "123456:test-token"
TEST_CHAT_ID = "-100200300"


@pytest.fixture(autouse=True)
def test_environment(monkeypatch):
    """Setup test environment variables for all tests."""
    monkeypatch.setenv("TG_BOT_TOKEN", TEST_BOT_TOKEN)
    monkeypatch.setenv("TG_CHAT_ID", TEST_CHAT_ID)
    monkeypatch.setenv("SEARCH_QUERY", "Zürich")
    for name in (
        "HEADLESS",
        "USER_DATA_DIR",
        "MAX_ATTEMPTS",
        "SENT_PATH",
        "TG_API_BASE",
        "TG_TIMEOUT",
        "RETRY_BACKOFF_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def results_html():
    """Search results page with two valid listings and noise around them."""
    return """
    <html><body>
      <a href="https://www.wgzimmer.ch/wgzimmer.html">Home</a>
      <ul id="search-result-list">
        <li class="search-mate-entry">
          <a href="https://www.wgzimmer.ch/wglink/de/123456/zimmer-in-wiedikon.html">
            <strong>Zimmer</strong>   in
            Wiedikon <span>CHF 850</span>
          </a>
        </li>
        <li class="search-mate-entry">
          <a href="https://www.wgzimmer.ch/wglink/de/654321/zimmer-oerlikon.html">Zimmer in Oerlikon</a>
        </li>
        <li class="search-mate-entry">
          <a href="/wglink/de/999999/relative-link.html">Relative</a>
        </li>
      </ul>
    </body></html>
    """


@pytest.fixture
def sample_listings():
    return [
        Listing(id="111", href="https://www.wgzimmer.ch/wglink/de/111/a.html", summary="Room A"),
        Listing(id="222", href="https://www.wgzimmer.ch/wglink/de/222/b.html", summary="Room B"),
        Listing(id="333", href="https://www.wgzimmer.ch/wglink/de/333/c.html", summary="Room C"),
    ]


def _make_response(status=200, text=""):
    response = AsyncMock()
    response.status = status
    response.text = AsyncMock(return_value=text)
    return response


def _make_session(get_response=None, post_response=None):
    session = MagicMock()
    session.get.return_value.__aenter__.return_value = get_response or _make_response()
    session.post.return_value.__aenter__.return_value = post_response or _make_response()
    return session


@pytest.fixture
def make_response():
    """Factory for mock aiohttp responses usable as `async with session.get(...)` targets."""
    return _make_response


@pytest.fixture
def make_session():
    """Factory for mock aiohttp.ClientSession objects with canned GET/POST responses."""
    return _make_session


class FakeElement:
    def __init__(self, page, selector):
        self.page = page
        self.selector = selector

    async def click(self, **kwargs):
        await self.page._click(self.selector)


class FakeLocator:
    def __init__(self, page, selector):
        self.page = page
        self.selector = selector

    async def wait_for(self, timeout=None):
        if self.selector not in self.page.present:
            raise TimeoutError(f"{self.selector} not visible")

    async def fill(self, value):
        self.page.typed[self.selector] = value

    async def press_sequentially(self, text, delay=None):
        self.page.typed[self.selector] = self.page.typed.get(self.selector, "") + text

    async def click(self, timeout=None, force=False):
        await self.page._click(self.selector)


class FakeMouse:
    def __init__(self):
        self.moves = []
        self.wheels = []

    async def move(self, x, y):
        self.moves.append((x, y))

    async def wheel(self, dx, dy):
        self.wheels.append((dx, dy))


class FakePage:
    """Scriptable stand-in for playwright.async_api.Page.

    Attributes:
        present: Selectors currently in the DOM.
        captcha_ready: Value of the reCAPTCHA readiness probe.
        submit_works: Whether submitting the form renders results.
        results_on_url: Whether opening the canonical results URL renders results.
        anchors: Anchor dicts returned for result extraction.
    """

    def __init__(self, anchors=None):
        self.url = "about:blank"
        self.present = {site.CONSENT_BUTTON, site.HOME_LOGO, site.SEARCH_TILE}
        self.captcha_ready = True
        self.submit_works = True
        self.results_on_url = False
        self.broken_button = False
        self.anchors = anchors or []
        self.visited = []
        self.clicks = []
        self.typed = {}
        self.submit_calls = 0
        self.content = None
        self.mouse = FakeMouse()

    async def goto(self, url, wait_until=None, timeout=None):
        self.visited.append(url)
        self.url = url
        if url.startswith(site.SEARCH_URL):
            self.present.add(site.QUERY_INPUT)
        if "?" in url and self.results_on_url:
            self.present.add(site.RESULTS_LIST)

    async def wait_for_selector(self, selector, timeout=None):
        if selector not in self.present:
            raise TimeoutError(f"waiting for {selector} timed out")
        return FakeElement(self, selector)

    async def query_selector(self, selector):
        if selector not in self.present:
            return None
        return FakeElement(self, selector)

    async def wait_for_load_state(self, state=None):
        return None

    async def wait_for_url(self, predicate, timeout=None):
        if not predicate(self.url):
            raise TimeoutError("url did not change")

    def locator(self, selector):
        return FakeLocator(self, selector)

    async def evaluate(self, expression):
        if expression == site.RECAPTCHA_READY_JS:
            return self.captcha_ready
        if expression == site.SUBMIT_FORM_JS:
            self.submit_calls += 1
            self._submit()
            return True
        return None

    async def set_content(self, html):
        self.content = html
        soup = BeautifulSoup(html, "html.parser")
        self.anchors = [
            {"href": a["href"], "text": a.get_text()} for a in soup.select(site.RESULT_ANCHORS)
        ]
        self.present.add(site.RESULTS_LIST)

    async def eval_on_selector_all(self, selector, expression):
        if site.RESULTS_LIST not in self.present:
            return []
        return list(self.anchors)

    async def _click(self, selector):
        self.clicks.append(selector)
        if selector == site.CONSENT_BUTTON:
            self.present.discard(site.CONSENT_BUTTON)
        elif selector == site.HOME_LOGO:
            self.url = f"{site.HOME_URL}/wgzimmer.html"
        elif selector == site.SEARCH_TILE:
            self.url = site.SEARCH_URL
            self.present.add(site.QUERY_INPUT)
        elif selector == site.SEARCH_BUTTON:
            if self.broken_button:
                raise RuntimeError("element is not attached to the DOM")
            self._submit()

    def _submit(self):
        if self.submit_works and site.QUERY_INPUT in self.typed:
            self.url = f"{site.SEARCH_URL}?query={self.typed[site.QUERY_INPUT]}"
            self.present.add(site.RESULTS_LIST)


class FakeSession:
    """Async context manager standing in for BrowserSession."""

    def __init__(self, page):
        self.page = page
        self.started = False
        self.stopped = False
        self.options = {}

    def __call__(self, **options):
        self.options = options
        return self

    async def __aenter__(self):
        self.started = True
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.stopped = True

    async def new_page(self):
        return self.page


@pytest.fixture
def page_anchors():
    return [
        {"href": "https://www.wgzimmer.ch/wglink/de/123456/zimmer.html", "text": "Zimmer\n in  Wiedikon"},
        {"href": "https://www.wgzimmer.ch/wglink/de/654321/zimmer.html", "text": "Zimmer in Oerlikon"},
    ]


@pytest.fixture
def fake_page(page_anchors):
    return FakePage(anchors=page_anchors)


@pytest.fixture
def fake_session(fake_page):
    return FakeSession(fake_page)
