"""Tests for the direct HTTP fetcher.

Covers the GET-then-POST sequence, header and parameter construction, HTML
parsing of detail anchors, and the FetchError raised when both requests fail.
"""

from urllib.parse import parse_qs, urlparse

import aiohttp
import pytest

from wgwatch.config import SiteConfig
from wgwatch.exceptions import FetchError
from wgwatch.scrapers.direct import DirectFetcher, parse_listings_html
from wgwatch.scrapers.site import SEARCH_LANDING_URL, SEARCH_URL, build_search_url
from wgwatch.services.notifier import format_listing_message


def test_parse_listings_html(results_html):
    listings = parse_listings_html(results_html)

    assert [listing.id for listing in listings] == ["123456", "654321"]
    assert listings[0].summary == "Zimmer in Wiedikon CHF 850"
    assert listings[1].href == "https://www.wgzimmer.ch/wglink/de/654321/zimmer-oerlikon.html"


def test_parse_listings_html_without_matches():
    assert parse_listings_html("<html><a href='/impressum'>x</a></html>") == []


def test_build_search_url_carries_fixed_parameters():
    url = build_search_url("Zürich Kreis 4")
    parsed = urlparse(url)
    params = {key: values[0] for key, values in parse_qs(parsed.query, keep_blank_values=True).items()}

    assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == SEARCH_URL
    assert params == {
        "startSearch": "true",
        "g-recaptcha-response": "",
        "bypass-csrf": "true",
        "query": "Zürich Kreis 4",
        "priceMin": "200",
        "priceMax": "2000",
        "wgState": "all",
        "permanent": "all",
        "studio": "false",
        "student": "none",
        "typeofwg": "all",
    }


def test_build_search_url_uses_site_filters():
    url = build_search_url("Bern", SiteConfig(price_max=1200, studio=True))
    params = parse_qs(urlparse(url).query)

    assert params["priceMax"] == ["1200"]
    assert params["studio"] == ["true"]


@pytest.mark.asyncio
async def test_fetch_returns_get_results(make_session, make_response, results_html):
    session = make_session(get_response=make_response(200, results_html))

    listings = await DirectFetcher().fetch("Zürich", session)

    assert [listing.id for listing in listings] == ["123456", "654321"]
    session.post.assert_not_called()

    _, kwargs = session.get.call_args
    assert kwargs["headers"]["Referer"] == SEARCH_LANDING_URL
    assert "Mozilla/5.0" in kwargs["headers"]["User-Agent"]
    assert kwargs["headers"]["Accept-Language"].startswith("de")


@pytest.mark.asyncio
async def test_fetch_falls_back_to_post(make_session, make_response, results_html):
    session = make_session(
        get_response=make_response(200, "<html>captcha</html>"),
        post_response=make_response(200, results_html),
    )

    listings = await DirectFetcher().fetch("Zürich", session)

    assert len(listings) == 2
    args, kwargs = session.post.call_args
    assert args[0] == SEARCH_URL
    assert kwargs["data"]["query"] == "Zürich"
    assert kwargs["data"]["bypass-csrf"] == "true"
    assert kwargs["headers"]["Content-Type"] == "application/x-www-form-urlencoded"


@pytest.mark.asyncio
async def test_fetch_posts_after_get_error_status(make_session, make_response, results_html):
    session = make_session(
        get_response=make_response(403, "forbidden"),
        post_response=make_response(200, results_html),
    )

    listings = await DirectFetcher().fetch("Zürich", session)

    assert len(listings) == 2


@pytest.mark.asyncio
async def test_fetch_posts_after_get_network_error(make_session, make_response, results_html):
    session = make_session(post_response=make_response(200, results_html))
    session.get.side_effect = aiohttp.ClientConnectionError("reset")

    listings = await DirectFetcher().fetch("Zürich", session)

    assert len(listings) == 2


@pytest.mark.asyncio
async def test_fetch_raises_when_both_empty(make_session, make_response):
    session = make_session(
        get_response=make_response(200, "<html></html>"),
        post_response=make_response(200, "<html></html>"),
    )

    with pytest.raises(FetchError, match="no listings"):
        await DirectFetcher().fetch("Zürich", session)


@pytest.mark.asyncio
async def test_fetch_raises_on_post_error_status(make_session, make_response):
    session = make_session(
        get_response=make_response(500, ""),
        post_response=make_response(503, ""),
    )

    with pytest.raises(FetchError, match="503"):
        await DirectFetcher().fetch("Zürich", session)


def test_parse_listings_html_decodes_entities():
    html = '<a href="https://www.wgzimmer.ch/wglink/de/777/x.html">Zimmer &amp; K&uuml;che &lt;3</a>'

    (listing,) = parse_listings_html(html)

    assert listing.summary == "Zimmer & Küche <3"
    message = format_listing_message(listing)
    assert message.count("&amp;") == 1
    assert "&amp;amp;" not in message
    assert "&lt;3" in message
