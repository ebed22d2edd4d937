"""Listing normalization.

Turns raw `(href, text)` pairs, whether parsed from an HTML fragment or read
from live DOM anchors, into `Listing` objects. Both acquisition paths go
through `normalize_listing` so they share one id space.
"""

import re
from urllib.parse import urlparse

from ..models import Listing

TAG_RE = re.compile(r"<[^>]*>")
WHITESPACE_RE = re.compile(r"\s+")
ID_SEGMENT_INDEX = 2


def strip_tags(raw: str) -> str:
    """Remove HTML tags and collapse whitespace runs to single spaces."""
    return WHITESPACE_RE.sub(" ", TAG_RE.sub(" ", raw)).strip()


def extract_listing_id(href: str) -> str | None:
    """Extract the listing id from an absolute detail URL.

    The id is the third non-empty path segment of `/wglink/<category>/<id>/...`.

    Args:
        href: Absolute detail URL.

    Returns:
        The id, or None if the URL is not absolute or has no such segment.
    """
    try:
        parsed = urlparse(href.strip())
    except (AttributeError, ValueError):
        return None

    if not parsed.scheme or not parsed.netloc:
        return None

    segments = [segment for segment in parsed.path.split("/") if segment]
    if len(segments) <= ID_SEGMENT_INDEX:
        return None
    return segments[ID_SEGMENT_INDEX]


def normalize_listing(href: str | None, raw_text: str | None) -> Listing | None:
    """Build a Listing from a raw anchor pair.

    Args:
        href: Anchor href as found in the page.
        raw_text: Anchor inner HTML or inner text.

    Returns:
        Listing, or None for entries without an extractable id. Never raises.
    """
    if not href:
        return None

    listing_id = extract_listing_id(href)
    if not listing_id:
        return None

    return Listing(id=listing_id, href=href.strip(), summary=strip_tags(raw_text or ""))


def normalize_all(pairs: list[tuple[str | None, str | None]]) -> list[Listing]:
    """Normalize anchor pairs, dropping malformed entries and repeated ids.

    Page order is preserved; a listing that appears twice on the page is kept
    at its first position.
    """
    listings: list[Listing] = []
    seen: set[str] = set()
    for href, text in pairs:
        listing = normalize_listing(href, text)
        if listing is None or listing.id in seen:
            continue
        seen.add(listing.id)
        listings.append(listing)
    return listings
