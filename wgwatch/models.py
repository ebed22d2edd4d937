"""Data models for the watcher.

Defines Pydantic models for the data flowing through one run: normalized
listings scraped from the search page, the search parameter set sent to the
site, and the summary reported at the end of a run.
"""

from pydantic import BaseModel, ConfigDict, Field


class Listing(BaseModel):
    """A single room search result.

    Listings are rebuilt from scraped HTML on every run and never mutated.
    Two listings are equal when their ids are equal, regardless of the URL
    variant or summary text they were scraped with.

    Attributes:
        id: Stable identifier, third path segment of the detail link.
        href: Absolute URL of the detail page.
        summary: Tag-stripped, whitespace-collapsed anchor text.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    href: str
    summary: str = ""

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Listing):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


class SearchParams(BaseModel):
    """Parameter set for the room search endpoint.

    Serialized with the site's own field names, usable both as GET query
    string and as POST form body.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    start_search: str = Field(default="true", alias="startSearch")
    recaptcha_response: str = Field(default="", alias="g-recaptcha-response")
    bypass_csrf: str = Field(default="true", alias="bypass-csrf")
    query: str
    price_min: str = Field(default="200", alias="priceMin")
    price_max: str = Field(default="2000", alias="priceMax")
    wg_state: str = Field(default="all", alias="wgState")
    permanent: str = "all"
    studio: str = "false"
    student: str = "none"
    typeofwg: str = "all"

    def as_form(self) -> dict[str, str]:
        """Return the parameters keyed by the site's field names."""
        return self.model_dump(by_alias=True)


class RunSummary(BaseModel):
    """Outcome of one monitoring run.

    Attributes:
        scraped: Number of listings acquired from the site.
        notified: Listings that were new and successfully sent.
    """

    scraped: int = 0
    notified: list[Listing] = Field(default_factory=list)

    @property
    def new_count(self) -> int:
        return len(self.notified)
