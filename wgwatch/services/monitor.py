"""One monitoring run: acquire, filter, notify, persist.

Listings are notified in page order. Each id is marked sent right after its
notification succeeds, and the sent state is saved whether the run finishes
or fails, so a failure halfway keeps the ids that were already delivered.
"""

import logging
from typing import Protocol

from ..models import Listing, RunSummary
from .acquisition import AcquisitionOrchestrator
from .dedup import DedupStore, SentSet

logger = logging.getLogger(__name__)


class NotifierProtocol(Protocol):
    async def notify(self, listing: Listing) -> None:
        ...


def select_new(listings: list[Listing], sent: SentSet) -> list[Listing]:
    """Listings whose ids are not in the sent set, page order preserved."""
    return [listing for listing in listings if not sent.contains(listing.id)]


class Monitor:
    """Runs the acquisition pipeline once against persisted state."""

    def __init__(
        self,
        orchestrator: AcquisitionOrchestrator,
        store: DedupStore,
        notifier: NotifierProtocol,
        query: str,
        headless: bool = True,
        max_attempts: int | None = None,
    ):
        self.orchestrator = orchestrator
        self.store = store
        self.notifier = notifier
        self.query = query
        self.headless = headless
        self.max_attempts = max_attempts

    async def run(self) -> RunSummary:
        """Execute one run.

        Returns:
            RunSummary with the listings notified in this run.

        Raises:
            NotifyError: Immediately on the first rejected notification.
            Exception: The last acquisition error once retries are exhausted.
        """
        sent = self.store.load()
        summary = RunSummary()

        try:
            listings = await self.orchestrator.acquire(self.query, self.headless, self.max_attempts)
            summary.scraped = len(listings)

            for listing in select_new(listings, sent):
                await self.notifier.notify(listing)
                sent.add(listing.id)
                summary.notified.append(listing)
        finally:
            self.store.save(sent)

        logger.info(f"Scraped {summary.scraped} listing(s), {summary.new_count} new")
        return summary
