"""Dependency-injection container.

Wires the watcher's components from one immutable `Config`. Components get
their settings through constructor arguments only, so tests can build them
directly or override single providers with fakes.
"""

from dependency_injector import containers, providers

from wgwatch.config import Config
from wgwatch.scrapers.direct import DirectFetcher
from wgwatch.scrapers.session_driver import BrowserSessionDriver
from wgwatch.services.acquisition import AcquisitionOrchestrator
from wgwatch.services.dedup import DedupStore
from wgwatch.services.monitor import Monitor
from wgwatch.services.notifier import TelegramNotifier
from wgwatch.services.timing import InteractionDelay


class Container(containers.DeclarativeContainer):
    """DI container for the application."""

    config = providers.Dependency(instance_of=Config)

    # Services
    dedup_store = providers.Singleton(DedupStore, path=config.provided.search.sent_path)
    notifier = providers.Singleton(TelegramNotifier, config=config.provided.telegram)
    interaction_delay = providers.Singleton(InteractionDelay)

    # Acquisition
    direct_fetcher = providers.Singleton(DirectFetcher, site=config.provided.site)
    browser_driver = providers.Singleton(
        BrowserSessionDriver,
        direct_fetcher=direct_fetcher,
        site=config.provided.site,
        user_data_dir=config.provided.search.user_data_dir,
        delay=interaction_delay,
    )
    orchestrator = providers.Singleton(
        AcquisitionOrchestrator,
        direct_fetcher=direct_fetcher,
        browser_driver=browser_driver,
        max_attempts=config.provided.search.max_attempts,
        backoff_seconds=config.provided.search.backoff_seconds,
    )

    monitor = providers.Factory(
        Monitor,
        orchestrator=orchestrator,
        store=dedup_store,
        notifier=notifier,
        query=config.provided.search.query,
        headless=config.provided.search.headless,
    )


def build_container(config: Config) -> Container:
    """Create a container bound to a loaded configuration."""
    container = Container()
    container.config.override(providers.Object(config))
    return container
