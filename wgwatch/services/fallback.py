"""Ordered fallback chains.

Each browser stage is expressed as a list of named strategies, cheapest first.
A strategy is an async callable returning True on success; a strategy that
returns False or raises hands over to the next one.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Strategy:
    """One fallback option within a stage.

    Attributes:
        name: Short label used in logs and returned on success.
        run: Async callable returning True on success.
    """

    name: str
    run: Callable[[], Awaitable[bool]]


@dataclass
class ChainResult:
    """Outcome of running a fallback chain.

    Attributes:
        succeeded: Name of the strategy that succeeded, None if all failed.
        errors: Exceptions raised by failed strategies, keyed by name.
    """

    succeeded: str | None = None
    errors: dict[str, Exception] | None = None

    @property
    def ok(self) -> bool:
        return self.succeeded is not None

    @property
    def first_error(self) -> Exception | None:
        if not self.errors:
            return None
        return next(iter(self.errors.values()))


async def run_each(stage: str, strategies: list[Strategy]) -> list[str]:
    """Run every strategy best-effort, regardless of earlier outcomes.

    Returns:
        Names of the strategies that reported success.
    """
    succeeded = []
    for strategy in strategies:
        try:
            if await strategy.run():
                succeeded.append(strategy.name)
        except Exception as e:
            logger.debug(f"{stage}: '{strategy.name}' failed: {e}")
    return succeeded


async def run_chain(stage: str, strategies: list[Strategy]) -> ChainResult:
    """Run strategies in order until one succeeds.

    Args:
        stage: Stage label for logging.
        strategies: Ordered fallback options.

    Returns:
        ChainResult naming the winning strategy and the errors seen before it.
    """
    result = ChainResult(errors={})
    for strategy in strategies:
        try:
            if await strategy.run():
                logger.debug(f"{stage}: '{strategy.name}' succeeded")
                result.succeeded = strategy.name
                return result
            logger.debug(f"{stage}: '{strategy.name}' did not succeed")
        except Exception as e:
            logger.warning(f"{stage}: '{strategy.name}' failed: {e}")
            result.errors[strategy.name] = e
    return result
