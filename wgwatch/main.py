"""Application entry point.

Loads configuration, runs one monitoring pass and maps the outcome to the
process exit status: 0 on success (including zero new listings), 1 on any
failure, with the error written to stderr.
"""

import asyncio
import logging
import os
import sys

from .config import load_config
from .core.container import build_container
from .exceptions import ConfigError
from .messages import RUN_FAILED, RUN_SUMMARY

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        format="%(asctime)s - %(levelname)s - %(message)s",
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


async def run() -> int:
    """Run one pass and return the number of listings notified."""
    config = load_config()
    container = build_container(config)
    monitor = container.monitor()
    summary = await monitor.run()
    return summary.new_count


def main() -> None:
    """Main application entry point.

    Raises:
        SystemExit: With status 1 when the run fails.
    """
    configure_logging()

    try:
        count = asyncio.run(run())
    except ConfigError as e:
        logger.error(RUN_FAILED.format(error=e))
        sys.exit(1)
    except Exception as e:
        logger.exception(RUN_FAILED.format(error=e))
        sys.exit(1)

    message = RUN_SUMMARY.format(count=count)
    logger.info(message)
    print(message)


if __name__ == "__main__":
    main()
