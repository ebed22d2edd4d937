"""Playwright browser session with automation fingerprints suppressed.

Provides an async context manager that launches Chromium (optionally with a
persistent profile that keeps cookies and consent state across runs), opens
pages with a stealth init script, and always tears everything down on exit.

Key features:
- Desktop Chrome user agent, 1366x768 viewport
- Swiss locale, timezone and geolocation
- Persistent profile support via `user_data_dir`
- Automatic `playwright install chromium` when the executable is missing
"""

import asyncio
import logging
import shlex
from typing import Any

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from .site import USER_AGENT

logger = logging.getLogger(__name__)

VIEWPORT = {"width": 1366, "height": 768}

LAUNCH_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--no-sandbox",
    "--window-size=1366,768",
]

CONTEXT_OPTIONS: dict[str, Any] = {
    "user_agent": USER_AGENT,
    "viewport": VIEWPORT,
    "locale": "de-CH",
    "timezone_id": "Europe/Zurich",
    "geolocation": {"latitude": 47.3769, "longitude": 8.5417},
    "permissions": ["geolocation"],
}

STEALTH_SCRIPT = """
    // Hide webdriver property
    Object.defineProperty(navigator, 'webdriver', {
        get: () => undefined,
    });

    // Mock chrome property
    window.chrome = window.chrome || { runtime: {} };

    // Mock languages
    Object.defineProperty(navigator, 'languages', {
        get: () => ['de-CH', 'de', 'en'],
    });
"""


class BrowserSession:
    """Scoped Chromium session for one scrape attempt."""

    def __init__(self, headless: bool = True, user_data_dir: str | None = None) -> None:
        """Initialize the session.

        Args:
            headless: Run without a visible window.
            user_data_dir: Persistent profile directory, ephemeral context if None.
        """
        self.headless = headless
        self.user_data_dir = user_data_dir
        self.browser: Browser | None = None
        self.context: BrowserContext | None = None
        self.playwright: Playwright | None = None
        self._install_attempted: bool = False

    async def __aenter__(self) -> "BrowserSession":
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.stop()

    async def start(self) -> None:
        """Launch the browser and create the context."""
        try:
            self.playwright = await async_playwright().start()
            chromium = self.playwright.chromium

            if self.user_data_dir:
                logger.info(f"Launching persistent browser context in {self.user_data_dir}")
                self.context = await chromium.launch_persistent_context(
                    self.user_data_dir,
                    headless=self.headless,
                    args=LAUNCH_ARGS,
                    **CONTEXT_OPTIONS,
                )
            else:
                self.browser = await chromium.launch(headless=self.headless, args=LAUNCH_ARGS)
                self.context = await self.browser.new_context(**CONTEXT_OPTIONS)

            logger.info("Browser session started")

        except Exception as e:
            logger.error(f"Failed to start browser: {e}")

            if not self._install_attempted and _needs_browser_install(str(e)):
                logger.warning("Playwright browsers missing; attempting automatic installation...")
                self._install_attempted = True
                if await _ensure_playwright_browsers_installed():
                    logger.info("Playwright browsers installed successfully, retrying launch.")
                    await self.stop()
                    await self.start()
                    return

            await self.stop()
            raise

    async def stop(self) -> None:
        """Close context, browser and driver; safe to call more than once.

        Each step runs even if an earlier one fails.
        """
        if self.context:
            try:
                await self.context.close()
            except Exception as e:
                logger.warning(f"Error closing browser context: {e}")
            self.context = None

        if self.browser:
            try:
                await self.browser.close()
            except Exception as e:
                logger.warning(f"Error closing browser: {e}")
            self.browser = None

        if self.playwright:
            try:
                await self.playwright.stop()
            except Exception as e:
                logger.warning(f"Error stopping Playwright: {e}")
            self.playwright = None

        logger.debug("Browser session stopped and cleaned up")

    async def new_page(self) -> Page:
        """Open a page with automation markers hidden."""
        if self.context is None:
            raise RuntimeError("Browser not started. Call start() first.")

        page = await self.context.new_page()
        await page.add_init_script(STEALTH_SCRIPT)
        return page


def _needs_browser_install(message: str) -> bool:
    lowered = message.lower()
    return "executable doesn't exist" in lowered or "playwright install" in lowered


async def _ensure_playwright_browsers_installed() -> bool:
    """Attempt to install Playwright Chromium binaries on demand."""
    try:
        cmd = ["playwright", "install", "chromium"]
        logger.info("Running %s", " ".join(shlex.quote(part) for part in cmd))
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
        stdout, _ = await process.communicate()
        if stdout:
            logger.info(stdout.decode(errors="ignore"))
        if process.returncode == 0:
            return True

        logger.error("playwright install chromium exited with %s", process.returncode)
        return False
    except Exception as exc:
        logger.error(f"Automatic Playwright installation failed: {exc}")
        return False
