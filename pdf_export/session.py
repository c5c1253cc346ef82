"""One headless Chromium process shared by every conversion in a run."""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from playwright.async_api import async_playwright

from .exceptions import SessionLaunchError
from .logger import Logger

LAUNCH_ARGS = [
    '--no-sandbox',               # Required in containers and CI
    '--disable-setuid-sandbox',
    '--disable-dev-shm-usage',    # Use /tmp instead of /dev/shm (prevents OOM crashes)
    '--disable-gpu',              # No GPU in headless mode
    '--font-render-hinting=none',
]

VIEWPORT = {"width": 1200, "height": 800}
DEVICE_SCALE_FACTOR = 2


class BrowserSession:
    """Owns the browser for a run and lends out isolated pages.

    Usage::

        async with BrowserSession(logger) as session:
            async with session.new_page() as page:
                ...

    Every page is closed when its ``new_page`` block exits, whatever happened
    inside it.
    """

    def __init__(self, logger: Optional[Logger] = None):
        self.logger = logger or Logger(verbose=False)
        self._playwright = None
        self._browser = None
        self.open_pages = 0
        self.peak_open_pages = 0

    @property
    def is_running(self) -> bool:
        return self._browser is not None

    def is_connected(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    async def acquire(self) -> "BrowserSession":
        """Launch Chromium. Calling it again on a running session is a no-op."""
        if self._browser is not None:
            return self
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(headless=True, args=LAUNCH_ARGS)
        except Exception as e:
            await self.shutdown()
            raise SessionLaunchError(f"Failed to launch browser: {e}") from e
        self.logger.debug("Browser instance launched")
        return self

    @asynccontextmanager
    async def new_page(self) -> AsyncIterator:
        """Yield a fresh page with a fixed viewport; close it on exit."""
        if self._browser is None:
            raise RuntimeError("Browser session is not started")

        page = await self._browser.new_page(viewport=VIEWPORT, device_scale_factor=DEVICE_SCALE_FACTOR)
        self.open_pages += 1
        self.peak_open_pages = max(self.peak_open_pages, self.open_pages)
        try:
            yield page
        finally:
            self.open_pages -= 1
            await self.release(page)

    async def release(self, page) -> None:
        """Close a page. A page whose browser already went away is just dropped."""
        try:
            if not page.is_closed():
                await page.close()
        except Exception as e:
            self.logger.warning(f"Error closing page: {e}")

    async def shutdown(self) -> None:
        """Close browser and cleanup resources."""
        # Grab references and null them out first to prevent double-close on crash
        browser = self._browser
        pw = self._playwright
        self._browser = None
        self._playwright = None

        try:
            if browser and browser.is_connected():
                await browser.close()
        except Exception as e:
            self.logger.warning(f"Error closing browser: {e}")
        try:
            if pw:
                await pw.stop()
        except Exception as e:
            self.logger.warning(f"Error stopping Playwright: {e}")

        self.logger.debug("Browser instance closed and cleaned up")

    async def __aenter__(self) -> "BrowserSession":
        return await self.acquire()

    async def __aexit__(self, *exc_info) -> None:
        await self.shutdown()
