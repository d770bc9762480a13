"""
Playwright Browser - Implementation of IBrowser using Playwright.

This module provides a Playwright-based implementation of the driver
interface and maps Playwright errors onto the EVA exception hierarchy.
"""

from typing import Any, Awaitable, Callable, Dict, List, Optional, Union
import logging

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from eva_qa.interfaces.browser import (
    IBrowser,
    IBrowserContext,
    IPage,
    BrowserType,
)
from eva_qa.exceptions.browser import (
    AutomationFatalError,
    BrowserConnectionError,
    BrowserLaunchError,
    NavigationError,
    PageError,
    TimeoutError as BrowserTimeoutError,
)
from eva_qa.exceptions.action import ActionTimeoutError, TransientActionError

logger = logging.getLogger(__name__)

# Substrings of Playwright error messages that mean the driver is gone
FATAL_ERROR_MARKERS = (
    "target closed",
    "target page, context or browser has been closed",
    "browser has been closed",
    "browser has disconnected",
    "connection closed",
)


def is_fatal_error(error: Exception) -> bool:
    """Check whether a Playwright error means the browser/context died."""
    message = str(error).lower()
    return any(marker in message for marker in FATAL_ERROR_MARKERS)


class PlaywrightPage(IPage):
    """
    Playwright implementation of IPage.

    Wraps a Playwright Page for navigation and interaction.
    """

    def __init__(self, page: Any):
        """
        Initialize the page wrapper.

        Args:
            page: Playwright Page object
        """
        self._page = page

    @property
    def url(self) -> str:
        """Get current URL."""
        return self._page.url

    async def title(self) -> str:
        """Get page title."""
        try:
            return await self._page.title()
        except PlaywrightError as e:
            raise self._translate(e, "title")

    async def goto(self, url: str, timeout: Optional[int] = None) -> Optional[int]:
        """Navigate to URL."""
        try:
            response = await self._page.goto(url, timeout=timeout)
        except PlaywrightError as e:
            if is_fatal_error(e):
                raise AutomationFatalError(f"Browser lost while navigating to {url}: {e}")
            raise NavigationError(f"Failed to navigate to {url}: {e}", url=url)

        if response is None:
            return None
        if response.status >= 400:
            raise NavigationError(
                f"Navigation to {url} returned HTTP {response.status}",
                url=url,
                status_code=response.status,
            )
        return response.status

    async def click(self, selector: str, timeout: Optional[int] = None) -> None:
        """Click element."""
        await self._interact("click", selector, timeout, lambda: self._page.click(selector, timeout=timeout))

    async def fill(self, selector: str, value: str, timeout: Optional[int] = None) -> None:
        """Fill input."""
        await self._interact("fill", selector, timeout, lambda: self._page.fill(selector, value, timeout=timeout))

    async def select_option(
        self,
        selector: str,
        value: Union[str, List[str]],
        timeout: Optional[int] = None,
    ) -> List[str]:
        """Select option."""
        result = await self._interact(
            "select",
            selector,
            timeout,
            lambda: self._page.select_option(selector, value, timeout=timeout),
        )
        return result if isinstance(result, list) else [result]

    async def check(self, selector: str, timeout: Optional[int] = None) -> None:
        """Check a checkbox or radio."""
        await self._interact("check", selector, timeout, lambda: self._page.check(selector, timeout=timeout))

    async def set_input_files(
        self,
        selector: str,
        files: Union[str, List[str]],
        timeout: Optional[int] = None,
    ) -> None:
        """Attach files to a file input."""
        await self._interact(
            "upload",
            selector,
            timeout,
            lambda: self._page.set_input_files(selector, files, timeout=timeout),
        )

    async def evaluate(self, expression: str, *args: Any) -> Any:
        """Execute JavaScript."""
        try:
            return await self._page.evaluate(expression, *args)
        except PlaywrightError as e:
            raise self._translate(e, "evaluate")

    def viewport_size(self) -> Optional[Dict[str, int]]:
        """Get viewport size."""
        return self._page.viewport_size

    async def wait_for_load_state(self, state: str = "load", timeout: Optional[int] = None) -> None:
        """Wait for load state."""
        try:
            await self._page.wait_for_load_state(state, timeout=timeout)
        except PlaywrightTimeoutError as e:
            raise BrowserTimeoutError(
                f"Page did not reach {state}: {e}", timeout_ms=timeout or 0, operation=state
            )
        except PlaywrightError as e:
            raise self._translate(e, f"wait_for_load_state:{state}")

    async def wait_for_timeout(self, timeout: int) -> None:
        """Wait for timeout."""
        try:
            await self._page.wait_for_timeout(timeout)
        except PlaywrightError as e:
            raise self._translate(e, "wait_for_timeout")

    async def close(self) -> None:
        """Close page."""
        try:
            await self._page.close()
        except PlaywrightError as e:
            raise self._translate(e, "close")

    async def _interact(
        self,
        action_type: str,
        selector: str,
        timeout: Optional[int],
        call: Callable[[], Awaitable[Any]],
    ) -> Any:
        try:
            return await call()
        except PlaywrightTimeoutError as e:
            raise ActionTimeoutError(
                f"{action_type} on {selector} timed out: {e}",
                action_type=action_type,
                timeout_ms=timeout or 0,
                selector=selector,
            )
        except PlaywrightError as e:
            if is_fatal_error(e):
                raise AutomationFatalError(f"Browser lost during {action_type} on {selector}: {e}")
            raise TransientActionError(
                f"{action_type} on {selector} failed: {e}",
                action_type=action_type,
                selector=selector,
            )

    @staticmethod
    def _translate(error: Exception, operation: str) -> Exception:
        if is_fatal_error(error):
            return AutomationFatalError(f"Browser lost during {operation}: {error}")
        return PageError(f"{operation} failed: {error}", {"operation": operation})


class PlaywrightContext(IBrowserContext):
    """
    Playwright implementation of IBrowserContext.
    """

    def __init__(self, context: Any):
        self._context = context

    async def new_page(self) -> IPage:
        """Create new page."""
        try:
            page = await self._context.new_page()
        except PlaywrightError as e:
            raise AutomationFatalError(f"Could not open a page: {e}")
        return PlaywrightPage(page)

    async def close(self) -> None:
        """Close context."""
        try:
            await self._context.close()
        except PlaywrightError as e:
            raise PageError(f"Closing context failed: {e}", {"operation": "close_context"})


class PlaywrightBrowser(IBrowser):
    """
    Playwright implementation of IBrowser.

    Example:
        >>> browser = PlaywrightBrowser()
        >>> await browser.launch(headless=True)
        >>> context = await browser.new_context(viewport={"width": 375, "height": 667})
        >>> page = await context.new_page()
        >>> await browser.close()
    """

    def __init__(self):
        """Initialize the browser (not launched yet)."""
        self._playwright: Any = None
        self._browser: Any = None

    @property
    def is_connected(self) -> bool:
        """Check if browser is connected."""
        return self._browser is not None and self._browser.is_connected()

    async def launch(
        self,
        headless: bool = True,
        browser_type: BrowserType = BrowserType.CHROMIUM,
        **options: Any,
    ) -> None:
        """
        Launch the browser.

        Args:
            headless: Whether to run headless
            browser_type: Type of browser to launch
            **options: Additional Playwright launch options
        """
        try:
            self._playwright = await async_playwright().start()

            browser_launchers = {
                BrowserType.CHROMIUM: self._playwright.chromium,
                BrowserType.FIREFOX: self._playwright.firefox,
                BrowserType.WEBKIT: self._playwright.webkit,
            }
            launcher = browser_launchers.get(browser_type, self._playwright.chromium)

            self._browser = await launcher.launch(headless=headless, **options)

            logger.info(f"Launched {browser_type.value} browser (headless={headless})")

        except PlaywrightError as e:
            raise BrowserLaunchError(f"Failed to launch browser: {e}")

    async def new_context(
        self,
        viewport: Optional[Dict[str, int]] = None,
        storage_state: Optional[str] = None,
    ) -> IBrowserContext:
        """
        Create a new browser context.

        Args:
            viewport: Viewport size
            storage_state: Optional saved authentication state

        Returns:
            New context instance
        """
        if not self._browser:
            raise BrowserConnectionError("Browser not launched. Call launch() first.")

        options: Dict[str, Any] = {}
        if viewport:
            options["viewport"] = viewport
        if storage_state:
            options["storage_state"] = storage_state

        try:
            context = await self._browser.new_context(**options)
        except PlaywrightError as e:
            raise AutomationFatalError(f"Could not create browser context: {e}")
        return PlaywrightContext(context)

    async def close(self) -> None:
        """Close the browser and cleanup."""
        if self._browser:
            await self._browser.close()
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

        logger.info("Browser closed")
