"""
Browser Interface - Abstract base classes for the page-automation driver.

The explorer never talks to Playwright directly; it only needs the narrow
set of primitives declared here (navigation, script evaluation, element
interaction, viewport size and a network-idle wait).

Example:
    >>> from eva_qa.browsers import PlaywrightBrowser
    >>> browser = PlaywrightBrowser()
    >>> await browser.launch(headless=True)
    >>> context = await browser.new_context(viewport={"width": 1280, "height": 800})
    >>> page = await context.new_page()
    >>> await page.goto("https://example.com")
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class BrowserType(Enum):
    """Supported browser types."""
    CHROMIUM = "chromium"
    FIREFOX = "firefox"
    WEBKIT = "webkit"


class IPage(ABC):
    """
    Abstract interface for browser page operations.

    Implementations translate driver failures into the exception hierarchy:
    NavigationError for failed navigation, ActionTimeoutError /
    TransientActionError for element interactions and AutomationFatalError
    when the page, context or browser is gone.
    """

    @property
    @abstractmethod
    def url(self) -> str:
        """Get the current page URL."""
        ...

    @abstractmethod
    async def title(self) -> str:
        """Get the current page title."""
        ...

    # Navigation
    @abstractmethod
    async def goto(self, url: str, timeout: Optional[int] = None) -> Optional[int]:
        """
        Navigate to a URL.

        Args:
            url: The URL to navigate to
            timeout: Navigation timeout in milliseconds

        Returns:
            HTTP status of the main document, when known

        Raises:
            NavigationError: If the target is unreachable or answers with
                a non-success status
        """
        ...

    # Interaction
    @abstractmethod
    async def click(self, selector: str, timeout: Optional[int] = None) -> None:
        """Click on an element matching the selector."""
        ...

    @abstractmethod
    async def fill(self, selector: str, value: str, timeout: Optional[int] = None) -> None:
        """Fill an input element with text."""
        ...

    @abstractmethod
    async def select_option(
        self,
        selector: str,
        value: Union[str, List[str]],
        timeout: Optional[int] = None,
    ) -> List[str]:
        """
        Select option(s) in a <select> element.

        Returns:
            List of selected option values
        """
        ...

    @abstractmethod
    async def check(self, selector: str, timeout: Optional[int] = None) -> None:
        """Toggle a checkbox, radio or switch into the checked state."""
        ...

    @abstractmethod
    async def set_input_files(
        self,
        selector: str,
        files: Union[str, List[str]],
        timeout: Optional[int] = None,
    ) -> None:
        """Attach file(s) to a file input."""
        ...

    # JavaScript execution
    @abstractmethod
    async def evaluate(self, expression: str, *args: Any) -> Any:
        """
        Execute JavaScript in the page context.

        Args:
            expression: JavaScript function to execute
            *args: Argument passed to the function

        Returns:
            The JSON-serializable result of the execution
        """
        ...

    @abstractmethod
    def viewport_size(self) -> Optional[Dict[str, int]]:
        """Get the current viewport size as {"width", "height"}."""
        ...

    # Waiting
    @abstractmethod
    async def wait_for_load_state(self, state: str = "load", timeout: Optional[int] = None) -> None:
        """
        Wait for the page to reach a specific load state.

        Args:
            state: Load state to wait for ('load', 'domcontentloaded', 'networkidle')
            timeout: Maximum time to wait in milliseconds
        """
        ...

    @abstractmethod
    async def wait_for_timeout(self, timeout: int) -> None:
        """Wait for a specified amount of time in milliseconds."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close this page."""
        ...


class IBrowserContext(ABC):
    """
    Abstract interface for browser context (isolated session).

    A browser context provides an isolated environment with its own cookies,
    localStorage, and cache.
    """

    @abstractmethod
    async def new_page(self) -> IPage:
        """Create a new page in this context."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close this context and all its pages."""
        ...


class IBrowser(ABC):
    """
    Abstract interface for browser management.

    This interface defines the contract for launching, managing, and closing
    browser instances.
    """

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """Check if the browser is connected and running."""
        ...

    @abstractmethod
    async def launch(
        self,
        headless: bool = True,
        browser_type: BrowserType = BrowserType.CHROMIUM,
        **options: Any,
    ) -> None:
        """
        Launch a browser instance.

        Args:
            headless: Whether to run in headless mode
            browser_type: Type of browser to launch
            **options: Browser-specific launch options
        """
        ...

    @abstractmethod
    async def new_context(
        self,
        viewport: Optional[Dict[str, int]] = None,
        storage_state: Optional[str] = None,
    ) -> IBrowserContext:
        """
        Create a new browser context (isolated session).

        Args:
            viewport: Viewport size {"width", "height"}
            storage_state: Optional path to a saved authentication state

        Returns:
            A new browser context
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close the browser and cleanup resources."""
        ...
