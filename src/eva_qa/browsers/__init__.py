"""
Browsers module - Page-automation driver implementations.
"""

from eva_qa.browsers.playwright_browser import (
    PlaywrightBrowser,
    PlaywrightContext,
    PlaywrightPage,
    is_fatal_error,
)

__all__ = [
    "PlaywrightBrowser",
    "PlaywrightContext",
    "PlaywrightPage",
    "is_fatal_error",
]
