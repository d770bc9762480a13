"""
Exceptions module - Custom exception hierarchy.

Only AutomationFatalError and ConfigurationError end a run; every other
error raised during exploration is turned into data (a failed edge or
an issue) by the explorer.
"""

from eva_qa.exceptions.base import (
    EvaError,
    ConfigurationError,
    InitializationError,
)
from eva_qa.exceptions.browser import (
    BrowserError,
    BrowserLaunchError,
    BrowserConnectionError,
    AutomationFatalError,
    PageError,
    NavigationError,
    ElementNotFoundError,
    TimeoutError as BrowserTimeoutError,
)
from eva_qa.exceptions.action import (
    ActionError,
    TransientActionError,
    ActionTimeoutError,
)
from eva_qa.exceptions.validation import ValidatorError

__all__ = [
    # Base exceptions
    "EvaError",
    "ConfigurationError",
    "InitializationError",
    # Browser exceptions
    "BrowserError",
    "BrowserLaunchError",
    "BrowserConnectionError",
    "AutomationFatalError",
    "PageError",
    "NavigationError",
    "ElementNotFoundError",
    "BrowserTimeoutError",
    # Action exceptions
    "ActionError",
    "TransientActionError",
    "ActionTimeoutError",
    # Validation exceptions
    "ValidatorError",
]
