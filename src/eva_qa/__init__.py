"""
EVA QA - Automated exploration and validation of web applications.

This package drives a browser through an application, builds a graph of
the distinct UI states it reaches and runs validators on every new state.

Example:
    >>> from eva_qa import Explorer, create_config
    >>> from eva_qa.browsers import PlaywrightBrowser
    >>> settings = create_config(base_url="http://localhost:5173")
    >>> browser = PlaywrightBrowser()
    >>> await browser.launch()
    >>> result = await Explorer(settings, browser).explore()
"""

__version__ = "0.1.0"

# Public API exports
from eva_qa.core.explorer import Explorer
from eva_qa.core.models import ExplorationResult, Issue, IssueSeverity, StateGraph
from eva_qa.config.settings import Settings
from eva_qa.config.loader import create_config, load_config

__all__ = [
    "Explorer",
    "ExplorationResult",
    "Issue",
    "IssueSeverity",
    "StateGraph",
    "Settings",
    "create_config",
    "load_config",
    "__version__",
]
