"""
Utilities module - Common utility functions.
"""

from eva_qa.utils.logging import setup_logging
from eva_qa.utils.retry import retry_async, with_timeout, RetryConfig

__all__ = [
    "setup_logging",
    "retry_async",
    "with_timeout",
    "RetryConfig",
]
