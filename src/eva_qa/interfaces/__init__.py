"""
Interfaces module - Abstract contracts for external collaborators.
"""

from eva_qa.interfaces.browser import IBrowser, IBrowserContext, IPage, BrowserType
from eva_qa.interfaces.validator import IValidator, ValidatorResult
from eva_qa.interfaces.adapter import IBackendAdapter, VerificationResult

__all__ = [
    "IBrowser",
    "IBrowserContext",
    "IPage",
    "BrowserType",
    "IValidator",
    "ValidatorResult",
    "IBackendAdapter",
    "VerificationResult",
]
