"""
Validator Interface - Contract for state inspectors.

Validators only read the live page and return data; the explorer owns
the graph and merges the returned issues.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, TYPE_CHECKING

if TYPE_CHECKING:
    from eva_qa.core.models import Issue
    from eva_qa.interfaces.browser import IPage


@dataclass
class ValidatorResult:
    """
    Outcome of one validator run against one state.

    Attributes:
        validator: Name of the validator
        issues: Issues found
        duration_ms: Time spent validating
    """
    validator: str
    issues: List["Issue"] = field(default_factory=list)
    duration_ms: float = 0


class IValidator(ABC):
    """Abstract interface for a state validator."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique validator name."""
        ...

    @property
    def enabled(self) -> bool:
        """Whether the validator should run."""
        return True

    @abstractmethod
    async def validate(self, page: "IPage", viewport: str) -> ValidatorResult:
        """
        Inspect the current page.

        Args:
            page: Live page positioned at the state under test
            viewport: Viewport name the state was captured with

        Returns:
            ValidatorResult with the issues found
        """
        ...
