"""
Backend Adapter Interface - Contract for side-effect verification.

Adapters snapshot backend state alongside captured UI states and verify
expectations after actions (e.g. "a row was inserted").
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class VerificationResult:
    """
    Result of an adapter verification.

    Attributes:
        passed: Whether the expectation held
        message: Human-readable outcome
        expected: Expected value, when relevant
        actual: Observed value, when relevant
        details: Additional adapter-specific data
    """
    passed: bool
    message: str
    expected: Optional[Any] = None
    actual: Optional[Any] = None
    details: Dict[str, Any] = field(default_factory=dict)


class IBackendAdapter(ABC):
    """Abstract interface for a backend service adapter."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique adapter name."""
        ...

    @abstractmethod
    async def connect(self, config: Any) -> None:
        """Initialize connection to the service."""
        ...

    @abstractmethod
    async def capture_state(self) -> Any:
        """Capture an opaque snapshot of the backend state."""
        ...

    @abstractmethod
    async def verify(self, action: str, expects: Dict[str, Any]) -> VerificationResult:
        """
        Verify an expectation after an action.

        Args:
            action: Verification to perform (e.g. 'rowInserted')
            expects: Expected values to verify against
        """
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Disconnect and cleanup."""
        ...

    @abstractmethod
    def is_connected(self) -> bool:
        """Check if the adapter is connected."""
        ...

    @abstractmethod
    def get_supported_actions(self) -> List[str]:
        """Verification names this adapter understands."""
        ...
