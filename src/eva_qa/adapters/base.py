"""
Backend adapters - Shared helpers and a registry for side-effect checks.

Example:
    >>> registry = AdapterRegistry()
    >>> registry.register(MyDatabaseAdapter())
    >>> await registry.connect_all({"database": {"url": "postgres://..."}})
    >>> snapshots = await registry.capture_all_states()
"""

from typing import Any, Dict, List, Optional
import asyncio
import logging

from eva_qa.interfaces.adapter import IBackendAdapter, VerificationResult

logger = logging.getLogger(__name__)


class BaseAdapter(IBackendAdapter):
    """
    Convenience base class for adapters.

    Subclasses set ``self._connected`` in connect()/disconnect() and use
    the result helpers to build VerificationResult objects.
    """

    def __init__(self):
        self._connected = False

    def is_connected(self) -> bool:
        return self._connected

    def success(self, message: str, details: Optional[Dict[str, Any]] = None) -> VerificationResult:
        """A passing verification."""
        return VerificationResult(passed=True, message=message, details=details or {})

    def failure(
        self,
        message: str,
        expected: Any = None,
        actual: Any = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> VerificationResult:
        """A failing verification."""
        return VerificationResult(
            passed=False,
            message=message,
            expected=expected,
            actual=actual,
            details=details or {},
        )

    def error(self, error: Exception) -> VerificationResult:
        """A verification that could not be performed."""
        return VerificationResult(
            passed=False,
            message=f"Adapter error: {error}",
            details={"error": str(error), "error_type": type(error).__name__},
        )


class AdapterRegistry:
    """Adapters keyed by name."""

    def __init__(self):
        self._adapters: Dict[str, IBackendAdapter] = {}

    def register(self, adapter: IBackendAdapter) -> None:
        """Register an adapter, replacing any adapter with the same name."""
        self._adapters[adapter.name] = adapter
        logger.debug(f"Registered adapter: {adapter.name}")

    def get(self, name: str) -> Optional[IBackendAdapter]:
        return self._adapters.get(name)

    def get_all(self) -> Dict[str, IBackendAdapter]:
        return dict(self._adapters)

    def has(self, name: str) -> bool:
        return name in self._adapters

    def __len__(self) -> int:
        return len(self._adapters)

    async def connect_all(self, configs: Dict[str, Any]) -> None:
        """Connect every adapter that has a config entry."""
        await asyncio.gather(*(
            adapter.connect(configs[name])
            for name, adapter in self._adapters.items()
            if configs.get(name)
        ))

    async def disconnect_all(self) -> None:
        await asyncio.gather(*(adapter.disconnect() for adapter in self._adapters.values()))

    async def capture_all_states(self) -> Dict[str, Any]:
        """
        Snapshot every connected adapter.

        Adapters that fail to capture are logged and left out.
        """
        states: Dict[str, Any] = {}
        for name, adapter in self._adapters.items():
            if not adapter.is_connected():
                continue
            try:
                states[name] = await adapter.capture_state()
            except Exception as e:
                logger.warning(f"Adapter '{name}' failed to capture state: {e}")
        return states

    def find_adapter_for_action(self, action: str) -> Optional[IBackendAdapter]:
        """First adapter that supports a verification name."""
        for adapter in self._adapters.values():
            if action in adapter.get_supported_actions():
                return adapter
        return None

    def supported_actions(self) -> List[str]:
        actions: List[str] = []
        for adapter in self._adapters.values():
            actions.extend(a for a in adapter.get_supported_actions() if a not in actions)
        return actions
