"""
Events - Subscribable progress stream of an exploration run.

Handlers may be plain functions or coroutines. A failing handler is
logged and never interrupts exploration.

Example:
    >>> emitter = EventEmitter()
    >>> emitter.on(STATE_VISITED, lambda payload: print(payload["state"].path))
    >>> await emitter.emit(STATE_VISITED, {"state": state})
"""

from typing import Any, Callable, Dict, List
import inspect
import logging

logger = logging.getLogger(__name__)

STATE_VISITED = "state:visited"
ACTION_PERFORMED = "action:performed"
ISSUE_FOUND = "issue:found"
EXPLORATION_STARTED = "exploration:started"
EXPLORATION_COMPLETED = "exploration:completed"
ERROR = "error"

EVENTS = (
    STATE_VISITED,
    ACTION_PERFORMED,
    ISSUE_FOUND,
    EXPLORATION_STARTED,
    EXPLORATION_COMPLETED,
    ERROR,
)

EventHandler = Callable[[Dict[str, Any]], Any]


class EventEmitter:
    """Register handlers per event name and dispatch payloads to them."""

    def __init__(self):
        self._handlers: Dict[str, List[EventHandler]] = {name: [] for name in EVENTS}

    def on(self, event: str, handler: EventHandler) -> None:
        """Register a handler for an event."""
        if event not in self._handlers:
            raise ValueError(f"Unknown event: {event}. Available: {', '.join(EVENTS)}")
        self._handlers[event].append(handler)

    def off(self, event: str, handler: EventHandler) -> None:
        """Remove a previously registered handler."""
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def handler_count(self, event: str) -> int:
        return len(self._handlers.get(event, []))

    async def emit(self, event: str, payload: Dict[str, Any]) -> None:
        """Call every handler of the event in registration order."""
        for handler in list(self._handlers.get(event, [])):
            try:
                result = handler(payload)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.warning(f"Handler for '{event}' failed: {e}")
