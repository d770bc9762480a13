"""
Action-related exceptions.
"""

from eva_qa.exceptions.base import EvaError


class ActionError(EvaError):
    """Base exception for action-related errors."""
    pass


class TransientActionError(ActionError):
    """
    An interaction with an element failed.

    Covers detached elements, elements that cannot be clicked or filled,
    and anything else that only invalidates the current action. Recorded
    on the transition edge; exploration continues with the next action.
    """

    def __init__(self, message: str, action_type: str, selector: str | None = None):
        super().__init__(message, {"action_type": action_type, "selector": selector})
        self.action_type = action_type
        self.selector = selector


class ActionTimeoutError(TransientActionError):
    """
    Action timed out.

    Raised when an action exceeds the per-action timeout.
    """

    def __init__(self, message: str, action_type: str, timeout_ms: int, selector: str | None = None):
        super().__init__(message, action_type, selector)
        self.details["timeout_ms"] = timeout_ms
        self.timeout_ms = timeout_ms
