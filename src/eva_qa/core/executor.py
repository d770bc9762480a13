"""
Executor - Turn discovered elements into actions and perform them.

This module decides the concrete value each action carries (sample text,
option, fixture file) and executes actions through the driver under a
per-action timeout.
"""

from typing import Dict, Optional, TYPE_CHECKING
import asyncio
import logging

from eva_qa.config.defaults import SAMPLE_VALUES
from eva_qa.core.models import Action, ActionType, DiscoveredAction
from eva_qa.exceptions.action import ActionTimeoutError
from eva_qa.utils.retry import with_timeout

if TYPE_CHECKING:
    from eva_qa.config.settings import Settings
    from eva_qa.interfaces.browser import IPage

logger = logging.getLogger(__name__)

# Extra time granted on top of the driver timeout before the guard fires
TIMEOUT_GRACE_MS = 1000


class ActionExecutor:
    """
    Execute actions on a live page.

    Example:
        >>> executor = ActionExecutor(action_timeout_ms=5000)
        >>> action = executor.build_action(discovered)
        >>> if action:
        ...     await executor.execute(page, action)
    """

    def __init__(
        self,
        action_timeout_ms: int = 10000,
        action_delay_ms: int = 100,
        fill_value: str = "eva-qa",
        upload_file: Optional[str] = None,
        sample_values: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize the executor.

        Args:
            action_timeout_ms: Timeout for a single action
            action_delay_ms: Settle delay after each action
            fill_value: Text used for fill actions without a typed sample
            upload_file: Fixture file for upload actions (None skips them)
            sample_values: Sample text keyed by input type
        """
        self.action_timeout_ms = action_timeout_ms
        self.action_delay_ms = action_delay_ms
        self.fill_value = fill_value
        self.upload_file = upload_file
        self.sample_values = dict(SAMPLE_VALUES if sample_values is None else sample_values)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "ActionExecutor":
        return cls(
            action_timeout_ms=settings.exploration.action_timeout_ms,
            action_delay_ms=settings.exploration.action_delay_ms,
            fill_value=settings.discovery.fill_value,
            upload_file=settings.discovery.upload_file,
        )

    def build_action(self, discovered: DiscoveredAction) -> Optional[Action]:
        """
        Convert a discovered element into a replayable action.

        Returns:
            The action, or None when it cannot be performed (upload without
            a fixture file, select without options)
        """
        if discovered.type == ActionType.FILL:
            value = self.sample_values.get((discovered.input_type or "").lower(), self.fill_value)
            return discovered.to_action(value)

        if discovered.type == ActionType.SELECT:
            if not discovered.options:
                return discovered.to_action(None)
            # Second option when present; the first is often a placeholder
            index = 1 if len(discovered.options) > 1 else 0
            return discovered.to_action(discovered.options[index])

        if discovered.type == ActionType.UPLOAD:
            if not self.upload_file:
                return None
            return discovered.to_action(self.upload_file)

        return discovered.to_action()

    async def execute(self, page: "IPage", action: Action) -> None:
        """
        Perform an action and wait for the settle delay.

        Raises:
            ActionTimeoutError: If the action does not finish in time
            TransientActionError: If the driver could not interact
            AutomationFatalError: If the browser is gone
        """
        timeout = self.action_timeout_ms
        try:
            await with_timeout(
                self._perform(page, action, timeout),
                (timeout + TIMEOUT_GRACE_MS) / 1000,
                f"{action.describe()} timed out",
            )
        except asyncio.TimeoutError as e:
            raise ActionTimeoutError(
                str(e),
                action_type=action.type.value,
                timeout_ms=timeout,
                selector=action.selector,
            )

        if self.action_delay_ms:
            await page.wait_for_timeout(self.action_delay_ms)

    async def _perform(self, page: "IPage", action: Action, timeout: int) -> None:
        logger.debug(f"Executing {action.describe()} on {action.selector}")

        if action.type == ActionType.FILL:
            await page.fill(action.selector, action.value or "", timeout=timeout)
        elif action.type == ActionType.SELECT:
            if action.value is None:
                await page.click(action.selector, timeout=timeout)
            else:
                await page.select_option(action.selector, action.value, timeout=timeout)
        elif action.type == ActionType.CHECK:
            await page.check(action.selector, timeout=timeout)
        elif action.type == ActionType.UPLOAD:
            await page.set_input_files(action.selector, action.value or "", timeout=timeout)
        else:
            await page.click(action.selector, timeout=timeout)
