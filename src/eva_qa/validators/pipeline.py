"""
Validation Pipeline - Run validators against a visited state.

A validator that raises never stops the pipeline: the exception is
converted into a moderate 'validator-error' issue.
"""

from typing import List, Optional, TYPE_CHECKING
import logging
import time

from eva_qa.core.models import Issue, IssueSeverity
from eva_qa.exceptions.validation import ValidatorError
from eva_qa.interfaces.validator import IValidator, ValidatorResult

if TYPE_CHECKING:
    from eva_qa.interfaces.browser import IPage

logger = logging.getLogger(__name__)


class ValidationPipeline:
    """
    Ordered collection of validators.

    Example:
        >>> pipeline = ValidationPipeline([ResponsiveValidator()])
        >>> results = await pipeline.run(page, "mobile")
        >>> issues = [i for r in results for i in r.issues]
    """

    def __init__(self, validators: Optional[List[IValidator]] = None):
        self._validators: List[IValidator] = list(validators or [])

    @property
    def validators(self) -> List[IValidator]:
        return list(self._validators)

    def add(self, validator: IValidator) -> None:
        self._validators.append(validator)

    def __len__(self) -> int:
        return len(self._validators)

    async def run(self, page: "IPage", viewport: str) -> List[ValidatorResult]:
        """
        Run every enabled validator in order.

        Args:
            page: Live page positioned at the state under test
            viewport: Viewport name

        Returns:
            One result per enabled validator
        """
        results = []
        for validator in self._validators:
            if not validator.enabled:
                continue
            start = time.time()
            try:
                result = await validator.validate(page, viewport)
            except Exception as e:
                error = e if isinstance(e, ValidatorError) else ValidatorError(str(e), validator.name)
                logger.warning(f"Validator '{validator.name}' failed: {error}")
                result = ValidatorResult(
                    validator=validator.name,
                    issues=[self._error_issue(error, viewport)],
                    duration_ms=(time.time() - start) * 1000,
                )
            results.append(result)
        return results

    @staticmethod
    def _error_issue(error: ValidatorError, viewport: str) -> Issue:
        return Issue(
            type="validator",
            severity=IssueSeverity.MODERATE,
            rule="validator-error",
            description=f"Validator '{error.validator}' failed: {error.message}",
            viewport=viewport,
            details=dict(error.details),
        )
