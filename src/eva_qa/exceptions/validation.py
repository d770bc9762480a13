"""
Validation-related exceptions.
"""

from eva_qa.exceptions.base import EvaError


class ValidatorError(EvaError):
    """
    A validator failed while inspecting a state.

    Never propagates out of the explorer: the pipeline downgrades it
    to a moderate-severity issue.
    """

    def __init__(self, message: str, validator: str):
        super().__init__(message, {"validator": validator})
        self.validator = validator
