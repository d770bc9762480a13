"""
Base exceptions for EVA.
"""


class EvaError(Exception):
    """
    Base exception for all EVA errors.

    All custom exceptions inherit from this class, making it easy
    to catch any error raised by the explorer.

    Attributes:
        message: Human-readable error message
        details: Optional additional error details
    """

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class ConfigurationError(EvaError):
    """
    Error in configuration.

    Raised before any traversal begins when the start target is invalid
    or a required option is missing.
    """
    pass


class InitializationError(EvaError):
    """
    Error during initialization.

    Raised when a component fails to initialize properly.
    """
    pass
