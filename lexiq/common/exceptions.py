"""
Common Exception Classes

This module defines custom exceptions used throughout the assessment engine.
"""

from typing import Any, Dict, List, Optional


class BaseError(Exception):
    """Base class for all custom exceptions."""

    def __init__(self, message: str, original_exception: Optional[Exception] = None):
        """
        Initialize the exception.

        Args:
            message: Error message
            original_exception: Original exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.original_exception = original_exception


class ValidationError(BaseError):
    """
    Exception raised when a question bank fails validation.

    Every violation found is carried, not just the first one, so the
    author of a bank can fix all problems in a single pass.
    """

    def __init__(self, message: str, violations: Optional[List[str]] = None):
        """
        Initialize the validation error.

        Args:
            message: Error message
            violations: Human-readable description of each violation
        """
        self.violations = list(violations or [])
        details = "".join(f"\n  - {violation}" for violation in self.violations)
        super().__init__(f"Validation error: {message}{details}")

    @property
    def errors(self) -> Dict[int, str]:
        """Violations indexed by their position."""
        return dict(enumerate(self.violations))


class ConfigurationError(BaseError):
    """Exception raised for configuration-related errors."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        original_exception: Optional[Exception] = None
    ):
        """
        Initialize the configuration error.

        Args:
            message: Error message
            config_key: The configuration key that caused the error
            original_exception: Underlying parse or validation error
        """
        super().__init__(f"Configuration error: {message}", original_exception)
        self.config_key = config_key


class SessionStateError(BaseError):
    """Exception raised when an operation is illegal in the session's current state."""

    def __init__(self, operation: str, status: Any, message: Optional[str] = None):
        """
        Initialize the session state error.

        Args:
            operation: Name of the rejected operation
            status: Session status at the time of the call
            message: Optional explanation overriding the default one
        """
        status_name = getattr(status, "value", status)
        super().__init__(message or f"Cannot {operation} while session is {status_name}")
        self.operation = operation
        self.status = status


class NotFoundError(BaseError):
    """Exception raised when a resource is not found."""

    def __init__(self, resource_type: str, resource_id: Any):
        """
        Initialize the not found error.

        Args:
            resource_type: Type of resource that wasn't found
            resource_id: ID of the resource that wasn't found
        """
        super().__init__(f"{resource_type} with ID {resource_id} not found")
        self.resource_type = resource_type
        self.resource_id = resource_id


class AnswerTypeError(BaseError):
    """Exception raised when an answer operation does not fit the question's variant."""

    def __init__(self, question_id: str, variant: Any, operation: str):
        variant_name = getattr(variant, "value", variant)
        super().__init__(f"Cannot {operation} for {variant_name} question {question_id}")
        self.question_id = question_id
        self.variant = variant
        self.operation = operation
