"""
Custom exception classes for the workshop tooling and Lambda handler.
"""
from typing import Optional, Any


class WorkshopError(Exception):
    """Base class for errors raised by the workshop tooling."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AWSCredentialsError(WorkshopError):
    """Raised when AWS credentials are missing or cannot be verified."""


class IAMOperationError(WorkshopError):
    """Exception raised for IAM operation errors."""

    def __init__(
        self,
        message: str,
        resource: Optional[str] = None,
        operation: Optional[str] = None
    ):
        """
        Initialize IAM operation error.

        Args:
            message: Error message
            resource: Role, policy or provider name/ARN if available
            operation: IAM API operation name if available
        """
        super().__init__(message)
        self.resource = resource
        self.operation = operation


class LambdaOperationError(WorkshopError):
    """Exception raised for Lambda operation errors."""

    def __init__(
        self,
        message: str,
        function_name: Optional[str] = None,
        operation: Optional[str] = None
    ):
        """
        Initialize Lambda operation error.

        Args:
            message: Error message
            function_name: Lambda function name if available
            operation: Lambda API operation name if available
        """
        super().__init__(message)
        self.function_name = function_name
        self.operation = operation


class LogsOperationError(WorkshopError):
    """Exception raised for CloudWatch Logs operation errors."""

    def __init__(
        self,
        message: str,
        log_group: Optional[str] = None,
        operation: Optional[str] = None
    ):
        super().__init__(message)
        self.log_group = log_group
        self.operation = operation


class FunctionURLCheckError(WorkshopError):
    """Raised when a deployed Function URL does not answer with HTTP 200."""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None
    ):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class ValidationError(WorkshopError):
    """Exception raised for validation errors."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None
    ):
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation if available
            value: Invalid value if available
        """
        super().__init__(message)
        self.field = field
        self.value = value
