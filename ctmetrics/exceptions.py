"""
Custom exception hierarchy for commercetools metric runs.

Exception Hierarchy:
    CommercetoolsError (base)
    ├── AuthenticationError     - Client-credentials exchange failed
    └── QueryExecutionError     - Transport failure or non-2xx GraphQL response
        └── ApiReportedError    - 2xx response carrying a GraphQL `errors` list

    ConfigurationError          - Required connection parameters missing
    UnsupportedModeError        - Unknown metric mode
    ValidationError             - Input validation failed
"""
from typing import Any, List, Optional


class CommercetoolsError(Exception):
    """Base exception for all commercetools API errors."""

    def __init__(self, message: str, details: str = None):
        self.message = message
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class AuthenticationError(CommercetoolsError):
    """
    Token exchange against the auth endpoint failed.

    Fatal for the current run; never retried.
    """

    def __init__(self, message: str, details: str = None, status_code: int = None):
        super().__init__(message, details)
        self.status_code = status_code


class QueryExecutionError(CommercetoolsError):
    """
    GraphQL request failed at the transport or HTTP level.

    status_code is None for network errors and timeouts.
    """

    def __init__(self, message: str, details: str = None, status_code: int = None):
        super().__init__(message, details)
        self.status_code = status_code


class ApiReportedError(QueryExecutionError):
    """
    GraphQL request succeeded but the body reported errors.

    Handled exactly like QueryExecutionError by every caller.
    """

    def __init__(self, message: str, errors: Optional[List[Any]] = None, status_code: int = None):
        self.errors = list(errors or [])
        details = "; ".join(_error_message(e) for e in self.errors) or None
        super().__init__(message, details, status_code)


def _error_message(error: Any) -> str:
    if isinstance(error, dict):
        return str(error.get("message", error))
    return str(error)


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


class UnsupportedModeError(ValueError):
    """A metric mode with no registered strategy reached dispatch."""

    def __init__(self, mode: Any):
        self.mode = mode
        super().__init__(f"Unsupported metric mode: {mode}")


class ValidationError(Exception):
    """
    Input validation failed.

    Used for validating user input before processing.
    """

    def __init__(self, field: str, message: str, value: Any = None):
        self.field = field
        self.message = message
        self.value = value
        super().__init__(f"{field}: {message}")

    def __str__(self) -> str:
        if self.value is not None:
            return f"{self.field}: {self.message} (got: {self.value!r})"
        return f"{self.field}: {self.message}"
