"""
Custom exceptions for the Via API client

Client failures are raised as exceptions but each one carries an explicit
``kind`` tag so callers can switch on it instead of inspecting the hierarchy.
"""
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Discriminator for classified client errors."""
    AUTHENTICATION = "authentication"
    REQUEST = "request"


class ViaException(Exception):
    """Base exception for all Via client errors."""
    pass


class ConfigurationException(ViaException, ValueError):
    """Raised when the client is constructed with missing settings."""
    pass


class ViaClientError(ViaException):
    """
    Classified failure raised by ViaClient.

    Attributes:
        kind: Which variant this error is
        message: Human readable description
        cause: The original exception that triggered this error
    """

    kind: ErrorKind

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class AuthenticationError(ViaClientError):
    """Credential exchange or access token problem."""

    kind = ErrorKind.AUTHENTICATION


class RequestError(ViaClientError):
    """Data call failure; ``status_code`` is None when no response arrived."""

    kind = ErrorKind.REQUEST

    def __init__(
        self,
        message: str,
        method: str,
        url: str,
        status_code: Optional[int] = None,
        cause: Optional[BaseException] = None
    ):
        super().__init__(message, cause)
        self.method = method
        self.url = url
        self.status_code = status_code
