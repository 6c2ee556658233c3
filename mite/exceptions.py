"""
Exception types raised by the mite client.

Validation problems surface as :class:`InvalidArgumentError` before any
request is sent. Everything the API or the transport reports is either an
:class:`ApiUnavailableError` (timeouts) or a :class:`RuntimeApiError`
carrying a numeric code. Lookups by id translate a 404 into the
resource-specific :class:`NotFoundError` subclasses.
"""
from __future__ import annotations
from typing import Any, Optional

import httpx

AUTHENTICATION_ERROR = 403
ENCODING_ERROR = 2001


class MiteError(Exception):
    """Base exception for all mite client errors."""
    def __init__(self, message: str = "", code: int = 0):
        self.message = message
        self.code = code
        super().__init__(message)


class InvalidArgumentError(MiteError, ValueError):
    """Raised when caller supplied input fails local validation."""


class UnsupportedMethodError(InvalidArgumentError):
    """Raised when a request is built for an HTTP method the API does not speak."""


class ApiUnavailableError(MiteError):
    """Raised when the transport timed out before the API answered."""


class RuntimeApiError(MiteError):
    """
    Raised for unexpected API or transport failures.

    A decoded JSON error body passed as ``message`` is stored in ``data``
    and the message is replaced by a generic one.
    """
    def __init__(
        self,
        message: Any = "",
        code: int = 0,
        response: Optional[httpx.Response] = None,
        previous: Optional[BaseException] = None,
    ):
        self.data: Any = None
        if isinstance(message, (dict, list)):
            self.data = message
            message = "Mite Error"
        self.response = response
        self.previous = previous
        super().__init__("" if message is None else str(message), code)
        if previous is not None:
            self.__cause__ = previous


class NotFoundError(RuntimeApiError):
    """Base for lookups that found nothing; always code 404."""
    def __init__(self, message: str, code: int = 404, **kwargs: Any):
        super().__init__(message, code, **kwargs)


class EntryNotFoundError(NotFoundError):
    """Raised when a time entry does not exist."""


class CustomerNotFoundError(NotFoundError):
    """Raised when a customer does not exist."""


class ProjectNotFoundError(NotFoundError):
    """Raised when a project does not exist."""


class ServiceNotFoundError(NotFoundError):
    """Raised when a service does not exist."""


class UserNotFoundError(NotFoundError):
    """Raised when a user does not exist."""
