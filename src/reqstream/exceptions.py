"""
Custom exceptions for reqstream.

This module defines the exception hierarchy raised by the client,
the response parser and the response stream.
"""

from typing import Optional


class ReqstreamError(Exception):
    """Base exception for all reqstream errors."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class PreconditionError(ReqstreamError):
    """Raised when a request is issued through a torn-down transport handle."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(f"Precondition failed: {message}", cause)


class ConnectivityError(ReqstreamError):
    """
    Raised when the transport could not resolve the target host.

    The message embeds the output of a network reachability check so the
    caller can tell a bad hostname apart from a dead network.
    """

    def __init__(
        self,
        message: str,
        diagnostic: Optional[str] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        if diagnostic:
            message = f"{message} {diagnostic}"
        super().__init__(f"Connectivity error: {message}", cause)
        self.diagnostic = diagnostic


class TransportError(ReqstreamError):
    """Raised for any other transport-level failure."""

    def __init__(
        self,
        message: str,
        code: Optional[int] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        if code is not None:
            message = f"{message} (code: {int(code)})"
        super().__init__(f"Transport error: {message}", cause)
        self.code = code


class EmptyResponseError(ReqstreamError):
    """Raised when the transport reports success but returns no payload."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(f"Empty response: {message}", cause)


class DecodeError(ReqstreamError):
    """Raised when a body that claims to be JSON cannot be decoded."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(f"Decode error: {message}", cause)


class ImmutablePropertyError(ReqstreamError):
    """Raised when writing to a derived, raw or reserved response property."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Property is read-only: {name}")
        self.name = name


class UnknownPropertyError(ReqstreamError):
    """Raised when reading a response property that does not exist."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Undefined property: {name}")
        self.name = name


class InvalidArgumentError(ReqstreamError):
    """Raised for unsupported SSL modes, user agents and similar arguments."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(f"Invalid argument: {message}", cause)
