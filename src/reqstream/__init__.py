"""
reqstream - Synchronous HTTP client with streamable responses

A small HTTP library that issues GET/POST/PUT/DELETE requests over a
reusable transport handle, keeps cookies and SSL policy per client,
and exposes response bodies as lazily decoded, seekable streams.
"""

__version__ = "0.1.0"
__author__ = "Developer"
__email__ = "dev@example.com"

from .client import Client
from .response import Response, ResponseState, classify_content_type
from .parser import RawResponseValues, ResponseParser
from .session import (
    SessionState,
    SSLMode,
    DEFAULT_USER_AGENT,
    RANDOM_USER_AGENT,
    COMMON_USER_AGENTS,
)
from .url import open_url
from .exceptions import (
    ReqstreamError,
    PreconditionError,
    ConnectivityError,
    TransportError,
    EmptyResponseError,
    DecodeError,
    ImmutablePropertyError,
    UnknownPropertyError,
    InvalidArgumentError,
)

__all__ = [
    "Client",
    "Response",
    "ResponseState",
    "classify_content_type",
    "RawResponseValues",
    "ResponseParser",
    "SessionState",
    "SSLMode",
    "DEFAULT_USER_AGENT",
    "RANDOM_USER_AGENT",
    "COMMON_USER_AGENTS",
    "open_url",
    "ReqstreamError",
    "PreconditionError",
    "ConnectivityError",
    "TransportError",
    "EmptyResponseError",
    "DecodeError",
    "ImmutablePropertyError",
    "UnknownPropertyError",
    "InvalidArgumentError",
]
