"""
Transport components for reqstream.

This module provides the TransportHandle contract, the default
h11-based implementation, a mock for tests and network helpers.
"""

from .handle import (
    TransportHandle,
    TransportOption,
    TransportErrorCode,
    TransportResult,
)
from .h11_transport import H11Transport
from .mock import MockTransport
from .utils import (
    check_network,
    create_socket,
    create_ssl_context,
    open_connection,
    parse_url,
    format_host_header,
)

__all__ = [
    "TransportHandle",
    "TransportOption",
    "TransportErrorCode",
    "TransportResult",
    "H11Transport",
    "MockTransport",
    "check_network",
    "create_socket",
    "create_ssl_context",
    "open_connection",
    "parse_url",
    "format_host_header",
]
