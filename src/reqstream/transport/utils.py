"""
Network utilities for reqstream.

This module provides socket creation, SSL context setup, URL parsing
and the network reachability check used to enrich host resolution
failures.
"""

import logging
import socket
import ssl
from typing import Any, Dict, Iterable, Optional, Tuple
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

# Well-known public resolvers used to probe raw TCP connectivity.
DEFAULT_PROBE_ADDRESSES: Tuple[Tuple[str, int], ...] = (
    ("1.1.1.1", 53),
    ("8.8.8.8", 53),
)
DEFAULT_PROBE_HOST = "example.com"


def create_socket(
    family: int = socket.AF_INET,
    type: int = socket.SOCK_STREAM,
    proto: int = 0
) -> socket.socket:
    """
    Create a socket with sensible options.

    Args:
        family: Address family (default: AF_INET)
        type: Socket type (default: SOCK_STREAM)
        proto: Protocol (default: 0 for auto)

    Returns:
        Configured socket object

    Raises:
        OSError: If socket creation fails
    """
    sock = socket.socket(family, type, proto)
    sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
    return sock


def open_connection(host: str, port: int, timeout: Optional[float] = None) -> socket.socket:
    """
    Resolve a host and connect a blocking socket to it.

    Every resolved address is tried in order until one connects.

    Args:
        host: Hostname or IP address
        port: Port number
        timeout: Socket timeout in seconds (None for blocking)

    Returns:
        A connected socket

    Raises:
        socket.gaierror: If the host cannot be resolved
        OSError: If no address accepts the connection
    """
    addresses = socket.getaddrinfo(host, port, type=socket.SOCK_STREAM)
    last_error: Optional[OSError] = None

    for family, sock_type, proto, _, address in addresses:
        sock = create_socket(family, sock_type, proto)
        try:
            sock.settimeout(timeout)
            sock.connect(address)
            return sock
        except OSError as e:
            sock.close()
            last_error = e

    if last_error is not None:
        raise last_error
    raise OSError(f"No addresses found for {host}:{port}")


def create_ssl_context(
    verify_peer: bool = True,
    verify_host: bool = True,
    alpn_protocols: Optional[list] = None,
) -> ssl.SSLContext:
    """
    Create an SSL context for the given verification policy.

    Args:
        verify_peer: Whether to verify the peer certificate chain
        verify_host: Whether to verify the certificate matches the host
        alpn_protocols: Optional list of ALPN protocols to negotiate

    Returns:
        Configured SSL context
    """
    context = ssl.create_default_context()

    # check_hostname must be cleared before verify_mode can drop to CERT_NONE
    context.check_hostname = bool(verify_peer and verify_host)
    context.verify_mode = ssl.CERT_REQUIRED if verify_peer else ssl.CERT_NONE

    if alpn_protocols:
        context.set_alpn_protocols(alpn_protocols)

    context.options |= ssl.OP_NO_COMPRESSION
    context.minimum_version = ssl.TLSVersion.TLSv1_2

    return context


def parse_url(url: str) -> Tuple[str, str, int, str]:
    """
    Parse URL into components.

    Args:
        url: URL string to parse

    Returns:
        Tuple of (scheme, host, port, target) where target is the
        path plus query string

    Raises:
        ValueError: If URL is malformed
    """
    parsed = urlparse(url)

    scheme = (parsed.scheme or "http").lower()

    host = parsed.hostname or ""
    if not host:
        raise ValueError(f"No hostname found in URL: {url}")

    port = parsed.port
    if port is None:
        port = 443 if scheme == "https" else 80

    target = parsed.path or "/"
    if parsed.query:
        target += "?" + parsed.query

    return scheme, host, port, target


def format_host_header(host: str, port: int, scheme: str) -> str:
    """
    Format host header for HTTP requests.

    Args:
        host: Hostname
        port: Port number
        scheme: URL scheme

    Returns:
        Formatted host header string
    """
    if is_ipv6_address(host):
        host = f"[{host}]"
    if (scheme == "https" and port == 443) or (scheme == "http" and port == 80):
        return host
    return f"{host}:{port}"


def is_ipv6_address(host: str) -> bool:
    """Check if a host string is an IPv6 address."""
    try:
        socket.inet_pton(socket.AF_INET6, host)
        return True
    except OSError:
        return False


def _can_connect(address: Tuple[str, int], timeout: float) -> bool:
    try:
        with socket.create_connection(address, timeout=timeout):
            return True
    except OSError:
        return False


def _can_resolve(host: str) -> bool:
    try:
        socket.getaddrinfo(host, None)
        return True
    except OSError:
        return False


def check_network(
    probe_addresses: Iterable[Tuple[str, int]] = DEFAULT_PROBE_ADDRESSES,
    probe_host: str = DEFAULT_PROBE_HOST,
    timeout: float = 3.0,
) -> Dict[str, Any]:
    """
    Test whether this machine has a working network connection.

    Connects to a few well-known addresses, then tries to resolve a
    well-known hostname. Used after a host resolution failure to tell
    the caller whether the hostname or the network is at fault.

    Args:
        probe_addresses: (ip, port) pairs to try connecting to
        probe_host: Hostname to resolve
        timeout: Per-probe timeout in seconds

    Returns:
        Dictionary with "connected", "dns" and a human readable "message"
    """
    connected = any(_can_connect(address, timeout) for address in probe_addresses)
    dns = _can_resolve(probe_host)

    if connected and dns:
        message = "The network connection is up and DNS is working; check the hostname."
    elif connected:
        message = "The network connection is up but DNS resolution is failing."
    elif dns:
        message = "DNS resolution is working but outbound connections are failing."
    else:
        message = "No network connection is available."

    logger.debug(f"Network check: connected={connected}, dns={dns}")
    return {"connected": connected, "dns": dns, "message": message}
